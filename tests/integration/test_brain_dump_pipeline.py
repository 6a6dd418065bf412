"""End-to-end brain-dump runs.

Real ChromaDB (temp directory, hash embedder) and real SQLite history;
the document store is the in-memory fake and the model is mocked behind
a real ModelRouter.
"""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from allknower.interfaces.history_provider import IHistoryProvider
from allknower.interfaces.llm_provider import GenerationResult, ILLMProvider
from allknower.models.lore import TEMPLATE_ID_MAP
from allknower.pipeline.brain_dump import LORE_ROOT_CONFIG_KEY, BrainDumpPipeline
from allknower.providers.vector_store.chromadb_provider import ChromaDBVectorIndex
from allknower.services.indexing.chunker import TextChunker
from allknower.services.indexing.indexer import LoreIndexer
from allknower.services.model_router import ModelRouter
from allknower.services.template_seeder import seed_templates
from allknower.utils.concurrency import BackgroundTaskRunner
from allknower.utils.errors import GenerationError, ParseError, PipelineError

RAW_TEXT = (
    "Kira Voss is a smuggler who runs salt through Port Eldra for the Tide Guild. "
    "Port Eldra has a new harbourmaster."
)

KIRA = {
    "type": "character",
    "title": "Kira Voss",
    "content": "<p>Kira Voss is a smuggler who runs salt through Port Eldra.</p>",
    "attributes": {"fullName": "Kira Voss", "aliases": ["The Salt Fox"], "status": "alive"},
    "tags": ["smuggler"],
    "action": "create",
}
TIDE_GUILD = {
    "type": "faction",
    "title": "Tide Guild",
    "content": "<p>Salt traders.</p>",
    "attributes": {"factionType": "guild"},
    "action": "create",
}
PORT_ELDRA_UPDATE = {
    "type": "location",
    "title": "Port Eldra",
    "content": "<p>A rain-soaked harbour city with a new harbourmaster.</p>",
    "action": "update",
    "existingNoteId": "eldra",
}


def _response(*entities: dict, summary: str = "Kira and the Guild.") -> str:
    return json.dumps({"entities": list(entities), "summary": summary})


def _llm(text: str) -> MagicMock:
    mock = MagicMock(spec=ILLMProvider)
    mock.get_provider_name.return_value = "mock-llm"
    mock.generate = AsyncMock(
        return_value=GenerationResult(text=text, tokens_used=900, serving_model="x-ai/grok-4.1-fast")
    )
    return mock


@pytest.fixture()
def vector_index(hash_embedder, tmp_path: Path) -> ChromaDBVectorIndex:
    return ChromaDBVectorIndex(
        embedding_provider=hash_embedder,
        persist_directory=str(tmp_path / "chroma"),
        collection_name="lore_it",
    )


@pytest.fixture()
def indexer(document_store, vector_index, history) -> LoreIndexer:
    return LoreIndexer(
        document_store=document_store,
        vector_index=vector_index,
        history=history,
        chunker=TextChunker(chunk_size=64, overlap=8),
        embedding_model="hash-64",
    )


@pytest_asyncio.fixture()
async def seeded_corpus(document_store, indexer) -> None:
    document_store.add_note(
        "eldra", "Port Eldra", "<p>A rain-soaked harbour city on the Salt Coast.</p>",
        lore="", loreType="location",
    )
    await indexer.index_document("eldra")


def _pipeline(document_store, vector_index, history, settings, llm, **kwargs) -> BrainDumpPipeline:
    return BrainDumpPipeline(
        vector_index=vector_index,
        router=ModelRouter(llm_provider=llm, settings=settings),
        document_store=document_store,
        history=history,
        **kwargs,
    )


class TestBrainDumpRun:
    @pytest.mark.asyncio
    async def test_mixed_outcomes(
        self, seeded_corpus, document_store, vector_index, history, settings
    ) -> None:
        await seed_templates(document_store)
        document_store.fail_titles.add("Tide Guild")
        llm = _llm(_response(KIRA, TIDE_GUILD, PORT_ELDRA_UPDATE))

        result = await _pipeline(document_store, vector_index, history, settings, llm).run(RAW_TEXT)

        # Retrieved lore reaches the prompt.
        messages = llm.generate.await_args.kwargs["messages"]
        assert "rain-soaked harbour city" in messages[-1].content
        assert llm.generate.await_args.kwargs["candidate_models"] == ["x-ai/grok-4.1-fast"]

        assert [r.title for r in result.created] == ["Kira Voss"]
        assert [r.id for r in result.updated] == ["eldra"]
        assert [s.title for s in result.skipped] == ["Tide Guild"]
        assert "500" in result.skipped[0].reason
        assert result.reindex_ids == [result.created[0].id, "eldra"]
        assert result.summary == "Kira and the Guild."
        assert result.model == "x-ai/grok-4.1-fast"
        assert result.tokens_used == 900

        kira_id = result.created[0].id
        assert document_store.notes[kira_id].parent_note_ids == ["root"]
        labels = document_store.labels_of(kira_id)
        assert labels["lore"] == ""
        assert labels["loreType"] == "character"
        assert labels["fullName"] == "Kira Voss"
        assert labels["aliases"] == "The Salt Fox"
        assert labels["status"] == "alive"
        assert "smuggler" in labels
        assert document_store.relations_of(kira_id) == {"template": TEMPLATE_ID_MAP["character"]}

        assert document_store.notes["eldra"].title == "Port Eldra"
        assert "new harbourmaster" in document_store.contents["eldra"]

    @pytest.mark.asyncio
    async def test_history_records_the_run(
        self, seeded_corpus, document_store, vector_index, history, settings
    ) -> None:
        llm = _llm(_response(KIRA, PORT_ELDRA_UPDATE))

        result = await _pipeline(document_store, vector_index, history, settings, llm).run(RAW_TEXT)

        records = await history.list_brain_dumps()
        assert len(records) == 1
        assert records[0].raw_text == RAW_TEXT
        assert records[0].notes_created == [result.created[0].id]
        assert records[0].notes_updated == ["eldra"]
        assert records[0].model == "x-ai/grok-4.1-fast"
        assert [e["title"] for e in records[0].parsed_json["entities"]] == ["Kira Voss", "Port Eldra"]
        assert records[0].parsed_json["entities"][1]["existingNoteId"] == "eldra"

    @pytest.mark.asyncio
    async def test_missing_template_does_not_skip_entity(
        self, document_store, vector_index, history, settings
    ) -> None:
        llm = _llm(_response(KIRA))

        result = await _pipeline(document_store, vector_index, history, settings, llm).run(RAW_TEXT)

        assert len(result.created) == 1
        kira_id = result.created[0].id
        assert document_store.relations_of(kira_id) == {}
        assert document_store.labels_of(kira_id)["loreType"] == "character"

    @pytest.mark.asyncio
    async def test_configured_lore_root_and_explicit_parent(
        self, document_store, vector_index, history, settings
    ) -> None:
        await history.set_config_value(LORE_ROOT_CONFIG_KEY, "lore-root")
        with_parent = {**TIDE_GUILD, "parentNoteId": "factions"}
        llm = _llm(_response(KIRA, with_parent))

        result = await _pipeline(
            document_store, vector_index, history, settings, llm, lore_root_note_id="root"
        ).run(RAW_TEXT)

        kira_id, guild_id = (r.id for r in result.created)
        assert document_store.notes[kira_id].parent_note_ids == ["lore-root"]
        assert document_store.notes[guild_id].parent_note_ids == ["factions"]

    @pytest.mark.asyncio
    async def test_concurrent_entities_keep_order(
        self, document_store, vector_index, history, settings
    ) -> None:
        entities = [
            {"type": "location", "title": f"Isle {i}", "action": "create"} for i in range(6)
        ]
        llm = _llm(_response(*entities))

        result = await _pipeline(
            document_store, vector_index, history, settings, llm, entity_concurrency=3
        ).run(RAW_TEXT)

        assert [r.title for r in result.created] == [f"Isle {i}" for i in range(6)]
        assert len(set(result.reindex_ids)) == 6

    @pytest.mark.asyncio
    async def test_invalid_entities_are_dropped_before_writes(
        self, document_store, vector_index, history, settings
    ) -> None:
        bad_update = {"type": "location", "title": "Nowhere", "action": "update"}
        llm = _llm(_response(KIRA, bad_update))

        result = await _pipeline(document_store, vector_index, history, settings, llm).run(RAW_TEXT)

        assert [r.title for r in result.created] == ["Kira Voss"]
        assert result.updated == []
        assert "Nowhere" not in {n.title for n in document_store.notes.values()}

    @pytest.mark.asyncio
    async def test_history_failure_still_returns_result(
        self, document_store, vector_index, settings
    ) -> None:
        broken_history = MagicMock(spec=IHistoryProvider)
        broken_history.get_config_value = AsyncMock(return_value=None)
        broken_history.record_brain_dump = AsyncMock(side_effect=RuntimeError("disk full"))
        llm = _llm(_response(KIRA))

        result = await _pipeline(
            document_store, vector_index, broken_history, settings, llm
        ).run(RAW_TEXT)

        assert [r.title for r in result.created] == ["Kira Voss"]
        broken_history.record_brain_dump.assert_awaited_once()


class TestBrainDumpFailures:
    @pytest.mark.asyncio
    async def test_unparsable_response_writes_nothing(
        self, document_store, vector_index, history, settings
    ) -> None:
        llm = _llm("I'm sorry, I can't produce JSON today.")

        with pytest.raises(ParseError):
            await _pipeline(document_store, vector_index, history, settings, llm).run(RAW_TEXT)

        assert document_store.notes == {}
        assert await history.list_brain_dumps() == []

    @pytest.mark.asyncio
    async def test_generation_failure_writes_nothing(
        self, document_store, vector_index, history, settings
    ) -> None:
        llm = MagicMock(spec=ILLMProvider)
        llm.generate = AsyncMock(side_effect=GenerationError("all models down", provider_name="openrouter"))

        with pytest.raises(GenerationError) as exc_info:
            await _pipeline(document_store, vector_index, history, settings, llm).run(RAW_TEXT)

        assert exc_info.value.task == "brain-dump"
        assert document_store.notes == {}

    @pytest.mark.asyncio
    async def test_schedule_requires_indexer_and_runner(
        self, document_store, vector_index, history, settings
    ) -> None:
        pipeline = _pipeline(document_store, vector_index, history, settings, _llm(_response(KIRA)))
        with pytest.raises(PipelineError):
            await pipeline.run_and_schedule(RAW_TEXT)


class TestReindexScheduling:
    @pytest.mark.asyncio
    async def test_new_notes_become_retrievable(
        self, seeded_corpus, document_store, vector_index, history, indexer, settings
    ) -> None:
        runner = BackgroundTaskRunner()
        llm = _llm(_response(KIRA, PORT_ELDRA_UPDATE))
        pipeline = _pipeline(
            document_store, vector_index, history, settings, llm, indexer=indexer, task_runner=runner
        )

        result = await pipeline.run_and_schedule(RAW_TEXT)
        kira_id = result.created[0].id

        assert runner.submitted == [f"reindex:{kira_id}", "reindex:eldra"]
        await runner.drain()

        hits = await vector_index.query("Kira Voss smuggler salt", top_k=5)
        assert hits[0].document_id == kira_id
        assert hits[0].document_title == "Kira Voss"

        eldra_hits = [h for h in await vector_index.query("harbourmaster", top_k=5) if h.document_id == "eldra"]
        assert "new harbourmaster" in eldra_hits[0].content

        status = await history.get_index_status()
        assert status.indexed_documents == 2

    @pytest.mark.asyncio
    async def test_reindex_failure_is_contained(
        self, document_store, vector_index, history, indexer, settings
    ) -> None:
        runner = BackgroundTaskRunner()
        indexer.index_document = AsyncMock(side_effect=RuntimeError("embedding backend down"))
        pipeline = _pipeline(
            document_store, vector_index, history, settings, _llm(_response(KIRA)),
            indexer=indexer, task_runner=runner,
        )

        result = await pipeline.run_and_schedule(RAW_TEXT)
        await runner.drain()

        assert len(result.created) == 1
        assert runner.pending == 0
