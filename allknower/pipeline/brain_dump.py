"""Brain-dump pipeline: free-text notes in, lore notes out.

Steps, in order:

    1. Retrieve the most similar existing lore from the vector index.
    2. Build the two-message prompt (static instructions, dynamic context).
    3. Call the model router for the ``brain-dump`` task.
    4. Parse the response, salvaging individually valid entities.
    5. Apply each entity to the document store on its own.  A failure
       marks that entity ``skipped`` and processing moves on; nothing that
       already succeeded is rolled back.
    6. Persist a history record.
    7. Return the result with the ids that need reindexing.

Steps 2-4 failing (generation error, non-JSON output) fail the whole run
before any document is touched.  Reindexing is the caller's concern:
:meth:`BrainDumpPipeline.run_and_schedule` hands each id to a
:class:`~allknower.utils.concurrency.BackgroundTaskRunner`.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Union

import structlog

from allknower.interfaces.document_store import IDocumentStore
from allknower.interfaces.history_provider import IHistoryProvider
from allknower.interfaces.vector_store_provider import IVectorStoreProvider
from allknower.models.documents import CreateNoteParams
from allknower.models.lore import (
    TEMPLATE_ID_MAP,
    BrainDumpResult,
    EntityRef,
    LoreEntity,
    SkippedEntity,
)
from allknower.services.model_router import ModelRouter
from allknower.services.prompt_builder import build_brain_dump_messages
from allknower.services.response_parser import parse_brain_dump_response
from allknower.utils.concurrency import BackgroundTaskRunner, throttled_gather
from allknower.utils.errors import PipelineError
from allknower.utils.logging import get_logger

if TYPE_CHECKING:
    from allknower.services.indexing.indexer import LoreIndexer

LORE_ROOT_CONFIG_KEY = "loreRootNoteId"

# Outcome of one entity: ("created" | "updated", ref) or a skip record.
_EntityOutcome = Union[tuple[str, EntityRef], SkippedEntity]


class BrainDumpPipeline:
    """Turns a raw brain dump into created and updated lore notes.

    All collaborators are injected.  ``indexer`` and ``task_runner`` are
    only needed for :meth:`run_and_schedule`.
    """

    def __init__(
        self,
        vector_index: IVectorStoreProvider,
        router: ModelRouter,
        document_store: IDocumentStore,
        history: IHistoryProvider,
        indexer: LoreIndexer | None = None,
        task_runner: BackgroundTaskRunner | None = None,
        lore_root_note_id: str = "root",
        context_top_k: int = 10,
        entity_concurrency: int = 1,
    ) -> None:
        self._index = vector_index
        self._router = router
        self._store = document_store
        self._history = history
        self._indexer = indexer
        self._task_runner = task_runner
        self._default_root = lore_root_note_id
        self._context_top_k = context_top_k
        self._entity_concurrency = max(1, entity_concurrency)
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def run(self, raw_text: str) -> BrainDumpResult:
        """Run steps 1-7 and return the result.  Does not reindex."""
        context = await self._index.query(raw_text, self._context_top_k)
        self._logger.info("brain_dump_context_retrieved", chunks=len(context))

        messages = build_brain_dump_messages(raw_text, context)
        generation = await self._router.generate("brain-dump", messages)
        parsed = parse_brain_dump_response(generation.text)

        root_note_id = await self._lore_root()
        outcomes = await self._apply_entities(parsed.entities, root_note_id)

        created: list[EntityRef] = []
        updated: list[EntityRef] = []
        skipped: list[SkippedEntity] = []
        reindex_ids: list[str] = []
        for outcome in outcomes:
            if isinstance(outcome, SkippedEntity):
                skipped.append(outcome)
                continue
            kind, ref = outcome
            (created if kind == "created" else updated).append(ref)
            reindex_ids.append(ref.id)

        result = BrainDumpResult(
            summary=parsed.summary,
            created=created,
            updated=updated,
            skipped=skipped,
            reindex_ids=reindex_ids,
            model=generation.serving_model,
            tokens_used=generation.tokens_used,
        )

        try:
            await self._history.record_brain_dump(
                raw_text=raw_text,
                parsed_json=parsed.model_dump(mode="json", by_alias=True, exclude_none=True),
                notes_created=[ref.id for ref in created],
                notes_updated=[ref.id for ref in updated],
                model=generation.serving_model,
                tokens_used=generation.tokens_used,
            )
        except Exception as exc:
            # Notes were already written; losing the audit row must not
            # hide that from the caller.
            self._logger.error("brain_dump_history_failed", error=str(exc))

        self._logger.info(
            "brain_dump_completed",
            created=len(created),
            updated=len(updated),
            skipped=len(skipped),
            model=generation.serving_model,
            tokens=generation.tokens_used,
        )
        return result

    async def run_and_schedule(self, raw_text: str) -> BrainDumpResult:
        """Run the pipeline, then submit one detached reindex task per id."""
        if self._indexer is None or self._task_runner is None:
            raise PipelineError("run_and_schedule needs an indexer and a task runner")

        result = await self.run(raw_text)
        for document_id in result.reindex_ids:
            self._task_runner.submit(
                f"reindex:{document_id}",
                self._indexer.index_document(document_id),
            )
        return result

    # ------------------------------------------------------------------
    # Entity application
    # ------------------------------------------------------------------

    async def _lore_root(self) -> str:
        configured = await self._history.get_config_value(LORE_ROOT_CONFIG_KEY)
        return configured or self._default_root

    async def _apply_entities(
        self,
        entities: list[LoreEntity],
        root_note_id: str,
    ) -> list[_EntityOutcome]:
        if self._entity_concurrency == 1:
            return [await self._apply_entity(entity, root_note_id) for entity in entities]

        # Each entity's own steps stay sequential inside _apply_entity;
        # gather keeps results in input order.
        semaphore = asyncio.Semaphore(self._entity_concurrency)
        results = await throttled_gather(
            [self._apply_entity(entity, root_note_id) for entity in entities],
            semaphore=semaphore,
            return_exceptions=False,
        )
        return list(results)  # type: ignore[arg-type]

    async def _apply_entity(self, entity: LoreEntity, root_note_id: str) -> _EntityOutcome:
        try:
            if entity.action == "update" and entity.existing_note_id:
                ref = await self._update_entity(entity, entity.existing_note_id)
                return ("updated", ref)
            ref = await self._create_entity(entity, root_note_id)
            return ("created", ref)
        except Exception as exc:
            self._logger.error(
                "brain_dump_entity_failed",
                title=entity.title,
                type=entity.type,
                error=str(exc),
            )
            return SkippedEntity(title=entity.title, reason=str(exc))

    async def _update_entity(self, entity: LoreEntity, note_id: str) -> EntityRef:
        await self._store.update(note_id, {"title": entity.title})
        if entity.content:
            await self._store.set_content(note_id, entity.content)
        return EntityRef(id=note_id, title=entity.title, type=entity.type)

    async def _create_entity(self, entity: LoreEntity, root_note_id: str) -> EntityRef:
        note = await self._store.create(
            CreateNoteParams(
                parent_note_id=entity.parent_note_id or root_note_id,
                title=entity.title,
                type="text",
                content=entity.content or "",
            )
        )
        note_id = note.note_id

        template_id = TEMPLATE_ID_MAP[entity.type]
        try:
            await self._store.set_template(note_id, template_id)
        except Exception as exc:
            self._logger.warning(
                "brain_dump_template_missing",
                template_id=template_id,
                title=entity.title,
                error=str(exc),
            )

        await self._store.tag(note_id, "lore")
        await self._store.tag(note_id, "loreType", entity.type)

        for name, value in entity.attributes.as_labels().items():
            await self._store.create_attribute(note_id, "label", name, value)

        for tag in entity.tags or []:
            await self._store.tag(note_id, tag)

        return EntityRef(id=note_id, title=entity.title, type=entity.type)
