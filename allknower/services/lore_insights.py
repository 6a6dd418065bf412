"""Lore intelligence tasks built on the router, index and document store.

Each task asks its own model chain for a small JSON document.  Model
output that is not JSON, or not the expected shape, degrades to an empty
result rather than failing the call; a failed generation still raises.
"""

from __future__ import annotations

import asyncio
import json
from collections import Counter

import structlog
from pydantic import ValidationError

from allknower.interfaces.document_store import IDocumentStore
from allknower.interfaces.history_provider import IHistoryProvider
from allknower.interfaces.llm_provider import ChatMessage
from allknower.interfaces.vector_store_provider import IVectorStoreProvider
from allknower.models.insights import ConsistencyReport, GapReport, RelationshipSuggestion
from allknower.models.rag import IndexMetadata
from allknower.services.model_router import ModelRouter
from allknower.services.response_parser import decode_json
from allknower.utils.errors import DocumentStoreError, ParseError
from allknower.utils.text_normalizer import excerpt, strip_markup

logger = structlog.get_logger(logger_name=__name__)

MAX_CONSISTENCY_NOTES = 30
CONSISTENCY_EXCERPT_CHARS = 500
SUGGEST_TOP_K = 15
SUGGEST_EXCERPT_CHARS = 200

_CONSISTENCY_SYSTEM = """\
You are a consistency checker for a fantasy worldbuilding grimoire called All Reach.
Analyze the provided lore entries and identify:
1. Factual contradictions (e.g. a character is alive in one entry, dead in another)
2. Timeline conflicts (events that can't coexist chronologically)
3. Orphaned references (mentions of entities that don't exist as entries)
4. Naming inconsistencies (same entity referred to by different names)

Return JSON: { "issues": [{ "type": "contradiction"|"timeline"|"orphan"|"naming", "severity": "high"|"medium"|"low", "description": "...", "affectedNoteIds": ["..."] }], "summary": "..." }"""

_SUGGEST_SYSTEM = """\
You are a worldbuilding assistant for All Reach. Given a new lore entry and a list of existing entries, suggest meaningful narrative relationships between them.

Return JSON: { "suggestions": [{ "targetNoteId": "...", "targetTitle": "...", "relationshipType": "ally|enemy|family|location|event|faction|other", "description": "One sentence explaining the suggested connection." }] }

Only suggest relationships that are genuinely plausible based on the content. Do not invent connections."""

_GAP_SYSTEM = """\
You are a worldbuilding advisor for All Reach. Given a breakdown of lore entry counts by type, identify gaps and underdeveloped areas.

Return JSON: { "gaps": [{ "area": "...", "severity": "high"|"medium"|"low", "description": "...", "suggestion": "..." }], "summary": "..." }"""

CONSISTENCY_PARSE_FAILED = "Failed to parse consistency check response."
GAP_PARSE_FAILED = "Failed to parse gap analysis."


class LoreInsightService:
    """Consistency checks, relationship suggestions, gap detection and
    title autocomplete over the lore corpus."""

    def __init__(
        self,
        document_store: IDocumentStore,
        vector_index: IVectorStoreProvider,
        router: ModelRouter,
        history: IHistoryProvider,
        corpus_query: str = "#lore",
    ) -> None:
        self._store = document_store
        self._index = vector_index
        self._router = router
        self._history = history
        self._corpus_query = corpus_query

    # ------------------------------------------------------------------
    # Consistency
    # ------------------------------------------------------------------

    async def check_consistency(self, note_ids: list[str] | None = None) -> ConsistencyReport:
        query = (
            " OR ".join(f"#noteId={note_id}" for note_id in note_ids)
            if note_ids
            else self._corpus_query
        )
        notes = await self._store.search(query)
        if not notes:
            return ConsistencyReport(summary="No lore notes found to check.")

        selected = notes[:MAX_CONSISTENCY_NOTES]
        bodies = await asyncio.gather(*(self._plain_excerpt(n.note_id) for n in selected))
        entries = [
            f"## {note.title} ({note.note_id})\n{body}"
            for note, body in zip(selected, bodies, strict=True)
        ]

        result = await self._router.generate(
            "consistency",
            [
                ChatMessage(role="system", content=_CONSISTENCY_SYSTEM),
                ChatMessage(
                    role="user",
                    content="Check these lore entries for consistency issues:\n\n" + "\n\n".join(entries),
                ),
            ],
        )
        try:
            return ConsistencyReport.model_validate(decode_json(result.text))
        except (ParseError, ValidationError) as exc:
            logger.warning("consistency_parse_failed", error=str(exc))
            return ConsistencyReport(summary=CONSISTENCY_PARSE_FAILED)

    async def _plain_excerpt(self, note_id: str) -> str:
        try:
            content = await self._store.get_content(note_id)
        except DocumentStoreError as exc:
            logger.warning("consistency_content_unavailable", note_id=note_id, error=str(exc))
            return ""
        return excerpt(strip_markup(content), CONSISTENCY_EXCERPT_CHARS)

    # ------------------------------------------------------------------
    # Relationship suggestions
    # ------------------------------------------------------------------

    async def suggest_relationships(self, text: str) -> list[RelationshipSuggestion]:
        similar = await self._index.query(text, SUGGEST_TOP_K)
        if not similar:
            return []

        context = "\n".join(
            f"- {c.document_title} ({c.document_id}): {excerpt(c.content, SUGGEST_EXCERPT_CHARS)}"
            for c in similar
        )
        result = await self._router.generate(
            "suggest",
            [
                ChatMessage(role="system", content=_SUGGEST_SYSTEM),
                ChatMessage(role="user", content=f"New entry:\n{text}\n\nExisting lore:\n{context}"),
            ],
        )
        try:
            payload = decode_json(result.text)
        except ParseError as exc:
            logger.warning("suggest_parse_failed", error=str(exc))
            return []

        raw = payload.get("suggestions") if isinstance(payload, dict) else None
        suggestions: list[RelationshipSuggestion] = []
        for item in raw if isinstance(raw, list) else []:
            try:
                suggestions.append(RelationshipSuggestion.model_validate(item))
            except ValidationError:
                logger.debug("suggestion_dropped", item=item)
        return suggestions

    # ------------------------------------------------------------------
    # Gap detection
    # ------------------------------------------------------------------

    async def detect_gaps(self) -> GapReport:
        notes = await self._store.search(self._corpus_query)
        type_counts = dict(Counter(note.label("loreType") or "unknown" for note in notes))

        result = await self._router.generate(
            "gap-detect",
            [
                ChatMessage(role="system", content=_GAP_SYSTEM),
                ChatMessage(
                    role="user",
                    content=(
                        f"Lore entry counts by type:\n{json.dumps(type_counts, indent=2)}"
                        f"\n\nTotal entries: {len(notes)}"
                    ),
                ),
            ],
        )
        try:
            report = GapReport.model_validate(decode_json(result.text))
        except (ParseError, ValidationError) as exc:
            logger.warning("gap_detect_parse_failed", error=str(exc))
            report = GapReport(summary=GAP_PARSE_FAILED)

        return report.model_copy(update={"type_counts": type_counts, "total_notes": len(notes)})

    # ------------------------------------------------------------------
    # Autocomplete
    # ------------------------------------------------------------------

    async def autocomplete(self, prefix: str, limit: int = 10) -> list[IndexMetadata]:
        """Indexed note titles starting with *prefix*."""
        prefix = prefix.strip()
        if not prefix:
            return []
        return await self._history.search_index_titles(prefix, limit)
