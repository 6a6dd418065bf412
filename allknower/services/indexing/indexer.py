"""Keeps the vector index in step with the document store.

``index_document`` rebuilds one note's chunks; ``full_reindex`` walks every
note matching the corpus query and keeps going past individual failures.
Unlike the embedder's internal fallback, the indexer never swallows errors
for a single document; callers decide whether to retry, log or ignore.
"""

from __future__ import annotations

from datetime import datetime, timezone

import structlog

from allknower.interfaces.document_store import IDocumentStore
from allknower.interfaces.history_provider import IHistoryProvider
from allknower.interfaces.vector_store_provider import IVectorStoreProvider
from allknower.models.rag import IndexMetadata, ReindexSummary
from allknower.services.indexing.chunker import TextChunker
from allknower.utils.text_normalizer import strip_markup

logger = structlog.get_logger(logger_name=__name__)


class LoreIndexer:
    """Indexes notes from the document store into the vector index.

    Parameters
    ----------
    document_store:
        Source of note content and titles.
    vector_index:
        Destination for chunk vectors.
    history:
        Bookkeeping store receiving one metadata row per indexed note.
    chunker:
        Word-window chunker.
    embedding_model:
        Model identifier recorded in the metadata row.
    corpus_query:
        Search query enumerating every indexable note.
    """

    def __init__(
        self,
        document_store: IDocumentStore,
        vector_index: IVectorStoreProvider,
        history: IHistoryProvider,
        chunker: TextChunker,
        embedding_model: str,
        corpus_query: str = "#lore",
    ) -> None:
        self._store = document_store
        self._index = vector_index
        self._history = history
        self._chunker = chunker
        self._embedding_model = embedding_model
        self._corpus_query = corpus_query

    async def index_document(self, document_id: str) -> int:
        """Re-embed one note.  Returns the number of chunks written.

        Empty or whitespace-only content is skipped and returns 0 without
        touching the index.
        """
        content = await self._store.get_content(document_id)
        if not content or not content.strip():
            logger.info("index_document_skipped_empty", document_id=document_id)
            return 0

        chunks = self._chunker.chunk(strip_markup(content))
        title = await self._resolve_title(document_id)

        try:
            written = await self._index.upsert_document_chunks(document_id, title, chunks)
        except Exception:
            # The index no longer holds this note; keep the bookkeeping in step.
            await self._history.delete_index_meta(document_id)
            raise
        await self._history.upsert_index_meta(
            IndexMetadata(
                document_id=document_id,
                document_title=title,
                chunk_count=len(chunks),
                model=self._embedding_model,
                embedded_at=datetime.now(timezone.utc),
            )
        )
        logger.info(
            "index_document_completed",
            document_id=document_id,
            title=title,
            chunks=written,
        )
        return written

    async def remove_document(self, document_id: str) -> None:
        """Drop a note's chunks and its metadata row."""
        await self._index.delete_document(document_id)
        await self._history.delete_index_meta(document_id)
        logger.info("index_document_removed", document_id=document_id)

    async def full_reindex(self) -> ReindexSummary:
        """Index every note matching the corpus query, counting outcomes."""
        notes = await self._store.search(self._corpus_query)
        logger.info("full_reindex_started", query=self._corpus_query, documents=len(notes))

        indexed = 0
        failed = 0
        for note in notes:
            try:
                await self.index_document(note.note_id)
                indexed += 1
            except Exception as exc:
                failed += 1
                logger.warning(
                    "full_reindex_document_failed",
                    document_id=note.note_id,
                    error=str(exc),
                )

        logger.info("full_reindex_completed", indexed=indexed, failed=failed)
        return ReindexSummary(indexed=indexed, failed=failed)

    async def _resolve_title(self, document_id: str) -> str:
        notes = await self._store.search(f"#noteId={document_id}")
        if notes and notes[0].title:
            return notes[0].title
        return document_id
