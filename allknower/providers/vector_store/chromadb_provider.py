"""ChromaDB vector index adapter.

Wraps ``chromadb.PersistentClient`` to implement
:class:`IVectorStoreProvider`.  Embedded and file-persisted; no server.
The collection uses cosine distance, so similarity is reported as
``1 - distance`` clamped into [0, 1].

The client and collection are opened lazily on first use behind an
:class:`~allknower.utils.concurrency.AsyncOnce`.  An empty collection is
seeded with one record of the committed dimensionality, which is deleted
immediately, so the dimension is fixed before any real write.
"""

from __future__ import annotations

import os
from typing import Any

# Disable telemetry before chromadb is imported; some chromadb releases
# ship a PostHog client that errors on capture() with newer posthog.
os.environ["ANONYMIZED_TELEMETRY"] = "False"

import posthog

posthog.disabled = True

import chromadb
import structlog

from allknower.interfaces.embedding_provider import IEmbeddingProvider
from allknower.interfaces.vector_store_provider import IVectorStoreProvider
from allknower.models.rag import IndexHealth, RagChunk
from allknower.utils.concurrency import AsyncOnce
from allknower.utils.errors import ConfigurationError, VectorIndexError

logger = structlog.get_logger(logger_name=__name__)

SEED_ID = "__seed__"
MIN_TOP_K = 1
MAX_TOP_K = 50


class _NoopEmbeddingFunction(chromadb.EmbeddingFunction[list[str]]):
    """Keeps ChromaDB from loading its default ONNX model.

    Every vector is computed by the injected :class:`IEmbeddingProvider`.
    """

    def __call__(self, input: list[str]) -> list[list[float]]:
        raise NotImplementedError(
            "AllKnower passes pre-computed embeddings; "
            "ChromaDB's built-in embedding should never be called."
        )

    def name(self) -> str:
        return "noop_precomputed"


def clamp_top_k(top_k: int, upper: int = MAX_TOP_K) -> int:
    """Clamp a requested result count into ``[1, upper]``."""
    return max(MIN_TOP_K, min(upper, top_k))


def distance_to_score(distance: float) -> float:
    """Map a cosine distance (0..2) to a similarity in [0, 1]."""
    return max(0.0, min(1.0, 1.0 - distance))


class ChromaDBVectorIndex(IVectorStoreProvider):
    """Lore chunk index backed by a persistent ChromaDB collection.

    Records carry ``document_id``, ``document_title`` and ``chunk_index``
    metadata; ids are ``"<document_id>:<chunk_index>"``.
    """

    def __init__(
        self,
        embedding_provider: IEmbeddingProvider,
        persist_directory: str = "./data/chromadb",
        collection_name: str = "lore_embeddings",
        max_top_k: int = MAX_TOP_K,
    ) -> None:
        self._embedding_provider = embedding_provider
        self._persist_directory = persist_directory
        self._collection_name = collection_name
        self._max_top_k = max_top_k
        self._dimension: int | None = None
        self._collection_once: AsyncOnce[Any] = AsyncOnce(self._open_collection)

    # ------------------------------------------------------------------
    # Lazy initialization
    # ------------------------------------------------------------------

    async def _open_collection(self) -> Any:
        dimension = self._embedding_provider.get_dimension()
        try:
            client = chromadb.PersistentClient(
                path=self._persist_directory,
                settings=chromadb.config.Settings(anonymized_telemetry=False),
            )
            # Metadata is only applied when the collection is created, so
            # "dimension" records what the index was first built with.
            metadata = {"hnsw:space": "cosine", "dimension": dimension}
            try:
                collection = client.get_or_create_collection(
                    name=self._collection_name,
                    metadata=metadata,
                    embedding_function=_NoopEmbeddingFunction(),
                )
            except ValueError:
                # Collection persisted with a different embedding function.
                collection = client.get_or_create_collection(
                    name=self._collection_name,
                    metadata=metadata,
                )

            if collection.count() == 0:
                collection.add(
                    ids=[SEED_ID],
                    embeddings=[[1.0] * dimension],
                    documents=[""],
                    metadatas=[{"document_id": SEED_ID, "document_title": "", "chunk_index": 0}],
                )
                collection.delete(ids=[SEED_ID])
        except Exception as exc:
            raise VectorIndexError(
                message=f"ChromaDB initialization failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        stored = (collection.metadata or {}).get("dimension")
        self._dimension = int(stored) if stored else dimension
        logger.info(
            "chromadb_collection_ready",
            collection=self._collection_name,
            path=self._persist_directory,
            dimension=self._dimension,
            chunks=collection.count(),
        )
        return collection

    async def _collection(self) -> Any:
        return await self._collection_once.get()

    def _check_dimension(self, vector: list[float]) -> None:
        if self._dimension is not None and len(vector) != self._dimension:
            raise ConfigurationError(
                message=(
                    f"Embedding dimension mismatch: index holds {self._dimension}-dim vectors "
                    f"but {self._embedding_provider.get_provider_name()} produced "
                    f"{len(vector)}-dim vectors. A full reindex into a new index is required."
                ),
                provider_name=self.get_provider_name(),
            )

    # ------------------------------------------------------------------
    # IVectorStoreProvider implementation
    # ------------------------------------------------------------------

    async def upsert_document_chunks(
        self,
        document_id: str,
        document_title: str,
        chunks: list[str],
    ) -> int:
        """Delete every chunk of *document_id*, then add *chunks*.

        The old chunks are gone before embedding starts, so a document that
        fails to embed is absent from the index rather than stale.
        """
        collection = await self._collection()

        try:
            collection.delete(where={"document_id": document_id})
        except Exception as exc:
            raise VectorIndexError(
                message=f"ChromaDB delete failed for {document_id}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not chunks:
            logger.info("chromadb_document_cleared", document_id=document_id)
            return 0

        vectors = await self._embedding_provider.embed_batch(chunks)
        for vector in vectors:
            self._check_dimension(vector)

        try:
            collection.add(
                ids=[f"{document_id}:{i}" for i in range(len(chunks))],
                embeddings=vectors,
                documents=chunks,
                metadatas=[
                    {
                        "document_id": document_id,
                        "document_title": document_title,
                        "chunk_index": i,
                    }
                    for i in range(len(chunks))
                ],
            )
        except Exception as exc:
            raise VectorIndexError(
                message=f"ChromaDB upsert failed for {document_id}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info(
            "chromadb_upsert_document",
            document_id=document_id,
            chunks=len(chunks),
        )
        return len(chunks)

    async def query(self, text: str, top_k: int = 10) -> list[RagChunk]:
        collection = await self._collection()
        top_k = clamp_top_k(top_k, self._max_top_k)

        query_vector = await self._embedding_provider.embed(text)
        self._check_dimension(query_vector)

        try:
            count = collection.count()
            if count == 0:
                return []
            results = collection.query(
                query_embeddings=[query_vector],
                n_results=min(top_k, count),
                include=["documents", "metadatas", "distances"],
            )
        except Exception as exc:
            raise VectorIndexError(
                message=f"ChromaDB query failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not results["documents"] or not results["documents"][0]:
            return []

        documents = results["documents"][0]
        metadatas = results["metadatas"][0] if results["metadatas"] else [{}] * len(documents)
        distances = results["distances"][0] if results["distances"] else [1.0] * len(documents)

        chunks: list[RagChunk] = []
        for doc_text, meta, distance in zip(documents, metadatas, distances, strict=True):
            meta = meta or {}
            document_id = str(meta.get("document_id", ""))
            if document_id == SEED_ID:
                continue
            chunks.append(
                RagChunk(
                    document_id=document_id,
                    document_title=str(meta.get("document_title") or document_id),
                    content=doc_text or "",
                    score=distance_to_score(distance),
                )
            )
        chunks.sort(key=lambda c: c.score, reverse=True)

        logger.info(
            "chromadb_query",
            query_length=len(text),
            results_count=len(chunks),
            top_score=chunks[0].score if chunks else 0.0,
        )
        return chunks

    async def delete_document(self, document_id: str) -> None:
        collection = await self._collection()
        try:
            collection.delete(where={"document_id": document_id})
        except Exception as exc:
            raise VectorIndexError(
                message=f"ChromaDB delete failed for {document_id}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("chromadb_delete_document", document_id=document_id)

    async def health_check(self) -> IndexHealth:
        try:
            collection = await self._collection()
            collection.count()
        except Exception as exc:
            return IndexHealth(ok=False, error=str(exc))
        return IndexHealth(ok=True)

    def get_provider_name(self) -> str:
        return "chromadb"

    @property
    def dimension(self) -> int | None:
        """Established vector length, known once the collection is open."""
        return self._dimension

