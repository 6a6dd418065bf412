"""Abstract base class for the lore vector index."""

from __future__ import annotations

from abc import ABC, abstractmethod

from allknower.models.rag import IndexHealth, RagChunk


# Concrete implementation: ChromaDBVectorIndex
# Located in: allknower/providers/vector_store/
class IVectorStoreProvider(ABC):
    """Contract for the persistent chunk index.

    Records are ``(document_id, chunk_index, text, vector)``.  Writes are
    always whole-document replacements.
    """

    @abstractmethod
    async def upsert_document_chunks(
        self,
        document_id: str,
        document_title: str,
        chunks: list[str],
    ) -> int:
        """Replace every stored chunk of *document_id* with *chunks*.

        An empty *chunks* list only deletes.  Returns the number of chunks
        written.

        Raises
        ------
        allknower.utils.errors.ConfigurationError
            If a computed vector's length differs from the index dimension.
        allknower.utils.errors.VectorIndexError
            If the store operation fails.
        """

    @abstractmethod
    async def query(self, text: str, top_k: int = 10) -> list[RagChunk]:
        """Return up to *top_k* chunks ordered by decreasing similarity."""

    @abstractmethod
    async def delete_document(self, document_id: str) -> None:
        """Remove all chunks of *document_id*.  Absent ids are a no-op."""

    @abstractmethod
    async def health_check(self) -> IndexHealth:
        """Report whether the store and its collection are reachable.

        Never raises.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this store."""
