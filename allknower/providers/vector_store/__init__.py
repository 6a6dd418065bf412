"""Vector index adapters."""

from allknower.providers.vector_store.chromadb_provider import ChromaDBVectorIndex

__all__ = ["ChromaDBVectorIndex"]
