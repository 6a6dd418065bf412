"""Keeps the vector index in sync with the document store."""

from allknower.services.indexing.chunker import TextChunker, chunk_text
from allknower.services.indexing.indexer import LoreIndexer

__all__ = ["LoreIndexer", "TextChunker", "chunk_text"]
