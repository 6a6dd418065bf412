"""Interfaces for every external collaborator of the AllKnower core.

Business logic talks only to these ABCs.  Concrete adapters live in
``allknower/providers/`` and are wired together in ``allknower/main.py``.

    Interface               ->  Concrete implementation
    -------------------------------------------------------------
    IEmbeddingProvider      ->  OpenRouterEmbeddingProvider,
                                OllamaEmbeddingProvider,
                                FallbackEmbeddingProvider
    ILLMProvider            ->  OpenRouterLLMProvider
    IVectorStoreProvider    ->  ChromaDBVectorIndex
    IDocumentStore          ->  ETAPIClient
    IHistoryProvider        ->  SQLiteHistoryProvider
"""

from allknower.interfaces.document_store import IDocumentStore
from allknower.interfaces.embedding_provider import IEmbeddingProvider
from allknower.interfaces.history_provider import IHistoryProvider
from allknower.interfaces.llm_provider import ChatMessage, GenerationResult, ILLMProvider
from allknower.interfaces.vector_store_provider import IVectorStoreProvider

__all__ = [
    "ChatMessage",
    "GenerationResult",
    "IDocumentStore",
    "IEmbeddingProvider",
    "IHistoryProvider",
    "ILLMProvider",
    "IVectorStoreProvider",
]
