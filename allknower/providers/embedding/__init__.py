"""Embedding provider adapters."""

from allknower.providers.embedding.fallback_embedding_provider import FallbackEmbeddingProvider
from allknower.providers.embedding.ollama_embedding_provider import OllamaEmbeddingProvider
from allknower.providers.embedding.openrouter_embedding_provider import OpenRouterEmbeddingProvider

__all__ = [
    "FallbackEmbeddingProvider",
    "OllamaEmbeddingProvider",
    "OpenRouterEmbeddingProvider",
]
