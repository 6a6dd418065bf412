"""Abstract base class for text-embedding providers.

Implementations wrap the OpenRouter cloud embedding model, a local Ollama
model, or the fallback composite of the two.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations:
#   OpenRouterEmbeddingProvider  -- cloud embedding model via OpenRouter
#   OllamaEmbeddingProvider      -- local model via Ollama
#   FallbackEmbeddingProvider    -- primary with fallback to secondary
# Located in: allknower/providers/embedding/
class IEmbeddingProvider(ABC):
    """Contract for embedding services used by the vector index."""

    @abstractmethod
    async def embed(self, text: str) -> list[float]:
        """Embed a single text.

        Returns
        -------
        list[float]
            A vector of length :meth:`get_dimension`.

        Raises
        ------
        allknower.utils.errors.EmbeddingError
            If the backend call fails.
        """

    @abstractmethod
    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed several texts, returning vectors in input order."""

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the committed vector length.

        Must stay constant for the lifetime of one vector index.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return an identifier such as ``"openrouter"`` or ``"ollama"``."""

    @abstractmethod
    def get_model_name(self) -> str:
        """Return the embedding model identifier recorded in index metadata."""
