"""Ollama embedding provider adapter (local, no API key).

Talks to the OpenAI-compatible ``/v1`` endpoint Ollama exposes.  The
configured identifier may carry an ``ollama/`` prefix
(``ollama/nomic-embed-text``), which is stripped before the request.
"""

from __future__ import annotations

import openai
import structlog

from allknower.config.settings import Settings
from allknower.interfaces.embedding_provider import IEmbeddingProvider
from allknower.utils.errors import EmbeddingError

logger = structlog.get_logger(logger_name=__name__)

_OLLAMA_PREFIX = "ollama/"


class OllamaEmbeddingProvider(IEmbeddingProvider):
    """Local embeddings served by Ollama.

    The model must produce vectors of ``settings.embedding_dimensions``;
    a mismatch surfaces as a configuration error at the vector index.
    """

    def __init__(self, settings: Settings) -> None:
        self._base_url = settings.ollama_base_url.rstrip("/")
        self._client = openai.AsyncOpenAI(
            base_url=f"{self._base_url}/v1",
            api_key="ollama",  # Ollama ignores the key but the client requires one
        )
        model = settings.embedding_local
        self._model = model[len(_OLLAMA_PREFIX):] if model.startswith(_OLLAMA_PREFIX) else model
        self._dimension = settings.embedding_dimensions

    async def embed(self, text: str) -> list[float]:
        try:
            response = await self._client.embeddings.create(model=self._model, input=text)
        except openai.APIError as exc:
            raise EmbeddingError(
                message=f"Ollama embedding API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not response.data:
            raise EmbeddingError(
                message=f"Ollama returned no embedding for model {self._model}",
                provider_name=self.get_provider_name(),
            )
        return list(response.data[0].embedding)

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        return [await self.embed(text) for text in texts]

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return "ollama"

    def get_model_name(self) -> str:
        return self._model
