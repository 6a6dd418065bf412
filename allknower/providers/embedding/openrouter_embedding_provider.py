"""OpenRouter embedding provider adapter.

Wraps the ``openai`` async client pointed at OpenRouter's OpenAI-compatible
``/embeddings`` endpoint.  Default model is ``google/gemini-embedding-001``
(3072 dimensions).
"""

from __future__ import annotations

import openai
import structlog

from allknower.config.settings import Settings
from allknower.interfaces.embedding_provider import IEmbeddingProvider
from allknower.utils.errors import EmbeddingError

logger = structlog.get_logger(logger_name=__name__)

# OpenRouter attribution headers.
_DEFAULT_HEADERS = {
    "HTTP-Referer": "https://allknower.local",
    "X-Title": "AllKnower",
}


class OpenRouterEmbeddingProvider(IEmbeddingProvider):
    """Cloud embeddings through OpenRouter.

    Inputs are sent one per request; ``embed_batch`` is a sequential loop
    so ordering is trivially preserved.
    """

    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.openrouter_api_key
        self._client = openai.AsyncOpenAI(
            api_key=self._api_key,
            base_url=settings.openrouter_base_url,
            default_headers=_DEFAULT_HEADERS,
            timeout=openai.Timeout(settings.openrouter_timeout_seconds, connect=5.0),
        )
        self._model = settings.embedding_cloud
        self._dimension = settings.embedding_dimensions

    # ------------------------------------------------------------------
    # IEmbeddingProvider implementation
    # ------------------------------------------------------------------

    async def embed(self, text: str) -> list[float]:
        try:
            response = await self._client.embeddings.create(model=self._model, input=text)
        except openai.APIError as exc:
            raise EmbeddingError(
                message=f"OpenRouter embedding API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not response.data:
            raise EmbeddingError(
                message=f"OpenRouter returned no embedding for model {self._model}",
                provider_name=self.get_provider_name(),
            )
        logger.debug("openrouter_embedding", model=self._model, chars=len(text))
        return list(response.data[0].embedding)

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        return [await self.embed(text) for text in texts]

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return "openrouter"

    def get_model_name(self) -> str:
        return self._model

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured."""
        return bool(self._api_key)
