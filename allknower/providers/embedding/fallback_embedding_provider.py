"""Primary-then-secondary embedding composite.

Every text goes to the primary backend first.  Any failure there is logged
as a warning and the same text is sent to the secondary backend; the
caller only sees an error when both fail.  The two attempts run strictly
one after the other, so worst-case latency is the sum of both timeouts.
"""

from __future__ import annotations

import structlog

from allknower.interfaces.embedding_provider import IEmbeddingProvider
from allknower.utils.errors import ConfigurationError, EmbeddingError

logger = structlog.get_logger(logger_name=__name__)


class FallbackEmbeddingProvider(IEmbeddingProvider):
    """Wraps two providers that must agree on vector dimensionality."""

    def __init__(self, primary: IEmbeddingProvider, secondary: IEmbeddingProvider) -> None:
        if primary.get_dimension() != secondary.get_dimension():
            raise ConfigurationError(
                message=(
                    f"Embedding backends disagree on dimension: "
                    f"{primary.get_provider_name()}={primary.get_dimension()}, "
                    f"{secondary.get_provider_name()}={secondary.get_dimension()}"
                ),
                provider_name=self.get_provider_name(),
            )
        self._primary = primary
        self._secondary = secondary

    async def embed(self, text: str) -> list[float]:
        try:
            return await self._primary.embed(text)
        except Exception as primary_exc:
            logger.warning(
                "embedding_fallback",
                primary=self._primary.get_provider_name(),
                secondary=self._secondary.get_provider_name(),
                error=str(primary_exc),
            )
            try:
                return await self._secondary.embed(text)
            except Exception as secondary_exc:
                raise EmbeddingError(
                    message=(
                        f"All embedding backends failed: "
                        f"{self._primary.get_provider_name()}: {primary_exc}; "
                        f"{self._secondary.get_provider_name()}: {secondary_exc}"
                    ),
                    provider_name=self.get_provider_name(),
                ) from secondary_exc

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed *texts* one at a time; each text falls back independently."""
        vectors: list[list[float]] = []
        for text in texts:
            vectors.append(await self.embed(text))
        return vectors

    def get_dimension(self) -> int:
        return self._primary.get_dimension()

    def get_provider_name(self) -> str:
        return "fallback"

    def get_model_name(self) -> str:
        return self._primary.get_model_name()
