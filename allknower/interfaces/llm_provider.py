"""Abstract base class for the generative-model backend.

The backend receives the whole ordered model chain in one request and is
expected to fail over between models server-side.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ChatMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Literal["system", "user", "assistant"]
    content: str


class GenerationResult(BaseModel):
    """What one generation call produced and which model served it."""

    model_config = ConfigDict(frozen=True)

    text: str
    tokens_used: int = Field(default=0, ge=0)
    serving_model: str


# Concrete implementation: OpenRouterLLMProvider
# Located in: allknower/providers/llm/
class ILLMProvider(ABC):
    """Contract for chat-completion backends used by the model router."""

    @abstractmethod
    async def generate(
        self,
        candidate_models: list[str],
        messages: list[ChatMessage],
        temperature: float = 0.3,
        max_tokens: int = 4096,
        response_format: Literal["json_object", "text"] = "json_object",
    ) -> GenerationResult:
        """Run one completion across an ordered model chain.

        Parameters
        ----------
        candidate_models:
            Non-empty, ordered model identifiers.  The first is the
            primary; the rest are tried by the backend in order.
        messages:
            Ordered chat messages.
        temperature:
            Sampling temperature.
        max_tokens:
            Upper bound on completion tokens.
        response_format:
            ``"json_object"`` requests JSON mode.

        Raises
        ------
        allknower.utils.errors.GenerationError
            If the request failed for every model in the chain.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this backend."""
