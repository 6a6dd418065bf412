"""OpenRouter LLM provider adapter.

Wraps the ``openai`` async client pointed at OpenRouter.  The full model
chain travels in the request body's ``models`` field; OpenRouter tries
each model in order (rate limits, outages, moderation, context length)
and reports the one that answered in ``response.model``.
"""

from __future__ import annotations

from typing import Any, Literal

import openai
import structlog

from allknower.config.settings import Settings
from allknower.interfaces.llm_provider import ChatMessage, GenerationResult, ILLMProvider
from allknower.utils.errors import GenerationError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_HEADERS = {
    "HTTP-Referer": "https://allknower.local",
    "X-Title": "AllKnower",
}


class OpenRouterLLMProvider(ILLMProvider):
    """Chat completions through OpenRouter with server-side model fallback.

    There is no client-side retry loop: one request carries the ordered
    chain, and a failure of that request is final for the call.
    """

    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.openrouter_api_key
        self._client = openai.AsyncOpenAI(
            api_key=self._api_key,
            base_url=settings.openrouter_base_url,
            default_headers=_DEFAULT_HEADERS,
            timeout=openai.Timeout(settings.openrouter_timeout_seconds, connect=5.0),
            # Failover is OpenRouter's job; SDK retries would repeat the whole chain.
            max_retries=0,
        )

    # ------------------------------------------------------------------
    # ILLMProvider implementation
    # ------------------------------------------------------------------

    async def generate(
        self,
        candidate_models: list[str],
        messages: list[ChatMessage],
        temperature: float = 0.3,
        max_tokens: int = 4096,
        response_format: Literal["json_object", "text"] = "json_object",
    ) -> GenerationResult:
        if not candidate_models:
            raise GenerationError(
                message="generate() called with an empty model chain",
                provider_name=self.get_provider_name(),
            )
        primary = candidate_models[0]

        kwargs: dict[str, Any] = {
            "model": primary,
            "messages": [m.model_dump() for m in messages],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if response_format == "json_object":
            kwargs["response_format"] = {"type": "json_object"}
        if len(candidate_models) > 1:
            kwargs["extra_body"] = {"models": list(candidate_models)}

        try:
            response = await self._client.chat.completions.create(**kwargs)
        except openai.APIError as exc:
            raise GenerationError(
                message=f"OpenRouter request failed (models: {', '.join(candidate_models)}): {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not response.choices or response.choices[0].message.content is None:
            raise GenerationError(
                message=f"OpenRouter returned an empty completion (models: {', '.join(candidate_models)})",
                provider_name=self.get_provider_name(),
            )

        tokens_used = response.usage.total_tokens if response.usage else 0
        serving_model = response.model or primary
        logger.info(
            "openrouter_completion",
            model=serving_model,
            tokens=tokens_used,
        )
        return GenerationResult(
            text=response.choices[0].message.content,
            tokens_used=tokens_used or 0,
            serving_model=serving_model,
        )

    def get_provider_name(self) -> str:
        return "openrouter"

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured."""
        return bool(self._api_key)
