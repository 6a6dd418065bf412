"""Per-task model selection with server-side failover.

Each logical task (brain-dump, consistency, suggest, gap-detect,
autocomplete) has a primary model and up to two fallbacks configured in
:class:`~allknower.config.settings.Settings`.  When ``use_openrouter_auto``
is set every task uses the single ``openrouter/auto`` sentinel instead.

The router never loops over models itself.  It builds the ordered chain,
hands it to the backend in one request, and records which model served
the call.
"""

from __future__ import annotations

from typing import Any, Callable, Literal

import structlog

from allknower.config.loader import generation_params
from allknower.config.settings import AUTO_MODEL, TASKS, Settings
from allknower.interfaces.llm_provider import ChatMessage, GenerationResult, ILLMProvider
from allknower.utils.errors import ConfigurationError, GenerationError

logger = structlog.get_logger(logger_name=__name__)


class ModelRouter:
    """Resolves model chains and performs one generation call per task.

    Parameters
    ----------
    llm_provider:
        Backend that accepts the ordered chain in a single request.
    settings:
        Either a :class:`Settings` instance or a zero-argument callable
        returning one.  The chain is re-read on every call, so passing a
        callable lets configuration changes apply without a restart.
    config:
        Loaded YAML config (see :func:`~allknower.config.loader.load_config`)
        supplying per-task temperature and max-token defaults.
    """

    def __init__(
        self,
        llm_provider: ILLMProvider,
        settings: Settings | Callable[[], Settings],
        config: dict[str, Any] | None = None,
    ) -> None:
        self._llm = llm_provider
        self._settings = settings
        self._config = config or {}

    def _current_settings(self) -> Settings:
        if isinstance(self._settings, Settings):
            return self._settings
        return self._settings()

    def resolve_chain(self, task: str) -> list[str]:
        """Return the ordered, non-empty model chain for *task*.

        Raises
        ------
        ConfigurationError
            If *task* is unknown or every configured model is empty.
        """
        if task not in TASKS:
            raise ConfigurationError(f"Unknown model-router task: {task!r}")

        settings = self._current_settings()
        if settings.use_openrouter_auto:
            return [AUTO_MODEL]

        chain = [m.strip() for m in settings.get_task_models(task) if m and m.strip()]
        if not chain:
            raise ConfigurationError(
                f"No models configured for task {task!r}; "
                f"set {task.replace('-', '_').upper()}_MODEL"
            )
        return chain

    async def generate(
        self,
        task: str,
        messages: list[ChatMessage],
        temperature: float | None = None,
        max_tokens: int | None = None,
        response_format: Literal["json_object", "text"] = "json_object",
    ) -> GenerationResult:
        """Run *messages* against *task*'s model chain.

        The chain is resolved before any network call, so an empty chain
        fails without a request.  Backend failures surface as
        :class:`GenerationError` tagged with the task.
        """
        chain = self.resolve_chain(task)
        params = generation_params(self._config, task)
        if temperature is not None:
            params["temperature"] = temperature
        if max_tokens is not None:
            params["max_tokens"] = max_tokens

        primary = chain[0]
        try:
            result = await self._llm.generate(
                candidate_models=chain,
                messages=messages,
                temperature=params["temperature"],
                max_tokens=params["max_tokens"],
                response_format=response_format,
            )
        except GenerationError as exc:
            logger.error("model_router_failed", task=task, models=chain, error=str(exc))
            raise GenerationError(
                message=f"Task {task!r} failed on every model ({', '.join(chain)}): {exc.message}",
                provider_name=exc.provider_name,
                task=task,
            ) from exc

        if primary != AUTO_MODEL and result.serving_model != primary:
            logger.info(
                "model_fallback",
                task=task,
                primary=primary,
                serving_model=result.serving_model,
            )
        logger.info(
            "model_router_completed",
            task=task,
            model=result.serving_model,
            tokens=result.tokens_used,
        )
        return result
