"""Custom exception hierarchy for AllKnower.

All application exceptions inherit from :class:`AllKnowerError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "openrouter", "ollama", "chromadb", "etapi") caused
the failure.

    AllKnowerError  (base -- catch-all for any AllKnower error)
    +-- ConfigurationError       (empty model chain, dimension mismatch, bad settings)
    +-- ParseError               (model returned text that is not JSON)
    +-- BackendError             (network / backend failure)
    |   +-- EmbeddingError       (both embedding backends failed)
    |   +-- GenerationError      (the routed generation call failed)
    |   +-- DocumentStoreError   (ETAPI request failed)
    +-- VectorIndexError         (vector store unavailable or operation failed)
    +-- PipelineError            (orchestration level failure)

Schema validation failures are not part of this hierarchy: they are
pydantic ``ValidationError`` instances handled entirely inside the
response parser's salvage step.
"""


class AllKnowerError(Exception):
    """Base exception for all AllKnower errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name``.  ``__str__`` prefixes the provider name in brackets,
    e.g. ``[openrouter] Generation failed``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Fatal, never retried
# ---------------------------------------------------------------------------

class ConfigurationError(AllKnowerError):
    """Raised for invalid configuration: empty model chains, chunk windows
    that cannot advance, or vectors whose length disagrees with the index."""

    def __init__(
        self,
        message: str = "Invalid configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ParseError(AllKnowerError):
    """Raised when a model response cannot be decoded as JSON.

    ``excerpt`` holds the first 200 characters of the offending text.
    """

    def __init__(
        self,
        message: str = "Model returned invalid JSON",
        excerpt: str = "",
        provider_name: str | None = None,
    ) -> None:
        self._excerpt = excerpt
        super().__init__(message=message, provider_name=provider_name)

    @property
    def excerpt(self) -> str:
        return self._excerpt


# ---------------------------------------------------------------------------
# Backend (network) errors
# ---------------------------------------------------------------------------

class BackendError(AllKnowerError):
    """Raised when an external backend call fails."""

    def __init__(
        self,
        message: str = "Backend request failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class EmbeddingError(BackendError):
    """Raised when an embedding backend fails (and, at the fallback layer,
    when both the primary and secondary backend failed)."""

    def __init__(
        self,
        message: str = "Embedding request failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class GenerationError(BackendError):
    """Raised when no model in a task's chain produced a completion."""

    def __init__(
        self,
        message: str = "Generation request failed",
        provider_name: str | None = None,
        task: str | None = None,
    ) -> None:
        self._task = task
        super().__init__(message=message, provider_name=provider_name)

    @property
    def task(self) -> str | None:
        return self._task


class DocumentStoreError(BackendError):
    """Raised when an ETAPI request returns a non-success status or fails
    at the transport level (``status_code`` is ``None`` in that case)."""

    def __init__(
        self,
        message: str = "Document store request failed",
        provider_name: str | None = "etapi",
        status_code: int | None = None,
    ) -> None:
        self._status_code = status_code
        super().__init__(message=message, provider_name=provider_name)

    @property
    def status_code(self) -> int | None:
        return self._status_code


# ---------------------------------------------------------------------------
# Index and orchestration errors
# ---------------------------------------------------------------------------

class VectorIndexError(AllKnowerError):
    """Raised when the vector store is unavailable or an operation fails."""

    def __init__(
        self,
        message: str = "Vector index operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class PipelineError(AllKnowerError):
    """Raised when the brain-dump pipeline fails as a whole."""

    def __init__(
        self,
        message: str = "Pipeline error",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
