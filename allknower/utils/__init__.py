"""Utility modules for AllKnower.

- **errors** -- exception hierarchy rooted at AllKnowerError.
- **logging** -- structlog setup with console/JSON dual rendering.
- **concurrency** -- throttled gather, single-initialization guard and the
  background task runner used for detached reindexing.
- **text_normalizer** -- HTML to plain text and code-fence stripping.
"""

from allknower.utils.concurrency import AsyncOnce, BackgroundTaskRunner, throttled_gather
from allknower.utils.errors import (
    AllKnowerError,
    BackendError,
    ConfigurationError,
    DocumentStoreError,
    EmbeddingError,
    GenerationError,
    ParseError,
    PipelineError,
    VectorIndexError,
)
from allknower.utils.logging import configure_logging, get_logger
from allknower.utils.text_normalizer import strip_code_fence, strip_markup

__all__ = [
    "AllKnowerError",
    "AsyncOnce",
    "BackendError",
    "BackgroundTaskRunner",
    "ConfigurationError",
    "DocumentStoreError",
    "EmbeddingError",
    "GenerationError",
    "ParseError",
    "PipelineError",
    "VectorIndexError",
    "configure_logging",
    "get_logger",
    "strip_code_fence",
    "strip_markup",
    "throttled_gather",
]
