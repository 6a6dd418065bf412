"""Vector index and bookkeeping data models.

All models are frozen.  ``RagChunk`` is the query-time projection of a
stored chunk; ``IndexMetadata`` mirrors the per-document bookkeeping row
used for status reporting and title autocomplete.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class RagChunk(BaseModel):
    """A retrieved chunk with its similarity to the query text."""

    model_config = ConfigDict(frozen=True)

    document_id: str
    document_title: str
    content: str
    # 1 - cosine distance, clamped into [0, 1].
    score: float = Field(ge=0.0, le=1.0)


class IndexHealth(BaseModel):
    model_config = ConfigDict(frozen=True)

    ok: bool
    error: str | None = None


class ReindexSummary(BaseModel):
    """Counts from a full corpus reindex."""

    model_config = ConfigDict(frozen=True)

    indexed: int = Field(default=0, ge=0)
    failed: int = Field(default=0, ge=0)


class IndexMetadata(BaseModel):
    """Bookkeeping row for one indexed document.

    Not authoritative for what the vector index holds.
    """

    model_config = ConfigDict(frozen=True)

    document_id: str
    document_title: str
    chunk_count: int = Field(ge=0)
    model: str
    embedded_at: datetime


class IndexStatus(BaseModel):
    model_config = ConfigDict(frozen=True)

    indexed_documents: int = Field(ge=0)
    last_indexed: datetime | None = None
    model: str | None = None


class HealthReport(BaseModel):
    """Combined health of every backing service.

    ``status`` is ``ok`` when every check passed and ``degraded`` otherwise.
    """

    model_config = ConfigDict(frozen=True)

    status: Literal["ok", "degraded"]
    checks: dict[str, IndexHealth] = Field(default_factory=dict)
