"""Abstract base class for the bookkeeping store.

Holds brain-dump history, per-document index metadata and a small
key/value app-config table.  None of it is authoritative for the vector
index or the document store.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from allknower.models.documents import HistoryRecord
from allknower.models.rag import IndexHealth, IndexMetadata, IndexStatus


# Concrete implementation: SQLiteHistoryProvider
# Located in: allknower/providers/history/
class IHistoryProvider(ABC):

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables if they don't exist."""

    @abstractmethod
    async def record_brain_dump(
        self,
        raw_text: str,
        parsed_json: dict[str, Any],
        notes_created: list[str],
        notes_updated: list[str],
        model: str,
        tokens_used: int,
    ) -> int:
        """Append a history record and return its id."""

    @abstractmethod
    async def list_brain_dumps(self, limit: int = 20) -> list[HistoryRecord]:
        """Return the most recent records, newest first."""

    @abstractmethod
    async def upsert_index_meta(self, meta: IndexMetadata) -> None:
        """Insert or replace the metadata row for ``meta.document_id``."""

    @abstractmethod
    async def delete_index_meta(self, document_id: str) -> None:
        """Remove the metadata row for *document_id* if present."""

    @abstractmethod
    async def get_index_status(self) -> IndexStatus:
        """Return indexed document count plus the latest timestamp/model."""

    @abstractmethod
    async def search_index_titles(self, prefix: str, limit: int = 10) -> list[IndexMetadata]:
        """Return metadata rows whose title starts with *prefix* (case-insensitive)."""

    @abstractmethod
    async def get_config_value(self, key: str) -> str | None:
        """Return an app-config value, or ``None`` when unset."""

    @abstractmethod
    async def set_config_value(self, key: str, value: str) -> None:
        """Insert or replace an app-config value."""

    @abstractmethod
    async def health_check(self) -> IndexHealth:
        """Run a trivial query.  Never raises."""
