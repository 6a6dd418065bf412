"""SQLite-backed bookkeeping store.

Persists brain-dump history, per-document index metadata and app-config
key/value pairs to a local SQLite database (``data/allknower.db`` by
default).  Uses ``aiosqlite`` for async I/O; each call opens its own
connection.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from allknower.interfaces.history_provider import IHistoryProvider
from allknower.models.documents import HistoryRecord
from allknower.models.rag import IndexHealth, IndexMetadata, IndexStatus

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/allknower.db")

_CREATE_BRAIN_DUMP_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS brain_dump_history (
    id             INTEGER PRIMARY KEY AUTOINCREMENT,
    raw_text       TEXT    NOT NULL,
    parsed_json    TEXT    NOT NULL,
    notes_created  TEXT    NOT NULL,
    notes_updated  TEXT    NOT NULL,
    model          TEXT    NOT NULL,
    tokens_used    INTEGER NOT NULL DEFAULT 0,
    created_at     TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
);
"""

_CREATE_INDEX_META_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS rag_index_meta (
    document_id     TEXT    PRIMARY KEY,
    document_title  TEXT    NOT NULL,
    chunk_count     INTEGER NOT NULL,
    model           TEXT    NOT NULL,
    embedded_at     TEXT    NOT NULL
);
"""

_CREATE_APP_CONFIG_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS app_config (
    key    TEXT PRIMARY KEY,
    value  TEXT NOT NULL
);
"""

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_rag_index_meta_title ON rag_index_meta(document_title COLLATE NOCASE);",
    "CREATE INDEX IF NOT EXISTS idx_rag_index_meta_embedded ON rag_index_meta(embedded_at);",
]

_INSERT_BRAIN_DUMP_SQL = """\
INSERT INTO brain_dump_history (raw_text, parsed_json, notes_created, notes_updated, model, tokens_used)
VALUES (?, ?, ?, ?, ?, ?);
"""

_SELECT_BRAIN_DUMPS_SQL = """\
SELECT id, raw_text, parsed_json, notes_created, notes_updated, model, tokens_used, created_at
FROM brain_dump_history
ORDER BY id DESC
LIMIT ?;
"""

_UPSERT_INDEX_META_SQL = """\
INSERT INTO rag_index_meta (document_id, document_title, chunk_count, model, embedded_at)
VALUES (?, ?, ?, ?, ?)
ON CONFLICT(document_id) DO UPDATE SET
    document_title = excluded.document_title,
    chunk_count    = excluded.chunk_count,
    model          = excluded.model,
    embedded_at    = excluded.embedded_at;
"""

_DELETE_INDEX_META_SQL = "DELETE FROM rag_index_meta WHERE document_id = ?;"

_COUNT_INDEX_META_SQL = "SELECT COUNT(*) FROM rag_index_meta;"

_LATEST_INDEX_META_SQL = """\
SELECT embedded_at, model
FROM rag_index_meta
ORDER BY embedded_at DESC
LIMIT 1;
"""

# LIKE with an escape character so "%" and "_" in user prefixes match literally.
_SEARCH_TITLES_SQL = """\
SELECT document_id, document_title, chunk_count, model, embedded_at
FROM rag_index_meta
WHERE document_title LIKE ? ESCAPE '\\'
ORDER BY document_title COLLATE NOCASE
LIMIT ?;
"""

_SELECT_CONFIG_SQL = "SELECT value FROM app_config WHERE key = ?;"

_UPSERT_CONFIG_SQL = """\
INSERT INTO app_config (key, value) VALUES (?, ?)
ON CONFLICT(key) DO UPDATE SET value = excluded.value;
"""


def _escape_like(prefix: str) -> str:
    return prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SQLiteHistoryProvider(IHistoryProvider):
    """SQLite persistence for history, index metadata and app config."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        """Create the tables and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_CREATE_BRAIN_DUMP_TABLE_SQL)
            await db.execute(_CREATE_INDEX_META_TABLE_SQL)
            await db.execute(_CREATE_APP_CONFIG_TABLE_SQL)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("history_db_initialized", path=str(self._db_path))

    # ------------------------------------------------------------------
    # Brain-dump history
    # ------------------------------------------------------------------

    async def record_brain_dump(
        self,
        raw_text: str,
        parsed_json: dict[str, Any],
        notes_created: list[str],
        notes_updated: list[str],
        model: str,
        tokens_used: int,
    ) -> int:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(
                _INSERT_BRAIN_DUMP_SQL,
                (
                    raw_text,
                    json.dumps(parsed_json),
                    json.dumps(notes_created),
                    json.dumps(notes_updated),
                    model,
                    tokens_used,
                ),
            )
            record_id = cursor.lastrowid
            await db.commit()

        logger.info(
            "brain_dump_recorded",
            record_id=record_id,
            created=len(notes_created),
            updated=len(notes_updated),
            model=model,
        )
        return int(record_id or 0)

    async def list_brain_dumps(self, limit: int = 20) -> list[HistoryRecord]:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(_SELECT_BRAIN_DUMPS_SQL, (limit,))
            rows = await cursor.fetchall()

        return [
            HistoryRecord(
                id=row["id"],
                raw_text=row["raw_text"],
                parsed_json=json.loads(row["parsed_json"]),
                notes_created=json.loads(row["notes_created"]),
                notes_updated=json.loads(row["notes_updated"]),
                model=row["model"],
                tokens_used=row["tokens_used"],
                created_at=row["created_at"],
            )
            for row in rows
        ]

    # ------------------------------------------------------------------
    # Index metadata
    # ------------------------------------------------------------------

    async def upsert_index_meta(self, meta: IndexMetadata) -> None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(
                _UPSERT_INDEX_META_SQL,
                (
                    meta.document_id,
                    meta.document_title,
                    meta.chunk_count,
                    meta.model,
                    meta.embedded_at.isoformat(),
                ),
            )
            await db.commit()

    async def delete_index_meta(self, document_id: str) -> None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_DELETE_INDEX_META_SQL, (document_id,))
            await db.commit()

    async def get_index_status(self) -> IndexStatus:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(_COUNT_INDEX_META_SQL)
            count_row = await cursor.fetchone()
            cursor = await db.execute(_LATEST_INDEX_META_SQL)
            latest = await cursor.fetchone()

        return IndexStatus(
            indexed_documents=count_row[0] if count_row else 0,
            last_indexed=datetime.fromisoformat(latest[0]) if latest else None,
            model=latest[1] if latest else None,
        )

    async def search_index_titles(self, prefix: str, limit: int = 10) -> list[IndexMetadata]:
        pattern = f"{_escape_like(prefix)}%"
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(_SEARCH_TITLES_SQL, (pattern, limit))
            rows = await cursor.fetchall()

        return [
            IndexMetadata(
                document_id=row["document_id"],
                document_title=row["document_title"],
                chunk_count=row["chunk_count"],
                model=row["model"],
                embedded_at=datetime.fromisoformat(row["embedded_at"]),
            )
            for row in rows
        ]

    # ------------------------------------------------------------------
    # App config
    # ------------------------------------------------------------------

    async def get_config_value(self, key: str) -> str | None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(_SELECT_CONFIG_SQL, (key,))
            row = await cursor.fetchone()
        return row[0] if row else None

    async def set_config_value(self, key: str, value: str) -> None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_UPSERT_CONFIG_SQL, (key, value))
            await db.commit()

    async def health_check(self) -> IndexHealth:
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute("SELECT 1;")
        except Exception as exc:
            return IndexHealth(ok=False, error=str(exc))
        return IndexHealth(ok=True)
