"""Bookkeeping store adapters."""

from allknower.providers.history.sqlite_history_provider import SQLiteHistoryProvider

__all__ = ["SQLiteHistoryProvider"]
