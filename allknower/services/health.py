"""Aggregated health over the document store, vector index and history store."""

from __future__ import annotations

import asyncio

import structlog

from allknower.interfaces.document_store import IDocumentStore
from allknower.interfaces.history_provider import IHistoryProvider
from allknower.interfaces.vector_store_provider import IVectorStoreProvider
from allknower.models.rag import HealthReport, IndexHealth

logger = structlog.get_logger(logger_name=__name__)


async def check_health(
    document_store: IDocumentStore,
    vector_index: IVectorStoreProvider,
    history: IHistoryProvider,
) -> HealthReport:
    """Run every backend health check concurrently.

    Each ``health_check`` is contracted not to raise; an exception that
    escapes anyway is reported as a failed check.
    """
    names = ("allcodex", "vector_index", "database")
    results = await asyncio.gather(
        document_store.health_check(),
        vector_index.health_check(),
        history.health_check(),
        return_exceptions=True,
    )

    checks: dict[str, IndexHealth] = {}
    for name, result in zip(names, results):
        if isinstance(result, BaseException):
            checks[name] = IndexHealth(ok=False, error=str(result))
        else:
            checks[name] = result

    status = "ok" if all(check.ok for check in checks.values()) else "degraded"
    if status != "ok":
        logger.warning(
            "health_degraded",
            failing=[name for name, check in checks.items() if not check.ok],
        )
    return HealthReport(status=status, checks=checks)
