"""Unit tests for aggregated backend health."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from allknower.interfaces.history_provider import IHistoryProvider
from allknower.interfaces.vector_store_provider import IVectorStoreProvider
from allknower.models.rag import IndexHealth
from allknower.services.health import check_health


def _backend(spec, health=None, error: Exception | None = None) -> MagicMock:
    mock = MagicMock(spec=spec)
    mock.health_check = AsyncMock(return_value=health, side_effect=error)
    return mock


@pytest.mark.asyncio
async def test_all_healthy(document_store) -> None:
    report = await check_health(
        document_store,
        _backend(IVectorStoreProvider, IndexHealth(ok=True)),
        _backend(IHistoryProvider, IndexHealth(ok=True)),
    )
    assert report.status == "ok"
    assert set(report.checks) == {"allcodex", "vector_index", "database"}


@pytest.mark.asyncio
async def test_one_failing_backend_degrades(document_store) -> None:
    document_store.healthy = False

    report = await check_health(
        document_store,
        _backend(IVectorStoreProvider, IndexHealth(ok=True)),
        _backend(IHistoryProvider, IndexHealth(ok=True)),
    )

    assert report.status == "degraded"
    assert report.checks["allcodex"].error == "unreachable"
    assert report.checks["database"].ok is True


@pytest.mark.asyncio
async def test_raising_check_is_reported(document_store) -> None:
    report = await check_health(
        document_store,
        _backend(IVectorStoreProvider, error=RuntimeError("chroma exploded")),
        _backend(IHistoryProvider, IndexHealth(ok=True)),
    )

    assert report.status == "degraded"
    assert report.checks["vector_index"].ok is False
    assert report.checks["vector_index"].error == "chroma exploded"
