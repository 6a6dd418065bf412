"""Shared concurrency primitives.

Three patterns are exposed:

1. **throttled_gather** -- ``asyncio.gather`` with each awaitable wrapped
   in a semaphore acquire/release.  Used for optional parallel entity
   processing in the brain-dump pipeline.

2. **AsyncOnce** -- runs an async factory at most once per instance and
   hands every caller the same result.  Guards the lazily created vector
   index collection.

3. **BackgroundTaskRunner** -- detached ``asyncio`` tasks with their own
   error channel.  Failures are logged, never re-raised to the submitter.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Generic, TypeVar

import structlog

from allknower.utils.logging import get_logger

_T = TypeVar("_T")

_logger: structlog.BoundLogger = get_logger(__name__)


async def throttled_gather(
    coros: list[Awaitable[_T]],
    semaphore: asyncio.Semaphore | None = None,
    return_exceptions: bool = True,
) -> list[_T | BaseException]:
    """Run awaitables concurrently with optional semaphore throttling.

    Parameters
    ----------
    coros:
        Awaitable objects to execute concurrently.
    semaphore:
        Optional semaphore for concurrency control.  When ``None`` the
        awaitables run unthrottled.
    return_exceptions:
        Mirrors ``asyncio.gather`` semantics.

    Returns
    -------
    list[_T | BaseException]
        Results in the same order as the input coroutines.
    """

    async def _wrapped(coro: Awaitable[_T]) -> _T:
        if semaphore is None:
            return await coro
        async with semaphore:
            return await coro

    tasks = [_wrapped(c) for c in coros]
    return await asyncio.gather(*tasks, return_exceptions=return_exceptions)


class AsyncOnce(Generic[_T]):
    """Single-initialization primitive for async factories.

    The first caller of :meth:`get` runs *factory*; concurrent callers wait
    on the same lock and receive the cached value.  If the factory raises,
    nothing is cached and the next call tries again.
    """

    def __init__(self, factory: Callable[[], Awaitable[_T]]) -> None:
        self._factory = factory
        self._lock = asyncio.Lock()
        self._value: _T | None = None
        self._done = False

    @property
    def initialized(self) -> bool:
        return self._done

    async def get(self) -> _T:
        if self._done:
            return self._value  # type: ignore[return-value]
        async with self._lock:
            if not self._done:
                self._value = await self._factory()
                self._done = True
        return self._value  # type: ignore[return-value]


class BackgroundTaskRunner:
    """Fire-and-forget executor for detached async work.

    Each submission is recorded by name so callers (and tests) can assert
    the work was handed off regardless of whether it has finished.
    Exceptions raised by a task are logged with its name and swallowed at
    this boundary only.
    """

    def __init__(self, logger: structlog.BoundLogger | None = None) -> None:
        self._logger = logger or _logger
        self._tasks: set[asyncio.Task[Any]] = set()
        self._submitted: list[str] = []

    @property
    def submitted(self) -> list[str]:
        """Names of every task submitted so far, in submission order."""
        return list(self._submitted)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def submit(self, name: str, coro: Awaitable[Any]) -> asyncio.Task[Any]:
        task = asyncio.ensure_future(self._guard(name, coro))
        self._submitted.append(name)
        # Hold a strong reference until completion; the event loop only
        # keeps weak references to tasks.
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for every in-flight task.  Used at shutdown and in tests."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _guard(self, name: str, coro: Awaitable[Any]) -> None:
        try:
            await coro
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self._logger.error("background_task_failed", task=name, error=str(exc))
        else:
            self._logger.debug("background_task_completed", task=name)
