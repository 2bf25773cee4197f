"""Async helpers shared by the pipeline.

Provides consistent patterns for:
- per-call timeouts (``run_with_timeout``)
- concurrent gathering with a single deadline (``gather_with_timeout``)
- fire-and-forget work with its own error sink (``BackgroundTaskSet``)

Usage Example:
    ```python
    from boardbot_lite.core.async_utils import BackgroundTaskSet, run_with_timeout

    response = await run_with_timeout(model.generate(request), timeout=30.0)

    tasks = BackgroundTaskSet(name="persistence")
    tasks.spawn(sink.save_record(record))
    await tasks.drain()
    ```
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import Any, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AsyncTimeoutError(Exception):
    """Raised when an awaited operation exceeds its timeout."""

    def __init__(self, message: str, timeout: float) -> None:
        super().__init__(message)
        self.timeout = timeout


async def run_with_timeout(awaitable: Awaitable[T], timeout: Optional[float]) -> T:
    """Await with a deadline.

    Args:
        awaitable: Operation to run
        timeout: Seconds to wait; None waits indefinitely

    Returns:
        Result of the operation

    Raises:
        AsyncTimeoutError: Deadline passed; the operation is cancelled
    """
    if timeout is None:
        return await awaitable
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError as exc:
        logger.warning("Operation timed out after %.1fs", timeout)
        raise AsyncTimeoutError(f"Operation exceeded timeout of {timeout}s", timeout) from exc


async def gather_with_timeout(
    *awaitables: Awaitable[Any], timeout: Optional[float] = None
) -> list[Any]:
    """Run awaitables concurrently, returning results or exceptions in order.

    Exceptions are returned in place of results rather than raised. Work
    still pending at the deadline is cancelled and reported as
    ``AsyncTimeoutError``.
    """
    tasks = [asyncio.ensure_future(item) for item in awaitables]
    if not tasks:
        return []

    done, pending = await asyncio.wait(tasks, timeout=timeout)
    for task in pending:
        task.cancel()
    if pending:
        logger.warning("%d of %d operations timed out after %ss", len(pending), len(tasks), timeout)
        await asyncio.gather(*pending, return_exceptions=True)

    results: list[Any] = []
    for task in tasks:
        if task in done:
            exc = task.exception()
            results.append(exc if exc is not None else task.result())
        else:
            results.append(
                AsyncTimeoutError(f"Operation exceeded timeout of {timeout}s", timeout or 0.0)
            )
    return results


class BackgroundTaskSet:
    """Fire-and-forget tasks whose failures are logged, never raised.

    Strong references are kept until each task finishes so the event loop
    cannot garbage-collect work in flight.
    """

    def __init__(self, name: str = "background") -> None:
        self.name = name
        self._tasks: set[asyncio.Future[Any]] = set()
        self.failures = 0

    def spawn(self, work: Awaitable[Any]) -> asyncio.Future[Any]:
        """Schedule ``work`` on the running loop."""
        task = asyncio.ensure_future(work)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Future[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.debug("[%s] background task cancelled", self.name)
            return
        exc = task.exception()
        if exc is not None:
            self.failures += 1
            logger.warning(
                "[%s] background task failed: %s", self.name, exc, exc_info=exc
            )

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self, timeout: Optional[float] = None) -> None:
        """Wait for all in-flight tasks; failures stay logged, not raised."""
        if not self._tasks:
            return
        await asyncio.wait(set(self._tasks), timeout=timeout)
