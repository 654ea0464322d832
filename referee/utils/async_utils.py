"""Async utilities for safe task management.

Provides a safe wrapper for asyncio.create_task with error handling, and a
bounded gather for fanning out independent coroutines.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Coroutine, Iterable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def create_safe_task(
    coro: Coroutine[Any, Any, T],
    *,
    name: str | None = None,
    on_error: Callable[[BaseException], None] | None = None,
    suppress_cancelled: bool = True,
) -> asyncio.Task[T]:
    """Create an asyncio task with proper error handling.

    Args:
        coro: The coroutine to run as a task
        name: Optional name for the task (for logging)
        on_error: Optional callback for exception handling
        suppress_cancelled: If True, don't log CancelledError

    Returns:
        The created task

    Example:
        task = create_safe_task(
            handler(event),
            name="event_handler",
            on_error=lambda e: metrics.failed(),
        )
    """
    task = asyncio.create_task(coro, name=name)

    def handle_exception(t: asyncio.Task) -> None:
        if t.cancelled():
            if not suppress_cancelled:
                logger.debug(f"Task {name or 'unnamed'} was cancelled")
            return

        exc = t.exception()
        if exc is None:
            return

        logger.error(
            f"Task {name or 'unnamed'} failed with {type(exc).__name__}: {exc}",
            exc_info=exc,
        )

        if on_error:
            try:
                on_error(exc)
            except Exception as handler_exc:
                logger.error(f"Error handler for task {name} also failed: {handler_exc}")

    task.add_done_callback(handle_exception)
    return task


async def gather_bounded(
    factories: Iterable[Callable[[], Awaitable[T]]],
    limit: int = 1,
) -> list[T]:
    """Run coroutine factories with at most ``limit`` in flight.

    Results come back in input order. The first exception propagates after
    the remaining coroutines are cancelled, like a task group.

    Args:
        factories: Zero-argument callables returning awaitables
        limit: Maximum concurrent awaitables (1 runs them one after another)

    Returns:
        Results in the order of ``factories``
    """
    if limit < 1:
        raise ValueError("limit must be at least 1")

    factories = list(factories)
    if limit == 1:
        return [await factory() for factory in factories]

    semaphore = asyncio.Semaphore(limit)

    async def run(factory: Callable[[], Awaitable[T]]) -> T:
        async with semaphore:
            return await factory()

    tasks = [asyncio.ensure_future(run(factory)) for factory in factories]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        raise
