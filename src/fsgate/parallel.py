"""Bounded fan-out helpers for asyncio.

Both helpers cap how much work is in flight and stop at the first failure:
the remaining tasks are cancelled and the original exception propagates
unchanged (no ExceptionGroup wrapping).
"""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import AsyncIterator, Awaitable, Callable, Coroutine, Iterable
from typing import Any, TypeVar

T = TypeVar("T")
R = TypeVar("R")


class BoundedTaskGroup:
    """Run coroutines concurrently with at most `limit` active at a time.

    Example:
        async with BoundedTaskGroup(limit=4) as group:
            for entry in entries:
                await group.submit(materialize(entry))
        # all tasks finished here, or the first failure was raised
    """

    def __init__(self, limit: int) -> None:
        if limit < 1:
            raise ValueError("limit must be >= 1")
        self.limit = limit
        self._semaphore = asyncio.Semaphore(limit)
        self._tasks: set[asyncio.Task[Any]] = set()
        self._error: BaseException | None = None

    async def __aenter__(self) -> BoundedTaskGroup:
        return self

    async def __aexit__(self, exc_type: Any, exc: BaseException | None, tb: Any) -> bool:
        if exc is not None:
            await self._cancel_all()
            return False

        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

        if self._error is not None:
            raise self._error
        return False

    async def submit(self, coro: Coroutine[Any, Any, Any]) -> None:
        """Schedule coro once a slot is free.

        Raises the first recorded failure instead of scheduling more work.
        """
        if self._error is not None:
            coro.close()
            raise self._error

        await self._semaphore.acquire()
        if self._error is not None:
            self._semaphore.release()
            coro.close()
            raise self._error

        task = asyncio.create_task(self._run(coro))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, coro: Coroutine[Any, Any, Any]) -> None:
        try:
            await coro
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if self._error is None:
                self._error = e
                current = asyncio.current_task()
                for t in list(self._tasks):
                    if t is not current:
                        t.cancel()
        finally:
            self._semaphore.release()

    async def _cancel_all(self) -> None:
        pending = list(self._tasks)
        for t in pending:
            t.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)


async def gather_bounded(
    func: Callable[[T], Awaitable[R]], items: Iterable[T], *, limit: int
) -> list[R]:
    """Apply func to every item with bounded concurrency; results keep input order."""
    results: list[R] = []
    async for result in map_ordered(func, items, limit=limit):
        results.append(result)
    return results


async def map_ordered(
    func: Callable[[T], Awaitable[R]], items: Iterable[T], *, limit: int
) -> AsyncIterator[R]:
    """Yield func(item) in input order, running at most `limit` calls ahead.

    The window bounds memory as well as concurrency: a result is only held
    until the consumer takes it.
    """
    if limit < 1:
        raise ValueError("limit must be >= 1")

    pending: deque[asyncio.Task[R]] = deque()
    try:
        for item in items:
            pending.append(asyncio.ensure_future(func(item)))
            if len(pending) >= limit:
                yield await pending.popleft()
        while pending:
            yield await pending.popleft()
    finally:
        for t in pending:
            t.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
