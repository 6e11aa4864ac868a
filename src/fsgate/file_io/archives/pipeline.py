"""Byte pipeline between an archive codec and its output file.

A producer coroutine pushes encoded bytes into a bounded ByteChannel; a
sink task drains it to disk. When the sink falls behind, send() blocks,
so the producer never runs more than channel_depth chunks ahead.
"""

from __future__ import annotations

import asyncio
import os
import zlib
from collections.abc import Awaitable, Callable
from pathlib import Path

from fsgate.core.errors import FileError
from fsgate.core.logging import get_logger

log = get_logger(__name__)

_EOF = object()


class ByteChannel:
    """Bounded FIFO of byte chunks with an explicit end-of-stream."""

    def __init__(self, *, depth: int = 16, chunk_size: int = 64 * 1024) -> None:
        self._queue: asyncio.Queue[object] = asyncio.Queue(maxsize=depth)
        self._chunk_size = chunk_size
        self._closed = False

    async def send(self, data: bytes) -> None:
        if self._closed:
            raise RuntimeError("send() on closed channel")
        if not data:
            return
        view = memoryview(data)
        for off in range(0, len(view), self._chunk_size):
            await self._queue.put(bytes(view[off : off + self._chunk_size]))

    async def close(self) -> None:
        if not self._closed:
            self._closed = True
            await self._queue.put(_EOF)

    def __aiter__(self) -> ByteChannel:
        return self

    async def __anext__(self) -> bytes:
        item = await self._queue.get()
        if item is _EOF:
            raise StopAsyncIteration
        return item  # type: ignore[return-value]


class GzipStage:
    """Incremental gzip framing (RFC 1952) over a raw byte stream."""

    def __init__(self, level: int = zlib.Z_DEFAULT_COMPRESSION) -> None:
        self._z = zlib.compressobj(level, zlib.DEFLATED, 31)

    def push(self, data: bytes) -> bytes:
        return self._z.compress(data)

    def finish(self) -> bytes:
        return self._z.flush(zlib.Z_FINISH)


async def drain_to_file(channel: ByteChannel, dest: Path) -> int:
    """Write every chunk from channel to dest; returns bytes written."""
    try:
        f = await asyncio.to_thread(open, dest, "wb")
    except OSError as e:
        raise FileError(f"Cannot open {dest} for writing: {e}") from e

    total = 0
    try:
        async for chunk in channel:
            await asyncio.to_thread(f.write, chunk)
            total += len(chunk)
        await asyncio.to_thread(f.flush)
        await asyncio.to_thread(os.fsync, f.fileno())
    except OSError as e:
        raise FileError(f"Writing {dest} failed: {e}") from e
    finally:
        await asyncio.to_thread(f.close)
    return total


async def pipe_to_file(
    produce: Callable[[ByteChannel], Awaitable[None]],
    dest: Path,
    *,
    depth: int = 16,
    chunk_size: int = 64 * 1024,
) -> int:
    """Run produce(channel) against a file sink and wait for both.

    The first failure on either side cancels the other and propagates.
    """
    channel = ByteChannel(depth=depth, chunk_size=chunk_size)

    async def _producer() -> None:
        await produce(channel)
        await channel.close()

    producer = asyncio.create_task(_producer())
    sink = asyncio.create_task(drain_to_file(channel, dest))
    tasks = (producer, sink)
    try:
        done, _pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        for t in done:
            exc = t.exception()
            if exc is not None:
                raise exc
        await producer
        return await sink
    finally:
        for t in tasks:
            if not t.done():
                t.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
