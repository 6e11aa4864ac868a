"""Unit tests for the byte pipeline and format helpers."""

from __future__ import annotations

import asyncio
import gzip
from pathlib import Path

import pytest

from fsgate.core.errors import UnsupportedFormatError
from fsgate.file_io.archives import ArchiveFormat, detect_format, parse_format
from fsgate.file_io.archives.pipeline import ByteChannel, GzipStage, pipe_to_file


def test_pipe_to_file_writes_everything_in_order(tmp_path: Path) -> None:
    dest = tmp_path / "out.bin"

    async def produce(channel: ByteChannel) -> None:
        for i in range(20):
            await channel.send(bytes([65 + i]) * 10)

    written = asyncio.run(pipe_to_file(produce, dest, depth=2, chunk_size=3))
    expected = b"".join(bytes([65 + i]) * 10 for i in range(20))
    assert written == len(expected)
    assert dest.read_bytes() == expected


def test_full_channel_suspends_producer() -> None:
    async def main() -> list[str]:
        events: list[str] = []
        channel = ByteChannel(depth=1, chunk_size=4)

        async def producer() -> None:
            await channel.send(b"aaaa")
            events.append("sent-1")
            await channel.send(b"bbbb")
            events.append("sent-2")
            await channel.close()

        task = asyncio.create_task(producer())
        await asyncio.sleep(0.01)
        events.append("consumer-start")
        async for chunk in channel:
            events.append(chunk.decode())
        await task
        return events

    events = asyncio.run(main())
    assert events.index("sent-1") < events.index("consumer-start")
    assert events.index("sent-2") > events.index("consumer-start")


def test_producer_failure_propagates(tmp_path: Path) -> None:
    async def produce(channel: ByteChannel) -> None:
        await channel.send(b"partial")
        raise RuntimeError("producer broke")

    with pytest.raises(RuntimeError, match="producer broke"):
        asyncio.run(pipe_to_file(produce, tmp_path / "x.bin"))


def test_gzip_stage_emits_valid_gzip() -> None:
    gz = GzipStage()
    body = gz.push(b"hello ") + gz.push(b"world") + gz.finish()
    assert gzip.decompress(body) == b"hello world"


def test_parse_format() -> None:
    assert parse_format("tar.gz") == ArchiveFormat.TAR_GZ
    assert parse_format(" ZIP ") == ArchiveFormat.ZIP
    assert parse_format(ArchiveFormat.ZIP) is ArchiveFormat.ZIP
    with pytest.raises(UnsupportedFormatError) as excinfo:
        parse_format("rar")
    assert excinfo.value.format == "rar"


def test_detect_format_by_suffix_then_magic(tmp_path: Path) -> None:
    assert detect_format(tmp_path / "a.tgz") == ArchiveFormat.TAR_GZ
    assert detect_format(tmp_path / "a.ZIP") == ArchiveFormat.ZIP

    mystery = tmp_path / "mystery.bin"
    mystery.write_bytes(gzip.compress(b"x"))
    assert detect_format(mystery) == ArchiveFormat.TAR_GZ

    mystery.write_bytes(b"plain text")
    with pytest.raises(UnsupportedFormatError):
        detect_format(mystery)
