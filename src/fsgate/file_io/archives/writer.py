"""Pack a file or directory tree into a tar.gz or zip archive."""

from __future__ import annotations

import asyncio
import contextlib
import os
from pathlib import Path

from fsgate.core.diagnostics import observe_operation
from fsgate.core.errors import ArchiveEntryError, ValidationError
from fsgate.core.logging import get_logger
from fsgate.parallel import map_ordered

from .enumerate import enumerate_tree
from .names import archive_name
from .pipeline import ByteChannel, GzipStage, pipe_to_file
from .tar_codec import TarEncoder
from .types import ArchiveEntry, ArchiveFormat, ArchiveOptions, parse_format
from .zip_codec import ZipEncoder

log = get_logger(__name__)


def output_path_for(root: Path, fmt: ArchiveFormat) -> Path:
    """<root>.tar.gz or <root>.zip, next to root."""
    return root.with_name(root.name + fmt.suffix)


async def _load(entry: ArchiveEntry) -> tuple[ArchiveEntry, bytes]:
    if entry.is_dir or entry.source is None:
        return entry, b""
    try:
        data = await asyncio.to_thread(entry.source.read_bytes)
    except OSError as e:
        raise ArchiveEntryError(entry.name, f"read failed: {e}") from e
    return entry, data


async def _produce_tar(
    entries: list[ArchiveEntry], channel: ByteChannel, options: ArchiveOptions, summary: dict
) -> None:
    encoder = TarEncoder()
    gz = GzipStage()
    loaded_iter = map_ordered(_load, entries, limit=options.concurrency)
    async with contextlib.aclosing(loaded_iter) as loaded:
        async for entry, data in loaded:
            raw = b"".join(encoder.add(entry, data))
            await channel.send(await asyncio.to_thread(gz.push, raw))
            summary["bytes"] += len(data)
    await channel.send(gz.push(encoder.finish()))
    await channel.send(gz.finish())


async def _produce_zip(
    entries: list[ArchiveEntry], channel: ByteChannel, options: ArchiveOptions, summary: dict
) -> None:
    encoder = ZipEncoder()
    loaded_iter = map_ordered(_load, entries, limit=options.concurrency)
    async with contextlib.aclosing(loaded_iter) as loaded:
        async for entry, data in loaded:
            await channel.send(await asyncio.to_thread(encoder.add, entry, data))
            summary["bytes"] += len(data)
    await channel.send(await asyncio.to_thread(encoder.finish))


async def create_archive(
    root: str | Path,
    fmt: str | ArchiveFormat,
    *,
    archive_root: str | Path | None = None,
    options: ArchiveOptions | None = None,
) -> Path:
    """Pack root into <root>.tar.gz or <root>.zip and return the archive path.

    Entry names are relative to archive_root, which defaults to root's
    parent, so the archive carries root's own name as its top-level
    component. Entries are appended in sorted path order regardless of how
    their metadata was gathered.

    Raises:
        UnsupportedFormatError: before anything touches the filesystem.
        ValidationError: root is the filesystem root.
        NotFoundError: root does not exist.
        ArchiveEntryError: an individual entry failed; no archive is left.
    """
    archive_format = parse_format(fmt)
    options = options or ArchiveOptions()
    root_path = Path(os.path.abspath(root))
    if not root_path.name:
        raise ValidationError(
            f"Cannot archive {str(root_path)!r}: it has no name to derive the archive from",
            suggestion="Archive a subdirectory instead",
        )
    base = Path(os.path.abspath(archive_root)) if archive_root is not None else root_path.parent
    dest = output_path_for(root_path, archive_format)

    with observe_operation(
        component="archives",
        operation="archive.create",
        base={"path": str(root_path), "format": archive_format.value},
    ) as summary:
        listing = await enumerate_tree(root_path, concurrency=options.concurrency)
        entries = [ArchiveEntry.from_stat(archive_name(p, base), p, st) for p, st in listing]

        summary.update(
            {
                "archive_path": str(dest),
                "entries": len(entries),
                "files": sum(1 for e in entries if not e.is_dir),
                "dirs": sum(1 for e in entries if e.is_dir),
                "bytes": 0,
            }
        )

        async def _produce(channel: ByteChannel) -> None:
            if archive_format == ArchiveFormat.TAR_GZ:
                await _produce_tar(entries, channel, options, summary)
            else:
                await _produce_zip(entries, channel, options, summary)

        target = dest.with_name(dest.name + ".tmp") if options.atomic_write else dest
        try:
            await pipe_to_file(
                _produce, target, depth=options.channel_depth, chunk_size=options.chunk_size
            )
            if target != dest:
                await asyncio.to_thread(os.replace, target, dest)
        except BaseException:
            with contextlib.suppress(OSError):
                target.unlink(missing_ok=True)
            raise
        log.debug(f"Wrote {dest}")
    return dest
