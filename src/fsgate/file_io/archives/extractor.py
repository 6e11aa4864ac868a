"""Unpack a tar.gz or zip archive into a target directory."""

from __future__ import annotations

import asyncio
import gzip
import os
import zlib
from pathlib import Path

from fsgate.core.diagnostics import observe_operation
from fsgate.core.errors import ArchiveEntryError, FileError, NotFoundError
from fsgate.core.logging import get_logger
from fsgate.parallel import BoundedTaskGroup

from .metadata import restore_directories, restore_metadata
from .names import resolve_entry_target
from .tar_codec import iter_tar_entries
from .types import ArchiveEntry, ArchiveFormat, ArchiveOptions, ExtractStats, parse_format
from .zip_codec import extract_zip_to

log = get_logger(__name__)


def _mkdir(path: Path, entry: ArchiveEntry) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ArchiveEntryError(entry.name, f"mkdir failed: {e}") from e


def _write_file(path: Path, entry: ArchiveEntry, data: bytes, restore_owner: bool) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    except OSError as e:
        raise ArchiveEntryError(entry.name, f"write failed: {e}") from e
    restore_metadata(path, entry, restore_owner=restore_owner)


async def _extract_tar_gz(
    archive_path: Path, target_dir: Path, options: ArchiveOptions
) -> ExtractStats:
    raw = await asyncio.to_thread(open, archive_path, "rb")
    stream = gzip.GzipFile(fileobj=raw, mode="rb")
    entries = iter_tar_entries(stream)
    deferred: list[tuple[Path, ArchiveEntry]] = []
    files = dirs = total = 0
    root = target_dir.resolve()

    try:
        async with BoundedTaskGroup(options.concurrency) as group:
            while True:
                try:
                    item = await asyncio.to_thread(next, entries, None)
                except (OSError, EOFError, zlib.error) as e:
                    raise FileError(f"Corrupted gzip stream: {archive_path}: {e}") from e
                if item is None:
                    break
                entry, body = item
                dest = resolve_entry_target(target_dir, entry.name)
                if entry.is_dir:
                    if dest == root:
                        log.debug(f"Leaving target directory as is for entry {entry.name!r}")
                        continue
                    deferred.append((dest, entry))
                    dirs += 1
                    await group.submit(asyncio.to_thread(_mkdir, dest, entry))
                    continue
                try:
                    data = await asyncio.to_thread(body.read) if body is not None else b""
                except (OSError, EOFError, zlib.error) as e:
                    raise ArchiveEntryError(entry.name, f"read failed: {e}") from e
                files += 1
                total += len(data)
                await group.submit(
                    asyncio.to_thread(_write_file, dest, entry, data, options.restore_owner)
                )
    finally:
        entries.close()
        stream.close()
        raw.close()

    await asyncio.to_thread(
        restore_directories, deferred, restore_owner=options.restore_owner
    )
    return ExtractStats(files=files, dirs=dirs, bytes=total)


async def extract_archive(
    archive_path: str | Path,
    fmt: str | ArchiveFormat,
    target_dir: str | Path,
    *,
    options: ArchiveOptions | None = None,
) -> None:
    """Recreate the archive's entries under target_dir with their metadata.

    target_dir is created when missing. Entries that would land outside it
    are rejected with UnsafeEntryError. A directory entry naming the archive
    root itself ('./') is skipped; target_dir keeps its own metadata.

    tar.gz entries are written by worker threads. When one entry fails the
    rest are cancelled, but writes already handed to a thread may still
    complete after this raises.

    Raises:
        UnsupportedFormatError
        NotFoundError: archive_path does not exist.
        UnsafeEntryError
        ArchiveEntryError
        FileError: the archive is corrupted.
    """
    archive_format = parse_format(fmt)
    options = options or ArchiveOptions()
    src = Path(os.path.abspath(archive_path))
    target = Path(os.path.abspath(target_dir))

    with observe_operation(
        component="archives",
        operation="archive.extract",
        base={"path": str(src), "format": archive_format.value, "target": str(target)},
    ) as summary:
        if not await asyncio.to_thread(src.is_file):
            raise NotFoundError(f"Not found: {src}")
        await asyncio.to_thread(target.mkdir, parents=True, exist_ok=True)

        if archive_format == ArchiveFormat.TAR_GZ:
            stats = await _extract_tar_gz(src, target, options)
        else:
            stats = await asyncio.to_thread(
                extract_zip_to,
                src,
                target,
                restore_owner=options.restore_owner,
                chunk_size=options.chunk_size,
            )
        summary.update({"files": stats.files, "dirs": stats.dirs, "bytes": stats.bytes})
