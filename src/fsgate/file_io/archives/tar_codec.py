"""Streaming tar encode/decode.

TarEncoder produces the archive as a sequence of byte chunks without ever
seeking, so its output can be piped straight into a compressor and a file
sink. Decoding reads a forward-only stream via tarfile's "r|" mode.
"""

from __future__ import annotations

import tarfile
from collections.abc import Iterator
from typing import BinaryIO

from fsgate.core.errors import FileError
from fsgate.core.logging import get_logger

from .types import ArchiveEntry, EntryType

log = get_logger(__name__)

_NUL = b"\0"


def _tarinfo_for(entry: ArchiveEntry, size: int) -> tarfile.TarInfo:
    ti = tarfile.TarInfo(name=entry.name)
    ti.mode = entry.mode & 0o7777
    ti.mtime = int(entry.mtime)
    ti.uid = entry.uid or 0
    ti.gid = entry.gid or 0
    ti.uname = ""
    ti.gname = ""
    if entry.is_dir:
        ti.type = tarfile.DIRTYPE
        ti.size = 0
    else:
        ti.type = tarfile.REGTYPE
        ti.size = size
    return ti


class TarEncoder:
    """Incremental POSIX (pax) tar writer."""

    def __init__(self) -> None:
        self.offset = 0
        self._finished = False

    def add(self, entry: ArchiveEntry, data: bytes = b"") -> Iterator[bytes]:
        """Yield header, content and block padding for one entry.

        Directory entries carry no content; data is ignored for them.
        """
        if self._finished:
            raise RuntimeError("add() after finish()")
        if entry.is_dir:
            data = b""
        header = _tarinfo_for(entry, len(data)).tobuf(
            format=tarfile.PAX_FORMAT, encoding="utf-8", errors="surrogateescape"
        )
        self.offset += len(header)
        yield header
        if data:
            self.offset += len(data)
            yield data
            _blocks, remainder = divmod(len(data), tarfile.BLOCKSIZE)
            if remainder:
                pad = _NUL * (tarfile.BLOCKSIZE - remainder)
                self.offset += len(pad)
                yield pad

    def finish(self) -> bytes:
        """End-of-archive marker, padded out to a full record."""
        self._finished = True
        trailer = _NUL * (tarfile.BLOCKSIZE * 2)
        end = self.offset + len(trailer)
        remainder = end % tarfile.RECORDSIZE
        if remainder:
            trailer += _NUL * (tarfile.RECORDSIZE - remainder)
        self.offset += len(trailer)
        return trailer


def entry_from_tarinfo(member: tarfile.TarInfo) -> ArchiveEntry:
    return ArchiveEntry(
        name=member.name.rstrip("/"),
        type=EntryType.DIRECTORY if member.isdir() else EntryType.FILE,
        mode=member.mode & 0o7777,
        mtime=float(member.mtime),
        uid=member.uid,
        gid=member.gid,
    )


def iter_tar_entries(stream: BinaryIO) -> Iterator[tuple[ArchiveEntry, BinaryIO | None]]:
    """Yield (entry, body) for each file and directory in a tar stream.

    body is None for directories. Each file body must be consumed before
    advancing, since the stream is read forward only. Links, devices and
    FIFOs are skipped with a warning.

    Raises:
        FileError: the stream is not a readable tar archive.
    """
    try:
        with tarfile.open(fileobj=stream, mode="r|", encoding="utf-8") as tf:
            for member in tf:
                if member.isdir():
                    yield entry_from_tarinfo(member), None
                elif member.isreg():
                    yield entry_from_tarinfo(member), tf.extractfile(member)
                else:
                    log.warning(f"Skipping unsupported tar member: {member.name}")
    except tarfile.TarError as e:
        raise FileError(f"Corrupted tar archive: {e}") from e
