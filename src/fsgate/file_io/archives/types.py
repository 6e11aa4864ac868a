"""Archive engine types.

All entry names are archive-relative POSIX paths without a leading slash.
"""

from __future__ import annotations

import os
import stat as stat_mod
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

from fsgate.core.config import ConfigResolver
from fsgate.core.errors import UnsupportedFormatError


class ArchiveFormat(StrEnum):
    TAR_GZ = "tar.gz"
    ZIP = "zip"

    @property
    def suffix(self) -> str:
        return f".{self.value}"


def parse_format(value: str | ArchiveFormat) -> ArchiveFormat:
    """Map a request format string to ArchiveFormat.

    Raises:
        UnsupportedFormatError
    """
    if isinstance(value, ArchiveFormat):
        return value
    try:
        return ArchiveFormat(str(value).strip().lower())
    except ValueError:
        raise UnsupportedFormatError(str(value)) from None


class EntryType(StrEnum):
    FILE = "file"
    DIRECTORY = "directory"


@dataclass(frozen=True)
class ArchiveEntry:
    """One file or directory destined for, or recovered from, an archive.

    source is the on-disk path of a file entry on the write side; it is read
    lazily, one entry at a time. uid/gid are None when the archive carried no
    ownership (zip files written by tools without the Unix extra field).
    """

    name: str
    type: EntryType
    mode: int
    mtime: float
    uid: int | None = None
    gid: int | None = None
    source: Path | None = None

    @property
    def is_dir(self) -> bool:
        return self.type == EntryType.DIRECTORY

    @classmethod
    def from_stat(cls, name: str, path: Path, st: os.stat_result) -> ArchiveEntry:
        is_dir = stat_mod.S_ISDIR(st.st_mode)
        return cls(
            name=name,
            type=EntryType.DIRECTORY if is_dir else EntryType.FILE,
            mode=stat_mod.S_IMODE(st.st_mode),
            mtime=float(st.st_mtime),
            uid=int(st.st_uid),
            gid=int(st.st_gid),
            source=None if is_dir else path,
        )


@dataclass(frozen=True)
class ArchiveOptions:
    """Tunables for pack/unpack, resolved from configuration."""

    concurrency: int = 8
    channel_depth: int = 16
    chunk_size: int = 64 * 1024
    restore_owner: bool = True
    atomic_write: bool = True

    @classmethod
    def from_resolver(cls, resolver: ConfigResolver) -> ArchiveOptions:
        prefix = "file_io.archives"
        return cls(
            concurrency=resolver.resolve_int(f"{prefix}.concurrency", cls.concurrency),
            channel_depth=resolver.resolve_int(f"{prefix}.channel_depth", cls.channel_depth),
            chunk_size=resolver.resolve_int(f"{prefix}.chunk_size", cls.chunk_size),
            restore_owner=resolver.resolve_bool(f"{prefix}.restore_owner", cls.restore_owner),
            atomic_write=resolver.resolve_bool(f"{prefix}.atomic_write", cls.atomic_write),
        )


@dataclass(frozen=True)
class ExtractStats:
    files: int
    dirs: int
    bytes: int
