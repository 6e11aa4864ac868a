"""Zip encode/decode with Unix metadata.

Mode travels in the high 16 bits of external_attr (create_system=3).
Owner travels in the Info-ZIP Unix extra field (0x7875) and the full
mtime in the extended timestamp field (0x5455); the DOS date_time is
kept as a fallback for readers that ignore extra fields.
"""

from __future__ import annotations

import shutil
import stat as stat_mod
import struct
import time
import zipfile
from pathlib import Path

from fsgate.core.errors import ArchiveEntryError, FileError
from fsgate.core.logging import get_logger

from .metadata import restore_directories, restore_metadata
from .names import resolve_entry_target
from .types import ArchiveEntry, EntryType, ExtractStats

log = get_logger(__name__)

EXTRA_EXT_TIMESTAMP = 0x5455
EXTRA_UNIX_OWNER = 0x7875

_CREATE_SYSTEM_UNIX = 3
_MSDOS_DIR_ATTR = 0x10
_INT32_MAX = 2**31 - 1
_INT32_MIN = -(2**31)


class _ChunkSink:
    """Write-only, non-seekable target; zipfile falls back to data descriptors."""

    def __init__(self) -> None:
        self._chunks: list[bytes] = []

    def write(self, data: bytes) -> int:
        self._chunks.append(bytes(data))
        return len(data)

    def flush(self) -> None:
        pass

    def take(self) -> bytes:
        out = b"".join(self._chunks)
        self._chunks.clear()
        return out


def _dos_date_time(mtime: float) -> tuple[int, int, int, int, int, int]:
    tm = time.localtime(mtime)
    if tm.tm_year < 1980:
        return (1980, 1, 1, 0, 0, 0)
    if tm.tm_year > 2107:
        return (2107, 12, 31, 23, 59, 58)
    return tm[:6]


def build_extra(entry: ArchiveEntry) -> bytes:
    extra = b""
    mtime = int(entry.mtime)
    if _INT32_MIN <= mtime <= _INT32_MAX:
        extra += struct.pack("<HHBl", EXTRA_EXT_TIMESTAMP, 5, 1, mtime)
    if entry.uid is not None and entry.gid is not None:
        extra += struct.pack("<HHBBIBI", EXTRA_UNIX_OWNER, 11, 1, 4, entry.uid, 4, entry.gid)
    return extra


def parse_extra(extra: bytes) -> dict[int, bytes]:
    fields: dict[int, bytes] = {}
    i = 0
    while i + 4 <= len(extra):
        header_id, size = struct.unpack_from("<HH", extra, i)
        fields[header_id] = extra[i + 4 : i + 4 + size]
        i += 4 + size
    return fields


def zipinfo_for(entry: ArchiveEntry) -> zipfile.ZipInfo:
    name = entry.name + "/" if entry.is_dir else entry.name
    zi = zipfile.ZipInfo(filename=name, date_time=_dos_date_time(entry.mtime))
    zi.create_system = _CREATE_SYSTEM_UNIX
    zi.extra = build_extra(entry)
    mode = entry.mode & 0o7777
    if entry.is_dir:
        zi.external_attr = ((stat_mod.S_IFDIR | mode) << 16) | _MSDOS_DIR_ATTR
        zi.compress_type = zipfile.ZIP_STORED
        zi.file_size = 0
        zi.compress_size = 0
        zi.CRC = 0
    else:
        zi.external_attr = (stat_mod.S_IFREG | mode) << 16
        zi.compress_type = zipfile.ZIP_DEFLATED
    return zi


class ZipEncoder:
    """Incremental zip writer; each call returns the bytes it produced."""

    def __init__(self) -> None:
        self._sink = _ChunkSink()
        self._zf = zipfile.ZipFile(self._sink, mode="w")  # type: ignore[arg-type]

    def add(self, entry: ArchiveEntry, data: bytes = b"") -> bytes:
        zi = zipinfo_for(entry)
        if entry.is_dir:
            self._zf.mkdir(zi)
        else:
            self._zf.writestr(zi, data)
        return self._sink.take()

    def finish(self) -> bytes:
        """Central directory and end record."""
        self._zf.close()
        return self._sink.take()


def _is_special(zi: zipfile.ZipInfo) -> bool:
    """Unix symlinks, devices and FIFOs, as written by `zip -y` and friends."""
    if zi.create_system != _CREATE_SYSTEM_UNIX:
        return False
    fmt = stat_mod.S_IFMT(zi.external_attr >> 16)
    return fmt not in (0, stat_mod.S_IFREG, stat_mod.S_IFDIR)


def entry_from_zipinfo(zi: zipfile.ZipInfo) -> ArchiveEntry:
    is_dir = zi.is_dir()
    mode = (zi.external_attr >> 16) & 0o7777
    if not mode:
        mode = 0o755 if is_dir else 0o644

    fields = parse_extra(zi.extra)
    ts = fields.get(EXTRA_EXT_TIMESTAMP, b"")
    if len(ts) >= 5 and ts[0] & 1:
        (mtime,) = struct.unpack_from("<l", ts, 1)
        mtime_f = float(mtime)
    else:
        mtime_f = time.mktime(zi.date_time + (0, 0, -1))

    uid = gid = None
    owner = fields.get(EXTRA_UNIX_OWNER, b"")
    if len(owner) >= 3 and owner[0] == 1:
        uid_size = owner[1]
        uid = int.from_bytes(owner[2 : 2 + uid_size], "little")
        gid_size = owner[2 + uid_size]
        gid_off = 3 + uid_size
        gid = int.from_bytes(owner[gid_off : gid_off + gid_size], "little")

    return ArchiveEntry(
        name=zi.filename.rstrip("/"),
        type=EntryType.DIRECTORY if is_dir else EntryType.FILE,
        mode=mode,
        mtime=mtime_f,
        uid=uid,
        gid=gid,
    )


def list_zip_entries(archive_path: Path) -> list[ArchiveEntry]:
    try:
        with zipfile.ZipFile(archive_path) as zf:
            return [entry_from_zipinfo(zi) for zi in zf.infolist() if not _is_special(zi)]
    except zipfile.BadZipFile as e:
        raise FileError(f"Corrupted zip archive: {archive_path}: {e}") from e


def extract_zip_to(
    archive_path: Path,
    target_dir: Path,
    *,
    restore_owner: bool = True,
    chunk_size: int = 64 * 1024,
) -> ExtractStats:
    """Extract every entry of a zip archive into target_dir.

    Blocking; callers on an event loop run it in a worker thread.
    """
    files = dirs = total = 0
    deferred: list[tuple[Path, ArchiveEntry]] = []
    try:
        zf = zipfile.ZipFile(archive_path)
    except zipfile.BadZipFile as e:
        raise FileError(f"Corrupted zip archive: {archive_path}: {e}") from e

    root = target_dir.resolve()
    with zf:
        for zi in zf.infolist():
            if _is_special(zi):
                log.warning(f"Skipping unsupported zip member: {zi.filename}")
                continue
            entry = entry_from_zipinfo(zi)
            dest = resolve_entry_target(target_dir, entry.name)
            try:
                if entry.is_dir:
                    if dest == root:
                        log.debug(f"Leaving target directory as is for entry {entry.name!r}")
                        continue
                    dest.mkdir(parents=True, exist_ok=True)
                    deferred.append((dest, entry))
                    dirs += 1
                    continue
                dest.parent.mkdir(parents=True, exist_ok=True)
                with zf.open(zi) as src, dest.open("wb") as out:
                    shutil.copyfileobj(src, out, chunk_size)
            except (OSError, zipfile.BadZipFile) as e:
                raise ArchiveEntryError(entry.name, f"extraction failed: {e}") from e
            restore_metadata(dest, entry, restore_owner=restore_owner)
            files += 1
            total += zi.file_size

    restore_directories(deferred, restore_owner=restore_owner)
    return ExtractStats(files=files, dirs=dirs, bytes=total)
