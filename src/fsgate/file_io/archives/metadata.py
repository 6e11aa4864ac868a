"""Restore POSIX metadata of extracted entries."""

from __future__ import annotations

import os
import time
from pathlib import Path

from fsgate.core.errors import ArchiveEntryError

from .types import ArchiveEntry


def restore_metadata(path: Path, entry: ArchiveEntry, *, restore_owner: bool) -> None:
    """chmod, then chown, then utime; atime becomes the current time.

    Must only run once the entry's content has been fully written.
    """
    try:
        os.chmod(path, entry.mode & 0o7777)
        if restore_owner and entry.uid is not None and entry.gid is not None:
            os.chown(path, entry.uid, entry.gid)
        os.utime(path, (time.time(), entry.mtime))
    except OSError as e:
        raise ArchiveEntryError(entry.name, f"restoring metadata failed: {e}") from e


def restore_directories(
    dirs: list[tuple[Path, ArchiveEntry]], *, restore_owner: bool
) -> None:
    """Restore directory metadata deepest first.

    Runs after all entries are materialized, so creating children neither
    bumps a restored mtime nor trips over a read-only directory mode.
    """
    for path, entry in sorted(dirs, key=lambda item: len(item[0].parts), reverse=True):
        restore_metadata(path, entry, restore_owner=restore_owner)
