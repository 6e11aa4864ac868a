"""Recursive enumeration of a pack root."""

from __future__ import annotations

import asyncio
import os
import stat as stat_mod
from pathlib import Path

from fsgate.core.errors import ArchiveEntryError, NotFoundError
from fsgate.core.logging import get_logger
from fsgate.parallel import gather_bounded

log = get_logger(__name__)


def _raise(e: OSError) -> None:
    raise e


def _walk(root: Path) -> list[Path]:
    found: list[Path] = []
    try:
        for dirpath, dirnames, filenames in os.walk(root, onerror=_raise):
            base = Path(dirpath)
            found.extend(base / d for d in dirnames)
            found.extend(base / f for f in filenames)
    except OSError as e:
        raise ArchiveEntryError(str(e.filename or root), f"listing failed: {e}") from e
    return sorted(found)


async def enumerate_tree(
    root: Path, *, concurrency: int = 8
) -> list[tuple[Path, os.stat_result]]:
    """Return (absolute path, lstat) for every file and directory under root.

    The root itself is not included unless it is a regular file, in which
    case it is the only result. Results are sorted by path. Symlinks,
    sockets and other special objects are skipped with a warning; symlinked
    directories are not followed.

    Raises:
        NotFoundError: root does not exist.
        ArchiveEntryError: a descendant could not be listed or stat'ed.
    """
    root = Path(os.path.abspath(root))
    try:
        root_st = await asyncio.to_thread(os.stat, root)
    except FileNotFoundError:
        raise NotFoundError(f"Not found: {root}") from None
    except OSError as e:
        raise ArchiveEntryError(str(root), f"stat failed: {e}") from e

    if stat_mod.S_ISREG(root_st.st_mode):
        return [(root, root_st)]
    if not stat_mod.S_ISDIR(root_st.st_mode):
        raise ArchiveEntryError(str(root), "not a regular file or directory")

    paths = await asyncio.to_thread(_walk, root)

    async def _lstat(p: Path) -> os.stat_result:
        try:
            return await asyncio.to_thread(os.lstat, p)
        except OSError as e:
            raise ArchiveEntryError(str(p), f"stat failed: {e}") from e

    stats = await gather_bounded(_lstat, paths, limit=concurrency)

    out: list[tuple[Path, os.stat_result]] = []
    for p, st in zip(paths, stats, strict=True):
        if stat_mod.S_ISREG(st.st_mode) or stat_mod.S_ISDIR(st.st_mode):
            out.append((p, st))
        else:
            log.warning(f"Skipping unsupported file type: {p}")
    return out
