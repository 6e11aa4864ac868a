"""Filesystem operations for the file_io service.

Every function takes the service root directory and a root-relative path.
"""

from __future__ import annotations

import os
import shutil
from pathlib import Path

from fsgate.core.errors import FileError, NotFoundError

from .paths import rel_to_root, resolve_path
from .types import FileStat


class AlreadyExistsError(FileError):
    """Raised when a destination already exists and overwrite is disabled."""


class NotADirectoryError(FileError):
    """Raised when a directory was expected."""


class IsADirectoryError(FileError):
    """Raised when a file was expected."""


def list_dir(root_dir: Path, rel_path: str, *, recursive: bool = False) -> list[FileStat]:
    """List directory entries under rel_path.

    Ordering is stable and deterministic: lexicographic by rel_path.
    """
    base = resolve_path(root_dir, rel_path)

    if not base.exists():
        raise NotFoundError(f"Not found: {rel_path}")
    if not base.is_dir():
        raise NotADirectoryError(f"Not a directory: {rel_path}")

    items = base.rglob("*") if recursive else base.iterdir()
    entries = [FileStat.from_stat(rel_to_root(root_dir, p), p.stat()) for p in items]
    entries.sort(key=lambda e: e.rel_path)
    return entries


def stat_path(root_dir: Path, rel_path: str) -> FileStat:
    abs_path = resolve_path(root_dir, rel_path)
    if not abs_path.exists():
        raise NotFoundError(f"Not found: {rel_path}")
    return FileStat.from_stat(rel_to_root(root_dir, abs_path), abs_path.stat())


def exists(root_dir: Path, rel_path: str) -> bool:
    return resolve_path(root_dir, rel_path).exists()


def mkdir(root_dir: Path, rel_path: str, *, parents: bool = True, exist_ok: bool = True) -> None:
    abs_path = resolve_path(root_dir, rel_path)
    abs_path.mkdir(parents=parents, exist_ok=exist_ok)


def read_bytes(root_dir: Path, rel_path: str) -> bytes:
    abs_path = resolve_path(root_dir, rel_path)
    if not abs_path.exists():
        raise NotFoundError(f"Not found: {rel_path}")
    if abs_path.is_dir():
        raise IsADirectoryError(f"Is a directory: {rel_path}")
    return abs_path.read_bytes()


def write_bytes(
    root_dir: Path,
    rel_path: str,
    data: bytes,
    *,
    overwrite: bool = True,
    mkdir_parents: bool = False,
) -> None:
    abs_path = resolve_path(root_dir, rel_path)
    if abs_path.is_dir():
        raise IsADirectoryError(f"Is a directory: {rel_path}")
    if not mkdir_parents and not abs_path.parent.exists():
        raise NotFoundError(f"Parent directory not found: {rel_path}")
    atomic_write_bytes(abs_path, data, overwrite=overwrite)


def rename(
    root_dir: Path,
    src: str,
    dst: str,
    *,
    overwrite: bool = False,
) -> None:
    src_path = resolve_path(root_dir, src)
    dst_path = resolve_path(root_dir, dst)

    if not src_path.exists():
        raise NotFoundError(f"Not found: {src}")

    if dst_path.exists() and not overwrite:
        raise AlreadyExistsError(f"Destination exists: {dst}")

    dst_path.parent.mkdir(parents=True, exist_ok=True)

    if dst_path.exists() and overwrite:
        if dst_path.is_dir():
            shutil.rmtree(dst_path)
        else:
            dst_path.unlink()

    src_path.rename(dst_path)


def delete_file(root_dir: Path, rel_path: str) -> None:
    abs_path = resolve_path(root_dir, rel_path)
    if not abs_path.exists():
        raise NotFoundError(f"Not found: {rel_path}")
    if abs_path.is_dir():
        raise IsADirectoryError(f"Is a directory: {rel_path}")
    abs_path.unlink()


def copy(
    root_dir: Path,
    src: str,
    dst: str,
    *,
    overwrite: bool = False,
    mkdir_parents: bool = True,
) -> None:
    src_path = resolve_path(root_dir, src)
    dst_path = resolve_path(root_dir, dst)

    if not src_path.exists():
        raise NotFoundError(f"Not found: {src}")
    if src_path.is_dir():
        raise IsADirectoryError(f"Is a directory: {src}")

    if dst_path.exists() and not overwrite:
        raise AlreadyExistsError(f"Destination exists: {dst}")
    if dst_path.is_dir():
        raise IsADirectoryError(f"Is a directory: {dst}")

    if mkdir_parents:
        dst_path.parent.mkdir(parents=True, exist_ok=True)

    shutil.copy2(src_path, dst_path)


def chmod(root_dir: Path, rel_path: str, mode: int) -> None:
    abs_path = resolve_path(root_dir, rel_path)
    if not abs_path.exists():
        raise NotFoundError(f"Not found: {rel_path}")
    os.chmod(abs_path, mode & 0o7777)


def atomic_write_bytes(path: Path, data: bytes, *, overwrite: bool = False) -> None:
    if path.exists() and not overwrite:
        raise AlreadyExistsError(f"Destination exists: {path.name}")

    path.parent.mkdir(parents=True, exist_ok=True)

    tmp_path = path.with_name(path.name + ".tmp")
    with open(tmp_path, "wb") as f:
        f.write(data)
        f.flush()
        os.fsync(f.fileno())

    tmp_path.replace(path)
