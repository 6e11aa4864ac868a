"""Streaming helpers for file_io.

The file service hands out file handles for callers that need streaming I/O.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO

from fsgate.core.errors import NotFoundError

from .ops import IsADirectoryError


@contextmanager
def open_read(path: Path) -> Iterator[BinaryIO]:
    """Open a file for reading in binary mode."""
    if not path.exists():
        raise NotFoundError(f"Not found: {path.name}")
    if path.is_dir():
        raise IsADirectoryError(f"Is a directory: {path.name}")
    with open(path, "rb") as f:
        yield f

