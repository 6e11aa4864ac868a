"""File I/O capability: root-scoped filesystem operations and archives."""

from .service import FileService
from .types import FileStat, FileType

__all__ = ["FileService", "FileStat", "FileType"]
