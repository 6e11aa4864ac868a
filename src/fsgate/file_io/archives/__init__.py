"""Archive engine: tar.gz and zip pack/unpack with POSIX metadata."""

from .detect import detect_format
from .extractor import extract_archive
from .types import ArchiveEntry, ArchiveFormat, ArchiveOptions, EntryType, parse_format
from .writer import create_archive, output_path_for

__all__ = [
    "ArchiveEntry",
    "ArchiveFormat",
    "ArchiveOptions",
    "EntryType",
    "create_archive",
    "detect_format",
    "extract_archive",
    "output_path_for",
    "parse_format",
]
