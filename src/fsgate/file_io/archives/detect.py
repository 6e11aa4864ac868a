"""Archive format detection.

Only used when a caller asks for it (the CLI when --format is omitted);
the engine itself always takes an explicit format.
"""

from __future__ import annotations

from pathlib import Path

from fsgate.core.errors import UnsupportedFormatError

from .types import ArchiveFormat

_SUFFIX_MAP: list[tuple[str, ArchiveFormat]] = [
    (".tar.gz", ArchiveFormat.TAR_GZ),
    (".tgz", ArchiveFormat.TAR_GZ),
    (".zip", ArchiveFormat.ZIP),
]


def detect_from_suffix(path: Path) -> ArchiveFormat | None:
    name = path.name.lower()
    for suffix, fmt in _SUFFIX_MAP:
        if name.endswith(suffix):
            return fmt
    return None


def detect_from_magic(path: Path) -> ArchiveFormat | None:
    try:
        with path.open("rb") as f:
            data = f.read(4)
    except OSError:
        return None

    # ZIP: PK\x03\x04 (local file header), PK\x05\x06 (empty archive)
    if data.startswith((b"PK\x03\x04", b"PK\x05\x06")):
        return ArchiveFormat.ZIP
    # GZ: 1F 8B, assumed to wrap a tar stream
    if data.startswith(b"\x1f\x8b"):
        return ArchiveFormat.TAR_GZ
    return None


def detect_format(path: Path) -> ArchiveFormat:
    """Suffix first, then magic bytes.

    Raises:
        UnsupportedFormatError
    """
    fmt = detect_from_suffix(path) or detect_from_magic(path)
    if fmt is None:
        raise UnsupportedFormatError(path.name)
    return fmt
