"""Path normalization and root-jail resolution for file_io.

All request paths are relative to one configured root directory.
"""

from __future__ import annotations

from pathlib import Path, PurePosixPath

from fsgate.core.errors import ValidationError


class PathOutsideRootError(ValidationError):
    """Raised when a requested path escapes the configured root."""


class InvalidRelativePathError(ValidationError):
    """Raised when a requested relative path is invalid."""


def normalize_rel_path(rel_path: str) -> PurePosixPath:
    """Normalize and validate a relative path.

    Rules:
    - must be relative (no leading slash)
    - no '..' segments
    - backslashes are treated as separators

    Raises:
        InvalidRelativePathError
    """
    if rel_path is None:
        raise InvalidRelativePathError("Path is required")

    rel_path = str(rel_path).replace("\\", "/")
    p = PurePosixPath(rel_path)

    if p.is_absolute():
        raise InvalidRelativePathError("Absolute paths are not allowed")

    if any(part == ".." for part in p.parts):
        raise InvalidRelativePathError("Parent path segments ('..') are not allowed")

    # PurePosixPath('.') is valid and represents the root itself.
    return p


def resolve_path(root_dir: Path, rel_path: str) -> Path:
    """Resolve a relative path within a root directory.

    Raises:
        PathOutsideRootError
        InvalidRelativePathError
    """
    rel = normalize_rel_path(rel_path)
    root_resolved = root_dir.resolve()
    abs_path = (root_resolved / Path(*rel.parts)).resolve()

    try:
        abs_path.relative_to(root_resolved)
    except ValueError:
        raise PathOutsideRootError(f"Path escapes configured root: {rel_path}") from None

    return abs_path


def rel_to_root(root_dir: Path, abs_path: Path) -> str:
    """Inverse of resolve_path for paths already inside the root."""
    rel = abs_path.relative_to(root_dir.resolve()).as_posix()
    return rel or "."
