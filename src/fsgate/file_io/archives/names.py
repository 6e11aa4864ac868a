"""Entry naming on the way in and path safety on the way out."""

from __future__ import annotations

from pathlib import Path, PurePosixPath

from fsgate.core.errors import UnsafeEntryError, ValidationError


def archive_name(path: Path, archive_root: Path) -> str:
    """Archive-relative name of an absolute path under archive_root."""
    try:
        rel = path.relative_to(archive_root)
    except ValueError:
        raise ValidationError(
            f"Path {str(path)!r} is not under archive root {str(archive_root)!r}"
        ) from None
    name = rel.as_posix()
    if name in ("", "."):
        raise ValidationError(f"Archive root must be a parent of {str(path)!r}")
    return name


def resolve_entry_target(target_dir: Path, name: str) -> Path:
    """Map an entry name to a path inside target_dir.

    Absolute names, '..' segments and names that resolve outside target_dir
    (including through symlinks already present there) are rejected. A name
    that reduces to nothing, such as the './' member GNU tar writes for
    `tar -C dir .`, maps to target_dir itself.

    Raises:
        UnsafeEntryError
    """
    p = PurePosixPath(name)
    if not name or p.is_absolute() or ".." in p.parts:
        raise UnsafeEntryError(name)
    parts = [part for part in p.parts if part not in ("", ".")]
    base = target_dir.resolve()
    if not parts:
        return base

    dest = base.joinpath(*parts)
    try:
        dest.resolve().relative_to(base)
    except ValueError:
        raise UnsafeEntryError(name) from None
    return dest
