"""File I/O service scoped to a single root directory.

UI-agnostic: the HTTP routes and the CLI both go through it. Every public
operation is bracketed by observe_operation, which publishes
operation.start / operation.end on the event bus.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO

from fsgate.core.config import ConfigResolver
from fsgate.core.diagnostics import observe_operation
from fsgate.core.errors import ValidationError
from fsgate.core.logging import get_logger

from .archives import ArchiveFormat, ArchiveOptions, create_archive, extract_archive
from .archives import output_path_for, parse_format
from .ops import chmod as op_chmod
from .ops import copy as op_copy
from .ops import delete_file as op_delete_file
from .ops import exists as op_exists
from .ops import list_dir as op_list_dir
from .ops import mkdir as op_mkdir
from .ops import read_bytes as op_read_bytes
from .ops import rename as op_rename
from .ops import stat_path as op_stat
from .ops import write_bytes as op_write_bytes
from .paths import rel_to_root, resolve_path
from .streams import open_read
from .types import FileStat

_logger = get_logger(__name__)


class FileService:
    """Filesystem operations confined to root_dir."""

    def __init__(self, root_dir: Path, *, archive_options: ArchiveOptions | None = None) -> None:
        self._root_dir = Path(root_dir).expanduser().resolve()
        self.archive_options = archive_options or ArchiveOptions()

    @classmethod
    def from_resolver(cls, resolver: ConfigResolver) -> FileService:
        """Build FileService from ConfigResolver.

        Configuration keys:
        - file_io.root_dir (created when missing)
        - file_io.archives.* (see ArchiveOptions.from_resolver)
        """
        value, source = resolver.resolve("file_io.root_dir")
        root_dir = Path(str(value)).expanduser()
        root_dir.mkdir(parents=True, exist_ok=True)
        _logger.debug(f"file_io root_dir={str(root_dir)!r} (source: {source})")
        return cls(root_dir, archive_options=ArchiveOptions.from_resolver(resolver))

    @property
    def root_dir(self) -> Path:
        return self._root_dir

    def resolve_abs_path(self, rel_path: str) -> Path:
        """Resolve a relative path to an absolute path under the root."""
        return resolve_path(self._root_dir, rel_path)

    def _base(self, rel_path: str) -> dict[str, str]:
        return {"path": rel_path, "resolved_path": str(self.resolve_abs_path(rel_path))}

    def list_dir(self, rel_path: str = ".", *, recursive: bool = False) -> list[FileStat]:
        base = self._base(rel_path) | {"recursive": bool(recursive)}
        with observe_operation(component="file_io", operation="file_io.list", base=base) as summary:
            entries = op_list_dir(self._root_dir, rel_path, recursive=recursive)
            summary["items_count"] = len(entries)
            return entries

    def stat(self, rel_path: str) -> FileStat:
        with observe_operation(
            component="file_io", operation="file_io.stat", base=self._base(rel_path)
        ):
            return op_stat(self._root_dir, rel_path)

    def exists(self, rel_path: str) -> bool:
        return op_exists(self._root_dir, rel_path)

    def mkdir(self, rel_path: str, *, parents: bool = True, exist_ok: bool = True) -> None:
        with observe_operation(
            component="file_io", operation="file_io.mkdir", base=self._base(rel_path)
        ):
            op_mkdir(self._root_dir, rel_path, parents=parents, exist_ok=exist_ok)

    def read_bytes(self, rel_path: str) -> bytes:
        with observe_operation(
            component="file_io", operation="file_io.read", base=self._base(rel_path)
        ) as summary:
            data = op_read_bytes(self._root_dir, rel_path)
            summary["bytes"] = len(data)
            return data

    @contextmanager
    def open_read(self, rel_path: str) -> Iterator[BinaryIO]:
        with open_read(self.resolve_abs_path(rel_path)) as f:
            yield f

    def write_bytes(
        self,
        rel_path: str,
        data: bytes,
        *,
        overwrite: bool = True,
        mkdir_parents: bool = False,
    ) -> None:
        with observe_operation(
            component="file_io", operation="file_io.write", base=self._base(rel_path)
        ) as summary:
            op_write_bytes(
                self._root_dir, rel_path, data, overwrite=overwrite, mkdir_parents=mkdir_parents
            )
            summary["bytes"] = len(data)

    def delete_file(self, rel_path: str) -> None:
        with observe_operation(
            component="file_io", operation="file_io.delete", base=self._base(rel_path)
        ):
            op_delete_file(self._root_dir, rel_path)

    def rename(self, src: str, dst: str, *, overwrite: bool = False) -> None:
        base = self._base(src) | {"dst": dst}
        with observe_operation(component="file_io", operation="file_io.rename", base=base):
            op_rename(self._root_dir, src, dst, overwrite=overwrite)

    def copy(self, src: str, dst: str, *, overwrite: bool = False) -> None:
        base = self._base(src) | {"dst": dst}
        with observe_operation(component="file_io", operation="file_io.copy", base=base):
            op_copy(self._root_dir, src, dst, overwrite=overwrite)

    def chmod(self, rel_path: str, mode: int) -> None:
        base = self._base(rel_path) | {"mode": oct(mode)}
        with observe_operation(component="file_io", operation="file_io.chmod", base=base):
            op_chmod(self._root_dir, rel_path, mode)

    async def create_archive(self, rel_path: str, fmt: str | ArchiveFormat) -> str:
        """Pack rel_path next to itself; returns the archive's relative path."""
        archive_format = parse_format(fmt)
        abs_path = self.resolve_abs_path(rel_path)
        if abs_path == self._root_dir:
            raise ValidationError(
                "Cannot archive the service root itself",
                "Archive a subdirectory instead",
            )
        dest = output_path_for(abs_path, archive_format)
        await create_archive(abs_path, archive_format, options=self.archive_options)
        return rel_to_root(self._root_dir, dest)

    async def extract_archive(
        self, rel_path: str, fmt: str | ArchiveFormat, target: str = "."
    ) -> None:
        archive_format = parse_format(fmt)
        await extract_archive(
            self.resolve_abs_path(rel_path),
            archive_format,
            self.resolve_abs_path(target),
            options=self.archive_options,
        )
