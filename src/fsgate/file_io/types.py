"""Types for the file_io service."""

from __future__ import annotations

import os
import stat as stat_mod
from dataclasses import dataclass
from enum import StrEnum


class FileType(StrEnum):
    FILE = "file"
    DIRECTORY = "directory"
    LINK = "link"
    UNKNOWN = "unknown"


def file_type_of(st: os.stat_result) -> FileType:
    if stat_mod.S_ISREG(st.st_mode):
        return FileType.FILE
    if stat_mod.S_ISDIR(st.st_mode):
        return FileType.DIRECTORY
    if stat_mod.S_ISLNK(st.st_mode):
        return FileType.LINK
    return FileType.UNKNOWN


@dataclass(frozen=True)
class FileStat:
    """Metadata returned by stat and list_dir.

    rel_path is relative to the service root, name is the last segment.
    """

    rel_path: str
    name: str
    type: FileType
    size: int
    mode: int
    uid: int
    gid: int
    atime: float
    mtime: float
    ctime: float

    @property
    def is_dir(self) -> bool:
        return self.type == FileType.DIRECTORY

    @classmethod
    def from_stat(cls, rel_path: str, st: os.stat_result) -> FileStat:
        return cls(
            rel_path=rel_path,
            name=rel_path.rsplit("/", 1)[-1],
            type=file_type_of(st),
            size=int(st.st_size),
            mode=int(st.st_mode),
            uid=int(st.st_uid),
            gid=int(st.st_gid),
            atime=float(st.st_atime),
            mtime=float(st.st_mtime),
            ctime=float(st.st_ctime),
        )
