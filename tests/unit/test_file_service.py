"""Unit tests for file_io FileService."""

from __future__ import annotations

import asyncio
import os
import stat
from pathlib import Path

import pytest

from fsgate.core.errors import NotFoundError, UnsupportedFormatError, ValidationError
from fsgate.file_io import FileService, FileType
from fsgate.file_io.ops import AlreadyExistsError, IsADirectoryError
from fsgate.file_io.paths import InvalidRelativePathError, PathOutsideRootError


@pytest.fixture()
def service(tmp_path: Path) -> FileService:
    root = tmp_path / "root"
    root.mkdir()
    return FileService(root)


def test_mkdir_and_list_dir_stable_order(service: FileService) -> None:
    service.mkdir("b")
    service.mkdir("a")
    entries = service.list_dir(".")
    assert [e.rel_path for e in entries] == ["a", "b"]
    assert all(e.type == FileType.DIRECTORY for e in entries)


def test_write_stat_and_open_roundtrip(service: FileService) -> None:
    service.write_bytes("hello.bin", b"hello")

    assert service.exists("hello.bin")
    st = service.stat("hello.bin")
    assert st.size == 5
    assert st.name == "hello.bin"
    assert st.type == FileType.FILE
    assert st.uid == os.getuid()
    assert not st.is_dir

    with service.open_read("hello.bin") as f:
        assert f.read() == b"hello"
    assert service.read_bytes("hello.bin") == b"hello"


def test_write_requires_parent_unless_asked(service: FileService) -> None:
    with pytest.raises(NotFoundError):
        service.write_bytes("missing/x.bin", b"x")
    service.write_bytes("missing/x.bin", b"x", mkdir_parents=True)
    assert service.read_bytes("missing/x.bin") == b"x"


def test_delete_and_not_found(service: FileService) -> None:
    service.write_bytes("x.bin", b"x")
    service.delete_file("x.bin")
    assert not service.exists("x.bin")

    with pytest.raises(NotFoundError):
        service.delete_file("x.bin")


def test_delete_directory_is_rejected(service: FileService) -> None:
    service.mkdir("d")
    with pytest.raises(IsADirectoryError):
        service.delete_file("d")


def test_rename_and_overwrite(service: FileService) -> None:
    service.write_bytes("a.bin", b"a")
    service.rename("a.bin", "b.bin")
    assert service.exists("b.bin")
    assert not service.exists("a.bin")

    service.write_bytes("c.bin", b"c")
    with pytest.raises(AlreadyExistsError):
        service.rename("b.bin", "c.bin", overwrite=False)

    service.rename("b.bin", "c.bin", overwrite=True)
    assert service.read_bytes("c.bin") == b"a"


def test_copy_keeps_source(service: FileService) -> None:
    service.write_bytes("a.bin", b"a")
    service.copy("a.bin", "sub/a2.bin")
    assert service.read_bytes("a.bin") == b"a"
    assert service.read_bytes("sub/a2.bin") == b"a"

    with pytest.raises(AlreadyExistsError):
        service.copy("a.bin", "sub/a2.bin")


def test_chmod(service: FileService) -> None:
    service.write_bytes("a.bin", b"a")
    service.chmod("a.bin", 0o600)
    assert stat.S_IMODE(service.stat("a.bin").mode) == 0o600

    with pytest.raises(NotFoundError):
        service.chmod("nope.bin", 0o600)


def test_paths_are_confined_to_root(service: FileService, tmp_path: Path) -> None:
    (tmp_path / "outside.txt").write_text("secret")
    with pytest.raises(InvalidRelativePathError):
        service.read_bytes("../outside.txt")
    with pytest.raises(InvalidRelativePathError):
        service.read_bytes("/etc/passwd")

    os.symlink(tmp_path / "outside.txt", service.root_dir / "link.txt")
    with pytest.raises(PathOutsideRootError):
        service.read_bytes("link.txt")


def test_from_resolver_creates_root(tmp_path: Path) -> None:
    from fsgate.core.config import ConfigResolver

    root = tmp_path / "served"
    resolver = ConfigResolver(
        cli_args={"file_io": {"root_dir": str(root), "archives": {"concurrency": 2}}},
        user_config_path=tmp_path / "none.yaml",
        system_config_path=tmp_path / "none2.yaml",
    )
    svc = FileService.from_resolver(resolver)
    assert root.is_dir()
    assert svc.root_dir == root.resolve()
    assert svc.archive_options.concurrency == 2


def test_archive_roundtrip_through_service(service: FileService) -> None:
    service.mkdir("proj/docs")
    service.write_bytes("proj/docs/readme.md", b"# hi\n")

    rel = asyncio.run(service.create_archive("proj", "zip"))
    assert rel == "proj.zip"
    assert service.exists("proj.zip")

    asyncio.run(service.extract_archive("proj.zip", "zip", "restored"))
    assert service.read_bytes("restored/proj/docs/readme.md") == b"# hi\n"


def test_archive_service_errors(service: FileService) -> None:
    service.mkdir("proj")
    with pytest.raises(UnsupportedFormatError):
        asyncio.run(service.create_archive("proj", "rar"))
    with pytest.raises(NotFoundError):
        asyncio.run(service.create_archive("nope", "tar.gz"))
    with pytest.raises(ValidationError):
        asyncio.run(service.create_archive(".", "tar.gz"))
    assert [e.name for e in service.list_dir(".")] == ["proj"]
