"""HTTP surface tests (FastAPI TestClient)."""

from __future__ import annotations

import stat
import tarfile
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from fsgate.api import create_app
from fsgate.file_io import FileService


@pytest.fixture()
def root(tmp_path: Path) -> Path:
    r = tmp_path / "served"
    r.mkdir()
    return r


@pytest.fixture()
def client(root: Path, resolver) -> TestClient:
    return TestClient(create_app(resolver, file_service=FileService(root)))


def test_put_get_and_download(client: TestClient, root: Path) -> None:
    r = client.put("/fs/hello.txt", content=b"hello")
    assert r.status_code == 204
    assert (root / "hello.txt").read_bytes() == b"hello"

    r = client.get("/fs/hello.txt")
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["file"]["name"] == "hello.txt"
    assert body["file"]["type"] == "file"
    assert body["file"]["size"] == 5

    r = client.get("/fs/hello.txt", headers={"Accept": "application/octet-stream"})
    assert r.status_code == 200
    assert r.content == b"hello"


def test_directory_listing_and_mkdir(client: TestClient, root: Path) -> None:
    assert client.post("/fs/a/b/c").status_code == 204
    assert (root / "a" / "b" / "c").is_dir()
    (root / "a" / "x.txt").write_bytes(b"x")

    r = client.get("/fs/a")
    assert r.status_code == 200
    assert [f["file"] for f in r.json()["files"]] == ["a/b", "a/x.txt"]

    r = client.get("/fs")
    assert [f["name"] for f in r.json()["files"]] == ["a"]


def test_delete(client: TestClient, root: Path) -> None:
    (root / "gone.txt").write_bytes(b"x")
    assert client.delete("/fs/gone.txt").status_code == 204
    assert not (root / "gone.txt").exists()
    assert client.delete("/fs/gone.txt").status_code == 404


def test_missing_path_is_404(client: TestClient) -> None:
    r = client.get("/fs/nope.txt")
    assert r.status_code == 404
    assert r.json()["success"] is False


def test_compress_and_decompress(client: TestClient, root: Path) -> None:
    (root / "proj" / "src").mkdir(parents=True)
    (root / "proj" / "src" / "main.py").write_bytes(b"print('hi')\n")

    r = client.post("/compress", json={"file": "proj", "format": "tar.gz"})
    assert r.status_code == 204
    assert r.headers["location"] == "/fs/proj.tar.gz"
    with tarfile.open(root / "proj.tar.gz", "r:gz") as tf:
        assert tf.getnames() == ["proj/src", "proj/src/main.py"]

    r = client.post(
        "/decompress", json={"file": "proj.tar.gz", "format": "tar.gz", "target": "restored"}
    )
    assert r.status_code == 204
    assert (root / "restored" / "proj" / "src" / "main.py").read_bytes() == b"print('hi')\n"


def test_compress_rejects_unknown_format(client: TestClient, root: Path) -> None:
    (root / "proj").mkdir()
    r = client.post("/compress", json={"file": "proj", "format": "rar"})
    assert r.status_code == 400
    assert "suggestion" in r.json()
    assert not (root / "proj.rar").exists()


def test_compress_missing_root_is_404(client: TestClient) -> None:
    r = client.post("/compress", json={"file": "ghost", "format": "zip"})
    assert r.status_code == 404


def test_decompress_target_outside_root_is_400(client: TestClient, root: Path) -> None:
    (root / "proj").mkdir()
    assert client.post("/compress", json={"file": "proj", "format": "zip"}).status_code == 204
    r = client.post(
        "/decompress", json={"file": "proj.zip", "format": "zip", "target": "../elsewhere"}
    )
    assert r.status_code == 400


def test_malformed_body_is_422(client: TestClient) -> None:
    r = client.post("/compress", json={"format": "zip"})
    assert r.status_code == 422


def test_rename_copy_chmod(client: TestClient, root: Path) -> None:
    (root / "docs").mkdir()
    (root / "docs" / "a.txt").write_bytes(b"a")

    r = client.post("/rename", json={"dir": "docs", "file": "a.txt", "target": "b.txt"})
    assert r.status_code == 204
    assert (root / "docs" / "b.txt").exists()
    assert not (root / "docs" / "a.txt").exists()

    r = client.post("/copy", json={"dir": "/docs", "file": "b.txt", "target": "c.txt"})
    assert r.status_code == 204
    assert (root / "docs" / "c.txt").read_bytes() == b"a"

    r = client.post("/copy", json={"dir": "docs", "file": "b.txt", "target": "c.txt"})
    assert r.status_code == 409

    r = client.post("/chmod", json={"file": "docs/c.txt", "mode": "640"})
    assert r.status_code == 204
    assert stat.S_IMODE((root / "docs" / "c.txt").stat().st_mode) == 0o640

    r = client.post("/chmod", json={"file": "docs/c.txt", "mode": 0o600})
    assert r.status_code == 204
    assert stat.S_IMODE((root / "docs" / "c.txt").stat().st_mode) == 0o600

    r = client.post("/chmod", json={"file": "docs/c.txt", "mode": "rwx"})
    assert r.status_code == 400
