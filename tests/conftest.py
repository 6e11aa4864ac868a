"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

import pytest

# Add src to path (for 'fsgate.*' imports without an install)
repo_root = Path(__file__).parent.parent
sys.path.insert(0, str(repo_root / "src"))

from fsgate.core.config import ConfigResolver  # noqa: E402
from fsgate.core.events import get_event_bus  # noqa: E402


@pytest.fixture()
def resolver(tmp_path: Path) -> ConfigResolver:
    """Resolver isolated from the user's and the system's config files."""
    return ConfigResolver(
        cli_args={},
        user_config_path=tmp_path / "user-config.yaml",
        system_config_path=tmp_path / "system-config.yaml",
    )


@pytest.fixture()
def event_bus():
    bus = get_event_bus()
    yield bus
    bus.clear()


@pytest.fixture()
def sample_tree(tmp_path: Path) -> Path:
    """A small tree with distinct modes and fixed mtimes.

    src/
      a.txt        0o640  mtime 1_600_000_000
      bin/run.sh   0o755  mtime 1_600_000_100
      empty/       0o750  mtime 1_600_000_200
    """
    src = tmp_path / "src"
    (src / "bin").mkdir(parents=True)
    (src / "empty").mkdir()
    (src / "a.txt").write_bytes(b"alpha\n")
    (src / "bin" / "run.sh").write_bytes(b"#!/bin/sh\necho hi\n")

    os_chmod_utime(src / "a.txt", 0o640, 1_600_000_000)
    os_chmod_utime(src / "bin" / "run.sh", 0o755, 1_600_000_100)
    os_chmod_utime(src / "empty", 0o750, 1_600_000_200)
    os_chmod_utime(src / "bin", 0o755, 1_600_000_300)
    os_chmod_utime(src, 0o755, 1_600_000_400)
    return src


def os_chmod_utime(path: Path, mode: int, mtime: int) -> None:
    import os

    os.chmod(path, mode)
    os.utime(path, (mtime, mtime))
