"""Unit tests for core.config module."""

from pathlib import Path

import pytest

from fsgate.core.config import ConfigResolver
from fsgate.core.errors import ConfigError
from fsgate.file_io.archives import ArchiveOptions


class TestConfigResolver:
    """Tests for ConfigResolver."""

    def test_cli_priority(self, tmp_path):
        user_config = tmp_path / "config.yaml"
        user_config.write_text("file_io:\n  root_dir: /from/yaml\n")

        resolver = ConfigResolver(
            cli_args={"file_io": {"root_dir": "/from/cli"}},
            user_config_path=user_config,
            system_config_path=tmp_path / "none.yaml",
        )

        value, source = resolver.resolve("file_io.root_dir")
        assert value == "/from/cli"
        assert source == "cli"

    def test_env_overrides_config_file(self, tmp_path, monkeypatch):
        user_config = tmp_path / "config.yaml"
        user_config.write_text("file_io:\n  archives:\n    concurrency: 2\n")
        monkeypatch.setenv("FSGATE_FILE_IO_ARCHIVES_CONCURRENCY", "5")

        resolver = ConfigResolver(
            user_config_path=user_config, system_config_path=tmp_path / "none.yaml"
        )

        value, source = resolver.resolve("file_io.archives.concurrency")
        assert value == "5"
        assert source == "env"
        assert resolver.resolve_int("file_io.archives.concurrency", 8) == 5

    def test_user_over_system(self, tmp_path):
        user_config = tmp_path / "user.yaml"
        system_config = tmp_path / "system.yaml"
        user_config.write_text("web:\n  port: 8001\n")
        system_config.write_text("web:\n  port: 8002\n  host: 127.0.0.1\n")

        resolver = ConfigResolver(user_config_path=user_config, system_config_path=system_config)

        assert resolver.resolve("web.port") == (8001, "user_config")
        assert resolver.resolve("web.host") == ("127.0.0.1", "system_config")

    def test_defaults(self, resolver):
        assert resolver.resolve("file_io.archives.channel_depth") == (16, "default")
        assert resolver.resolve_bool("diagnostics.enabled", True) is False

    def test_missing_key_raises(self, resolver):
        with pytest.raises(ConfigError):
            resolver.resolve("no.such.key")

    def test_resolve_bool_env_strings(self, resolver, monkeypatch):
        monkeypatch.setenv("FSGATE_FILE_IO_ARCHIVES_RESTORE_OWNER", "off")
        assert resolver.resolve_bool("file_io.archives.restore_owner", True) is False

        monkeypatch.setenv("FSGATE_FILE_IO_ARCHIVES_RESTORE_OWNER", "maybe")
        with pytest.raises(ConfigError):
            resolver.resolve_bool("file_io.archives.restore_owner", True)

    def test_resolve_int_minimum(self, tmp_path):
        resolver = ConfigResolver(
            cli_args={"file_io": {"archives": {"concurrency": 0}}},
            user_config_path=tmp_path / "none.yaml",
            system_config_path=tmp_path / "none2.yaml",
        )
        with pytest.raises(ConfigError):
            resolver.resolve_int("file_io.archives.concurrency", 8)

    def test_invalid_logging_level(self, tmp_path):
        resolver = ConfigResolver(
            cli_args={"logging": {"level": "loud"}},
            user_config_path=tmp_path / "none.yaml",
            system_config_path=tmp_path / "none2.yaml",
        )
        with pytest.raises(ConfigError):
            resolver.resolve_logging_level()

    def test_broken_yaml_raises_config_error(self, tmp_path: Path):
        user_config = tmp_path / "config.yaml"
        user_config.write_text("file_io: [unclosed\n")
        resolver = ConfigResolver(
            user_config_path=user_config, system_config_path=tmp_path / "none.yaml"
        )
        with pytest.raises(ConfigError):
            resolver.resolve("file_io.root_dir")


def test_archive_options_from_resolver(tmp_path):
    resolver = ConfigResolver(
        cli_args={"file_io": {"archives": {"concurrency": 3, "atomic_write": False}}},
        user_config_path=tmp_path / "none.yaml",
        system_config_path=tmp_path / "none2.yaml",
    )
    opts = ArchiveOptions.from_resolver(resolver)
    assert opts.concurrency == 3
    assert opts.atomic_write is False
    assert opts.channel_depth == 16
    assert opts.chunk_size == 64 * 1024
    assert opts.restore_owner is True
