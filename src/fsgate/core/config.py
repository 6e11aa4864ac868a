"""Layered configuration.

Sources, highest priority first:
1. CLI arguments (nested dict)
2. Environment variables: FSGATE_<KEY>, dots become underscores
3. User config YAML (~/.config/fsgate/config.yaml)
4. System config YAML (/etc/fsgate/config.yaml)
5. Built-in defaults
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml

from fsgate.core.errors import ConfigError

ALLOWED_LOGGING_LEVELS = ("quiet", "normal", "verbose", "debug")
DEFAULT_LOGGING_LEVEL = "normal"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _lookup(data: dict[str, Any], key: str) -> Any | None:
    node: Any = data
    for part in key.split("."):
        if not isinstance(node, dict):
            return None
        node = node.get(part)
        if node is None:
            return None
    return node


class ConfigResolver:
    """Resolve dotted keys across CLI, env, YAML files and defaults.

    Example:
        resolver = ConfigResolver(cli_args={"file_io": {"root_dir": "/srv/data"}})
        resolver.resolve("file_io.root_dir")  # ("/srv/data", "cli")
    """

    def __init__(
        self,
        cli_args: dict[str, Any] | None = None,
        user_config_path: Path | None = None,
        system_config_path: Path | None = None,
        defaults: dict[str, Any] | None = None,
    ) -> None:
        self.cli_args = cli_args or {}
        self.user_config_path = user_config_path or Path.home() / ".config/fsgate/config.yaml"
        self.system_config_path = system_config_path or Path("/etc/fsgate/config.yaml")
        self.defaults = defaults or self._default_config()
        self._file_cache: dict[Path, dict[str, Any]] = {}

    def resolve(self, key: str) -> tuple[Any, str]:
        """Return (value, source) for key.

        source is one of: cli, env, user_config, system_config, default.

        Raises:
            ConfigError: key not set anywhere, or a config file is unreadable.
        """
        layers = (
            ("cli", lambda: _lookup(self.cli_args, key)),
            ("env", lambda: os.environ.get(f"FSGATE_{key.upper().replace('.', '_')}")),
            ("user_config", lambda: _lookup(self._load_yaml(self.user_config_path), key)),
            ("system_config", lambda: _lookup(self._load_yaml(self.system_config_path), key)),
            ("default", lambda: _lookup(self.defaults, key)),
        )
        for source, fetch in layers:
            value = fetch()
            if value is not None:
                return value, source
        raise ConfigError(f"Config key '{key}' not found in any source")

    def _maybe(self, key: str) -> Any | None:
        try:
            value, _src = self.resolve(key)
        except ConfigError as e:
            if "not found in any source" in str(e):
                return None
            raise
        return value

    def resolve_bool(self, key: str, default: bool) -> bool:
        """Booleans from YAML pass through; env strings use the usual spellings."""
        value = self._maybe(key)
        if value is None:
            return default
        if isinstance(value, bool):
            return value
        s = str(value).strip().lower()
        if s in _TRUE_VALUES:
            return True
        if s in _FALSE_VALUES:
            return False
        raise ConfigError(f"Config key '{key}' must be a bool, got {value!r}")

    def resolve_int(self, key: str, default: int, *, minimum: int = 1) -> int:
        value = self._maybe(key)
        if value is None:
            return default
        if isinstance(value, bool):
            raise ConfigError(f"Config key '{key}' must be an int")
        try:
            n = int(value)
        except (TypeError, ValueError):
            raise ConfigError(f"Config key '{key}' must be an int, got {value!r}") from None
        if n < minimum:
            raise ConfigError(f"Config key '{key}' must be >= {minimum}, got {n}")
        return n

    def resolve_logging_level(self) -> str:
        """Validated logging.level, DEFAULT_LOGGING_LEVEL when unset.

        Raises:
            ConfigError: unknown level name.
        """
        value = self._maybe("logging.level")
        if value is None:
            return DEFAULT_LOGGING_LEVEL
        if not isinstance(value, str):
            raise ConfigError(
                f"Config key 'logging.level' must be a string, got {type(value).__name__}"
            )
        norm = value.strip().lower()
        if norm not in ALLOWED_LOGGING_LEVELS:
            allowed = ", ".join(ALLOWED_LOGGING_LEVELS)
            raise ConfigError(
                f"Invalid 'logging.level': {value!r}. Allowed values: {allowed}",
                suggestion=f"Use one of: {allowed}",
            )
        return norm

    def _load_yaml(self, path: Path) -> dict[str, Any]:
        if path in self._file_cache:
            return self._file_cache[path]
        data: Any = {}
        if path.exists():
            try:
                with open(path, encoding="utf-8") as f:
                    data = yaml.safe_load(f)
            except (OSError, yaml.YAMLError) as e:
                raise ConfigError(f"Failed to load config from {path}: {e}") from e
        self._file_cache[path] = data if isinstance(data, dict) else {}
        return self._file_cache[path]

    @staticmethod
    def _default_config() -> dict[str, Any]:
        return {
            "file_io": {
                "root_dir": str(Path.cwd()),
                "archives": {
                    "concurrency": 8,
                    "channel_depth": 16,
                    "chunk_size": 64 * 1024,
                    "restore_owner": True,
                    "atomic_write": True,
                },
            },
            "logging": {
                "level": DEFAULT_LOGGING_LEVEL,
                "color": True,
            },
            "diagnostics": {
                "enabled": False,
                "path": str(Path.home() / ".fsgate" / "diagnostics.jsonl"),
            },
            "web": {
                "host": "0.0.0.0",
                "port": 9000,
            },
        }
