"""fsgate core: configuration, errors, logging and diagnostics."""

from fsgate.core.config import ConfigResolver
from fsgate.core.errors import (
    ArchiveEntryError,
    ConfigError,
    FileError,
    FsGateError,
    NotFoundError,
    UnsafeEntryError,
    UnsupportedFormatError,
    ValidationError,
)
from fsgate.core.events import EventBus, get_event_bus
from fsgate.core.logging import VerbosityLevel, get_logger, get_verbosity, set_verbosity

__all__ = [
    # Config
    "ConfigResolver",
    # Errors
    "FsGateError",
    "ConfigError",
    "ValidationError",
    "FileError",
    "NotFoundError",
    "UnsupportedFormatError",
    "ArchiveEntryError",
    "UnsafeEntryError",
    # Events
    "EventBus",
    "get_event_bus",
    # Logging
    "VerbosityLevel",
    "get_logger",
    "set_verbosity",
    "get_verbosity",
]
