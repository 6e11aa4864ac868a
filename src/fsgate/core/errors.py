"""Error handling with friendly messages."""

from __future__ import annotations


class FsGateError(Exception):
    """Base exception for all fsgate errors."""

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        self.message = message
        self.suggestion = suggestion
        super().__init__(message)

    def __str__(self) -> str:
        if self.suggestion:
            return f"{self.message}\nSuggestion: {self.suggestion}"
        return self.message


class ConfigError(FsGateError):
    """Configuration error."""

    pass


class ValidationError(FsGateError):
    """Request or path failed validation."""

    pass


class FileError(FsGateError):
    """File operation error."""

    pass


class NotFoundError(FileError):
    """Raised when a file or directory is not found."""


class UnsupportedFormatError(FsGateError):
    """Archive format is not recognized."""

    def __init__(self, fmt: str) -> None:
        self.format = fmt
        super().__init__(
            f"Unsupported archive format: {fmt!r}",
            "Use one of: tar.gz, zip",
        )


class ArchiveEntryError(FileError):
    """Filesystem or stream failure while processing one archive entry."""

    def __init__(self, entry: str, message: str) -> None:
        self.entry = entry
        super().__init__(f"{entry}: {message}")


class UnsafeEntryError(ValidationError):
    """Archive entry name would land outside the extraction target."""

    def __init__(self, entry: str) -> None:
        self.entry = entry
        super().__init__(
            f"Archive entry escapes destination: {entry!r}",
            "The archive may be malicious; inspect it before extracting",
        )
