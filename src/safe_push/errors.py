"""Exception hierarchy for safe-push."""

from __future__ import annotations

from pathlib import Path


class SafePushError(RuntimeError):
    """Base class for all safe-push failures."""


class CommandError(SafePushError):
    """Raised when an external command exits non-zero or cannot be spawned."""

    def __init__(self, message: str, *, command: str, exit_code: int | None) -> None:
        super().__init__(message)
        self.command = command
        self.exit_code = exit_code


class VcsError(CommandError):
    """Raised when a git command fails."""


class HostingError(CommandError):
    """Raised when the hosting provider CLI (gh) fails."""


class ConfigError(SafePushError):
    """Raised when a configuration file exists but cannot be used."""

    def __init__(self, message: str, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path
