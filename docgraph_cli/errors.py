"""Error taxonomy and process exit codes."""

from __future__ import annotations

from enum import IntEnum


class ExitCode(IntEnum):
    SUCCESS = 0
    ERROR = 1
    USAGE_ERROR = 2
    INTERRUPTED = 130


class DocGraphError(Exception):
    """Base class for every error raised by DocGraph."""


class UsageError(DocGraphError):
    """The caller asked for something contradictory (bad flags or config)."""


class ScopeError(UsageError):
    """An entrypoint lies outside the configured scope root."""

    def __init__(self, entrypoint: str, scope_root: str) -> None:
        self.entrypoint = entrypoint
        self.scope_root = scope_root
        super().__init__(
            f"Entrypoint {entrypoint} is outside scope root {scope_root}. "
            "Use --scope-root to set a different scope or --no-scope-limit "
            "to disable scoping."
        )


class ConfigError(UsageError):
    """Configuration could not be loaded or failed validation."""

    def __init__(self, message: str) -> None:
        super().__init__(f"Invalid configuration: {message}")


class ContentReadError(DocGraphError):
    """A markdown document the graph depends on could not be read."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        super().__init__(f"Cannot read {path}: {reason}")
