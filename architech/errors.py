"""Error taxonomy for blueprint execution.

Every failure that can happen while a single action is being processed is a
``BlueprintError``.  The executor catches these at the dispatch boundary,
records the message, and moves on to the next action.
"""

from __future__ import annotations


class BlueprintError(Exception):
    """Base class for all action-level failures."""


class PathKeyMissing(BlueprintError):
    """Raised when a ``{{paths.KEY}}`` placeholder has no definition."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Path key '{key}' is not defined by the project's path handler")


class ParseError(BlueprintError):
    """Raised when a structured file cannot be parsed in its expected format."""

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        super().__init__(f"Could not parse {path}: {message}")


class CommandFailed(BlueprintError):
    """Raised when a spawned process exits with a non-zero status."""

    def __init__(self, command: str, exit_code: int, stderr: str = "") -> None:
        self.command = command
        self.exit_code = exit_code
        self.stderr = stderr
        message = f"Command failed: {command} (exit code: {exit_code})"
        if stderr:
            message += f"\n{stderr.strip()}"
        super().__init__(message)


class UnknownMergeStrategy(BlueprintError):
    """Raised for an unsupported strategy name or a strategy/file-shape mismatch."""

    def __init__(self, strategy: str, reason: str = "") -> None:
        self.strategy = strategy
        message = f"Unknown merge strategy: '{strategy}'"
        if reason:
            message = f"Merge strategy '{strategy}' {reason}"
        super().__init__(message)


class TargetFileMissing(BlueprintError):
    """Raised when an action needs an existing file that is neither buffered nor on disk."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Target file not found: {path}")


class PathOutsideProject(BlueprintError):
    """Raised when a resolved path points outside the project root."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Path escapes the project root: {path}")


class InvalidAction(BlueprintError):
    """Raised when an action is structurally valid but cannot be carried out."""
