"""
Exception classes for the git cache.

Every error carries an ``ErrorKind`` so callers can dispatch on the kind of
failure instead of on the exception class.
"""

from enum import Enum
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .runner import CommandResult


class ErrorKind(Enum):
    INVALID_PATH = "invalid-path"
    EXTERNAL_COMMAND = "external-command"
    CORRUPT_METADATA = "corrupt-metadata"


class CacheError(Exception):
    """Base exception for all git cache errors."""

    kind: ErrorKind

    def __init__(self, message: str, kind: ErrorKind):
        self.message = message
        self.kind = kind
        super().__init__(message)


class InvalidPathError(CacheError):
    """Raised when a requested path escapes the repository or targets .git"""

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(
            f"Invalid repository path '{path}': {reason}", ErrorKind.INVALID_PATH
        )


class GitCommandError(CacheError):
    """Raised when an external git command fails or cannot be started."""

    def __init__(self, message: str, result: "CommandResult"):
        self.result = result
        super().__init__(message, ErrorKind.EXTERNAL_COMMAND)

    @property
    def exit_status(self) -> Optional[int]:
        return self.result.exit_status

    def __str__(self) -> str:
        details = self.result.stderr.strip() or self.result.stdout.strip()
        if details:
            return f"{self.message}\n{details}"
        return self.message


class CorruptMetadataError(CacheError):
    """Raised when a persisted metadata record cannot be parsed."""

    def __init__(self, metadata_file: str, reason: str):
        self.metadata_file = metadata_file
        super().__init__(
            f"Corrupt cache metadata in {metadata_file}: {reason}",
            ErrorKind.CORRUPT_METADATA,
        )
