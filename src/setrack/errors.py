"""Error taxonomy shared by the repository and the HTTP layer.

The repository raises these typed failures; the Flask app maps them to
status codes (400, 404, 409). Anything else is an unhandled failure.
"""

from __future__ import annotations

from pathlib import Path


class SetrackError(Exception):
    """Base class for all setrack errors."""


class ValidationError(SetrackError):
    """A payload or identifier failed validation."""


class ConflictError(SetrackError):
    """Attempted to create a project whose id already exists."""


class NotFoundError(SetrackError):
    """The targeted project or requirement does not exist."""


class StorageError(SetrackError):
    """Generic failure of the on-disk document store."""


class CorruptDataError(StorageError):
    """A document file does not contain valid JSON.

    Attributes:
        path: The offending file.
    """

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Corrupt document {path}: {reason}")


class ConfigError(SetrackError):
    """The configuration file is unreadable or malformed."""
