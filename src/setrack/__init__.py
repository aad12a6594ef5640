"""
setrack - Systems-engineering review tracker

Tracks requirements, bills of material, decomposition trees and
interfaces for engineering projects. Each project lives in its own JSON
document on disk, with an append-only change log beside it, and is
served to the dashboard through a small REST API.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("setrack")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"  # Not installed
__license__ = "MIT"

from setrack.errors import (
    ConflictError,
    CorruptDataError,
    NotFoundError,
    SetrackError,
    StorageError,
    ValidationError,
)
from setrack.storage.repository import ProjectRepository

__all__ = [
    "__version__",
    "ConflictError",
    "CorruptDataError",
    "NotFoundError",
    "ProjectRepository",
    "SetrackError",
    "StorageError",
    "ValidationError",
]
