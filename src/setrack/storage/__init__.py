"""
setrack.storage - File-backed project storage.

One JSON document and one change log per project, mutated through a
serialized queue. See ``ProjectRepository`` for the public operations.
"""

from setrack.storage.changelog import ChangeLog, utc_timestamp
from setrack.storage.documents import DocumentStore
from setrack.storage.identifiers import build_requirement_id
from setrack.storage.migration import MigrationReport, migrate_legacy_aggregate
from setrack.storage.queue import MutationQueue
from setrack.storage.repository import ProjectRepository

__all__ = [
    "ChangeLog",
    "DocumentStore",
    "MigrationReport",
    "MutationQueue",
    "ProjectRepository",
    "build_requirement_id",
    "migrate_legacy_aggregate",
    "utc_timestamp",
]
