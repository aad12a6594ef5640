"""One-time import of the legacy aggregated projects file.

Older deployments kept every project in a single ``projects.json``
array. On first start the migrator splits that array into per-project
documents and then archives the aggregate as ``projects.legacy.json``.
The archive's presence marks the migration as done.
"""

from __future__ import annotations

import errno
import logging
import os
import shutil
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from setrack.errors import ValidationError
from setrack.models import canonicalize_project
from setrack.storage.changelog import ChangeLog
from setrack.storage.documents import DocumentStore

logger = logging.getLogger(__name__)


@dataclass
class MigrationReport:
    """Outcome of a migration run.

    Attributes:
        migrated: Project ids written from the aggregate.
        skipped: Project ids that already had their own document.
        archived: Whether the aggregate was moved to the archive path.
        ran: False when there was nothing to do (already migrated, or no
            usable aggregate).
    """

    migrated: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    archived: bool = False
    ran: bool = False


def safe_move(source: Path, target: Path) -> None:
    """Rename ``source`` to ``target``, copying across filesystems if needed."""
    try:
        os.rename(source, target)
    except OSError as e:
        if e.errno != errno.EXDEV:
            raise
        shutil.copyfile(source, target)
        source.unlink(missing_ok=True)


def migrate_legacy_aggregate(store: DocumentStore, changelog: ChangeLog) -> MigrationReport:
    """Split the legacy aggregate file into per-project documents.

    Existing per-project documents are never overwritten; they are newer
    than anything in the aggregate. Failing to archive the aggregate is
    logged and otherwise ignored since the documents are already written.

    Args:
        store: Document store to migrate into.
        changelog: Change log receiving one MIGRATE line per project.

    Returns:
        MigrationReport describing what happened.
    """
    report = MigrationReport()
    aggregate_path = store.aggregate_path
    archive_path = store.archive_path

    if archive_path.exists():
        return report

    legacy_projects = store.read_json(aggregate_path)
    if not isinstance(legacy_projects, list) or not legacy_projects:
        return report

    report.ran = True
    for legacy in legacy_projects:
        if not isinstance(legacy, Mapping) or not legacy.get("id"):
            continue
        document = canonicalize_project(legacy)
        project_id = document["id"]
        try:
            already_present = store.exists(project_id)
        except ValidationError as e:
            logger.warning("Skipping legacy project: %s", e)
            continue
        if already_present:
            report.skipped.append(project_id)
            continue
        store.write_document(project_id, document)
        changelog.append(project_id, f"MIGRATE from aggregated file ({aggregate_path.name})")
        report.migrated.append(project_id)

    try:
        safe_move(aggregate_path, archive_path)
        report.archived = True
    except OSError as e:
        logger.warning("Failed to move legacy aggregated file %s: %s", aggregate_path, e)

    if report.migrated:
        logger.info(
            "Migrated %d project(s) from %s", len(report.migrated), aggregate_path.name
        )
    return report
