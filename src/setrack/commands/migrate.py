"""
setrack.commands.migrate - Initialize a storage directory.

Creates the directory and imports a legacy ``projects.json`` aggregate
into per-project documents. Safe to run repeatedly.
"""

from __future__ import annotations

import argparse
from typing import Any

from setrack.config import resolve_config_path


def run(args: argparse.Namespace, config: dict[str, Any]) -> int:
    """Run the migrate command."""
    from setrack.storage import ProjectRepository

    storage_dir = resolve_config_path(config, "storage", "dir")

    with ProjectRepository(storage_dir) as repository:
        report = repository.wait_ready()

    if not report.ran:
        print(f"Nothing to migrate in {storage_dir}")
        return 0

    for project_id in report.migrated:
        print(f"  migrated  {project_id}")
    for project_id in report.skipped:
        print(f"  skipped   {project_id} (already present)")
    print(
        f"Migrated {len(report.migrated)}, skipped {len(report.skipped)}; "
        f"aggregate {'archived' if report.archived else 'NOT archived'}"
    )
    return 0
