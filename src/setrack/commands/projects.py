"""
setrack.commands.projects - Inspect stored projects from the terminal.

- `setrack list` - One line per project
- `setrack show <id>` - Full project document as JSON
- `setrack log <id>` - The project's change log
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any

from setrack.config import resolve_config_path


def run(args: argparse.Namespace, config: dict[str, Any]) -> int:
    """Run the list/show/log commands."""
    from setrack.storage import ProjectRepository

    storage_dir = resolve_config_path(config, "storage", "dir")

    with ProjectRepository(storage_dir) as repository:
        if args.command == "list":
            return _list(repository.list_projects(), as_json=args.json)
        elif args.command == "show":
            return _show(repository.get_project(args.project_id), args.project_id)
        elif args.command == "log":
            if repository.get_project(args.project_id) is None:
                print(f"Project {args.project_id} not found", file=sys.stderr)
                return 1
            sys.stdout.write(repository.read_log(args.project_id))
            return 0

    print(f"Unknown command: {args.command}", file=sys.stderr)
    return 1


def _list(projects: list[dict[str, Any]], as_json: bool = False) -> int:
    if as_json:
        print(json.dumps(projects, indent=2, ensure_ascii=False))
        return 0
    if not projects:
        print("No projects.")
        return 0

    width = max(len(str(p["id"])) for p in projects)
    for project in projects:
        count = len(project["requirements"])
        print(f"{str(project['id']):<{width}}  {project.get('name') or '-'}  ({count} requirements)")
    return 0


def _show(project: dict[str, Any] | None, project_id: str) -> int:
    if project is None:
        print(f"Project {project_id} not found", file=sys.stderr)
        return 1
    print(json.dumps(project, indent=2, ensure_ascii=False))
    return 0
