"""
setrack.commands.serve - Run the REST API server.

Host and port come from, in order: ``--host``/``--port``, the
``HOST``/``BIND_HOST`` and ``PORT``/``API_PORT`` environment variables,
then the ``[server]`` section of the configuration.
"""

from __future__ import annotations

import argparse
import os
import sys
from typing import Any

from setrack.config import resolve_config_path


def _resolve_host(args: argparse.Namespace, config: dict) -> str:
    return (
        args.host
        or os.environ.get("HOST")
        or os.environ.get("BIND_HOST")
        or str(config["server"]["host"])
    )


def _resolve_port(args: argparse.Namespace, config: dict) -> int:
    if args.port:
        return args.port
    for name in ("PORT", "API_PORT"):
        value = os.environ.get(name)
        if value:
            try:
                return int(value)
            except ValueError:
                print(f"Warning: ignoring non-numeric {name}={value!r}", file=sys.stderr)
    return int(config["server"]["port"])


def run(args: argparse.Namespace, config: dict[str, Any]) -> int:
    """Run the serve command."""
    from setrack.server import create_app
    from setrack.storage import ProjectRepository

    storage_dir = resolve_config_path(config, "storage", "dir")
    host = _resolve_host(args, config)
    port = _resolve_port(args, config)

    with ProjectRepository(storage_dir) as repository:
        report = repository.wait_ready()
        if report.migrated:
            print(f"Migrated {len(report.migrated)} legacy project(s) into {storage_dir}")
        app = create_app(repository, config)
        print(f"API listening on http://{host}:{port} (data: {storage_dir})")
        app.run(host=host, port=port, threaded=True)
    return 0
