"""
setrack.cli - Command-line interface.

Main entry point for the setrack CLI tool.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from setrack import __version__
from setrack.commands import migrate, projects, serve


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="setrack",
        description="Systems-engineering review tracker (projects, requirements, BOM)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  setrack serve                      # Start the API on 127.0.0.1:8001
  setrack serve -H 0.0.0.0 -P 9000   # Listen on all interfaces
  setrack list                       # List stored projects
  setrack show rpa-probe             # Print one project as JSON
  setrack log rpa-probe              # Print a project's change log
  setrack migrate                    # Import a legacy projects.json

Configuration:
  .setrack.toml in the working directory (or any parent), overridden by
  SETRACK_<SECTION>_<KEY> environment variables, e.g. SETRACK_STORAGE_DIR.

For detailed command help: setrack <command> --help
        """,
    )

    # Global options
    parser.add_argument(
        "--version",
        action="version",
        version=f"setrack {__version__}",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to configuration file",
        metavar="PATH",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        help="Override the storage directory",
        metavar="PATH",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Verbose output",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress non-error output",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # serve command
    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the REST API server",
    )
    serve_parser.add_argument(
        "-H",
        "--host",
        help="Interface to bind (default: config, HOST env, 127.0.0.1)",
    )
    serve_parser.add_argument(
        "-P",
        "--port",
        type=int,
        help="Port to listen on (default: config, PORT env, 8001)",
    )

    # list command
    list_parser = subparsers.add_parser(
        "list",
        help="List stored projects",
    )
    list_parser.add_argument(
        "-j",
        "--json",
        action="store_true",
        help="Print full documents as JSON",
    )

    # show command
    show_parser = subparsers.add_parser(
        "show",
        help="Print one project as JSON",
    )
    show_parser.add_argument("project_id", help="Project id")

    # log command
    log_parser = subparsers.add_parser(
        "log",
        help="Print a project's change log",
    )
    log_parser.add_argument("project_id", help="Project id")

    # migrate command
    subparsers.add_parser(
        "migrate",
        help="Create the storage directory and import a legacy projects.json",
    )

    # version command
    subparsers.add_parser(
        "version",
        help="Show version",
    )

    return parser


def configure_logging(args: argparse.Namespace, level_name: str = "INFO") -> None:
    """Set up the root logger from the config level and -v/-q flags."""
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.WARNING
    else:
        level = getattr(logging, str(level_name).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = create_parser()

    # Enable shell tab-completion if argcomplete is installed
    # Install with: pip install setrack[completion]
    # Then activate: eval "$(register-python-argcomplete setrack)"
    try:
        import argcomplete

        argcomplete.autocomplete(parser)
    except ImportError:
        pass

    args = parser.parse_args(argv)

    # Handle no command
    if not args.command:
        parser.print_help()
        return 0

    try:
        from setrack.config import get_config

        config = get_config(args.config, args.data_dir)
        configure_logging(args, config["logging"]["level"])

        # Dispatch to command handlers
        if args.command == "serve":
            return serve.run(args, config)
        elif args.command in ("list", "show", "log"):
            return projects.run(args, config)
        elif args.command == "migrate":
            return migrate.run(args, config)
        elif args.command == "version":
            return version_command(args)
        else:
            parser.print_help()
            return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled.", file=sys.stderr)
        return 130
    except Exception as e:
        if args.verbose:
            raise
        print(f"Error: {e}", file=sys.stderr)
        return 1


def version_command(args: argparse.Namespace) -> int:
    """Handle version command."""
    print(f"setrack {__version__}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
