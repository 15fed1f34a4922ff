"""Roost CLI: run the server, inspect modules.

Entry point registered as ``roost`` in ``pyproject.toml``::

    [project.scripts]
    roost = "roost.cli:main"
"""

import argparse
import sys


def _add_config_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", default=None, help="JSON server config file")
    parser.add_argument("--modules", default=None, help="Modules directory (default: modules)")
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["debug", "info", "warning", "error", "critical"],
        help="Logging level (default: config file, else info)",
    )


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``roost`` command."""
    parser = argparse.ArgumentParser(
        prog="roost",
        description="Roost: a multi-module web application server.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- roost run --------------------------------------------------------
    run_parser = subparsers.add_parser("run", help="Start dev or production server")
    _add_config_arguments(run_parser)
    run_parser.add_argument("--host", default=None, help="Bind host address")
    run_parser.add_argument("--port", type=int, default=None, help="Bind port number")
    mode = run_parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--dev",
        action="store_true",
        help="Development mode (model watcher, template reload)",
    )
    mode.add_argument(
        "--production",
        action="store_true",
        help="Production mode (multi-worker)",
    )
    run_parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Worker count (0=auto-detect, production only)",
    )
    run_parser.add_argument(
        "--permissions",
        default=None,
        help="Import string of a PermissionLookup (e.g. myapp.auth:lookup)",
    )

    # -- roost modules ----------------------------------------------------
    modules_parser = subparsers.add_parser("modules", help="List discovered modules")
    _add_config_arguments(modules_parser)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "run":
        from roost.cli._run import run_server

        run_server(args)
    elif args.command == "modules":
        from roost.cli._modules import list_modules

        list_modules(args)
