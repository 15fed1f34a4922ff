"""``roost run``: development or production server command.

Builds a ServerConfig from ``--config`` and the command-line flags and
starts either the development server (single worker, model watcher) or
the production server (multi-worker).
"""

import argparse
import sys

from roost.cli._resolve import build_config, configure_logging, resolve_lookup
from roost.errors import ConfigurationError


def run_server(args: argparse.Namespace) -> None:
    """Start the roost server (dev or production mode).

    ``--dev`` and ``--production`` override ``debug`` from the config
    file; otherwise the file decides.
    """
    debug = True if args.dev else False if args.production else None
    try:
        config = build_config(
            args,
            host=args.host,
            port=args.port,
            workers=args.workers,
            debug=debug,
        )
        lookup = resolve_lookup(args.permissions) if args.permissions else None
    except (ConfigurationError, ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    configure_logging(config.log_level)

    from roost.app import Server

    server = Server(config, permissions=lookup)
    try:
        server.run()
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc
