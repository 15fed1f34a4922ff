"""``roost modules``: list discovered modules.

Discovers the modules the server would mount and prints, in dispatch
order, each module's name, prefix, registered model paths and redirect
entries.
"""

import argparse
import sys

from roost.cli._resolve import build_config, configure_logging
from roost.errors import ConfigurationError


def list_modules(args: argparse.Namespace) -> None:
    """Print a table of modules followed by their models and redirects."""
    from roost.app import Server

    try:
        config = build_config(args)
        configure_logging(config.log_level)
        server = Server(config)
        modules = server.modules
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    if not modules:
        print("No modules found.")
        return

    rows = [(m.name, m.prefix, str(len(m.registry)), str(len(m.redirects))) for m in modules]
    headers = ("MODULE", "PREFIX", "MODELS", "REDIRECTS")
    widths = [max(len(h), *(len(r[i]) for r in rows)) for i, h in enumerate(headers)]

    fmt = "  ".join(f"{{:<{w}}}" for w in widths)
    print(fmt.format(*headers))
    print("-" * min(sum(widths) + 2 * (len(widths) - 1), 80))
    for row in rows:
        print(fmt.format(*row))

    for module in modules:
        print()
        print(f"{module.name} ({module.prefix})")
        for path in module.registry.paths:
            print(f"  model     {path}")
        for source in sorted(module.redirects):
            print(f"  redirect  {source} -> {module.redirects.resolve(source)}")
