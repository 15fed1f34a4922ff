"""Shared CLI helpers: logging setup, config loading, import strings."""

import argparse
import importlib
import logging
from typing import Any

from roost.config import ServerConfig
from roost.modules.permissions import PermissionLookup


def configure_logging(level: str | None) -> None:
    """Configure the root logger; *level* ``None`` means ``info``."""
    logging.basicConfig(
        level=(level or "info").upper(),
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )


def build_config(args: argparse.Namespace, **overrides: Any) -> ServerConfig:
    """Server config from ``--config`` (if given) plus command-line overrides.

    Flags that weren't given (``None``) leave the file or default value.

    Raises:
        ConfigurationError: The config file is unreadable or invalid.
    """
    values = {"modules_dir": args.modules, "log_level": args.log_level, **overrides}
    if args.config:
        return ServerConfig.from_file(args.config, **values)
    return ServerConfig(**{k: v for k, v in values.items() if v is not None})


def resolve_lookup(import_string: str) -> PermissionLookup:
    """Resolve ``"module:attribute"`` to a permission lookup.

    Classes and factory functions are called with no arguments.

    Raises:
        ModuleNotFoundError: If the module cannot be imported.
        AttributeError: If the attribute does not exist on the module.
        TypeError: If the result has no ``get_user`` method.
    """
    module_path, _, attr_name = import_string.partition(":")
    if not attr_name:
        attr_name = "lookup"

    module = importlib.import_module(module_path)
    obj = getattr(module, attr_name)

    if isinstance(obj, type) or (callable(obj) and not isinstance(obj, PermissionLookup)):
        try:
            obj = obj()
        except Exception as exc:
            msg = f"Factory {import_string!r} raised an error: {exc}"
            raise TypeError(msg) from exc

    if not isinstance(obj, PermissionLookup):
        msg = f"{import_string!r} resolved to {type(obj).__name__}, which has no get_user()"
        raise TypeError(msg)

    return obj
