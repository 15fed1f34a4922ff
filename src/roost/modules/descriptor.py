"""Module discovery from ``module.json`` descriptors.

Every direct subdirectory of the modules directory that contains a
``module.json`` file is a module::

    {
        "path": "/shop/",
        "dirs": {"views": "templates/"}
    }

``path`` is the URL prefix and must end in ``/``. ``dirs`` may override
the ``models``, ``static`` and ``views`` directories; relative values
are resolved against the module root, missing ones default to
``<root>/<name>``. Directories without a descriptor are ignored.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from roost.errors import ConfigurationError

logger = logging.getLogger("roost.modules")

DESCRIPTOR_FILE = "module.json"
_DIR_KEYS = ("models", "static", "views")


@dataclass(frozen=True, slots=True)
class ModuleDirs:
    """Resolved directory roots of one module."""

    models: Path
    static: Path
    views: Path


@dataclass(frozen=True, slots=True)
class ModuleDescriptor:
    """A parsed ``module.json``."""

    name: str
    root: Path
    prefix: str
    dirs: ModuleDirs


def parse_descriptor(name: str, root: Path, data: object) -> ModuleDescriptor:
    """Validate descriptor *data* for the module at *root*.

    Raises:
        ConfigurationError: ``path`` is missing or doesn't end in ``/``,
            or ``dirs`` isn't an object of strings.
    """
    if not isinstance(data, dict):
        msg = f"{root / DESCRIPTOR_FILE} must contain a JSON object"
        raise ConfigurationError(msg)

    prefix = data.get("path")
    if not isinstance(prefix, str) or not prefix.startswith("/") or not prefix.endswith("/"):
        msg = (
            f"Module {name!r}: 'path' must be a string starting and ending with '/', "
            f"got {prefix!r}"
        )
        raise ConfigurationError(msg)

    overrides = data.get("dirs") or {}
    if not isinstance(overrides, dict):
        msg = f"Module {name!r}: 'dirs' must be an object"
        raise ConfigurationError(msg)

    resolved: dict[str, Path] = {}
    for key in _DIR_KEYS:
        value = overrides.get(key)
        if value is None:
            resolved[key] = root / key
        elif isinstance(value, str):
            resolved[key] = root / value
        else:
            msg = f"Module {name!r}: dirs.{key} must be a string"
            raise ConfigurationError(msg)

    return ModuleDescriptor(name=name, root=root, prefix=prefix, dirs=ModuleDirs(**resolved))


def read_descriptor(directory: Path) -> ModuleDescriptor | None:
    """Read ``module.json`` from *directory*; ``None`` if there isn't one."""
    file = directory / DESCRIPTOR_FILE
    if not file.is_file():
        return None
    try:
        data = json.loads(file.read_text(encoding="utf-8"))
    except OSError as exc:
        msg = f"Cannot read {file}: {exc}"
        raise ConfigurationError(msg) from exc
    except json.JSONDecodeError as exc:
        msg = f"{file} is not valid JSON: {exc}"
        raise ConfigurationError(msg) from exc
    return parse_descriptor(directory.name, directory.resolve(), data)


def discover_descriptors(modules_dir: str | Path) -> list[ModuleDescriptor]:
    """All module descriptors under *modules_dir*, sorted by directory name.

    Raises:
        ConfigurationError: *modules_dir* doesn't exist or a descriptor
            is invalid.
    """
    root = Path(modules_dir)
    if not root.is_dir():
        msg = f"Modules directory {root} does not exist"
        raise ConfigurationError(msg)

    descriptors: list[ModuleDescriptor] = []
    for directory in sorted(p for p in root.iterdir() if p.is_dir()):
        if directory.name.startswith("."):
            continue
        descriptor = read_descriptor(directory)
        if descriptor is None:
            continue
        logger.debug("Found module %s at %s", descriptor.name, descriptor.prefix)
        descriptors.append(descriptor)
    return descriptors
