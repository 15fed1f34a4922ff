"""Environment composition: the per-request template input.

An environment is a plain dict assembled fresh for every request by
layering, in order:

1. ``baseurl`` and an empty ``models`` list,
2. a deep copy of the module's default environment,
3. request-derived values (``mainjs``, ``css``),
4. the page's JSON sidecar,
5. sidecars of other referenced models, then every model's output.

Layers are combined with ``merge_env``: when both sides hold a list the
lists are concatenated in layer order, otherwise the incoming value
replaces the old one.
"""

from __future__ import annotations

import copy
import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any

import anyio

from roost.errors import SidecarError

if TYPE_CHECKING:
    from roost.http.request import Request
    from roost.modules.module import Module

logger = logging.getLogger("roost.modules")


def merge_env(env: dict[str, Any], layer: Mapping[str, Any] | None) -> dict[str, Any]:
    """Merge *layer* into *env* in place and return *env*.

    ::

        merge_env({"a": [1, 2]}, {"a": [3]})   # {"a": [1, 2, 3]}
        merge_env({"a": 5}, {"a": 6})          # {"a": 6}
    """
    if not layer:
        return env
    for key, value in layer.items():
        current = env.get(key)
        if isinstance(value, list) and isinstance(current, list):
            env[key] = current + value
        else:
            env[key] = value
    return env


def sidecar_path(models_dir: Path, path: str) -> Path:
    """Sidecar location for a page path.

    The sidecar mirrors the page path under the models root and shares
    the last segment's name: ``/items/index`` ->
    ``<models>/items/index/index.json``.
    """
    relative = path.strip("/")
    last = relative.rsplit("/", 1)[-1]
    return models_dir / relative / f"{last}.json"


def parse_sidecar(file: Path, text: str) -> dict[str, Any]:
    """Parse sidecar *text*, raising ``SidecarError`` unless it's a JSON object."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise SidecarError(str(file), str(exc)) from exc
    if not isinstance(data, dict):
        raise SidecarError(str(file), "top level must be an object")
    return data


async def load_sidecar(file: Path) -> dict[str, Any] | None:
    """Read a sidecar asynchronously.

    Returns ``None`` when the file doesn't exist, can't be read, or is
    malformed. Malformed sidecars are logged and skipped.
    """
    target = anyio.Path(file)
    try:
        if not await target.is_file():
            return None
        text = await target.read_text(encoding="utf-8")
    except OSError as exc:
        logger.warning("Could not read %s: %s", file, exc)
        return None
    try:
        return parse_sidecar(file, text)
    except SidecarError as exc:
        logger.warning("%s", exc)
        return None


def read_json_file(file: Path) -> dict[str, Any] | None:
    """Blocking sidecar read for startup-time files (default env, redirects)."""
    if not file.is_file():
        return None
    try:
        return parse_sidecar(file, file.read_text(encoding="utf-8"))
    except OSError as exc:
        logger.warning("Could not read %s: %s", file, exc)
    except SidecarError as exc:
        logger.warning("%s", exc)
    return None


def load_default_env(
    server_file: Path | None,
    module_override: Path | None = None,
) -> dict[str, Any]:
    """Build a module's default environment.

    The server-wide file is the base; the module's ``env.json`` is
    layered on top with ``merge_env``. Either file may be absent.
    """
    env: dict[str, Any] = {}
    if server_file is not None:
        merge_env(env, read_json_file(server_file))
    if module_override is not None:
        merge_env(env, read_json_file(module_override))
    return env


async def compose(module: Module, request: Request, path: str) -> dict[str, Any]:
    """Build the environment for *path* (already index-normalized).

    Always includes ``baseurl`` (scheme, host and module prefix) and the
    ``models`` list. Adds ``mainjs`` and a ``css`` entry when per-page
    assets exist, merges the page sidecar, then appends the page's own
    model when one is registered.
    """
    env: dict[str, Any] = {
        "baseurl": request.base_url(module.prefix),
        "models": [],
    }
    for key, value in module.default_env.items():
        env[key] = copy.deepcopy(value)

    static = module.dirs.static
    if await anyio.Path(static / "js" / f"{path.lstrip('/')}.js").is_file():
        env["mainjs"] = f"{module.prefix}js{path}.js"
    if await anyio.Path(static / "css" / f"{path.lstrip('/')}.css").is_file():
        css = env.get("css")
        if not isinstance(css, list):
            css = env["css"] = []
        css.append(f"{module.prefix}css{path}.css")

    merge_env(env, await load_sidecar(sidecar_path(module.dirs.models, path)))

    if path in module.registry and path not in env["models"]:
        env["models"] = [*env["models"], path]
    return env
