"""The runtime Module: one routable unit built from a descriptor."""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from kida import Environment

from roost.modules.descriptor import ModuleDescriptor, ModuleDirs
from roost.modules.environment import merge_env, read_json_file
from roost.modules.redirects import RedirectTable
from roost.modules.registry import ModelRegistry
from roost.modules.static import StaticAssetResolver, list_static_dirs
from roost.templating.integration import create_environment

if TYPE_CHECKING:
    from roost.context import ServerContext

logger = logging.getLogger("roost.modules")

MODULE_ENV_FILE = "env.json"


@dataclass(frozen=True, slots=True)
class Module:
    """Everything a module needs to answer requests.

    Built once at startup. Only ``registry`` changes afterwards, and
    only through development reloads.
    """

    name: str
    prefix: str
    root: Path
    dirs: ModuleDirs
    static_dirs: tuple[str, ...]
    static: StaticAssetResolver
    redirects: RedirectTable
    default_env: dict[str, Any]
    registry: ModelRegistry
    templates: Environment

    @property
    def is_root(self) -> bool:
        """True for the module mounted at ``/``, which may fall through."""
        return self.prefix == "/"


def build_module(descriptor: ModuleDescriptor, context: ServerContext) -> Module:
    """Load a module's static listing, redirects, default env and models."""
    dirs = descriptor.dirs
    static_dirs = list_static_dirs(dirs.static)

    default_env = copy.deepcopy(context.default_env)
    merge_env(default_env, read_json_file(dirs.models / MODULE_ENV_FILE))

    registry = ModelRegistry(dirs.models, descriptor.name)
    count = registry.load_all()

    module = Module(
        name=descriptor.name,
        prefix=descriptor.prefix,
        root=descriptor.root,
        dirs=dirs,
        static_dirs=static_dirs,
        static=StaticAssetResolver(dirs.static, static_dirs, fall_through=descriptor.prefix == "/"),
        redirects=RedirectTable.load(dirs.models, descriptor.prefix),
        default_env=default_env,
        registry=registry,
        templates=create_environment(dirs.views, debug=context.config.debug),
    )
    logger.info(
        "Module %s mounted at %s (%d models, %d redirects)",
        module.name, module.prefix, count, len(module.redirects),
    )
    return module
