"""Self-contained modules, each owning one URL prefix.

A module directory holds its descriptor, models, static assets and
views. Directory structure under ``models/`` and ``views/`` mirrors the
URL structure below the module prefix.

Conventions::

    modules/
      shop/
        module.json            # {"path": "/shop/"}
        models/
          env.json             # module default environment
          redirects.json       # {"/old": "/new", "/docs": "https://..."}
          items/index/
            index.json         # page sidecar for /shop/items/
            model.py           # class Model: render(request) -> dict
          post/order/
            model.py           # viewless endpoint /shop/post/order
        static/
          css/items/index.css  # added to ``css`` for /shop/items/
          js/items/index.js    # exposed as ``mainjs``
        views/
          items/index.html     # kida template
"""

from roost.modules.descriptor import ModuleDescriptor, ModuleDirs, discover_descriptors
from roost.modules.environment import compose, load_default_env, merge_env
from roost.modules.models import (
    HasRenderAfter,
    HasScheduleInit,
    HasSetParams,
    Model,
    ModelParams,
)
from roost.modules.module import Module, build_module
from roost.modules.permissions import PermissionLookup, PermissionUser
from roost.modules.redirects import RedirectTable
from roost.modules.registry import ModelRegistry
from roost.modules.renderer import PageRenderer
from roost.modules.static import StaticAssetResolver

__all__ = [
    "HasRenderAfter",
    "HasScheduleInit",
    "HasSetParams",
    "Model",
    "ModelParams",
    "ModelRegistry",
    "Module",
    "ModuleDescriptor",
    "ModuleDirs",
    "PageRenderer",
    "PermissionLookup",
    "PermissionUser",
    "RedirectTable",
    "StaticAssetResolver",
    "build_module",
    "compose",
    "discover_descriptors",
    "load_default_env",
    "merge_env",
]
