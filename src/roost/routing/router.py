"""Module router: pick the module that owns a request.

Modules are registered in discovery order (sorted directory names) and
tried in that order for every request whose path starts with their
prefix. The first handler that returns a response wins; a handler that
returns ``None`` (only the root module does) passes the request on.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path
from typing import TYPE_CHECKING

from roost.errors import NotFound
from roost.http.request import Request
from roost.http.response import Response
from roost.modules.descriptor import discover_descriptors
from roost.modules.module import Module, build_module
from roost.modules.renderer import PageRenderer

if TYPE_CHECKING:
    from roost.context import ServerContext

logger = logging.getLogger("roost.server")


class ModuleRouter:
    """Ordered collection of module handlers. Immutable once built."""

    __slots__ = ("_handlers",)

    def __init__(self, handlers: list[PageRenderer] | tuple[PageRenderer, ...] = ()) -> None:
        self._handlers = tuple(handlers)

    @classmethod
    def discover(cls, modules_dir: str | Path, context: ServerContext) -> ModuleRouter:
        """Build a router from every module under *modules_dir*.

        Raises:
            ConfigurationError: The directory is missing or a
                ``module.json`` is invalid.
        """
        handlers: list[PageRenderer] = []
        for descriptor in discover_descriptors(modules_dir):
            module = build_module(descriptor, context)
            handlers.append(PageRenderer(module, context))
        if not handlers:
            logger.warning("No modules found in %s", modules_dir)
        return cls(handlers)

    @property
    def modules(self) -> tuple[Module, ...]:
        return tuple(h.module for h in self._handlers)

    def __iter__(self) -> Iterator[PageRenderer]:
        return iter(self._handlers)

    def __len__(self) -> int:
        return len(self._handlers)

    def candidates(self, path: str) -> Iterator[PageRenderer]:
        """Handlers whose prefix *path* falls under, in registration order."""
        for handler in self._handlers:
            if path.startswith(handler.module.prefix):
                yield handler

    async def dispatch(self, request: Request) -> Response:
        """Route *request* to the first module that answers it.

        Raises:
            NotFound: No module owns the path, or every owner declined.
        """
        for handler in self.candidates(request.path):
            response = await handler.handle(request)
            if response is not None:
                return response
        raise NotFound(f"No module handles {request.path}")
