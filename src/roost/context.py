"""Server and request context.

Provides:
- ``ServerContext``: everything built once at startup (config, default
  environment, error-page templates, permission lookup). Passed by
  reference into the router and every module handler; there are no
  process-wide registries.
- ``request_var`` / ``get_request()``: the current ``Request``.
- ``g``: a mutable namespace scoped to the current request. The
  permission gate stores the resolved user here as ``g.permissions``.
"""

from __future__ import annotations

from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from kida import Environment

from roost.config import ServerConfig
from roost.http.request import Request

if TYPE_CHECKING:
    from roost.modules.permissions import PermissionLookup


@dataclass(frozen=True, slots=True)
class ServerContext:
    """State shared by every module, built once by ``Server``.

    Attributes:
        config: The server configuration.
        default_env: Server-wide default environment (``defaultEnv.json``).
            Modules layer their own ``env.json`` on a copy of it.
        error_templates: Kida environment for the server's error pages,
            or ``None`` when the views directory doesn't exist.
        permissions: Lookup used by the permission gate, if any.
    """

    config: ServerConfig
    default_env: dict[str, Any] = field(default_factory=dict)
    error_templates: Environment | None = None
    permissions: PermissionLookup | None = None


# -- Request context --

request_var: ContextVar[Request] = ContextVar("roost_request")


def get_request() -> Request:
    """Return the current request.

    Raises ``LookupError`` if called outside a request.
    """
    return request_var.get()


class _RequestGlobals:
    """Attribute namespace backed by a per-request dict in a ContextVar.

    Usage::

        from roost.context import g

        user = g.get("permissions")
    """

    __slots__ = ("_store",)

    def __init__(self) -> None:
        object.__setattr__(self, "_store", ContextVar("roost_g", default=None))

    def _dict(self) -> dict[str, Any]:
        store: ContextVar[dict[str, Any] | None] = object.__getattribute__(self, "_store")
        data = store.get()
        if data is None:
            data = {}
            store.set(data)
        return data

    def _reset(self) -> None:
        object.__getattribute__(self, "_store").set(None)

    def __getattr__(self, name: str) -> Any:
        try:
            return self._dict()[name]
        except KeyError:
            msg = f"'g' has no attribute {name!r} in the current request"
            raise AttributeError(msg) from None

    def __setattr__(self, name: str, value: Any) -> None:
        self._dict()[name] = value

    def __contains__(self, name: str) -> bool:
        return name in self._dict()

    def get(self, name: str, default: Any = None) -> Any:
        return self._dict().get(name, default)


g = _RequestGlobals()
