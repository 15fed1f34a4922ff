"""Roost: a multi-module ASGI web application server.

A central server discovers self-contained modules under a modules
directory. Each module owns a URL prefix plus its own static assets,
kida views and Python models, and requests go to the first module whose
prefix matches.

Basic usage::

    from roost import Server, ServerConfig

    server = Server(ServerConfig(modules_dir="modules", secret_key="..."))
    server.run()

Or from the command line::

    roost run --modules modules --dev
"""

__version__ = "0.1.0"
__all__ = [
    "ConfigurationError",
    "Forbidden",
    "GatewayTimeout",
    "HTTPError",
    "InternalError",
    "Middleware",
    "ModelParams",
    "Next",
    "NotFound",
    "PermissionLookup",
    "PermissionUser",
    "Request",
    "Response",
    "RoostError",
    "Server",
    "ServerConfig",
    "g",
    "get_request",
    "get_session",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import roost`` fast while providing a clean top-level API.
    """
    if name == "Server":
        from roost.app import Server

        return Server

    if name == "ServerConfig":
        from roost.config import ServerConfig

        return ServerConfig

    if name == "Request":
        from roost.http.request import Request

        return Request

    if name == "Response":
        from roost.http.response import Response

        return Response

    if name in ("Middleware", "Next"):
        from roost.middleware import protocol as _mw

        return getattr(_mw, name)

    if name == "get_session":
        from roost.middleware.sessions import get_session

        return get_session

    if name in ("g", "get_request"):
        from roost import context as _ctx

        return getattr(_ctx, name)

    if name == "ModelParams":
        from roost.modules.models import ModelParams

        return ModelParams

    if name in ("PermissionLookup", "PermissionUser"):
        from roost.modules import permissions as _perm

        return getattr(_perm, name)

    if name in (
        "ConfigurationError",
        "Forbidden",
        "GatewayTimeout",
        "HTTPError",
        "InternalError",
        "NotFound",
        "RoostError",
    ):
        from roost import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
