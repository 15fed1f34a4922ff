"""Roost exception hierarchy.

Shared by the router, the page renderer, the model registry and the
ASGI handler so every layer raises and catches the same types.
"""

from dataclasses import dataclass


class RoostError(Exception):
    """Base for all roost-specific errors."""


class ConfigurationError(RoostError):
    """Raised when server or module configuration is invalid.

    Surfaces at startup: a bad ``module.json``, a missing modules
    directory, an unknown key in the server config file.
    """


class ModelLoadError(RoostError):
    """A single model file could not be imported or instantiated.

    Raised by ``ModelRegistry.load_file()``. The directory walk catches
    it, logs it, and leaves that path unregistered.
    """

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Could not load model for {path}: {reason}")
        self.path = path
        self.reason = reason


class SidecarError(RoostError):
    """A JSON sidecar file exists but is not valid JSON (or not an object)."""

    def __init__(self, file: str, reason: str) -> None:
        super().__init__(f"JSON is formatted incorrectly in {file}: {reason}")
        self.file = file
        self.reason = reason


@dataclass(frozen=True, slots=True)
class HTTPError(RoostError):
    """An error that maps directly to an HTTP status code.

    Raised anywhere in the request pipeline. The ASGI handler catches it
    and renders the matching error page.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404: no view, model, static file or module matched."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class Forbidden(HTTPError):  # noqa: N818
    """403: a permission or position check failed."""

    def __init__(self, detail: str = "Forbidden") -> None:
        super().__init__(status=403, detail=detail)


class InternalError(HTTPError):  # noqa: N818
    """500: an I/O, render or permission-lookup failure."""

    def __init__(self, detail: str = "Internal Server Error") -> None:
        super().__init__(status=500, detail=detail)


class GatewayTimeout(HTTPError):  # noqa: N818
    """504: one or more models did not finish within ``model_timeout``."""

    def __init__(self, detail: str = "Model timed out") -> None:
        super().__init__(status=504, detail=detail)
