"""Static asset serving for one module.

A module's static directory holds named subdirectories (``css/``,
``js/``, ``img/`` ...). A request whose module-relative path begins with
``/<subdir>/`` is served from disk; the static root itself is never
browsable by its own name.
"""

import logging
import mimetypes
from pathlib import Path

import anyio

from roost.errors import InternalError, NotFound
from roost.http.request import Request
from roost.http.response import Response

logger = logging.getLogger("roost.modules")


def list_static_dirs(static_dir: Path) -> tuple[str, ...]:
    """Names of the subdirectories of *static_dir*, sorted.

    A missing static directory is logged and yields no names.
    """
    try:
        return tuple(sorted(p.name for p in static_dir.iterdir() if p.is_dir()))
    except OSError as exc:
        logger.debug("No static directory at %s: %s", static_dir, exc)
        return ()


def content_type_for(request_path: str) -> str:
    """Content type derived from the extension of the *request* path."""
    content_type, _ = mimetypes.guess_type(request_path)
    return content_type or "application/octet-stream"


class StaticAssetResolver:
    """Serve files below one module's static directory.

    ``serve()`` returns ``None`` when the file is missing and the module
    owns the root prefix, so the router can offer the request to the
    next module.
    """

    __slots__ = ("_directory", "_fall_through", "_subdirs")

    def __init__(self, directory: Path, subdirs: tuple[str, ...], *, fall_through: bool) -> None:
        self._directory = directory.resolve()
        self._subdirs = subdirs
        self._fall_through = fall_through

    @property
    def subdirs(self) -> tuple[str, ...]:
        return self._subdirs

    def matches(self, path: str) -> bool:
        """True if *path* lies under one of the recognized subdirectories."""
        return any(path.startswith(f"/{name}/") for name in self._subdirs)

    async def serve(self, request: Request, path: str) -> Response | None:
        """Serve module-relative *path*.

        Raises:
            NotFound: The file is missing (non-root module) or the path
                escapes the static directory.
            InternalError: The file exists but can't be read.
        """
        file = (self._directory / path.lstrip("/")).resolve()
        if not file.is_relative_to(self._directory):
            raise NotFound(f"Static path {request.path} escapes the static root")

        target = anyio.Path(file)
        if not await target.is_file():
            if self._fall_through:
                return None
            logger.debug("Static file %s does not exist.", request.path)
            raise NotFound(f"Static file {request.path} does not exist")

        try:
            data = await target.read_bytes()
        except OSError as exc:
            logger.warning("Error reading file from %s: %s", request.path, exc)
            raise InternalError(f"Could not read {request.path}") from exc

        return Response(body=data, content_type=content_type_for(request.path))
