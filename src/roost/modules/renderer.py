"""Page rendering: resolve a request inside one module.

``PageRenderer.handle()`` walks a fixed sequence of checks on the
module-relative path, first match wins:

1. the static root marker itself is never served (404);
2. ``/<static subdir>/...`` is served from the static directory;
3. a trailing ``/`` names the ``index`` view;
4. redirect table entries answer 301;
5. no view file: ``/post/`` paths with a model render without a view,
   other ``/post/`` paths 404, directories redirect to ``path/``, the
   root module falls through (``None``), anything else 404s;
6. otherwise the page is rendered: environment, gates, models, template.
"""

import logging
import re
from typing import Any

import anyio

from roost._internal.invoke import invoke
from roost.context import ServerContext
from roost.errors import InternalError, NotFound
from roost.http.request import Request
from roost.http.response import Response, redirect
from roost.middleware.sessions import current_session
from roost.modules.environment import compose
from roost.modules.models import HasRenderAfter
from roost.modules.module import Module
from roost.modules.permissions import enforce
from roost.server.errors import render_error_page
from roost.templating.integration import render_template, template_name

logger = logging.getLogger("roost.modules")

_SLASHES = re.compile(r"/{2,}")


def strip_prefix(request_path: str, prefix: str) -> str:
    """Module-relative path: *prefix* minus its trailing ``/`` removed, ``//`` collapsed."""
    return _SLASHES.sub("/", request_path[len(prefix) - 1:])


def raw_response(env: dict[str, Any]) -> Response:
    """Verbatim body for a viewless endpoint.

    ``raw`` is sent as-is (bytes stay bytes, anything else is turned
    into text); ``contentType`` overrides the content type.
    """
    raw = env.get("raw")
    if raw is None:
        raw = ""
    elif not isinstance(raw, (str, bytes)):
        raw = str(raw)
    default_type = "application/octet-stream" if isinstance(raw, bytes) else "text/html; charset=utf-8"
    return Response(body=raw, content_type=env.get("contentType") or default_type)


class PageRenderer:
    """Request handler for one module.

    ``handle()`` returns a ``Response``, or ``None`` when the root
    module declines a path so the router can offer it elsewhere.
    Failures raise ``HTTPError`` subclasses, which the ASGI handler
    turns into error pages.
    """

    __slots__ = ("_context", "_module")

    def __init__(self, module: Module, context: ServerContext) -> None:
        self._module = module
        self._context = context

    @property
    def module(self) -> Module:
        return self._module

    async def handle(self, request: Request) -> Response | None:
        module = self._module
        config = self._context.config
        path = strip_prefix(request.path, module.prefix)

        if path.startswith(config.static_marker):
            raise NotFound(f"{request.path} is not browsable")

        if module.static.matches(path):
            return await module.static.serve(request, path)

        if path.endswith("/"):
            path += "index"

        location = module.redirects.resolve(path)
        if location is not None:
            return redirect(location, status=301)

        is_post = path.startswith(config.post_namespace)
        view = anyio.Path(module.dirs.views / template_name(path))
        if not await view.is_file():
            if is_post:
                if path not in module.registry:
                    raise NotFound(f"No model for {path}")
                return await self._render_page(request, path, viewless=True)
            if await anyio.Path(module.dirs.views / path.lstrip("/")).is_dir():
                return redirect(request.path + "/")
            if module.is_root:
                return None
            logger.debug("View for %s (module %s) does not exist.", request.path, module.name)
            raise NotFound(f"No view for {request.path}")

        return await self._render_page(request, path, viewless=is_post)

    async def _render_page(self, request: Request, path: str, *, viewless: bool) -> Response:
        module = self._module
        config = self._context.config

        env = await compose(module, request, path)

        session = current_session()
        if not env.get("useRedirect"):
            session["returnTo"] = request.path

        gate = await enforce(
            env,
            session,
            login_url=config.login_url,
            lookup=self._context.permissions,
            path=path,
        )
        if gate is not None:
            return gate

        ran_models = any(p in module.registry for p in env.get("models") or ())
        env = await module.registry.invoke_models(request, env, path, timeout=config.model_timeout)

        errcode = env.get("errcode")
        if errcode:
            return await render_error_page(self._context, request, int(errcode))

        # A post path with a view but no model renders that view.
        if viewless and ran_models:
            return raw_response(env)

        try:
            html = render_template(module.templates, template_name(path), env)
        except Exception as exc:
            logger.exception("Rendering %s failed", path)
            raise InternalError(f"Rendering {path} failed") from exc

        model = module.registry.get(path)
        if isinstance(model, HasRenderAfter):
            return await invoke(model.render_after, html, Response(body=html))
        return Response(body=html)
