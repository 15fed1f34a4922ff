"""Error pages for roost requests.

Every error class maps to a rendered page carrying the numeric code and
a contact address. Templates come from the server views directory:
``error/<code>.html`` first, then the generic ``error.html``. When
neither exists, or rendering them fails, a plain-text body is sent.

Template context::

    code    the HTTP status
    email   webmaster@<request host name>
    detail  the error detail (may be empty)
"""

import logging
from http import HTTPStatus
from pathlib import Path

import anyio

from roost.context import ServerContext
from roost.errors import HTTPError
from roost.http.request import Request
from roost.http.response import Response
from roost.templating.integration import render_template

logger = logging.getLogger("roost.server")


def _phrase(status: int) -> str:
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return "Error"


async def _error_template(views_dir: Path, status: int) -> str | None:
    for name in (f"error/{status}.html", "error.html"):
        if await anyio.Path(views_dir / name).is_file():
            return name
    return None


async def render_error_page(
    context: ServerContext,
    request: Request,
    status: int,
    detail: str = "",
) -> Response:
    """Render the error page for *status*."""
    templates = context.error_templates
    if templates is not None:
        name = await _error_template(Path(context.config.views_dir), status)
        if name is not None:
            try:
                html = render_template(templates, name, {
                    "code": status,
                    "email": f"webmaster@{request.hostname}",
                    "detail": detail,
                })
            except Exception:
                logger.exception("Rendering error page %s failed", name)
            else:
                return Response(body=html, status=status)

    body = f"{status} {_phrase(status)}"
    if context.config.debug and detail:
        body = f"{body}: {detail}"
    return Response(body=body, status=status, content_type="text/plain; charset=utf-8")


async def handle_http_error(exc: HTTPError, request: Request, context: ServerContext) -> Response:
    """Map an HTTPError to its error page, keeping the error's headers."""
    logger.debug("%d %s %s: %s", exc.status, request.method, request.path, exc.detail)
    response = await render_error_page(context, request, exc.status, exc.detail)
    for name, value in exc.headers:
        response = response.with_header(name, value)
    return response


async def handle_internal_error(exc: Exception, request: Request, context: ServerContext) -> Response:
    """Handle unexpected exceptions as 500 errors."""
    logger.exception("500 %s %s", request.method, request.path)
    detail = f"{type(exc).__name__}: {exc}" if context.config.debug else ""
    return await render_error_page(context, request, 500, detail)
