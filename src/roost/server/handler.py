"""ASGI handler: translates ASGI scope/messages to roost types.

The only component that touches raw ASGI HTTP messages. Converts scope
dicts to typed Request objects, dispatches through middleware and the
module router, and sends the Response back through ASGI send().
"""

from collections.abc import Callable
from contextvars import Token
from typing import Any

from roost._internal.asgi import Receive, Scope, Send
from roost.context import ServerContext, g, request_var
from roost.errors import HTTPError
from roost.http.request import Request
from roost.http.response import Response
from roost.middleware.protocol import Next
from roost.routing.router import ModuleRouter
from roost.server.errors import handle_http_error, handle_internal_error
from roost.server.sender import send_response


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    router: ModuleRouter,
    middleware: tuple[Callable[..., Any], ...],
    context: ServerContext,
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive)
    token: Token[Request] = request_var.set(request)

    try:
        handler: Next = router.dispatch
        for mw in reversed(middleware):
            outer = handler

            async def make_next(req: Request, _mw: Any = mw, _next: Next = outer) -> Response:
                return await _mw(req, _next)

            handler = make_next

        response = await handler(request)

    except HTTPError as exc:
        response = await handle_http_error(exc, request, context)
    except Exception as exc:
        response = await handle_internal_error(exc, request, context)
    finally:
        g._reset()
        request_var.reset(token)

    await send_response(response, send, method=request.method)
