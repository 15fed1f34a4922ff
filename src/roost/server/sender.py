"""ASGI response sending. Translates a Response into ASGI messages."""

from roost._internal.asgi import Send
from roost.http.response import Response


def _body_allowed(status: int, method: str) -> bool:
    # 1xx, 204 and 304 carry no body; HEAD gets headers only.
    if method == "HEAD":
        return False
    return not (100 <= status < 200 or status in {204, 304})


async def send_response(response: Response, send: Send, *, method: str = "GET") -> None:
    """Send *response* as one ``http.response.start`` plus one body message."""
    body = response.body_bytes
    raw_headers: list[tuple[bytes, bytes]] = [
        (b"content-type", response.content_type.encode("latin-1")),
        (b"content-length", str(len(body)).encode("latin-1")),
    ]
    raw_headers.extend(
        (name.lower().encode("latin-1"), value.encode("latin-1"))
        for name, value in response.headers
        if name.lower() != "content-length"
    )
    raw_headers.extend(
        (b"set-cookie", cookie.to_header_value().encode("latin-1"))
        for cookie in response.cookies
    )

    await send(
        {
            "type": "http.response.start",
            "status": response.status,
            "headers": raw_headers,
        }
    )
    await send(
        {
            "type": "http.response.body",
            "body": body if _body_allowed(response.status, method) else b"",
        }
    )
