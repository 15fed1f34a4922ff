"""Async test client for roost servers.

Uses the same Request and Response types as production.
No wrapper translation layer.
"""

from typing import Any
from urllib.parse import quote

from roost._internal.invoke import invoke
from roost.app import Server
from roost.http.response import Response


class TestClient:
    __test__ = False  # Tell pytest this is not a test class
    """Async test client for roost servers.

    Returns the same ``Response`` type used in production. Sends requests
    through the ASGI interface directly, no HTTP involved. Cookies set
    by responses are kept and sent back, so signed sessions survive
    across requests.

    Usage::

        async with TestClient(server) as client:
            response = await client.get("/shop/items/")
            assert response.status == 200
    """

    __slots__ = ("cookies", "server")

    def __init__(self, server: Server) -> None:
        self.server = server
        self.cookies: dict[str, str] = {}

    async def __aenter__(self) -> "TestClient":
        # Mirror lifespan startup without the watcher.
        for module in self.server.modules:
            await module.registry.run_schedule_init()
        for hook in self.server._startup_hooks:
            await invoke(hook)
        return self

    async def __aexit__(self, *args: object) -> None:
        for hook in self.server._shutdown_hooks:
            await invoke(hook)

    async def get(
        self,
        path: str,
        *,
        headers: dict[str, str] | None = None,
    ) -> Response:
        """Send a GET request."""
        return await self.request("GET", path, headers=headers)

    async def head(self, path: str, *, headers: dict[str, str] | None = None) -> Response:
        """Send a HEAD request."""
        return await self.request("HEAD", path, headers=headers)

    async def post(
        self,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
        json: dict[str, object] | None = None,
        data: dict[str, str] | None = None,
    ) -> Response:
        """Send a POST request with a raw, JSON or url-encoded body."""
        extra_headers: dict[str, str] = {}
        request_body = body or b""

        if json is not None:
            import json as json_module

            request_body = json_module.dumps(json).encode("utf-8")
            extra_headers["content-type"] = "application/json"
        elif data is not None:
            from urllib.parse import urlencode

            request_body = urlencode(data).encode("utf-8")
            extra_headers["content-type"] = "application/x-www-form-urlencoded"

        merged = {**extra_headers, **(headers or {})}
        return await self.request("POST", path, headers=merged, body=request_body)

    async def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
    ) -> Response:
        """Send an arbitrary request through the ASGI app."""
        if "?" in path:
            path_part, query_string = path.split("?", 1)
        else:
            path_part = path
            query_string = ""

        merged = dict(headers or {})
        if self.cookies and not any(k.lower() == "cookie" for k in merged):
            merged["cookie"] = "; ".join(f"{k}={v}" for k, v in self.cookies.items())

        raw_headers: list[tuple[bytes, bytes]] = [
            (name.lower().encode("latin-1"), value.encode("latin-1"))
            for name, value in merged.items()
        ]

        scope: dict[str, Any] = {
            "type": "http",
            "asgi": {"version": "3.0"},
            "http_version": "1.1",
            "method": method.upper(),
            "scheme": "http",
            "path": path_part,
            "raw_path": quote(path_part).encode("ascii"),
            "query_string": query_string.encode("latin-1"),
            "root_path": "",
            "headers": raw_headers,
            "server": ("testserver", 80),
            "client": ("127.0.0.1", 0),
        }

        request_body = body or b""
        body_sent = False

        async def receive() -> dict[str, Any]:
            nonlocal body_sent
            if not body_sent:
                body_sent = True
                return {"type": "http.request", "body": request_body, "more_body": False}
            return {"type": "http.disconnect"}

        response_status = 200
        response_headers: list[tuple[bytes, bytes]] = []
        response_body_parts: list[bytes] = []

        async def send(message: dict[str, Any]) -> None:
            nonlocal response_status, response_headers
            if message["type"] == "http.response.start":
                response_status = message["status"]
                response_headers = list(message.get("headers", []))
            elif message["type"] == "http.response.body":
                response_body_parts.append(message.get("body", b""))

        await self.server(scope, receive, send)

        content_type = "text/html; charset=utf-8"
        extra_headers: list[tuple[str, str]] = []
        for name_b, value_b in response_headers:
            name_str = name_b.decode("latin-1")
            value_str = value_b.decode("latin-1")
            if name_str == "content-type":
                content_type = value_str
            elif name_str != "content-length":
                extra_headers.append((name_str, value_str))
            if name_str == "set-cookie":
                self._store_cookie(value_str)

        return Response(
            body=b"".join(response_body_parts),
            status=response_status,
            content_type=content_type,
            headers=tuple(extra_headers),
        )

    def _store_cookie(self, header: str) -> None:
        pair = header.split(";", 1)[0]
        name, sep, value = pair.partition("=")
        if sep:
            self.cookies[name.strip()] = value.strip()
