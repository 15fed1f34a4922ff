"""Immutable HTTP request.

Frozen metadata with async body access. Besides the usual fields the
request knows its scheme and host, which the environment composer needs
to rebuild the ``baseurl`` of a module.
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from roost._internal.asgi import Receive, Scope
from roost.http.forms import FormData, parse_form_data
from roost.http.structures import Headers, QueryParams, parse_cookies


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    Body access is asynchronous and cached: the ASGI ``receive`` channel
    is drained once, then ``body()``, ``text()``, ``json()`` and
    ``form()`` all reuse the same bytes.
    """

    method: str
    path: str
    headers: Headers
    query: QueryParams
    cookies: Mapping[str, str]
    scheme: str = "http"
    server: tuple[str, int] | None = None
    client: tuple[str, int] | None = None

    _receive: Receive | None = field(default=None, repr=False, compare=False)
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def host(self) -> str:
        """The ``Host`` header, or ``server`` host:port when absent."""
        host = self.headers.get("host")
        if host:
            return host
        if self.server is None:
            return "localhost"
        name, port = self.server
        if (self.scheme, port) in (("http", 80), ("https", 443)):
            return name
        return f"{name}:{port}"

    @property
    def hostname(self) -> str:
        """``host`` without the port."""
        host = self.host
        if host.startswith("["):
            return host.partition("]")[0] + "]"
        return host.partition(":")[0]

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    @property
    def url(self) -> str:
        """Path plus query string."""
        if self.query.raw:
            return f"{self.path}?{self.query.raw}"
        return self.path

    def base_url(self, prefix: str = "/") -> str:
        """``scheme://host`` followed by *prefix*."""
        return f"{self.scheme}://{self.host}{prefix}"

    # -- Async body access --

    async def stream(self) -> AsyncIterator[bytes]:
        if self._receive is None:
            return
        while True:
            message = await self._receive()
            chunk = message.get("body", b"")
            if chunk:
                yield chunk
            if not message.get("more_body", False):
                break

    async def body(self) -> bytes:
        if "body" not in self._cache:
            self._cache["body"] = b"".join([chunk async for chunk in self.stream()])
        return self._cache["body"]

    async def text(self) -> str:
        return (await self.body()).decode("utf-8")

    async def json(self) -> Any:
        return json.loads(await self.body())

    async def form(self) -> FormData:
        """Parse the body as URL-encoded or multipart form data.

        Raises:
            ValueError: If the content type is not a form encoding.
        """
        if "form" not in self._cache:
            content_type = self.content_type or "application/x-www-form-urlencoded"
            self._cache["form"] = await parse_form_data(await self.body(), content_type)
        return self._cache["form"]

    # -- Factory --

    @classmethod
    def from_asgi(cls, scope: Scope, receive: Receive | None = None) -> Request:
        headers = Headers.from_raw(scope.get("headers", ()))
        server = scope.get("server")
        client = scope.get("client")
        return cls(
            method=scope.get("method", "GET"),
            path=scope["path"],
            headers=headers,
            query=QueryParams(scope.get("query_string", b"")),
            cookies=parse_cookies(headers.get("cookie")),
            scheme=scope.get("scheme", "http"),
            server=tuple(server) if server else None,
            client=tuple(client) if client else None,
            _receive=receive,
        )
