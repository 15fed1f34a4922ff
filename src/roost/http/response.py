"""HTTP response with a chainable ``.with_*()`` API.

Each transformation returns a new Response. Models that implement
``render_after`` receive one of these and return a (possibly modified)
copy.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from urllib.parse import quote

from roost.http.structures import SetCookie

# Reserved characters and existing escapes pass through; the rest is UTF-8 percent-encoded.
_LOCATION_SAFE = ":/?#[]@!$&'()*+,;=%"


@dataclass(frozen=True, slots=True)
class Response:
    """An HTTP response built through immutable transformations."""

    body: str | bytes = ""
    status: int = 200
    content_type: str = "text/html; charset=utf-8"
    headers: tuple[tuple[str, str], ...] = ()
    cookies: tuple[SetCookie, ...] = ()

    def with_status(self, status: int) -> Response:
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> Response:
        return replace(self, headers=(*self.headers, (name, value)))

    def with_content_type(self, content_type: str) -> Response:
        return replace(self, content_type=content_type)

    def with_body(self, body: str | bytes) -> Response:
        return replace(self, body=body)

    def with_cookie(
        self,
        name: str,
        value: str,
        *,
        max_age: int | None = None,
        path: str = "/",
        secure: bool = False,
        httponly: bool = True,
        samesite: str = "lax",
    ) -> Response:
        cookie = SetCookie(
            name=name,
            value=value,
            max_age=max_age,
            path=path,
            secure=secure,
            httponly=httponly,
            samesite=samesite,
        )
        return replace(self, cookies=(*self.cookies, cookie))

    def header(self, name: str, default: str | None = None) -> str | None:
        """First value of header *name* (case-insensitive)."""
        wanted = name.lower()
        for key, value in self.headers:
            if key.lower() == wanted:
                return value
        return default

    @property
    def body_bytes(self) -> bytes:
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return self.body

    @property
    def text(self) -> str:
        if isinstance(self.body, bytes):
            return self.body.decode("utf-8")
        return self.body


def redirect(location: str, status: int = 302) -> Response:
    """An empty response pointing the client at *location*.

    Non-ASCII characters are percent-encoded so the header stays
    latin-1 encodable.
    """
    return Response(body="", status=status).with_header(
        "Location", quote(location, safe=_LOCATION_SAFE),
    )
