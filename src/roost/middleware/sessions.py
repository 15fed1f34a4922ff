"""Signed cookie session middleware.

Session data is serialized as JSON and signed with ``itsdangerous``.
The session dict lives in a ContextVar, reachable via ``get_session()``
from the page renderer, the permission gate and models.

Keys the page renderer reads or writes:

- ``userid``: the authenticated user id (set by a login model).
- ``positions``: role/position tags checked against ``allowedPositions``.
- ``returnTo``: the last page rendered without ``useRedirect``.
"""

from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any

from itsdangerous import BadSignature, URLSafeTimedSerializer

from roost.errors import ConfigurationError
from roost.http.request import Request
from roost.http.response import Response
from roost.middleware.protocol import Next

_session_var: ContextVar[dict[str, Any] | None] = ContextVar("roost_session", default=None)


def get_session() -> dict[str, Any]:
    """Return the current session dict.

    Raises ``LookupError`` outside a request handled by
    ``SessionMiddleware``.
    """
    session = _session_var.get()
    if session is None:
        msg = "No active session. Configure a secret_key so SessionMiddleware is installed."
        raise LookupError(msg)
    return session


def current_session() -> dict[str, Any]:
    """Like ``get_session()`` but returns a throwaway dict when sessions are off."""
    session = _session_var.get()
    return session if session is not None else {}


@dataclass(frozen=True, slots=True)
class SessionConfig:
    """Session middleware configuration. ``secret_key`` is required."""

    secret_key: str
    cookie_name: str = "roost_session"
    max_age: int = 86400
    path: str = "/"
    secure: bool = False
    httponly: bool = True
    samesite: str = "lax"


class SessionMiddleware:
    """Load the signed session cookie, expose it, write it back.

    Usage::

        server.add_middleware(SessionMiddleware(SessionConfig(secret_key="...")))

        # anywhere during the request:
        get_session()["userid"] = "42"
    """

    __slots__ = ("_config", "_serializer")

    def __init__(self, config: SessionConfig) -> None:
        if not config.secret_key:
            msg = "SessionConfig.secret_key must not be empty."
            raise ConfigurationError(msg)
        self._config = config
        self._serializer = URLSafeTimedSerializer(config.secret_key, salt="roost-session")

    def _load(self, request: Request) -> dict[str, Any]:
        cookie = request.cookies.get(self._config.cookie_name)
        if not cookie:
            return {}
        try:
            data = self._serializer.loads(cookie, max_age=self._config.max_age)
        except BadSignature:
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, response: Response, session: dict[str, Any]) -> Response:
        cfg = self._config
        return response.with_cookie(
            cfg.cookie_name,
            self._serializer.dumps(session),
            max_age=cfg.max_age,
            path=cfg.path,
            secure=cfg.secure,
            httponly=cfg.httponly,
            samesite=cfg.samesite,
        )

    async def __call__(self, request: Request, next: Next) -> Response:
        session = self._load(request)
        token = _session_var.set(session)
        try:
            response = await next(request)
        finally:
            _session_var.reset(token)
        return self._save(response, session)
