"""Middleware protocol and Next type alias.

A middleware is any callable matching::

    async def my_mw(request: Request, next: Next) -> Response: ...

No base class required. Middleware wraps the module router, so it sees
every request before a module does (sessions, request logging, test
fixtures that log a user in).
"""

from collections.abc import Awaitable, Callable
from typing import Protocol, TypeAlias

from roost.http.request import Request
from roost.http.response import Response

Next: TypeAlias = Callable[[Request], Awaitable[Response]]


class Middleware(Protocol):
    """Protocol for roost middleware (functions or callable objects)."""

    async def __call__(self, request: Request, next: Next) -> Response: ...
