"""Page access gates.

A page opts in through keys of its composed environment:

- ``requiresLogin``: no ``userid`` in the session redirects to the
  login URL.
- ``allowedPositions``: the session's ``positions`` must share at least
  one entry with this list, otherwise 403.
- ``usePermissions`` / ``permissions``: with a ``userid`` in the session,
  the user is resolved through the server's ``PermissionLookup`` and
  must hold every listed permission, otherwise 403. The resolved user is
  stored as ``g.permissions`` for models to use. It is not written into
  the session: sessions are a signed JSON cookie and a user object
  doesn't serialize, so read it with ``g.get("permissions")``.

``allowedPositions``, ``permissions`` and the session's ``positions``
accept a single string as well as a list.

``enforce()`` runs the gates in that order and always finishes before
any model is invoked.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from roost._internal.invoke import invoke
from roost.context import g
from roost.errors import Forbidden, InternalError
from roost.http.response import Response, redirect

logger = logging.getLogger("roost.permissions")


@runtime_checkable
class PermissionUser(Protocol):
    """A resolved user that can answer capability checks."""

    def has(self, permission: str) -> bool: ...


@runtime_checkable
class PermissionLookup(Protocol):
    """Resolves a session user id to a ``PermissionUser``.

    ``get_user`` may be sync or async. Returning ``None`` means the user
    couldn't be resolved, which the gate reports as a 500.
    """

    def get_user(self, user_id: Any) -> Any: ...


def _as_list(value: Any) -> list[Any]:
    # A bare string is one entry, not a sequence of characters.
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    return list(value)


def check_login(env: Mapping[str, Any], session: Mapping[str, Any], login_url: str) -> Response | None:
    """Redirect to *login_url* when the page requires a login and there is none."""
    if env.get("requiresLogin") and not session.get("userid"):
        return redirect(login_url)
    return None


def check_positions(env: Mapping[str, Any], session: Mapping[str, Any], path: str) -> None:
    """Raise ``Forbidden`` unless the session holds one of ``allowedPositions``."""
    allowed = _as_list(env.get("allowedPositions"))
    if not allowed:
        return
    positions = _as_list(session.get("positions"))
    if any(position in allowed for position in positions):
        return
    logger.warning("Positions %s are not allowed to access %s", positions, path)
    raise Forbidden(f"Not allowed to access {path}")


async def check_permissions(
    env: Mapping[str, Any],
    session: Mapping[str, Any],
    lookup: PermissionLookup | None,
    path: str,
) -> Any | None:
    """Resolve the session user and verify the page's ``permissions``.

    Returns the resolved user, or ``None`` when the gate doesn't apply
    (no permission keys, or no user id in the session).

    Raises:
        InternalError: No lookup is configured, the lookup failed, or it
            returned no user.
        Forbidden: The user lacks a listed permission. Checking stops at
            the first missing one.
    """
    required = _as_list(env.get("permissions"))
    if not (env.get("usePermissions") or required):
        return None
    user_id = session.get("userid")
    if not user_id:
        return None

    if lookup is None:
        logger.error("Page %s uses permissions but no permission lookup is configured", path)
        raise InternalError("No permission lookup configured")

    try:
        user = await invoke(lookup.get_user, user_id)
    except Exception as exc:
        logger.exception("Permission lookup failed for user %s", user_id)
        raise InternalError("Permission lookup failed") from exc
    if user is None:
        logger.warning("Permission lookup returned no user for %s", user_id)
        raise InternalError("Permission lookup returned no user")

    for permission in required:
        if not user.has(permission):
            logger.warning(
                "User %s does not have permission %s to access %s",
                user_id, permission, path,
            )
            raise Forbidden(f"Missing permission {permission}")

    g.permissions = user
    return user


async def enforce(
    env: Mapping[str, Any],
    session: Mapping[str, Any],
    *,
    login_url: str,
    lookup: PermissionLookup | None,
    path: str,
) -> Response | None:
    """Run every gate. Returns a redirect response, or ``None`` to continue.

    Raises ``Forbidden`` or ``InternalError`` when a gate rejects.
    """
    response = check_login(env, session, login_url)
    if response is not None:
        return response
    check_positions(env, session, path)
    await check_permissions(env, session, lookup, path)
    return None
