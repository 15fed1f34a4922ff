"""Immutable request-side mappings and cookie helpers.

``Headers`` and ``QueryParams`` both parse eagerly into a
``name -> [values]`` dict and expose ``Mapping[str, str]`` (first value
wins) plus ``get_list`` for repeated names. Cookie parsing (read side)
and ``SetCookie`` (write side) live here too.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from urllib.parse import parse_qsl


class _MultiMap(Mapping[str, str]):
    __slots__ = ("_data",)

    _data: dict[str, list[str]]

    def __init__(self, pairs: Iterable[tuple[str, str]] = ()) -> None:
        data: dict[str, list[str]] = {}
        for key, value in pairs:
            data.setdefault(self._key(key), []).append(value)
        object.__setattr__(self, "_data", data)

    def __setattr__(self, name: str, value: object) -> None:
        msg = f"{type(self).__name__} is immutable"
        raise AttributeError(msg)

    @staticmethod
    def _key(key: str) -> str:
        return key

    def __getitem__(self, key: str) -> str:
        return self._data[self._key(key)][0]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self._key(key) in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({dict(self.items())!r})"

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        values = self._data.get(self._key(key))
        return values[0] if values else default

    def get_list(self, key: str) -> list[str]:
        """Every value sent for *key*, in order."""
        return list(self._data.get(self._key(key), ()))


class Headers(_MultiMap):
    """Case-insensitive request headers, decoded from raw ASGI byte pairs."""

    __slots__ = ()

    @staticmethod
    def _key(key: str) -> str:
        return key.lower()

    @classmethod
    def from_raw(cls, raw: Iterable[tuple[bytes, bytes]]) -> Headers:
        return cls((name.decode("latin-1"), value.decode("latin-1")) for name, value in raw)


class QueryParams(_MultiMap):
    """Parsed query string. Blank values are kept."""

    __slots__ = ("_raw",)

    _raw: str

    def __init__(self, query_string: bytes | str = b"") -> None:
        raw = query_string.decode("latin-1") if isinstance(query_string, bytes) else query_string
        super().__init__(parse_qsl(raw, keep_blank_values=True))
        object.__setattr__(self, "_raw", raw)

    @property
    def raw(self) -> str:
        return self._raw


def parse_cookies(header: str | None) -> dict[str, str]:
    """Parse a ``Cookie`` header into a name-value dict."""
    cookies: dict[str, str] = {}
    for pair in (header or "").split(";"):
        key, sep, value = pair.strip().partition("=")
        if sep and key:
            cookies[key.strip()] = value.strip()
    return cookies


@dataclass(frozen=True, slots=True)
class SetCookie:
    """A ``Set-Cookie`` directive attached to a Response."""

    name: str
    value: str
    max_age: int | None = None
    path: str = "/"
    secure: bool = False
    httponly: bool = True
    samesite: str = "lax"

    def to_header_value(self) -> str:
        parts = [f"{self.name}={self.value}"]
        if self.max_age is not None:
            parts.append(f"Max-Age={self.max_age}")
        parts.append(f"Path={self.path}")
        if self.secure:
            parts.append("Secure")
        if self.httponly:
            parts.append("HttpOnly")
        parts.append(f"SameSite={self.samesite}")
        return "; ".join(parts)
