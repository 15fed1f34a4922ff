"""Per-module redirect table.

Loaded once from ``<models>/redirects.json``: a JSON object mapping a
module-relative path to either an absolute URL or another
module-relative path. Read-only after startup.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from pathlib import Path
from types import MappingProxyType

from roost.modules.environment import read_json_file

REDIRECTS_FILE = "redirects.json"
_ABSOLUTE_SCHEMES = ("http://", "https://")


class RedirectTable(Mapping[str, str]):
    """Immutable ``source path -> target`` mapping for one module."""

    __slots__ = ("_entries", "_prefix")

    def __init__(self, entries: Mapping[str, str], prefix: str) -> None:
        self._entries = MappingProxyType(dict(entries))
        self._prefix = prefix

    @classmethod
    def load(cls, models_dir: Path, prefix: str) -> RedirectTable:
        """Load the module's sidecar; a missing or malformed file yields an empty table."""
        data = read_json_file(models_dir / REDIRECTS_FILE) or {}
        entries = {str(k): v for k, v in data.items() if isinstance(v, str) and v}
        return cls(entries, prefix)

    def __getitem__(self, path: str) -> str:
        return self._entries[path]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def resolve(self, path: str) -> str | None:
        """Location to redirect *path* to, or ``None`` if it isn't listed.

        Absolute URLs are returned verbatim; anything else is prefixed
        with the module prefix (one separator between them, so a root
        module never emits a protocol-relative ``//target``).
        """
        target = self._entries.get(path)
        if target is None:
            return None
        if target.startswith(_ABSOLUTE_SCHEMES):
            return target
        return self._prefix + target.lstrip("/")
