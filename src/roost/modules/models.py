"""Model protocols for dynamic per-path handlers.

A model is bound to one module-relative path (its file's directory under
the models root) and contributes data to that page's environment. The
only required method is ``render``; the other capabilities are separate
protocols, checked with ``isinstance`` against these runtime-checkable
interfaces instead of probing attributes ad hoc.

A model file exports a ``Model`` class constructible with no arguments::

    # modules/shop/models/items/index/model.py
    class Model:
        async def render(self, request):
            return {"items": await load_items()}

``render`` may be sync or async and returns a mapping merged into the
environment (``None`` counts as empty). Keys with special meaning:

- ``errcode``: respond with this status' error page instead of rendering.
- ``raw``: for ``/post/`` endpoints, the verbatim response body.
- ``contentType``: content type for ``raw``.
"""

from collections.abc import Awaitable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from roost.http.request import Request
from roost.http.response import Response

ModelOutput = Mapping[str, Any] | None


@dataclass(frozen=True, slots=True)
class ModelParams:
    """URL context handed to ``set_params`` before rendering.

    Attributes:
        base_url: ``scheme://host`` plus the module prefix.
        full_url: ``base_url`` plus the page path.
    """

    base_url: str
    full_url: str


@runtime_checkable
class Model(Protocol):
    """Required capability: produce a partial environment."""

    def render(self, request: Request) -> ModelOutput | Awaitable[ModelOutput]: ...


@runtime_checkable
class HasSetParams(Protocol):
    """Receives URL context before ``render``."""

    def set_params(self, params: ModelParams) -> None: ...


@runtime_checkable
class HasRenderAfter(Protocol):
    """Post-processes the rendered page instead of the default send."""

    def render_after(self, html: str, response: Response) -> Response | Awaitable[Response]: ...


@runtime_checkable
class HasScheduleInit(Protocol):
    """One-time setup hook: at server startup, or right after a development reload."""

    def on_schedule_init(self) -> None | Awaitable[None]: ...
