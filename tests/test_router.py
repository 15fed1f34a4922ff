"""Tests for module routing."""

from types import SimpleNamespace

import pytest

from conftest import make_config
from roost.context import ServerContext
from roost.errors import ConfigurationError, NotFound
from roost.http.request import Request
from roost.http.response import Response
from roost.routing import ModuleRouter


class FakeHandler:
    def __init__(self, prefix: str, answer: str | None) -> None:
        self.module = SimpleNamespace(prefix=prefix)
        self.answer = answer
        self.seen: list[str] = []

    async def handle(self, request: Request) -> Response | None:
        self.seen.append(request.path)
        if self.answer is None:
            return None
        return Response(body=self.answer)


def _request(path: str) -> Request:
    return Request.from_asgi({"type": "http", "method": "GET", "path": path, "headers": []})


class TestDispatch:
    async def test_first_answer_wins(self) -> None:
        root = FakeHandler("/", "root")
        shop = FakeHandler("/shop/", "shop")
        router = ModuleRouter([root, shop])
        response = await router.dispatch(_request("/shop/items"))
        assert response.text == "root"
        assert shop.seen == []

    async def test_declining_handler_passes_on(self) -> None:
        root = FakeHandler("/", None)
        shop = FakeHandler("/shop/", "shop")
        router = ModuleRouter([root, shop])
        response = await router.dispatch(_request("/shop/items"))
        assert response.text == "shop"
        assert root.seen == ["/shop/items"]

    async def test_prefix_must_match(self) -> None:
        shop = FakeHandler("/shop/", "shop")
        router = ModuleRouter([shop])
        with pytest.raises(NotFound):
            await router.dispatch(_request("/shopping"))
        assert shop.seen == []

    async def test_all_declined_is_not_found(self) -> None:
        router = ModuleRouter([FakeHandler("/", None)])
        with pytest.raises(NotFound):
            await router.dispatch(_request("/x"))

    def test_candidates_keep_registration_order(self) -> None:
        a, b, c = FakeHandler("/", "a"), FakeHandler("/x/", "b"), FakeHandler("/y/", "c")
        router = ModuleRouter([a, b, c])
        assert list(router.candidates("/x/page")) == [a, b]
        assert len(router) == 3


class TestDiscover:
    def test_builds_modules_in_directory_order(self, site) -> None:
        router = ModuleRouter.discover(site / "modules", ServerContext(config=make_config(site)))
        assert [m.name for m in router.modules] == ["home", "shop"]
        assert [m.prefix for m in router.modules] == ["/", "/shop/"]

    def test_empty_directory_gives_empty_router(self, tmp_path) -> None:
        router = ModuleRouter.discover(tmp_path, ServerContext(config=make_config(tmp_path)))
        assert len(router) == 0

    def test_missing_directory_raises(self, tmp_path) -> None:
        with pytest.raises(ConfigurationError):
            ModuleRouter.discover(tmp_path / "nope", ServerContext(config=make_config(tmp_path)))
