"""Tests for roost.errors and error page rendering."""

import pytest

from conftest import make_config, write
from roost.config import ServerConfig
from roost.context import ServerContext
from roost.errors import (
    ConfigurationError,
    Forbidden,
    GatewayTimeout,
    HTTPError,
    InternalError,
    ModelLoadError,
    NotFound,
    RoostError,
    SidecarError,
)
from roost.http.request import Request
from roost.server.errors import handle_http_error, handle_internal_error, render_error_page
from roost.templating.integration import create_environment


def _request(host: str = "shop.example.com:8080") -> Request:
    return Request.from_asgi({
        "type": "http",
        "method": "GET",
        "path": "/x",
        "headers": [(b"host", host.encode())],
    })


class TestHierarchy:
    @pytest.mark.parametrize(
        "cls", [ConfigurationError, ModelLoadError, SidecarError, HTTPError],
    )
    def test_roost_errors(self, cls) -> None:
        assert issubclass(cls, RoostError)

    @pytest.mark.parametrize(
        ("cls", "status"),
        [(NotFound, 404), (Forbidden, 403), (InternalError, 500), (GatewayTimeout, 504)],
    )
    def test_status_classes(self, cls, status) -> None:
        err = cls()
        assert isinstance(err, HTTPError)
        assert err.status == status


class TestMessages:
    def test_http_error_str(self) -> None:
        assert str(NotFound("no page")) == "404: no page"
        assert str(HTTPError(status=500)) == "500"

    def test_http_error_is_frozen(self) -> None:
        err = HTTPError(status=400)
        with pytest.raises(AttributeError):
            err.status = 500  # type: ignore[misc]

    def test_model_load_error(self) -> None:
        err = ModelLoadError("/items", "SyntaxError: bad")
        assert str(err) == "Could not load model for /items: SyntaxError: bad"
        assert err.path == "/items"

    def test_sidecar_error(self) -> None:
        err = SidecarError("a.json", "Expecting value")
        assert "JSON is formatted incorrectly in a.json" in str(err)


class TestRenderErrorPage:
    async def test_specific_template_first(self, site) -> None:
        context = ServerContext(
            config=make_config(site),
            error_templates=create_environment(site / "views"),
        )
        response = await render_error_page(context, _request(), 404)
        assert response.status == 404
        assert response.text == "<h1>Not here (404)</h1><p>webmaster@shop.example.com</p>"

    async def test_generic_template_fallback(self, site) -> None:
        context = ServerContext(
            config=make_config(site),
            error_templates=create_environment(site / "views"),
        )
        response = await render_error_page(context, _request(), 403)
        assert response.text == "<h1>Error 403</h1><p>Contact webmaster@shop.example.com</p>"

    async def test_plain_text_without_views(self, tmp_path) -> None:
        context = ServerContext(config=ServerConfig(views_dir=tmp_path / "none"))
        response = await render_error_page(context, _request(), 404, "hidden")
        assert response.text == "404 Not Found"
        assert response.content_type.startswith("text/plain")

    async def test_detail_shown_in_debug(self, tmp_path) -> None:
        context = ServerContext(config=ServerConfig(views_dir=tmp_path, debug=True))
        response = await render_error_page(context, _request(), 500, "boom")
        assert response.text == "500 Internal Server Error: boom"

    async def test_broken_template_falls_back(self, tmp_path) -> None:
        views = tmp_path / "views"
        write(views / "error.html", "{% for %}")
        context = ServerContext(
            config=ServerConfig(views_dir=views),
            error_templates=create_environment(views),
        )
        response = await render_error_page(context, _request(), 502)
        assert response.status == 502
        assert response.text == "502 Bad Gateway"

    async def test_http_error_headers_are_kept(self, tmp_path) -> None:
        context = ServerContext(config=ServerConfig(views_dir=tmp_path))
        exc = HTTPError(status=429, headers=(("Retry-After", "5"),))
        response = await handle_http_error(exc, _request(), context)
        assert response.status == 429
        assert response.header("Retry-After") == "5"

    async def test_internal_error_hides_detail_in_production(self, tmp_path) -> None:
        context = ServerContext(config=ServerConfig(views_dir=tmp_path))
        response = await handle_internal_error(RuntimeError("secret"), _request(), context)
        assert response.status == 500
        assert "secret" not in response.text
