"""Shared fixtures: an on-disk site with two modules.

::

    site/
      defaultEnv.json
      views/error.html, views/error/404.html
      modules/
        home/   -> "/"      (index view, static img/)
        shop/   -> "/shop/" (views, models, static css/ js/, redirects)
"""

import json
import textwrap
from pathlib import Path

import pytest

from roost.app import Server
from roost.config import ServerConfig
from roost.middleware.sessions import get_session


def write(path: Path, content: str | bytes) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        path.write_text(textwrap.dedent(content), encoding="utf-8")
    return path


def write_json(path: Path, data: object) -> Path:
    return write(path, json.dumps(data))


@pytest.fixture
def site(tmp_path: Path) -> Path:
    root = tmp_path / "site"

    write_json(root / "defaultEnv.json", {"title": "Roost", "css": ["/base.css"]})
    write(root / "views" / "error.html", "<h1>Error {{ code }}</h1><p>Contact {{ email }}</p>")
    write(root / "views" / "error" / "404.html", "<h1>Not here ({{ code }})</h1><p>{{ email }}</p>")

    home = root / "modules" / "home"
    write_json(home / "module.json", {"path": "/"})
    write(home / "views" / "index.html", "<h1>Home</h1>")
    write(home / "static" / "img" / "logo.svg", "<svg></svg>")

    shop = root / "modules" / "shop"
    write_json(shop / "module.json", {"path": "/shop/"})
    write_json(shop / "models" / "env.json", {"shopName": "Corner", "css": ["/shop/shop.css"]})
    write_json(shop / "models" / "redirects.json", {
        "/old": "/items/",
        "/docs": "https://docs.example.com/shop",
    })
    write(
        shop / "views" / "items" / "index.html",
        "{{ title }}|{{ shopName }}|{{ baseurl }}|{% for c in css %}{{ c }};{% end %}|{{ mainjs }}",
    )
    write(shop / "views" / "catalog" / "index.html", "Catalog")
    write(shop / "static" / "css" / "site.css", "body { color: red; }")
    write(shop / "static" / "css" / "items" / "index.css", "ul {}")
    write(shop / "static" / "js" / "items" / "index.js", "console.log('items');")
    write(shop / "models" / "post" / "order" / "model.py", """\
        class Model:
            async def render(self, request):
                return {"raw": '{"ok": true}', "contentType": "application/json"}
    """)
    return root


def make_config(site: Path, **overrides: object) -> ServerConfig:
    return ServerConfig(
        modules_dir=site / "modules",
        default_env_file=site / "defaultEnv.json",
        views_dir=site / "views",
        **overrides,
    )


def make_server(site: Path, **overrides: object) -> Server:
    return Server(make_config(site, **overrides))


def login_as(userid: str, positions: tuple[str, ...] = ()):
    """Middleware that puts a user into the session before dispatch."""

    async def middleware(request, next):
        session = get_session()
        session["userid"] = userid
        session["positions"] = list(positions)
        return await next(request)

    return middleware


class FakeUser:
    def __init__(self, name: str, permissions: set[str]) -> None:
        self.name = name
        self.permissions = permissions

    def has(self, permission: str) -> bool:
        return permission in self.permissions


class FakeLookup:
    def __init__(self, users: dict[str, FakeUser]) -> None:
        self.users = users
        self.calls: list[str] = []

    async def get_user(self, user_id: str) -> FakeUser | None:
        self.calls.append(user_id)
        return self.users.get(user_id)
