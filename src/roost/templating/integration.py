"""Kida environment setup.

Every module gets its own kida Environment rooted at its views
directory; the server gets one more for its error pages. Templates are
plain ``.html`` files addressed by the page path (``/items/index`` ->
``items/index.html``).
"""

from pathlib import Path
from typing import Any

from kida import Environment, FileSystemLoader

TEMPLATE_SUFFIX = ".html"


def create_environment(directory: str | Path, *, debug: bool = False) -> Environment:
    """Create a kida Environment loading templates from *directory*.

    In development (*debug*) templates are re-read when they change.
    """
    return Environment(
        loader=FileSystemLoader(str(directory)),
        autoescape=True,
        auto_reload=debug,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def template_name(path: str) -> str:
    """Template name for a module-relative page path."""
    return path.lstrip("/") + TEMPLATE_SUFFIX


def render_template(env: Environment, name: str, context: dict[str, Any]) -> str:
    """Render template *name* with *context* to a string."""
    template = env.get_template(name)
    return template.render(context)
