"""Server configuration.

ServerConfig is a frozen dataclass, immutable after creation and read by
every layer through the ``ServerContext``. It can be built in code or
loaded from a flat JSON file whose keys are field names.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from roost.errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class ServerConfig:
    """Server configuration. Immutable after creation.

    Override what you need::

        config = ServerConfig(debug=True, port=3000, secret_key="s3cr3t")
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False  # development mode: template auto-reload, model watcher
    workers: int = 0  # 0 = auto-detect (production only)

    # Layout
    modules_dir: str | Path = "modules"
    default_env_file: str | Path = "defaultEnv.json"
    views_dir: str | Path = "views"  # server-level views (error pages)

    # Sessions
    secret_key: str = ""
    session_cookie: str = "roost_session"
    session_max_age: int = 86400

    # Routing
    login_url: str = "/login"
    static_marker: str = "/static"
    post_namespace: str = "/post/"

    # Models
    model_timeout: float | None = None  # None = wait forever
    reload_interval: float = 1.0

    # Production passthrough
    log_level: str = "info"
    log_format: str = "text"
    request_timeout: float = 30.0
    ssl_certfile: str | None = None
    ssl_keyfile: str | None = None

    @classmethod
    def from_file(cls, path: str | Path, **overrides: Any) -> ServerConfig:
        """Load a config from a JSON object of field names.

        Keyword *overrides* win over file values (the CLI passes its
        flags through here).

        Raises:
            ConfigurationError: If the file can't be read, isn't a JSON
                object, or names a field that doesn't exist.
        """
        try:
            raw = json.loads(Path(path).read_text(encoding="utf-8"))
        except OSError as exc:
            msg = f"Cannot read config file {path}: {exc}"
            raise ConfigurationError(msg) from exc
        except json.JSONDecodeError as exc:
            msg = f"Config file {path} is not valid JSON: {exc}"
            raise ConfigurationError(msg) from exc

        if not isinstance(raw, dict):
            msg = f"Config file {path} must contain a JSON object"
            raise ConfigurationError(msg)

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(raw) - known)
        if unknown:
            msg = f"Unknown config keys in {path}: {', '.join(unknown)}"
            raise ConfigurationError(msg)

        values = {**raw, **{k: v for k, v in overrides.items() if v is not None}}
        return cls(**values)
