"""Production server: multi-worker pounce."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from roost.app import Server as RoostServer


def run_production_server(
    app: RoostServer,
    host: str = "0.0.0.0",
    port: int = 8000,
    workers: int = 0,  # 0 = auto-detect from CPU count
    *,
    log_format: str = "text",
    log_level: str = "info",
    request_timeout: float = 30.0,
    ssl_certfile: str | None = None,
    ssl_keyfile: str | None = None,
) -> None:
    """Run a roost Server in production mode.

    Args:
        app: Roost Server instance.
        host: Bind address (default: all interfaces).
        port: Bind port.
        workers: Worker count (0 = auto-detect from CPU count).
        log_format: Log format ("json" or "text").
        log_level: Log level (debug, info, warning, error, critical).
        request_timeout: Individual request timeout (seconds).
        ssl_certfile: Path to TLS certificate file (enables HTTPS).
        ssl_keyfile: Path to TLS private key file.
    """
    from pounce.config import ServerConfig
    from pounce.server import Server

    config = ServerConfig(
        host=host,
        port=port,
        workers=workers,
        log_format=log_format,
        log_level=log_level,
        request_timeout=request_timeout,
        ssl_certfile=ssl_certfile,
        ssl_keyfile=ssl_keyfile,
    )
    Server(config, app).run()
