"""Development server.

Starts a pounce ASGI server in single-worker mode with the live roost
Server object. Models and views reload in-process (model watcher, kida
``auto_reload``), so the process itself is never restarted.
"""

from __future__ import annotations


def run_dev_server(app: object, host: str, port: int) -> None:
    """Start a pounce dev server with the given roost Server.

    Args:
        app: ASGI callable (roost Server instance).
        host: Bind host address.
        port: Bind port number.
    """
    from pounce.config import ServerConfig
    from pounce.server import Server

    config = ServerConfig(
        host=host,
        port=port,
        workers=1,
    )
    Server(config, app).run()
