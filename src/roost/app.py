"""Roost server class.

Mutable during setup (middleware, lifecycle hooks). Frozen at runtime
when server.run() or __call__() is first invoked: freezing discovers
the modules, loads their models and builds the ServerContext shared by
every module handler.
"""

import asyncio
import logging
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any

import anyio

from roost._internal.asgi import Receive, Scope, Send
from roost._internal.invoke import invoke
from roost.config import ServerConfig
from roost.context import ServerContext
from roost.middleware.protocol import Middleware
from roost.middleware.sessions import SessionConfig, SessionMiddleware
from roost.modules.environment import load_default_env
from roost.modules.module import Module
from roost.modules.permissions import PermissionLookup
from roost.modules.watcher import ModelWatcher
from roost.routing.router import ModuleRouter
from roost.server.handler import handle_request
from roost.templating.integration import create_environment

logger = logging.getLogger("roost.server")


def _log_loop_exception(loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
    exc = context.get("exception")
    message = context.get("message", "Unhandled exception in event loop")
    if exc is not None:
        logger.error("An uncaught error occurred: %s", message, exc_info=exc)
    else:
        logger.error("An uncaught error occurred: %s", message)


class Server:
    """The roost server.

    Mutable during setup (middleware, hooks). Frozen at runtime when
    ``server.run()`` or ``__call__()`` is first invoked.

    Usage::

        server = Server(ServerConfig(modules_dir="modules", secret_key="..."))
        server.run()

    Thread safety:
        The freeze transition uses a Lock + double-check so exactly one
        thread discovers modules, even when several ASGI workers call
        ``__call__()`` concurrently on the first request.
    """

    __slots__ = (
        "_context",
        "_freeze_lock",
        "_frozen",
        "_middleware",
        "_middleware_list",
        "_permissions",
        "_router",
        "_shutdown_hooks",
        "_startup_hooks",
        "config",
    )

    def __init__(
        self,
        config: ServerConfig | None = None,
        *,
        permissions: PermissionLookup | None = None,
    ) -> None:
        self.config: ServerConfig = config or ServerConfig()
        self._permissions = permissions
        self._middleware_list: list[Middleware] = []
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()

        # Compiled state, set during _freeze()
        self._router: ModuleRouter | None = None
        self._context: ServerContext | None = None
        self._middleware: tuple[Callable[..., Any], ...] = ()

    # -- Setup --

    def add_middleware(self, middleware: Middleware) -> None:
        """Add a middleware to the pipeline (after the session middleware)."""
        self._check_not_frozen()
        self._middleware_list.append(middleware)

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync startup hook via decorator.

        Hooks run in registration order during ASGI lifespan startup,
        after every model's ``on_schedule_init``.
        """
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync shutdown hook via decorator."""
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    # -- Introspection --

    @property
    def modules(self) -> tuple[Module, ...]:
        """Discovered modules in dispatch order. Freezes the server."""
        self._ensure_frozen()
        assert self._router is not None
        return self._router.modules

    @property
    def context(self) -> ServerContext:
        self._ensure_frozen()
        assert self._context is not None
        return self._context

    # -- Running --

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Start the server (dev or production based on config.debug).

        - **Development mode** (debug=True): single worker, model watcher,
          template auto-reload.
        - **Production mode** (debug=False): multi-worker.
        """
        self._ensure_frozen()

        _host = host or self.config.host
        _port = port or self.config.port

        if self.config.debug:
            from roost.server.dev import run_dev_server

            run_dev_server(self, _host, _port)
        else:
            from roost.server.production import run_production_server

            run_production_server(
                self,
                host=_host,
                port=_port,
                workers=self.config.workers,
                log_format=self.config.log_format,
                log_level=self.config.log_level,
                request_timeout=self.config.request_timeout,
                ssl_certfile=self.config.ssl_certfile,
                ssl_keyfile=self.config.ssl_keyfile,
            )

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(scope, receive, send)
            return

        self._ensure_frozen()

        assert self._router is not None
        assert self._context is not None

        await handle_request(
            scope,
            receive,
            send,
            router=self._router,
            middleware=self._middleware,
            context=self._context,
        )

    async def _handle_lifespan(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Run the ASGI lifespan protocol.

        Startup installs the loop exception handler, runs every model's
        ``on_schedule_init`` and the startup hooks, then (in development)
        starts the model watcher. Shutdown stops the watcher and runs the
        shutdown hooks.
        """
        try:
            self._ensure_frozen()
        except Exception as exc:
            logger.exception("Server failed to start")
            await receive()
            await send({"type": "lifespan.startup.failed", "message": str(exc)})
            return

        assert self._router is not None
        watcher_scope = anyio.CancelScope()

        async def _watch(watcher: ModelWatcher) -> None:
            with watcher_scope:
                await watcher.run()

        async with anyio.create_task_group() as tg:
            while True:
                message = await receive()
                msg_type = message["type"]

                if msg_type == "lifespan.startup":
                    try:
                        self._install_exception_handler()
                        for module in self._router.modules:
                            await module.registry.run_schedule_init()
                        for hook in self._startup_hooks:
                            await invoke(hook)
                    except Exception as exc:
                        logger.exception("Startup hook failed")
                        await send({"type": "lifespan.startup.failed", "message": str(exc)})
                        return

                    if self.config.debug:
                        registries = [m.registry for m in self._router.modules]
                        tg.start_soon(
                            _watch,
                            ModelWatcher(registries, interval=self.config.reload_interval),
                        )
                    await send({"type": "lifespan.startup.complete"})

                elif msg_type == "lifespan.shutdown":
                    watcher_scope.cancel()
                    for hook in self._shutdown_hooks:
                        await invoke(hook)
                    await send({"type": "lifespan.shutdown.complete"})
                    return

    @staticmethod
    def _install_exception_handler() -> None:
        # Background failures are logged; the process keeps serving.
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        loop.set_exception_handler(_log_loop_exception)

    # -- Internal --

    def _ensure_frozen(self) -> None:
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Build the runtime state. MUST only be called while holding _freeze_lock."""
        config = self.config

        default_env = load_default_env(Path(config.default_env_file))
        views_dir = Path(config.views_dir)
        error_templates = (
            create_environment(views_dir, debug=config.debug) if views_dir.is_dir() else None
        )
        context = ServerContext(
            config=config,
            default_env=default_env,
            error_templates=error_templates,
            permissions=self._permissions,
        )

        router = ModuleRouter.discover(config.modules_dir, context)

        middleware: list[Callable[..., Any]] = []
        if config.secret_key:
            middleware.append(SessionMiddleware(SessionConfig(
                secret_key=config.secret_key,
                cookie_name=config.session_cookie,
                max_age=config.session_max_age,
            )))
        middleware.extend(self._middleware_list)

        self._context = context
        self._router = router
        self._middleware = tuple(middleware)
        self._frozen = True

        logger.info("Roost ready: %d modules from %s", len(router), config.modules_dir)

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the server after it has started serving requests. "
                "Add middleware and hooks before calling server.run()."
            )
            raise RuntimeError(msg)
