"""Tern application class.

Mutable during setup (routes, middleware, error listeners, hooks).
Frozen on first use (``app.run()``, the first ASGI call, or an explicit
``app.pipeline`` access), at which point the route table is compiled and
the middleware list is composed, with route lookup as the last step.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any

from tern._internal.asgi import Receive, Scope, Send
from tern._internal.invoke import invoke
from tern._internal.types import ErrorListener, Handler, Hook
from tern.config import AppConfig
from tern.events import ErrorEvents
from tern.middleware.compose import Pipeline, compose
from tern.middleware.protocol import Middleware
from tern.routing.lookup import RouteLookup
from tern.routing.route import Route
from tern.routing.router import Router
from tern.server.handler import handle_request

logger = logging.getLogger("tern.app")


class App:
    """The tern application.

    Usage::

        app = App()

        async def timing(ctx, next):
            start = time.monotonic()
            await next()
            ctx.set_header("X-Time", f"{time.monotonic() - start:.3f}")

        app.use(timing)

        @app.get("/users/:id")
        async def show(ctx, next):
            ctx.body = {"id": ctx.params["id"]}

        app.run()

    Thread safety:
        Setup is single-threaded. The freeze transition uses a Lock plus a
        double check so exactly one thread composes the pipeline even if
        several server workers deliver their first request at once.
    """

    __slots__ = (
        "_error_events",
        "_freeze_lock",
        "_frozen",
        "_middleware_list",
        "_pipeline",
        "_router",
        "_shutdown_hooks",
        "_startup_hooks",
        "config",
    )

    def __init__(self, config: AppConfig | None = None) -> None:
        self.config: AppConfig = config or AppConfig()
        self._middleware_list: list[Middleware] = []
        self._router = Router()
        self._error_events = ErrorEvents()
        self._startup_hooks: list[Hook] = []
        self._shutdown_hooks: list[Hook] = []
        self._frozen = False
        self._freeze_lock = threading.Lock()

        # Compiled state, set during _freeze()
        self._pipeline: Pipeline | None = None

    # -- Middleware --

    def use(self, fn: Middleware) -> App:
        """Append *fn* to the middleware pipeline. Returns the app for chaining."""
        if not callable(fn):
            msg = "Middleware must be a function"
            raise TypeError(msg)
        self._check_not_frozen()
        self._middleware_list.append(fn)
        return self

    # -- Route registration --

    def add_route(
        self,
        method: str,
        path: str,
        handler: Handler | None = None,
        *,
        template: str | None = None,
    ) -> Any:
        """Register *handler* for *method* and *path*.

        An empty *method* matches every method. Without *handler*, returns
        a decorator::

            @app.add_route("GET", "/")
            async def index(ctx, next):
                ctx.body = "hello"

        Args:
            method: HTTP method, case-insensitive, or ``""`` for any.
            path: Route pattern. Use ``:name`` for path parameters.
            handler: ``(ctx, next)`` callable, sync or async.
            template: Template rendered by the template engine with the
                mapping the handler leaves in ``ctx.body``.
        """

        def decorator(func: Handler) -> Handler:
            if not callable(func):
                msg = "Route handler must be a function"
                raise TypeError(msg)
            self._check_not_frozen()
            self._router.add(Route(method, path, func, template))
            return func

        if handler is None:
            return decorator
        return decorator(handler)

    def all(self, path: str, handler: Handler | None = None, *, template: str | None = None) -> Any:
        """Register a route that matches any HTTP method."""
        return self.add_route("", path, handler, template=template)

    def get(self, path: str, handler: Handler | None = None, *, template: str | None = None) -> Any:
        """Register a GET route."""
        return self.add_route("GET", path, handler, template=template)

    def post(self, path: str, handler: Handler | None = None, *, template: str | None = None) -> Any:
        """Register a POST route."""
        return self.add_route("POST", path, handler, template=template)

    def put(self, path: str, handler: Handler | None = None, *, template: str | None = None) -> Any:
        """Register a PUT route."""
        return self.add_route("PUT", path, handler, template=template)

    def delete(
        self, path: str, handler: Handler | None = None, *, template: str | None = None
    ) -> Any:
        """Register a DELETE route."""
        return self.add_route("DELETE", path, handler, template=template)

    def head(self, path: str, handler: Handler | None = None, *, template: str | None = None) -> Any:
        """Register a HEAD route."""
        return self.add_route("HEAD", path, handler, template=template)

    def options(
        self, path: str, handler: Handler | None = None, *, template: str | None = None
    ) -> Any:
        """Register an OPTIONS route."""
        return self.add_route("OPTIONS", path, handler, template=template)

    def patch(
        self, path: str, handler: Handler | None = None, *, template: str | None = None
    ) -> Any:
        """Register a PATCH route."""
        return self.add_route("PATCH", path, handler, template=template)

    # -- Convenience middleware --

    def serve(self, prefix: str | None = None, directory: str | Path | None = None) -> App:
        """Serve static files under *prefix* from *directory*.

        Defaults come from ``config.static_url`` and ``config.static_dir``.
        """
        from tern.middleware.static import StaticFiles

        return self.use(
            StaticFiles(
                directory=directory if directory is not None else self.config.static_dir,
                prefix=prefix if prefix is not None else self.config.static_url,
            )
        )

    def engine(self, **options: Any) -> App:
        """Install the kida template engine.

        Keyword arguments override ``TemplateOptions`` fields; the rest
        come from the app config (``template_dir``, ``autoescape``, ...).
        """
        from tern.middleware.engine import TemplateEngine, TemplateOptions

        settings: dict[str, Any] = {
            "directory": self.config.template_dir,
            "autoescape": self.config.autoescape,
            "trim_blocks": self.config.trim_blocks,
            "lstrip_blocks": self.config.lstrip_blocks,
            "auto_reload": self.config.debug,
        }
        settings.update(options)
        return self.use(TemplateEngine(TemplateOptions(**settings)))

    # -- Error listeners --

    def on_error(self, listener: ErrorListener) -> ErrorListener:
        """Register an error listener via decorator.

        Listeners receive ``(exc, ctx)`` for every request that fails.
        While any listener is registered, the app stops logging those
        errors itself.
        """
        return self._error_events.subscribe(listener)

    @property
    def error_events(self) -> ErrorEvents:
        """The app's error event channel."""
        return self._error_events

    # -- Lifecycle hooks --

    def on_startup(self, func: Hook) -> Hook:
        """Register a sync or async hook run during ASGI lifespan startup."""
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Hook) -> Hook:
        """Register a sync or async hook run during ASGI lifespan shutdown."""
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    # -- Introspection --

    @property
    def router(self) -> Router:
        return self._router

    @property
    def middleware(self) -> tuple[Callable[..., Any], ...]:
        """Registered middleware, not including route lookup."""
        return tuple(self._middleware_list)

    @property
    def pipeline(self) -> Pipeline:
        """The composed pipeline. Freezes the app on first access."""
        self._ensure_frozen()
        assert self._pipeline is not None
        return self._pipeline

    @property
    def frozen(self) -> bool:
        return self._frozen

    # -- Server --

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Freeze the app and serve it with pounce.

        Args:
            host: Override ``config.host``.
            port: Override ``config.port`` (default 3000).
        """
        from tern.server.dev import run_dev_server

        self._ensure_frozen()

        root = logging.getLogger()
        if not root.handlers:
            logging.basicConfig(level=self.config.log_level.upper())

        run_dev_server(
            self,
            host if host is not None else self.config.host,
            port if port is not None else self.config.port,
            reload=self.config.debug,
            reload_include=self.config.reload_include,
            reload_dirs=self.config.reload_dirs,
        )

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        await handle_request(
            scope,
            receive,
            send,
            pipeline=self.pipeline,
            events=self._error_events,
            debug=self.config.debug,
        )

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        """Run the ASGI lifespan protocol.

        Freezes the app before the server accepts requests, then runs the
        startup and shutdown hooks in registration order.
        """
        self._ensure_frozen()

        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    for hook in self._startup_hooks:
                        await invoke(hook)
                except Exception as exc:
                    logger.exception("Startup hook failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                for hook in self._shutdown_hooks:
                    await invoke(hook)
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Compile routes and compose the pipeline.

        MUST only be called while holding _freeze_lock.
        """
        self._router.compile()
        self._pipeline = compose([*self._middleware_list, RouteLookup(self._router)])
        self._frozen = True
        logger.debug(
            "App frozen: %d middleware, %d routes",
            len(self._middleware_list),
            len(self._router),
        )

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started serving requests. "
                "Register routes and middleware before calling app.run()."
            )
            raise RuntimeError(msg)
