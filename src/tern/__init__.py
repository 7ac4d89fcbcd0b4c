"""Tern — a minimal async application shell.

Chains middleware into one onion-ordered pipeline and dispatches each
request to the first route matching its method and path.

Basic usage::

    from tern import App

    app = App()

    async def logger(ctx, next):
        await next()
        print(ctx.method, ctx.path, ctx.status)

    app.use(logger)

    @app.get("/users/:id")
    async def show(ctx, next):
        ctx.body = {"id": ctx.params["id"]}

    app.run()  # http://127.0.0.1:3000

Templates (``pip install tern[templates]``)::

    app.engine(directory="templates")

    @app.get("/", template="index.html")
    async def index(ctx, next):
        ctx.body = {"title": "Home"}
"""

__version__ = "0.1.0"
__all__ = [
    "App",
    "AppConfig",
    "ConfigurationError",
    "Context",
    "ErrorEvents",
    "HTTPError",
    "Middleware",
    "MultipleNextError",
    "Next",
    "Pipeline",
    "Request",
    "Response",
    "Route",
    "Router",
    "TernError",
    "compose",
    "get_context",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import tern`` fast while providing a clean top-level API.
    """
    if name == "App":
        from tern.app import App

        return App

    if name == "AppConfig":
        from tern.config import AppConfig

        return AppConfig

    if name in ("Context", "get_context"):
        from tern import context as _ctx

        return getattr(_ctx, name)

    if name == "ErrorEvents":
        from tern.events import ErrorEvents

        return ErrorEvents

    if name == "Request":
        from tern.http.request import Request

        return Request

    if name == "Response":
        from tern.http.response import Response

        return Response

    if name in ("Middleware", "Next"):
        from tern.middleware import protocol as _mw

        return getattr(_mw, name)

    if name == "Pipeline":
        from tern.middleware.compose import Pipeline

        return Pipeline

    if name == "compose":
        from tern.middleware.compose import compose

        return compose

    if name == "Route":
        from tern.routing.route import Route

        return Route

    if name == "Router":
        from tern.routing.router import Router

        return Router

    if name in (
        "ConfigurationError",
        "HTTPError",
        "MultipleNextError",
        "TernError",
    ):
        from tern import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
