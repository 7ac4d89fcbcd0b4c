"""Template engine middleware, backed by kida.

Registering the engine gives every downstream middleware and handler a
``ctx.render(name, **data)`` helper. It also renders routes registered
with a template name: the handler sets ``ctx.body`` to a mapping, and on
the way out the engine replaces it with the rendered template::

    app.engine(directory="templates")

    @app.get("/users/:id", template="user.html")
    async def show(ctx, next):
        ctx.body = {"user": await load_user(ctx.params["id"])}

kida is an optional dependency (``pip install tern[templates]``).
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from tern.context import Context
from tern.errors import ConfigurationError
from tern.middleware.protocol import Next


@dataclass(frozen=True, slots=True)
class TemplateOptions:
    """Template engine settings. Immutable after creation."""

    directory: str | Path = "templates"
    autoescape: bool = True
    trim_blocks: bool = True
    lstrip_blocks: bool = True
    auto_reload: bool = False
    filters: Mapping[str, Callable[..., Any]] = field(default_factory=dict)
    globals: Mapping[str, Any] = field(default_factory=dict)


def create_environment(options: TemplateOptions) -> Any:
    """Create a kida ``Environment`` from *options*.

    Raises ``ConfigurationError`` if kida is not installed.
    """
    try:
        from kida import Environment, FileSystemLoader
    except ImportError:
        msg = (
            "The template engine requires the 'kida' package. "
            "Install it with: pip install tern[templates]"
        )
        raise ConfigurationError(msg) from None

    env = Environment(
        loader=FileSystemLoader(str(options.directory)),
        autoescape=options.autoescape,
        auto_reload=options.auto_reload,
        trim_blocks=options.trim_blocks,
        lstrip_blocks=options.lstrip_blocks,
    )
    if options.filters:
        env.update_filters(dict(options.filters))
    for name, value in options.globals.items():
        env.add_global(name, value)
    return env


class TemplateEngine:
    """Middleware that installs template rendering on the context.

    The kida environment is built once, when the middleware is created,
    and shared read-only by every request.
    """

    __slots__ = ("_env", "_options")

    def __init__(self, options: TemplateOptions | None = None) -> None:
        self._options = options or TemplateOptions()
        self._env = create_environment(self._options)

    @property
    def environment(self) -> Any:
        return self._env

    def render(self, name: str, data: Mapping[str, Any]) -> str:
        """Render template *name* with *data* as its context."""
        return self._env.get_template(name).render(dict(data))

    async def __call__(self, ctx: Context, next: Next) -> None:
        ctx.renderer = self.render
        await next()

        if ctx.template is None:
            return
        body = ctx.body
        if body is not None and not isinstance(body, Mapping):
            return
        data = {"params": ctx.params, **(body or {})}
        ctx.body = self.render(ctx.template, data)
        ctx.content_type = "text/html; charset=utf-8"
