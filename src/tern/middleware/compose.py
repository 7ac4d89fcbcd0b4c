"""Middleware composition — the onion pipeline.

``compose()`` turns an ordered sequence of middleware into a single
``Pipeline``. Calling the pipeline with a context runs the middleware in
registration order, each one receiving a ``next`` that runs the rest of
the chain::

    pipeline = compose([logger, auth, router])
    await pipeline(ctx)

Pre-``next`` code runs outer to inner; post-``next`` code runs inner to
outer, after the whole downstream chain (including its own post-``next``
code) has finished. Exceptions are not caught here: they propagate out
of every enclosing ``await next()`` and out of ``pipeline(ctx)`` itself.

Each call to the pipeline gets its own dispatch state, so concurrent
requests never share an index counter.
"""

from collections.abc import Awaitable, Callable, Iterable
from typing import Any

from tern._internal.invoke import invoke
from tern.context import Context
from tern.errors import MultipleNextError


class _Dispatch:
    """Dispatch state for one pipeline invocation.

    ``index`` is the highest position dispatched so far. Asking for a
    position at or below it means some middleware called ``next()``
    twice.
    """

    __slots__ = ("ctx", "final", "index", "middleware")

    def __init__(
        self,
        middleware: tuple[Callable[..., Any], ...],
        ctx: Context,
        final: Callable[..., Any] | None,
    ) -> None:
        self.middleware = middleware
        self.ctx = ctx
        self.final = final
        self.index = -1

    async def __call__(self, i: int) -> None:
        if i <= self.index:
            raise MultipleNextError()
        self.index = i

        if i == len(self.middleware):
            fn = self.final
        else:
            fn = self.middleware[i]
        if fn is None:
            return

        async def step() -> None:
            await self(i + 1)

        await invoke(fn, self.ctx, step)


class Pipeline:
    """A composed, immutable middleware chain.

    Holds a snapshot of the middleware taken at composition time; later
    changes to the source list are not seen.
    """

    __slots__ = ("_middleware",)

    def __init__(self, middleware: tuple[Callable[..., Any], ...]) -> None:
        self._middleware = middleware

    @property
    def middleware(self) -> tuple[Callable[..., Any], ...]:
        """The middleware this pipeline runs, in order."""
        return self._middleware

    def __len__(self) -> int:
        return len(self._middleware)

    def __call__(
        self,
        ctx: Context,
        final: Callable[..., Any] | None = None,
    ) -> Awaitable[None]:
        """Run the chain for *ctx*.

        *final*, when given, runs as one extra step after the last
        middleware, with the same ``(ctx, next)`` signature.
        """
        return _Dispatch(self._middleware, ctx, final)(0)

    def __repr__(self) -> str:
        names = ", ".join(getattr(mw, "__name__", type(mw).__name__) for mw in self._middleware)
        return f"Pipeline([{names}])"


def compose(middleware: Iterable[Callable[..., Any]]) -> Pipeline:
    """Compose *middleware* into a single ``Pipeline``.

    Raises ``TypeError`` if any entry is not callable.
    """
    chain = tuple(middleware)
    for mw in chain:
        if not callable(mw):
            msg = f"Middleware must be callable, got {type(mw).__name__}"
            raise TypeError(msg)
    return Pipeline(chain)
