"""Middleware protocol and Next type alias.

A middleware is any callable matching::

    async def my_mw(ctx: Context, next: Next) -> None: ...

No base class required. The framework checks the shape, not the lineage.
Plain ``def`` middleware works too; if it returns an awaitable, the
pipeline awaits it.

Code before ``await next()`` runs on the way in, code after it runs on
the way out, once everything downstream has finished. A middleware that
never calls ``next()`` ends the chain at that point.
"""

from collections.abc import Awaitable, Callable
from typing import Protocol, TypeAlias

from tern.context import Context

# Continue to the next middleware in the chain
Next: TypeAlias = Callable[[], Awaitable[None]]


class Middleware(Protocol):
    """Protocol for tern middleware.

    Accepts both functions and callable objects::

        # Function middleware
        async def timing(ctx: Context, next: Next) -> None:
            start = time.monotonic()
            await next()
            ctx.set_header("X-Time", f"{time.monotonic() - start:.3f}")

        # Class middleware
        class RequireToken:
            async def __call__(self, ctx: Context, next: Next) -> None:
                if "authorization" not in ctx.request.headers:
                    ctx.throw(401, "Unauthorized")
                await next()
    """

    def __call__(self, ctx: Context, next: Next, /) -> Awaitable[None] | None: ...
