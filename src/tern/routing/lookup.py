"""Route-lookup middleware.

Always the last entry in the app's pipeline. It resolves the request
against the route table and runs the matched handler as the terminal
step of the chain.
"""

import logging

from tern._internal.invoke import invoke
from tern.context import Context
from tern.middleware.protocol import Next
from tern.routing.router import Router

logger = logging.getLogger("tern.server")


async def _terminal() -> None:
    """The ``next`` handed to route handlers: nothing runs after them."""


class RouteLookup:
    """Middleware that dispatches to the route matching the request.

    On a match it records ``ctx.handler``, ``ctx.params``, and
    ``ctx.template``, lets any downstream steps observe them via
    ``next()``, then calls the handler with ``(ctx, next)``. The
    handler's ``next`` is a no-op.

    On a miss it sets a 404 on the context and returns normally. No
    handler runs and nothing is raised.
    """

    __slots__ = ("_router",)

    def __init__(self, router: Router) -> None:
        self._router = router

    async def __call__(self, ctx: Context, next: Next) -> None:
        match = self._router.resolve(ctx.method, ctx.path)
        if match is None:
            logger.debug("404 %s %s — no matching route", ctx.method, ctx.path)
            ctx.status = 404
            ctx.body = "Not Found"
            return

        ctx.handler = match.handler
        ctx.params = match.params
        ctx.template = match.route.template

        await next()
        await invoke(match.handler, ctx, _terminal)
