"""ASGI handler — the per-request dispatcher.

The only component that turns a raw ASGI ``http`` scope into a
``Context``. Runs the composed pipeline, routes any escaped exception to
the error policy, and always finalizes the context exactly once.
"""

from contextvars import Token

from tern._internal.asgi import Receive, Scope, Send
from tern.context import Context, context_var
from tern.events import ErrorEvents
from tern.http.request import Request
from tern.middleware.compose import Pipeline
from tern.server.errors import handle_error


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    pipeline: Pipeline,
    events: ErrorEvents,
    debug: bool = False,
) -> Context | None:
    """Process a single HTTP request through the full pipeline.

    Returns the finalized context, or ``None`` for non-HTTP scopes.
    """
    if scope["type"] != "http":
        return None

    ctx = Context(Request.from_asgi(scope, receive), send)
    token: Token[Context] = context_var.set(ctx)

    try:
        await pipeline(ctx)
    except Exception as exc:
        await handle_error(exc, ctx, events, debug=debug)
    finally:
        try:
            await _finalize(ctx, events, debug=debug)
        finally:
            context_var.reset(token)

    return ctx


async def _finalize(ctx: Context, events: ErrorEvents, *, debug: bool) -> None:
    """End *ctx*, replacing a response that cannot be encoded with an error.

    Failures while writing to the client propagate; the response has
    already started at that point.
    """
    try:
        await ctx.end()
    except Exception as exc:
        if ctx.ended:
            raise
        await handle_error(exc, ctx, events, debug=debug)
        await ctx.end()
