"""Error handling policy for tern requests.

Every fault that escapes the pipeline, or that stops the response from
being encoded, lands here. The context gets a status and body derived
from the exception; the exception itself goes to the registered error
listeners, or to the log when there are none.
"""

import logging
import traceback
from http import HTTPStatus

from tern.context import Context
from tern.errors import HTTPError
from tern.events import ErrorEvents

logger = logging.getLogger("tern.server")

DEFAULT_ERROR_BODY = "Internal Server Error"


def error_status(exc: Exception) -> int:
    """The status an exception asks for, or 500."""
    status = getattr(exc, "status", None)
    if isinstance(status, int) and 400 <= status <= 599:
        return status
    return 500


def error_body(exc: Exception) -> str:
    """The message an exception carries, or a generic fallback."""
    if isinstance(exc, HTTPError):
        if exc.detail:
            return exc.detail
        try:
            return HTTPStatus(exc.status).phrase
        except ValueError:
            return DEFAULT_ERROR_BODY
    return str(exc) or DEFAULT_ERROR_BODY


async def handle_error(
    exc: Exception,
    ctx: Context,
    events: ErrorEvents,
    *,
    debug: bool = False,
) -> None:
    """Apply the error to *ctx* and report it.

    Headers set by middleware before the failure are discarded; an
    ``HTTPError`` contributes its own headers (e.g. ``Allow`` on 405).
    """
    status = error_status(exc)
    body = error_body(exc)
    if debug and status >= 500:
        body = "".join(traceback.format_exception(exc))

    ctx.headers = list(exc.headers) if isinstance(exc, HTTPError) else []
    ctx.content_type = "text/plain; charset=utf-8"
    ctx.status = status
    ctx.body = body

    if events:
        await events.emit(exc, ctx)
    elif status >= 500:
        logger.exception("%d %s %s", status, ctx.method, ctx.path, exc_info=exc)
    else:
        logger.debug("%d %s %s — %s", status, ctx.method, ctx.path, body)
