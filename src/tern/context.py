"""Per-request context.

One ``Context`` is created by the dispatcher for every HTTP request and
threaded through the whole middleware pipeline. It carries the immutable
``Request``, the route-lookup results (``handler``, ``params``,
``template``), and the mutable response state (``status``, ``body``,
``headers``) that ``end()`` writes to the client exactly once.

Status follows the usual onion-framework convention: it starts at 404,
and the first assignment to ``body`` flips it to 200 (or 204 for
``None``) unless a status was set explicitly.

``get_context()`` returns the context of the request being handled by
the current task. ``ContextVar`` is task-local under asyncio, so
concurrent requests never see each other's context.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping
from contextvars import ContextVar
from http import HTTPStatus
from typing import Any

from tern._internal.asgi import Send
from tern.errors import ConfigurationError, HTTPError
from tern.http.request import Request
from tern.http.response import Response
from tern.server.sender import encode_response

logger = logging.getLogger("tern.server")

context_var: ContextVar[Context] = ContextVar("tern_context")
"""The current context. Set by the dispatcher before the pipeline runs."""


def get_context() -> Context:
    """Return the context of the request being handled.

    Raises ``LookupError`` if called outside a request.
    """
    return context_var.get()


_UNSET: Any = object()


class Context:
    """Mutable per-request state wrapped around an immutable ``Request``.

    Usage in middleware::

        async def timing(ctx: Context, next: Next) -> None:
            start = time.monotonic()
            await next()
            ctx.set_header("X-Response-Time", f"{time.monotonic() - start:.3f}")

    Usage in a route handler::

        @app.get("/users/:id")
        async def show(ctx: Context, next: Next) -> None:
            ctx.body = {"id": ctx.params["id"]}
    """

    __slots__ = (
        "_body",
        "_ended",
        "_explicit_status",
        "_send",
        "_status",
        "content_type",
        "handler",
        "headers",
        "params",
        "renderer",
        "request",
        "state",
        "template",
    )

    def __init__(self, request: Request, send: Send) -> None:
        self.request = request
        self._send = send

        # Route lookup results
        self.handler: Callable[..., Any] | None = None
        self.params: dict[str, str] = {}
        self.template: str | None = None

        # Response state
        self._status = 404
        self._explicit_status = False
        self._body: Any = _UNSET
        self.content_type: str | None = None
        self.headers: list[tuple[str, str]] = []

        # Free-form per-request storage for middleware
        self.state: dict[str, Any] = {}

        # Installed by TemplateEngine
        self.renderer: Callable[..., str] | None = None

        self._ended = False

    # -- Request shortcuts --

    @property
    def method(self) -> str:
        return self.request.method

    @property
    def path(self) -> str:
        return self.request.path

    @property
    def query(self) -> Any:
        return self.request.query

    # -- Response state --

    @property
    def status(self) -> int:
        return self._status

    @status.setter
    def status(self, value: int) -> None:
        if not isinstance(value, int) or not 100 <= value <= 999:
            msg = f"Invalid status code: {value!r}"
            raise ValueError(msg)
        self._status = value
        self._explicit_status = True

    @property
    def body(self) -> Any:
        return None if self._body is _UNSET else self._body

    @body.setter
    def body(self, value: Any) -> None:
        self._body = value
        if self._explicit_status:
            return
        self._status = 204 if value is None else 200

    def set_header(self, name: str, value: str) -> None:
        """Replace any existing header named *name* (case-insensitive)."""
        wanted = name.lower()
        self.headers = [(k, v) for k, v in self.headers if k.lower() != wanted]
        self.headers.append((name, value))

    def throw(self, status: int, detail: str = "") -> None:
        """Abort the request with an ``HTTPError``.

        The error propagates through every enclosing middleware to the
        dispatcher, which copies *status* and *detail* onto this context.
        """
        raise HTTPError(status=status, detail=detail)

    def render(self, name: str, /, **data: Any) -> str:
        """Render template *name* with the registered template engine."""
        if self.renderer is None:
            msg = "No template engine registered. Call app.engine() before serving."
            raise ConfigurationError(msg)
        return self.renderer(name, data)

    # -- Finalization --

    @property
    def ended(self) -> bool:
        """True once ``end()`` has sent the response."""
        return self._ended

    def to_response(self) -> Response:
        """Snapshot the current status, headers, and body as a ``Response``."""
        body, content_type = _encode_body(self.body, self._status)
        declared = next(
            (v for k, v in self.headers if k.lower() == "content-type"), None
        )
        return Response(
            body=body,
            status=self._status,
            content_type=self.content_type or declared or content_type,
            headers=tuple(self.headers),
        )

    async def end(self) -> None:
        """Write the response to the client.

        Safe to call more than once; only the first call sends anything.
        If the response cannot be encoded, the error is raised before
        anything is sent and the context stays open.
        """
        if self._ended:
            logger.debug("Context for %s %s already ended", self.method, self.path)
            return
        start, body = encode_response(self.to_response())
        self._ended = True
        await self._send(start)
        await self._send(body)

    def __repr__(self) -> str:
        return f"<Context {self.method} {self.path} status={self._status}>"


def _encode_body(body: Any, status: int) -> tuple[bytes, str]:
    """Convert a context body to bytes plus a default content type."""
    if body is None:
        try:
            phrase = HTTPStatus(status).phrase
        except ValueError:
            phrase = str(status)
        return phrase.encode("utf-8"), "text/plain; charset=utf-8"
    if isinstance(body, bytes):
        return body, "application/octet-stream"
    if isinstance(body, str):
        return body.encode("utf-8"), "text/html; charset=utf-8"
    if isinstance(body, (Mapping, list, tuple)):
        data = dict(body) if isinstance(body, Mapping) else list(body)
        payload = json.dumps(data, default=str)
        return payload.encode("utf-8"), "application/json"
    return str(body).encode("utf-8"), "text/plain; charset=utf-8"
