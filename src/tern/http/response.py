"""Finalized HTTP response.

A ``Response`` is the frozen snapshot that ``Context.end()`` hands to the
sender, and the type ``TestClient`` returns. Middleware never builds one
directly; it writes ``ctx.status`` / ``ctx.body`` instead.
"""

from __future__ import annotations

import json as json_module
from dataclasses import dataclass, replace
from typing import Any


@dataclass(frozen=True, slots=True)
class Response:
    """An HTTP response ready to be sent."""

    body: bytes = b""
    status: int = 200
    content_type: str = "text/plain; charset=utf-8"
    headers: tuple[tuple[str, str], ...] = ()

    def with_header(self, name: str, value: str) -> Response:
        """Return a new Response with an additional header."""
        return replace(self, headers=(*self.headers, (name, value)))

    @property
    def text(self) -> str:
        """Body decoded as UTF-8."""
        return self.body.decode("utf-8")

    def json(self) -> Any:
        """Body parsed as JSON."""
        return json_module.loads(self.body)

    def header(self, name: str, default: str | None = None) -> str | None:
        """Return the first header value for *name* (case-insensitive)."""
        wanted = name.lower()
        for key, value in self.headers:
            if key.lower() == wanted:
                return value
        return default
