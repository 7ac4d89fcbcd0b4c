"""Shared fixtures for tern tests."""

from collections.abc import Callable
from typing import Any

import pytest

from tern.context import Context
from tern.http.request import Request


def build_context(
    method: str = "GET",
    path: str = "/",
    *,
    headers: list[tuple[bytes, bytes]] | None = None,
    body: bytes = b"",
    sent: list[dict[str, Any]] | None = None,
) -> Context:
    """Build a Context around a synthetic ASGI scope.

    Messages passed to ``send`` are appended to *sent* when given.
    """
    path_part, _, query = path.partition("?")
    scope = {
        "type": "http",
        "method": method,
        "path": path_part,
        "query_string": query.encode("latin-1"),
        "headers": headers or [],
    }

    async def receive() -> dict[str, Any]:
        return {"type": "http.request", "body": body, "more_body": False}

    async def send(message: dict[str, Any]) -> None:
        if sent is not None:
            sent.append(message)

    return Context(Request.from_asgi(scope, receive), send)


@pytest.fixture
def make_context() -> Callable[..., Context]:
    return build_context
