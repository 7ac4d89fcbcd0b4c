"""ASGI response encoding — translates a finalized ``Response`` to ASGI messages."""

from typing import Any

from tern.http.response import Response


def _body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    # RFC: 1xx, 204, and 304 responses do not include a message body.
    return not (100 <= status < 200 or status in {204, 304})


def encode_response(response: Response) -> tuple[dict[str, Any], dict[str, Any]]:
    """Build the ``http.response.start`` and ``http.response.body`` messages.

    Everything that can fail (header encoding) happens here, before
    anything is written to the client.
    """
    raw_headers: list[tuple[bytes, bytes]] = [
        (b"content-type", response.content_type.encode("latin-1")),
    ]
    for name, value in response.headers:
        lowered = name.lower()
        if lowered in ("content-type", "content-length"):
            continue
        raw_headers.append((lowered.encode("latin-1"), value.encode("latin-1")))

    body = response.body if _body_allowed(response.status) else b""

    raw_headers.append((b"content-length", str(len(body)).encode("latin-1")))

    start = {
        "type": "http.response.start",
        "status": response.status,
        "headers": raw_headers,
    }
    return start, {"type": "http.response.body", "body": body}
