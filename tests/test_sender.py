"""Tests for tern.server.sender."""

import pytest

from tern.http.response import Response
from tern.server.sender import encode_response


class TestEncodeResponse:
    def test_start_and_body(self) -> None:
        start, body = encode_response(
            Response(body=b"hello", status=201, headers=(("X-A", "1"),))
        )

        assert start["type"] == "http.response.start"
        assert start["status"] == 201
        assert start["headers"] == [
            (b"content-type", b"text/plain; charset=utf-8"),
            (b"x-a", b"1"),
            (b"content-length", b"5"),
        ]
        assert body == {"type": "http.response.body", "body": b"hello"}

    def test_duplicate_framing_headers_dropped(self) -> None:
        response = Response(
            body=b"x",
            headers=(("Content-Type", "text/csv"), ("Content-Length", "99")),
        )
        start, _ = encode_response(response)

        headers = start["headers"]
        assert [name for name, _ in headers] == [b"content-type", b"content-length"]
        assert headers[-1] == (b"content-length", b"1")

    def test_no_body_for_204(self) -> None:
        start, body = encode_response(Response(body=b"ignored", status=204))

        assert body["body"] == b""
        assert (b"content-length", b"0") in start["headers"]

    def test_no_body_for_304(self) -> None:
        _, body = encode_response(Response(body=b"ignored", status=304))
        assert body["body"] == b""

    def test_non_latin1_header_raises(self) -> None:
        with pytest.raises(UnicodeEncodeError):
            encode_response(Response(headers=(("X-Title", "café — menu"),)))
