"""Tests for responses and ASGI sending."""

import asyncio

from warbler.http.response import Response, StreamingResponse
from warbler.server.sender import send_response, send_streaming_response


class TestResponse:
    def test_with_methods_return_new_objects(self) -> None:
        original = Response("x")
        changed = original.with_status(404).with_header("X-A", "1").with_content_type("text/plain")
        assert original.status == 200
        assert changed.status == 404
        assert changed.header("x-a") == "1"
        assert changed.content_type == "text/plain"

    def test_body_conversions(self) -> None:
        assert Response("é").body_bytes == "é".encode()
        assert Response("é".encode()).text == "é"

    def test_missing_header(self) -> None:
        assert Response().header("x") is None


class TestSender:
    async def test_send_response(self) -> None:
        messages = []

        async def send(message):
            messages.append(message)

        await send_response(Response("hello").with_header("X-A", "1"), send)
        start, body = messages
        assert start["status"] == 200
        assert (b"x-a", b"1") in start["headers"]
        assert (b"content-length", b"5") in start["headers"]
        assert body["body"] == b"hello"

    async def test_no_body_for_304(self) -> None:
        messages = []

        async def send(message):
            messages.append(message)

        await send_response(Response("ignored", status=304), send)
        assert messages[1]["body"] == b""

    async def test_streaming_until_exhausted(self) -> None:
        messages = []

        async def send(message):
            messages.append(message)

        async def receive():
            # Never disconnects before the stream ends
            await asyncio.Event().wait()

        async def chunks():
            yield "a"
            yield "b"

        await send_streaming_response(StreamingResponse(chunks()), send, receive)
        bodies = [m["body"] for m in messages if m["type"] == "http.response.body"]
        assert bodies == [b"a", b"b", b""]
        assert messages[-1]["more_body"] is False
