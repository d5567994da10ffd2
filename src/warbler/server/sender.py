"""ASGI response sending: translates warbler responses to ASGI messages."""

import asyncio
import contextlib
import logging

from warbler._internal.asgi import Receive, Send
from warbler.http.response import Response, StreamingResponse

logger = logging.getLogger("warbler.server")


def _body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    return not (100 <= status < 200 or status in {204, 304})


def _raw_headers(content_type: str, headers: tuple[tuple[str, str], ...]) -> list[tuple[bytes, bytes]]:
    raw = [(b"content-type", content_type.encode("latin-1"))]
    raw.extend((name.lower().encode("latin-1"), value.encode("latin-1")) for name, value in headers)
    return raw


async def send_response(response: Response, send: Send) -> None:
    """Translate a Response into ASGI send() calls."""
    body = response.body_bytes if _body_allowed(response.status) else b""
    raw_headers = _raw_headers(response.content_type, response.headers)
    raw_headers.append((b"content-length", str(len(body)).encode("latin-1")))

    await send({"type": "http.response.start", "status": response.status, "headers": raw_headers})
    await send({"type": "http.response.body", "body": body})


async def send_streaming_response(response: StreamingResponse, send: Send, receive: Receive) -> None:
    """Stream chunks until the iterator ends or the client disconnects.

    A producer task sends chunks while the caller waits for
    ``http.disconnect``; whichever finishes first cancels the other.
    """
    await send(
        {
            "type": "http.response.start",
            "status": response.status,
            "headers": _raw_headers(response.content_type, response.headers),
        }
    )

    async def produce() -> None:
        async for chunk in response.chunks:
            await send({"type": "http.response.body", "body": chunk.encode("utf-8"), "more_body": True})

    async def monitor_disconnect() -> None:
        while True:
            message = await receive()
            if message.get("type") == "http.disconnect":
                return

    producer = asyncio.ensure_future(produce())
    monitor = asyncio.ensure_future(monitor_disconnect())
    done, pending = await asyncio.wait({producer, monitor}, return_when=asyncio.FIRST_COMPLETED)
    for task in pending:
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    if producer in done and producer.exception() is not None:
        logger.error("Stream failed", exc_info=producer.exception())

    with contextlib.suppress(OSError, RuntimeError):
        await send({"type": "http.response.body", "body": b"", "more_body": False})
