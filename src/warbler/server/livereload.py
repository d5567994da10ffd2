"""Live-reload transport: broadcaster, event stream, and client script.

The reconciliation controller calls :meth:`ReloadBroadcaster.send`;
every connected browser holds a Server-Sent Events stream opened by
:func:`client_script` and reloads when a ``full-reload`` arrives.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Any

from warbler.http.request import Request
from warbler.http.response import StreamingResponse
from warbler.middleware.protocol import AnyResponse, Next

logger = logging.getLogger("warbler.server")

FULL_RELOAD: dict[str, str] = {"type": "full-reload", "path": "*"}


@dataclass(frozen=True, slots=True)
class SSEEvent:
    """A single Server-Sent Event."""

    data: str
    event: str | None = None

    def encode(self) -> str:
        """Serialize to SSE wire format."""
        lines: list[str] = []
        if self.event:
            lines.append(f"event: {self.event}")
        lines.extend(f"data: {line}" for line in self.data.split("\n"))
        return "\n".join(lines) + "\n\n"


class ReloadBroadcaster:
    """Fan reload messages out to every subscriber.

    Each subscriber owns an unbounded queue; :meth:`send` never blocks.
    Must be used from the event loop thread.
    """

    __slots__ = ("_subscribers",)

    def __init__(self) -> None:
        self._subscribers: set[asyncio.Queue[dict[str, Any] | None]] = set()

    def __len__(self) -> int:
        return len(self._subscribers)

    def send(self, message: dict[str, Any]) -> None:
        """Deliver *message* to every current subscriber."""
        for queue in self._subscribers:
            queue.put_nowait(message)

    def full_reload(self) -> None:
        """Tell every client to reload the whole page."""
        self.send(FULL_RELOAD)

    def close(self) -> None:
        """End every subscription."""
        for queue in self._subscribers:
            queue.put_nowait(None)

    async def subscribe(self) -> AsyncIterator[dict[str, Any]]:
        """Yield messages until :meth:`close` is called."""
        queue: asyncio.Queue[dict[str, Any] | None] = asyncio.Queue()
        self._subscribers.add(queue)
        try:
            while True:
                message = await queue.get()
                if message is None:
                    return
                yield message
        finally:
            self._subscribers.discard(queue)


def client_script(path: str) -> str:
    """The browser snippet that listens on *path* and reloads."""
    return (
        "<script>"
        f"new EventSource({json.dumps(path)}).addEventListener('warbler', (e) => {{"
        "if (JSON.parse(e.data).type === 'full-reload') location.reload();"
        "});"
        "</script>"
    )


class LiveReload:
    """Middleware serving the live-reload event stream at *path*."""

    __slots__ = ("_broadcaster", "_path")

    def __init__(self, broadcaster: ReloadBroadcaster, path: str) -> None:
        self._broadcaster = broadcaster
        self._path = path

    async def __call__(self, request: Request, next: Next) -> AnyResponse:
        if request.method != "GET" or request.path != self._path:
            return await next(request)
        return StreamingResponse(self._stream()).with_header("Cache-Control", "no-cache")

    async def _stream(self) -> AsyncIterator[str]:
        # Comment line so the client sees the stream open immediately
        yield ": connected\n\n"
        subscription = self._broadcaster.subscribe()
        try:
            async for message in subscription:
                yield SSEEvent(data=json.dumps(message), event="warbler").encode()
        finally:
            with contextlib.suppress(RuntimeError):
                await subscription.aclose()
