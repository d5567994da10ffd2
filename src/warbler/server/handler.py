"""ASGI handler: translates ASGI scope/messages to warbler types.

The only component that touches raw ASGI directly.  Converts scope dicts
to Request objects, dispatches through the middleware chain, and sends
the Response back through ASGI send().
"""

from collections.abc import Callable
from typing import Any

from warbler._internal.asgi import Receive, Scope, Send
from warbler.errors import HTTPError, NotFound
from warbler.http.request import Request
from warbler.http.response import StreamingResponse
from warbler.middleware.protocol import AnyResponse, Next
from warbler.server.errors import handle_http_error, handle_internal_error
from warbler.server.sender import send_response, send_streaming_response


async def _not_found(request: Request) -> AnyResponse:
    raise NotFound(f"No file or page for {request.method} {request.original_url!r}")


def build_pipeline(middleware: tuple[Callable[..., Any], ...]) -> Next:
    """Wrap *middleware* around the not-found terminal handler, outermost first."""
    handler: Next = _not_found
    for mw in reversed(middleware):

        async def make_next(req: Request, _mw: Any = mw, _next: Next = handler) -> AnyResponse:
            return await _mw(req, _next)

        handler = make_next
    return handler


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    pipeline: Next,
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive)

    try:
        response = await pipeline(request)
    except HTTPError as exc:
        response = handle_http_error(exc, request)
    except Exception as exc:
        response = handle_internal_error(exc, request)

    if isinstance(response, StreamingResponse):
        await send_streaming_response(response, send, receive)
    else:
        await send_response(response, send)
