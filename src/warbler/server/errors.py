"""Error handling for the request pipeline.

Maps exceptions raised while handling one request to a response for
that request only.  Nothing here touches the route table.
"""

import html
import logging

from warbler.errors import HTTPError, LoadFailure, RenderError
from warbler.http.request import Request
from warbler.http.response import Response

logger = logging.getLogger("warbler.server")


def error_page(status: int, title: str, detail: str) -> str:
    """Minimal HTML body for an error response."""
    return (
        f'<!doctype html><html><head><title>{status} {html.escape(title)}</title></head>'
        f'<body><h1>{status} {html.escape(title)}</h1>'
        f'<pre class="warbler-error">{html.escape(detail)}</pre></body></html>'
    )


def handle_http_error(exc: HTTPError, request: Request) -> Response:
    """Render an HTTPError as its status code."""
    if exc.status >= 500:
        logger.error("%s %s -> %s", request.method, request.path, exc)
    response = Response(body=error_page(exc.status, "Error", exc.detail), status=exc.status)
    for name, value in exc.headers:
        response = response.with_header(name, value)
    return response


def handle_internal_error(exc: Exception, request: Request) -> Response:
    """Render an unexpected failure as a 500 and log it."""
    if isinstance(exc, RenderError):
        logger.error("Render error for %s %s: %s", request.method, request.original_url, exc)
        return Response(body=error_page(500, "Render Error", str(exc)), status=500)
    if isinstance(exc, LoadFailure):
        logger.error("Load failure for %s %s: %s", request.method, request.original_url, exc)
        return Response(body=error_page(500, "Load Failure", str(exc)), status=500)

    logger.exception("Unhandled error for %s %s", request.method, request.original_url)
    return Response(body=error_page(500, "Internal Server Error", type(exc).__name__), status=500)
