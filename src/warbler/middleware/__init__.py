"""Middleware: Protocol-based, no inheritance required.

A middleware is any callable matching:
    async def mw(request: Request, next: Next) -> Response

Built-in middleware:
    HTMLInject -- Inject snippets into HTML responses
    StaticFiles -- Serve files from a directory
"""

from warbler.middleware.inject import HTMLInject
from warbler.middleware.protocol import AnyResponse, Middleware, Next
from warbler.middleware.static import StaticFiles

__all__ = [
    "AnyResponse",
    "HTMLInject",
    "Middleware",
    "Next",
    "StaticFiles",
]
