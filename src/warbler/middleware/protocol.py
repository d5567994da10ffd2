"""Middleware protocol and Next type alias.

A middleware is any callable matching::

    async def my_mw(request: Request, next: Next) -> AnyResponse: ...

No base class required.  A middleware that rewrites the URL passes the
rewritten request on: ``await next(request.rewrite("/about.html"))``.
"""

from collections.abc import Awaitable, Callable
from typing import Protocol

from warbler.http.request import Request
from warbler.http.response import Response, StreamingResponse

# Any response type the pipeline can produce
type AnyResponse = Response | StreamingResponse

# The next handler in the middleware chain
type Next = Callable[[Request], Awaitable[AnyResponse]]


class Middleware(Protocol):
    """Protocol for warbler middleware.

    Accepts both functions and callable objects::

        async def no_cache(request: Request, next: Next) -> AnyResponse:
            response = await next(request)
            return response.with_header("Cache-Control", "no-store")
    """

    async def __call__(self, request: Request, next: Next) -> AnyResponse: ...
