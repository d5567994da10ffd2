"""History API fallback for the preview server.

The preview server serves a built output directory, so there is no
route table.  Navigations that would 404 are rewritten instead:

- only ``GET``/``HEAD`` requests accepting HTML are considered;
- custom rewrite rules run first, in order, first match wins;
- a path whose last segment contains a dot is treated as a file
  request and passed through;
- anything else is rewritten to the base ``index.html``.
"""

import logging
from collections.abc import Sequence

from warbler._internal.paths import served_url
from warbler.http.request import Request
from warbler.middleware.protocol import AnyResponse, Next
from warbler.routing.rewrite import RewriteRule, match_rewrite

logger = logging.getLogger("warbler.server")


class HistoryFallback:
    """Rewrite HTML navigations to index or custom targets."""

    __slots__ = ("_index", "_rewrites", "_verbose")

    def __init__(
        self,
        rewrites: Sequence[RewriteRule] = (),
        *,
        base: str = "/",
        verbose: bool = True,
    ) -> None:
        self._rewrites = tuple(rewrites)
        self._index = served_url(base, "index.html")
        self._verbose = verbose

    async def __call__(self, request: Request, next: Next) -> AnyResponse:
        if request.method not in ("GET", "HEAD") or not request.accepts_html:
            return await next(request)

        pathname = request.path
        found = match_rewrite(pathname, self._rewrites, url=request.url, request=request)
        if found is not None:
            return await next(self._rewrite(request, found.target))

        last_slash = pathname.rfind("/")
        if pathname.rfind(".") > last_slash:
            return await next(request)

        return await next(self._rewrite(request, self._index))

    def _rewrite(self, request: Request, target: str) -> Request:
        if self._verbose:
            logger.info("Rewriting %s %s to %s", request.method, request.url, target)
        return request.rewrite(target)
