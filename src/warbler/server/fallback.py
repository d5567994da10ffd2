"""Dev-server page fallback middleware.

Browser navigations to virtual pages would 404 in the host pipeline
because no such file exists on disk.  :class:`PageFallback` intercepts
them and serves the rendered page instead:

1. Only ``GET``/``HEAD`` requests that accept HTML are considered.
2. Custom rewrite rules run first; the first match wins.  The
   rewritten path is served as a page when it names one, otherwise it
   continues down the pipeline.  Rules are never re-applied.
3. Otherwise the path is resolved against the current route table.
   Unrecognised paths pass through untouched.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import TYPE_CHECKING

from warbler._internal.paths import served_url
from warbler.errors import LoadFailure
from warbler.http.request import Request
from warbler.http.response import Response
from warbler.middleware.protocol import AnyResponse, Next
from warbler.routing.matcher import resolve_page
from warbler.routing.rewrite import RewriteRule, match_rewrite

if TYPE_CHECKING:
    from warbler.pages.table import RouteTable
    from warbler.pages.types import Page
    from warbler.server.reconcile import ReconciliationController
    from warbler.templating.renderer import TemplateRenderer

logger = logging.getLogger("warbler.server")

# (page, table) -> raw template content, or None when there is nothing to load
type PageLoader = Callable[[Page, RouteTable], Awaitable[str | None]]

# (url, html, original_url) -> html; the host's HTML post-processing step
type HTMLTransform = Callable[[str, str, str], Awaitable[str] | str]


class PageFallback:
    """Serve virtual pages for HTML navigations.

    Args:
        controller: Owner of the current route table.
        renderer: Renders page templates.
        rewrites: Custom rewrite rules, in priority order.
        base: Serving base path.
        verbose: Log every rewrite.
        loader: Loads a page's raw template.  Defaults to the
            renderer's file loader.
        transform_html: Post-processing applied to rendered pages.
    """

    __slots__ = (
        "_base",
        "_controller",
        "_loader",
        "_renderer",
        "_rewrites",
        "_transform_html",
        "_verbose",
    )

    def __init__(
        self,
        controller: ReconciliationController,
        renderer: TemplateRenderer,
        *,
        rewrites: Sequence[RewriteRule] = (),
        base: str = "/",
        verbose: bool = True,
        loader: PageLoader | None = None,
        transform_html: HTMLTransform | None = None,
    ) -> None:
        self._controller = controller
        self._renderer = renderer
        self._rewrites = tuple(rewrites)
        self._base = base
        self._verbose = verbose
        self._loader: PageLoader = loader if loader is not None else renderer.load
        self._transform_html = transform_html

    async def __call__(self, request: Request, next: Next) -> AnyResponse:
        if request.method not in ("GET", "HEAD") or not request.accepts_html:
            return await next(request)

        pathname = request.original_path
        # One snapshot for the whole request
        table = self._controller.table

        if self._rewrites:
            found = match_rewrite(
                pathname, self._rewrites, url=request.original_url, request=request
            )
            if found is not None:
                if self._verbose:
                    logger.info("Custom Rewriting %s %s to %s", request.method, pathname, found.target)
                rewritten = request.rewrite(found.target)
                filename = table.lookup(rewritten.path) or resolve_page(rewritten.path, table)
                if filename is None:
                    return await next(rewritten)
                return await self._serve(rewritten, table, filename)

        filename = resolve_page(pathname, table) or table.lookup(pathname)
        if filename is None:
            return await next(request)

        if self._verbose:
            logger.info(
                "Rewriting %s %s to %s", request.method, pathname, served_url(self._base, filename)
            )
        return await self._serve(request, table, filename)

    async def _serve(self, request: Request, table: RouteTable, filename: str) -> Response:
        """Load, render, and post-process the page served as *filename*."""
        page = table.by_path[filename]
        source = await self._loader(page, table)
        if source is None:
            raise LoadFailure(filename)

        html = self._renderer.render(page, source, filename=table.template_for(page))

        if self._transform_html is not None:
            result = self._transform_html(request.url, html, request.original_url)
            html = await result if inspect.isawaitable(result) else result

        return Response(
            body="" if request.method == "HEAD" else html,
            status=200,
            content_type="text/html; charset=utf-8",
        )
