"""Route table reconciliation.

The controller owns the current :class:`RouteTable` generation.  It
rebuilds the table when asked to reload pages and tells live clients to
reload when a template in use changes.  Resolution code reads
:attr:`ReconciliationController.table` once per request and works from
that snapshot; a rebuild swaps the attribute in a single assignment, so
a reader sees either the old table or the new one, never a mix.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import posixpath
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

import anyio

from warbler.pages.discovery import scan_pages
from warbler.pages.table import RouteTable, build_route_table
from warbler.server.watch import WatchContext, WatchEvent, relative_path, resolve_watch_options

if TYPE_CHECKING:
    from warbler.config import AppConfig
    from warbler.pages.types import Page
    from warbler.server.livereload import ReloadBroadcaster

logger = logging.getLogger("warbler.server")


class ReconciliationController:
    """Own the published route table and react to file changes.

    Args:
        config: Application configuration.
        broadcaster: Live-reload channel for full reloads.
        app: Passed to watch handlers as ``ctx.app``.

    Raises:
        ConfigurationError: The initial page set is malformed.
        DiscoveryError: A scan directory cannot be read.
    """

    __slots__ = ("_app", "_broadcaster", "_config", "_pages", "_pending", "_table", "_watch")

    def __init__(
        self,
        config: AppConfig,
        broadcaster: ReloadBroadcaster,
        *,
        app: Any = None,
    ) -> None:
        self._config = config
        self._broadcaster = broadcaster
        self._app = app
        self._watch = resolve_watch_options(config.watch_options)
        self._pages: tuple[Page, ...] = config.pages
        self._pending: set[asyncio.Future[Any]] = set()
        self._table: RouteTable = self.build(self._pages)

    @property
    def table(self) -> RouteTable:
        """The currently published route table."""
        return self._table

    @property
    def pages(self) -> tuple[Page, ...]:
        """The explicit pages the current table was built from."""
        return self._pages

    # -- Rebuild --

    def build(self, pages: Iterable[Page]) -> RouteTable:
        """Build a new table from *pages* plus discovery, without publishing it."""
        config = self._config
        return build_route_table(
            pages,
            scan_pages(config.scan_options, config.root),
            default_template=config.template,
            base=config.base,
        )

    def reload_pages(self, pages: Iterable[Page] | None = None) -> RouteTable:
        """Rebuild and publish the table.

        *pages* replaces the explicit page list; ``None`` keeps the
        current one and only reruns discovery.  A failed build raises
        and leaves the published table untouched.
        """
        explicit = self._pages if pages is None else tuple(pages)
        table = self.build(explicit)
        self._publish(explicit, table)
        return table

    async def refresh(self, pages: Iterable[Page] | None = None) -> RouteTable:
        """Like :meth:`reload_pages`, with the scan run in a worker thread."""
        explicit = self._pages if pages is None else tuple(pages)
        table = await anyio.to_thread.run_sync(self.build, explicit)
        self._publish(explicit, table)
        return table

    def _publish(self, pages: tuple[Page, ...], table: RouteTable) -> None:
        self._pages = pages
        self._table = table
        logger.debug("Published route table with %d pages", len(table))

    # -- Watch events --

    def is_template(self, path: str) -> bool:
        """Whether *path* (absolute) is a template of the current table."""
        relative = posixpath.normpath(relative_path(self._config.root_path, path))
        return relative in {posixpath.normpath(t) for t in self._table.template_set}

    def handle_event(self, event: WatchEvent) -> bool:
        """React to one file-system event.

        Sends a full reload when a template in use changes, then passes
        the event to the user watch handler when its filters accept it.

        Returns:
            True when a full reload was broadcast.
        """
        reloaded = False
        if event.type == "change" and self.is_template(event.path):
            logger.debug("Template changed: %s", event.path)
            self._broadcaster.full_reload()
            reloaded = True

        if self._watch is not None:
            file = relative_path(self._config.root_path, event.path)
            if self._watch.accepts(event.type, file):
                if self._config.verbose:
                    logger.info("file %s - %s", event.type, file)
                self._call_handler(WatchContext(
                    type=event.type,
                    file=file,
                    app=self._app,
                    reload_pages=self.reload_pages,
                    refresh=self.refresh,
                ))
        return reloaded

    def _call_handler(self, ctx: WatchContext) -> None:
        assert self._watch is not None
        try:
            result = self._watch.handler(ctx)
        except Exception:
            logger.exception("Watch handler failed")
            return
        if inspect.isawaitable(result):
            future = asyncio.ensure_future(result)
            self._pending.add(future)
            future.add_done_callback(self._handler_done)

    def _handler_done(self, future: asyncio.Future[Any]) -> None:
        self._pending.discard(future)
        if not future.cancelled() and future.exception() is not None:
            logger.error("Watch handler failed", exc_info=future.exception())
