"""File-system watch events and handler options.

The watcher itself is watchdog; this module only translates its events
into :class:`WatchEvent` objects and decides which user handler, if
any, receives them.

``watch_options`` is either a bare handler or a full
:class:`WatchOptions`.  :func:`resolve_watch_options` turns both forms
into ``WatchOptions`` once, at setup::

    AppConfig(watch_options=lambda ctx: ctx.reload_pages(load_pages()))

    async def on_change(ctx):
        await ctx.refresh(load_pages())

    AppConfig(watch_options=WatchOptions(
        handler=on_change,
        events=("add", "unlink"),
        include="src/views/**",
    ))
"""

from __future__ import annotations

import asyncio
import fnmatch
import logging
import os
import re
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

from warbler.errors import ConfigurationError

if TYPE_CHECKING:
    from warbler.pages.table import RouteTable
    from warbler.pages.types import Page

logger = logging.getLogger("warbler.server")

type WatchEventType = Literal["add", "addDir", "change", "unlink", "unlinkDir"]
type PathFilter = str | re.Pattern[str]

WATCH_EVENT_TYPES: frozenset[str] = frozenset({"add", "addDir", "change", "unlink", "unlinkDir"})


@dataclass(frozen=True, slots=True)
class WatchEvent:
    """A file-system change: event type and absolute path."""

    type: WatchEventType
    path: str


@dataclass(frozen=True, slots=True)
class WatchContext:
    """What a watch handler receives.

    Attributes:
        type: The event type.
        file: Changed path relative to the project root.
        app: The running application.
        reload_pages: Rebuild the route table from a new explicit page
            list (discovery is rerun as well).  Runs the scan on the
            calling thread, which is the event loop.
        refresh: Awaitable form of *reload_pages* that scans in a worker
            thread.  Prefer it in async handlers.
    """

    type: WatchEventType
    file: str
    app: Any
    reload_pages: Callable[[Iterable[Page] | None], RouteTable]
    refresh: Callable[[Iterable[Page] | None], Awaitable[RouteTable]]


type WatchHandler = Callable[[WatchContext], Awaitable[None] | None]


@dataclass(frozen=True, slots=True)
class WatchOptions:
    """Full watch options.

    Attributes:
        handler: Called for every event that passes the filters.
        events: Event types to react to.  ``None`` means all.
        include: Glob(s) or pattern(s) a root-relative path must match.
            ``None`` means everything.
        exclude: Glob(s) or pattern(s) that reject a path.
    """

    handler: WatchHandler
    events: tuple[WatchEventType, ...] | None = None
    include: PathFilter | tuple[PathFilter, ...] | None = None
    exclude: PathFilter | tuple[PathFilter, ...] | None = None

    def accepts(self, event_type: str, relative: str) -> bool:
        """Whether an event passes the type and path filters."""
        if self.events is not None and event_type not in self.events:
            return False
        if self.include is not None and not _matches_any(self.include, relative):
            return False
        return not (self.exclude is not None and _matches_any(self.exclude, relative))


def resolve_watch_options(value: WatchOptions | WatchHandler | None) -> WatchOptions | None:
    """Normalize a bare handler into :class:`WatchOptions`."""
    if value is None or isinstance(value, WatchOptions):
        return value
    if callable(value):
        return WatchOptions(handler=value)
    msg = f"watch_options must be a handler or WatchOptions, got {type(value).__name__}"
    raise ConfigurationError(msg)


def _matches_any(filters: PathFilter | tuple[PathFilter, ...], relative: str) -> bool:
    if isinstance(filters, (str, re.Pattern)):
        filters = (filters,)
    for item in filters:
        if isinstance(item, re.Pattern):
            if item.search(relative):
                return True
        elif fnmatch.fnmatchcase(relative, item):
            return True
    return False


def relative_path(root: str | Path, path: str) -> str:
    """*path* relative to *root*, with forward slashes."""
    return os.path.relpath(path, root).replace(os.sep, "/")


class FileWatcher:
    """Deliver watchdog events to a callback on the event loop.

    watchdog's observer runs its own thread; every event is handed to
    *callback* through ``loop.call_soon_threadsafe`` so the callback
    always runs on the loop thread.

    Usage::

        watcher = FileWatcher(root, controller.dispatch)
        watcher.start(asyncio.get_running_loop())
        ...
        watcher.stop()
    """

    __slots__ = ("_callback", "_observer", "_root")

    def __init__(self, root: str | Path, callback: Callable[[WatchEvent], Any]) -> None:
        self._root = Path(root).resolve()
        self._callback = callback
        self._observer: Any = None

    def start(self, loop: asyncio.AbstractEventLoop) -> None:
        """Start watching the root directory recursively."""
        from watchdog.events import FileSystemEvent, FileSystemEventHandler
        from watchdog.observers import Observer

        deliver = self._callback

        class _Handler(FileSystemEventHandler):
            def on_any_event(self, event: FileSystemEvent) -> None:
                for watch_event in translate_event(
                    event.event_type,
                    os.fsdecode(event.src_path),
                    os.fsdecode(getattr(event, "dest_path", "") or ""),
                    is_directory=event.is_directory,
                ):
                    loop.call_soon_threadsafe(deliver, watch_event)

        observer = Observer()
        observer.schedule(_Handler(), str(self._root), recursive=True)
        observer.daemon = True
        observer.start()
        self._observer = observer
        logger.debug("Watching %s", self._root)

    def stop(self) -> None:
        """Stop the observer thread."""
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join()
        self._observer = None


def translate_event(
    event_type: str,
    src_path: str,
    dest_path: str = "",
    *,
    is_directory: bool = False,
) -> list[WatchEvent]:
    """Map a watchdog event to warbler watch events.

    Moves become an ``unlink`` of the source and an ``add`` of the
    destination.  Event kinds with no counterpart (opened, closed) map
    to nothing.
    """
    add: WatchEventType = "addDir" if is_directory else "add"
    unlink: WatchEventType = "unlinkDir" if is_directory else "unlink"
    if event_type == "created":
        return [WatchEvent(add, src_path)]
    if event_type == "deleted":
        return [WatchEvent(unlink, src_path)]
    if event_type == "modified":
        return [] if is_directory else [WatchEvent("change", src_path)]
    if event_type == "moved":
        return [WatchEvent(unlink, src_path), WatchEvent(add, dest_path)]
    return []
