"""The warbler application.

An ASGI app serving a multi-page project in one of two modes:

``dev``
    Virtual pages are resolved from the route table and rendered per
    request.  Project files are served as-is, templates are watched,
    and browsers reload when a template in use changes.

``preview``
    A built output directory is served statically, with history API
    fallback driven by ``preview_rewrites``.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import threading
from collections.abc import Callable, Iterable
from typing import Any, Literal

from kida import Environment

from warbler._internal.asgi import Receive, Scope, Send
from warbler.config import AppConfig
from warbler.errors import ConfigurationError
from warbler.middleware.inject import HTMLInject
from warbler.middleware.protocol import Middleware, Next
from warbler.middleware.static import StaticFiles
from warbler.pages.table import RouteTable
from warbler.pages.types import Page
from warbler.server.fallback import HTMLTransform, PageFallback, PageLoader
from warbler.server.handler import build_pipeline, handle_request
from warbler.server.history import HistoryFallback
from warbler.server.livereload import LiveReload, ReloadBroadcaster, client_script
from warbler.server.reconcile import ReconciliationController
from warbler.server.watch import FileWatcher
from warbler.templating.renderer import TemplateRenderer

logger = logging.getLogger("warbler.server")

type Mode = Literal["dev", "preview"]


class App:
    """The warbler application.

    Mutable during setup (middleware, hooks).  Frozen on first use:
    the route table is built, the middleware chain is compiled, and no
    more middleware can be added.

    Usage::

        app = App(AppConfig(pages=[Page("about", entry="/src/about.ts")]))
        app.run()

    Args:
        config: Application configuration.
        mode: ``"dev"`` or ``"preview"``.
        loader: Overrides how a page's raw template is loaded.
        transform_html: Post-processing applied to every rendered page.
        kida_env: A preconfigured kida environment for rendering.
    """

    __slots__ = (
        "_broadcaster",
        "_controller",
        "_freeze_lock",
        "_frozen",
        "_kida_env",
        "_loader",
        "_middleware_list",
        "_pipeline",
        "_shutdown_hooks",
        "_startup_hooks",
        "_transform_html",
        "_watcher",
        "config",
        "mode",
    )

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        mode: Mode = "dev",
        loader: PageLoader | None = None,
        transform_html: HTMLTransform | None = None,
        kida_env: Environment | None = None,
    ) -> None:
        if mode not in ("dev", "preview"):
            raise ConfigurationError(f"Unknown mode {mode!r}, expected 'dev' or 'preview'")
        self.config: AppConfig = config or AppConfig()
        self.mode: Mode = mode
        self._loader = loader
        self._transform_html = transform_html
        self._kida_env = kida_env
        self._middleware_list: list[Middleware] = []
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._broadcaster = ReloadBroadcaster()
        self._frozen = False
        self._freeze_lock = threading.Lock()

        # Compiled state, set during _freeze()
        self._controller: ReconciliationController | None = None
        self._pipeline: Next | None = None
        self._watcher: FileWatcher | None = None

    # -- Setup --

    def add_middleware(self, middleware: Middleware) -> None:
        """Add a middleware ahead of page handling and file serving."""
        self._check_not_frozen()
        self._middleware_list.append(middleware)

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register a sync or async hook run at ASGI lifespan startup."""
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register a sync or async hook run at ASGI lifespan shutdown."""
        self._shutdown_hooks.append(func)
        return func

    # -- Runtime access --

    @property
    def broadcaster(self) -> ReloadBroadcaster:
        """The live-reload channel."""
        return self._broadcaster

    @property
    def controller(self) -> ReconciliationController:
        """The route table owner.  Dev mode only."""
        self._ensure_frozen()
        if self._controller is None:
            raise ConfigurationError("The preview server has no route table")
        return self._controller

    @property
    def table(self) -> RouteTable:
        """The currently published route table.  Dev mode only."""
        return self.controller.table

    def reload_pages(self, pages: Iterable[Page] | None = None) -> RouteTable:
        """Rebuild the route table from *pages* (``None`` keeps the current list)."""
        return self.controller.reload_pages(pages)

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Build the app and serve it with pounce."""
        self._ensure_frozen()

        from warbler.server.dev import run_server

        run_server(self, host or self.config.host, port or self.config.port)

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        self._ensure_frozen()
        assert self._pipeline is not None
        await handle_request(scope, receive, send, pipeline=self._pipeline)

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        """Run the ASGI lifespan protocol."""
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    await self.startup()
                except Exception as exc:
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                await self.shutdown()
                await send({"type": "lifespan.shutdown.complete"})
                return

    async def startup(self) -> None:
        """Freeze, start the file watcher (dev), and run startup hooks."""
        self._ensure_frozen()
        if self._controller is not None and self.config.watch and self._watcher is None:
            self._watcher = FileWatcher(self.config.root_path, self._controller.handle_event)
            self._watcher.start(asyncio.get_running_loop())
        for hook in self._startup_hooks:
            result = hook()
            if inspect.isawaitable(result):
                await result

    async def shutdown(self) -> None:
        """Run shutdown hooks, stop the watcher, and end live-reload streams."""
        for hook in self._shutdown_hooks:
            result = hook()
            if inspect.isawaitable(result):
                await result
        if self._watcher is not None:
            self._watcher.stop()
            self._watcher = None
        self._broadcaster.close()

    # -- Internal --

    def _ensure_frozen(self) -> None:
        """Freeze exactly once, even if several threads race here."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Build the route table and compile the middleware chain.

        Raises:
            ConfigurationError: A page definition is malformed.
            DiscoveryError: A scan directory cannot be read.
        """
        if self.mode == "dev":
            middleware = self._dev_middleware()
        else:
            middleware = self._preview_middleware()
        self._pipeline = build_pipeline(tuple(middleware))
        self._frozen = True

    def _dev_middleware(self) -> list[Middleware]:
        config = self.config
        controller = ReconciliationController(config, self._broadcaster, app=self)
        renderer = TemplateRenderer(
            config.root_path,
            variables=config.env,
            autoescape=config.autoescape,
            kida_env=self._kida_env,
        )
        self._controller = controller
        if config.verbose:
            files = "\n".join(
                f"<{config.out_dir}>/{f}" for f in controller.table.by_path
            )
            logger.info("Generated virtual files: \n%s", files)

        return [
            LiveReload(self._broadcaster, config.reload_path),
            HTMLInject(client_script(config.reload_path)),
            *self._middleware_list,
            PageFallback(
                controller,
                renderer,
                rewrites=config.rewrites,
                base=config.base,
                verbose=config.verbose,
                loader=self._loader,
                transform_html=self._transform_html,
            ),
            StaticFiles(config.root_path, prefix=config.base),
        ]

    def _preview_middleware(self) -> list[Middleware]:
        config = self.config
        middleware: list[Middleware] = list(self._middleware_list)
        if config.preview_rewrites:
            middleware.append(
                HistoryFallback(config.preview_rewrites, base=config.base, verbose=config.verbose)
            )
        middleware.append(
            StaticFiles(config.out_path, prefix=config.base, cache_control="public, max-age=0")
        )
        return middleware

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = "Cannot modify the app after it has started serving."
            raise RuntimeError(msg)
