"""Application configuration.

AppConfig is a frozen dataclass: immutable after creation,
IDE-autocompletable, no string-key dict lookups.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

from warbler.pages.types import Page, ScanOptions
from warbler.routing.rewrite import RewriteRule
from warbler.server.watch import WatchHandler, WatchOptions


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration.  Immutable after creation.

    Page options describe the virtual pages; host options describe where
    and how they are served::

        config = AppConfig(
            template="public/index.html",
            pages=[Page("about", entry="/src/about.ts")],
            scan_options=ScanOptions(scan_dirs="src/views", entry_file="main.ts"),
            rewrites=[RewriteRule(r"^/docs/", "/docs.html")],
        )
    """

    # Pages
    template: str = "index.html"
    pages: tuple[Page, ...] = ()
    scan_options: ScanOptions | None = None

    # Rewrites: dev server only / preview server only
    rewrites: tuple[RewriteRule, ...] = ()
    preview_rewrites: tuple[RewriteRule, ...] = ()

    # Watching
    watch: bool = True
    watch_options: WatchOptions | WatchHandler | None = None

    # Diagnostic logging only; no behavioural effect
    verbose: bool = True

    # Host
    root: str | Path = "."
    base: str = "/"
    env: Mapping[str, Any] = field(default_factory=dict)
    out_dir: str | Path = "dist"
    host: str = "127.0.0.1"
    port: int = 5173

    # Templates
    autoescape: bool = True

    # Live reload
    reload_path: str = "/__warbler/reload"

    def __post_init__(self) -> None:
        object.__setattr__(self, "pages", tuple(self.pages))
        object.__setattr__(self, "rewrites", tuple(self.rewrites))
        object.__setattr__(self, "preview_rewrites", tuple(self.preview_rewrites))
        object.__setattr__(self, "env", MappingProxyType(dict(self.env)))

    @property
    def root_path(self) -> Path:
        """The project root as a resolved path."""
        return Path(self.root).resolve()

    @property
    def out_path(self) -> Path:
        """The preview directory, resolved against the root."""
        return self.root_path / self.out_dir
