"""Warbler: a development server for multi-page applications.

Declare pages, and warbler routes browser navigations to them, renders
their templates with entry-script injection and variables, and keeps
the page set in step with the file system.

Basic usage::

    from warbler import App, AppConfig, Page, ScanOptions

    app = App(AppConfig(
        template="index.html",
        pages=[Page("about", entry="/src/about/main.ts", data={"title": "About"})],
        scan_options=ScanOptions(scan_dirs="src/views", entry_file="main.ts"),
    ))
    app.run()
"""

__version__ = "0.1.0"
__all__ = [
    "App",
    "AppConfig",
    "ConfigurationError",
    "DiscoveryError",
    "LoadFailure",
    "Page",
    "RenderError",
    "RewriteRule",
    "RouteTable",
    "ScanOptions",
    "WarblerError",
    "WatchContext",
    "WatchOptions",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import warbler`` fast while providing a clean top-level API.
    """
    if name == "App":
        from warbler.app import App

        return App

    if name == "AppConfig":
        from warbler.config import AppConfig

        return AppConfig

    if name in ("Page", "ScanOptions"):
        from warbler.pages import types as _types

        return getattr(_types, name)

    if name == "RouteTable":
        from warbler.pages.table import RouteTable

        return RouteTable

    if name == "RewriteRule":
        from warbler.routing.rewrite import RewriteRule

        return RewriteRule

    if name in ("WatchContext", "WatchOptions"):
        from warbler.server import watch as _watch

        return getattr(_watch, name)

    if name in (
        "ConfigurationError",
        "DiscoveryError",
        "LoadFailure",
        "RenderError",
        "WarblerError",
    ):
        from warbler import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
