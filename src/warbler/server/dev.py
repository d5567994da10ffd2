"""Development server.

Starts a pounce ASGI server with the live warbler App object.  Single
worker, no process reload: page and template changes are handled by
the app's own file watcher.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from warbler.app import App


def run_server(app: App, host: str, port: int) -> None:
    """Serve *app* on *host*:*port* until interrupted.

    Pounce's ``run()`` takes an import string, but warbler has a live
    ``App`` object, so ``pounce.Server`` is used directly.
    """
    from pounce.config import ServerConfig
    from pounce.server import Server

    config = ServerConfig(host=host, port=port, workers=1, reload=False)
    Server(config, app).run()
