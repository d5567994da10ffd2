"""Static file serving middleware.

Serves project files (dev) or the built output directory (preview)
under the serving base.  Directory requests resolve to their index
file.  Paths that do not name a file fall through to the next handler.
"""

import mimetypes
from pathlib import Path

import anyio

from warbler.http.request import Request
from warbler.http.response import Response
from warbler.middleware.protocol import AnyResponse, Next


class StaticFiles:
    """Middleware that serves files from a directory.

    Security: resolves symlinks and verifies the final path is within
    the configured directory to prevent path traversal.

    Usage::

        app.add_middleware(StaticFiles(directory="dist", prefix="/app/"))
    """

    __slots__ = ("_cache_control", "_directory", "_index", "_prefix")

    def __init__(
        self,
        directory: str | Path,
        prefix: str = "/",
        *,
        index: str = "index.html",
        cache_control: str = "no-cache",
    ) -> None:
        self._directory = Path(directory).resolve()
        self._index = index
        self._cache_control = cache_control

        # "/" normalizes to "", "/app/" to "/app"
        stripped = "/" + prefix.strip("/")
        self._prefix = stripped if stripped != "/" else ""

    async def __call__(self, request: Request, next: Next) -> AnyResponse:
        """Serve a file or fall through."""
        if request.method not in ("GET", "HEAD"):
            return await next(request)

        path = request.path
        if self._prefix:
            if not path.startswith(self._prefix + "/") and path != self._prefix:
                return await next(request)
            relative = path[len(self._prefix) :].lstrip("/")
        else:
            relative = path.lstrip("/")

        file_path = (self._directory / relative).resolve() if relative else self._directory
        if not file_path.is_relative_to(self._directory):
            return Response(body="Forbidden", status=403, content_type="text/plain; charset=utf-8")

        if file_path.is_dir():
            file_path = file_path / self._index
        if not file_path.is_file():
            return await next(request)

        return await self._serve_file(file_path, head=request.method == "HEAD")

    async def _serve_file(self, file_path: Path, *, head: bool = False) -> Response:
        """Read a file and build a response."""
        content_type, _ = mimetypes.guess_type(str(file_path))
        if content_type is None:
            content_type = "application/octet-stream"
        elif content_type.startswith("text/") or content_type == "application/javascript":
            content_type += "; charset=utf-8"

        body = b"" if head else await anyio.Path(file_path).read_bytes()
        return Response(body=body, content_type=content_type).with_header(
            "Cache-Control", self._cache_control
        )
