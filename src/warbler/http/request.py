"""Immutable HTTP request.

Frozen metadata plus the original URL.  Rewrites never mutate a
request: :meth:`Request.rewrite` returns a new one whose ``path`` and
``query_string`` point at the rewrite target while ``original_path``
and ``original_query`` keep what the client asked for.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Any
from urllib.parse import unquote

from warbler._internal.asgi import Receive
from warbler.http.headers import Headers

_HTML_ACCEPT_RE = re.compile(r"text/html|application/xhtml\+xml")


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    ``path`` is the decoded path the pipeline is currently serving; it
    differs from ``original_path`` after a rewrite.
    """

    method: str
    path: str
    headers: Headers
    query_string: str = ""
    original_path: str = ""
    original_query: str = ""
    http_version: str = "1.1"

    # Private: ASGI receive callable, used only by the live-reload stream
    _receive: Receive | None = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.original_path:
            object.__setattr__(self, "original_path", self.path)
            object.__setattr__(self, "original_query", self.query_string)

    # -- Computed properties --

    @property
    def url(self) -> str:
        """Current URL (path + query string)."""
        if self.query_string:
            return f"{self.path}?{self.query_string}"
        return self.path

    @property
    def original_url(self) -> str:
        """The URL as the client requested it."""
        if self.original_query:
            return f"{self.original_path}?{self.original_query}"
        return self.original_path

    @property
    def is_rewritten(self) -> bool:
        """True once the pipeline has rewritten the URL."""
        return self.url != self.original_url

    @property
    def accepts_html(self) -> bool:
        """True when the ``Accept`` header asks for an HTML document."""
        accept = self.headers.get("accept")
        return bool(accept) and _HTML_ACCEPT_RE.search(accept) is not None

    def rewrite(self, target: str) -> Request:
        """Return a copy of this request pointing at *target*.

        *target* may carry a query string; a fragment is dropped.
        """
        target = target.split("#", 1)[0]
        path, _, query = target.partition("?")
        return replace(self, path=unquote(path) or "/", query_string=query)

    # -- Factory --

    @classmethod
    def from_asgi(cls, scope: dict[str, Any], receive: Receive | None = None) -> Request:
        """Create a Request from an ASGI scope and receive callable."""
        return cls(
            method=scope["method"],
            path=scope["path"],
            headers=Headers(tuple(scope.get("headers", ()))),
            query_string=scope.get("query_string", b"").decode("latin-1"),
            http_version=scope.get("http_version", "1.1"),
            _receive=receive,
        )
