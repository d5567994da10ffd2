"""HTML injection middleware.

Injects a snippet (the live-reload client by default) into every full
``text/html`` response, immediately before the first ``</body>``.
The target tag is matched case-insensitively, and whitespace before
its closing ``>`` is allowed, the same way entry scripts are placed.
"""

import re
from dataclasses import replace

from warbler.http.request import Request
from warbler.http.response import Response
from warbler.middleware.protocol import AnyResponse, Next


class HTMLInject:
    """Middleware that injects HTML content into text/html responses.

    Only affects ``Response`` objects whose ``content_type`` contains
    ``text/html``; streaming responses pass through unchanged.  When the
    *before* target is absent the response is left alone, so fragments
    and error snippets are never modified.

    Usage::

        app.add_middleware(HTMLInject(
            '<script src="/__reload.js"></script>',
            before="</body>",
        ))
    """

    __slots__ = ("_snippet", "_target")

    def __init__(self, snippet: str, *, before: str = "</body>") -> None:
        self._snippet = snippet
        self._target = _tag_pattern(before)

    async def __call__(self, request: Request, next: Next) -> AnyResponse:
        """Inject the snippet into HTML responses."""
        response = await next(request)

        if not isinstance(response, Response):
            return response
        if "text/html" not in response.content_type:
            return response

        body = response.text
        found = self._target.search(body)
        if found is None:
            return response
        start = found.start()
        return replace(response, body=f"{body[:start]}{self._snippet}{body[start:]}")


def _tag_pattern(tag: str) -> re.Pattern[str]:
    """Case-insensitive pattern for *tag*, tolerating ``</body >``."""
    if tag.endswith(">"):
        return re.compile(re.escape(tag[:-1]) + r"\s*>", re.IGNORECASE)
    return re.compile(re.escape(tag), re.IGNORECASE)
