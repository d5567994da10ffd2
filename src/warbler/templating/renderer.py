"""Page template rendering.

Loads a page's template from disk, injects the page's entry module
before the first ``</body>``, and runs the result through kida with the
server's environment variables and the page's ``data`` in scope.

When neither step changes anything, :meth:`TemplateRenderer.render`
returns the *same* string object it was given, so callers can detect
"unchanged" with an identity check and skip further processing.
"""

from __future__ import annotations

import html
import logging
import re
from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any

import anyio
from kida import Environment

from warbler._internal.paths import normalize_path
from warbler.errors import RenderError
from warbler.pages.types import Page

if TYPE_CHECKING:
    from warbler.pages.table import RouteTable

logger = logging.getLogger("warbler.server")

_BODY_CLOSE_RE = re.compile(r"</body\s*>", re.IGNORECASE)

# Any kida tag opener: {{ ... }}, {% ... %}, {# ... #}
_MARKUP_RE = re.compile(r"\{[{%#]")


def entry_script(entry: str) -> str:
    """The module script tag referencing *entry*."""
    src = html.escape(normalize_path(entry), quote=True)
    return f'<script type="module" src="{src}"></script>'


def inject_entry(source: str, entry: str) -> str:
    """Insert the entry script immediately before the first ``</body>``.

    Returns *source* itself when it has no closing body tag.
    """
    found = _BODY_CLOSE_RE.search(source)
    if found is None:
        return source
    start = found.start()
    return f"{source[:start]}{entry_script(entry)}\n{source[start:]}"


class TemplateRenderer:
    """Render page templates.

    Usage::

        renderer = TemplateRenderer(root=".", variables={"MODE": "development"})
        source = await renderer.load(page, table)
        html = renderer.render(page, source)

    Args:
        root: Project root template paths are relative to.
        variables: Environment variables in scope for every page.
        autoescape: Escape variable output in templates.
        kida_env: A preconfigured kida ``Environment`` to render with.
    """

    __slots__ = ("_env", "_root", "_variables")

    def __init__(
        self,
        root: str | Path = ".",
        *,
        variables: Mapping[str, Any] | None = None,
        autoescape: bool = True,
        kida_env: Environment | None = None,
    ) -> None:
        self._root = Path(root)
        self._variables: dict[str, Any] = dict(variables or {})
        self._env = kida_env if kida_env is not None else Environment(autoescape=autoescape)

    @property
    def root(self) -> Path:
        return self._root

    async def load(self, page: Page, table: RouteTable) -> str:
        """Read the template *page* renders from.

        Raises:
            RenderError: The template file is missing or unreadable.
        """
        template = table.template_for(page)
        try:
            return await anyio.Path(self._root / template).read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise RenderError("Template not found", filename=template, page=page.name) from exc
        except OSError as exc:
            raise RenderError(
                f"Template could not be read: {exc}", filename=template, page=page.name
            ) from exc

    def render(self, page: Page, source: str, *, filename: str | None = None) -> str:
        """Inject the entry script and substitute variables.

        Args:
            page: The page being rendered.
            source: Raw template content.
            filename: Template path used in error reports.

        Returns:
            The rendered HTML, or *source* itself when nothing changed.

        Raises:
            RenderError: The template failed to compile or render.
        """
        content = inject_entry(source, page.entry) if page.entry else source
        if page.entry and content is source:
            logger.warning("Page %r: no </body> in template, entry %s not injected", page.name, page.entry)

        if _MARKUP_RE.search(content) is None:
            return content

        context = {**self._variables, **page.data}
        label = filename or page.template or page.served_path
        try:
            rendered = self._env.from_string(content).render(context)
        except Exception as exc:
            raise RenderError(f"Template render failed: {exc}", filename=label, page=page.name) from exc

        if content is source and rendered == source:
            return source
        return rendered

    async def render_page(self, page: Page, table: RouteTable) -> str:
        """Load and render *page* in one step."""
        source = await self.load(page, table)
        return self.render(page, source, filename=table.template_for(page))
