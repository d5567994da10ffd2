"""Route table snapshots.

A :class:`RouteTable` is one immutable generation of the page set:
name -> served path, served path -> page, the set of template files in
use, and the matcher derived from the names.  Rebuilding never mutates a
published table; a new snapshot is built and swapped in whole.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from warbler.errors import ConfigurationError
from warbler.pages.types import Page
from warbler.routing.matcher import PageMatcher

logger = logging.getLogger("warbler.pages")


@dataclass(frozen=True, slots=True)
class RouteTable:
    """One immutable generation of the page set.

    Attributes:
        by_name: Page name -> served path, in registration order.
        by_path: Served path -> page.
        template_set: Template files (root-relative) in use.  Always
            contains the default template.
        default_template: Template for pages that declare none.
        matcher: Recognises page names in request paths.
        entries: Entry modules of the explicitly declared pages.
    """

    by_name: Mapping[str, str]
    by_path: Mapping[str, Page]
    template_set: frozenset[str]
    default_template: str
    matcher: PageMatcher
    entries: tuple[str, ...] = ()

    def template_for(self, page: Page) -> str:
        """The template file *page* renders from."""
        return page.template or self.default_template

    def lookup(self, pathname: str) -> str | None:
        """Return the served path when *pathname* names a virtual file directly.

        ``/app/docs/intro.html`` under base ``/app/`` finds a page whose
        ``filename`` is ``docs/intro.html``.
        """
        prefix = self.matcher.prefix
        if not pathname.startswith(prefix):
            return None
        candidate = pathname[len(prefix) :]
        if candidate in self.by_path:
            return candidate
        return None

    def __len__(self) -> int:
        return len(self.by_name)


def validate_page(page: Page) -> None:
    """Reject malformed page definitions.

    Raises:
        ConfigurationError: The served path is absolute, the name contains
            ``/``, or the entry is not root-absolute.
    """
    filename = page.served_path
    if filename.startswith("/"):
        raise ConfigurationError(
            f"Page {page.name!r}: make sure the path is relative, received {filename!r}"
        )
    if "/" in page.name:
        raise ConfigurationError(f"Page name shouldn't include '/', received {page.name!r}")
    if page.entry and not page.entry.startswith("/"):
        raise ConfigurationError(
            f"Page {page.name!r}: entry must be an absolute path relative to the "
            f"project root, received {page.entry!r}"
        )


def build_route_table(
    explicit: Iterable[Page],
    discovered: Iterable[Page] = (),
    *,
    default_template: str = "index.html",
    base: str = "/",
) -> RouteTable:
    """Build a route table from explicit and discovered pages.

    Explicit pages are registered first.  The first page with a given
    name wins, which is how an explicit page shadows a discovered one.
    Every page is validated, including shadowed duplicates; any invalid
    page aborts the whole build.  Two pages with different names may
    not share a served path.

    Raises:
        ConfigurationError: A page definition is malformed.
    """
    explicit = tuple(explicit)
    by_name: dict[str, str] = {}
    by_path: dict[str, Page] = {}
    templates: set[str] = {default_template}

    for page in (*explicit, *discovered):
        validate_page(page)
        if page.name in by_name:
            logger.debug("Skipping duplicate page %r", page.name)
            continue
        filename = page.served_path
        if filename in by_path:
            raise ConfigurationError(
                f"Pages {by_path[filename].name!r} and {page.name!r} are both served as {filename!r}"
            )
        by_name[page.name] = filename
        by_path[filename] = page
        if page.template:
            templates.add(page.template)

    return RouteTable(
        by_name=MappingProxyType(by_name),
        by_path=MappingProxyType(by_path),
        template_set=frozenset(templates),
        default_template=default_template,
        matcher=PageMatcher.build(base, by_name),
        entries=tuple(page.entry for page in explicit if page.entry),
    )


def empty_table(default_template: str = "index.html", base: str = "/") -> RouteTable:
    """A table with no pages."""
    return build_route_table((), default_template=default_template, base=base)
