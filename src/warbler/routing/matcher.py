"""Fallback routing from request paths to virtual pages.

Instead of one regex alternation built from every page name, matching
is split in two: a single path-shape pattern extracts the candidate
page segment below the serving base, then the candidate is checked
against the set of registered names.  Page names never pass through
the regex engine, so no escaping is involved.

Recognised shapes, for a page ``about`` under base ``/app/``::

    /app/about
    /app/about.html
    /app/about.htm
    /app/about?tab=1
    /app/about.html#team
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from warbler._internal.paths import base_prefix

if TYPE_CHECKING:
    from warbler.pages.table import RouteTable

# One path segment below the base, then query, fragment or end
_SHAPE = r"(?P<segment>[^/?#]+)(?:[?#].*)?$"
_HTML_SUFFIXES = (".html", ".htm")


@dataclass(frozen=True, slots=True)
class PageMatcher:
    """Recognise which registered page name a path refers to.

    Attributes:
        prefix: Serving base with leading and trailing ``/``.
        names: Registered page names.
        pattern: The compiled path-shape pattern for *prefix*.
    """

    prefix: str
    names: frozenset[str]
    pattern: re.Pattern[str]

    @classmethod
    def build(cls, base: str, names: Iterable[str]) -> PageMatcher:
        """Create a matcher for *names* served under *base*."""
        prefix = base_prefix(base)
        return cls(
            prefix=prefix,
            names=frozenset(names),
            pattern=re.compile("^" + re.escape(prefix) + _SHAPE),
        )

    def match(self, pathname: str) -> str | None:
        """Return the page name *pathname* refers to, or ``None``."""
        found = self.pattern.match(pathname)
        if found is None:
            return None
        segment = found.group("segment")
        # Exact segment first, so a page literally named "x.html" wins
        # over a page "x" for "/x.html".
        if segment in self.names:
            return segment
        for suffix in _HTML_SUFFIXES:
            if segment.endswith(suffix):
                stem = segment[: -len(suffix)]
                if stem in self.names:
                    return stem
        return None


def resolve_page(pathname: str, table: RouteTable) -> str | None:
    """Resolve *pathname* to a served filename using *table*.

    Returns ``None`` when the path is not a recognised virtual page route.
    Callers treat ``None`` as "pass through to the next handler".
    """
    name = table.matcher.match(pathname)
    if name is None:
        return None
    # The matcher and by_name come from the same snapshot, but a lookup
    # miss is still a pass-through rather than an error.
    return table.by_name.get(name)
