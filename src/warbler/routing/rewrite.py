"""Custom rewrite rules.

A rule pairs a pattern with a target.  Rules are evaluated in
declaration order against the request pathname and the first match
wins; there is no merging and no chaining (a rewritten path is never
fed back through the rules).

Targets are either a literal string with ``$1``/``$<name>``
substitutions, or a callable receiving a :class:`RewriteContext`::

    RewriteRule(r"^/docs/(?P<page>\\w+)$", "/docs.html?page=$<page>")
    RewriteRule(r"^/legacy/", lambda ctx: "/index.html")
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING
from urllib.parse import SplitResult, urlsplit

from warbler.errors import ConfigurationError

if TYPE_CHECKING:
    from warbler.http.request import Request

# $$ | $1 | $<name>
_SUBSTITUTION_RE = re.compile(r"\$(?:(\$)|(\d+)|<(\w+)>)")


@dataclass(frozen=True, slots=True)
class RewriteContext:
    """What a callable rewrite target receives.

    Attributes:
        parsed_url: The request URL split into components.
        match: The rule's match against the pathname.
        request: The request being rewritten, when there is one.
    """

    parsed_url: SplitResult
    match: re.Match[str]
    request: Request | None = None


type RewriteTarget = str | Callable[[RewriteContext], str]


@dataclass(frozen=True, slots=True)
class RewriteRule:
    """A ``from`` pattern and a ``to`` target.

    *from_* may be a pattern string or a compiled pattern; it is tested
    with ``search`` semantics, so anchor it when a full match is wanted.
    """

    from_: re.Pattern[str] | str
    to: RewriteTarget

    def __post_init__(self) -> None:
        if isinstance(self.from_, str):
            try:
                object.__setattr__(self, "from_", re.compile(self.from_))
            except re.error as exc:
                msg = f"Invalid rewrite pattern {self.from_!r}: {exc}"
                raise ConfigurationError(msg) from exc

    @property
    def pattern(self) -> re.Pattern[str]:
        """The compiled ``from`` pattern."""
        assert isinstance(self.from_, re.Pattern)
        return self.from_


@dataclass(frozen=True, slots=True)
class RewriteMatch:
    """Result of a successful rewrite evaluation."""

    target: str
    rule: RewriteRule


def expand_target(template: str, match: re.Match[str]) -> str:
    """Substitute ``$1`` and ``$<name>`` groups from *match* into *template*.

    ``$$`` yields a literal ``$``.  Groups that did not participate in the
    match, and references to groups that do not exist, expand to ``""``.
    """

    def _replace(ref: re.Match[str]) -> str:
        dollar, index, name = ref.groups()
        if dollar is not None:
            return "$"
        try:
            value = match.group(int(index)) if index is not None else match.group(name)
        except IndexError:
            return ""
        return value or ""

    return _SUBSTITUTION_RE.sub(_replace, template)


def evaluate_rewrite_rule(
    parsed_url: SplitResult,
    match: re.Match[str],
    to: RewriteTarget,
    request: Request | None = None,
) -> str:
    """Compute the rewrite target for a matched rule."""
    if isinstance(to, str):
        return expand_target(to, match)
    if not callable(to):
        msg = f"Rewrite target must be a string or a callable, got {type(to).__name__}"
        raise ConfigurationError(msg)
    target = to(RewriteContext(parsed_url=parsed_url, match=match, request=request))
    if not isinstance(target, str):
        msg = f"Rewrite target callable returned {type(target).__name__}, expected str"
        raise ConfigurationError(msg)
    return target


def match_rewrite(
    pathname: str,
    rules: Sequence[RewriteRule],
    *,
    url: str | None = None,
    request: Request | None = None,
) -> RewriteMatch | None:
    """Evaluate *rules* in order against *pathname*.

    Args:
        pathname: Decoded request path, without query string.
        rules: Rules in declaration order.
        url: Full request URL (path and query) for callable targets.
            Defaults to *pathname*.
        request: The request, passed through to callable targets.

    Returns:
        The first matching rule and its target, or ``None``.
    """
    for rule in rules:
        found = rule.pattern.search(pathname)
        if found is None:
            continue
        parsed = urlsplit(url if url is not None else pathname)
        target = evaluate_rewrite_rule(parsed, found, rule.to, request)
        return RewriteMatch(target=target, rule=rule)
    return None
