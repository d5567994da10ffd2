"""URL path helpers shared by the table, matcher, and middleware."""

import re

_SLASHES_RE = re.compile(r"/{2,}")


def normalize_path(path: str) -> str:
    """Use forward slashes and collapse repeated separators.

    ``normalize_path("/app//about.html")`` -> ``"/app/about.html"``
    """
    return _SLASHES_RE.sub("/", path.replace("\\", "/"))


def base_prefix(base: str) -> str:
    """The ``/``-delimited serving prefix for *base*.

    ``"/"`` -> ``"/"``, ``"app"`` -> ``"/app/"``, ``"/app/"`` -> ``"/app/"``.
    """
    return normalize_path(f"/{base}/")


def served_url(base: str, filename: str) -> str:
    """The request path a served filename is reachable under."""
    return normalize_path(f"/{base}/{filename}")
