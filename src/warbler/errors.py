"""Warbler exception hierarchy.

Shared across table construction, discovery, rendering, and the request
pipeline so every module raises and catches the same types.
"""

from dataclasses import dataclass


class WarblerError(Exception):
    """Base for all warbler-specific errors."""


class ConfigurationError(WarblerError):
    """Raised when a page definition or option is malformed.

    Fatal at table-build time: startup or reconciliation is aborted
    rather than publishing a partially valid table.
    """


class DiscoveryError(WarblerError):
    """Raised when a configured scan directory is missing or unreadable."""


class RenderError(WarblerError):
    """A page template could not be loaded or rendered.

    Scoped to a single request.  The route table stays valid.
    """

    def __init__(self, message: str, *, filename: str, page: str | None = None) -> None:
        super().__init__(message)
        self.filename = filename
        self.page = page

    def __str__(self) -> str:
        base = super().__str__()
        if self.page is not None:
            return f"{base} (page {self.page!r}, template {self.filename!r})"
        return f"{base} ({self.filename!r})"


class LoadFailure(WarblerError):  # noqa: N818
    """The page loader returned nothing for a route the table claims to own."""

    def __init__(self, filename: str) -> None:
        super().__init__(f"Failed to load url {filename}")
        self.filename = filename


@dataclass(frozen=True, slots=True)
class HTTPError(WarblerError):
    """An error that maps directly to an HTTP status code."""

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404: nothing in the pipeline handled the request path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)
