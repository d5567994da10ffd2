"""Data models for virtual pages.

Immutable frozen dataclasses describing declared and discovered pages
and the directory-scanning options that produce the latter.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any


@dataclass(frozen=True, slots=True)
class Page:
    """A named virtual route with an optional entry script and template.

    Attributes:
        name: Unique page name.  Must not contain ``/``.
        filename: Served virtual path relative to the base, e.g.
            ``"about.html"``.  Defaults to ``"{name}.html"``.
        entry: Root-absolute path of the script module injected into the
            page, e.g. ``"/src/about/main.ts"``.
        template: Template file relative to the project root.  ``None``
            means the table's default template.
        data: Variables available to the template at render time.
    """

    name: str
    filename: str | None = None
    entry: str | None = None
    template: str | None = None
    data: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.data, MappingProxyType):
            object.__setattr__(self, "data", MappingProxyType(dict(self.data)))

    @property
    def served_path(self) -> str:
        """The virtual path this page is served under."""
        return self.filename or f"{self.name}.html"


@dataclass(frozen=True, slots=True)
class ScanOptions:
    """Directory-scanning options for page discovery.

    Every immediate subdirectory of each directory in *scan_dirs* becomes
    a page named after the subdirectory::

        ScanOptions(
            scan_dirs="src/views",
            entry_file="main.ts",
            filename=lambda name: f"{name}.html",
        )

    Attributes:
        scan_dirs: One directory or a sequence of directories, relative to
            the project root.
        entry_file: File name that becomes each page's entry, joined under
            the discovered subdirectory.
        filename: Maps a discovered directory name to a served path.
    """

    scan_dirs: str | tuple[str, ...] = ()
    entry_file: str | None = None
    filename: Callable[[str], str] | None = None

    def __post_init__(self) -> None:
        if isinstance(self.scan_dirs, str):
            object.__setattr__(self, "scan_dirs", (self.scan_dirs,))
        else:
            object.__setattr__(self, "scan_dirs", tuple(self.scan_dirs))
