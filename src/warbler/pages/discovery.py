"""Directory-scanning page discovery.

Each configured scan directory is listed one level deep.  Every
immediate subdirectory becomes a :class:`Page` named after it, with an
optional entry module and served filename derived from
:class:`ScanOptions`.  Plain files at the top level are ignored.

Discovered pages are merged *beneath* explicitly declared pages when
the route table is built, so an explicit page always shadows a
discovered one with the same name.
"""

from __future__ import annotations

import posixpath
from pathlib import Path

from warbler.errors import DiscoveryError
from warbler.pages.types import Page, ScanOptions


def scan_pages(options: ScanOptions | None, root: str | Path = ".") -> list[Page]:
    """Expand scan options into page definitions.

    Args:
        options: Scan options, or ``None`` for no discovery.
        root: Project root the scan directories are relative to.

    Returns:
        Discovered pages in directory-listing (sorted) order.

    Raises:
        DiscoveryError: A scan directory does not exist or cannot be read.
    """
    if options is None:
        return []

    root_path = Path(root)
    pages: list[Page] = []
    for scan_dir in options.scan_dirs:
        if not scan_dir:
            continue
        for name in _list_subdirectories(root_path / scan_dir):
            pages.append(
                Page(
                    name=name,
                    filename=options.filename(name) if options.filename is not None else None,
                    entry=_root_absolute(scan_dir, name, options.entry_file)
                    if options.entry_file
                    else None,
                )
            )
    return pages


def _list_subdirectories(directory: Path) -> list[str]:
    """Names of the immediate subdirectories of *directory*."""
    try:
        items = sorted(directory.iterdir())
    except FileNotFoundError as exc:
        raise DiscoveryError(f"Scan directory not found: {directory}") from exc
    except NotADirectoryError as exc:
        raise DiscoveryError(f"Scan path is not a directory: {directory}") from exc
    except OSError as exc:
        raise DiscoveryError(f"Cannot read scan directory {directory}: {exc}") from exc
    return [item.name for item in items if item.is_dir()]


def _root_absolute(*parts: str) -> str:
    """Join *parts* into a ``/``-rooted POSIX path."""
    joined = posixpath.join("/", *(part.replace("\\", "/") for part in parts))
    return posixpath.normpath(joined)
