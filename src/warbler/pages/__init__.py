"""Virtual pages: definitions, discovery, and route table snapshots.

Pages come from two sources, merged with explicit pages first::

    AppConfig(
        pages=[Page("home", filename="index.html", entry="/src/home.ts")],
        scan_options=ScanOptions(scan_dirs="src/views", entry_file="main.ts"),
    )

    src/views/
      about/
        main.ts      # -> Page("about", entry="/src/views/about/main.ts")
      contact/
        main.ts      # -> Page("contact", entry="/src/views/contact/main.ts")
"""

from warbler.pages.discovery import scan_pages
from warbler.pages.table import RouteTable, build_route_table, validate_page
from warbler.pages.types import Page, ScanOptions

__all__ = [
    "Page",
    "RouteTable",
    "ScanOptions",
    "build_route_table",
    "scan_pages",
    "validate_page",
]
