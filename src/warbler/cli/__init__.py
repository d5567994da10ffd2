"""Warbler CLI: dev server and preview server.

Entry point registered as ``warbler`` in ``pyproject.toml``::

    [project.scripts]
    warbler = "warbler.cli:main"
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``warbler`` command."""
    parser = argparse.ArgumentParser(
        prog="warbler",
        description="Warbler: a development server for multi-page applications.",
    )
    subparsers = parser.add_subparsers(dest="command")

    for command, help_text in (
        ("dev", "Serve virtual pages with live reload"),
        ("preview", "Serve the built output directory"),
    ):
        sub = subparsers.add_parser(command, help=help_text)
        sub.add_argument(
            "target",
            help="Import string of an App or AppConfig (e.g. mpa_config:config)",
        )
        sub.add_argument("--host", default=None, help="Bind host address")
        sub.add_argument("--port", type=int, default=None, help="Bind port number")
        sub.add_argument(
            "--log-level",
            default="info",
            choices=("debug", "info", "warning", "error"),
            help="Logging level (default: info)",
        )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    from warbler.cli._run import run_server

    run_server(args)
