"""``warbler dev`` / ``warbler preview``: resolve the app and serve it.

Resolves an import string to a warbler App for the requested mode and
starts the pounce server.  Configuration problems are reported on
stderr with exit status 1.
"""

import argparse
import logging
import sys

from warbler.cli._resolve import resolve_app
from warbler.errors import WarblerError


def configure_logging(level: str) -> None:
    """Send warbler's loggers to stderr at *level*."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="[warbler] %(message)s",
        stream=sys.stderr,
    )


def run_server(args: argparse.Namespace) -> None:
    """Start the server for the parsed ``dev``/``preview`` arguments."""
    configure_logging(args.log_level)
    try:
        app = resolve_app(args.target, mode=args.command)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    try:
        app.run(host=args.host, port=args.port)
    except WarblerError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc
