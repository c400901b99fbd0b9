#!/usr/bin/env python3
"""packspec/main.py — CLI entry-point.

Usage examples
--------------
    # Run README.md (or the documents listed in packspec.yml)
    python -m packspec

    # Run specific documents, or every supported document of a directory
    python -m packspec docs/calculator.yml docs/

    # Run the YAML specs as another target would (tag-gated features flip)
    python -m packspec specs/ --tag js

    # Stop at the first failure and dump the scope
    python -m packspec README.md --exit-first

Exit codes
----------
    0   Every spec passed.
    1   At least one feature or line failed, or a document could not be loaded.
    2   Infrastructure failure (bad configuration, constant reassignment, etc.).

The module doubles as ``python -m packspec`` via the companion
``packspec/__main__.py`` which simply calls :func:`main`.
"""

from __future__ import annotations

import argparse
import logging
import sys
import textwrap
from typing import Optional, Sequence

from packspec import __version__
from packspec.config import load_config
from packspec.errors import ConfigError
from packspec.report import Reporter, RunResult
from packspec.runner import run

_log = logging.getLogger("packspec")

# Exit codes ----------------------------------------------------------------

EXIT_OK: int = 0
EXIT_ERROR: int = 1
EXIT_INFRA: int = 2


# ===========================================================================
# Utility helpers
# ===========================================================================

def _configure_logging(verbosity: int) -> None:
    """Set up the root ``packspec`` logger.

    Parameters
    ----------
    verbosity:
        0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    root = logging.getLogger("packspec")
    root.setLevel(level)
    root.addHandler(handler)


def exit_code(result: RunResult) -> int:
    """Map a finished run onto the process exit status."""
    if result.fatal is not None:
        return EXIT_INFRA
    if result.success:
        return EXIT_OK
    return EXIT_ERROR


# ===========================================================================
# Argument parser
# ===========================================================================

def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="packspec",
        description=(
            "packspec — executable package specifications.\n\n"
            "Runs tagged YAML, annotated Markdown and commented Python\n"
            "listings as conformance tests against the live package."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              packspec
              packspec docs/calculator.yml --tag py
              packspec README.md --exit-first
        """),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "paths",
        nargs="*",
        metavar="PATH",
        help="Documents or directories to run (default: packspec.yml documents, else README.md).",
    )
    parser.add_argument(
        "--tag",
        default=None,
        help="Target tag used to evaluate skip lists (default: py).",
    )
    parser.add_argument(
        "-x", "--exit-first",
        action="store_true",
        default=None,
        help="Stop after the first failing feature and dump the scope.",
    )
    parser.add_argument(
        "--config",
        default=None,
        metavar="FILE",
        help="Configuration file (default: ./packspec.yml when present).",
    )
    parser.add_argument(
        "--no-color",
        action="store_false",
        dest="color",
        default=None,
        help="Disable coloured output.",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v info, -vv debug).",
    )
    return parser


# ===========================================================================
# Main entry point
# ===========================================================================

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the packspec CLI.

    Parameters
    ----------
    argv:
        Command-line arguments.  ``None`` → ``sys.argv[1:]``.

    Returns
    -------
    int
        Exit code (see module docstring for semantics).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)

    try:
        config = load_config(args.config).with_overrides(
            target=args.tag,
            exit_first=args.exit_first,
            color=args.color,
        )
    except ConfigError as exc:
        _log.error("%s", exc)
        return EXIT_INFRA

    try:
        result = run(args.paths, config, Reporter(sys.stdout, color=config.color))
    except KeyboardInterrupt:
        _log.info("Interrupted by user.")
        return 130
    except Exception as exc:
        _log.error("Unhandled exception: %s", exc, exc_info=True)
        return EXIT_INFRA
    return exit_code(result)


if __name__ == "__main__":
    raise SystemExit(main())
