"""revdeps CLI — query a local package-registry index from the command line.

Usage::

    python -m revdeps (-r [NAME] | -t [NAME] | -o) [options]

Options::

    -r, --revdeps [NAME]    Direct reverse dependencies of NAME, or rank all
                            packages by direct reverse-dependency count
    -t, --trevdeps [NAME]   Transitive reverse dependencies of NAME, or rank
                            all packages by transitive count
    -o, --one-point-oh      List packages with their first >= 1.0.0 version
    --index PATH            Index checkout (default: cargo home index)
    --kind KIND             Dependency kind that creates edges (repeatable)
    --exclude-optional      Ignore optional dependencies
    --exclude-yanked        Ignore yanked versions
    --workers N             Threads used to parse package files
    --json-output           Print JSON instead of one line per package
    --verbose / -v          Enable verbose logging
"""

import argparse
import logging
import sys
from typing import Optional, TextIO

from revdeps.config import RunConfig, resolve_index_path
from revdeps.errors import RevdepsError
from revdeps.graph import EdgeFilter
from revdeps.pipeline import run_query
from revdeps.record import DEPENDENCY_KINDS, KIND_NORMAL
from revdeps.report import (
    MODE_MILESTONES,
    MODE_REVDEP_RANKING,
    MODE_REVDEPS,
    MODE_TREVDEP_RANKING,
    MODE_TREVDEPS,
)

logger = logging.getLogger(__name__)

# Marker for "-r"/"-t" given without a package name
_ALL = object()


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="revdeps",
        description=(
            "Reverse-dependency and 1.0-milestone queries over a local "
            "crates.io-style registry index."
        ),
    )
    modes = parser.add_mutually_exclusive_group(required=True)
    modes.add_argument(
        "-r", "--revdeps",
        nargs="?",
        const=_ALL,
        default=None,
        metavar="NAME",
        help="List packages depending directly on NAME (rank all packages if omitted)",
    )
    modes.add_argument(
        "-t", "--trevdeps",
        nargs="?",
        const=_ALL,
        default=None,
        metavar="NAME",
        help=(
            "List packages depending transitively on NAME (rank all packages "
            "if omitted; ranking walks the graph once per package and is slow "
            "on a full crates.io index)"
        ),
    )
    modes.add_argument(
        "-o", "--one-point-oh",
        action="store_true",
        default=False,
        help="List packages by the first version that reached 1.0.0",
    )
    parser.add_argument(
        "--index",
        default=None,
        help="The local index checkout, from the cargo home if omitted",
    )
    parser.add_argument(
        "--kind",
        action="append",
        choices=sorted(DEPENDENCY_KINDS),
        default=None,
        help="Dependency kind that creates an edge; repeatable (default: normal)",
    )
    parser.add_argument(
        "--exclude-optional",
        action="store_true",
        default=False,
        help="Do not count optional dependencies as edges",
    )
    parser.add_argument(
        "--exclude-yanked",
        action="store_true",
        default=False,
        help="Do not count dependencies declared by yanked versions",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Threads used to parse package files (default: 1)",
    )
    parser.add_argument(
        "--json-output",
        action="store_true",
        default=False,
        help="Print results as JSON",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        default=False,
        help="Enable verbose logging",
    )
    return parser


def _mode_and_target(args: argparse.Namespace) -> tuple[str, Optional[str]]:
    if args.revdeps is not None:
        if args.revdeps is _ALL:
            return MODE_REVDEP_RANKING, None
        return MODE_REVDEPS, args.revdeps
    if args.trevdeps is not None:
        if args.trevdeps is _ALL:
            return MODE_TREVDEP_RANKING, None
        return MODE_TREVDEPS, args.trevdeps
    return MODE_MILESTONES, None


def main(
    argv: list[str] | None = None,
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
) -> int:
    """CLI entry point.  Returns exit code (0=success, 1=failure)."""
    stdout = stdout or sys.stdout
    stderr = stderr or sys.stderr

    parser = build_parser()
    args = parser.parse_args(argv)

    # Configure logging
    level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")

    mode, target = _mode_and_target(args)
    edge_filter = EdgeFilter(
        kinds=frozenset(args.kind or [KIND_NORMAL]),
        include_optional=not args.exclude_optional,
        include_yanked=not args.exclude_yanked,
    )

    try:
        config = RunConfig(
            index_path=resolve_index_path(args.index),
            mode=mode,
            target=target,
            edge_filter=edge_filter,
            workers=args.workers,
            json_output=args.json_output,
        )
        result = run_query(config)
    except RevdepsError as exc:
        logger.debug("Run failed", exc_info=True)
        print(f"error: {exc.kind}: {exc}", file=stderr)
        return 1

    result.query.write(stdout, json_output=config.json_output)
    return 0
