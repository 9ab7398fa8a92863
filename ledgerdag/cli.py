"""
cli.py - Command-line entry point

Usage:
    ledgerdag [--rule NAME] [--extended] [-v | -q] [PATH]

Reads PATH (or stdin when PATH is omitted or "-"), prints the statistics to
stdout and diagnostics to stderr.

Exit codes:
    0  statistics printed (skipped lines do not change this)
    1  structural error in the ledger (duplicate id, dangling reference,
       self reference, cycle, zero or several origins)
    2  usage error
    3  input could not be read
"""

from __future__ import annotations
import argparse
import sys
from typing import List, Optional, Sequence

from . import __version__
from .core import (
    GraphError, InputError,
    EXIT_OK, EXIT_STRUCTURAL_ERROR, EXIT_INPUT_ERROR,
)
from .pipeline import run_pipeline
from .stats import format_stats
from .validity import RULES, DEFAULT_RULE, get_rule


def read_input(path: Optional[str]) -> List[str]:
    """
    Read every line of the input source.

    Args:
        path: File path, or None / "-" for stdin

    Raises:
        InputError: If the source cannot be opened, read or decoded as UTF-8
    """
    try:
        if path is None or path == "-":
            return sys.stdin.read().splitlines()
        with open(path, encoding="utf-8") as f:
            return f.read().splitlines()
    except (OSError, UnicodeDecodeError) as e:
        source = "stdin" if path in (None, "-") else path
        raise InputError(f"cannot read {source}: {e}") from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ledgerdag",
        description="Classify a transaction ledger DAG and report validity and rate statistics.",
    )
    parser.add_argument(
        "path", nargs="?", default=None,
        help="input file, one 'id,timestamp,value[,parent...]' record per line (default: stdin)",
    )
    parser.add_argument(
        "--rule", choices=sorted(RULES), default=DEFAULT_RULE,
        help=f"local validity rule (default: {DEFAULT_RULE})",
    )
    parser.add_argument(
        "--extended", action="store_true",
        help="also print depth and reference statistics",
    )
    noise = parser.add_mutually_exclusive_group()
    noise.add_argument("-v", "--verbose", action="store_true", help="trace classification to stderr")
    noise.add_argument("-q", "--quiet", action="store_true", help="do not report skipped lines")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        lines = read_input(args.path)
        result = run_pipeline(lines, rule=get_rule(args.rule), verbose=args.verbose)
    except InputError as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_INPUT_ERROR
    except GraphError as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_STRUCTURAL_ERROR

    if not args.quiet:
        for error in result.parse_errors:
            print(f"skipped {error}", file=sys.stderr)

    print(format_stats(result.stats, extended=args.extended))
    return EXIT_OK
