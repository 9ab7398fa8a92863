"""
pipeline.py - Run orchestration

Flow: Parse -> Build -> Classify -> Aggregate

Each stage consumes the previous stage's complete output. Per-line parse
errors are carried in the RunResult; structural errors propagate as
GraphError and no statistics are produced.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterable, Tuple
import sys

from .core import ParseError, Validity
from .parse import parse_records
from .graph import LedgerGraph, build_graph
from .validity import ValidityRule, ValidityEngine, non_negative_value
from .stats import Stats, compute_stats


@dataclass(frozen=True, slots=True)
class RunResult:
    """
    Everything one run produced.

    Attributes:
        graph: The classified ledger graph
        classification: Identifier -> Validity, in input order
        stats: Aggregated statistics
        parse_errors: Skipped input lines, in input order
    """
    graph: LedgerGraph
    classification: Dict[str, Validity]
    stats: Stats
    parse_errors: Tuple[ParseError, ...] = ()

    @property
    def skipped(self) -> int:
        return len(self.parse_errors)


def run_pipeline(
    lines: Iterable[str],
    rule: ValidityRule = non_negative_value,
    verbose: bool = False,
) -> RunResult:
    """
    Run the full pipeline over raw input lines.

    Args:
        lines: Input text, one record per line
        rule: Local validity rule
        verbose: Trace stage progress and classifications to stderr

    Returns:
        RunResult with the classified graph and statistics

    Raises:
        GraphError: If the ledger topology is malformed
    """
    parsed = parse_records(lines)
    if verbose:
        print(
            f"[PARSE] {len(parsed.records)} records, {parsed.skipped} skipped",
            file=sys.stderr,
        )

    graph = build_graph(parsed.records)
    if verbose:
        print(f"[GRAPH] {len(graph)} nodes, origin {graph.origin.identifier}", file=sys.stderr)

    classification = ValidityEngine(rule, verbose=verbose).classify(graph)
    stats = compute_stats(graph)

    return RunResult(
        graph=graph,
        classification=classification,
        stats=stats,
        parse_errors=tuple(parsed.errors),
    )
