"""
stats.py - Statistics Aggregator

Reads a fully classified LedgerGraph and produces the run's statistics.
The graph is never mutated.

Core statistics (the origin is excluded from every count):
    PCT VALID   = 100 * valid / total
    AVG TX RATE = total / (max timestamp - min timestamp)

Both are rounded to STATS_DECIMAL_PLACES with ROUND_HALF_EVEN. When the
denominator is zero the statistic is None and prints as UNDEFINED_STAT.

Extended statistics describe the valid subgraph:
    AVG DAG DEPTH     = sum of valid depths / (valid + 1)
    AVG TXS PER DEPTH = mean of the per-depth histogram over depths 1..max
    AVG REFS          = distinct parent refs of valid nodes / (valid + 1)
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal, localcontext
from typing import List, Optional, Tuple

import numpy as np

from .core import (
    Validity, LedgerError,
    DECIMAL_PRECISION,
    STATS_DECIMAL_PLACES, EXTENDED_DECIMAL_PLACES, STATS_ROUNDING,
    UNDEFINED_STAT,
    LABEL_PCT_VALID, LABEL_AVG_TX_RATE,
    LABEL_AVG_DAG_DEPTH, LABEL_AVG_TXS_PER_DEPTH, LABEL_AVG_REFS,
)
from .graph import LedgerGraph


@dataclass(frozen=True, slots=True)
class Stats:
    """
    Immutable statistics for one classified ledger.

    Attributes:
        total: Non-origin transaction count
        valid: Non-origin transactions classified Valid
        invalid: Non-origin transactions classified Invalid
        pct_valid: Rounded percentage of valid transactions (None if total == 0)
        time_span: max - min timestamp over non-origin transactions (None if total == 0)
        avg_tx_rate: Rounded transactions per unit time (None if the span is zero)
        avg_dag_depth: Rounded mean depth of the valid subgraph
        avg_txs_per_depth: Rounded mean number of valid transactions per depth level
        avg_refs: Rounded mean distinct parent references per valid node
        txs_per_depth: Valid transaction count at depth 1, 2, ... max depth
    """
    total: int
    valid: int
    invalid: int
    pct_valid: Optional[Decimal]
    time_span: Optional[Decimal]
    avg_tx_rate: Optional[Decimal]
    avg_dag_depth: Decimal = Decimal("0")
    avg_txs_per_depth: Decimal = Decimal("0")
    avg_refs: Decimal = Decimal("0")
    txs_per_depth: Tuple[int, ...] = ()


def _round(value: Decimal, places: int) -> Decimal:
    return value.quantize(Decimal(10) ** -places, rounding=STATS_ROUNDING)


def _ratio(numerator, denominator, places: int) -> Decimal:
    return _round(Decimal(int(numerator)) / Decimal(int(denominator)), places)


def _valid_depths(graph: LedgerGraph) -> Tuple[np.ndarray, int]:
    """
    Shortest parent-path length to the origin for every valid non-origin node.

    Returns:
        (depths array, total distinct parent references of those nodes)
    """
    depth: List[int] = [-1] * len(graph)
    depth[graph.origin_index] = 0
    valid_depths: List[int] = []
    refs = 0

    for node in graph.topological():
        if node.is_origin or node.validity is not Validity.VALID:
            continue
        # Parents of a Valid node are all Valid and already have a depth
        depth[node.index] = 1 + min(depth[p] for p in node.parents)
        valid_depths.append(depth[node.index])
        refs += len(node.parents)

    return np.asarray(valid_depths, dtype=np.int64), refs


def compute_stats(graph: LedgerGraph) -> Stats:
    """
    Compute statistics for a classified graph.

    Raises:
        LedgerError: If any node is still Unvalidated
    """
    if not graph.is_classified:
        raise LedgerError("Cannot compute statistics for an unclassified graph")

    transactions = graph.transactions()
    total = len(transactions)
    is_valid = np.fromiter(
        (n.validity is Validity.VALID for n in transactions), dtype=bool, count=total
    )
    valid = int(np.count_nonzero(is_valid))

    pct_valid = None
    time_span = None
    avg_tx_rate = None
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        if total:
            pct_valid = _round(Decimal(100) * valid / total, STATS_DECIMAL_PLACES)
            timestamps = [n.record.timestamp for n in transactions]
            time_span = max(timestamps) - min(timestamps)
            if time_span:
                avg_tx_rate = _round(Decimal(total) / time_span, STATS_DECIMAL_PLACES)

    depths, refs = _valid_depths(graph)
    if depths.size:
        histogram = np.bincount(depths)[1:]
        avg_txs_per_depth = _ratio(histogram.sum(), histogram.size, EXTENDED_DECIMAL_PLACES)
    else:
        histogram = np.zeros(0, dtype=np.int64)
        avg_txs_per_depth = _round(Decimal(0), EXTENDED_DECIMAL_PLACES)

    return Stats(
        total=total,
        valid=valid,
        invalid=total - valid,
        pct_valid=pct_valid,
        time_span=time_span,
        avg_tx_rate=avg_tx_rate,
        avg_dag_depth=_ratio(depths.sum(), valid + 1, EXTENDED_DECIMAL_PLACES),
        avg_txs_per_depth=avg_txs_per_depth,
        avg_refs=_ratio(refs, valid + 1, EXTENDED_DECIMAL_PLACES),
        txs_per_depth=tuple(int(c) for c in histogram),
    )


def _fmt(value: Optional[Decimal], places: int) -> str:
    if value is None:
        return UNDEFINED_STAT
    return f"{value:.{places}f}"


def format_stats(stats: Stats, extended: bool = False) -> str:
    """
    Render statistics as labeled lines.

    Example:
        PCT VALID: 33.33%
        AVG TX RATE: 1.50
    """
    pct = _fmt(stats.pct_valid, STATS_DECIMAL_PLACES)
    if stats.pct_valid is not None:
        pct += "%"
    lines = [
        f"{LABEL_PCT_VALID}: {pct}",
        f"{LABEL_AVG_TX_RATE}: {_fmt(stats.avg_tx_rate, STATS_DECIMAL_PLACES)}",
    ]
    if extended:
        lines.extend([
            f"{LABEL_AVG_DAG_DEPTH}: {_fmt(stats.avg_dag_depth, EXTENDED_DECIMAL_PLACES)}",
            f"{LABEL_AVG_TXS_PER_DEPTH}: {_fmt(stats.avg_txs_per_depth, EXTENDED_DECIMAL_PLACES)}",
            f"{LABEL_AVG_REFS}: {_fmt(stats.avg_refs, EXTENDED_DECIMAL_PLACES)}",
        ])
    return "\n".join(lines)
