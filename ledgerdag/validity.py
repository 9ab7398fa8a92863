"""
validity.py - Validity Engine

Classifies every node of a LedgerGraph as Valid or Invalid in one pass over
the graph's topological order.

For each non-origin node, in order:
    1. Propagation: any Invalid parent makes the node Invalid.
    2. Local rule: otherwise the configured rule decides.

The origin is Valid by definition. Rules are pure functions of the node's own
record and its parents' records, so sibling evaluation order cannot change
the outcome.
"""

from __future__ import annotations
from decimal import Decimal, localcontext
from typing import Callable, Dict, Optional, Sequence
import sys

from .core import TransactionRecord, Validity, LedgerError, DECIMAL_PRECISION
from .graph import LedgerGraph, LedgerNode


# Rule type: (record, parent_records) -> None if the record passes, else a reason
ValidityRule = Callable[[TransactionRecord, Sequence[TransactionRecord]], Optional[str]]


# ============================================================================
# RULES
# ============================================================================

def non_negative_value(record: TransactionRecord, parents: Sequence[TransactionRecord]) -> Optional[str]:
    """A transaction may not carry a negative value."""
    if record.value < 0:
        return f"negative value {record.value}"
    return None


def parent_bounded_value(record: TransactionRecord, parents: Sequence[TransactionRecord]) -> Optional[str]:
    """
    A transaction may not carry a negative value, nor more than its parents
    carry between them.
    """
    reason = non_negative_value(record, parents)
    if reason:
        return reason
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        available = sum((p.value for p in parents), Decimal("0"))
    if record.value > available:
        return f"value {record.value} exceeds parent total {available}"
    return None


def accept_all(record: TransactionRecord, parents: Sequence[TransactionRecord]) -> Optional[str]:
    return None


RULES: Dict[str, ValidityRule] = {
    "non-negative": non_negative_value,
    "parent-bounded": parent_bounded_value,
    "any": accept_all,
}

DEFAULT_RULE = "non-negative"


def get_rule(name: str) -> ValidityRule:
    """
    Look up a built-in rule by name.

    Raises:
        ValueError: If no rule has that name
    """
    try:
        return RULES[name]
    except KeyError:
        raise ValueError(
            f"Unknown validity rule {name!r}, expected one of {', '.join(sorted(RULES))}"
        ) from None


# ============================================================================
# ENGINE
# ============================================================================

class ValidityEngine:
    """
    Single-pass classifier for a LedgerGraph.

    Example:
        engine = ValidityEngine(parent_bounded_value)
        result = engine.classify(graph)
        result["B"]  # Validity.INVALID
    """

    def __init__(self, rule: ValidityRule = non_negative_value, verbose: bool = False):
        """
        Args:
            rule: Local content rule applied to nodes with no Invalid parent
            verbose: Trace each classification to stderr
        """
        self.rule = rule
        self.verbose = verbose

    def classify(self, graph: LedgerGraph) -> Dict[str, Validity]:
        """
        Assign a terminal validity to every node of the graph.

        Args:
            graph: A freshly built, unclassified graph

        Returns:
            Mapping from identifier to Validity, in input order

        Raises:
            LedgerError: If the graph was already classified
        """
        if any(n.validity.is_terminal for n in graph):
            raise LedgerError("Graph has already been classified")

        for node in graph.topological():
            if node.is_origin:
                node.mark(Validity.VALID)
            else:
                self._classify_node(graph, node)
            if self.verbose:
                self._trace(node)

        return {n.identifier: n.validity for n in graph}

    def _classify_node(self, graph: LedgerGraph, node: LedgerNode) -> None:
        parents = graph.parents_of(node)

        for parent in parents:
            if not parent.validity.is_terminal:
                raise LedgerError(
                    f"Parent {parent.identifier} of {node.identifier} is not classified"
                )

        for parent in parents:
            if parent.validity is Validity.INVALID:
                node.mark(Validity.INVALID, f"inherited from {parent.identifier}")
                return

        reason = self.rule(node.record, tuple(p.record for p in parents))
        if reason:
            node.mark(Validity.INVALID, reason)
        else:
            node.mark(Validity.VALID)

    @staticmethod
    def _trace(node: LedgerNode) -> None:
        if node.validity is Validity.INVALID:
            print(f"[VALIDITY] {node.identifier}: invalid ({node.reason})", file=sys.stderr)
        else:
            print(f"[VALIDITY] {node.identifier}: {node.validity.value}", file=sys.stderr)


def classify(
    graph: LedgerGraph,
    rule: ValidityRule = non_negative_value,
    verbose: bool = False,
) -> Dict[str, Validity]:
    """Classify a graph with a one-off ValidityEngine."""
    return ValidityEngine(rule, verbose=verbose).classify(graph)
