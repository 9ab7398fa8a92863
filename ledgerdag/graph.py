"""
graph.py - Ledger Graph Builder

Assembles parsed TransactionRecords into an arena-backed DAG.

Nodes live in a single list owned by the LedgerGraph. Parent links are
integer indices into that list, never object references, so the whole graph
is released as a unit.

Structural checks (all fatal, in this order):
    1. Duplicate identifiers
    2. Self references
    3. Dangling parent references
    4. Exactly one origin (record with no parents)
    5. No cycles
"""

from __future__ import annotations
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from .core import (
    TransactionRecord, Validity,
    LedgerError,
    DuplicateIdentifier, SelfReference, DanglingReference, OriginError, CycleDetected,
)


# DFS colouring for cycle detection
_UNVISITED = 0
_VISITING = 1
_DONE = 2


@dataclass(slots=True)
class LedgerNode:
    """
    Graph-resident transaction.

    Attributes:
        index: Position of this node in the graph arena
        record: The parsed transaction this node owns
        parents: Arena indices of the distinct parent nodes, in record order
        validity: Classification tag, written once by the validity engine
        reason: Why the node is Invalid (None while Unvalidated or Valid)
    """
    index: int
    record: TransactionRecord
    parents: Tuple[int, ...] = ()
    validity: Validity = Validity.UNVALIDATED
    reason: Optional[str] = None

    @property
    def identifier(self) -> str:
        return self.record.identifier

    @property
    def is_origin(self) -> bool:
        return not self.parents

    def mark(self, validity: Validity, reason: Optional[str] = None) -> None:
        """
        Set the terminal validity tag.

        Raises:
            LedgerError: If the node is already classified or validity is not terminal
        """
        if self.validity.is_terminal:
            raise LedgerError(f"Node {self.identifier} already classified as {self.validity.value}")
        if not validity.is_terminal:
            raise LedgerError(f"Node {self.identifier} must be marked Valid or Invalid")
        self.validity = validity
        self.reason = reason if validity is Validity.INVALID else None


@dataclass(slots=True)
class LedgerGraph:
    """
    The full ledger DAG.

    Attributes:
        nodes: Node arena, in input order
        index: Mapping from identifier to arena index
        origin_index: Arena index of the unique parentless node
        order: Arena indices in topological order (parents before children)
    """
    nodes: List[LedgerNode]
    index: Dict[str, int]
    origin_index: int
    order: Tuple[int, ...] = field(default=())

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[LedgerNode]:
        return iter(self.nodes)

    def __contains__(self, identifier: str) -> bool:
        return identifier in self.index

    @property
    def origin(self) -> LedgerNode:
        return self.nodes[self.origin_index]

    def node(self, identifier: str) -> LedgerNode:
        """Return the node for an identifier (KeyError if unknown)."""
        return self.nodes[self.index[identifier]]

    def parents_of(self, node: LedgerNode) -> List[LedgerNode]:
        return [self.nodes[i] for i in node.parents]

    def topological(self) -> Iterator[LedgerNode]:
        """Iterate nodes so that every node follows all of its parents."""
        for i in self.order:
            yield self.nodes[i]

    def transactions(self) -> List[LedgerNode]:
        """All nodes except the origin, in input order."""
        return [n for n in self.nodes if n.index != self.origin_index]

    @property
    def is_classified(self) -> bool:
        return all(n.validity.is_terminal for n in self.nodes)

    def validity_of(self, identifier: str) -> Validity:
        return self.node(identifier).validity


def _check_duplicates(records: Sequence[TransactionRecord]) -> None:
    counts = Counter(r.identifier for r in records)
    duplicates = [identifier for identifier, n in counts.items() if n > 1]
    if duplicates:
        raise DuplicateIdentifier(duplicates)


def _check_self_references(records: Sequence[TransactionRecord]) -> None:
    offenders = [r.identifier for r in records if r.identifier in r.parents]
    if offenders:
        raise SelfReference(offenders)


def _check_dangling(records: Sequence[TransactionRecord], index: Dict[str, int]) -> None:
    missing: Dict[str, List[str]] = {}
    for r in records:
        for parent in r.parents:
            if parent not in index:
                missing.setdefault(parent, []).append(r.identifier)
    if missing:
        referrers = sorted({child for children in missing.values() for child in children})
        raise DanglingReference(missing, detail=f"referenced by {', '.join(referrers)}")


def _find_origin(records: Sequence[TransactionRecord]) -> int:
    origins = [i for i, r in enumerate(records) if r.is_origin]
    if len(origins) != 1:
        raise OriginError(
            (records[i].identifier for i in origins),
            detail=f"found {len(origins)}",
        )
    return origins[0]


def _topological_order(nodes: List[LedgerNode]) -> Tuple[int, ...]:
    """
    Depth-first post-order over parent links.

    A node is emitted only after all of its parents, so the result is a
    topological order. Reaching a node that is still VISITING means the
    current DFS path loops back on itself.

    Raises:
        CycleDetected: With the identifiers on the offending path
    """
    state = [_UNVISITED] * len(nodes)
    order: List[int] = []

    for start in range(len(nodes)):
        if state[start] != _UNVISITED:
            continue
        state[start] = _VISITING
        stack = [(start, iter(nodes[start].parents))]
        while stack:
            current, pending = stack[-1]
            for parent in pending:
                if state[parent] == _VISITING:
                    path = [i for i, _ in stack]
                    loop = path[path.index(parent):]
                    ids = [nodes[i].identifier for i in loop]
                    raise CycleDetected(ids, detail=" -> ".join(ids + [ids[0]]))
                if state[parent] == _UNVISITED:
                    state[parent] = _VISITING
                    stack.append((parent, iter(nodes[parent].parents)))
                    break
            else:
                state[current] = _DONE
                order.append(current)
                stack.pop()

    return tuple(order)


def build_graph(records: Sequence[TransactionRecord]) -> LedgerGraph:
    """
    Build a LedgerGraph from the complete set of parsed records.

    Args:
        records: Every well-formed record of the run, in input order

    Returns:
        A LedgerGraph with all nodes Unvalidated and a topological order

    Raises:
        DuplicateIdentifier, SelfReference, DanglingReference,
        OriginError, CycleDetected: If the ledger topology is malformed
    """
    records = list(records)
    _check_duplicates(records)
    _check_self_references(records)

    index = {r.identifier: i for i, r in enumerate(records)}
    _check_dangling(records, index)
    origin_index = _find_origin(records)

    nodes = [
        LedgerNode(
            index=i,
            record=r,
            # Repeated parent ids collapse to one dependency
            parents=tuple(dict.fromkeys(index[p] for p in r.parents)),
        )
        for i, r in enumerate(records)
    ]

    return LedgerGraph(
        nodes=nodes,
        index=index,
        origin_index=origin_index,
        order=_topological_order(nodes),
    )
