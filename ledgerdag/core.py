"""
Core types for the ledger DAG statistics system.

This module provides the foundational data structures shared by every stage:
1. Constants: input format, rounding policy, output labels, exit codes
2. Enums: Validity tri-state, parse error kinds
3. Immutable data structures: TransactionRecord
4. Exceptions: LedgerError and the recoverable / fatal error types

Nothing in this module performs I/O or holds run state.
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_EVEN
from enum import Enum
from typing import Iterable, Optional, Tuple


# ============================================================================
# CONSTANTS
# ============================================================================

# Input format: id, timestamp, value, parent_id_1, parent_id_2, ...
FIELD_SEPARATOR = ","
MIN_FIELD_COUNT = 3

# Accepted range for timestamps and values: magnitude below NUMBER_LIMIT,
# at most MAX_DECIMAL_PLACES fractional digits. Spans, rates and parent sums
# of in-range numbers fit in DECIMAL_PRECISION digits.
NUMBER_LIMIT = Decimal("1E21")
MAX_DECIMAL_PLACES = 18
NUMBER_RESOLUTION = Decimal(10) ** -MAX_DECIMAL_PLACES

# Working precision for statistics arithmetic (decimal.localcontext).
DECIMAL_PRECISION = 50

# Output labels are the stable contract consumers depend on.
LABEL_PCT_VALID = "PCT VALID"
LABEL_AVG_TX_RATE = "AVG TX RATE"
LABEL_AVG_DAG_DEPTH = "AVG DAG DEPTH"
LABEL_AVG_TXS_PER_DEPTH = "AVG TXS PER DEPTH"
LABEL_AVG_REFS = "AVG REFS"

# Printed in place of a number when a statistic is undefined
# (origin-only ledger, zero time span).
UNDEFINED_STAT = "N/A"

# Rounding policy for printed statistics.
# Core statistics use two places, the extended depth/ref statistics three.
STATS_DECIMAL_PLACES = 2
EXTENDED_DECIMAL_PLACES = 3
STATS_ROUNDING = ROUND_HALF_EVEN

# Process exit codes (2 is left to argparse for usage errors).
EXIT_OK = 0
EXIT_STRUCTURAL_ERROR = 1
EXIT_INPUT_ERROR = 3


# ============================================================================
# ENUMS
# ============================================================================

class Validity(Enum):
    """
    Classification state of a ledger node.

    UNVALIDATED: Initial state, set when the node is created.
    VALID: The node and all of its ancestors satisfy the ledger rule.
    INVALID: The node fails the rule or depends on an invalid parent.
    """
    UNVALIDATED = "unvalidated"
    VALID = "valid"
    INVALID = "invalid"

    @property
    def is_terminal(self) -> bool:
        return self is not Validity.UNVALIDATED


class ParseErrorKind(Enum):
    """Reason a single input line could not become a TransactionRecord."""
    WRONG_FIELD_COUNT = "wrong field count"
    MISSING_FIELD = "missing field"
    EMPTY_IDENTIFIER = "empty identifier"
    NON_NUMERIC = "non-numeric field"


# ============================================================================
# EXCEPTIONS
# ============================================================================

class LedgerError(Exception):
    """Base exception for all ledger-related errors."""
    pass


class ParseError(LedgerError):
    """
    A single input line is malformed.

    Recoverable: the parser records it and moves on to the next line.

    Attributes:
        kind: Which formatting rule the line broke
        line_number: 1-based line number in the input (None if unknown)
        line: The raw line text, stripped of its line terminator
    """

    def __init__(
        self,
        kind: ParseErrorKind,
        message: str,
        line_number: Optional[int] = None,
        line: str = "",
    ):
        self.kind = kind
        self.message = message
        self.line_number = line_number
        self.line = line
        super().__init__(str(self))

    def __str__(self) -> str:
        where = f"line {self.line_number}: " if self.line_number is not None else ""
        return f"{where}{self.kind.value}: {self.message}"


class GraphError(LedgerError):
    """
    The ledger topology is corrupt. Fatal to the whole run.

    Attributes:
        identifiers: Sorted tuple of the offending transaction identifiers
    """
    rule = "malformed ledger"

    def __init__(self, identifiers: Iterable[str] = (), detail: str = ""):
        self.identifiers: Tuple[str, ...] = tuple(sorted(set(identifiers)))
        self.detail = detail
        super().__init__(str(self))

    def __str__(self) -> str:
        parts = [self.rule]
        if self.identifiers:
            parts.append(", ".join(self.identifiers))
        if self.detail:
            parts.append(self.detail)
        return ": ".join(parts)


class DuplicateIdentifier(GraphError):
    """Raised when two records share an identifier."""
    rule = "duplicate identifier"


class DanglingReference(GraphError):
    """Raised when a record names a parent that is not in the ledger."""
    rule = "dangling parent reference"


class SelfReference(GraphError):
    """Raised when a record lists itself as a parent."""
    rule = "self reference"


class CycleDetected(GraphError):
    """Raised when parent references form a cycle."""
    rule = "cycle in parent references"


class OriginError(GraphError):
    """Raised unless exactly one record has no parents."""
    rule = "ledger must have exactly one origin"


class InputError(LedgerError):
    """Raised when the input source cannot be opened, read or decoded."""
    pass


# ============================================================================
# CORE DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True, slots=True)
class TransactionRecord:
    """
    One parsed transaction line.

    Attributes:
        identifier: Unique, non-empty transaction id
        timestamp: Numeric time of the transaction (used only for rate computation)
        value: Signed transaction amount
        parents: Ordered parent identifiers (empty only for the origin)
        line_number: 1-based source line, for diagnostics

    This class is immutable (frozen=True) and memory-optimized (slots=True).
    """
    identifier: str
    timestamp: Decimal
    value: Decimal
    parents: Tuple[str, ...] = ()
    line_number: Optional[int] = None

    def __post_init__(self):
        if not self.identifier or not self.identifier.strip():
            raise ValueError("TransactionRecord identifier cannot be empty")
        if not isinstance(self.timestamp, Decimal) or not self.timestamp.is_finite():
            raise ValueError(f"TransactionRecord timestamp must be a finite Decimal, got {self.timestamp!r}")
        if not isinstance(self.value, Decimal) or not self.value.is_finite():
            raise ValueError(f"TransactionRecord value must be a finite Decimal, got {self.value!r}")
        if not isinstance(self.parents, tuple):
            object.__setattr__(self, 'parents', tuple(self.parents))

    @property
    def is_origin(self) -> bool:
        """True when the record has no parent references."""
        return not self.parents

    def __repr__(self) -> str:
        parents = ",".join(self.parents) if self.parents else "-"
        return f"Tx({self.identifier} t={self.timestamp} v={self.value} <- {parents})"
