"""
ledgerdag - Ledger DAG validity and rate statistics

Parses a ledger of transactions that reference earlier transactions as
parents, checks that the references form a DAG with a single origin,
classifies every transaction as Valid or Invalid, and reports the share of
valid transactions and the average transaction rate.

Usage:
    from ledgerdag import run_pipeline, format_stats

    lines = [
        "O,0,0",
        "A,1,5,O",
        "B,2,-5,A",
        "C,3,1,B",
    ]
    result = run_pipeline(lines)
    print(format_stats(result.stats))
    # PCT VALID: 33.33%
    # AVG TX RATE: 1.50
"""

# Core types
from .core import (
    TransactionRecord,
    Validity,
    ParseErrorKind,
    LedgerError,
    ParseError,
    GraphError,
    DuplicateIdentifier,
    DanglingReference,
    SelfReference,
    CycleDetected,
    OriginError,
    InputError,
    UNDEFINED_STAT,
    EXIT_OK,
    EXIT_STRUCTURAL_ERROR,
    EXIT_INPUT_ERROR,
)

# Stages
from .parse import ParseResult, parse_record, parse_records
from .graph import LedgerNode, LedgerGraph, build_graph
from .validity import (
    ValidityRule,
    ValidityEngine,
    classify,
    non_negative_value,
    parent_bounded_value,
    accept_all,
    get_rule,
    RULES,
    DEFAULT_RULE,
)
from .stats import Stats, compute_stats, format_stats
from .pipeline import RunResult, run_pipeline

__all__ = [
    # Core
    'TransactionRecord', 'Validity', 'ParseErrorKind',
    'LedgerError', 'ParseError', 'GraphError',
    'DuplicateIdentifier', 'DanglingReference', 'SelfReference',
    'CycleDetected', 'OriginError', 'InputError',
    'UNDEFINED_STAT', 'EXIT_OK', 'EXIT_STRUCTURAL_ERROR', 'EXIT_INPUT_ERROR',
    # Parser
    'ParseResult', 'parse_record', 'parse_records',
    # Graph
    'LedgerNode', 'LedgerGraph', 'build_graph',
    # Validity
    'ValidityRule', 'ValidityEngine', 'classify',
    'non_negative_value', 'parent_bounded_value', 'accept_all',
    'get_rule', 'RULES', 'DEFAULT_RULE',
    # Statistics
    'Stats', 'compute_stats', 'format_stats',
    # Pipeline
    'RunResult', 'run_pipeline',
]

__version__ = '1.0.0'
