"""
conftest.py - Shared pytest fixtures for ledgerdag tests

Provides common ledgers used across unit, functional and conformance tests:
- The worked example (origin, one valid, one invalid, one inherited-invalid)
- A diamond with two branches merging
- A file writer for CLI tests
"""

import pytest

from tests.fake_ledger import record, ledger_lines


# =============================================================================
# LEDGER FIXTURES
# =============================================================================

@pytest.fixture
def example_rows():
    """O <- A(5) <- B(-5) <- C(1): B breaks the rule, C inherits."""
    return [
        ("O", 0, 0, ()),
        ("A", 1, 5, ("O",)),
        ("B", 2, -5, ("A",)),
        ("C", 3, 1, ("B",)),
    ]


@pytest.fixture
def example_lines(example_rows):
    return ledger_lines(example_rows)


@pytest.fixture
def example_records():
    return [
        record("O", 0, 0),
        record("A", 1, 5, "O"),
        record("B", 2, -5, "A"),
        record("C", 3, 1, "B"),
    ]


@pytest.fixture
def diamond_records():
    """
    O -> L, O -> R, {L, R} -> M, M -> T

    R is negative, so M and T inherit Invalid through it.
    """
    return [
        record("O", 0, 100),
        record("L", 10, 40, "O"),
        record("R", 12, -1, "O"),
        record("M", 20, 30, "L", "R"),
        record("T", 30, 10, "M"),
    ]


# =============================================================================
# FILE FIXTURES
# =============================================================================

@pytest.fixture
def write_ledger(tmp_path):
    """Write input lines to a file and return its path."""
    def _write(lines, name="ledger.csv"):
        path = tmp_path / name
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return str(path)
    return _write
