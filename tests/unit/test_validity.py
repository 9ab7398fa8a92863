"""
test_validity.py - Unit tests for the validity engine

Tests:
- Built-in rules: non-negative, parent-bounded, any
- ValidityEngine: origin handling, propagation, local rule, reasons
- Engine guards: write-once classification
"""

import pytest
from decimal import Decimal

from ledgerdag import (
    Validity, LedgerError,
    ValidityEngine, classify, build_graph,
    non_negative_value, parent_bounded_value, accept_all,
    get_rule, RULES, DEFAULT_RULE,
)
from tests.fake_ledger import record, classified_graph


class TestRules:
    """Tests for the built-in local rules."""

    def test_non_negative_passes_zero(self):
        assert non_negative_value(record("A", 1, 0, "O"), ()) is None

    def test_non_negative_fails_negative(self):
        assert non_negative_value(record("A", 1, "-0.01", "O"), ()) == "negative value -0.01"

    def test_parent_bounded_within_total(self):
        parents = (record("L", 1, 3, "O"), record("R", 1, 4, "O"))
        assert parent_bounded_value(record("M", 2, 7, "L", "R"), parents) is None

    def test_parent_bounded_exceeds_total(self):
        parents = (record("L", 1, 3, "O"), record("R", 1, 4, "O"))
        reason = parent_bounded_value(record("M", 2, Decimal("7.5"), "L", "R"), parents)
        assert reason == "value 7.5 exceeds parent total 7"

    def test_parent_bounded_rejects_negative(self):
        assert parent_bounded_value(record("A", 1, -1, "O"), (record("O", 0, 10),)).startswith("negative")

    def test_accept_all(self):
        assert accept_all(record("A", 1, -100, "O"), ()) is None

    def test_get_rule(self):
        assert get_rule("parent-bounded") is parent_bounded_value
        assert RULES[DEFAULT_RULE] is non_negative_value

    def test_get_unknown_rule(self):
        with pytest.raises(ValueError, match="Unknown validity rule 'strict'"):
            get_rule("strict")


class TestClassification:
    """Tests for ValidityEngine.classify()."""

    def test_worked_example(self, example_records):
        graph = build_graph(example_records)
        result = classify(graph)
        assert result == {
            "O": Validity.VALID,
            "A": Validity.VALID,
            "B": Validity.INVALID,
            "C": Validity.INVALID,
        }
        assert graph.is_classified

    def test_reasons(self, example_records):
        graph = classified_graph(example_records)
        assert graph.node("B").reason == "negative value -5"
        assert graph.node("C").reason == "inherited from B"
        assert graph.node("A").reason is None

    def test_origin_always_valid(self):
        graph = classified_graph([record("O", 0, -999)])
        assert graph.origin.validity is Validity.VALID

    def test_origin_valid_even_under_strict_rule(self):
        graph = classified_graph([record("O", 0, -1), record("A", 1, 0, "O")], parent_bounded_value)
        assert graph.origin.validity is Validity.VALID
        assert graph.node("A").validity is Validity.VALID

    def test_one_invalid_parent_is_enough(self, diamond_records):
        graph = classified_graph(diamond_records)
        assert graph.validity_of("L") is Validity.VALID
        assert graph.validity_of("R") is Validity.INVALID
        assert graph.validity_of("M") is Validity.INVALID
        assert graph.node("M").reason == "inherited from R"
        assert graph.validity_of("T") is Validity.INVALID

    def test_propagation_overrides_rule(self):
        graph = classified_graph(
            [record("O", 0, 0), record("A", 1, -1, "O"), record("B", 2, 1, "A")],
            accept_all,
        )
        assert graph.validity_of("A") is Validity.VALID
        assert graph.validity_of("B") is Validity.VALID

    def test_rule_sees_parent_records(self, diamond_records):
        seen = {}

        def spy(rec, parents):
            seen[rec.identifier] = tuple(p.identifier for p in parents)
            return None

        classify(build_graph(diamond_records), spy)
        assert seen == {"L": ("O",), "R": ("O",), "M": ("L", "R"), "T": ("M",)}

    def test_rule_not_called_for_inherited_invalid(self, example_records):
        calls = []

        def counting(rec, parents):
            calls.append(rec.identifier)
            return non_negative_value(rec, parents)

        classify(build_graph(example_records), counting)
        assert calls == ["A", "B"]

    def test_parent_bounded_ledger(self):
        records = [
            record("O", 0, 10),
            record("A", 1, 6, "O"),
            record("B", 2, 7, "A"),
            record("C", 3, 17, "O", "A"),
            record("D", 4, 16, "O", "A"),
        ]
        graph = classified_graph(records, parent_bounded_value)
        assert graph.validity_of("A") is Validity.VALID
        assert graph.validity_of("B") is Validity.INVALID
        assert graph.validity_of("C") is Validity.INVALID
        assert graph.node("C").reason == "value 17 exceeds parent total 16"
        assert graph.validity_of("D") is Validity.VALID


class TestEngineGuards:

    def test_classify_twice_raises(self, example_records):
        graph = build_graph(example_records)
        engine = ValidityEngine()
        engine.classify(graph)
        with pytest.raises(LedgerError, match="already been classified"):
            engine.classify(graph)

    def test_verbose_traces_to_stderr(self, example_records, capsys):
        classify(build_graph(example_records), verbose=True)
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "[VALIDITY] B: invalid (negative value -5)" in captured.err
        assert "[VALIDITY] A: valid" in captured.err
