"""
Propagation Conformance Tests

INVARIANT: Invalidity flows downstream.

    ∀ node N, parent P of N:
        P = Invalid ⟹ N = Invalid

and the origin is always Valid and never counted.
"""

from hypothesis import given, settings
from hypothesis import strategies as st
from decimal import Decimal

from ledgerdag import Validity, run_pipeline, RULES, get_rule
from tests.fake_ledger import dag_rows, ledger_lines


class TestPropagationProperties:
    """Property-based propagation tests."""

    @given(dag_rows(), st.sampled_from(sorted(RULES)))
    @settings(max_examples=100)
    def test_invalid_parent_implies_invalid_child(self, rows, rule_name):
        """
        PROPERTY: A node with at least one Invalid parent is Invalid.
        """
        graph = run_pipeline(ledger_lines(rows), rule=get_rule(rule_name)).graph
        for node in graph:
            if any(p.validity is Validity.INVALID for p in graph.parents_of(node)):
                assert node.validity is Validity.INVALID

    @given(dag_rows())
    @settings(max_examples=100)
    def test_every_node_terminal(self, rows):
        """
        PROPERTY: Classification leaves no node Unvalidated.
        """
        graph = run_pipeline(ledger_lines(rows)).graph
        assert all(n.validity in (Validity.VALID, Validity.INVALID) for n in graph)

    @given(dag_rows())
    @settings(max_examples=100)
    def test_valid_nodes_have_only_valid_ancestors(self, rows):
        """
        PROPERTY: Every ancestor of a Valid node is Valid.
        """
        graph = run_pipeline(ledger_lines(rows)).graph
        for node in graph:
            if node.validity is not Validity.VALID:
                continue
            stack = list(node.parents)
            while stack:
                ancestor = graph.nodes[stack.pop()]
                assert ancestor.validity is Validity.VALID
                stack.extend(ancestor.parents)


class TestOriginProperties:

    @given(dag_rows())
    @settings(max_examples=100)
    def test_origin_valid_and_excluded(self, rows):
        """
        PROPERTY: The origin is Valid and counts only non-origin nodes.
        """
        result = run_pipeline(ledger_lines(rows))
        assert result.graph.origin.validity is Validity.VALID
        assert result.stats.total == len(rows) - 1
        expected_valid = sum(
            1 for n in result.graph.transactions() if n.validity is Validity.VALID
        )
        assert result.stats.valid == expected_valid

    @given(dag_rows())
    @settings(max_examples=100)
    def test_pct_valid_in_range(self, rows):
        """
        PROPERTY: PCT VALID lies in [0, 100] and matches 100 * valid / total.
        """
        stats = run_pipeline(ledger_lines(rows)).stats
        if stats.total == 0:
            assert stats.pct_valid is None
            return
        assert Decimal("0") <= stats.pct_valid <= Decimal("100")
        exact = Decimal(100) * stats.valid / stats.total
        assert abs(stats.pct_valid - exact) <= Decimal("0.005")
