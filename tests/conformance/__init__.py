"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the ledgerdag pipeline.

The tests are organized by invariant:
1. propagation.py - Invalidity flows to every descendant; the origin is Valid and uncounted
2. determinism.py - Identical input gives identical output, regardless of line order,
   and a skipped line behaves exactly like an absent one
"""
