"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the asset ledger.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. conservation.py - Imbalance bookkeeping never creates or destroys value
2. exactly_once.py - Every imbalance is applied to the store at most once

These tests use hypothesis for property-based testing.
"""
