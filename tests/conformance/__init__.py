"""
Conformance Test Suite

Invariants every collateral engine build must hold, whatever the market.

The tests are organized by invariant:
1. test_conservation.py - Token supplies constant, engine custody matches entries
2. test_atomicity.py - Failed operations leave no trace
3. test_idempotency.py - Replayed transactions and no-op claims
4. test_determinism.py - Same seed, same market history
5. test_temporal.py - Due times, rate paths and event ordering
6. test_valuation_laws.py - Rounding direction and restoration after claims

These tests use hypothesis for property-based testing.
"""
