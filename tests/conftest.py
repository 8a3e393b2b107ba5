"""
conftest.py - Shared pytest fixtures for collateral tests

Provides common fixtures used across unit, functional and conformance tests:
- Bare token ledgers (empty, funded)
- Wired markets (ledger + loan book + converter + engine)
- Markets with a live, lent entry
"""

import pytest

from tests.market import Market, make_ledger


# =============================================================================
# LEDGER FIXTURES
# =============================================================================

@pytest.fixture
def ledger():
    """Empty ledger with RCN and AUX and no wallets."""
    return make_ledger()


@pytest.fixture
def funded_ledger():
    """Ledger where alice holds 1000 RCN and 500 AUX, bob holds 200 RCN."""
    ledger = make_ledger("alice", "bob", "carol")
    ledger.set_balance("alice", "RCN", 1000)
    ledger.set_balance("alice", "AUX", 500)
    ledger.set_balance("bob", "RCN", 200)
    return ledger


# =============================================================================
# MARKET FIXTURES
# =============================================================================

@pytest.fixture
def market():
    """Market with AUX worth 2 RCN."""
    return Market()


@pytest.fixture
def lent_entry(market):
    """
    Lent loan of 1000 RCN backed by 2500 RCN (ratio 25000).

    Returns (market, debt_id, entry_id).
    """
    debt_id, entry_id = market.collateralized(collateral=2500, debt=1000)
    return market, debt_id, entry_id
