"""
Conservation Law Conformance Tests

INVARIANT: For all tokens u, across any sequence of engine operations:
    Σ_{w ∈ wallets} balance(w, u) = constant

INVARIANT: For all tokens u, at all times:
    balance(engine wallet, u) = Σ_{live entries e with token u} e.amount

The engine only moves tokens between wallets; it never mints or burns.
Burned fees go to the burn sink wallet and stay counted. Failed operations
must not move anything, so the invariants hold after errors too.
"""

from datetime import timedelta

from hypothesis import given, settings, note
from hypothesis import strategies as st

from collateral import CollateralError, DebtStatus

from tests.market import Market


TOKENS = ("RCN", "AUX")


# =============================================================================
# STRATEGIES
# =============================================================================

amounts = st.integers(min_value=0, max_value=5000)

operation = st.one_of(
    st.tuples(st.just("deposit"), st.integers(0, 1), amounts),
    st.tuples(st.just("withdraw"), st.integers(0, 1), amounts),
    st.tuples(st.just("add_debt"), st.integers(0, 1), st.integers(1, 3000)),
    st.tuples(st.just("advance"), st.integers(0, 1), st.integers(1, 20)),
    st.tuples(st.just("claim"), st.integers(0, 1), st.just(0)),
    st.tuples(st.just("pay_off"), st.integers(0, 1), st.just(0)),
    st.tuples(st.just("redeem"), st.integers(0, 1), st.just(0)),
)


# =============================================================================
# HELPERS
# =============================================================================

def _setup():
    """Two lent loans, one backed by RCN and one by AUX, with spare funds for deposits."""
    market = Market()
    loans = [
        market.collateralized(3000, 1000, burn_fee=100, reward_fee=50),
        market.collateralized(1500, 1000, token="AUX", burn_fee=200, reward_fee=100),
    ]
    market.fund("alice", "RCN", 100_000)
    market.fund("alice", "AUX", 100_000)
    return market, loans


def _apply(market, loans, op):
    kind, which, amount = op
    debt_id, entry_id = loans[which]
    engine = market.engine
    if kind == "deposit":
        engine.deposit(entry_id, amount, caller="alice")
    elif kind == "withdraw":
        engine.withdraw(entry_id, "alice", amount, caller="alice")
    elif kind == "add_debt":
        if market.book.get_status(debt_id) == DebtStatus.ONGOING:
            market.book.add_debt(debt_id, amount)
    elif kind == "advance":
        market.advance(amount)
    elif kind == "claim":
        engine.claim(market.book, debt_id, caller="keeper")
    elif kind == "pay_off":
        engine.pay_off_debt(entry_id, caller="alice")
    elif kind == "redeem":
        engine.redeem(entry_id, caller="alice")


def _assert_custody(market):
    for unit in TOKENS:
        assert market.balance(market.engine.wallet, unit) == market.engine.total_collateral(unit)


# =============================================================================
# PROPERTIES
# =============================================================================

class TestConservation:

    @given(ops=st.lists(operation, min_size=1, max_size=25))
    @settings(max_examples=60, deadline=None)
    def test_supply_constant_across_operations(self, ops):
        market, loans = _setup()
        supplies = market.supplies()

        for op in ops:
            note(f"op={op}")
            try:
                _apply(market, loans, op)
            except CollateralError:
                pass
            assert market.supplies() == supplies
            _assert_custody(market)

        result = market.ledger.verify_double_entry(supplies)
        assert result["valid"], result["discrepancies"]

    @given(ops=st.lists(operation, min_size=1, max_size=25))
    @settings(max_examples=40, deadline=None)
    def test_entry_amounts_never_negative(self, ops):
        market, loans = _setup()
        for op in ops:
            try:
                _apply(market, loans, op)
            except CollateralError:
                pass
            for _, entry_id in loans:
                assert market.engine.get_entry(entry_id).amount >= 0


class TestFixedScenarios:

    def test_claim_redistributes(self):
        market = Market()
        debt_id, _ = market.undercollateralized(1100, 1000, burn_fee=100, reward_fee=100)
        supplies = market.supplies()

        market.engine.claim(market.book, debt_id)

        assert market.supplies() == supplies
        _assert_custody(market)

    def test_cross_token_settlement_redistributes(self):
        market = Market()
        debt_id, _ = market.collateralized(1500, 1000, token="AUX", burn_fee=100, reward_fee=100)
        market.ledger.advance_time(market.ledger.current_time + timedelta(days=30))
        supplies = market.supplies()

        market.engine.claim(market.book, debt_id)

        assert market.supplies() == supplies
        _assert_custody(market)
