"""
Valuation Law Conformance Tests

LAW (identity): same-token valuations are exact.
    value_collateral_to_tokens(t, t, x) = x

LAW (round trip): with reciprocal rates and collateral no coarser than the
debt token,
    |value_collateral_to_tokens(value_tokens_to_collateral(x)) - x| <= 2

LAW (bounded sale): an equilibration never sells more than the entry holds
nor more than the whole debt is worth in collateral.

LAW (restoration): after an equilibration the entry is at or above its
liquidation ratio. With fees the claim may instead close the debt or empty
the entry; either way the entry is not claimable again.
"""

from hypothesis import given, settings, assume
from hypothesis import strategies as st

from collateral import WEI, StaticRateConverter, CollateralEntry, NO_ORACLE, value_entry, ClaimOutcome
from collateral.valuation import value_collateral_to_tokens, value_tokens_to_collateral

from tests.market import Market


# =============================================================================
# STRATEGIES
# =============================================================================

@st.composite
def reciprocal_converter(draw):
    """AUX worth between 0.001 and 1 RCN, with the reciprocal rate floored."""
    rate = draw(st.integers(min_value=WEI // 1000, max_value=WEI))
    return StaticRateConverter("converter", {
        ("AUX", "RCN"): rate,
        ("RCN", "AUX"): WEI * WEI // rate,
    })


@st.composite
def entry_terms(draw):
    """Liquidation and balance ratios with a comfortable band between them."""
    liquidation_ratio = draw(st.integers(min_value=13000, max_value=20000))
    gap = draw(st.integers(min_value=2000, max_value=10000))
    return liquidation_ratio, liquidation_ratio + gap


@st.composite
def fee_bearing_terms(draw):
    """Entry terms plus burn and reward fees that fit inside the band."""
    liquidation_ratio, balance_ratio = draw(entry_terms())
    band = balance_ratio - liquidation_ratio
    burn_fee = draw(st.integers(min_value=0, max_value=band - 1))
    reward_fee = draw(st.integers(min_value=0, max_value=band - 1 - burn_fee))
    return liquidation_ratio, balance_ratio, burn_fee, reward_fee


token_amounts = st.integers(min_value=0, max_value=10 ** 12)


# =============================================================================
# LAWS
# =============================================================================

class TestConversionLaws:

    @given(amount=token_amounts)
    def test_identity(self, amount):
        converter = StaticRateConverter("converter")
        assert value_collateral_to_tokens(converter, "RCN", "RCN", amount) == amount
        assert value_tokens_to_collateral(converter, "RCN", "RCN", amount) == amount

    @given(converter=reciprocal_converter(), amount=token_amounts)
    def test_round_trip_within_two(self, converter, amount):
        collateral = value_tokens_to_collateral(converter, "AUX", "RCN", amount)
        back = value_collateral_to_tokens(converter, "AUX", "RCN", collateral)
        assert abs(back - amount) <= 2

    @given(converter=reciprocal_converter(), amount=token_amounts)
    def test_conversions_round_down(self, converter, amount):
        rate = converter.rate("AUX", "RCN")
        assert value_collateral_to_tokens(converter, "AUX", "RCN", amount) * WEI <= amount * rate


class TestSaleBounds:

    @given(
        converter=reciprocal_converter(),
        terms=entry_terms(),
        amount=st.integers(min_value=0, max_value=10 ** 9),
        obligation=st.integers(min_value=0, max_value=10 ** 9),
    )
    def test_never_sells_more_than_held_or_owed(self, converter, terms, amount, obligation):
        liquidation_ratio, balance_ratio = terms
        entry = CollateralEntry(
            id=1, debt_id="loan-0001", token="AUX", amount=amount,
            liquidation_ratio=liquidation_ratio, balance_ratio=balance_ratio,
        )
        v = value_entry(entry, obligation, "RCN", converter, NO_ORACLE)

        assert 0 <= v.collateral_to_pay <= amount
        assert v.collateral_to_pay <= value_tokens_to_collateral(converter, "AUX", "RCN", obligation)
        if not v.is_liquidatable:
            assert v.collateral_to_pay == 0


class TestRestoration:

    @given(
        terms=entry_terms(),
        debt=st.integers(min_value=10 ** 6, max_value=10 ** 9),
        ratio=st.integers(min_value=12000, max_value=19999),
    )
    @settings(max_examples=50, deadline=None)
    def test_equilibration_reaches_liquidation_ratio(self, terms, debt, ratio):
        liquidation_ratio, balance_ratio = terms
        assume(ratio < liquidation_ratio)
        collateral = debt * ratio // 10000

        market = Market()
        debt_id, entry_id = market.undercollateralized(
            collateral, debt, liquidation_ratio=liquidation_ratio, balance_ratio=balance_ratio,
        )
        result = market.engine.claim(market.book, debt_id)

        assert result.outcome == ClaimOutcome.EQUILIBRATED
        assert market.book.get_closing_obligation(debt_id) > 0
        assert market.engine.collateral_ratio(entry_id) >= liquidation_ratio

    @given(
        terms=fee_bearing_terms(),
        debt=st.integers(min_value=10 ** 6, max_value=10 ** 9),
        ratio=st.integers(min_value=10500, max_value=19999),
    )
    @settings(max_examples=100, deadline=None)
    def test_fee_bearing_equilibration_is_final(self, terms, debt, ratio):
        liquidation_ratio, balance_ratio, burn_fee, reward_fee = terms
        assume(ratio < liquidation_ratio)
        collateral = debt * ratio // 10000

        market = Market()
        debt_id, entry_id = market.undercollateralized(
            collateral, debt,
            liquidation_ratio=liquidation_ratio, balance_ratio=balance_ratio,
            burn_fee=burn_fee, reward_fee=reward_fee,
        )
        supplies = market.supplies()
        result = market.engine.claim(market.book, debt_id)

        assert result.outcome == ClaimOutcome.EQUILIBRATED
        closed = market.book.get_closing_obligation(debt_id) == 0
        emptied = market.engine.get_entry(entry_id).amount == 0
        assert closed or emptied or market.engine.collateral_ratio(entry_id) >= liquidation_ratio
        assert market.engine.preview_claim(debt_id) == ClaimOutcome.NONE
        assert market.supplies() == supplies
