"""
test_settlement.py - Unit tests for fee-inclusive conversion plans

Tests:
- Covered plans: fee surcharge, ceiling vs floor
- Capped plans: whole entry sold, ceiling fee deducted
- Same-token plans skip the converter
- Plan balance (pay + fees == bought)
"""

import pytest

from collateral import (
    WEI, FeeSplit, NO_FEE, StaticRateConverter,
    ConversionPlan, FeeRounding, plan_conversion,
)


CONVERTER = StaticRateConverter("converter", {
    ("AUX", "RCN"): 2 * WEI,
    ("RCN", "AUX"): WEI // 2,
})


class TestCoveredPlans:

    def test_same_token_ceiling_surcharge(self):
        plan = plan_conversion(CONVERTER, "RCN", "RCN", 1000, 300, 100, 100, FeeRounding.CEIL)
        assert plan == ConversionPlan(sold=306, bought=306, pay=300, fees=FeeSplit(3, 3))
        assert not plan.capped

    def test_cross_token_buys_exact_target(self):
        plan = plan_conversion(CONVERTER, "AUX", "RCN", 1000, 300, 100, 100, FeeRounding.CEIL)
        assert plan.sold == 153
        assert plan.bought == 306
        assert plan.pay == 300

    def test_floor_surcharge(self):
        plan = plan_conversion(CONVERTER, "RCN", "RCN", 5000, 1001, 100, 50, FeeRounding.FLOOR)
        assert plan.fees == FeeSplit(10, 5)
        assert plan.sold == 1016

    def test_ceiling_surcharge_rounds_each_part_up(self):
        plan = plan_conversion(CONVERTER, "RCN", "RCN", 5000, 1001, 100, 50, FeeRounding.CEIL)
        assert plan.fees == FeeSplit(11, 6)

    def test_exactly_covered_is_not_capped(self):
        plan = plan_conversion(CONVERTER, "RCN", "RCN", 306, 300, 100, 100, FeeRounding.CEIL)
        assert not plan.capped
        assert plan.sold == 306


class TestCappedPlans:

    def test_same_token_deducts_fee(self):
        plan = plan_conversion(CONVERTER, "RCN", "RCN", 200, 300, 100, 100, FeeRounding.CEIL)
        assert plan.capped
        assert plan.sold == 200
        assert plan.bought == 200
        assert plan.fees == FeeSplit(2, 2)
        assert plan.pay == 196

    def test_cross_token_sells_whole_entry(self):
        plan = plan_conversion(CONVERTER, "AUX", "RCN", 100, 300, 100, 100, FeeRounding.FLOOR)
        assert plan.capped
        assert plan.sold == 100
        assert plan.bought == 200
        assert plan.pay == 196

    def test_capped_pay_below_required(self):
        for entry in (1, 10, 299, 305):
            plan = plan_conversion(CONVERTER, "RCN", "RCN", entry, 300, 100, 100, FeeRounding.CEIL)
            assert plan.capped
            assert plan.pay < 300

    def test_tiny_entry_fee_clamped(self):
        plan = plan_conversion(CONVERTER, "RCN", "RCN", 1, 300, 100, 100, FeeRounding.CEIL)
        assert plan.bought == 1
        assert plan.fees.total == 1
        assert plan.pay == 0


class TestEdgeCases:

    def test_nothing_required(self):
        plan = plan_conversion(CONVERTER, "RCN", "RCN", 1000, 0, 100, 100, FeeRounding.CEIL)
        assert plan == ConversionPlan(0, 0, 0, NO_FEE)

    def test_empty_entry(self):
        plan = plan_conversion(CONVERTER, "AUX", "RCN", 0, 300, 100, 100, FeeRounding.CEIL)
        assert plan.sold == 0
        assert plan.pay == 0

    def test_negative_rejected(self):
        with pytest.raises(ValueError, match="negative"):
            plan_conversion(CONVERTER, "RCN", "RCN", -1, 300, 0, 0, FeeRounding.CEIL)

    def test_unbalanced_plan_rejected(self):
        with pytest.raises(ValueError, match="Unbalanced"):
            ConversionPlan(sold=10, bought=10, pay=9, fees=NO_FEE)
