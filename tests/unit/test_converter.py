"""
test_converter.py - Unit tests for currency converters

Tests:
- StaticRateConverter quotes and costs (floor vs ceiling)
- Missing rates
- TimeSeriesRateConverter lookups through a clock
- conversion_moves legs
"""

import pytest
from datetime import datetime, timedelta
from decimal import Decimal

from collateral import (
    WEI, CurrencyConverter, StaticRateConverter, TimeSeriesRateConverter,
    RateNotAvailable, conversion_moves,
)
from collateral.converter import _RateTable


class TestStaticRateConverter:

    def test_satisfies_protocol(self):
        assert isinstance(StaticRateConverter("converter"), CurrencyConverter)

    def test_rate_table_needs_rates(self):
        class NoRates(_RateTable):
            wallet = "converter"

        with pytest.raises(TypeError):
            NoRates()

    def test_quote_rounds_down(self):
        conv = StaticRateConverter("converter", {("AUX", "RCN"): WEI // 3})
        assert conv.quote("AUX", "RCN", 100) == 33

    def test_cost_to_buy_rounds_up(self):
        conv = StaticRateConverter("converter", {("AUX", "RCN"): WEI // 3})
        cost = conv.cost_to_buy("AUX", "RCN", 33)
        assert cost == 100
        assert conv.quote("AUX", "RCN", cost) >= 33

    def test_cost_covers_target(self):
        conv = StaticRateConverter("converter", {("AUX", "RCN"): 7 * WEI // 3})
        for target in (1, 2, 3, 50, 1001):
            assert conv.quote("AUX", "RCN", conv.cost_to_buy("AUX", "RCN", target)) >= target

    def test_same_token_is_identity(self):
        conv = StaticRateConverter("converter")
        assert conv.quote("RCN", "RCN", 42) == 42
        assert conv.cost_to_buy("RCN", "RCN", 42) == 42

    def test_missing_rate_raises(self):
        conv = StaticRateConverter("converter")
        with pytest.raises(RateNotAvailable, match="AUX->RCN"):
            conv.quote("AUX", "RCN", 1)

    def test_non_positive_rate_rejected(self):
        with pytest.raises(ValueError, match="positive"):
            StaticRateConverter("converter", {("AUX", "RCN"): 0})


class TestTimeSeriesRateConverter:

    def test_latest_rate_at_or_before_clock(self):
        now = [datetime(2025, 1, 1)]
        conv = TimeSeriesRateConverter("converter", lambda: now[0])
        conv.add_rate("AUX", "RCN", datetime(2025, 1, 1), 2 * WEI)
        conv.add_rate("AUX", "RCN", datetime(2025, 1, 3), WEI)

        assert conv.quote("AUX", "RCN", 10) == 20
        now[0] = datetime(2025, 1, 2)
        assert conv.quote("AUX", "RCN", 10) == 20
        now[0] = datetime(2025, 1, 3)
        assert conv.quote("AUX", "RCN", 10) == 10

    def test_no_rate_before_first_observation(self):
        conv = TimeSeriesRateConverter("converter", lambda: datetime(2024, 12, 31))
        conv.add_rate("AUX", "RCN", datetime(2025, 1, 1), WEI)
        with pytest.raises(RateNotAvailable):
            conv.rate("AUX", "RCN")

    def test_rate_path_with_reciprocal(self):
        start = datetime(2025, 1, 1)
        conv = TimeSeriesRateConverter("converter", lambda: start)
        conv.add_rate_path("AUX", "RCN", [(start, 4 * WEI), (start + timedelta(days=1), 2 * WEI)])

        assert conv.rate("AUX", "RCN") == 4 * WEI
        assert conv.rate("RCN", "AUX") == WEI // 4


class TestConversionMoves:

    def test_two_legs(self):
        conv = StaticRateConverter("converter")
        sell, buy = conversion_moves(conv, "engine", "AUX", "RCN", 10, 20, "claim:1")
        assert (sell.source, sell.dest, sell.unit_symbol, sell.quantity) == ("engine", "converter", "AUX", Decimal(10))
        assert (buy.source, buy.dest, buy.unit_symbol, buy.quantity) == ("converter", "engine", "RCN", Decimal(20))

    def test_same_token_moves_nothing(self):
        conv = StaticRateConverter("converter")
        assert conversion_moves(conv, "engine", "RCN", "RCN", 10, 10, "claim:1") == []
