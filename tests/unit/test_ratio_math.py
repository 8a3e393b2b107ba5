"""
test_ratio_math.py - Unit tests for integer fixed-point helpers
"""

import pytest

from collateral import BASE, div_ceil, div_trunc, min3, apply_ratio


class TestDivCeil:
    """Rounding toward positive infinity."""

    @pytest.mark.parametrize("x, y, expected", [
        (10, 5, 2),
        (11, 5, 3),
        (1, 10, 1),
        (0, 7, 0),
    ])
    def test_values(self, x, y, expected):
        assert div_ceil(x, y) == expected

    def test_zero_divisor_raises(self):
        with pytest.raises(ZeroDivisionError):
            div_ceil(1, 0)


class TestDivTrunc:
    """Signed division toward zero."""

    @pytest.mark.parametrize("x, y, expected", [
        (9, 2, 4),
        (-9, 2, -4),
        (9, -2, -4),
        (-9, -2, 4),
        (-1, 3, 0),
    ])
    def test_values(self, x, y, expected):
        assert div_trunc(x, y) == expected

    def test_differs_from_floor_division(self):
        assert -9 // 2 == -5
        assert div_trunc(-9, 2) == -4

    def test_zero_divisor_raises(self):
        with pytest.raises(ZeroDivisionError):
            div_trunc(1, 0)


class TestHelpers:

    def test_min3(self):
        assert min3(3, 1, 2) == 1
        assert min3(5, 5, 5) == 5

    def test_apply_ratio_rounds_down(self):
        assert apply_ratio(999, 15000) == 1498
        assert apply_ratio(100, BASE) == 100
