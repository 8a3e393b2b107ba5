"""
ratio_math.py - Integer fixed-point helpers

All collateral arithmetic is done on Python ints. Ratios are expressed in
basis points of BASE; rounding direction is always explicit at the call site.
"""

from __future__ import annotations

from .core import BASE


def div_ceil(x: int, y: int) -> int:
    """
    Integer division rounding toward positive infinity.

    Used wherever under-crediting the protocol would be unsafe, e.g. the
    tokens needed to close an obligation or the collateral needed to buy them.
    """
    if y == 0:
        raise ZeroDivisionError("div_ceil by zero")
    return -(-x // y)


def div_trunc(x: int, y: int) -> int:
    """
    Signed integer division truncating toward zero.

    Python's // floors, so -9 // 2 == -5; withdrawal headroom is computed on
    signed values and must truncate instead (-9 / 2 -> -4).
    """
    if y == 0:
        raise ZeroDivisionError("div_trunc by zero")
    q = abs(x) // abs(y)
    return q if (x >= 0) == (y >= 0) else -q


def min3(a: int, b: int, c: int) -> int:
    """Smallest of three values."""
    return min(a, b, c)


def apply_ratio(amount: int, ratio: int) -> int:
    """Scale an amount by a basis-point ratio, rounding down."""
    return amount * ratio // BASE


__all__ = ["BASE", "div_ceil", "div_trunc", "min3", "apply_ratio"]
