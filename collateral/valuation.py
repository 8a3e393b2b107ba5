"""
valuation.py - Pure valuation functions for collateral entries

Every function here is pure: inputs in, integers out, no ledger access.
Amounts are in whole tokens, ratios in basis points of BASE.

Terminology:
    debt_in_tokens        closing obligation expressed in debt tokens
    collateral_in_tokens  entry amount quoted into debt tokens
    collateral_ratio      collateral_in_tokens * BASE // debt_in_tokens,
                          None when there is no debt (fully collateralized)
    can_withdraw          collateral that can leave while keeping balance_ratio;
                          negative when the entry is below balance_ratio
    collateral_to_pay     collateral whose proceeds an equilibration pays to the
                          debt; with the fee surcharge on top the ratio comes
                          back to balance_ratio
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from .converter import CurrencyConverter
from .oracle import OracleRate
from .ratio_math import BASE, div_trunc, min3
from .store import CollateralEntry


# ============================================================================
# CONVERSIONS
# ============================================================================

def debt_in_tokens(obligation: int, oracle: OracleRate) -> int:
    """Obligation (loan currency) in debt tokens, rounded down."""
    return oracle.currency_to_tokens(obligation)


def value_collateral_to_tokens(
    converter: CurrencyConverter,
    collateral_token: str,
    debt_token: str,
    amount: int,
) -> int:
    """Debt tokens obtained by selling `amount` of collateral."""
    if collateral_token == debt_token or amount == 0:
        return amount
    return converter.quote(collateral_token, debt_token, amount)


def value_tokens_to_collateral(
    converter: CurrencyConverter,
    collateral_token: str,
    debt_token: str,
    amount: int,
) -> int:
    """Collateral obtained by selling `amount` of debt tokens."""
    if collateral_token == debt_token or amount == 0:
        return amount
    return converter.quote(debt_token, collateral_token, amount)


# ============================================================================
# RATIOS
# ============================================================================

def collateral_ratio(collateral_tokens: int, debt_tokens: int) -> Optional[int]:
    if debt_tokens == 0:
        return None
    return collateral_tokens * BASE // debt_tokens


def delta_ratio(ratio: Optional[int], threshold: int) -> Optional[int]:
    """Signed distance of a ratio from a threshold; None for an unbounded ratio."""
    if ratio is None:
        return None
    return ratio - threshold


def can_withdraw(amount: int, ratio: Optional[int], balance_ratio: int) -> int:
    """
    Collateral that can be withdrawn while staying at balance_ratio.

    Negative values are the collateral shortfall against balance_ratio.
    """
    if ratio is None:
        return amount
    if ratio == 0:
        return -amount
    return div_trunc(amount * (ratio - balance_ratio), ratio)


def collateral_to_pay(
    amount: int,
    ratio: Optional[int],
    liquidation_ratio: int,
    balance_ratio: int,
    debt_in_collateral: int,
    fee: int = 0,
) -> int:
    """
    Collateral whose proceeds go to the debt so that the entry sits at
    balance_ratio once that collateral and its `fee` surcharge are sold.

    Zero unless the ratio is below liquidation_ratio. Never more than the
    entry amount nor more than the whole debt valued in collateral.
    """
    liquidation_delta = delta_ratio(ratio, liquidation_ratio)
    if liquidation_delta is None or liquidation_delta >= 0:
        return 0
    shortfall = abs(can_withdraw(amount, ratio, balance_ratio))
    return min3(shortfall * BASE // (balance_ratio - BASE - fee), amount, debt_in_collateral)


# ============================================================================
# ENTRY SNAPSHOT
# ============================================================================

@dataclass(frozen=True, slots=True)
class Valuation:
    """All valuation figures of one entry at one point in time."""
    debt_in_tokens: int
    collateral_in_tokens: int
    collateral_ratio: Optional[int]
    liquidation_delta_ratio: Optional[int]
    balance_delta_ratio: Optional[int]
    can_withdraw: int
    collateral_to_pay: int
    tokens_to_pay: int

    @property
    def is_liquidatable(self) -> bool:
        return self.liquidation_delta_ratio is not None and self.liquidation_delta_ratio < 0


def value_entry(
    entry: CollateralEntry,
    obligation: int,
    debt_token: str,
    converter: CurrencyConverter,
    oracle: OracleRate,
) -> Valuation:
    """
    Value an entry against a closing obligation.

    Args:
        entry: The collateral entry
        obligation: Closing obligation in loan currency (0 when not ongoing)
        debt_token: Token the debt ledger is paid in
        converter: Quotes between the collateral and debt tokens
        oracle: Loan currency to debt token rate
    """
    debt_tokens = debt_in_tokens(obligation, oracle)
    collateral_tokens = value_collateral_to_tokens(converter, entry.token, debt_token, entry.amount)
    ratio = collateral_ratio(collateral_tokens, debt_tokens)
    to_pay = collateral_to_pay(
        entry.amount,
        ratio,
        entry.liquidation_ratio,
        entry.balance_ratio,
        value_tokens_to_collateral(converter, entry.token, debt_token, debt_tokens)
        if ratio is not None and ratio < entry.liquidation_ratio else 0,
        entry.total_fee,
    )
    return Valuation(
        debt_in_tokens=debt_tokens,
        collateral_in_tokens=collateral_tokens,
        collateral_ratio=ratio,
        liquidation_delta_ratio=delta_ratio(ratio, entry.liquidation_ratio),
        balance_delta_ratio=delta_ratio(ratio, entry.balance_ratio),
        can_withdraw=can_withdraw(entry.amount, ratio, entry.balance_ratio),
        collateral_to_pay=to_pay,
        tokens_to_pay=value_collateral_to_tokens(converter, entry.token, debt_token, to_pay),
    )
