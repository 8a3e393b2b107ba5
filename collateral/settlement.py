"""
settlement.py - Fee-inclusive conversion plans

Planning is pure. Given an entry's collateral and the debt tokens an operation
must deliver, a plan says how much collateral to sell, how many debt tokens
come back, how many go to the debt ledger and how the fee is split.

Two shapes:
    covered: the entry can buy required + fee. The fee is a surcharge on
             `required`, rounded as the call site asks.
    capped:  it cannot. The whole entry is sold and the ceiling fee is
             deducted from what comes back; the rest goes to the debt.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum

from .converter import CurrencyConverter
from .fees import FeeSplit, NO_FEE, deduct_fee, split_fee


class FeeRounding(Enum):
    """Rounding of the surcharge when the entry covers the whole amount."""
    CEIL = "ceil"
    FLOOR = "floor"


@dataclass(frozen=True, slots=True)
class ConversionPlan:
    """
    Attributes:
        sold: Collateral sold
        bought: Debt tokens received
        pay: Debt tokens paid to the debt ledger
        fees: Fee split, paid out of `bought`
        capped: True when the whole entry was sold without covering the target
    """
    sold: int
    bought: int
    pay: int
    fees: FeeSplit
    capped: bool = False

    def __post_init__(self):
        if self.pay + self.fees.total != self.bought:
            raise ValueError(
                f"Unbalanced plan: pay {self.pay} + fees {self.fees.total} != bought {self.bought}"
            )


EMPTY_PLAN = ConversionPlan(sold=0, bought=0, pay=0, fees=NO_FEE)


def plan_conversion(
    converter: CurrencyConverter,
    collateral_token: str,
    debt_token: str,
    entry_amount: int,
    required_tokens: int,
    burn_fee: int,
    reward_fee: int,
    rounding: FeeRounding,
) -> ConversionPlan:
    """
    Plan the sale of collateral to deliver `required_tokens` plus fees.

    Example:
        plan = plan_conversion(conv, "AUX", "RCN", 1000, 300, 100, 100, FeeRounding.CEIL)
        # target 306 RCN; sells cost_to_buy(306) AUX if the entry holds it
    """
    if entry_amount < 0 or required_tokens < 0:
        raise ValueError(
            f"Amounts cannot be negative: entry={entry_amount} required={required_tokens}"
        )
    if required_tokens == 0 or entry_amount == 0:
        return EMPTY_PLAN

    surcharge = split_fee(required_tokens, burn_fee, reward_fee, ceil=rounding == FeeRounding.CEIL)
    target = required_tokens + surcharge.total

    if collateral_token == debt_token:
        cost = target
    else:
        cost = converter.cost_to_buy(collateral_token, debt_token, target)

    if cost <= entry_amount:
        return ConversionPlan(sold=cost, bought=target, pay=required_tokens, fees=surcharge)

    if collateral_token == debt_token:
        bought = entry_amount
    else:
        bought = converter.quote(collateral_token, debt_token, entry_amount)
    fees = deduct_fee(bought, burn_fee, reward_fee)
    return ConversionPlan(
        sold=entry_amount,
        bought=bought,
        pay=bought - fees.total,
        fees=fees,
        capped=True,
    )
