"""
fees.py - Burn and reward fee splits

Fees are basis-point rates on an amount of debt tokens. Each part (burn and
reward) is rounded independently, so the parts need not add up to a single
rounded total; the residual stays with the entry.

Two ways of applying a fee:
    surcharge: the fee is paid on top of the base amount (with_fee)
    deduction: the fee is taken out of the amount (deduct_fee)

Rounding is chosen by the caller: ceiling favours the protocol, floor favours
the entry owner.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional

from .core import Move, token_move
from .ratio_math import BASE, apply_ratio, div_ceil


@dataclass(frozen=True, slots=True)
class FeeSplit:
    """Burned and rewarded parts of a fee, in debt tokens."""
    burned: int = 0
    rewarded: int = 0

    @property
    def total(self) -> int:
        return self.burned + self.rewarded

    def is_zero(self) -> bool:
        return self.burned == 0 and self.rewarded == 0


NO_FEE = FeeSplit()


def _part(amount: int, fee: int, ceil: bool) -> int:
    if ceil:
        return div_ceil(amount * fee, BASE)
    return apply_ratio(amount, fee)


def split_fee(amount: int, burn_fee: int, reward_fee: int, ceil: bool = True) -> FeeSplit:
    """
    Compute burn and reward parts on a base amount.

    Args:
        amount: Base amount in debt tokens
        burn_fee: Burn rate in basis points
        reward_fee: Reward rate in basis points
        ceil: Round each part up (True) or down (False)

    Raises:
        ValueError: If the amount or a fee is negative
    """
    if amount < 0:
        raise ValueError(f"amount cannot be negative, got {amount}")
    if burn_fee < 0 or reward_fee < 0:
        raise ValueError(f"fees cannot be negative, got burn={burn_fee} reward={reward_fee}")
    return FeeSplit(
        burned=_part(amount, burn_fee, ceil),
        rewarded=_part(amount, reward_fee, ceil),
    )


def with_fee(amount: int, burn_fee: int, reward_fee: int, ceil: bool = True) -> int:
    """Base amount plus both fee parts (surcharge convention)."""
    return amount + split_fee(amount, burn_fee, reward_fee, ceil).total


def deduct_fee(amount: int, burn_fee: int, reward_fee: int) -> FeeSplit:
    """
    Ceiling fee parts taken out of `amount` (deduction convention).

    On tiny amounts two independently rounded-up parts can exceed the amount
    itself; the split is clamped so burned + rewarded <= amount, burn first.
    """
    split = split_fee(amount, burn_fee, reward_fee, ceil=True)
    burned = min(split.burned, amount)
    rewarded = min(split.rewarded, amount - burned)
    return FeeSplit(burned=burned, rewarded=rewarded)


class FeeSplitter:
    """
    Routes a fee split to the burn sink and a reward recipient.

    Example:
        splitter = FeeSplitter(burn_sink="burn")
        moves = splitter.route(split, "RCN", "collateral_engine", "alice", "claim_7")
    """

    def __init__(self, burn_sink: str):
        self.burn_sink = burn_sink

    def route(
        self,
        split: FeeSplit,
        unit_symbol: str,
        source: str,
        reward_to: str,
        contract_id: str,
    ) -> List[Optional[Move]]:
        """Moves paying the burned part to the sink and the rewarded part to `reward_to`."""
        return [
            token_move(split.burned, unit_symbol, source, self.burn_sink, f"{contract_id}:burn"),
            token_move(split.rewarded, unit_symbol, source, reward_to, f"{contract_id}:reward"),
        ]
