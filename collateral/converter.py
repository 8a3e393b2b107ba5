"""
converter.py - Currency conversion between collateral and debt tokens

Provides the converter interface the collateral engine consumes, plus two
rate-table implementations.

Classes:
- CurrencyConverter: Protocol defining the conversion interface
- StaticRateConverter: Time-independent rate table
- TimeSeriesRateConverter: Time-varying rates read through a clock

Rates are WEI-scaled: converting `amount` of A at rate r yields
amount * r // WEI of B. A conversion is not assumed to round-trip exactly.

The converter owns a liquidity wallet on the token ledger. Selling collateral
moves it into that wallet, buying moves debt tokens out of it; a converter
without enough liquidity makes the ledger reject the whole transaction.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from bisect import bisect_right
from datetime import datetime
from typing import Callable, Dict, List, Optional, Protocol, Tuple, runtime_checkable

from .core import WEI, Move, RateNotAvailable, token_move
from .ratio_math import div_ceil


Pair = Tuple[str, str]  # (from_token, to_token)


@runtime_checkable
class CurrencyConverter(Protocol):
    """
    Protocol for currency converters.

    Implementations must expose a liquidity `wallet` and two quotes:
    quote() is what selling `amount` returns (rounded down) and
    cost_to_buy() is what buying `amount` costs (rounded up).
    """
    wallet: str

    def quote(self, from_token: str, to_token: str, amount: int) -> int:
        """Amount of `to_token` received for selling `amount` of `from_token`."""
        ...

    def cost_to_buy(self, from_token: str, to_token: str, amount: int) -> int:
        """Amount of `from_token` needed to buy `amount` of `to_token`."""
        ...


class _RateTable(ABC):
    """Shared quoting logic; subclasses provide rate()."""

    wallet: str

    @abstractmethod
    def rate(self, from_token: str, to_token: str) -> int:
        """WEI-scaled rate for one direction of a pair."""

    def quote(self, from_token: str, to_token: str, amount: int) -> int:
        if amount < 0:
            raise ValueError(f"amount cannot be negative, got {amount}")
        if from_token == to_token or amount == 0:
            return amount
        return amount * self.rate(from_token, to_token) // WEI

    def cost_to_buy(self, from_token: str, to_token: str, amount: int) -> int:
        if amount < 0:
            raise ValueError(f"amount cannot be negative, got {amount}")
        if from_token == to_token or amount == 0:
            return amount
        return div_ceil(amount * WEI, self.rate(from_token, to_token))


class StaticRateConverter(_RateTable):
    """
    Converter with static rates (time-independent).

    Example:
        converter = StaticRateConverter("converter", {("AUX", "RCN"): 2 * WEI})
        converter.quote("AUX", "RCN", 200)   # 400
    """

    def __init__(self, wallet: str, rates: Optional[Dict[Pair, int]] = None):
        self.wallet = wallet
        self.rates: Dict[Pair, int] = {}
        for (from_token, to_token), rate in (rates or {}).items():
            self.set_rate(from_token, to_token, rate)

    def set_rate(self, from_token: str, to_token: str, rate: int) -> None:
        """Set the WEI-scaled rate for one direction of a pair."""
        if rate <= 0:
            raise ValueError(f"Rate must be positive, got {rate} for {from_token}->{to_token}")
        self.rates[(from_token, to_token)] = rate

    def rate(self, from_token: str, to_token: str) -> int:
        try:
            return self.rates[(from_token, to_token)]
        except KeyError:
            raise RateNotAvailable(f"No rate for {from_token}->{to_token}") from None

    def __repr__(self):
        return f"StaticRateConverter({len(self.rates)} rates, wallet={self.wallet})"


class TimeSeriesRateConverter(_RateTable):
    """
    Converter with time-varying rates.

    Uses the most recent rate at or before the clock's current time. The clock
    is usually the token ledger's `current_time`, so advancing the ledger
    moves the market.
    """

    def __init__(self, wallet: str, clock: Callable[[], datetime]):
        self.wallet = wallet
        self.clock = clock
        self.rate_history: Dict[Pair, List[Tuple[datetime, int]]] = {}

    def add_rate(self, from_token: str, to_token: str, timestamp: datetime, rate: int) -> None:
        """Add one rate observation for a direction of a pair."""
        if rate <= 0:
            raise ValueError(f"Rate must be positive, got {rate} for {from_token}->{to_token}")
        history = self.rate_history.setdefault((from_token, to_token), [])
        history.append((timestamp, rate))
        history.sort(key=lambda x: x[0])

    def add_rate_path(
        self,
        from_token: str,
        to_token: str,
        path: List[Tuple[datetime, int]],
        reciprocal: bool = True,
    ) -> None:
        """
        Add a whole path of observations.

        With reciprocal=True the opposite direction gets WEI**2 // rate at the
        same timestamps.
        """
        for timestamp, rate in path:
            self.add_rate(from_token, to_token, timestamp, rate)
            if reciprocal:
                self.add_rate(to_token, from_token, timestamp, max(1, WEI * WEI // rate))

    def rate(self, from_token: str, to_token: str) -> int:
        history = self.rate_history.get((from_token, to_token))
        if not history:
            raise RateNotAvailable(f"No rate for {from_token}->{to_token}")
        now = self.clock()
        idx = bisect_right([t for t, _ in history], now)
        if idx == 0:
            raise RateNotAvailable(f"No rate for {from_token}->{to_token} at or before {now}")
        return history[idx - 1][1]

    def __repr__(self):
        return f"TimeSeriesRateConverter({len(self.rate_history)} pairs, wallet={self.wallet})"


def conversion_moves(
    converter: CurrencyConverter,
    seller: str,
    from_token: str,
    to_token: str,
    sold: int,
    bought: int,
    contract_id: str,
) -> List[Optional[Move]]:
    """
    The two legs of a conversion: `sold` into the converter's wallet, `bought`
    out of it. Same-token conversions move nothing.
    """
    if from_token == to_token:
        return []
    return [
        token_move(sold, from_token, seller, converter.wallet, f"{contract_id}:sell"),
        token_move(bought, to_token, converter.wallet, seller, f"{contract_id}:buy"),
    ]
