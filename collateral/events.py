"""
events.py - Engine events and the event log

Events are just data: immutable records of what an engine operation did.
The token ledger's transaction log is the audit trail of balances; the event
log is the audit trail of entry state (what was created, settled, redeemed).
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Iterator, List, Optional, Tuple, Type, TypeVar


@dataclass(frozen=True, slots=True)
class Created:
    entry_id: int
    debt_id: str
    token: str
    amount: int
    liquidation_ratio: int
    balance_ratio: int
    burn_fee: int
    reward_fee: int
    owner: str


@dataclass(frozen=True, slots=True)
class Deposited:
    entry_id: int
    amount: int


@dataclass(frozen=True, slots=True)
class Withdrawn:
    entry_id: int
    to: str
    amount: int


@dataclass(frozen=True, slots=True)
class Redeemed:
    entry_id: int


@dataclass(frozen=True, slots=True)
class EmergencyRedeemed:
    entry_id: int
    to: str


@dataclass(frozen=True, slots=True)
class PayOffDebt:
    entry_id: int
    closing_obligation_tokens: int


@dataclass(frozen=True, slots=True)
class CancelDebt:
    """Past-due settlement of the whole obligation."""
    entry_id: int
    obligation_in_tokens: int


@dataclass(frozen=True, slots=True)
class CollateralBalance:
    """Equilibration of an entry below its liquidation ratio."""
    entry_id: int
    token_required: int
    token_payback: int


@dataclass(frozen=True, slots=True)
class ConvertPay:
    entry_id: int
    sold: int
    bought: int
    oracle_data: bytes


@dataclass(frozen=True, slots=True)
class TakeFee:
    entry_id: int
    burned: int
    rewarded: int
    reward_to: str


@dataclass(frozen=True, slots=True)
class OwnershipTransferred:
    entry_id: int
    previous_owner: str
    new_owner: str


@dataclass(frozen=True, slots=True)
class SetConverter:
    converter: str


@dataclass(frozen=True, slots=True)
class SetUrl:
    url: str


E = TypeVar("E")


class EventLog:
    """
    Append-only list of (timestamp, event) pairs.

    Example:
        log.emit(now, Deposited(entry_id=1, amount=100))
        log.of_type(Deposited)      # [Deposited(entry_id=1, amount=100)]
    """

    def __init__(self):
        self._records: List[Tuple[datetime, object]] = []

    def emit(self, timestamp: datetime, event: object) -> None:
        self._records.append((timestamp, event))

    def of_type(self, event_type: Type[E]) -> List[E]:
        return [e for _, e in self._records if isinstance(e, event_type)]

    def last(self, event_type: Optional[Type[E]] = None) -> Optional[E]:
        for _, event in reversed(self._records):
            if event_type is None or isinstance(event, event_type):
                return event
        return None

    def since(self, index: int) -> List[object]:
        """Events emitted after the first `index` records."""
        return [e for _, e in self._records[index:]]

    @property
    def records(self) -> List[Tuple[datetime, object]]:
        return list(self._records)

    def __iter__(self) -> Iterator[object]:
        return (e for _, e in self._records)

    def __len__(self) -> int:
        return len(self._records)
