"""
store.py - Collateral entry arena and ownership registry

Entries live in an append-only arena indexed by id. Id 0 is a sentinel that
never holds a live entry, so the debt index can answer "no entry" with 0.
A deleted slot keeps its id but reads back as the zeroed record.

Ownership follows the ERC-721 model: each entry has one owner, at most one
approved address, and owners can appoint operators for all their entries.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Dict, Iterator, List, Optional, Set, Tuple

from .core import (
    BASE,
    InvalidFeeConfiguration, InvalidLiquidationRatio, InvalidBalanceRatio,
    FeeExceedsBand, DebtAlreadyCollateralized, EntryNotFound, NotAuthorized,
)


@dataclass(frozen=True, slots=True)
class CollateralEntry:
    """
    One collateral position backing one debt.

    Attributes:
        id: Entry id (0 only for the zeroed record)
        debt_id: Debt backed by this entry ("" for the zeroed record)
        token: Collateral unit symbol
        amount: Collateral held by the engine for this entry
        liquidation_ratio: Ratio (basis points) below which the entry is claimable
        balance_ratio: Ratio (basis points) an equilibration restores
        burn_fee: Burned share of settled amounts (basis points)
        reward_fee: Rewarded share of settled amounts (basis points)
    """
    id: int = 0
    debt_id: str = ""
    token: str = ""
    amount: int = 0
    liquidation_ratio: int = 0
    balance_ratio: int = 0
    burn_fee: int = 0
    reward_fee: int = 0

    @property
    def is_live(self) -> bool:
        return self.id != 0

    @property
    def total_fee(self) -> int:
        return self.burn_fee + self.reward_fee


EMPTY_ENTRY = CollateralEntry()


def validate_terms(liquidation_ratio: int, balance_ratio: int, burn_fee: int, reward_fee: int) -> None:
    """
    Check entry terms.

    Raises, in this order:
        InvalidFeeConfiguration: a fee (or their sum) is not lower than BASE
        InvalidLiquidationRatio: liquidation_ratio <= BASE
        InvalidBalanceRatio: balance_ratio <= liquidation_ratio
        FeeExceedsBand: burn_fee + reward_fee >= balance_ratio - liquidation_ratio
    """
    if burn_fee < 0 or reward_fee < 0:
        raise InvalidFeeConfiguration(f"Fees cannot be negative: burn={burn_fee} reward={reward_fee}")
    if burn_fee >= BASE or reward_fee >= BASE or burn_fee + reward_fee >= BASE:
        raise InvalidFeeConfiguration(
            f"Fees must stay below {BASE}: burn={burn_fee} reward={reward_fee}"
        )
    if liquidation_ratio <= BASE:
        raise InvalidLiquidationRatio(
            f"Liquidation ratio must exceed {BASE}, got {liquidation_ratio}"
        )
    if balance_ratio <= liquidation_ratio:
        raise InvalidBalanceRatio(
            f"Balance ratio {balance_ratio} must exceed liquidation ratio {liquidation_ratio}"
        )
    if burn_fee + reward_fee >= balance_ratio - liquidation_ratio:
        raise FeeExceedsBand(
            f"Total fee {burn_fee + reward_fee} does not fit the "
            f"{balance_ratio - liquidation_ratio} band between ratios"
        )


class CollateralEntryStore:
    """
    Arena of collateral entries with a debt index and ownership registry.

    The store does not move tokens. The engine pulls collateral first and only
    then commits the record, so a rejected pull never leaves an entry behind.
    """

    def __init__(self):
        self._entries: List[CollateralEntry] = [EMPTY_ENTRY]
        self._debt_index: Dict[str, int] = {}
        self._owners: Dict[int, str] = {}
        self._approved: Dict[int, str] = {}
        self._operators: Set[Tuple[str, str]] = set()

    def __len__(self) -> int:
        """Number of slots, the sentinel included."""
        return len(self._entries)

    @property
    def next_id(self) -> int:
        return len(self._entries)

    # ========================================================================
    # ENTRIES
    # ========================================================================

    def create(
        self,
        debt_id: str,
        token: str,
        amount: int,
        liquidation_ratio: int,
        balance_ratio: int,
        burn_fee: int,
        reward_fee: int,
        owner: str,
    ) -> int:
        """
        Validate terms and append a new entry owned by `owner`.

        Raises:
            InvalidFeeConfiguration, InvalidLiquidationRatio,
            InvalidBalanceRatio, FeeExceedsBand: bad terms
            DebtAlreadyCollateralized: a live entry already backs the debt
            ValueError: negative amount
        """
        validate_terms(liquidation_ratio, balance_ratio, burn_fee, reward_fee)
        if amount < 0:
            raise ValueError(f"Collateral amount cannot be negative, got {amount}")
        if self.entry_of_debt(debt_id) != 0:
            raise DebtAlreadyCollateralized(
                f"Debt {debt_id} is already backed by entry {self._debt_index[debt_id]}"
            )

        entry_id = self.next_id
        self._entries.append(CollateralEntry(
            id=entry_id,
            debt_id=debt_id,
            token=token,
            amount=amount,
            liquidation_ratio=liquidation_ratio,
            balance_ratio=balance_ratio,
            burn_fee=burn_fee,
            reward_fee=reward_fee,
        ))
        self._debt_index[debt_id] = entry_id
        self._owners[entry_id] = owner
        return entry_id

    def get(self, entry_id: int) -> CollateralEntry:
        """The entry, or the zeroed record for unknown or deleted ids."""
        if 0 < entry_id < len(self._entries):
            return self._entries[entry_id]
        return EMPTY_ENTRY

    def require(self, entry_id: int) -> CollateralEntry:
        """Like get(), but raises EntryNotFound instead of returning the zeroed record."""
        entry = self.get(entry_id)
        if not entry.is_live:
            raise EntryNotFound(f"Entry {entry_id} does not exist")
        return entry

    def entry_of_debt(self, debt_id: str) -> int:
        return self._debt_index.get(debt_id, 0)

    def set_amount(self, entry_id: int, amount: int) -> CollateralEntry:
        if amount < 0:
            raise ValueError(f"Collateral amount cannot be negative, got {amount}")
        entry = replace(self.require(entry_id), amount=amount)
        self._entries[entry_id] = entry
        return entry

    def delete(self, entry_id: int) -> None:
        """Zero the slot and clear its owner, approval and debt index."""
        entry = self.require(entry_id)
        self._entries[entry_id] = EMPTY_ENTRY
        self._debt_index.pop(entry.debt_id, None)
        self._owners.pop(entry_id, None)
        self._approved.pop(entry_id, None)

    def live_entries(self) -> Iterator[CollateralEntry]:
        """Live entries in id order."""
        return (e for e in self._entries if e.is_live)

    # ========================================================================
    # OWNERSHIP
    # ========================================================================

    def owner_of(self, entry_id: int) -> Optional[str]:
        return self._owners.get(entry_id)

    def get_approved(self, entry_id: int) -> Optional[str]:
        return self._approved.get(entry_id)

    def is_approved_for_all(self, owner: str, operator: str) -> bool:
        return (owner, operator) in self._operators

    def is_authorized(self, caller: str, entry_id: int) -> bool:
        owner = self.owner_of(entry_id)
        if owner is None:
            return False
        return (
            caller == owner
            or self._approved.get(entry_id) == caller
            or self.is_approved_for_all(owner, caller)
        )

    def approve(self, entry_id: int, to: Optional[str], caller: str) -> None:
        """
        Approve `to` for one entry (None clears). Owner or operator only.
        """
        owner = self.owner_of(entry_id)
        if owner is None:
            raise EntryNotFound(f"Entry {entry_id} does not exist")
        if caller != owner and not self.is_approved_for_all(owner, caller):
            raise NotAuthorized(f"{caller} cannot approve entry {entry_id}")
        if to is None:
            self._approved.pop(entry_id, None)
        else:
            self._approved[entry_id] = to

    def set_approval_for_all(self, owner: str, operator: str, approved: bool) -> None:
        if approved:
            self._operators.add((owner, operator))
        else:
            self._operators.discard((owner, operator))

    def transfer_ownership(self, entry_id: int, to: str, caller: str) -> str:
        """
        Hand an entry to a new owner; the single-entry approval is cleared.

        Returns:
            The previous owner
        """
        owner = self.owner_of(entry_id)
        if owner is None:
            raise EntryNotFound(f"Entry {entry_id} does not exist")
        if not self.is_authorized(caller, entry_id):
            raise NotAuthorized(f"{caller} cannot transfer entry {entry_id}")
        self._owners[entry_id] = to
        self._approved.pop(entry_id, None)
        return owner

    def entries_of(self, owner: str) -> List[int]:
        return sorted(eid for eid, o in self._owners.items() if o == owner)
