"""
Core types and pure functions for the collateral settlement system.

This module provides the foundational data structures and protocols:
1. Protocols: LedgerView for read-only token ledger access
2. Immutable data structures: Move, PendingTransaction, Transaction, Unit
3. Exceptions: LedgerError and the collateral error taxonomy
4. Constants: ratio scale, rate scale, reserved wallet ids
5. Unit factories: token()

All token quantities are whole units. They travel through the ledger as
Decimal values with zero decimal places so that the ledger's double-entry
validation applies unchanged.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, ROUND_DOWN, getcontext
from enum import Enum
import hashlib
from typing import (
    Dict, List, Set, Optional, Any, Protocol,
    Tuple, FrozenSet, runtime_checkable,
)


# ============================================================================
# DECIMAL CONTEXT CONFIGURATION
# ============================================================================
#
# Token amounts are integers, but the ledger stores them as Decimal. WEI-scaled
# intermediate values reach ~40 digits, so precision must stay well above that.
#
_LEDGER_DECIMAL_CONTEXT = getcontext()
_LEDGER_DECIMAL_CONTEXT.prec = 60


# ============================================================================
# CONSTANTS
# ============================================================================

# Ratio scale: 10000 basis points = 100%.
BASE = 10000

# Converter rate scale: a rate of WEI means 1:1.
WEI = 10 ** 18

# Default wallet holding all collateral on behalf of the engine.
ENGINE_WALLET = "collateral_engine"

# Default sink for burned fees.
BURN_WALLET = "burn"

UNIT_TYPE_TOKEN = "TOKEN"


# ============================================================================
# TYPE ALIASES
# ============================================================================

# Mapping from wallet ID to quantity held by that wallet for a specific unit.
Positions = Dict[str, Decimal]

# Mapping from unit symbol to quantity held in a single wallet.
BalanceMap = Dict[str, Decimal]


# ============================================================================
# PROTOCOLS
# ============================================================================

@runtime_checkable
class LedgerView(Protocol):
    """
    Read-only interface to token ledger state.

    Functions accepting a LedgerView parameter declare their read-only intent.
    The Ledger class implements this protocol but also provides mutation
    methods. For testing, FakeView provides an immutable implementation.
    """

    @property
    def current_time(self) -> datetime:
        """Return the current logical time of the ledger."""
        ...

    def get_balance(self, wallet_id: str, unit_symbol: str) -> Decimal:
        """Return the balance of a unit in a wallet (Decimal("0") if none)."""
        ...

    def get_positions(self, unit_symbol: str) -> Positions:
        """Return all non-zero positions for a unit across all wallets."""
        ...

    def list_wallets(self) -> Set[str]:
        """Return the set of all registered wallet IDs."""
        ...

    def allowance(self, owner: str, spender: str, unit_symbol: str) -> Decimal:
        """Return how much `spender` may still pull from `owner`."""
        ...


# ============================================================================
# ENUMS
# ============================================================================

class ExecuteResult(Enum):
    """
    Outcome of a transaction execution attempt.

    APPLIED: Transaction was validated and applied to the ledger.
    ALREADY_APPLIED: Transaction ID was previously processed (idempotent behavior).
    REJECTED: Transaction failed validation (balance, allowance or registration).
    """
    APPLIED = "applied"
    ALREADY_APPLIED = "already_applied"
    REJECTED = "rejected"


class OriginType(Enum):
    """Classification of where a transaction originated."""
    USER_ACTION = "user_action"     # Owner/caller initiated (create, deposit, withdraw, redeem)
    LIQUIDATION = "liquidation"     # Claim settlement or equilibration
    LENDING = "lending"             # Debt ledger lend / payment flows
    SYSTEM = "system"               # Admin and break-glass operations


# ============================================================================
# EXCEPTIONS
# ============================================================================

class LedgerError(Exception):
    """Base exception for all ledger-related errors."""
    pass


class UnitNotRegistered(LedgerError):
    """Raised when attempting to operate on a unit that has not been registered with the ledger."""
    pass


class WalletNotRegistered(LedgerError):
    """Raised when attempting to operate on a wallet that has not been registered with the ledger."""
    pass


class CollateralError(LedgerError):
    """
    Base exception for collateral engine failures.

    Every subclass carries a class-level `reason` code so that automated
    liquidators can branch on the cause without parsing messages.
    """
    reason = "COLLATERAL_ERROR"


class InvalidFeeConfiguration(CollateralError):
    """A fee, or the sum of burn and reward fees, is not lower than BASE."""
    reason = "INVALID_FEE"


class InvalidLiquidationRatio(CollateralError):
    """The liquidation ratio does not exceed BASE."""
    reason = "INVALID_LIQUIDATION_RATIO"


class InvalidBalanceRatio(CollateralError):
    """The balance ratio does not exceed the liquidation ratio."""
    reason = "INVALID_BALANCE_RATIO"


class FeeExceedsBand(CollateralError):
    """The total fee does not fit between the liquidation and balance ratios."""
    reason = "FEE_EXCEEDS_BAND"


class DebtNotOpen(CollateralError):
    """The debt request is not open (already lent, paid or unknown)."""
    reason = "DEBT_NOT_OPEN"


class DebtAlreadyCollateralized(CollateralError):
    """Another live entry already backs the debt."""
    reason = "DEBT_ALREADY_COLLATERALIZED"


class EntryNotFound(CollateralError):
    """The entry id does not refer to a live entry."""
    reason = "ENTRY_NOT_FOUND"


class EntryNotCollateralized(CollateralError):
    """The entry does not reach its balance ratio against the requested debt."""
    reason = "ENTRY_NOT_COLLATERALIZED"


class TransferFailed(CollateralError):
    """A token pull or push was rejected by the token ledger."""
    reason = "TRANSFER_FAILED"


class NotAuthorized(CollateralError):
    """The caller is neither the entry owner nor an approved delegate."""
    reason = "NOT_AUTHORIZED"


class NotOwner(CollateralError):
    """The caller is not the engine owner."""
    reason = "NOT_OWNER"


class InsufficientCollateral(CollateralError):
    """The entry cannot release or cover the requested amount."""
    reason = "INSUFFICIENT_COLLATERAL"


class DebtNotClosed(CollateralError):
    """The debt is neither an unlent request nor paid."""
    reason = "DEBT_NOT_CLOSED"


class DebtNotInError(CollateralError):
    """The debt ledger does not report the debt in error."""
    reason = "DEBT_NOT_IN_ERROR"


class DebtNotFound(CollateralError):
    """The debt does not exist, is not lent, or has no entry behind it."""
    reason = "DEBT_NOT_FOUND"


class RateNotAvailable(CollateralError):
    """The converter has no rate for the requested pair."""
    reason = "RATE_NOT_AVAILABLE"


# ============================================================================
# TRANSACTION ORIGIN
# ============================================================================

@dataclass(frozen=True, slots=True)
class TransactionOrigin:
    """
    Immutable record of a transaction's origin for audit purposes.

    Attributes:
        origin_type: Classification of the origin source
        source_id: Identifier of the specific source (engine name + operation nonce)
        entry_id: Collateral entry that triggered this (if applicable)
        event_type: Operation name (e.g., "CREATE", "CLAIM", "WITHDRAW")
    """
    origin_type: OriginType
    source_id: str
    entry_id: Optional[int] = None
    event_type: Optional[str] = None

    def __repr__(self) -> str:
        parts = [f"{self.origin_type.value}:{self.source_id}"]
        if self.entry_id is not None:
            parts.append(f"entry={self.entry_id}")
        if self.event_type:
            parts.append(f"event={self.event_type}")
        return f"Origin({', '.join(parts)})"


# ============================================================================
# CORE DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True, slots=True)
class Move:
    """
    A single transfer of tokens between two wallets.

    Attributes:
        quantity: Amount to transfer (positive whole number as Decimal).
        unit_symbol: Token being transferred (e.g., "RCN").
        source: Wallet debited.
        dest: Wallet credited.
        contract_id: Identifier of the operation generating this move.
        spender: When set, the move is a pull executed by `spender` and
            consumes the source's allowance to it.
    """
    quantity: Decimal
    unit_symbol: str
    source: str
    dest: str
    contract_id: str
    spender: Optional[str] = None

    def __post_init__(self):
        if not self.source or not self.source.strip():
            raise ValueError("Move source cannot be empty")
        if not self.dest or not self.dest.strip():
            raise ValueError("Move dest cannot be empty")
        if not self.unit_symbol or not self.unit_symbol.strip():
            raise ValueError("Move unit_symbol cannot be empty")
        if not self.contract_id or not self.contract_id.strip():
            raise ValueError("Move contract_id cannot be empty")
        if not isinstance(self.quantity, Decimal):
            raise ValueError(f"Move quantity must be Decimal, got {type(self.quantity)}")
        if not self.quantity.is_finite():
            raise ValueError(f"Move quantity must be finite, got {self.quantity}")
        if self.quantity <= 0:
            raise ValueError(f"Move quantity must be positive, got {self.quantity}")
        if self.quantity != self.quantity.to_integral_value():
            raise ValueError(f"Move quantity must be a whole number of tokens, got {self.quantity}")
        if self.source == self.dest:
            raise ValueError("Source and dest must be different")

    def __repr__(self) -> str:
        via = f" via {self.spender}" if self.spender else ""
        return f"Move({self.quantity} {self.unit_symbol}: {self.source}->{self.dest}{via})"


def token_move(
    quantity: int,
    unit_symbol: str,
    source: str,
    dest: str,
    contract_id: str,
    spender: Optional[str] = None,
) -> Optional[Move]:
    """
    Build a Move from an integer amount, or None when the amount is zero.

    Callers collect the non-None results, so zero-sized legs of a settlement
    simply drop out of the transaction.
    """
    if quantity < 0:
        raise ValueError(f"Token amount cannot be negative, got {quantity}")
    if quantity == 0:
        return None
    return Move(Decimal(quantity), unit_symbol, source, dest, contract_id, spender)


def _compute_intent_id(moves: Tuple[Move, ...], origin: TransactionOrigin) -> str:
    """
    Compute a deterministic content hash for a transaction's intent.

    Same moves and origin always produce the same intent_id. The origin's
    source_id carries an operation nonce, so two identical business
    operations never collide.
    """
    sorted_moves = sorted(
        moves,
        key=lambda m: (int(m.quantity), m.unit_symbol, m.source, m.dest, m.contract_id, m.spender or ""),
    )
    content_parts = [f"origin:{origin.origin_type.value}:{origin.source_id}"]
    if origin.entry_id is not None:
        content_parts.append(f"entry:{origin.entry_id}")
    if origin.event_type:
        content_parts.append(f"event:{origin.event_type}")
    for m in sorted_moves:
        content_parts.append(
            f"move:{int(m.quantity)}|{m.unit_symbol}|{m.source}|{m.dest}|{m.contract_id}|{m.spender or ''}"
        )
    content = "|".join(content_parts)
    return hashlib.sha256(content.encode()).hexdigest()[:16]


@dataclass(frozen=True, slots=True)
class PendingTransaction:
    """
    A transaction description before execution - represents INTENT.

    Attributes:
        moves: Tuple of token transfers between wallets
        origin: Who/what created this transaction and why
        timestamp: When this pending transaction was created
        intent_id: Content-addressable hash of the transaction intent (auto-computed)
    """
    moves: Tuple[Move, ...]
    origin: TransactionOrigin
    timestamp: datetime
    intent_id: str = field(default="")

    def __post_init__(self):
        if not self.intent_id:
            object.__setattr__(self, 'intent_id', _compute_intent_id(self.moves, self.origin))

    def is_empty(self) -> bool:
        """Return True if this pending transaction has no moves."""
        return not self.moves

    def __repr__(self) -> str:
        return f"PendingTransaction({len(self.moves)} moves, {self.origin})"


def build_transaction(
    view: LedgerView,
    moves: List[Optional[Move]],
    origin: TransactionOrigin,
) -> PendingTransaction:
    """
    Build a PendingTransaction from moves.

    None entries (zero-sized legs from token_move) are dropped.

    Example:
        moves = [token_move(100, "RCN", "alice", "bob", "payment_001")]
        origin = TransactionOrigin(OriginType.USER_ACTION, "alice#1")
        result = ledger.execute(build_transaction(ledger, moves, origin))
    """
    return PendingTransaction(
        moves=tuple(m for m in moves if m is not None),
        origin=origin,
        timestamp=view.current_time,
    )


@dataclass(frozen=True, slots=True)
class Transaction:
    """
    An executed, immutable record of ledger state changes - represents FACT.

    Attributes:
        moves: Tuple of token transfers
        origin: Who/what created this transaction and why
        timestamp: When the PendingTransaction was created
        intent_id: Content hash from PendingTransaction (for idempotency)
        exec_id: Unique execution identifier (ledger + sequence + time)
        ledger_name: Name of the ledger that executed this
        execution_time: When this was executed and logged
        sequence_number: Monotonic sequence within the ledger
        contract_ids: Set of contract IDs from moves (auto-populated)
    """
    moves: Tuple[Move, ...]
    origin: TransactionOrigin
    timestamp: datetime
    intent_id: str
    exec_id: str
    ledger_name: str
    execution_time: datetime
    sequence_number: int
    contract_ids: FrozenSet[str] = None

    def __post_init__(self):
        if not self.moves:
            raise ValueError("Transaction must have moves")
        if self.contract_ids is None:
            object.__setattr__(self, 'contract_ids', frozenset(m.contract_id for m in self.moves))

    def __repr__(self) -> str:
        lines = [f"Transaction {self.exec_id} [{self.origin}]"]
        for i, move in enumerate(self.moves):
            via = f" (via {move.spender})" if move.spender else ""
            lines.append(f"  [{i}] {move.quantity} {move.unit_symbol}: {move.source} -> {move.dest}{via}")
        return "\n".join(lines)


@dataclass(frozen=True, slots=True)
class Unit:
    """
    Definition of a token in the ledger.

    Attributes:
        symbol: Short identifier (e.g., "RCN").
        name: Human-readable name.
        unit_type: Category of the unit.
        min_balance: Minimum allowed balance in any wallet.
        max_balance: Maximum allowed balance in any wallet.
        decimal_places: Number of decimal places kept (0 for whole tokens).
    """
    symbol: str
    name: str
    unit_type: str
    min_balance: Decimal = Decimal("0")
    max_balance: Decimal = Decimal("Infinity")
    decimal_places: Optional[int] = 0

    def round(self, value: Decimal) -> Decimal:
        """Round a value down to this unit's decimal precision."""
        if self.decimal_places is None:
            return value
        if not isinstance(value, Decimal):
            value = Decimal(str(value))
        quantizer = Decimal(10) ** -self.decimal_places
        return value.quantize(quantizer, rounding=ROUND_DOWN)


# ============================================================================
# UNIT FACTORIES
# ============================================================================

def token(symbol: str, name: str) -> Unit:
    """
    Create a fungible token unit.

    Tokens are whole-unit, non-negative balances: no wallet can be overdrawn,
    so a pull or push that exceeds a balance is rejected by the ledger.
    """
    return Unit(
        symbol=symbol,
        name=name,
        unit_type=UNIT_TYPE_TOKEN,
        decimal_places=0,
        min_balance=Decimal("0"),
    )
