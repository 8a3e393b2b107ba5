"""
ledger.py - Stateful Double-Entry Token Ledger

The Ledger class holds token custody for the collateral system. It is the
only module that mutates balances, ensuring controlled and auditable changes.

Key responsibilities:
    - Implements LedgerView protocol for safe read-only access by pure functions
    - Executes transactions atomically (all moves succeed or all fail)
    - Tracks allowances so that pulls (moves made by a spender) are bounded
    - Tracks time and provides clone() for what-if runs
    - Always validates and always logs
"""

from __future__ import annotations
from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Set, Optional, Tuple, Any
from decimal import Decimal

from .core import (
    Move, Transaction, Unit,
    PendingTransaction,
    ExecuteResult,
    Positions, BalanceMap,
    LedgerError, UnitNotRegistered, WalletNotRegistered,
)


AllowanceKey = Tuple[str, str, str]  # (owner, spender, unit_symbol)


class Ledger:
    """
    Double-entry token ledger with allowances, full validation and audit trail.

    Implements the LedgerView protocol, allowing the ledger to be passed to pure
    functions that access only read-only methods.

    Design Principles:
        - Always validates: registration, timestamps, allowances and balance
          limits are checked for every transaction.
        - Always logs: every applied transaction is recorded in the audit trail.

    Thread Safety:
        Not thread-safe. Each thread should maintain its own Ledger instance.

    Example:
        ledger = Ledger("main")
        ledger.register_unit(token("RCN", "Ripio Credit Network"))
        ledger.register_wallet("alice")
        ledger.register_wallet("bob")

        tx = build_transaction(ledger, [
            token_move(100, "RCN", "alice", "bob", "payment_001")
        ], origin)
        result = ledger.execute(tx)
    """

    def __init__(
        self,
        name: str,
        initial_time: Optional[datetime] = None,
        verbose: bool = True,
        test_mode: bool = False
    ):
        """
        Create a ledger.

        Args:
            name: Ledger identifier
            initial_time: Starting time for the ledger (default: 1970-01-01)
            verbose: Enable debug output (default: True)
            test_mode: Enable test mode to allow set_balance() calls (default: False)
        """
        self.name = name
        self.balances: Dict[str, Dict[str, Decimal]] = {}
        self.units: Dict[str, Unit] = {}
        self.registered_wallets: Set[str] = set()
        self.allowances: Dict[AllowanceKey, Decimal] = {}
        self.seen_intent_ids: Set[str] = set()
        self.transaction_log: List[Transaction] = []
        self._current_time: datetime = initial_time or datetime(1970, 1, 1)
        self.verbose = verbose
        self._test_mode = test_mode
        self._next_sequence: int = 0
        # Inverted index mapping unit -> {wallet -> quantity}
        self._positions_by_unit: Dict[str, Dict[str, Decimal]] = defaultdict(dict)

    # ========================================================================
    # LedgerView PROTOCOL IMPLEMENTATION (read-only methods)
    # ========================================================================

    @property
    def current_time(self) -> datetime:
        """Current logical time of the ledger."""
        return self._current_time

    def get_balance(self, wallet_id: str, unit_symbol: str) -> Decimal:
        """
        Get the balance of a token in a wallet.

        Raises:
            WalletNotRegistered: If wallet is not registered
            UnitNotRegistered: If unit is not registered
        """
        if wallet_id not in self.registered_wallets:
            raise WalletNotRegistered(f"Wallet {wallet_id} not registered")
        if unit_symbol not in self.units:
            raise UnitNotRegistered(f"Unit {unit_symbol} not registered")
        return self.balances[wallet_id].get(unit_symbol, Decimal("0"))

    def balance_of(self, wallet_id: str, unit_symbol: str) -> int:
        """Integer view of get_balance()."""
        return int(self.get_balance(wallet_id, unit_symbol))

    def get_positions(self, unit_symbol: str) -> Positions:
        """Get all non-zero positions for a token across all wallets."""
        return dict(self._positions_by_unit.get(unit_symbol, {}))

    def list_wallets(self) -> Set[str]:
        """List all registered wallet IDs."""
        return self.registered_wallets.copy()

    def list_units(self) -> List[str]:
        """List all registered unit symbols."""
        return sorted(self.units.keys())

    def get_unit(self, symbol: str) -> Unit:
        """Return the Unit object for a given symbol."""
        if symbol not in self.units:
            raise UnitNotRegistered(f"Unit {symbol} not registered")
        return self.units[symbol]

    def get_wallet_balances(self, wallet_id: str) -> BalanceMap:
        """Get all balances for a wallet."""
        if wallet_id not in self.registered_wallets:
            raise WalletNotRegistered(f"Wallet {wallet_id} not registered")
        return dict(self.balances[wallet_id])

    def allowance(self, owner: str, spender: str, unit_symbol: str) -> Decimal:
        """Remaining amount `spender` may pull from `owner`."""
        return self.allowances.get((owner, spender, unit_symbol), Decimal("0"))

    def total_supply(self, unit_symbol: str) -> Decimal:
        """
        Calculate total supply of a token across all wallets.

        Wallets are sorted before summation for a deterministic accumulation order.
        """
        if unit_symbol not in self.units:
            raise UnitNotRegistered(f"Unit {unit_symbol} not registered")
        return sum(
            (self.balances[w].get(unit_symbol, Decimal("0")) for w in sorted(self.registered_wallets)),
            Decimal("0"),
        )

    def verify_double_entry(self, expected_supplies: Dict[str, Decimal]) -> Dict[str, Any]:
        """
        Verify that every token's total supply matches the expected value.

        Returns:
            Dict with keys 'valid', 'supplies' and 'discrepancies' (a list of
            {unit, expected, actual} dicts).
        """
        supplies = {}
        discrepancies = []
        for unit_symbol, expected in expected_supplies.items():
            actual = self.total_supply(unit_symbol)
            supplies[unit_symbol] = actual
            if actual != Decimal(expected):
                discrepancies.append({'unit': unit_symbol, 'expected': expected, 'actual': actual})
        return {
            'valid': not discrepancies,
            'supplies': supplies,
            'discrepancies': discrepancies,
        }

    def is_registered(self, wallet_id: str) -> bool:
        """Check if a wallet is registered."""
        return wallet_id in self.registered_wallets

    # ========================================================================
    # TIME MANAGEMENT
    # ========================================================================

    def advance_time(self, new_time: datetime) -> None:
        """
        Advance the ledger's logical clock. Time can only move forward.

        Raises:
            ValueError: If new_time is before the current time
        """
        if new_time < self._current_time:
            raise ValueError(
                f"Cannot move time backwards: {new_time} < {self._current_time}"
            )
        self._current_time = new_time

    # ========================================================================
    # REGISTRATION (Mutating)
    # ========================================================================

    def register_wallet(self, wallet_id: str) -> str:
        """
        Register a new wallet in the ledger.

        Raises:
            ValueError: If wallet is already registered
        """
        if wallet_id in self.registered_wallets:
            raise ValueError(f"Wallet {wallet_id} already registered")
        self.registered_wallets.add(wallet_id)
        self.balances[wallet_id] = defaultdict(lambda: Decimal("0"))
        return wallet_id

    def register_unit(self, unit: Unit) -> None:
        """
        Register a new token in the ledger.

        Raises:
            ValueError: If unit symbol is already registered
        """
        if unit.symbol in self.units:
            raise ValueError(f"Unit {unit.symbol} already registered")
        self.units[unit.symbol] = unit
        if self.verbose:
            print(f"Registered: {unit.symbol} ({unit.name}) [{unit.unit_type}]")

    def set_balance(self, wallet_id: str, unit_symbol: str, quantity: Any) -> None:
        """
        Set a wallet's balance for a token directly.

        WARNING: This method bypasses double-entry accounting and is only
        available in test mode.

        Raises:
            LedgerError: If called when test_mode is False
        """
        if not self._test_mode:
            raise LedgerError(
                "set_balance() is disabled in production mode. "
                "Use build_transaction() and execute() to modify balances. "
                "Set test_mode=True when creating Ledger for testing."
            )
        if wallet_id not in self.registered_wallets:
            raise WalletNotRegistered(f"Wallet {wallet_id} not registered")
        if unit_symbol not in self.units:
            raise UnitNotRegistered(f"Unit {unit_symbol} not registered")
        if not isinstance(quantity, Decimal):
            quantity = Decimal(quantity)
        self.balances[wallet_id][unit_symbol] = quantity
        self._update_position_index(wallet_id, unit_symbol, quantity)

    def approve(self, owner: str, spender: str, unit_symbol: str, quantity: Any) -> None:
        """
        Allow `spender` to pull up to `quantity` of a token from `owner`.

        Overwrites any previous allowance for the same (owner, spender, unit).

        Raises:
            WalletNotRegistered, UnitNotRegistered, ValueError (negative quantity)
        """
        if owner not in self.registered_wallets:
            raise WalletNotRegistered(f"Wallet {owner} not registered")
        if unit_symbol not in self.units:
            raise UnitNotRegistered(f"Unit {unit_symbol} not registered")
        if not isinstance(quantity, Decimal):
            quantity = Decimal(quantity)
        if quantity < 0:
            raise ValueError(f"Allowance cannot be negative, got {quantity}")
        self.allowances[(owner, spender, unit_symbol)] = quantity

    # ========================================================================
    # TRANSACTION EXECUTION (Mutating)
    # ========================================================================

    def _generate_exec_id(self, sequence: int) -> str:
        """
        Generate a unique execution ID.

        Format: exec:{ledger_name}:{sequence:012d}:{timestamp_micros}
        """
        micros = int(self._current_time.timestamp() * 1_000_000)
        return f"exec:{self.name}:{sequence:012d}:{micros}"

    def validate(self, pending: PendingTransaction) -> Tuple[bool, str]:
        """
        Validate a pending transaction against all constraints without applying it.

        Checks performed:
        1. Timestamp (transaction must not be from the future)
        2. Unit and wallet registration
        3. Allowances for pulled moves
        4. Balance limits on the net effect of all moves

        Returns:
            Tuple of (success, reason). reason is empty on success.
        """
        if pending.timestamp > self._current_time:
            return False, "future timestamp"

        for move in pending.moves:
            if move.unit_symbol not in self.units:
                return False, f"unit not registered: {move.unit_symbol}"
            if move.source not in self.registered_wallets:
                return False, f"wallet not registered: {move.source}"
            if move.dest not in self.registered_wallets:
                return False, f"wallet not registered: {move.dest}"

        pulled: Dict[AllowanceKey, Decimal] = defaultdict(lambda: Decimal("0"))
        for move in pending.moves:
            if move.spender is not None:
                pulled[(move.source, move.spender, move.unit_symbol)] += move.quantity
        for key, quantity in pulled.items():
            if quantity > self.allowances.get(key, Decimal("0")):
                owner, spender, unit_sym = key
                return False, f"allowance exceeded: {spender} pulling {quantity} {unit_sym} from {owner}"

        net: Dict[Tuple[str, str], Decimal] = defaultdict(lambda: Decimal("0"))
        for move in pending.moves:
            net[(move.source, move.unit_symbol)] -= move.quantity
            net[(move.dest, move.unit_symbol)] += move.quantity

        for (wallet, unit_sym), delta in net.items():
            unit = self.units[unit_sym]
            proposed = unit.round(self.balances[wallet][unit_sym] + delta)
            if proposed < unit.min_balance:
                return False, f"{wallet} {unit_sym}: {proposed} < min {unit.min_balance}"
            if proposed > unit.max_balance:
                return False, f"{wallet} {unit_sym}: {proposed} > max {unit.max_balance}"

        return True, ""

    def execute(self, pending: PendingTransaction) -> ExecuteResult:
        """
        Execute a PendingTransaction atomically.

        All moves succeed together or all fail together. Execution is
        idempotent: a pending transaction with the same intent_id is not
        applied twice.

        Returns:
            ExecuteResult.APPLIED if successful
            ExecuteResult.ALREADY_APPLIED if transaction was already executed
            ExecuteResult.REJECTED if validation failed
        """
        if pending.is_empty():
            return ExecuteResult.APPLIED

        if pending.intent_id in self.seen_intent_ids:
            if self.verbose:
                print(f"ALREADY_APPLIED: intent_id={pending.intent_id}")
            return ExecuteResult.ALREADY_APPLIED

        valid, reason = self.validate(pending)
        if not valid:
            if self.verbose:
                print(f"REJECTED: {reason}")
            return ExecuteResult.REJECTED

        sequence = self._next_sequence
        self._next_sequence += 1

        tx = Transaction(
            moves=pending.moves,
            origin=pending.origin,
            timestamp=pending.timestamp,
            intent_id=pending.intent_id,
            exec_id=self._generate_exec_id(sequence),
            ledger_name=self.name,
            execution_time=self._current_time,
            sequence_number=sequence,
        )

        self._execute_moves(tx.moves)

        self.transaction_log.append(tx)
        self.seen_intent_ids.add(pending.intent_id)

        if self.verbose:
            print(f"{tx!r}\n  APPLIED")
        return ExecuteResult.APPLIED

    def _update_position_index(self, wallet_id: str, unit_symbol: str, quantity: Decimal) -> None:
        """Keep the unit -> {wallet -> quantity} index in sync; zero balances are dropped."""
        if quantity != 0:
            self._positions_by_unit[unit_symbol][wallet_id] = quantity
        else:
            self._positions_by_unit[unit_symbol].pop(wallet_id, None)

    def _execute_moves(self, moves) -> None:
        """
        Apply all moves to wallet balances, allowances and the position index.
        """
        for move in moves:
            unit = self.units[move.unit_symbol]
            if move.spender is not None:
                key = (move.source, move.spender, move.unit_symbol)
                self.allowances[key] = self.allowances[key] - move.quantity

            new_src_balance = unit.round(
                self.balances[move.source][move.unit_symbol] - move.quantity
            )
            self.balances[move.source][move.unit_symbol] = new_src_balance
            self._update_position_index(move.source, move.unit_symbol, new_src_balance)

            new_dst_balance = unit.round(
                self.balances[move.dest][move.unit_symbol] + move.quantity
            )
            self.balances[move.dest][move.unit_symbol] = new_dst_balance
            self._update_position_index(move.dest, move.unit_symbol, new_dst_balance)

    # ========================================================================
    # LEDGER OPERATIONS
    # ========================================================================

    def clone(self) -> Ledger:
        """
        Create a deep copy of this ledger.

        Modifications to the clone do not affect the original ledger, and vice
        versa. The transaction log is shared structurally (transactions are
        immutable).
        """
        cloned = Ledger.__new__(Ledger)
        cloned.name = self.name
        cloned._current_time = self._current_time
        cloned.verbose = self.verbose
        cloned._test_mode = self._test_mode
        cloned.units = dict(self.units)
        cloned.registered_wallets = self.registered_wallets.copy()
        cloned.allowances = dict(self.allowances)
        cloned.seen_intent_ids = self.seen_intent_ids.copy()
        cloned.transaction_log = list(self.transaction_log)
        cloned._next_sequence = self._next_sequence

        cloned.balances = {}
        for wallet, bals in self.balances.items():
            cloned.balances[wallet] = defaultdict(lambda: Decimal("0"), bals)

        cloned._positions_by_unit = defaultdict(dict)
        for unit_symbol, positions in self._positions_by_unit.items():
            cloned._positions_by_unit[unit_symbol] = dict(positions)

        return cloned
