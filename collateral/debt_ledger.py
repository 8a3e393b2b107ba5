"""
debt_ledger.py - Debt ledger interface and in-memory loan book

The collateral engine never originates loans. It reads loan status and
closing obligations from a debt ledger and pays into it. This module defines
that narrow interface and ships LoanBook, an in-memory implementation used by
tests and simulations.

Status numbering follows the loan manager convention:
    OPEN (0)     requested, not lent yet
    ONGOING (1)  lent, obligation outstanding
    PAID (2)     obligation fully paid
    ERROR (4)    the loan model reported an unrecoverable error

Obligations are in the loan currency. Payments arrive as debt-ledger tokens
moved into the ledger's wallet; `pay` records the loan-currency amount.
No interest accrues: the obligation is the principal plus any added debt.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, Optional, Protocol, runtime_checkable

from .core import (
    OriginType, TransactionOrigin, ExecuteResult,
    DebtNotFound, DebtNotOpen, TransferFailed,
    build_transaction, token_move,
)
from .ledger import Ledger
from .oracle import NO_ORACLE, OracleRate


class DebtStatus(Enum):
    """Lifecycle status of a debt as reported by the debt ledger."""
    OPEN = 0
    ONGOING = 1
    PAID = 2
    ERROR = 4


@dataclass(frozen=True, slots=True)
class DebtRequest:
    """What a debt ledger reports about a loan request."""
    amount: int
    currency: str
    is_open: bool
    borrower: str


@runtime_checkable
class DebtLedger(Protocol):
    """
    Interface the collateral engine consumes.

    `token` is the unit payments are made in and `wallet` is where they go.
    """
    token: str
    wallet: str

    def get_status(self, debt_id: str) -> DebtStatus:
        ...

    def get_closing_obligation(self, debt_id: str) -> int:
        """Amount (loan currency) that closes the debt now; 0 unless ongoing."""
        ...

    def get_due_time(self, debt_id: str) -> Optional[datetime]:
        ...

    def pay(self, debt_id: str, amount: int) -> int:
        """Record a payment in loan currency; returns the amount applied."""
        ...

    def request_info(self, debt_id: str) -> DebtRequest:
        ...


class Cosigner(Protocol):
    """Party asked to back a loan at lend time (the collateral engine)."""

    def request_cosign(self, debt_ledger: DebtLedger, debt_id: str, entry_id: int, oracle: OracleRate) -> None:
        ...


@dataclass(frozen=True, slots=True)
class Loan:
    """
    Immutable snapshot of one loan in the book.

    Each state change creates a new instance (value semantics).
    """
    debt_id: str
    borrower: str
    amount: int                 # Principal plus added debt, loan currency
    currency: str
    duration: timedelta
    status: DebtStatus = DebtStatus.OPEN
    paid: int = 0
    lender: Optional[str] = None
    lent_at: Optional[datetime] = None
    due_time: Optional[datetime] = None

    @property
    def obligation(self) -> int:
        return max(0, self.amount - self.paid)


class LoanBook:
    """
    In-memory debt ledger backed by the token ledger.

    Example:
        book = LoanBook(ledger, token="RCN")
        debt_id = book.request_loan("borrower", 1000, timedelta(days=30))
        book.lend(debt_id, "lender", cosigner=engine, entry_id=entry_id)
    """

    def __init__(
        self,
        ledger: Ledger,
        token: str,
        wallet: str = "loan_book",
        currency: Optional[str] = None,
    ):
        self.ledger = ledger
        self.token = token
        self.wallet = wallet
        self.currency = currency or token
        self.loans: Dict[str, Loan] = {}
        self._next_id = 1
        self._nonce = 0
        if not ledger.is_registered(wallet):
            ledger.register_wallet(wallet)

    # ========================================================================
    # ORIGINATION
    # ========================================================================

    def request_loan(
        self,
        borrower: str,
        amount: int,
        duration: timedelta,
        currency: Optional[str] = None,
    ) -> str:
        """
        Open a loan request.

        Raises:
            ValueError: If amount is not positive or duration is not positive
        """
        if amount <= 0:
            raise ValueError(f"Loan amount must be positive, got {amount}")
        if duration <= timedelta(0):
            raise ValueError(f"Loan duration must be positive, got {duration}")
        debt_id = f"loan-{self._next_id:04d}"
        self._next_id += 1
        self.loans[debt_id] = Loan(
            debt_id=debt_id,
            borrower=borrower,
            amount=amount,
            currency=currency or self.currency,
            duration=duration,
        )
        return debt_id

    def lend(
        self,
        debt_id: str,
        lender: str,
        oracle: OracleRate = NO_ORACLE,
        cosigner: Optional[Cosigner] = None,
        entry_id: int = 0,
    ) -> int:
        """
        Fund an open request.

        The lender pays the principal in tokens (ceiling conversion through
        the oracle) to the borrower. When a cosigner is given it must accept
        the loan before any token moves.

        Returns:
            Tokens transferred to the borrower

        Raises:
            DebtNotFound: Unknown debt id
            DebtNotOpen: The request is not open
            TransferFailed: The lender cannot fund the loan
            Any error raised by the cosigner
        """
        loan = self._get(debt_id)
        if loan.status != DebtStatus.OPEN:
            raise DebtNotOpen(f"Debt {debt_id} is not an open request (status {loan.status.name})")

        if cosigner is not None:
            cosigner.request_cosign(self, debt_id, entry_id, oracle)

        amount_in_tokens = oracle.currency_to_tokens(loan.amount, ceil=True)
        self._transfer(
            [token_move(amount_in_tokens, self.token, lender, loan.borrower, f"lend:{debt_id}")],
            event_type="LEND",
        )

        now = self.ledger.current_time
        self.loans[debt_id] = replace(
            loan,
            status=DebtStatus.ONGOING,
            lender=lender,
            lent_at=now,
            due_time=now + loan.duration,
        )
        return amount_in_tokens

    def add_debt(self, debt_id: str, amount: int) -> None:
        """Increase an ongoing loan's obligation (loan currency)."""
        if amount <= 0:
            raise ValueError(f"Added debt must be positive, got {amount}")
        loan = self._get(debt_id)
        if loan.status != DebtStatus.ONGOING:
            raise ValueError(f"Cannot add debt to {debt_id} in status {loan.status.name}")
        self.loans[debt_id] = replace(loan, amount=loan.amount + amount)

    def set_error(self, debt_id: str) -> None:
        """Flag an ongoing loan as failed."""
        loan = self._get(debt_id)
        if loan.status != DebtStatus.ONGOING:
            raise ValueError(f"Cannot flag {debt_id} in status {loan.status.name}")
        self.loans[debt_id] = replace(loan, status=DebtStatus.ERROR)

    def repay(self, debt_id: str, payer: str, oracle: OracleRate = NO_ORACLE) -> int:
        """
        Pay the full closing obligation directly from `payer`.

        Returns:
            Tokens paid
        """
        obligation = self.get_closing_obligation(debt_id)
        if obligation == 0:
            raise ValueError(f"Debt {debt_id} has nothing to repay")
        tokens = oracle.currency_to_tokens(obligation, ceil=True)
        self._transfer(
            [token_move(tokens, self.token, payer, self.wallet, f"repay:{debt_id}")],
            event_type="REPAY",
        )
        self.pay(debt_id, oracle.tokens_to_currency(tokens))
        return tokens

    # ========================================================================
    # DebtLedger PROTOCOL
    # ========================================================================

    def get_status(self, debt_id: str) -> DebtStatus:
        return self._get(debt_id).status

    def get_closing_obligation(self, debt_id: str) -> int:
        loan = self._get(debt_id)
        if loan.status != DebtStatus.ONGOING:
            return 0
        return loan.obligation

    def get_due_time(self, debt_id: str) -> Optional[datetime]:
        return self._get(debt_id).due_time

    def pay(self, debt_id: str, amount: int) -> int:
        """
        Apply a payment to an ongoing loan; the loan becomes PAID when the
        obligation reaches zero. Overpayment is not applied.
        """
        if amount < 0:
            raise ValueError(f"Payment cannot be negative, got {amount}")
        loan = self._get(debt_id)
        if loan.status != DebtStatus.ONGOING:
            raise ValueError(f"Cannot pay {debt_id} in status {loan.status.name}")
        applied = min(amount, loan.obligation)
        paid = loan.paid + applied
        status = DebtStatus.PAID if paid >= loan.amount else DebtStatus.ONGOING
        self.loans[debt_id] = replace(loan, paid=paid, status=status)
        return applied

    def request_info(self, debt_id: str) -> DebtRequest:
        loan = self._get(debt_id)
        return DebtRequest(
            amount=loan.amount,
            currency=loan.currency,
            is_open=loan.status == DebtStatus.OPEN,
            borrower=loan.borrower,
        )

    # ========================================================================
    # INTERNALS
    # ========================================================================

    def _get(self, debt_id: str) -> Loan:
        loan = self.loans.get(debt_id)
        if loan is None:
            raise DebtNotFound(f"Debt {debt_id} does not exist")
        return loan

    def _transfer(self, moves, event_type: str) -> None:
        self._nonce += 1
        origin = TransactionOrigin(
            OriginType.LENDING, f"{self.wallet}#{self._nonce}", event_type=event_type
        )
        result = self.ledger.execute(build_transaction(self.ledger, moves, origin))
        if result != ExecuteResult.APPLIED:
            raise TransferFailed(f"{event_type.lower()} transfer rejected by the token ledger")
