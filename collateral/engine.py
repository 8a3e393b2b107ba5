"""
engine.py - Collateral engine

The CollateralEngine holds collateral for debts recorded in an external debt
ledger. Owners create entries, top them up and withdraw the excess; anyone can
claim an entry whose debt is past due or whose collateral ratio fell below the
liquidation ratio.

Every mutating operation is all-or-nothing and runs in four phases:
    1. reads and checks (store, debt ledger, converter quotes)
    2. build the token transaction and validate it against the ledger
    3. pay the debt ledger
    4. execute the token transaction and commit the store

A failure in phases 1-3 leaves the store, the token ledger and the debt
ledger untouched. Phase 4 cannot be rejected because the transaction was
validated in phase 2 and nothing touched the ledger in between.

Token flow of a conversion (collateral AUX backing debt paid in RCN):
    engine     --AUX sold-->     converter
    converter  --RCN bought-->   engine
    engine     --RCN pay-->      debt ledger wallet
    engine     --RCN burned-->   burn sink
    engine     --RCN rewarded--> reward recipient
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from .core import (
    ENGINE_WALLET, BURN_WALLET,
    ExecuteResult, Move, OriginType, PendingTransaction, TransactionOrigin,
    DebtNotOpen, DebtAlreadyCollateralized, EntryNotCollateralized,
    TransferFailed, NotAuthorized, NotOwner,
    InsufficientCollateral, DebtNotClosed, DebtNotInError, DebtNotFound,
    build_transaction, token_move,
)
from .converter import CurrencyConverter, conversion_moves
from .debt_ledger import DebtLedger, DebtStatus
from .events import (
    EventLog, Created, Deposited, Withdrawn, Redeemed, EmergencyRedeemed,
    PayOffDebt, CancelDebt, CollateralBalance, ConvertPay, TakeFee,
    OwnershipTransferred, SetConverter, SetUrl,
)
from .fees import FeeSplit, FeeSplitter, NO_FEE
from .ledger import Ledger
from .oracle import NO_ORACLE, OracleRate
from .settlement import EMPTY_PLAN, ConversionPlan, FeeRounding, plan_conversion
from .store import CollateralEntry, CollateralEntryStore, validate_terms
from . import valuation as val


# ============================================================================
# CONFIGURATION AND RESULTS
# ============================================================================

class RewardPolicy(Enum):
    """Who receives the rewarded part of a settlement fee."""
    ENTRY_OWNER = "entry_owner"
    CALLER = "caller"


@dataclass(frozen=True, slots=True)
class EngineConfig:
    """
    Attributes:
        owner: Engine administrator (emergency redeem, converter, url)
        wallet: Custody wallet holding every entry's collateral
        burn_sink: Wallet receiving burned fees
        reward_policy: Recipient of rewarded fees on claims
        url: Informational metadata url
    """
    owner: str
    wallet: str = ENGINE_WALLET
    burn_sink: str = BURN_WALLET
    reward_policy: RewardPolicy = RewardPolicy.ENTRY_OWNER
    url: str = ""


class ClaimOutcome(Enum):
    NONE = "none"                   # nothing to do
    SETTLED = "settled"             # past due, obligation settled
    EQUILIBRATED = "equilibrated"   # ratio restored toward balance_ratio


@dataclass(frozen=True, slots=True)
class ClaimResult:
    """What a claim did. Amounts are zero for a no-op claim."""
    outcome: ClaimOutcome
    entry_id: int = 0
    required: int = 0
    paid: int = 0
    sold: int = 0
    bought: int = 0
    fees: FeeSplit = NO_FEE

    @property
    def claimed(self) -> bool:
        return self.outcome != ClaimOutcome.NONE


# ============================================================================
# ENGINE
# ============================================================================

class CollateralEngine:
    """
    Custody and liquidation engine for collateral entries.

    Example:
        engine = CollateralEngine(ledger, book, converter, EngineConfig(owner="admin"))
        ledger.approve("alice", engine.wallet, "RCN", 2000)
        entry_id = engine.create(debt_id, "RCN", 2000, 15000, 20000, 0, 0, caller="alice")
        book.lend(debt_id, "lender", cosigner=engine, entry_id=entry_id)
        engine.claim(book, debt_id, caller="keeper")
    """

    def __init__(
        self,
        ledger: Ledger,
        debt_ledger: DebtLedger,
        converter: CurrencyConverter,
        config: EngineConfig,
        verbose: Optional[bool] = None,
    ):
        self.ledger = ledger
        self.debt_ledger = debt_ledger
        self.converter = converter
        self.config = config
        self.url = config.url
        self.verbose = ledger.verbose if verbose is None else verbose
        self.store = CollateralEntryStore()
        self.events = EventLog()
        self.fee_splitter = FeeSplitter(config.burn_sink)
        self._nonce = 0

        for wallet in (config.wallet, config.burn_sink, debt_ledger.wallet, converter.wallet):
            self._ensure_wallet(wallet)

    @property
    def wallet(self) -> str:
        return self.config.wallet

    @property
    def owner(self) -> str:
        return self.config.owner

    @property
    def debt_token(self) -> str:
        return self.debt_ledger.token

    # ========================================================================
    # ENTRY LIFECYCLE
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
        caller: str,
    ) -> int:
        """
        Open an entry for a requested (not yet lent) debt, pulling `amount`
        of `token` from the caller's allowance to the engine wallet.

        Returns:
            The new entry id (ids start at 1)

        Raises:
            InvalidFeeConfiguration, InvalidLiquidationRatio,
            InvalidBalanceRatio, FeeExceedsBand: bad terms
            DebtNotOpen: The debt request is unknown or no longer open
            DebtAlreadyCollateralized: Another entry backs the debt
            TransferFailed: The pull was rejected
        """
        validate_terms(liquidation_ratio, balance_ratio, burn_fee, reward_fee)
        if amount < 0:
            raise ValueError(f"Collateral amount cannot be negative, got {amount}")
        try:
            request = self.debt_ledger.request_info(debt_id)
        except DebtNotFound:
            raise DebtNotOpen(f"Debt {debt_id} is not an open request") from None
        if not request.is_open:
            raise DebtNotOpen(f"Debt {debt_id} is not an open request")
        existing = self.store.entry_of_debt(debt_id)
        if existing != 0:
            raise DebtAlreadyCollateralized(f"Debt {debt_id} is already backed by entry {existing}")

        entry_id = self.store.next_id
        pending = self._pending(
            [self._pull(caller, token, amount, f"create:{entry_id}")],
            OriginType.USER_ACTION, "CREATE", entry_id,
        )
        self._validate(pending)
        self._execute(pending)

        self.store.create(
            debt_id, token, amount, liquidation_ratio, balance_ratio, burn_fee, reward_fee, caller,
        )
        self._emit(Created(
            entry_id=entry_id,
            debt_id=debt_id,
            token=token,
            amount=amount,
            liquidation_ratio=liquidation_ratio,
            balance_ratio=balance_ratio,
            burn_fee=burn_fee,
            reward_fee=reward_fee,
            owner=caller,
        ))
        if self.verbose:
            print(f"[CREATE] entry {entry_id} for {debt_id}: {amount} {token} from {caller}")
        return entry_id

    def deposit(self, entry_id: int, amount: int, caller: str) -> None:
        """Add collateral to a live entry. Anyone may deposit."""
        if amount < 0:
            raise ValueError(f"Deposit cannot be negative, got {amount}")
        entry = self.store.require(entry_id)
        pending = self._pending(
            [self._pull(caller, entry.token, amount, f"deposit:{entry_id}")],
            OriginType.USER_ACTION, "DEPOSIT", entry_id,
        )
        self._validate(pending)
        self._execute(pending)
        self.store.set_amount(entry_id, entry.amount + amount)
        self._emit(Deposited(entry_id=entry_id, amount=amount))

    def withdraw(
        self,
        entry_id: int,
        to: str,
        amount: int,
        caller: str,
        oracle: OracleRate = NO_ORACLE,
    ) -> None:
        """
        Release collateral to `to`.

        While the debt is ongoing (or in error) only the excess above the
        balance ratio can leave; otherwise the whole entry is free.

        Raises:
            EntryNotFound, NotAuthorized, InsufficientCollateral
            TransferFailed: `to` is the custody wallet, or the transfer is rejected
        """
        if amount < 0:
            raise ValueError(f"Withdrawal cannot be negative, got {amount}")
        entry = self.store.require(entry_id)
        self._authorize(caller, entry_id)
        self._check_recipient(to)

        status = self.debt_ledger.get_status(entry.debt_id)
        if status in (DebtStatus.ONGOING, DebtStatus.ERROR):
            limit = self._value(entry, oracle).can_withdraw
        else:
            limit = entry.amount
        if amount > limit or amount > entry.amount:
            raise InsufficientCollateral(
                f"Entry {entry_id} can release {max(0, min(limit, entry.amount))}, requested {amount}"
            )

        pending = self._pending(
            [token_move(amount, entry.token, self.wallet, to, f"withdraw:{entry_id}")],
            OriginType.USER_ACTION, "WITHDRAW", entry_id,
        )
        self._validate(pending)
        self._execute(pending)
        self.store.set_amount(entry_id, entry.amount - amount)
        self._emit(Withdrawn(entry_id=entry_id, to=to, amount=amount))

    def redeem(self, entry_id: int, caller: str) -> int:
        """
        Close an entry whose debt was never lent or is paid, returning the
        remaining collateral to the caller.

        Returns:
            Collateral returned
        """
        entry = self.store.require(entry_id)
        self._authorize(caller, entry_id)
        status = self.debt_ledger.get_status(entry.debt_id)
        if status not in (DebtStatus.OPEN, DebtStatus.PAID):
            raise DebtNotClosed(f"Debt {entry.debt_id} is {status.name}, cannot redeem entry {entry_id}")

        pending = self._pending(
            [token_move(entry.amount, entry.token, self.wallet, caller, f"redeem:{entry_id}")],
            OriginType.USER_ACTION, "REDEEM", entry_id,
        )
        self._validate(pending)
        self._execute(pending)
        self.store.delete(entry_id)
        self._emit(Redeemed(entry_id=entry_id))
        return entry.amount

    def emergency_redeem(self, entry_id: int, to: str, caller: str) -> int:
        """Break-glass: the engine owner recovers collateral of a debt in error."""
        self._only_owner(caller)
        entry = self.store.require(entry_id)
        status = self.debt_ledger.get_status(entry.debt_id)
        if status != DebtStatus.ERROR:
            raise DebtNotInError(f"Debt {entry.debt_id} is {status.name}, not ERROR")
        self._check_recipient(to)

        pending = self._pending(
            [token_move(entry.amount, entry.token, self.wallet, to, f"emergency:{entry_id}")],
            OriginType.SYSTEM, "EMERGENCY_REDEEM", entry_id,
        )
        self._validate(pending)
        self._execute(pending)
        self.store.delete(entry_id)
        self._emit(EmergencyRedeemed(entry_id=entry_id, to=to))
        return entry.amount

    def pay_off_debt(self, entry_id: int, caller: str, oracle: OracleRate = NO_ORACLE) -> ClaimResult:
        """
        Sell collateral to pay the whole closing obligation plus fees.

        The reward goes to the entry owner. The remaining collateral stays
        in the entry and can be redeemed once the debt reads PAID.

        Raises:
            EntryNotFound, NotAuthorized
            DebtNotFound: The debt is not ongoing
            InsufficientCollateral: The entry cannot cover obligation and fees
        """
        entry = self.store.require(entry_id)
        self._authorize(caller, entry_id)
        status = self.debt_ledger.get_status(entry.debt_id)
        if status != DebtStatus.ONGOING:
            raise DebtNotFound(f"Debt {entry.debt_id} is {status.name}, nothing to pay off")

        obligation = self.debt_ledger.get_closing_obligation(entry.debt_id)
        required = oracle.currency_to_tokens(obligation, ceil=True)
        plan = self._plan(entry, required, FeeRounding.CEIL)
        if plan.capped or plan.pay < required:
            raise InsufficientCollateral(
                f"Entry {entry_id} holds {entry.amount} {entry.token}, "
                f"not enough to pay {required} {self.debt_token} plus fees"
            )

        owner = self.store.owner_of(entry_id)
        self._settle(
            entry, plan, owner, oracle,
            OriginType.USER_ACTION, "PAY_OFF_DEBT",
            PayOffDebt(entry_id=entry_id, closing_obligation_tokens=required),
        )
        if self.verbose:
            print(f"[PAYOFF] entry {entry_id}: paid {plan.pay} {self.debt_token}, sold {plan.sold} {entry.token}")
        return ClaimResult(
            outcome=ClaimOutcome.SETTLED,
            entry_id=entry_id,
            required=required,
            paid=plan.pay,
            sold=plan.sold,
            bought=plan.bought,
            fees=plan.fees,
        )

    # ========================================================================
    # CLAIMS
    # ========================================================================

    def claim(
        self,
        debt_ledger: DebtLedger,
        debt_id: str,
        oracle: OracleRate = NO_ORACLE,
        caller: Optional[str] = None,
    ) -> ClaimResult:
        """
        Permissionless liquidation of the entry backing `debt_id`.

        Past due debts are settled in full (capped at the collateral held).
        Entries below their liquidation ratio sell enough collateral to get
        back to their balance ratio. Anything else is a no-op.

        Raises:
            DebtNotFound: Foreign debt ledger or no entry for the debt
        """
        entry = self._entry_for_claim(debt_ledger, debt_id)
        outcome, required, plan = self._claim_plan(entry, oracle)
        if outcome == ClaimOutcome.NONE:
            return ClaimResult(outcome=ClaimOutcome.NONE, entry_id=entry.id)

        reward_to = self.store.owner_of(entry.id)
        if self.config.reward_policy == RewardPolicy.CALLER and caller is not None:
            reward_to = caller

        if outcome == ClaimOutcome.SETTLED:
            headline = CancelDebt(entry_id=entry.id, obligation_in_tokens=required)
        else:
            headline = CollateralBalance(entry_id=entry.id, token_required=required, token_payback=plan.pay)
        self._settle(entry, plan, reward_to, oracle, OriginType.LIQUIDATION, "CLAIM", headline)

        if self.verbose:
            print(
                f"[CLAIM] entry {entry.id} {outcome.name}: required {required}, paid {plan.pay} "
                f"{self.debt_token}, sold {plan.sold} {entry.token}"
            )
        return ClaimResult(
            outcome=outcome,
            entry_id=entry.id,
            required=required,
            paid=plan.pay,
            sold=plan.sold,
            bought=plan.bought,
            fees=plan.fees,
        )

    def preview_claim(self, debt_id: str, oracle: OracleRate = NO_ORACLE) -> ClaimOutcome:
        """What claim() would do right now, without doing it."""
        entry = self._entry_for_claim(self.debt_ledger, debt_id)
        outcome, _, _ = self._claim_plan(entry, oracle)
        return outcome

    def request_cosign(
        self,
        debt_ledger: DebtLedger,
        debt_id: str,
        entry_id: int,
        oracle: OracleRate = NO_ORACLE,
    ) -> None:
        """
        Lend hook: accept backing `debt_id` only if `entry_id` was created
        for it and holds at least balance_ratio of the requested amount.

        Raises:
            DebtNotFound: Foreign debt ledger
            EntryNotFound: Dead entry
            EntryNotCollateralized: Wrong debt, or not enough collateral
        """
        if debt_ledger is not self.debt_ledger:
            raise DebtNotFound("Debt ledger is not served by this engine")
        entry = self.store.require(entry_id)
        if entry.debt_id != debt_id:
            raise EntryNotCollateralized(f"Entry {entry_id} backs {entry.debt_id}, not {debt_id}")

        request = debt_ledger.request_info(debt_id)
        debt_tokens = val.debt_in_tokens(request.amount, oracle)
        collateral_tokens = val.value_collateral_to_tokens(
            self.converter, entry.token, self.debt_token, entry.amount
        )
        ratio = val.collateral_ratio(collateral_tokens, debt_tokens)
        if ratio is not None and ratio < entry.balance_ratio:
            raise EntryNotCollateralized(
                f"Entry {entry_id} ratio {ratio} is below its balance ratio {entry.balance_ratio}"
            )

    # ========================================================================
    # QUERIES
    # ========================================================================

    def get_entry(self, entry_id: int) -> CollateralEntry:
        return self.store.get(entry_id)

    def entry_of_debt(self, debt_id: str) -> int:
        return self.store.entry_of_debt(debt_id)

    def owner_of(self, entry_id: int) -> Optional[str]:
        return self.store.owner_of(entry_id)

    def valuation(self, entry_id: int, oracle: OracleRate = NO_ORACLE) -> val.Valuation:
        """Full valuation snapshot of a live entry."""
        return self._value(self.store.require(entry_id), oracle)

    def debt_in_tokens(self, entry_id: int, oracle: OracleRate = NO_ORACLE) -> int:
        return self.valuation(entry_id, oracle).debt_in_tokens

    def collateral_in_tokens(self, entry_id: int) -> int:
        entry = self.store.require(entry_id)
        return val.value_collateral_to_tokens(self.converter, entry.token, self.debt_token, entry.amount)

    def collateral_ratio(self, entry_id: int, oracle: OracleRate = NO_ORACLE) -> Optional[int]:
        return self.valuation(entry_id, oracle).collateral_ratio

    def liquidation_delta_ratio(self, entry_id: int, oracle: OracleRate = NO_ORACLE) -> Optional[int]:
        return self.valuation(entry_id, oracle).liquidation_delta_ratio

    def balance_delta_ratio(self, entry_id: int, oracle: OracleRate = NO_ORACLE) -> Optional[int]:
        return self.valuation(entry_id, oracle).balance_delta_ratio

    def can_withdraw(self, entry_id: int, oracle: OracleRate = NO_ORACLE) -> int:
        return self.valuation(entry_id, oracle).can_withdraw

    def collateral_to_pay(self, entry_id: int, oracle: OracleRate = NO_ORACLE) -> int:
        return self.valuation(entry_id, oracle).collateral_to_pay

    def tokens_to_pay(self, entry_id: int, oracle: OracleRate = NO_ORACLE) -> int:
        return self.valuation(entry_id, oracle).tokens_to_pay

    def value_collateral_to_tokens(self, entry_id: int, amount: int) -> int:
        entry = self.store.require(entry_id)
        return val.value_collateral_to_tokens(self.converter, entry.token, self.debt_token, amount)

    def value_tokens_to_collateral(self, entry_id: int, amount: int) -> int:
        entry = self.store.require(entry_id)
        return val.value_tokens_to_collateral(self.converter, entry.token, self.debt_token, amount)

    def total_collateral(self, token: str) -> int:
        """Sum of live entry amounts in `token`; equals the engine wallet balance."""
        return sum(e.amount for e in self.store.live_entries() if e.token == token)

    # ========================================================================
    # OWNERSHIP
    # ========================================================================

    def approve(self, entry_id: int, to: Optional[str], caller: str) -> None:
        self.store.approve(entry_id, to, caller)

    def set_approval_for_all(self, operator: str, approved: bool, caller: str) -> None:
        self.store.set_approval_for_all(caller, operator, approved)

    def transfer_ownership(self, entry_id: int, to: str, caller: str) -> None:
        previous = self.store.transfer_ownership(entry_id, to, caller)
        self._emit(OwnershipTransferred(entry_id=entry_id, previous_owner=previous, new_owner=to))

    # ========================================================================
    # ADMIN
    # ========================================================================

    def set_converter(self, converter: CurrencyConverter, caller: str) -> None:
        self._only_owner(caller)
        self._ensure_wallet(converter.wallet)
        self.converter = converter
        self._emit(SetConverter(converter=converter.wallet))

    def set_url(self, url: str, caller: str) -> None:
        self._only_owner(caller)
        self.url = url
        self._emit(SetUrl(url=url))

    # ========================================================================
    # INTERNALS
    # ========================================================================

    def _ensure_wallet(self, wallet: str) -> None:
        if not self.ledger.is_registered(wallet):
            self.ledger.register_wallet(wallet)

    def _emit(self, event: object) -> None:
        self.events.emit(self.ledger.current_time, event)

    def _authorize(self, caller: str, entry_id: int) -> None:
        if not self.store.is_authorized(caller, entry_id):
            raise NotAuthorized(f"{caller} is not authorized on entry {entry_id}")

    def _only_owner(self, caller: str) -> None:
        if caller != self.config.owner:
            raise NotOwner(f"{caller} is not the engine owner")

    def _check_recipient(self, to: str) -> None:
        if to == self.wallet:
            raise TransferFailed(f"Collateral cannot be released to the custody wallet {to}")

    def _value(self, entry: CollateralEntry, oracle: OracleRate) -> val.Valuation:
        obligation = self.debt_ledger.get_closing_obligation(entry.debt_id)
        return val.value_entry(entry, obligation, self.debt_token, self.converter, oracle)

    def _plan(self, entry: CollateralEntry, required: int, rounding: FeeRounding) -> ConversionPlan:
        return plan_conversion(
            self.converter, entry.token, self.debt_token, entry.amount,
            required, entry.burn_fee, entry.reward_fee, rounding,
        )

    def _entry_for_claim(self, debt_ledger: DebtLedger, debt_id: str) -> CollateralEntry:
        if debt_ledger is not self.debt_ledger:
            raise DebtNotFound("Debt ledger is not served by this engine")
        entry_id = self.store.entry_of_debt(debt_id)
        if entry_id == 0:
            raise DebtNotFound(f"No entry backs debt {debt_id}")
        return self.store.get(entry_id)

    def _claim_plan(self, entry: CollateralEntry, oracle: OracleRate):
        """(outcome, required tokens, plan) for a claim on `entry` now."""
        status = self.debt_ledger.get_status(entry.debt_id)
        if status != DebtStatus.ONGOING or entry.amount == 0:
            return ClaimOutcome.NONE, 0, EMPTY_PLAN

        due_time = self.debt_ledger.get_due_time(entry.debt_id)
        if due_time is not None and due_time <= self.ledger.current_time:
            obligation = self.debt_ledger.get_closing_obligation(entry.debt_id)
            required = oracle.currency_to_tokens(obligation, ceil=True)
            if required == 0:
                return ClaimOutcome.NONE, 0, EMPTY_PLAN
            return ClaimOutcome.SETTLED, required, self._plan(entry, required, FeeRounding.CEIL)

        valuation = self._value(entry, oracle)
        if not valuation.is_liquidatable or valuation.tokens_to_pay == 0:
            return ClaimOutcome.NONE, 0, EMPTY_PLAN
        required = valuation.tokens_to_pay
        return ClaimOutcome.EQUILIBRATED, required, self._plan(entry, required, FeeRounding.FLOOR)

    def _settle(
        self,
        entry: CollateralEntry,
        plan: ConversionPlan,
        reward_to: str,
        oracle: OracleRate,
        origin_type: OriginType,
        event_type: str,
        headline: object,
    ) -> None:
        """Execute a conversion plan against the debt of `entry`."""
        contract_id = f"{event_type.lower()}:{entry.id}"
        moves: List[Optional[Move]] = []
        moves += conversion_moves(
            self.converter, self.wallet, entry.token, self.debt_token,
            plan.sold, plan.bought, contract_id,
        )
        moves.append(token_move(plan.pay, self.debt_token, self.wallet, self.debt_ledger.wallet, f"{contract_id}:pay"))
        moves += self.fee_splitter.route(plan.fees, self.debt_token, self.wallet, reward_to, contract_id)

        pending = self._pending(moves, origin_type, event_type, entry.id)
        self._validate(pending)
        self.debt_ledger.pay(entry.debt_id, oracle.tokens_to_currency(plan.pay))
        self._execute(pending)
        self.store.set_amount(entry.id, entry.amount - plan.sold)

        self._emit(headline)
        if entry.token != self.debt_token:
            self._emit(ConvertPay(entry_id=entry.id, sold=plan.sold, bought=plan.bought, oracle_data=oracle.data))
        if not plan.fees.is_zero():
            self._emit(TakeFee(
                entry_id=entry.id,
                burned=plan.fees.burned,
                rewarded=plan.fees.rewarded,
                reward_to=reward_to,
            ))

    def _pull(self, owner: str, token: str, amount: int, contract_id: str) -> Optional[Move]:
        return token_move(amount, token, owner, self.wallet, contract_id, spender=self.wallet)

    def _pending(
        self,
        moves: List[Optional[Move]],
        origin_type: OriginType,
        event_type: str,
        entry_id: int,
    ) -> PendingTransaction:
        self._nonce += 1
        origin = TransactionOrigin(origin_type, f"{self.wallet}#{self._nonce}", entry_id, event_type)
        return build_transaction(self.ledger, moves, origin)

    def _validate(self, pending: PendingTransaction) -> None:
        valid, reason = self.ledger.validate(pending)
        if not valid:
            raise TransferFailed(f"{pending.origin.event_type} rejected: {reason}")

    def _execute(self, pending: PendingTransaction) -> None:
        result = self.ledger.execute(pending)
        if result != ExecuteResult.APPLIED:
            raise TransferFailed(f"{pending.origin.event_type} not applied: {result.value}")
