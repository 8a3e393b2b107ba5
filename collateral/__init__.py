"""
collateral - Collateralized lending settlement engine

Holds collateral against debts recorded in an external debt ledger, tracks
collateral ratios and liquidates entries that fall below their liquidation
ratio or whose debt is past due.

Usage:
    from collateral import (
        Ledger, token, LoanBook, StaticRateConverter,
        CollateralEngine, EngineConfig, WEI,
    )

    ledger = Ledger("main", verbose=False)
    ledger.register_unit(token("RCN", "Ripio Credit Network"))
    ledger.register_wallet("alice")

    book = LoanBook(ledger, token="RCN")
    converter = StaticRateConverter("converter")
    engine = CollateralEngine(ledger, book, converter, EngineConfig(owner="admin"))

    debt_id = book.request_loan("alice", 1000, timedelta(days=30))
    ledger.approve("alice", engine.wallet, "RCN", 2500)
    entry_id = engine.create(debt_id, "RCN", 2500, 15000, 20000, 100, 100, caller="alice")
"""

# Core types
from .core import (
    LedgerView,
    Move,
    Transaction,
    PendingTransaction,
    TransactionOrigin,
    OriginType,
    ExecuteResult,
    Unit,
    build_transaction,
    token_move,
    token,
    LedgerError,
    UnitNotRegistered,
    WalletNotRegistered,
    CollateralError,
    InvalidFeeConfiguration,
    InvalidLiquidationRatio,
    InvalidBalanceRatio,
    FeeExceedsBand,
    DebtNotOpen,
    DebtAlreadyCollateralized,
    EntryNotFound,
    EntryNotCollateralized,
    TransferFailed,
    NotAuthorized,
    NotOwner,
    InsufficientCollateral,
    DebtNotClosed,
    DebtNotInError,
    DebtNotFound,
    RateNotAvailable,
    BASE,
    WEI,
    ENGINE_WALLET,
    BURN_WALLET,
    UNIT_TYPE_TOKEN,
)

# Token ledger
from .ledger import Ledger

# Arithmetic and fees
from .ratio_math import div_ceil, div_trunc, min3, apply_ratio
from .fees import FeeSplit, FeeSplitter, NO_FEE, split_fee, with_fee, deduct_fee

# Collaborators
from .oracle import OracleRate, NO_ORACLE, encode_rate, decode_rate
from .converter import (
    CurrencyConverter,
    StaticRateConverter,
    TimeSeriesRateConverter,
    conversion_moves,
)
from .debt_ledger import DebtLedger, DebtStatus, DebtRequest, Loan, LoanBook

# Entries
from .store import CollateralEntry, CollateralEntryStore, EMPTY_ENTRY, validate_terms
from .valuation import Valuation, value_entry
from .settlement import ConversionPlan, FeeRounding, plan_conversion
from .events import (
    EventLog,
    Created,
    Deposited,
    Withdrawn,
    Redeemed,
    EmergencyRedeemed,
    PayOffDebt,
    CancelDebt,
    CollateralBalance,
    ConvertPay,
    TakeFee,
    OwnershipTransferred,
    SetConverter,
    SetUrl,
)

# Engine
from .engine import (
    CollateralEngine,
    EngineConfig,
    RewardPolicy,
    ClaimOutcome,
    ClaimResult,
)
from .keeper import ClaimKeeper

# Simulation
from .stress import simulate_rate_path, rate_schedule, shocked_path


__all__ = [
    # Core
    'LedgerView', 'Move', 'Transaction', 'PendingTransaction',
    'TransactionOrigin', 'OriginType', 'ExecuteResult', 'Unit',
    'build_transaction', 'token_move', 'token',
    'BASE', 'WEI', 'ENGINE_WALLET', 'BURN_WALLET', 'UNIT_TYPE_TOKEN',
    # Errors
    'LedgerError', 'UnitNotRegistered', 'WalletNotRegistered',
    'CollateralError', 'InvalidFeeConfiguration', 'InvalidLiquidationRatio',
    'InvalidBalanceRatio', 'FeeExceedsBand', 'DebtNotOpen',
    'DebtAlreadyCollateralized', 'EntryNotFound', 'EntryNotCollateralized',
    'TransferFailed', 'NotAuthorized', 'NotOwner', 'InsufficientCollateral',
    'DebtNotClosed', 'DebtNotInError', 'DebtNotFound', 'RateNotAvailable',
    # Ledger
    'Ledger',
    # Arithmetic and fees
    'div_ceil', 'div_trunc', 'min3', 'apply_ratio',
    'FeeSplit', 'FeeSplitter', 'NO_FEE', 'split_fee', 'with_fee', 'deduct_fee',
    # Collaborators
    'OracleRate', 'NO_ORACLE', 'encode_rate', 'decode_rate',
    'CurrencyConverter', 'StaticRateConverter', 'TimeSeriesRateConverter',
    'conversion_moves',
    'DebtLedger', 'DebtStatus', 'DebtRequest', 'Loan', 'LoanBook',
    # Entries
    'CollateralEntry', 'CollateralEntryStore', 'EMPTY_ENTRY', 'validate_terms',
    'Valuation', 'value_entry',
    'ConversionPlan', 'FeeRounding', 'plan_conversion',
    # Events
    'EventLog', 'Created', 'Deposited', 'Withdrawn', 'Redeemed',
    'EmergencyRedeemed', 'PayOffDebt', 'CancelDebt', 'CollateralBalance',
    'ConvertPay', 'TakeFee', 'OwnershipTransferred', 'SetConverter', 'SetUrl',
    # Engine
    'CollateralEngine', 'EngineConfig', 'RewardPolicy', 'ClaimOutcome',
    'ClaimResult', 'ClaimKeeper',
    # Simulation
    'simulate_rate_path', 'rate_schedule', 'shocked_path',
]

__version__ = '1.0.0'
