"""
test_core.py - Unit tests for core.py

Tests:
- Move validation (whole, positive, finite quantities)
- token_move() zero and negative handling
- Intent id determinism
- build_transaction() against a FakeView
- Error taxonomy reason codes
"""

import pytest
from datetime import datetime
from decimal import Decimal

from collateral import (
    Move, TransactionOrigin, OriginType, LedgerView, Unit,
    token, token_move, build_transaction,
    CollateralError, LedgerError, InvalidFeeConfiguration, TransferFailed,
    DebtNotFound, RateNotAvailable,
)
from collateral.core import PendingTransaction

from tests.fake_view import FakeView


ORIGIN = TransactionOrigin(OriginType.USER_ACTION, "alice#1")


class TestMove:
    """Move validation."""

    def test_valid_move(self):
        m = Move(Decimal(10), "RCN", "alice", "bob", "c1")
        assert m.spender is None

    def test_fractional_quantity_rejected(self):
        with pytest.raises(ValueError, match="whole number"):
            Move(Decimal("1.5"), "RCN", "alice", "bob", "c1")

    def test_zero_quantity_rejected(self):
        with pytest.raises(ValueError, match="positive"):
            Move(Decimal(0), "RCN", "alice", "bob", "c1")

    def test_non_decimal_rejected(self):
        with pytest.raises(ValueError, match="Decimal"):
            Move(10, "RCN", "alice", "bob", "c1")

    def test_infinite_quantity_rejected(self):
        with pytest.raises(ValueError, match="finite"):
            Move(Decimal("Infinity"), "RCN", "alice", "bob", "c1")

    def test_self_transfer_rejected(self):
        with pytest.raises(ValueError, match="different"):
            Move(Decimal(1), "RCN", "alice", "alice", "c1")

    def test_empty_contract_id_rejected(self):
        with pytest.raises(ValueError, match="contract_id"):
            Move(Decimal(1), "RCN", "alice", "bob", " ")


class TestTokenMove:
    """token_move() builds Moves from ints."""

    def test_zero_is_none(self):
        assert token_move(0, "RCN", "alice", "bob", "c1") is None

    def test_negative_raises(self):
        with pytest.raises(ValueError, match="negative"):
            token_move(-1, "RCN", "alice", "bob", "c1")

    def test_carries_spender(self):
        m = token_move(5, "RCN", "alice", "engine", "c1", spender="engine")
        assert m.quantity == Decimal(5)
        assert m.spender == "engine"


class TestIntentId:
    """Intent ids are content hashes of moves and origin."""

    def test_order_independent(self):
        a = token_move(1, "RCN", "alice", "bob", "c1")
        b = token_move(2, "RCN", "bob", "carol", "c2")
        t = datetime(2025, 1, 1)
        assert (PendingTransaction((a, b), ORIGIN, t).intent_id
                == PendingTransaction((b, a), ORIGIN, t).intent_id)

    def test_origin_changes_id(self):
        a = token_move(1, "RCN", "alice", "bob", "c1")
        t = datetime(2025, 1, 1)
        other = TransactionOrigin(OriginType.USER_ACTION, "alice#2")
        assert PendingTransaction((a,), ORIGIN, t).intent_id != PendingTransaction((a,), other, t).intent_id

    def test_spender_changes_id(self):
        t = datetime(2025, 1, 1)
        plain = token_move(1, "RCN", "alice", "bob", "c1")
        pulled = token_move(1, "RCN", "alice", "bob", "c1", spender="bob")
        assert PendingTransaction((plain,), ORIGIN, t).intent_id != PendingTransaction((pulled,), ORIGIN, t).intent_id


class TestBuildTransaction:
    """build_transaction() against a read-only view."""

    def test_fake_view_is_ledger_view(self):
        assert isinstance(FakeView({}), LedgerView)

    def test_drops_none_and_stamps_time(self):
        view = FakeView({"alice": {"RCN": 100}}, time=datetime(2025, 3, 1))
        pending = build_transaction(view, [
            token_move(10, "RCN", "alice", "bob", "c1"),
            token_move(0, "RCN", "alice", "bob", "c2"),
        ], ORIGIN)

        assert len(pending.moves) == 1
        assert pending.timestamp == datetime(2025, 3, 1)
        assert pending.origin == ORIGIN


class TestUnits:
    """Token unit factory."""

    def test_token_is_whole_and_non_negative(self):
        unit = token("RCN", "Ripio Credit Network")
        assert isinstance(unit, Unit)
        assert unit.decimal_places == 0
        assert unit.min_balance == Decimal(0)
        assert unit.round(Decimal("7.9")) == Decimal(7)


class TestErrors:
    """Error taxonomy."""

    @pytest.mark.parametrize("error, reason", [
        (InvalidFeeConfiguration, "INVALID_FEE"),
        (TransferFailed, "TRANSFER_FAILED"),
        (DebtNotFound, "DEBT_NOT_FOUND"),
        (RateNotAvailable, "RATE_NOT_AVAILABLE"),
    ])
    def test_reason_codes(self, error, reason):
        assert error.reason == reason
        assert issubclass(error, CollateralError)
        assert issubclass(error, LedgerError)
