"""Unit tests for the cr_ledger Order model and OrderLedger writer."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.cr_common.enums import OrderStatus, OrderType
from src.cr_ledger.domain.models import ORDER_EXPIRE_AFTER, Order
from src.cr_ledger.infrastructure.persistence import OrderLedger


def _order(**kwargs) -> Order:
    defaults = dict(
        order_name="Red envelope received",
        payer_user_id="alice",
        payee_user_id="bob",
        amount=3333,
        order_type=OrderType.ENVELOPE_RECEIVE,
        reference_id="42",
    )
    defaults.update(kwargs)
    return Order(**defaults)


def _order_row(order: Order, order_id: int = 1):
    row = MagicMock()
    row.id = order_id
    row.order_name = order.order_name
    row.payer_user_id = order.payer_user_id
    row.payee_user_id = order.payee_user_id
    row.amount = order.amount
    row.order_type = order.order_type.value
    row.status = order.status.value
    row.remark = order.remark
    row.reference_id = order.reference_id
    row.trade_time = order.trade_time
    row.expires_at = order.expires_at
    row.created_at = datetime.now(UTC)
    return row


class TestOrderModel:
    def test_defaults(self) -> None:
        order = _order()
        assert order.status == OrderStatus.SUCCESS
        assert order.trade_time is not None
        assert order.expires_at == order.trade_time + ORDER_EXPIRE_AFTER

    def test_explicit_trade_time(self) -> None:
        at = datetime(2026, 1, 1, tzinfo=UTC)
        order = _order(trade_time=at)
        assert order.expires_at == at + timedelta(hours=24)

    def test_validate_rejects_zero_amount(self) -> None:
        with pytest.raises(ValueError, match="positive"):
            _order(amount=0).validate()

    def test_validate_requires_a_party(self) -> None:
        with pytest.raises(ValueError, match="payer or a payee"):
            _order(payer_user_id=None, payee_user_id=None).validate()


class TestOrderLedgerAppend:
    async def test_inserts_and_maps_row(self) -> None:
        order = _order()
        result = MagicMock()
        result.fetchone.return_value = _order_row(order, order_id=77)
        db = MagicMock()
        db.execute = AsyncMock(return_value=result)

        stored = await OrderLedger().append(db, order)

        assert stored.id == 77
        assert stored.order_type == OrderType.ENVELOPE_RECEIVE
        params = db.execute.call_args[0][1]
        assert params["order_type"] == "ENVELOPE_RECEIVE"
        assert params["reference_id"] == "42"
        assert "INSERT INTO orders" in str(db.execute.call_args[0][0])

    async def test_invalid_order_never_reaches_db(self) -> None:
        db = MagicMock()
        db.execute = AsyncMock()
        with pytest.raises(ValueError):
            await OrderLedger().append(db, _order(amount=-5))
        db.execute.assert_not_awaited()
