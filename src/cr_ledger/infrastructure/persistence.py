"""OrderLedger — append-only writer for the orders table.

Called within the caller's transaction, right after the balance mutation
the order documents. Rows are never updated or deleted.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.cr_common.enums import OrderStatus, OrderType
from src.cr_common.errors import InternalError
from src.cr_ledger.domain.models import Order

_INSERT_ORDER_SQL = text("""
    INSERT INTO orders
        (order_name, payer_user_id, payee_user_id, amount, order_type,
         status, remark, reference_id, trade_time, expires_at)
    VALUES
        (:order_name, :payer_user_id, :payee_user_id, :amount, :order_type,
         :status, :remark, :reference_id, :trade_time, :expires_at)
    RETURNING id, order_name, payer_user_id, payee_user_id, amount, order_type,
              status, remark, reference_id, trade_time, expires_at, created_at
""")


def _row_to_order(row: object) -> Order:
    return Order(
        id=row.id,  # type: ignore[attr-defined]
        order_name=row.order_name,  # type: ignore[attr-defined]
        payer_user_id=row.payer_user_id,  # type: ignore[attr-defined]
        payee_user_id=row.payee_user_id,  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        order_type=OrderType(row.order_type),  # type: ignore[attr-defined]
        status=OrderStatus(row.status),  # type: ignore[attr-defined]
        remark=row.remark,  # type: ignore[attr-defined]
        reference_id=row.reference_id,  # type: ignore[attr-defined]
        trade_time=row.trade_time,  # type: ignore[attr-defined]
        expires_at=row.expires_at,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class OrderLedger:
    async def append(self, db: AsyncSession, order: Order) -> Order:
        """Insert one order row within the caller's transaction."""
        order.validate()
        result = await db.execute(
            _INSERT_ORDER_SQL,
            {
                "order_name": order.order_name,
                "payer_user_id": order.payer_user_id,
                "payee_user_id": order.payee_user_id,
                "amount": order.amount,
                "order_type": order.order_type.value,
                "status": order.status.value,
                "remark": order.remark,
                "reference_id": order.reference_id,
                "trade_time": order.trade_time,
                "expires_at": order.expires_at,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Order insert returned no rows — this should never happen")
        return _row_to_order(row)

