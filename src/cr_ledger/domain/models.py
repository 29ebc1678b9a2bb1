"""Domain models for cr_ledger — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime, timedelta

from src.cr_common.datetime_utils import utc_now
from src.cr_common.enums import OrderStatus, OrderType

ORDER_EXPIRE_AFTER = timedelta(hours=24)


@dataclass
class Order:
    order_name: str
    payer_user_id: str | None
    payee_user_id: str | None
    amount: int                          # cents, always positive
    order_type: OrderType
    status: OrderStatus = OrderStatus.SUCCESS
    remark: str = ""
    reference_id: str | None = None      # envelope id for envelope orders
    trade_time: datetime | None = None
    expires_at: datetime | None = None
    id: int | None = None                # BIGSERIAL, set on insert
    created_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.trade_time is None:
            self.trade_time = utc_now()
        if self.expires_at is None:
            self.expires_at = self.trade_time + ORDER_EXPIRE_AFTER

    def validate(self) -> None:
        """Required-field check applied on append; no business rules."""
        if self.amount <= 0:
            raise ValueError(f"Order amount must be positive, got {self.amount}")
        if self.payer_user_id is None and self.payee_user_id is None:
            raise ValueError("Order needs a payer or a payee")
        if not self.order_name:
            raise ValueError("Order name is required")
