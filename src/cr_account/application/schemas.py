"""Pydantic schemas for cr_account API."""

from pydantic import BaseModel

from src.cr_account.domain.models import Account
from src.cr_common.cents import cents_to_display


class BalanceResponse(BaseModel):
    user_id: str
    available_balance_cents: int
    available_balance_display: str
    total_payment_cents: int
    total_payment_display: str
    total_receive_cents: int
    total_receive_display: str

    @classmethod
    def from_account(cls, account: Account) -> "BalanceResponse":
        return cls(
            user_id=account.user_id,
            available_balance_cents=account.available_balance,
            available_balance_display=cents_to_display(account.available_balance),
            total_payment_cents=account.total_payment,
            total_payment_display=cents_to_display(account.total_payment),
            total_receive_cents=account.total_receive,
            total_receive_display=cents_to_display(account.total_receive),
        )
