"""Domain models for cr_account — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Account:
    id: str
    user_id: str
    available_balance: int   # cents
    total_payment: int       # cents, lifetime outflow (net of refunds)
    total_receive: int       # cents, lifetime inflow
    version: int
    created_at: datetime | None = None
    updated_at: datetime | None = None
