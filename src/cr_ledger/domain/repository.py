from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.cr_ledger.domain.models import Order


class OrderLedgerProtocol(Protocol):
    async def append(self, db: AsyncSession, order: Order) -> Order: ...
