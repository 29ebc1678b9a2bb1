"""Repository Protocol — dependency inversion for testability.

Unit tests inject a mock or in-memory fake that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.cr_account.domain.models import Account
from src.cr_common.enums import BalanceOperation, BalanceTotalField


class AccountRepositoryProtocol(Protocol):
    async def get_account_by_user_id(
        self, db: AsyncSession, user_id: str
    ) -> Account | None: ...

    async def ensure_account(self, db: AsyncSession, user_id: str) -> Account: ...

    async def update_balance(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        operation: BalanceOperation,
        total_field: BalanceTotalField,
        check_balance: bool = False,
    ) -> Account: ...
