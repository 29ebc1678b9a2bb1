"""AccountApplicationService — read-only balance view for the HTTP layer.

Balance mutations are not exposed here: they only happen inside envelope
transactions, through AccountRepository.update_balance.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from src.cr_account.application.schemas import BalanceResponse
from src.cr_account.domain.repository import AccountRepositoryProtocol
from src.cr_account.infrastructure.persistence import AccountRepository
from src.cr_common.errors import AccountNotFoundError


class AccountApplicationService:
    def __init__(self, repo: AccountRepositoryProtocol | None = None) -> None:
        self._repo: AccountRepositoryProtocol = repo or AccountRepository()

    async def get_balance(self, db: AsyncSession, user_id: str) -> BalanceResponse:
        account = await self._repo.get_account_by_user_id(db, user_id)
        if account is None:
            raise AccountNotFoundError(user_id)
        return BalanceResponse.from_account(account)
