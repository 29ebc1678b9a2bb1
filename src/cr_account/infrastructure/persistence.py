"""AccountRepository — concrete implementation of AccountRepositoryProtocol.

update_balance locks the account row (SELECT ... FOR UPDATE) before mutating it,
so concurrent balance changes on one user serialize across processes.

Transaction ownership: The CALLER (application service or resolver) is responsible
for committing or rolling back. update_balance never writes an order row; the
caller appends the matching order in the same transaction.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.cr_account.domain.balance import compute_delta
from src.cr_account.domain.models import Account
from src.cr_common.enums import BalanceOperation, BalanceTotalField
from src.cr_common.errors import AccountNotFoundError, InsufficientBalanceError, InternalError

_ACCOUNT_COLUMNS = (
    "id, user_id, available_balance, total_payment, total_receive, "
    "version, created_at, updated_at"
)

_GET_ACCOUNT_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM accounts
    WHERE user_id = :user_id
""")

_LOCK_ACCOUNT_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM accounts
    WHERE user_id = :user_id
    FOR UPDATE
""")

_ENSURE_ACCOUNT_SQL = text("""
    INSERT INTO accounts (user_id)
    VALUES (:user_id)
    ON CONFLICT (user_id) DO NOTHING
""")

_APPLY_DELTA_SQL = text(f"""
    UPDATE accounts
    SET available_balance = available_balance + :available_delta,
        total_payment     = total_payment     + :payment_delta,
        total_receive     = total_receive     + :receive_delta,
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id
    RETURNING {_ACCOUNT_COLUMNS}
""")


def _row_to_account(row: object) -> Account:
    return Account(
        id=str(row.id),  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        available_balance=row.available_balance,  # type: ignore[attr-defined]
        total_payment=row.total_payment,  # type: ignore[attr-defined]
        total_receive=row.total_receive,  # type: ignore[attr-defined]
        version=row.version,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


class AccountRepository:
    """Concrete repository — balance mutations run under a row lock."""

    async def get_account_by_user_id(
        self, db: AsyncSession, user_id: str
    ) -> Account | None:
        result = await db.execute(_GET_ACCOUNT_SQL, {"user_id": user_id})
        row = result.fetchone()
        return _row_to_account(row) if row else None

    async def ensure_account(self, db: AsyncSession, user_id: str) -> Account:
        """Create a zero-balance account on first sight of a user (idempotent).

        An existing row is left untouched, so repeat calls neither lock nor
        rewrite it.
        """
        await db.execute(_ENSURE_ACCOUNT_SQL, {"user_id": user_id})
        result = await db.execute(_GET_ACCOUNT_SQL, {"user_id": user_id})
        row = result.fetchone()
        if row is None:
            raise InternalError(f"Account for {user_id} missing right after insert")
        return _row_to_account(row)

    async def update_balance(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        operation: BalanceOperation,
        total_field: BalanceTotalField,
        check_balance: bool = False,
    ) -> Account:
        delta = compute_delta(amount, operation, total_field)

        locked = await db.execute(_LOCK_ACCOUNT_SQL, {"user_id": user_id})
        row = locked.fetchone()
        if row is None:
            raise AccountNotFoundError(user_id)

        if (
            operation == BalanceOperation.DEDUCT
            and check_balance
            and row.available_balance < amount
        ):
            raise InsufficientBalanceError(amount, row.available_balance)

        result = await db.execute(
            _APPLY_DELTA_SQL,
            {
                "user_id": user_id,
                "available_delta": delta.available,
                "payment_delta": delta.total_payment,
                "receive_delta": delta.total_receive,
            },
        )
        updated = result.fetchone()
        if updated is None:
            raise InternalError(f"Locked account {user_id} vanished during update")
        return _row_to_account(updated)
