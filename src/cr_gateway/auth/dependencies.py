"""FastAPI dependency: get_current_user_id.

Usage in any protected router:
    from src.cr_gateway.auth.dependencies import get_current_user_id

    @router.get("/protected")
    async def protected(user_id: str = Depends(get_current_user_id)):
        ...
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from src.cr_account.infrastructure.persistence import AccountRepository
from src.cr_common.database import get_db_session
from src.cr_common.errors import InvalidCredentialsError
from src.cr_gateway.auth.jwt_handler import decode_token

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

# Reusable 401 exception with WWW-Authenticate header (OAuth2 standard)
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)

_accounts = AccountRepository()


async def get_current_user_id(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> str:
    """Validate the JWT Bearer token and return the caller's user id.

    The caller's account row is created on first sight so that claims can
    always credit it. Raises HTTP 401 if the token is missing, invalid, or expired.
    """
    try:
        payload = decode_token(token)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    user_id: str | None = payload.get("sub")
    if not user_id:
        raise _CREDENTIALS_EXCEPTION

    try:
        await _accounts.ensure_account(db, user_id)
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    return user_id
