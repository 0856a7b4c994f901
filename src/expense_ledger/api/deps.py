"""Request dependencies: database session and the authenticated user.

Tokens are issued by the auth service. A request is accepted when its token
verifies and names an existing, active user.
"""
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from expense_ledger.core.security import get_user_id_from_token
from expense_ledger.db.session import get_db
from expense_ledger.models.user import User
from expense_ledger.repositories.user import UserRepository

bearer_scheme = HTTPBearer()

DbSession = Annotated[AsyncSession, Depends(get_db)]


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
    db: DbSession,
) -> User:
    """Resolve the user a bearer token belongs to.

    Raises:
        HTTPException: 401 for a bad token or unknown user, 403 for a deactivated one
    """
    try:
        user_id = get_user_id_from_token(credentials.credentials)
    except JWTError:
        raise _unauthorized("Invalid or expired token")
    except ValueError:
        raise _unauthorized("Malformed token subject")

    user = await UserRepository(db).get_by_id(user_id)
    if user is None:
        raise _unauthorized("Unknown user")
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is deactivated",
        )
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]
