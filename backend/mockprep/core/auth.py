"""
FastAPI authentication dependencies.
"""
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from mockprep.models import User, get_db
from .error_responses import ErrorMessages, raise_unauthorized
from .security import decode_token

security = HTTPBearer()


def _user_id_from_token(token: str) -> int:
    """
    Decode an access token and return its user_id.

    Raises:
        HTTPException: 401 if the token is invalid, not an access token,
            or carries no user_id
    """
    payload = decode_token(token)
    if payload is None or payload.get("type") != "access":
        raise_unauthorized(ErrorMessages.INVALID_TOKEN)

    user_id = payload.get("user_id")
    if user_id is None:
        raise_unauthorized(ErrorMessages.INVALID_TOKEN_PAYLOAD)

    return user_id


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Resolve the authenticated user from the bearer token.

    Raises:
        HTTPException: 401 if the token is invalid or the user does not exist
    """
    user_id = _user_id_from_token(credentials.credentials)
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise_unauthorized(ErrorMessages.USER_NOT_FOUND_AUTH)
    return user
