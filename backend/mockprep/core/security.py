"""
JWT helpers for verifying bearer tokens issued by the auth service.
"""
from datetime import timedelta
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from mockprep.core.config import settings
from mockprep.core.datetime_utils import utc_now

DEFAULT_ACCESS_TOKEN_LIFETIME = timedelta(minutes=30)


def create_access_token(
    data: Dict[str, Any], expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a signed access token.

    The auth service issues tokens in production; this is used by tests and
    local tooling that share the signing key.
    """
    to_encode = data.copy()
    now = utc_now()
    expire = now + (expires_delta or DEFAULT_ACCESS_TOKEN_LIFETIME)
    to_encode.update({"exp": expire, "iat": now, "type": "access"})
    return jwt.encode(
        to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM
    )


def decode_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and verify a JWT token.

    Returns:
        Decoded payload if valid, None if the signature or expiry check fails
    """
    try:
        return jwt.decode(
            token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError:
        return None
