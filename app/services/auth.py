"""Bearer token verification for the game API.

Tokens are issued by the account service; this module only checks the
signature and expiry and extracts the user id.
"""

import logging
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..config import get_settings

logger = logging.getLogger(__name__)

_bearer = HTTPBearer(auto_error=False)


class InvalidToken(Exception):
    """Token is malformed, expired, badly signed or carries no user id."""


def decode_user_id(token: str) -> str:
    settings = get_settings()
    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.PyJWTError as e:
        raise InvalidToken(str(e)) from e

    user_id = claims.get("userId") or claims.get("sub")
    if not user_id:
        raise InvalidToken("token has no user id")
    return str(user_id)


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> str:
    """FastAPI dependency resolving the authenticated user id."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return decode_user_id(credentials.credentials)
    except InvalidToken as e:
        logger.info(f"Rejected bearer token: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token is not valid",
            headers={"WWW-Authenticate": "Bearer"},
        )
