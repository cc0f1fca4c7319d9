import logging
from typing import Optional

import jwt
from pydantic import BaseModel

from farmease.core.config import settings

logger = logging.getLogger(__name__)


class AuthSession(BaseModel):
    """Signed-in user as carried by the hosted auth service's access token."""
    user_id: str
    email: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user_id)


def decode_access_token(token: str) -> Optional[dict]:
    """
    Verify and decode an access token.

    Returns:
        Token claims, or None if the token is invalid or expired
    """
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE
        )
    except jwt.PyJWTError as e:
        logger.warning(f"Rejected access token: {str(e)}")
        return None


def session_from_token(token: str) -> Optional[AuthSession]:
    """Build a session from an access token, or None when it does not verify."""
    payload = decode_access_token(token)
    if payload is None:
        return None

    user_id = payload.get("sub")
    if not user_id:
        return None

    return AuthSession(user_id=str(user_id), email=payload.get("email"))
