from __future__ import annotations

import logging

import jwt
from sqlalchemy.ext.asyncio import AsyncSession

from teamcall.core import settings
from teamcall.repos.user_repo import UserRepo


logger = logging.getLogger(__name__)


def decode_token(token: str) -> str | None:
    """Return the `id` claim of a valid token, or None."""
    try:
        claims = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.debug("expired token rejected")
        return None
    except jwt.InvalidTokenError as e:
        logger.debug("invalid token rejected: %s", e)
        return None

    user_id = claims.get("id")
    if not isinstance(user_id, str) or not user_id:
        return None
    return user_id


class AuthService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.users = UserRepo(db)

    async def authenticate(self, token: str | None) -> str | None:
        """Resolve a session token to an existing user's id."""
        if not token:
            return None
        user_id = decode_token(token)
        if user_id is None:
            return None
        user = await self.users.get_user(user_id)
        if user is None:
            logger.debug("token for unknown user %s rejected", user_id)
            return None
        return user.id
