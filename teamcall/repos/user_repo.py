from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from teamcall.models import User


class UserRepo:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user(self, user_id: str, *, include_deleted: bool = False) -> User | None:
        stmt = select(User).where(User.id == user_id)
        if not include_deleted:
            stmt = stmt.where(User.deleted_at.is_(None))
        res = await self.db.execute(stmt)
        return res.scalar_one_or_none()
