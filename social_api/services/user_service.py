"""
User Service for handling user-related business logic
"""
import logging
from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from social_api.exceptions import NotFound
from social_api.models.user import User
from social_api.schemas.user_schema import UserUpdate

logger = logging.getLogger(__name__)

class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user(self, user_id: int) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def get_user_by_username(self, username: str) -> Optional[User]:
        stmt = select(User).where(User.username == username)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_user_by_email(self, email: str) -> Optional[User]:
        stmt = select(User).where(User.email == email.lower())
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def require_user(self, user_id: int) -> User:
        user = await self.get_user(user_id)
        if user is None:
            raise NotFound("User does not exist")
        return user

    async def update_user(self, user_id: int, user_update: UserUpdate) -> User:
        """Update profile fields; only the biography is editable"""
        user = await self.require_user(user_id)

        if isinstance(user_update.biography, str):
            user.biography = user_update.biography

        await self.db.commit()
        await self.db.refresh(user)

        logger.info(f"Updated profile of user {user_id}")
        return user

    async def get_random_users(self, size: int = 5) -> List[User]:
        stmt = select(User).order_by(func.random()).limit(size)
        result = await self.db.execute(stmt)
        return list(result.scalars())
