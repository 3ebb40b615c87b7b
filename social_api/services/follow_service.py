from typing import List, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, desc, func
from sqlalchemy.exc import IntegrityError
import logging

from social_api.exceptions import AlreadyFollowing, NotFollowing, InvalidOperation
from social_api.models.follow import Follow
from social_api.models.user import User
from social_api.services.user_service import UserService

logger = logging.getLogger(__name__)

class FollowService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def follow(self, follower_id: int, following_id: int) -> Follow:
        """Create a new follow relationship"""
        if follower_id == following_id:
            raise InvalidOperation("Cannot follow yourself")

        await UserService(self.db).require_user(following_id)

        if await self.is_following(follower_id, following_id):
            raise AlreadyFollowing()

        follow = Follow(follower_id=follower_id, following_id=following_id)
        self.db.add(follow)

        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise AlreadyFollowing()

        await self.db.refresh(follow)
        logger.info(f"Created follow: {follower_id} -> {following_id}")
        return follow

    async def unfollow(self, follower_id: int, following_id: int) -> None:
        """Delete a follow relationship"""
        follow = await self._get_follow(follower_id, following_id)
        if follow is None:
            raise NotFollowing()

        await self.db.delete(follow)
        await self.db.commit()

        logger.info(f"Deleted follow: {follower_id} -> {following_id}")

    async def is_following(self, follower_id: int, following_id: int) -> bool:
        return await self._get_follow(follower_id, following_id) is not None

    async def get_followers(self, user_id: int, skip: int = 0, limit: int = 20) -> Tuple[List[User], int]:
        """Users following ``user_id``, most recent first"""
        await UserService(self.db).require_user(user_id)
        return await self._list(Follow.follower_id, Follow.following_id == user_id, skip, limit)

    async def get_following(self, user_id: int, skip: int = 0, limit: int = 20) -> Tuple[List[User], int]:
        """Users ``user_id`` follows, most recent first"""
        await UserService(self.db).require_user(user_id)
        return await self._list(Follow.following_id, Follow.follower_id == user_id, skip, limit)

    async def _list(self, user_column, condition, skip: int, limit: int) -> Tuple[List[User], int]:
        stmt = select(User).join(
            Follow, user_column == User.id
        ).where(
            condition
        ).order_by(
            desc(Follow.created_at), desc(Follow.id)
        ).offset(skip).limit(limit)
        users = list((await self.db.execute(stmt)).scalars())

        count_stmt = select(func.count()).select_from(Follow).where(condition)
        total = (await self.db.execute(count_stmt)).scalar_one()
        return users, total

    async def _get_follow(self, follower_id: int, following_id: int):
        stmt = select(Follow).where(
            and_(
                Follow.follower_id == follower_id,
                Follow.following_id == following_id
            )
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()
