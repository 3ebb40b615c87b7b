from typing import Iterable, List, Optional, Set, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, desc, delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
import logging

from social_api.exceptions import NotFound, AlreadyLiked, NotLiked
from social_api.models.like import Like
from social_api.models.post import Post
from social_api.services.counters import lock_post, recount_post_likes

logger = logging.getLogger(__name__)

class LikeService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def like(self, post_id: int, user_id: int) -> int:
        """Like a post and return its recounted like count.

        The existence check is only a fast path: when two requests race past
        it, the unique constraint on (post_id, user_id) rejects the second
        insert and that request fails with ``AlreadyLiked`` as well.
        """
        await self._require_post(post_id)

        if await self._get_existing_like(post_id, user_id):
            raise AlreadyLiked()

        self.db.add(Like(post_id=post_id, user_id=user_id))
        try:
            await self.db.flush()
        except IntegrityError:
            await self.db.rollback()
            logger.info(f"Duplicate like rejected by database: user={user_id}, post={post_id}")
            raise AlreadyLiked()

        like_count = await recount_post_likes(self.db, post_id)
        await self.db.commit()

        logger.info(f"Created like: user={user_id}, post={post_id}, like_count={like_count}")
        return like_count

    async def unlike(self, post_id: int, user_id: int) -> int:
        """Remove a like and return the recounted like count"""
        await self._require_post(post_id)

        stmt = delete(Like).where(
            and_(
                Like.post_id == post_id,
                Like.user_id == user_id
            )
        )
        result = await self.db.execute(stmt)
        if result.rowcount == 0:
            raise NotLiked()

        like_count = await recount_post_likes(self.db, post_id)
        await self.db.commit()

        logger.info(f"Deleted like: user={user_id}, post={post_id}, like_count={like_count}")
        return like_count

    async def has_liked(self, post_id: int, user_id: int) -> bool:
        return await self._get_existing_like(post_id, user_id) is not None

    async def liked_post_ids(self, user_id: int, post_ids: Iterable[int]) -> Set[int]:
        """Subset of ``post_ids`` the user has liked"""
        post_ids = list(post_ids)
        if not post_ids:
            return set()

        stmt = select(Like.post_id).where(
            and_(
                Like.user_id == user_id,
                Like.post_id.in_(post_ids)
            )
        )
        result = await self.db.execute(stmt)
        return set(result.scalars())

    async def get_user_liked_posts(
        self,
        user_id: int,
        skip: int = 0,
        limit: int = 10
    ) -> Tuple[List[Post], int]:
        """Posts liked by a user, most recently liked first"""
        stmt = select(Post).options(
            selectinload(Post.user)
        ).join(
            Like, Like.post_id == Post.id
        ).where(
            Like.user_id == user_id
        ).order_by(
            desc(Like.created_at), desc(Like.id)
        ).offset(skip).limit(limit)
        posts = list((await self.db.execute(stmt)).scalars())

        count_stmt = select(func.count()).select_from(Like).where(Like.user_id == user_id)
        total = (await self.db.execute(count_stmt)).scalar_one()
        return posts, total

    async def _require_post(self, post_id: int) -> Post:
        post = await lock_post(self.db, post_id)
        if post is None:
            raise NotFound("Post does not exist")
        return post

    async def _get_existing_like(self, post_id: int, user_id: int) -> Optional[Like]:
        """Check if like already exists"""
        stmt = select(Like).where(
            and_(
                Like.post_id == post_id,
                Like.user_id == user_id
            )
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()
