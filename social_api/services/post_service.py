from typing import List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, asc, desc, delete, func
from sqlalchemy.orm import selectinload
import logging

from social_api.exceptions import NotFound, PermissionDenied
from social_api.models.post import Post
from social_api.models.user import User
from social_api.models.like import Like
from social_api.models.comment import Comment
from social_api.schemas.post_schema import PostCreate, PostUpdate, PostSort, PostResponse
from social_api.services.rate_gate import RateGate, ActionKind
from social_api.services.redis_service import RedisService
from social_api.utils.content_filter import content_filter

logger = logging.getLogger(__name__)

_SORT_ORDER = {
    PostSort.NEWEST: (desc(Post.created_at), desc(Post.id)),
    PostSort.OLDEST: (asc(Post.created_at), asc(Post.id)),
    PostSort.LIKES: (desc(Post.like_count), desc(Post.created_at)),
    PostSort.COMMENTS: (desc(Post.comment_count), desc(Post.created_at)),
}

class PostService:
    def __init__(
        self,
        db: AsyncSession,
        rate_gate: Optional[RateGate] = None,
        cache: Optional[RedisService] = None
    ):
        self.db = db
        self.rate_gate = rate_gate
        self.cache = cache

    async def create_post(self, user_id: int, post_data: PostCreate) -> Post:
        """Create a new post, subject to the posting cooldown"""
        if self.rate_gate is None:
            raise RuntimeError("PostService needs a rate gate to create posts")
        self.rate_gate.require(user_id, ActionKind.POST)

        post = Post(
            user_id=user_id,
            title=post_data.title,
            content=content_filter.clean(post_data.content),
        )

        self.db.add(post)
        await self.db.commit()

        logger.info(f"User {user_id} created post {post.id}")
        return await self.get_post(post.id)

    async def get_post(self, post_id: int) -> Optional[Post]:
        """Get a post by ID with its author"""
        stmt = select(Post).options(
            selectinload(Post.user)
        ).where(
            Post.id == post_id
        ).execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def require_post(self, post_id: int) -> Post:
        post = await self.get_post(post_id)
        if post is None:
            raise NotFound("Post does not exist")
        return post

    async def list_posts(
        self,
        search: Optional[str] = None,
        author: Optional[str] = None,
        sort_by: PostSort = PostSort.NEWEST,
        skip: int = 0,
        limit: int = 10
    ) -> Tuple[List[Post], int]:
        """Posts filtered by title substring and author username"""
        conditions = []
        if search:
            conditions.append(func.lower(Post.title).contains(search.lower()))
        if author:
            conditions.append(User.username == author)

        stmt = select(Post).join(
            User, Post.user_id == User.id
        ).options(
            selectinload(Post.user)
        ).where(
            *conditions
        ).order_by(
            *_SORT_ORDER[sort_by]
        ).offset(skip).limit(limit)
        posts = list((await self.db.execute(stmt)).scalars())

        count_stmt = select(func.count()).select_from(Post).join(
            User, Post.user_id == User.id
        ).where(*conditions)
        total = (await self.db.execute(count_stmt)).scalar_one()

        return posts, total

    async def update_post(
        self,
        post_id: int,
        user_id: int,
        post_update: PostUpdate,
        is_admin: bool = False
    ) -> Post:
        """Update a post; only its author or an administrator may"""
        post = await self.require_post(post_id)
        self._check_owner(post, user_id, is_admin, "update")

        if post_update.title is not None:
            post.title = post_update.title
        if post_update.content is not None:
            post.content = content_filter.clean(post_update.content)
        post.edited = True

        await self.db.commit()

        logger.info(f"User {user_id} updated post {post_id}")
        return await self.get_post(post_id)

    async def delete_post(self, post_id: int, user_id: int, is_admin: bool = False) -> PostResponse:
        """Delete a post together with its comments and likes"""
        post = await self.require_post(post_id)
        self._check_owner(post, user_id, is_admin, "delete")

        snapshot = PostResponse.model_validate(post)

        await self.db.execute(delete(Comment).where(Comment.post_id == post_id))
        await self.db.execute(delete(Like).where(Like.post_id == post_id))
        await self.db.execute(delete(Post).where(Post.id == post_id))
        await self.db.commit()

        if self.cache is not None:
            await self._invalidate_post_caches(post_id)

        logger.info(f"User {user_id} deleted post {post_id}")
        return snapshot

    async def _invalidate_post_caches(self, post_id: int) -> None:
        try:
            await self.cache.delete_pattern(f"post:{post_id}:*")
        except Exception as e:
            logger.error(f"Error invalidating caches for post {post_id}: {e}")

    @staticmethod
    def _check_owner(post: Post, user_id: int, is_admin: bool, action: str) -> None:
        if post.user_id != user_id and not is_admin:
            raise PermissionDenied(f"Permission denied to {action} the post")
