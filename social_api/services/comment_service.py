from typing import List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, desc, delete, func
from sqlalchemy.orm import selectinload
import json
import logging

from social_api.config import settings
from social_api.exceptions import NotFound, PermissionDenied, DataIntegrityInconsistency
from social_api.models.comment import Comment
from social_api.models.post import Post
from social_api.schemas.comment_schema import (
    CommentCreate,
    CommentUpdate,
    CommentResponse,
    CommentTreeResponse,
    DeletedComment
)
from social_api.services.comment_tree import build_comment_tree
from social_api.services.counters import lock_post, recount_post_comments
from social_api.services.rate_gate import RateGate, ActionKind
from social_api.services.redis_service import RedisService
from social_api.utils.content_filter import content_filter

logger = logging.getLogger(__name__)

class CommentService:
    def __init__(
        self,
        db: AsyncSession,
        rate_gate: Optional[RateGate] = None,
        cache: Optional[RedisService] = None
    ):
        self.db = db
        self.rate_gate = rate_gate
        self.cache = cache

    async def create_comment(
        self,
        post_id: int,
        user_id: int,
        comment_data: CommentCreate
    ) -> Comment:
        """Create a new comment, subject to the commenting cooldown"""
        if self.rate_gate is None:
            raise RuntimeError("CommentService needs a rate gate to create comments")

        if await lock_post(self.db, post_id) is None:
            raise NotFound("Post does not exist. Cannot make the comment")

        # Validate parent comment if provided
        if comment_data.parent_id is not None:
            parent_stmt = select(Comment.id).where(
                and_(
                    Comment.id == comment_data.parent_id,
                    Comment.post_id == post_id
                )
            )
            parent = (await self.db.execute(parent_stmt)).scalar_one_or_none()

            if parent is None:
                raise NotFound("Parent comment not found or doesn't belong to this post")

        self.rate_gate.require(user_id, ActionKind.COMMENT)

        comment = Comment(
            post_id=post_id,
            user_id=user_id,
            content=content_filter.clean(comment_data.content),
            parent_id=comment_data.parent_id
        )

        self.db.add(comment)
        await self.db.flush()

        await recount_post_comments(self.db, post_id)
        await self.db.commit()

        await self._invalidate_comment_caches(post_id)

        logger.info(f"Created comment {comment.id} by user {user_id} on post {post_id}")
        return await self.get_comment(comment.id)

    async def get_comment(self, comment_id: int) -> Optional[Comment]:
        """Get a comment by ID with its author"""
        stmt = select(Comment).options(
            selectinload(Comment.user)
        ).where(
            Comment.id == comment_id
        ).execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def update_comment(
        self,
        comment_id: int,
        user_id: int,
        comment_update: CommentUpdate,
        is_admin: bool = False
    ) -> Comment:
        """Edit a comment; only its author or an administrator may"""
        comment = await self.get_comment(comment_id)
        if comment is None:
            raise NotFound("Comment does not exist")

        if comment.user_id != user_id and not is_admin:
            raise PermissionDenied("Permission denied for updating the comment")

        comment.content = content_filter.clean(comment_update.content)
        comment.edited = True
        await self.db.commit()

        await self._invalidate_comment_caches(comment.post_id)

        logger.info(f"User {user_id} updated comment {comment_id}")
        return await self.get_comment(comment_id)

    async def delete_comment(
        self,
        comment_id: int,
        user_id: int,
        is_admin: bool = False
    ) -> DeletedComment:
        """Delete a comment together with every reply below it.

        The subtree is resolved first, removed with a single statement, and
        the post's comment count is then recounted from what is left. If the
        post itself is gone by then, the deletion still stands and
        ``DataIntegrityInconsistency`` reports the stale counter.
        """
        comment = await self.get_comment(comment_id)
        if comment is None:
            raise NotFound("Comment not present")

        if comment.user_id != user_id and not is_admin:
            raise PermissionDenied("Permission denied for deleting the comment")

        post_id = comment.post_id
        snapshot = CommentResponse.model_validate(comment)

        # A vanished post is reported after the delete by the recount
        await lock_post(self.db, post_id)
        subtree_ids = await self._collect_subtree_ids(comment_id)
        await self.db.execute(delete(Comment).where(Comment.id.in_(subtree_ids)))

        try:
            comment_count = await recount_post_comments(self.db, post_id)
        except DataIntegrityInconsistency:
            await self.db.commit()
            await self._invalidate_comment_caches(post_id)
            logger.error(
                f"Deleted comments {subtree_ids} but post {post_id} is missing; comment count not updated"
            )
            raise

        await self.db.commit()
        await self._invalidate_comment_caches(post_id)

        logger.info(f"Deleted comment {comment_id} and {len(subtree_ids) - 1} replies from post {post_id}")

        return DeletedComment(
            comment=snapshot,
            deleted_ids=subtree_ids,
            comment_count=comment_count
        )

    async def _collect_subtree_ids(self, comment_id: int) -> List[int]:
        """Ids of a comment and all of its descendants, level by level"""
        subtree_ids = [comment_id]
        seen = {comment_id}
        frontier = [comment_id]

        while frontier:
            stmt = select(Comment.id).where(Comment.parent_id.in_(frontier))
            children = (await self.db.execute(stmt)).scalars()
            frontier = [child_id for child_id in children if child_id not in seen]
            seen.update(frontier)
            subtree_ids.extend(frontier)

        return subtree_ids

    async def get_comment_tree(self, post_id: int) -> List[CommentTreeResponse]:
        """Comments of a post nested under their parents, newest first"""
        cache_key = f"post:{post_id}:comment_tree"
        cached = await self._cache_get(cache_key)
        if cached is not None:
            return [CommentTreeResponse.model_validate(item) for item in cached]

        if await self.db.get(Post, post_id) is None:
            raise NotFound("Post does not exist")

        stmt = select(Comment).options(
            selectinload(Comment.user)
        ).where(
            Comment.post_id == post_id
        ).order_by(
            desc(Comment.created_at), desc(Comment.id)
        )
        comments = (await self.db.execute(stmt)).scalars()

        roots = build_comment_tree(
            CommentTreeResponse.model_validate(comment) for comment in comments
        )

        await self._cache_set(
            cache_key,
            [root.model_dump(mode="json") for root in roots],
            settings.COMMENT_TREE_CACHE_TTL
        )
        return roots

    async def get_user_comments(
        self,
        user_id: int,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Comment], int]:
        """Comments written by a user, newest first"""
        stmt = select(Comment).options(
            selectinload(Comment.user)
        ).where(
            Comment.user_id == user_id
        ).order_by(
            desc(Comment.created_at), desc(Comment.id)
        ).offset(skip).limit(limit)
        comments = list((await self.db.execute(stmt)).scalars())

        count_stmt = select(func.count()).select_from(Comment).where(Comment.user_id == user_id)
        total = (await self.db.execute(count_stmt)).scalar_one()
        return comments, total

    async def _cache_get(self, key: str):
        if self.cache is None:
            return None
        try:
            cached = await self.cache.get(key)
            if cached:
                logger.debug(f"Cache hit for {key}")
                return json.loads(cached)
        except Exception as e:
            logger.error(f"Error reading cache key {key}: {e}")
        return None

    async def _cache_set(self, key: str, value, ttl: int) -> None:
        if self.cache is None:
            return
        try:
            await self.cache.setex(key, ttl, json.dumps(value))
        except Exception as e:
            logger.error(f"Error caching {key}: {e}")

    async def _invalidate_comment_caches(self, post_id: int) -> None:
        """Invalidate relevant caches after comment operations"""
        if self.cache is None:
            return
        try:
            await self.cache.delete(f"post:{post_id}:comment_tree")
        except Exception as e:
            logger.error(f"Error invalidating comment caches for post {post_id}: {e}")
