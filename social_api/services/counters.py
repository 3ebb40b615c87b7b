"""
Recount-and-assign helpers for the denormalized post counters.

Counters are never incremented in place: after every write that touches the
likes or comments of a post, the owning service calls one of these to count
the rows again and store the result. Both run inside the caller's
transaction and leave committing to it.

Writers take the post row lock with ``lock_post`` before inserting or
deleting, so two transactions on the same post recount one after the other
and the later count sees the earlier commit.
"""
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from sqlalchemy import select, update, func
import logging

from social_api.exceptions import DataIntegrityInconsistency
from social_api.models.post import Post
from social_api.models.like import Like
from social_api.models.comment import Comment

logger = logging.getLogger(__name__)


def post_lock_statement(post_id: int):
    return select(Post).where(Post.id == post_id).with_for_update()


async def lock_post(db: AsyncSession, post_id: int) -> Optional[Post]:
    """Load a post holding its row lock until the transaction ends"""
    result = await db.execute(post_lock_statement(post_id))
    return result.scalar_one_or_none()


async def recount_post_likes(db: AsyncSession, post_id: int) -> int:
    count_stmt = select(func.count()).select_from(Like).where(Like.post_id == post_id)
    count = (await db.execute(count_stmt)).scalar_one()
    await _assign(db, post_id, like_count=count)
    return count


async def recount_post_comments(db: AsyncSession, post_id: int) -> int:
    count_stmt = select(func.count()).select_from(Comment).where(Comment.post_id == post_id)
    count = (await db.execute(count_stmt)).scalar_one()
    await _assign(db, post_id, comment_count=count)
    return count


async def _assign(db: AsyncSession, post_id: int, **values) -> None:
    update_stmt = (
        update(Post)
        .where(Post.id == post_id)
        .values(**values)
        .execution_options(synchronize_session="evaluate")
    )
    result = await db.execute(update_stmt)

    if result.rowcount == 0:
        logger.error(f"Post {post_id} vanished while recounting {', '.join(values)}")
        raise DataIntegrityInconsistency(
            f"Post {post_id} no longer exists; its counters could not be updated"
        )

    logger.debug(f"Recounted post {post_id}: {values}")
