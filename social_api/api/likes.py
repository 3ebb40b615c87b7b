from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
import logging

from social_api.exceptions import SocialAPIError
from social_api.schemas.like_schema import LikeStatus
from social_api.schemas.post_schema import PostWithUser, PostListResponse
from social_api.services.like_service import LikeService
from social_api.services.auth_service import get_current_user, get_optional_user
from social_api.db.session import get_db
from social_api.models.user import User

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/posts/{post_id}/like", response_model=LikeStatus)
async def like_post(
    post_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Like a post"""
    try:
        like_count = await LikeService(db).like(post_id, current_user.id)
        return LikeStatus(post_id=post_id, liked=True, like_count=like_count)
    except (HTTPException, SocialAPIError):
        raise
    except Exception as e:
        logger.error(f"Error liking post: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to like post"
        )

@router.delete("/posts/{post_id}/like", response_model=LikeStatus)
async def unlike_post(
    post_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Remove a like from a post"""
    try:
        like_count = await LikeService(db).unlike(post_id, current_user.id)
        return LikeStatus(post_id=post_id, liked=False, like_count=like_count)
    except (HTTPException, SocialAPIError):
        raise
    except Exception as e:
        logger.error(f"Error unliking post: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to unlike post"
        )

@router.get("/users/{user_id}/liked-posts", response_model=PostListResponse)
async def get_user_liked_posts(
    user_id: int,
    skip: int = Query(0, ge=0),
    limit: int = Query(10, ge=1, le=100),
    current_user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    """Posts a user has liked; flagged for the viewer's own likes"""
    like_service = LikeService(db)
    posts, total = await like_service.get_user_liked_posts(user_id, skip, limit)

    items = [PostWithUser.model_validate(post) for post in posts]
    if current_user:
        liked = await like_service.liked_post_ids(current_user.id, [p.id for p in items])
        for item in items:
            item.liked = item.id in liked

    return PostListResponse(posts=items, total=total, skip=skip, limit=limit)
