from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
import logging

from social_api.exceptions import SocialAPIError
from social_api.schemas.post_schema import (
    PostCreate,
    PostUpdate,
    PostSort,
    PostResponse,
    PostWithUser,
    PostListResponse
)
from social_api.services.post_service import PostService
from social_api.services.like_service import LikeService
from social_api.services.rate_gate import RateGate
from social_api.services.redis_service import RedisService, get_redis_service
from social_api.services.auth_service import get_current_user, get_optional_user
from social_api.db.session import get_db
from social_api.models.user import User
from social_api.utils.rate_limit import get_rate_gate

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/", response_model=PostWithUser)
async def create_post(
    post_data: PostCreate,
    current_user: User = Depends(get_current_user),
    rate_gate: RateGate = Depends(get_rate_gate),
    db: AsyncSession = Depends(get_db)
):
    """Create a new post"""
    try:
        post_service = PostService(db, rate_gate)
        return await post_service.create_post(current_user.id, post_data)
    except (HTTPException, SocialAPIError):
        raise
    except Exception as e:
        logger.error(f"Create post error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create post"
        )

@router.get("/", response_model=PostListResponse)
async def get_posts(
    search: Optional[str] = Query(None, max_length=80),
    author: Optional[str] = Query(None),
    sort_by: PostSort = Query(PostSort.NEWEST),
    skip: int = Query(0, ge=0),
    limit: int = Query(10, ge=1, le=100),
    current_user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    """List posts, optionally filtered by title and author"""
    posts, total = await PostService(db).list_posts(
        search=search,
        author=author,
        sort_by=sort_by,
        skip=skip,
        limit=limit
    )

    items = [PostWithUser.model_validate(post) for post in posts]
    if current_user:
        liked = await LikeService(db).liked_post_ids(current_user.id, [p.id for p in items])
        for item in items:
            item.liked = item.id in liked

    return PostListResponse(posts=items, total=total, skip=skip, limit=limit)

@router.get("/{post_id}", response_model=PostWithUser)
async def get_post(
    post_id: int,
    current_user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    """Get a post by ID"""
    post = await PostService(db).require_post(post_id)

    response = PostWithUser.model_validate(post)
    if current_user:
        response.liked = await LikeService(db).has_liked(post_id, current_user.id)
    return response

@router.patch("/{post_id}", response_model=PostWithUser)
async def update_post(
    post_id: int,
    post_update: PostUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Edit a post"""
    try:
        post_service = PostService(db)
        return await post_service.update_post(
            post_id,
            current_user.id,
            post_update,
            is_admin=current_user.is_admin
        )
    except (HTTPException, SocialAPIError):
        raise
    except Exception as e:
        logger.error(f"Update post error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update post"
        )

@router.delete("/{post_id}", response_model=PostResponse)
async def delete_post(
    post_id: int,
    current_user: User = Depends(get_current_user),
    cache: Optional[RedisService] = Depends(get_redis_service),
    db: AsyncSession = Depends(get_db)
):
    """Delete a post with its comments and likes"""
    try:
        post_service = PostService(db, cache=cache)
        return await post_service.delete_post(post_id, current_user.id, is_admin=current_user.is_admin)
    except (HTTPException, SocialAPIError):
        raise
    except Exception as e:
        logger.error(f"Delete post error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete post"
        )
