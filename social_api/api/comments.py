from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
import logging

from social_api.exceptions import SocialAPIError
from social_api.schemas.comment_schema import (
    CommentCreate,
    CommentUpdate,
    CommentResponse,
    CommentListResponse,
    CommentTreeResponse,
    DeletedComment
)
from social_api.services.comment_service import CommentService
from social_api.services.rate_gate import RateGate
from social_api.services.redis_service import RedisService, get_redis_service
from social_api.services.auth_service import get_current_user
from social_api.db.session import get_db
from social_api.models.user import User
from social_api.utils.rate_limit import get_rate_gate

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/posts/{post_id}/comments", response_model=CommentResponse)
async def create_comment(
    post_id: int,
    comment_data: CommentCreate,
    current_user: User = Depends(get_current_user),
    rate_gate: RateGate = Depends(get_rate_gate),
    cache: Optional[RedisService] = Depends(get_redis_service),
    db: AsyncSession = Depends(get_db)
):
    """Create a new comment on a post, optionally as a reply"""
    try:
        comment_service = CommentService(db, rate_gate, cache)
        comment = await comment_service.create_comment(
            post_id=post_id,
            user_id=current_user.id,
            comment_data=comment_data
        )
        return comment
    except (HTTPException, SocialAPIError):
        raise
    except Exception as e:
        logger.error(f"Error creating comment: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create comment"
        )

@router.get("/posts/{post_id}/comments", response_model=List[CommentTreeResponse])
async def get_comment_tree(
    post_id: int,
    cache: Optional[RedisService] = Depends(get_redis_service),
    db: AsyncSession = Depends(get_db)
):
    """Comments of a post as a tree of replies"""
    return await CommentService(db, cache=cache).get_comment_tree(post_id)

@router.patch("/comments/{comment_id}", response_model=CommentResponse)
async def update_comment(
    comment_id: int,
    comment_update: CommentUpdate,
    current_user: User = Depends(get_current_user),
    cache: Optional[RedisService] = Depends(get_redis_service),
    db: AsyncSession = Depends(get_db)
):
    """Edit a comment"""
    try:
        comment_service = CommentService(db, cache=cache)
        return await comment_service.update_comment(
            comment_id,
            current_user.id,
            comment_update,
            is_admin=current_user.is_admin
        )
    except (HTTPException, SocialAPIError):
        raise
    except Exception as e:
        logger.error(f"Error updating comment: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update comment"
        )

@router.delete("/comments/{comment_id}", response_model=DeletedComment)
async def delete_comment(
    comment_id: int,
    current_user: User = Depends(get_current_user),
    cache: Optional[RedisService] = Depends(get_redis_service),
    db: AsyncSession = Depends(get_db)
):
    """Delete a comment and all of its replies"""
    try:
        comment_service = CommentService(db, cache=cache)
        return await comment_service.delete_comment(
            comment_id,
            current_user.id,
            is_admin=current_user.is_admin
        )
    except (HTTPException, SocialAPIError):
        raise
    except Exception as e:
        logger.error(f"Error deleting comment: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete comment"
        )

@router.get("/users/{user_id}/comments", response_model=CommentListResponse)
async def get_user_comments(
    user_id: int,
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db)
):
    """Comments written by a user"""
    comments, total = await CommentService(db).get_user_comments(user_id, skip, limit)
    return CommentListResponse(
        comments=[CommentResponse.model_validate(c) for c in comments],
        total=total,
        skip=skip,
        limit=limit,
        user_id=user_id
    )
