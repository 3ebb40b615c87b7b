from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from social_api.exceptions import SocialAPIError
from social_api.schemas.follow_schema import FollowResponse, FollowListResponse
from social_api.schemas.user_schema import UserPublic
from social_api.services.follow_service import FollowService
from social_api.services.auth_service import get_current_user
from social_api.db.session import get_db
from social_api.models.user import User

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/users/{user_id}/follow", response_model=FollowResponse)
async def follow_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Follow a user"""
    try:
        return await FollowService(db).follow(current_user.id, user_id)
    except (HTTPException, SocialAPIError):
        raise
    except Exception as e:
        logger.error(f"Error following user: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to follow user"
        )

@router.delete("/users/{user_id}/follow")
async def unfollow_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Unfollow a user"""
    try:
        await FollowService(db).unfollow(current_user.id, user_id)
        return {"success": True}
    except (HTTPException, SocialAPIError):
        raise
    except Exception as e:
        logger.error(f"Error unfollowing user: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to unfollow user"
        )

@router.get("/users/{user_id}/followers", response_model=FollowListResponse)
async def get_followers(
    user_id: int,
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db)
):
    """Users following the given user"""
    users, total = await FollowService(db).get_followers(user_id, skip, limit)
    return FollowListResponse(
        users=[UserPublic.model_validate(user) for user in users],
        total=total,
        skip=skip,
        limit=limit,
        user_id=user_id
    )

@router.get("/users/{user_id}/following", response_model=FollowListResponse)
async def get_following(
    user_id: int,
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db)
):
    """Users the given user follows"""
    users, total = await FollowService(db).get_following(user_id, skip, limit)
    return FollowListResponse(
        users=[UserPublic.model_validate(user) for user in users],
        total=total,
        skip=skip,
        limit=limit,
        user_id=user_id
    )
