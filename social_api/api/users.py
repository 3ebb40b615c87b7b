from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import logging

from social_api.exceptions import SocialAPIError, NotFound
from social_api.schemas.user_schema import UserInDB, UserPublic, UserUpdate
from social_api.services.user_service import UserService
from social_api.services.auth_service import get_current_user
from social_api.db.session import get_db
from social_api.models.user import User

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/me", response_model=UserInDB)
async def read_current_user(current_user: User = Depends(get_current_user)):
    """Profile of the signed-in user"""
    return current_user

@router.patch("/me", response_model=UserInDB)
async def update_current_user(
    user_update: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Update the signed-in user's biography"""
    try:
        return await UserService(db).update_user(current_user.id, user_update)
    except (HTTPException, SocialAPIError):
        raise
    except Exception as e:
        logger.error(f"Update user error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update user"
        )

@router.get("/random", response_model=List[UserPublic])
async def random_users(
    size: int = Query(5, ge=1, le=50),
    db: AsyncSession = Depends(get_db)
):
    """A random sample of users"""
    return await UserService(db).get_random_users(size)

@router.get("/{username}", response_model=UserPublic)
async def get_user(
    username: str,
    db: AsyncSession = Depends(get_db)
):
    """Public profile by username"""
    user = await UserService(db).get_user_by_username(username)
    if user is None:
        raise NotFound("User does not exist")
    return user
