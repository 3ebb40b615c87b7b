from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from social_api.exceptions import SocialAPIError
from social_api.schemas.user_schema import UserCreate
from social_api.schemas.auth_schema import AuthResponse
from social_api.services.auth_service import AuthService
from social_api.db.session import get_db
from social_api.models.user import User

logger = logging.getLogger(__name__)

router = APIRouter()

def _auth_response(auth_service: AuthService, user: User) -> AuthResponse:
    return AuthResponse(
        access_token=auth_service.create_access_token(user),
        user_id=user.id,
        username=user.username,
        is_admin=user.is_admin,
    )

@router.post("/register", response_model=AuthResponse)
async def register(
    user_data: UserCreate,
    db: AsyncSession = Depends(get_db)
):
    """Register a new user and sign them in"""
    try:
        auth_service = AuthService(db)
        user = await auth_service.create_user(user_data)
        return _auth_response(auth_service, user)
    except (HTTPException, SocialAPIError):
        raise
    except Exception as e:
        logger.error(f"Registration error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Registration failed"
        )

@router.post("/login", response_model=AuthResponse)
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db)
):
    """Login with username or email and return an access token"""
    try:
        auth_service = AuthService(db)
        user = await auth_service.authenticate_user(form_data.username, form_data.password)
        return _auth_response(auth_service, user)
    except (HTTPException, SocialAPIError):
        raise
    except Exception as e:
        logger.error(f"Login error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Login failed"
        )
