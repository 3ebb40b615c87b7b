from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_
import logging

from social_api.config import settings
from social_api.exceptions import Conflict, AuthenticationFailed
from social_api.schemas.user_schema import UserCreate, UserRole
from social_api.schemas.auth_schema import TokenData, TokenType
from social_api.models.user import User
from social_api.db.session import get_db

logger = logging.getLogger(__name__)

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)

class AuthService:
    def __init__(self, db: AsyncSession):
        self.db = db

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a password against its hash"""
        return pwd_context.verify(plain_password, hashed_password)

    def get_password_hash(self, password: str) -> str:
        """Hash a password"""
        return pwd_context.hash(password)

    async def create_user(self, user_data: UserCreate) -> User:
        """Create a new user; moderators are administrators"""
        email = user_data.email.lower()

        stmt = select(User).where(
            or_(User.email == email, User.username == user_data.username)
        )
        existing = (await self.db.execute(stmt)).scalar_one_or_none()
        if existing:
            raise Conflict("Cannot have duplicate email and username")

        user = User(
            username=user_data.username,
            email=email,
            hashed_password=self.get_password_hash(user_data.password),
            role=user_data.role.value,
            is_admin=user_data.role == UserRole.MODERATOR,
        )

        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)

        logger.info(f"Registered user {user.id} ({user.username})")
        return user

    async def authenticate_user(self, username_or_email: str, password: str) -> User:
        """Authenticate a user by username or email"""
        stmt = select(User).where(
            (User.username == username_or_email) | (User.email == username_or_email.lower())
        )
        result = await self.db.execute(stmt)
        user = result.scalar_one_or_none()

        if not user or not self.verify_password(password, user.hashed_password):
            raise AuthenticationFailed()

        return user

    def create_access_token(self, user: User, expires_delta: Optional[timedelta] = None) -> str:
        """Create a JWT access token"""
        if expires_delta:
            expire = datetime.utcnow() + expires_delta
        else:
            expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

        to_encode = {
            "sub": user.username,
            "user_id": user.id,
            "is_admin": bool(user.is_admin),
            "exp": expire,
            "type": TokenType.ACCESS.value,
        }
        return jwt.encode(to_encode, settings.secret_key, algorithm=settings.ALGORITHM)

    def verify_token(self, token: str) -> Optional[TokenData]:
        """Verify a JWT token"""
        try:
            payload = jwt.decode(token, settings.secret_key, algorithms=[settings.ALGORITHM])
        except JWTError:
            return None

        if payload.get("type") != TokenType.ACCESS.value:
            return None

        user_id = payload.get("user_id")
        if user_id is None:
            return None

        return TokenData(
            user_id=user_id,
            username=payload.get("sub"),
            is_admin=payload.get("is_admin", False),
        )

async def _resolve_user(token: Optional[str], db: AsyncSession) -> Optional[User]:
    if not token:
        return None

    token_data = AuthService(db).verify_token(token)
    if token_data is None:
        return None

    return await db.get(User, token_data.user_id)

async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db)
) -> User:
    """Dependency to get current authenticated user"""
    user = await _resolve_user(token, db)

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user

async def get_optional_user(
    token: Optional[str] = Depends(optional_oauth2_scheme),
    db: AsyncSession = Depends(get_db)
) -> Optional[User]:
    """Dependency for endpoints that only personalise their output when signed in"""
    return await _resolve_user(token, db)
