from pydantic import BaseModel, EmailStr, ConfigDict, Field
from typing import Optional, List
from datetime import datetime
from enum import Enum

class UserRole(str, Enum):
    USER = "User"
    MODERATOR = "Moderator"
    PROMOTER = "Promoter"

class UserCreate(BaseModel):
    username: str = Field(
        ...,
        min_length=6,
        max_length=30,
        pattern=r'^\S+$',
        description="Username (6-30 characters, no spaces)"
    )
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=100)
    role: UserRole = UserRole.USER

class UserUpdate(BaseModel):
    biography: Optional[str] = Field(None, max_length=250)

class UserInfo(BaseModel):
    """Author block embedded in posts, comments and messages"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str

class UserPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    biography: str = ""
    role: UserRole = UserRole.USER
    is_admin: bool = False
    created_at: datetime

class UserInDB(UserPublic):
    email: EmailStr
    updated_at: datetime

class UserListResponse(BaseModel):
    """User list response with pagination"""
    users: List[UserPublic]
    total: int
    skip: int
    limit: int
