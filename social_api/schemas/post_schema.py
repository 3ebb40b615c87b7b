from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import datetime
from enum import Enum
from social_api.schemas.user_schema import UserInfo

class PostSort(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    LIKES = "likes"
    COMMENTS = "comments"

class PostCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=80)
    content: str = Field(..., min_length=1, max_length=8000)

class PostUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=80)
    content: Optional[str] = Field(None, min_length=1, max_length=8000)

class PostResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    title: str
    content: str
    like_count: int = 0
    comment_count: int = 0
    edited: bool = False
    created_at: datetime
    updated_at: datetime

class PostWithUser(PostResponse):
    user: Optional[UserInfo] = None
    liked: bool = False

class PostListResponse(BaseModel):
    posts: List[PostWithUser]
    total: int
    skip: int
    limit: int
