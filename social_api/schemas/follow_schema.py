from pydantic import BaseModel, ConfigDict
from typing import List
from datetime import datetime
from social_api.schemas.user_schema import UserPublic

class FollowResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    follower_id: int
    following_id: int
    created_at: datetime

class FollowListResponse(BaseModel):
    users: List[UserPublic]  # Can be followers or following
    total: int
    skip: int
    limit: int
    user_id: int
