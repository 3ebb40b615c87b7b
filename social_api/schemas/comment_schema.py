from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import datetime
from social_api.schemas.user_schema import UserInfo

class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=2000)
    parent_id: Optional[int] = None

class CommentUpdate(BaseModel):
    content: str = Field(..., min_length=1, max_length=2000)

class CommentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    post_id: int
    user_id: int
    content: str
    parent_id: Optional[int] = None
    edited: bool = False
    created_at: datetime
    updated_at: datetime
    user: Optional[UserInfo] = None

class CommentTreeResponse(CommentResponse):
    children: List['CommentTreeResponse'] = []

class CommentListResponse(BaseModel):
    comments: List[CommentResponse]
    total: int
    skip: int
    limit: int
    user_id: Optional[int] = None

class DeletedComment(BaseModel):
    """Result of a cascading delete"""
    comment: CommentResponse
    deleted_ids: List[int]
    comment_count: int

# For nested models
CommentTreeResponse.model_rebuild()
