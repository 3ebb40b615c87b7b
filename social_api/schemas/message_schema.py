from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime
from social_api.schemas.user_schema import UserInfo

class MessageCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=2000)

class MessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    conversation_id: int
    sender_id: int
    content: str
    created_at: datetime
    sender: Optional[UserInfo] = None

class ConversationResponse(BaseModel):
    id: int
    recipient: UserInfo
    last_message_at: Optional[datetime] = None
    created_at: datetime
