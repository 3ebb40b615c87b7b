from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import logging

from social_api.exceptions import SocialAPIError
from social_api.schemas.message_schema import MessageCreate, MessageResponse, ConversationResponse
from social_api.services.message_service import MessageService
from social_api.services.auth_service import get_current_user
from social_api.db.session import get_db
from social_api.models.user import User

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/", response_model=List[ConversationResponse])
async def get_conversations(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Conversations of the signed-in user"""
    return await MessageService(db).get_conversations(current_user.id)

@router.post("/{user_id}", response_model=MessageResponse)
async def send_message(
    user_id: int,
    message_data: MessageCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Send a direct message to a user"""
    try:
        return await MessageService(db).send_message(current_user.id, user_id, message_data.content)
    except (HTTPException, SocialAPIError):
        raise
    except Exception as e:
        logger.error(f"Error sending message: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to send message"
        )

@router.get("/conversations/{conversation_id}", response_model=List[MessageResponse])
async def get_messages(
    conversation_id: int,
    limit: int = Query(12, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Latest messages of a conversation"""
    return await MessageService(db).get_messages(conversation_id, current_user.id, limit)
