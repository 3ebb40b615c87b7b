from datetime import datetime
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_, desc
from sqlalchemy.orm import selectinload
import logging

from social_api.exceptions import NotFound, PermissionDenied, InvalidOperation
from social_api.models.conversation import Conversation
from social_api.models.message import Message
from social_api.schemas.message_schema import ConversationResponse
from social_api.schemas.user_schema import UserInfo
from social_api.services.user_service import UserService

logger = logging.getLogger(__name__)

class MessageService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def send_message(self, sender_id: int, recipient_id: int, content: str) -> Message:
        """Send a message, opening the conversation on first contact"""
        if sender_id == recipient_id:
            raise InvalidOperation("Cannot send a message to yourself")

        user_service = UserService(self.db)
        await user_service.require_user(recipient_id)

        conversation = await self._get_conversation_between(sender_id, recipient_id)
        if conversation is None:
            user_a_id, user_b_id = sorted((sender_id, recipient_id))
            conversation = Conversation(user_a_id=user_a_id, user_b_id=user_b_id)
            self.db.add(conversation)
            await self.db.flush()
            logger.info(f"Opened conversation {conversation.id} between {user_a_id} and {user_b_id}")

        conversation.last_message_at = datetime.utcnow()
        message = Message(
            conversation_id=conversation.id,
            sender_id=sender_id,
            content=content,
        )
        self.db.add(message)
        await self.db.commit()

        logger.info(f"User {sender_id} sent message {message.id} in conversation {conversation.id}")
        return await self._load_message(message.id)

    async def get_conversations(self, user_id: int) -> List[ConversationResponse]:
        """Conversations of a user, most recently active first"""
        stmt = select(Conversation).options(
            selectinload(Conversation.user_a),
            selectinload(Conversation.user_b),
        ).where(
            or_(Conversation.user_a_id == user_id, Conversation.user_b_id == user_id)
        ).order_by(
            desc(Conversation.last_message_at), desc(Conversation.id)
        )
        conversations = (await self.db.execute(stmt)).scalars()

        responses = []
        for conversation in conversations:
            recipient = conversation.user_b if conversation.user_a_id == user_id else conversation.user_a
            responses.append(ConversationResponse(
                id=conversation.id,
                recipient=UserInfo.model_validate(recipient),
                last_message_at=conversation.last_message_at,
                created_at=conversation.created_at,
            ))
        return responses

    async def get_messages(self, conversation_id: int, user_id: int, limit: int = 12) -> List[Message]:
        """Latest messages of a conversation, newest first"""
        conversation = await self.db.get(Conversation, conversation_id)
        if conversation is None:
            raise NotFound("Chat does not exist")

        if not conversation.has_participant(user_id):
            raise PermissionDenied("Not a participant of this chat")

        stmt = select(Message).options(
            selectinload(Message.sender)
        ).where(
            Message.conversation_id == conversation_id
        ).order_by(
            desc(Message.created_at), desc(Message.id)
        ).limit(limit)
        return list((await self.db.execute(stmt)).scalars())

    async def _get_conversation_between(self, first_id: int, second_id: int) -> Optional[Conversation]:
        user_a_id, user_b_id = sorted((first_id, second_id))
        stmt = select(Conversation).where(
            Conversation.user_a_id == user_a_id,
            Conversation.user_b_id == user_b_id,
        )
        return (await self.db.execute(stmt)).scalar_one_or_none()

    async def _load_message(self, message_id: int) -> Message:
        stmt = select(Message).options(
            selectinload(Message.sender)
        ).where(
            Message.id == message_id
        ).execution_options(populate_existing=True)
        return (await self.db.execute(stmt)).scalar_one()
