from sqlalchemy import Column, Text, Integer, ForeignKey, Index
from sqlalchemy.orm import relationship
from social_api.db.base import BaseModel

class Message(BaseModel):
    __tablename__ = "messages"

    conversation_id = Column(Integer, ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False)
    sender_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)

    sender = relationship("User", lazy="raise")

    __table_args__ = (
        Index('ix_messages_conversation_id', 'conversation_id'),
        Index('ix_messages_created_at', 'created_at'),
    )
