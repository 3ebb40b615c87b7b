from sqlalchemy import Column, Integer, ForeignKey, DateTime, UniqueConstraint, CheckConstraint, Index
from sqlalchemy.orm import relationship
from social_api.db.base import BaseModel

class Conversation(BaseModel):
    __tablename__ = "conversations"

    # Participants are stored ordered (user_a_id < user_b_id) so a pair has one row
    user_a_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    user_b_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    last_message_at = Column(DateTime, nullable=True)

    user_a = relationship("User", foreign_keys=[user_a_id], lazy="raise")
    user_b = relationship("User", foreign_keys=[user_b_id], lazy="raise")

    __table_args__ = (
        UniqueConstraint('user_a_id', 'user_b_id', name='unique_conversation_pair'),
        CheckConstraint('user_a_id < user_b_id', name='check_conversation_order'),
        Index('ix_conversations_last_message_at', 'last_message_at'),
    )

    def other_participant_id(self, user_id: int) -> int:
        return self.user_b_id if self.user_a_id == user_id else self.user_a_id

    def has_participant(self, user_id: int) -> bool:
        return user_id in (self.user_a_id, self.user_b_id)
