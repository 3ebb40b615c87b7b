from sqlalchemy import Column, Integer, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from social_api.db.base import BaseModel

class Follow(BaseModel):
    __tablename__ = "follows"

    follower_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    following_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    follower = relationship("User", foreign_keys=[follower_id], lazy="raise")
    following = relationship("User", foreign_keys=[following_id], lazy="raise")

    # Ensure unique follow relationships
    __table_args__ = (
        UniqueConstraint('follower_id', 'following_id', name='unique_follow'),
        Index('ix_follows_follower_id', 'follower_id'),
        Index('ix_follows_following_id', 'following_id'),
        Index('ix_follows_created_at', 'created_at'),
    )
