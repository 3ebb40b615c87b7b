from sqlalchemy import Column, String, Text, Integer, ForeignKey, Boolean, Index, CheckConstraint
from sqlalchemy.orm import relationship
from social_api.db.base import BaseModel

class Post(BaseModel):
    __tablename__ = "posts"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(80), nullable=False)
    content = Column(Text, nullable=False)
    edited = Column(Boolean, default=False, nullable=False)

    # Denormalized counts, always written back from an exact recount
    like_count = Column(Integer, default=0, nullable=False)
    comment_count = Column(Integer, default=0, nullable=False)

    user = relationship("User", lazy="raise")

    __table_args__ = (
        CheckConstraint('like_count >= 0', name='check_post_like_count'),
        CheckConstraint('comment_count >= 0', name='check_post_comment_count'),
        Index('ix_posts_user_id', 'user_id'),
        Index('ix_posts_created_at', 'created_at'),
        Index('ix_posts_like_count', 'like_count'),
    )
