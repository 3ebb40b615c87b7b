from sqlalchemy import Column, Text, Integer, ForeignKey, Boolean, Index
from sqlalchemy.orm import relationship
from social_api.db.base import BaseModel

class Comment(BaseModel):
    __tablename__ = "comments"

    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    parent_id = Column(Integer, ForeignKey("comments.id", ondelete="CASCADE"), nullable=True)
    edited = Column(Boolean, default=False, nullable=False)

    user = relationship("User", lazy="raise")

    __table_args__ = (
        Index('ix_comments_post_id', 'post_id'),
        Index('ix_comments_user_id', 'user_id'),
        Index('ix_comments_parent_id', 'parent_id'),
        Index('ix_comments_created_at', 'created_at'),
    )
