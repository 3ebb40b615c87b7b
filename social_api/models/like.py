from sqlalchemy import Column, Integer, ForeignKey, UniqueConstraint, Index
from social_api.db.base import BaseModel

class Like(BaseModel):
    __tablename__ = "likes"

    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    __table_args__ = (
        # At most one like per (post, user); the database rejects the racing duplicate
        UniqueConstraint('post_id', 'user_id', name='uq_likes_post_user'),
        Index('ix_likes_post_id', 'post_id'),
        Index('ix_likes_user_id', 'user_id'),
        Index('ix_likes_created_at', 'created_at'),
    )
