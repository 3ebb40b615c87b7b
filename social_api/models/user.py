from sqlalchemy import Column, String, Boolean, Index
from social_api.db.base import BaseModel

class User(BaseModel):
    __tablename__ = "users"

    username = Column(String(30), unique=True, index=True, nullable=False)
    email = Column(String(100), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    biography = Column(String(250), default="", nullable=False)
    is_admin = Column(Boolean, default=False, nullable=False)
    role = Column(String(20), default="User", nullable=False)  # User, Moderator, Promoter

    __table_args__ = (
        Index('ix_users_created_at', 'created_at'),
    )
