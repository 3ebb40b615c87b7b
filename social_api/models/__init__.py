"""
Models package for Social API
"""
from social_api.db.base import Base, BaseModel
from social_api.models.user import User
from social_api.models.post import Post
from social_api.models.comment import Comment
from social_api.models.like import Like
from social_api.models.follow import Follow
from social_api.models.conversation import Conversation
from social_api.models.message import Message

__all__ = [
    'Base',
    'BaseModel',
    'User',
    'Post',
    'Comment',
    'Like',
    'Follow',
    'Conversation',
    'Message',
]
