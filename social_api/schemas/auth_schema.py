from pydantic import BaseModel
from typing import Optional
from enum import Enum

class TokenType(str, Enum):
    ACCESS = "access"

class AuthResponse(BaseModel):
    """Returned by register and login"""
    access_token: str
    token_type: str = "bearer"
    user_id: int
    username: str
    is_admin: bool = False

class TokenData(BaseModel):
    user_id: int
    username: Optional[str] = None
    is_admin: bool = False
