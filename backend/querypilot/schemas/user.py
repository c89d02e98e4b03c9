"""
User and Authentication Schemas
"""
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from typing import Optional
from datetime import datetime

from querypilot.models.user import UserRole


class AuthRequest(BaseModel):
    """Login and registration share the same body."""
    username: str = Field(..., min_length=3, max_length=100)
    password: str = Field(..., min_length=6, max_length=128)


class AuthResponse(BaseModel):
    token: str
    username: str
    role: UserRole


class UserResponse(BaseModel):
    id: int
    username: str
    role: UserRole
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True


class TokenPayload(BaseModel):
    sub: int
    username: str
    role: UserRole
    exp: datetime
    type: str = "access"
