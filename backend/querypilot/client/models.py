"""
Client-side views of server responses
"""
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from typing import Any, Dict, List, Optional
from datetime import datetime


class _ApiModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        frozen = True


class AuthResult(_ApiModel):
    token: str
    username: str
    role: str


class UserInfo(_ApiModel):
    id: int
    username: str
    role: str
    created_at: Optional[datetime] = None


class ConnectionInfo(_ApiModel):
    """A connection as the caller is allowed to see it. Never carries a password."""
    id: int
    name: str
    db_type: str = Field(..., alias="type")
    url: Optional[str] = None
    username: Optional[str] = None
    schema_ddl: Optional[str] = None
    created_at: Optional[datetime] = None


class PermissionInfo(_ApiModel):
    id: int
    user_id: int
    connection_id: int
    created_at: Optional[datetime] = None


class AskResult(_ApiModel):
    """Raw reply of /query/ask. The safety verdict is kept as sent."""
    sql: str
    result: List[Dict[str, Any]] = []
    safety_check: str
    message: Optional[str] = None
