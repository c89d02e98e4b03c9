"""
Permission Schemas
"""
from pydantic import BaseModel
from pydantic.alias_generators import to_camel
from typing import Optional
from datetime import datetime


class PermissionRequest(BaseModel):
    user_id: int
    connection_id: int

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class PermissionResponse(BaseModel):
    id: int
    user_id: int
    connection_id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True
