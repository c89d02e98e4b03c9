"""
Connection Registry Schemas
"""
from pydantic import BaseModel, Field, model_validator
from pydantic.alias_generators import to_camel
from typing import Optional
from datetime import datetime

from querypilot.models.connection import DatabaseType

# Kinds that authenticate with a server account
CREDENTIALED_TYPES = {DatabaseType.MYSQL, DatabaseType.POSTGRESQL}


class ConnectionCreate(BaseModel):
    """Schema for registering a connection."""
    name: str = Field(..., min_length=1, max_length=255)
    type: DatabaseType
    url: str = Field(..., min_length=1, max_length=1000)
    username: Optional[str] = None
    password: Optional[str] = None

    @model_validator(mode="after")
    def check_credentials(self):
        if self.type in CREDENTIALED_TYPES:
            if not self.username or not self.username.strip():
                raise ValueError("Username is required")
            if not self.password:
                raise ValueError("Password is required")
        return self


class ConnectionResponse(BaseModel):
    """Admin view of a connection (credential never included)."""
    id: int
    name: str
    db_type: DatabaseType = Field(..., alias="type")
    url: str
    username: Optional[str] = None
    schema_ddl: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True


class ConnectionSummary(BaseModel):
    """What a non-admin caller may see of a connection."""
    id: int
    name: str
    db_type: DatabaseType = Field(..., alias="type")
    url: str
    username: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True
