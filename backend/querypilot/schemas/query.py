"""
Query Exchange Schemas
"""
from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional, List, Any, Dict
from datetime import datetime
from enum import Enum


class SafetyVerdict(str, Enum):
    PASSED = "PASSED"
    BLOCKED = "BLOCKED"


class QueryRequest(BaseModel):
    """Natural-language question against one connection."""
    connection_id: int
    question: str = Field(..., min_length=1, max_length=4000)

    @field_validator("question")
    @classmethod
    def question_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Question is required")
        return value

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class QueryResponse(BaseModel):
    """Generated SQL, its rows and the safety verdict, side by side."""
    sql: str
    result: List[Dict[str, Any]] = []
    safety_check: SafetyVerdict
    message: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class ErrorResponse(BaseModel):
    error: bool = True
    message: str
    code: Optional[str] = None
    timestamp: datetime
