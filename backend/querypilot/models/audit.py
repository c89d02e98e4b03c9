"""
Audit Log Model
"""
from sqlalchemy import Column, Integer, String, DateTime, JSON, Text
from sqlalchemy.sql import func
import enum

from querypilot.database import Base


class AuditActionType(str, enum.Enum):
    """Types of auditable actions"""
    # Authentication
    USER_LOGIN = "login"
    USER_LOGIN_FAILED = "login_failed"
    USER_REGISTER = "register"

    # Connection Management
    CONNECTION_CREATE = "connection_create"
    CONNECTION_DELETE = "connection_delete"
    SCHEMA_REFRESH = "schema_refresh"

    # Permission Management
    PERMISSION_GRANT = "permission_grant"
    PERMISSION_REVOKE = "permission_revoke"

    # Query Operations
    QUERY_ASK = "query_ask"


class AuditLog(Base):
    """Append-only record of security-relevant operations."""
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=True, index=True)  # kept after the user disappears
    username = Column(String(100), nullable=True)
    action = Column(String(50), nullable=False, index=True)
    resource_type = Column(String(50), nullable=True)
    resource_id = Column(String(100), nullable=True)
    status = Column(String(20), nullable=False, default="success")
    details = Column(JSON, nullable=True)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
