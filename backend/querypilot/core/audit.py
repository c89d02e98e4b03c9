"""
Audit Logging Service
"""
from typing import Optional, Dict, Any, Union
from sqlalchemy.orm import Session
import structlog

from querypilot.models import AuditLog, AuditActionType, User

logger = structlog.get_logger()


class AuditLogger:
    """Centralized audit logging service."""

    def __init__(self, db: Session):
        self.db = db

    def log(
        self,
        action: Union[AuditActionType, str],
        user: Optional[User] = None,
        resource_type: Optional[str] = None,
        resource_id: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None,
        status: str = "success",
        error_message: Optional[str] = None,
        username: Optional[str] = None
    ) -> AuditLog:
        """Create an audit log entry."""
        action_name = action.value if isinstance(action, AuditActionType) else action
        audit = AuditLog(
            user_id=user.id if user else None,
            username=user.username if user else username,
            action=action_name,
            resource_type=resource_type,
            resource_id=str(resource_id) if resource_id is not None else None,
            status=status,
            details=details,
            error_message=error_message
        )

        self.db.add(audit)
        self.db.commit()

        # Also log to structured logger
        log_method = logger.info if status == "success" else logger.warning
        log_method(
            "audit_event",
            action=action_name,
            username=audit.username,
            resource_type=resource_type,
            resource_id=audit.resource_id,
            status=status
        )

        return audit

    def log_login(self, username: str, user: Optional[User] = None, success: bool = True):
        """Log login attempt."""
        return self.log(
            action=AuditActionType.USER_LOGIN if success else AuditActionType.USER_LOGIN_FAILED,
            user=user,
            username=username,
            resource_type="auth",
            status="success" if success else "failure"
        )
