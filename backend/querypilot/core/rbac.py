"""
Role-Based Access Control (RBAC) dependencies
"""
from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
import structlog

from querypilot.database import get_db
from querypilot.models import User
from querypilot.core.auth import verify_token, get_user_by_id
from querypilot.core.exceptions import AuthenticationError, AccessDeniedError

logger = structlog.get_logger()

# Missing credentials must surface as 401, not the 403 HTTPBearer raises on its own
security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """Get current authenticated user from JWT token."""
    if credentials is None:
        raise AuthenticationError("Not authenticated")

    payload = verify_token(credentials.credentials)
    if not payload:
        raise AuthenticationError("Invalid or expired token")

    user = get_user_by_id(db, payload.sub)
    if not user:
        raise AuthenticationError("User not found")

    return user


async def require_admin(
    current_user: User = Depends(get_current_user)
) -> User:
    """Ensure current user holds the ADMIN role."""
    if not current_user.is_admin:
        logger.warning("admin_required", user_id=current_user.id, username=current_user.username)
        raise AccessDeniedError("Admin role required")
    return current_user
