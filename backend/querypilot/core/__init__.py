"""
Core Package
"""
from querypilot.core.auth import (
    create_access_token, verify_token, build_auth_response,
    authenticate_user, register_user, ensure_admin_user,
    get_user_by_id, get_user_by_username
)
from querypilot.core.rbac import get_current_user, require_admin
from querypilot.core.audit import AuditLogger

__all__ = [
    # Auth
    "create_access_token", "verify_token", "build_auth_response",
    "authenticate_user", "register_user", "ensure_admin_user",
    "get_user_by_id", "get_user_by_username",
    # RBAC
    "get_current_user", "require_admin",
    # Audit
    "AuditLogger",
]
