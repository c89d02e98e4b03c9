"""
Models Package - Export all SQLAlchemy models
"""
from querypilot.models.user import User, UserRole
from querypilot.models.connection import DatabaseConnection, DatabaseType, DIALECT_NAMES
from querypilot.models.connection_permission import ConnectionPermission
from querypilot.models.audit import AuditLog, AuditActionType

__all__ = [
    # User & Auth
    "User",
    "UserRole",

    # Connections
    "DatabaseConnection",
    "DatabaseType",
    "DIALECT_NAMES",
    "ConnectionPermission",

    # Audit
    "AuditLog",
    "AuditActionType",
]
