"""
API Package
"""
from querypilot.api import auth, admin_connections, admin_permissions, admin_users, query

__all__ = ["auth", "admin_connections", "admin_permissions", "admin_users", "query"]
