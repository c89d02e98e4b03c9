"""
Schemas Package
"""
from querypilot.schemas.user import AuthRequest, AuthResponse, UserResponse, TokenPayload
from querypilot.schemas.connection import ConnectionCreate, ConnectionResponse, ConnectionSummary
from querypilot.schemas.permission import PermissionRequest, PermissionResponse
from querypilot.schemas.query import QueryRequest, QueryResponse, SafetyVerdict, ErrorResponse

__all__ = [
    # User
    "AuthRequest", "AuthResponse", "UserResponse", "TokenPayload",
    # Connections
    "ConnectionCreate", "ConnectionResponse", "ConnectionSummary",
    # Permissions
    "PermissionRequest", "PermissionResponse",
    # Query
    "QueryRequest", "QueryResponse", "SafetyVerdict", "ErrorResponse",
]
