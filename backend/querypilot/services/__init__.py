"""
Services Package
"""
from querypilot.services.ai_service import (
    OllamaClient, SqlGenerator, get_sql_generator, extract_sql_from_response
)
from querypilot.services.sql_sanitizer import SqlSanitizer, sql_sanitizer
from querypilot.services.connection_service import ConnectionService, connection_service
from querypilot.services.permission_service import PermissionService, permission_service
from querypilot.services.query_service import QueryService, query_service

__all__ = [
    "OllamaClient", "SqlGenerator", "get_sql_generator", "extract_sql_from_response",
    "SqlSanitizer", "sql_sanitizer",
    "ConnectionService", "connection_service",
    "PermissionService", "permission_service",
    "QueryService", "query_service",
]
