"""
Service-level errors, rendered by the exception handler in querypilot.main

Each error carries the HTTP status it maps to and a stable ``code`` that is
sent in the error body, so callers can tell failures that share a status
apart (bad input vs. a database that rejected the generated SQL).
"""
from fastapi import status


class QueryPilotError(Exception):
    """Base error carrying the HTTP status it maps to."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "INTERNAL_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthenticationError(QueryPilotError):
    """Caller identity is unknown: bad credentials, missing or expired token."""
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "AUTHENTICATION_FAILED"


class AccessDeniedError(QueryPilotError):
    """Caller is known but not permitted."""
    status_code = status.HTTP_403_FORBIDDEN
    code = "ACCESS_DENIED"


class NotFoundError(QueryPilotError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"


class ConflictError(QueryPilotError):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"


class InvalidRequestError(QueryPilotError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "INVALID_REQUEST"


class UnsupportedDatabaseError(InvalidRequestError):
    """The connection's database kind cannot be reached from this runtime."""
    code = "UNSUPPORTED_DATABASE"


class QueryExecutionError(InvalidRequestError):
    """The target database rejected or failed the generated SQL."""
    code = "QUERY_EXECUTION_FAILED"


class SqlSafetyError(InvalidRequestError):
    """Generated SQL is not a single read-only statement."""
    code = "SQL_SAFETY_VIOLATION"

    def __init__(self, message: str, blocked_type: str = None):
        super().__init__(message)
        self.blocked_type = blocked_type


class SqlGenerationError(QueryPilotError):
    """The language model could not produce usable SQL."""
    status_code = status.HTTP_502_BAD_GATEWAY
    code = "SQL_GENERATION_FAILED"
