"""
Client error taxonomy
"""
from typing import Optional


class ApiError(Exception):
    """Base error for every failed client operation."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AuthenticationError(ApiError):
    """Who you are is unknown: bad credentials or an expired token."""


class AuthorizationError(ApiError):
    """You are known but not permitted. Terminal for the request."""


class NotFoundError(AuthorizationError):
    """The server withheld or does not have the resource."""


class ValidationError(ApiError):
    """Malformed input, detected locally or reported by the server."""


class ExecutionError(ApiError):
    """Downstream failure: SQL generation, database, transport or a malformed reply."""


EXECUTION_CODES = frozenset({
    "QUERY_EXECUTION_FAILED",
    "UNSUPPORTED_DATABASE",
    "SQL_GENERATION_FAILED",
    "INTERNAL_ERROR",
})


def error_for_status(status_code: int, message: str, code: Optional[str] = None) -> ApiError:
    """
    Map an HTTP error onto the taxonomy.

    The body's ``code`` wins over the status: a 400 whose code names a
    database or generation failure is an ExecutionError, not bad input.
    """
    if code in EXECUTION_CODES:
        return ExecutionError(message, status_code)
    if status_code == 401:
        return AuthenticationError(message, status_code)
    if status_code == 403:
        return AuthorizationError(message, status_code)
    if status_code == 404:
        return NotFoundError(message, status_code)
    if status_code in (400, 409, 422):
        return ValidationError(message, status_code)
    return ExecutionError(message, status_code)
