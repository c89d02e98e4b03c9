"""
Client Package - async access to the QueryPilot API
"""
from querypilot.client.api import QueryPilotClient
from querypilot.client.config import ClientSettings, get_client_settings
from querypilot.client.directory import ConnectionDirectory
from querypilot.client.errors import (
    ApiError, AuthenticationError, AuthorizationError,
    NotFoundError, ValidationError, ExecutionError
)
from querypilot.client.exchange import QueryExchange, ExchangeOutcome, ExchangeState
from querypilot.client.policy import SessionExpiryPolicy
from querypilot.client.session import Session, SessionStore, UserSnapshot
from querypilot.client.tabular import TabularResult, Cell, CellKind

__all__ = [
    "QueryPilotClient", "ClientSettings", "get_client_settings",
    "ConnectionDirectory",
    "ApiError", "AuthenticationError", "AuthorizationError",
    "NotFoundError", "ValidationError", "ExecutionError",
    "QueryExchange", "ExchangeOutcome", "ExchangeState",
    "SessionExpiryPolicy",
    "Session", "SessionStore", "UserSnapshot",
    "TabularResult", "Cell", "CellKind",
]
