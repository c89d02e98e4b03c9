"""
Session expiry policy - reacts to authentication failures from any call
"""
from typing import Optional, Protocol
import structlog

from querypilot.client.errors import ApiError, AuthenticationError
from querypilot.client.session import SessionStore

logger = structlog.get_logger()


class Navigator(Protocol):
    """Whatever shows the user where they are. Only the path matters here."""

    current_path: str

    def redirect(self, path: str) -> None:
        ...


class SessionExpiryPolicy:
    """
    Clears an authenticated session when the server rejects its credential.

    The triggering call is never retried. A rejection that arrives while
    the session is already anonymous changes nothing.
    """

    def __init__(self, store: SessionStore, navigator: Optional[Navigator] = None, login_path: str = "/login"):
        self.store = store
        self.navigator = navigator
        self.login_path = login_path

    def handle(self, error: ApiError) -> bool:
        """Returns True when this call performed the forced clear."""
        if not isinstance(error, AuthenticationError):
            return False
        if not self.store.current.is_authenticated:
            return False

        username = self.store.current.user.username
        self.store.clear()
        logger.warning("session_expired", username=username)

        if self.navigator is not None and self.navigator.current_path != self.login_path:
            self.navigator.redirect(self.login_path)
        return True
