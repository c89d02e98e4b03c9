"""
Session Store - the client's credential and identity snapshot
"""
from dataclasses import dataclass
from typing import Optional
import json
import os
import tempfile
import structlog

logger = structlog.get_logger()

TOKEN_KEY = "token"
USER_KEY = "user"


@dataclass(frozen=True)
class UserSnapshot:
    username: str
    role: str


@dataclass(frozen=True)
class Session:
    """
    Immutable session value. Replaced or cleared as a whole.

    ``is_authenticated`` and ``is_admin`` are derived on every read so they
    cannot drift from the token and user they describe.
    """
    token: Optional[str] = None
    user: Optional[UserSnapshot] = None

    def __post_init__(self):
        if (self.token is None) != (self.user is None):
            raise ValueError("token and user must be set together")

    @classmethod
    def anonymous(cls) -> "Session":
        return cls()

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    @property
    def is_admin(self) -> bool:
        return self.user is not None and self.user.role == "ADMIN"


class SessionStore:
    """
    Holds the current Session and mirrors it to a JSON file.

    The file carries exactly two keys, ``token`` and ``user``. Both are
    written together through a temporary file and ``os.replace``, and the
    file is removed as a whole on clear.
    """

    def __init__(self, path: str):
        self.path = path
        self._session = self._load()

    @property
    def current(self) -> Session:
        return self._session

    def replace(self, session: Session) -> None:
        """Swap in a new session value and persist it."""
        if not session.is_authenticated:
            self.clear()
            return

        self._write({
            TOKEN_KEY: session.token,
            USER_KEY: {"username": session.user.username, "role": session.user.role},
        })
        self._session = session
        logger.info("session_replaced", username=session.user.username, role=session.user.role)

    def clear(self) -> None:
        """Drop the session and its persisted copy."""
        if os.path.exists(self.path):
            os.remove(self.path)
        self._session = Session.anonymous()
        logger.info("session_cleared")

    def _load(self) -> Session:
        if not os.path.exists(self.path):
            return Session.anonymous()

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            token = data[TOKEN_KEY]
            user = data[USER_KEY]
            if not isinstance(token, str) or not token:
                raise ValueError("token missing")
            return Session(token=token, user=UserSnapshot(username=user["username"], role=user["role"]))
        except (OSError, ValueError, KeyError, TypeError) as e:
            # A partial pair is treated as no session at all
            logger.warning("session_file_unreadable", path=self.path, error=str(e))
            return Session.anonymous()

    def _write(self, data: dict) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".session-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f)
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
