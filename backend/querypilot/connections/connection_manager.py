"""
Connection Manager - Engines for registered target databases
"""
from typing import Dict, Optional
import threading
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, URL, make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError
from sqlalchemy.pool import QueuePool
import structlog

from querypilot.config import settings
from querypilot.core.crypto import decrypt_value
from querypilot.core.exceptions import InvalidRequestError, UnsupportedDatabaseError
from querypilot.models.connection import DatabaseConnection, DatabaseType

logger = structlog.get_logger()

DRIVER_NAMES = {
    DatabaseType.MYSQL: "mysql+pymysql",
    DatabaseType.POSTGRESQL: "postgresql+psycopg2",
    DatabaseType.SQLITE: "sqlite",
}


def build_engine_url(
    db_type: DatabaseType,
    url: str,
    username: Optional[str] = None,
    password: Optional[str] = None
) -> URL:
    """
    Turn a JDBC or SQLAlchemy style URL into a SQLAlchemy URL for the kind.

    ``jdbc:mysql://db:3306/shop?useSSL=false`` and ``mysql://db:3306/shop``
    both become ``mysql+pymysql://user:pass@db:3306/shop?useSSL=false``.
    """
    driver = DRIVER_NAMES.get(db_type)
    if driver is None:
        raise UnsupportedDatabaseError(
            f"{db_type.value} connections cannot be opened from the Python runtime"
        )

    raw = url.strip()
    if raw.lower().startswith("jdbc:"):
        raw = raw[len("jdbc:"):]

    try:
        parsed = make_url(raw)
    except ArgumentError as e:
        raise InvalidRequestError(f"Invalid database URL: {url}") from e

    parsed = parsed.set(drivername=driver)
    if db_type != DatabaseType.SQLITE:
        if username:
            parsed = parsed.set(username=username)
        if password:
            parsed = parsed.set(password=password)
    return parsed


class ConnectionManager:
    """
    Caches one SQLAlchemy engine per registered connection.

    Engines are created lazily on first use and disposed when the
    connection is deleted or its credentials change.
    """

    def __init__(self):
        self._engines: Dict[int, Engine] = {}
        self._lock = threading.Lock()

    def _create_engine(self, engine_url: URL, pool_size: int) -> Engine:
        if engine_url.get_backend_name() == "sqlite":
            return create_engine(engine_url, connect_args={"timeout": settings.TARGET_CONNECT_TIMEOUT})

        return create_engine(
            engine_url,
            poolclass=QueuePool,
            pool_size=pool_size,
            max_overflow=pool_size * 2,
            pool_pre_ping=True,
            connect_args={"connect_timeout": settings.TARGET_CONNECT_TIMEOUT}
        )

    def get_engine(self, connection: DatabaseConnection) -> Engine:
        """Get or create the cached engine for a stored connection."""
        with self._lock:
            engine = self._engines.get(connection.id)
            if engine is not None:
                return engine

            engine_url = build_engine_url(
                connection.database_type,
                connection.url,
                connection.username,
                decrypt_value(connection.encrypted_password)
            )
            engine = self._create_engine(engine_url, settings.TARGET_POOL_SIZE)
            self._engines[connection.id] = engine
            logger.info("target_engine_created", connection_id=connection.id, name=connection.name)
            return engine

    def create_temp_engine(
        self,
        db_type: DatabaseType,
        url: str,
        username: Optional[str] = None,
        password: Optional[str] = None
    ) -> Engine:
        """
        Create an uncached engine, for testing a connection before it is saved.
        Callers must dispose it.
        """
        engine_url = build_engine_url(db_type, url, username, password)
        return self._create_engine(engine_url, pool_size=1)

    def test_engine(self, engine: Engine) -> None:
        """Run SELECT 1, raising InvalidRequestError on failure."""
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            raise InvalidRequestError(f"Failed to connect to database: {e}") from e

    def evict(self, connection_id: int) -> None:
        """Close and remove a cached engine."""
        with self._lock:
            engine = self._engines.pop(connection_id, None)
        if engine is not None:
            engine.dispose()
            logger.info("target_engine_evicted", connection_id=connection_id)

    def close_all(self) -> None:
        """Dispose every cached engine."""
        for connection_id in list(self._engines.keys()):
            self.evict(connection_id)
        logger.info("target_engines_closed")


# Global connection manager instance
connection_manager = ConnectionManager()
