"""
Database connection and session management for the application database
"""
from sqlalchemy import create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker, Session, declarative_base
from sqlalchemy.pool import StaticPool
from contextlib import contextmanager
from typing import Generator, Dict, Any
import os

from querypilot.config import settings

# ============================================================================
# APPLICATION DATABASE
# Used for: Users, Connections, Permissions, Audit Logs
# Configured via: Environment variables ONLY
# Target databases registered by admins are NEVER reached through this engine
# ============================================================================


def _engine_options(database_url: str) -> Dict[str, Any]:
    """Engine keyword arguments for the configured backend."""
    url = make_url(database_url)

    if url.get_backend_name() == "sqlite":
        options: Dict[str, Any] = {
            "echo": settings.DEBUG,
            "connect_args": {"check_same_thread": False},
        }
        if not url.database or url.database == ":memory:":
            # One shared connection, otherwise every checkout sees an empty database
            options["poolclass"] = StaticPool
        else:
            directory = os.path.dirname(url.database)
            if directory:
                os.makedirs(directory, exist_ok=True)
        return options

    return {
        "pool_size": 20,
        "max_overflow": 30,
        "pool_pre_ping": True,
        "echo": settings.DEBUG,
        "connect_args": {"connect_timeout": 10},
    }


app_engine = create_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

if app_engine.dialect.name == "sqlite":
    @event.listens_for(app_engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        # SQLite ignores ON DELETE CASCADE unless asked per connection
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

AppSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=app_engine)

Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Dependency for App DB session."""
    db = AppSessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """Context manager for App DB session."""
    db = AppSessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
