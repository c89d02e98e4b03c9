"""
Database Initialization Script
Creates the application tables and the bootstrap admin user
"""
import argparse
import getpass
import sys
import os

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from querypilot.config import settings  # noqa: E402
from querypilot.database import Base, app_engine, get_db_context  # noqa: E402
from querypilot.core.auth import ensure_admin_user  # noqa: E402
from querypilot import models  # noqa: E402,F401


def init_database(username: str, password: str) -> int:
    """Initialize database with tables and the admin account."""
    print(f"Database: {app_engine.url.render_as_string(hide_password=True)}")

    try:
        with app_engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        print(f"Database connection failed: {e}")
        return 1
    print("✓ Database connection successful")

    Base.metadata.create_all(bind=app_engine)
    print("✓ Tables created")

    with get_db_context() as db:
        admin = ensure_admin_user(db, username, password)
        if admin.is_admin:
            print(f"✓ Admin user ready: {admin.username}")
        else:
            print(f"⚠️  User {admin.username} exists but is not an admin; left unchanged")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Initialize the QueryPilot application database")
    parser.add_argument("--username", default=settings.BOOTSTRAP_ADMIN_USERNAME or "admin")
    parser.add_argument("--password", default=settings.BOOTSTRAP_ADMIN_PASSWORD)
    args = parser.parse_args()

    password = args.password or getpass.getpass("Admin password: ")
    if len(password) < 6:
        print("Password must be at least 6 characters")
        return 1

    return init_database(args.username, password)


if __name__ == "__main__":
    sys.exit(main())
