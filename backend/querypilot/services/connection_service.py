"""
Connection Service - Registry of target databases
"""
from typing import List
from sqlalchemy.orm import Session
import structlog

from querypilot.connections import connection_manager, schema_extractor
from querypilot.core.audit import AuditLogger
from querypilot.core.crypto import encrypt_value
from querypilot.core.exceptions import ConflictError, NotFoundError
from querypilot.models import (
    User, DatabaseConnection, DatabaseType, ConnectionPermission, AuditActionType
)
from querypilot.schemas import ConnectionCreate
from querypilot.security import access_gateway

logger = structlog.get_logger()

H2_SCHEMA_NOTE = "-- Schema extraction is not available for H2 connections"


class ConnectionService:
    """Admin-side operations on registered connections."""

    def add_connection(self, db: Session, data: ConnectionCreate, admin: User) -> DatabaseConnection:
        """
        Test, introspect and store a new connection.

        The password is encrypted before it reaches the database. H2 has no
        Python driver, so H2 connections are stored without a connectivity
        test or schema.
        """
        name = data.name.strip()
        existing = db.query(DatabaseConnection).filter(DatabaseConnection.name == name).first()
        if existing:
            raise ConflictError(f"Connection name already exists: {name}")

        if data.type == DatabaseType.H2:
            schema_ddl = H2_SCHEMA_NOTE
        else:
            engine = connection_manager.create_temp_engine(
                data.type, data.url, data.username, data.password
            )
            try:
                connection_manager.test_engine(engine)
                schema_ddl = schema_extractor.extract_schema(engine)
            finally:
                engine.dispose()

        connection = DatabaseConnection(
            name=name,
            db_type=data.type.value,
            url=data.url.strip(),
            username=data.username,
            encrypted_password=encrypt_value(data.password),
            schema_ddl=schema_ddl,
            created_by=admin.id
        )
        db.add(connection)
        db.commit()
        db.refresh(connection)

        AuditLogger(db).log(
            action=AuditActionType.CONNECTION_CREATE,
            user=admin,
            resource_type="connection",
            resource_id=connection.id,
            details={"name": connection.name, "type": connection.db_type}
        )
        logger.info("connection_created", connection_id=connection.id, name=connection.name)
        return connection

    def list_connections(self, db: Session) -> List[DatabaseConnection]:
        return db.query(DatabaseConnection).order_by(DatabaseConnection.id).all()

    def get_connection(self, db: Session, connection_id: int) -> DatabaseConnection:
        connection = db.query(DatabaseConnection).filter(
            DatabaseConnection.id == connection_id
        ).first()
        if not connection:
            raise NotFoundError(f"Connection not found: {connection_id}")
        return connection

    def delete_connection(self, db: Session, connection_id: int, admin: User) -> None:
        """Drop the connection, its cached engine and every grant on it."""
        connection = access_gateway.require_access(db, admin, connection_id)
        name = connection.name

        connection_manager.evict(connection.id)
        db.query(ConnectionPermission).filter(
            ConnectionPermission.connection_id == connection.id
        ).delete(synchronize_session=False)
        db.delete(connection)
        db.commit()

        AuditLogger(db).log(
            action=AuditActionType.CONNECTION_DELETE,
            user=admin,
            resource_type="connection",
            resource_id=connection_id,
            details={"name": name}
        )

    def refresh_schema(self, db: Session, connection_id: int, admin: User) -> DatabaseConnection:
        """Re-read the target's tables and store the new DDL."""
        connection = access_gateway.require_access(db, admin, connection_id)

        engine = connection_manager.get_engine(connection)
        connection.schema_ddl = schema_extractor.extract_schema(engine)
        db.commit()
        db.refresh(connection)

        AuditLogger(db).log(
            action=AuditActionType.SCHEMA_REFRESH,
            user=admin,
            resource_type="connection",
            resource_id=connection.id
        )
        return connection


connection_service = ConnectionService()
