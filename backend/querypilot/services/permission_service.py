"""
Permission Service - Grant and revoke connection access for users
"""
from typing import List
from sqlalchemy.orm import Session
import structlog

from querypilot.core.audit import AuditLogger
from querypilot.core.exceptions import NotFoundError
from querypilot.models import User, DatabaseConnection, ConnectionPermission, AuditActionType

logger = structlog.get_logger()


class PermissionService:
    """
    Grants are set membership on (user, connection).

    Granting an existing pair returns the stored grant and revoking a
    missing pair does nothing, so both can be retried safely.
    """

    def _find(self, db: Session, user_id: int, connection_id: int):
        return db.query(ConnectionPermission).filter(
            ConnectionPermission.user_id == user_id,
            ConnectionPermission.connection_id == connection_id
        ).first()

    def grant(self, db: Session, user_id: int, connection_id: int, admin: User) -> ConnectionPermission:
        if not db.query(User).filter(User.id == user_id).first():
            raise NotFoundError(f"User not found: {user_id}")
        if not db.query(DatabaseConnection).filter(DatabaseConnection.id == connection_id).first():
            raise NotFoundError(f"Connection not found: {connection_id}")

        permission = self._find(db, user_id, connection_id)
        if permission:
            logger.info("permission_already_granted", user_id=user_id, connection_id=connection_id)
            return permission

        permission = ConnectionPermission(user_id=user_id, connection_id=connection_id)
        db.add(permission)
        db.commit()
        db.refresh(permission)

        AuditLogger(db).log(
            action=AuditActionType.PERMISSION_GRANT,
            user=admin,
            resource_type="permission",
            resource_id=permission.id,
            details={"user_id": user_id, "connection_id": connection_id}
        )
        return permission

    def revoke(self, db: Session, user_id: int, connection_id: int, admin: User) -> bool:
        """Returns True when a grant was removed."""
        permission = self._find(db, user_id, connection_id)
        if not permission:
            logger.info("permission_not_present", user_id=user_id, connection_id=connection_id)
            return False

        db.delete(permission)
        db.commit()

        AuditLogger(db).log(
            action=AuditActionType.PERMISSION_REVOKE,
            user=admin,
            resource_type="permission",
            details={"user_id": user_id, "connection_id": connection_id}
        )
        return True

    def list_by_user(self, db: Session, user_id: int) -> List[ConnectionPermission]:
        return db.query(ConnectionPermission).filter(
            ConnectionPermission.user_id == user_id
        ).order_by(ConnectionPermission.id).all()

    def list_by_connection(self, db: Session, connection_id: int) -> List[ConnectionPermission]:
        return db.query(ConnectionPermission).filter(
            ConnectionPermission.connection_id == connection_id
        ).order_by(ConnectionPermission.id).all()


permission_service = PermissionService()
