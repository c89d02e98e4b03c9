"""
Access Gateway
Single decision point for ALLOW/DENY on database connections
"""
from typing import List
import enum
from sqlalchemy.orm import Session
import structlog

from querypilot.models import User, DatabaseConnection, ConnectionPermission
from querypilot.core.exceptions import AccessDeniedError, NotFoundError

logger = structlog.get_logger()


class AccessDecision(str, enum.Enum):
    ALLOW = "ALLOW"
    DENY = "DENY"


class AccessGateway:
    """
    Decides whether an identity may act on a connection.

    ADMIN users may act on every connection. Everyone else needs a
    ConnectionPermission row for the pair. Nothing here is cached: every
    call reads the current grant state, so a revoke takes effect on the
    very next check.
    """

    @staticmethod
    def list_accessible_connections(db: Session, user: User) -> List[DatabaseConnection]:
        """Full registry for admins, granted connections for everyone else."""
        if user.is_admin:
            return db.query(DatabaseConnection).order_by(DatabaseConnection.id).all()

        return (
            db.query(DatabaseConnection)
            .join(ConnectionPermission, ConnectionPermission.connection_id == DatabaseConnection.id)
            .filter(ConnectionPermission.user_id == user.id)
            .order_by(DatabaseConnection.id)
            .all()
        )

    @staticmethod
    def check_access(db: Session, user: User, connection_id: int) -> AccessDecision:
        """Evaluate access for one connection without raising."""
        if user.is_admin:
            return AccessDecision.ALLOW

        permission = db.query(ConnectionPermission).filter(
            ConnectionPermission.user_id == user.id,
            ConnectionPermission.connection_id == connection_id
        ).first()

        return AccessDecision.ALLOW if permission is not None else AccessDecision.DENY

    def require_access(self, db: Session, user: User, connection_id: int) -> DatabaseConnection:
        """
        Raising form of check_access used before every privileged action.

        Returns:
            The connection, loaded after the decision.

        Raises:
            AccessDeniedError: the caller has no grant for an existing connection
            NotFoundError: the connection does not exist (only disclosed to
                callers who would otherwise be allowed)
        """
        decision = self.check_access(db, user, connection_id)
        if decision == AccessDecision.DENY:
            logger.warning("access_denied", user_id=user.id, connection_id=connection_id)
            raise AccessDeniedError(
                f"User does not have permission to access connection: {connection_id}"
            )

        connection = db.query(DatabaseConnection).filter(
            DatabaseConnection.id == connection_id
        ).first()
        if not connection:
            raise NotFoundError(f"Connection not found: {connection_id}")

        logger.debug("access_granted", user_id=user.id, connection_id=connection_id)
        return connection


# Global gateway instance
access_gateway = AccessGateway()
