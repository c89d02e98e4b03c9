"""
Connection Permission Model - Per-connection grants for non-admin users
"""
from sqlalchemy import Column, Integer, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from querypilot.database import Base


class ConnectionPermission(Base):
    """A grant pairing a user with a connection. Set membership, no weighting."""
    __tablename__ = "connection_permissions"
    __table_args__ = (
        UniqueConstraint("user_id", "connection_id", name="uq_permission_user_connection"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    connection_id = Column(Integer, ForeignKey("connections.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    user = relationship("User", back_populates="permissions")
    connection = relationship("DatabaseConnection", back_populates="permissions")
