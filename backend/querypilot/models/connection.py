"""
Connection Model - Registered target databases
"""
from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum

from querypilot.database import Base


class DatabaseType(str, enum.Enum):
    """Supported database kinds."""
    MYSQL = "MYSQL"
    POSTGRESQL = "POSTGRESQL"
    H2 = "H2"
    SQLITE = "SQLITE"


DIALECT_NAMES = {
    DatabaseType.MYSQL: "MySQL",
    DatabaseType.POSTGRESQL: "PostgreSQL",
    DatabaseType.H2: "H2 Database (use DATEADD/DATEDIFF for date math, not INTERVAL)",
    DatabaseType.SQLITE: "SQLite (use date()/strftime() for date math)",
}


class DatabaseConnection(Base):
    """A target database an admin registered for natural-language querying."""
    __tablename__ = "connections"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, unique=True)
    db_type = Column(String(20), nullable=False)
    url = Column(String(1000), nullable=False)
    username = Column(String(255), nullable=True)
    encrypted_password = Column(Text, nullable=True)  # Encrypted at rest, never serialized
    schema_ddl = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    permissions = relationship(
        "ConnectionPermission",
        back_populates="connection",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def database_type(self) -> DatabaseType:
        return DatabaseType(self.db_type)

    @property
    def dialect_name(self) -> str:
        return DIALECT_NAMES[self.database_type]

    def __repr__(self) -> str:
        return f"<DatabaseConnection id={self.id} name={self.name!r} type={self.db_type}>"
