"""
Query Service - Gateway, generation, sanitizing and execution for one question
"""
from typing import Any, Dict, List, Optional
from datetime import date, datetime, time
from decimal import Decimal
import uuid
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import structlog

from querypilot.connections import connection_manager
from querypilot.core.audit import AuditLogger
from querypilot.core.exceptions import (
    QueryPilotError, AccessDeniedError, QueryExecutionError, SqlSafetyError
)
from querypilot.models import User, DatabaseConnection, AuditActionType
from querypilot.schemas import QueryRequest, QueryResponse, SafetyVerdict
from querypilot.security import access_gateway
from querypilot.services.ai_service import SqlGenerator
from querypilot.services.sql_sanitizer import SqlSanitizer, sql_sanitizer

logger = structlog.get_logger()


def to_json_value(value: Any) -> Any:
    """Convert a driver value into something JSON can carry."""
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).hex()
    if isinstance(value, uuid.UUID):
        return str(value)
    return str(value)


class QueryService:
    """Runs the ask pipeline for one authenticated caller."""

    def __init__(self, sanitizer: Optional[SqlSanitizer] = None):
        self.sanitizer = sanitizer or sql_sanitizer

    async def process_query(
        self,
        db: Session,
        user: User,
        request: QueryRequest,
        generator: SqlGenerator
    ) -> QueryResponse:
        """
        Answer a question against one connection.

        Returns a PASSED response with rows, or a BLOCKED response when the
        generated SQL fails the safety check. Access, generation and
        execution failures are raised.
        """
        audit = AuditLogger(db)

        try:
            connection = access_gateway.require_access(db, user, request.connection_id)
        except AccessDeniedError as e:
            self._audit(audit, user, request, "denied", error=e.message)
            raise

        try:
            sql = await generator.generate_sql(request.question, connection)
        except QueryPilotError as e:
            self._audit(audit, user, request, "failed", error=e.message)
            raise

        try:
            safe_sql = self.sanitizer.sanitize(sql)
        except SqlSafetyError as e:
            self._audit(audit, user, request, "blocked", sql=sql, error=e.message)
            return QueryResponse(
                sql=sql,
                result=[],
                safety_check=SafetyVerdict.BLOCKED,
                message=e.message
            )

        try:
            rows = self.execute(connection, safe_sql)
        except QueryPilotError as e:
            self._audit(audit, user, request, "failed", sql=safe_sql, error=e.message)
            raise

        self._audit(audit, user, request, "success", sql=safe_sql, rows=len(rows))
        return QueryResponse(sql=safe_sql, result=rows, safety_check=SafetyVerdict.PASSED)

    def execute(self, connection: DatabaseConnection, sql: str) -> List[Dict[str, Any]]:
        """Run sanitized SQL and return rows as column -> value mappings."""
        engine = connection_manager.get_engine(connection)
        try:
            with engine.connect() as conn:
                result = conn.execute(text(sql))
                rows = [
                    {key: to_json_value(value) for key, value in row.items()}
                    for row in result.mappings()
                ]
        except SQLAlchemyError as e:
            logger.warning("query_execution_failed", connection_id=connection.id, error=str(e))
            raise QueryExecutionError(f"Query execution failed: {e}") from e

        logger.info("query_executed", connection_id=connection.id, rows=len(rows))
        return rows

    @staticmethod
    def _audit(
        audit: AuditLogger,
        user: User,
        request: QueryRequest,
        status: str,
        sql: Optional[str] = None,
        error: Optional[str] = None,
        rows: Optional[int] = None
    ) -> None:
        details: Dict[str, Any] = {"question": request.question}
        if sql is not None:
            details["sql"] = sql
        if rows is not None:
            details["rows"] = rows
        audit.log(
            action=AuditActionType.QUERY_ASK,
            user=user,
            resource_type="connection",
            resource_id=request.connection_id,
            details=details,
            status=status,
            error_message=error
        )


query_service = QueryService()
