"""
Schema Extractor - Renders a target database's tables as DDL text for prompts
"""
from typing import List, Dict, Any
from sqlalchemy import inspect
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError, CompileError
import structlog

from querypilot.core.exceptions import InvalidRequestError

logger = structlog.get_logger()

NO_TABLES = "-- No tables found"


class SchemaExtractor:
    """Reads tables and columns through the SQLAlchemy inspector."""

    def extract_schema(self, engine: Engine) -> str:
        """
        Build a DDL-like description of every table in the default schema.

        Example output::

            CREATE TABLE users (
              id INTEGER NOT NULL PRIMARY KEY,
              name VARCHAR(100)
            );
        """
        try:
            inspector = inspect(engine)
            tables = sorted(inspector.get_table_names())
            logger.info("schema_extract_started", backend=engine.dialect.name, tables=len(tables))

            blocks = []
            for table in tables:
                columns = inspector.get_columns(table)
                primary_keys = set(inspector.get_pk_constraint(table).get("constrained_columns") or [])
                blocks.append(self._render_table(engine, table, columns, primary_keys))
        except SQLAlchemyError as e:
            raise InvalidRequestError(f"Failed to read database schema: {e}") from e

        if not blocks:
            return NO_TABLES
        return "\n\n".join(blocks)

    def _render_table(
        self,
        engine: Engine,
        table: str,
        columns: List[Dict[str, Any]],
        primary_keys: set
    ) -> str:
        lines = []
        for column in columns:
            line = f"  {column['name']} {self._type_name(engine, column['type'])}"
            if not column.get("nullable", True):
                line += " NOT NULL"
            if column["name"] in primary_keys:
                line += " PRIMARY KEY"
            lines.append(line)

        return f"CREATE TABLE {table} (\n" + ",\n".join(lines) + "\n);"

    @staticmethod
    def _type_name(engine: Engine, column_type) -> str:
        try:
            return column_type.compile(dialect=engine.dialect)
        except (CompileError, NotImplementedError):
            return type(column_type).__name__.upper()


schema_extractor = SchemaExtractor()
