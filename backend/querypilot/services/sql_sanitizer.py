"""
SQL Sanitizer - Safety guardrails for model-generated SQL
"""
import re
from typing import Optional
import structlog

from querypilot.config import settings
from querypilot.core.exceptions import SqlSafetyError

logger = structlog.get_logger()


class SqlSanitizer:
    """
    Accepts exactly one read-only statement.

    1. Strips comments so nothing can hide behind them
    2. Rejects multiple statements and anything that is not SELECT / WITH ... SELECT
    3. Appends a LIMIT when none is present
    """

    SINGLE_LINE_COMMENT = re.compile(r"--[^\n]*")
    MULTI_LINE_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)
    STRING_LITERAL = re.compile(r"'(?:[^']|'')*'")
    QUOTED_IDENTIFIER = re.compile(r'"(?:[^"]|"")*"|`[^`]*`')
    LIMIT_PATTERN = re.compile(r"\bLIMIT\s+\d+", re.IGNORECASE)
    LEADING_KEYWORD = re.compile(r"^[\s(]*([A-Za-z]+)")
    WRITE_KEYWORDS = re.compile(
        r"\b(INSERT|UPDATE|DELETE|MERGE|DROP|ALTER|TRUNCATE|CREATE|GRANT|REVOKE|EXEC|EXECUTE|CALL)\b",
        re.IGNORECASE,
    )
    SELECT_INTO = re.compile(r"\bINTO\b", re.IGNORECASE)

    READ_ONLY_KEYWORDS = {"SELECT", "WITH"}
    KEYWORD_ALIASES = {"EXEC": "EXECUTE"}

    def __init__(self, row_limit: Optional[int] = None):
        self.row_limit = row_limit or settings.QUERY_ROW_LIMIT

    def sanitize(self, sql: Optional[str]) -> str:
        """
        Return a safe, row-limited version of ``sql``.

        Raises:
            SqlSafetyError: the statement is empty, stacked or not read-only
        """
        if sql is None or not sql.strip():
            raise SqlSafetyError("SQL cannot be empty")

        cleaned = self.strip_comments(sql).strip()
        if not cleaned:
            raise SqlSafetyError("SQL is empty after removing comments")

        if cleaned.endswith(";"):
            cleaned = cleaned[:-1].rstrip()

        self.validate_statement(cleaned)

        sanitized = self.ensure_limit(cleaned)
        logger.info("sql_sanitized", sql=sanitized)
        return sanitized

    def strip_comments(self, sql: str) -> str:
        result = self.MULTI_LINE_COMMENT.sub("", sql)
        return self.SINGLE_LINE_COMMENT.sub("", result)

    def _mask_literals(self, sql: str) -> str:
        masked = self.STRING_LITERAL.sub("''", sql)
        return self.QUOTED_IDENTIFIER.sub('""', masked)

    def validate_statement(self, sql: str) -> None:
        """Block everything but a single SELECT (optionally behind a CTE)."""
        masked = self._mask_literals(sql)

        if ";" in masked:
            raise SqlSafetyError(
                "SQL Safety Violation: multiple statements are not allowed. Only SELECT is permitted.",
                blocked_type="MULTIPLE"
            )

        match = self.LEADING_KEYWORD.match(masked)
        if not match:
            raise SqlSafetyError("Failed to parse SQL: no statement keyword found")

        keyword = match.group(1).upper()
        if keyword not in self.READ_ONLY_KEYWORDS:
            self._block(self.KEYWORD_ALIASES.get(keyword, keyword))

        # CTEs may wrap data-modifying statements on PostgreSQL
        write = self.WRITE_KEYWORDS.search(masked)
        if write:
            self._block(self.KEYWORD_ALIASES.get(write.group(1).upper(), write.group(1).upper()))

        if self.SELECT_INTO.search(masked):
            self._block("SELECT INTO")

    @staticmethod
    def _block(blocked_type: str) -> None:
        logger.warning("sql_blocked", blocked_type=blocked_type)
        raise SqlSafetyError(
            f"SQL Safety Violation: {blocked_type} statements are not allowed. Only SELECT is permitted.",
            blocked_type=blocked_type
        )

    def ensure_limit(self, sql: str) -> str:
        """Append LIMIT when the SQL has none."""
        if self.LIMIT_PATTERN.search(sql):
            return sql

        trimmed = sql.rstrip()
        if trimmed.endswith(";"):
            trimmed = trimmed[:-1].rstrip()

        return f"{trimmed} LIMIT {self.row_limit}"


sql_sanitizer = SqlSanitizer()
