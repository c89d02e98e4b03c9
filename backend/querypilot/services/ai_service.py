"""
AI Service - Natural-language to SQL through Ollama
"""
from typing import Optional
import httpx
import json
import re
import structlog

from querypilot.config import settings
from querypilot.core.exceptions import SqlGenerationError
from querypilot.models import DatabaseConnection

logger = structlog.get_logger()

CODE_FENCE = re.compile(r"^```[A-Za-z]*\s*|\s*```$")

SYSTEM_PROMPT = """You are a SQL expert. The target database is **{dialect}**. \
Given the database schema below, convert the user's natural language question into a valid {dialect} SQL SELECT query.

Rules:
- Output ONLY a JSON object with a single key "sql", for example: {{"sql": "SELECT * FROM users"}}
- Generate only SELECT statements
- Use only the tables and columns present in the schema

Schema:
{schema}
"""


def extract_sql_from_response(response: str) -> str:
    """
    Pull the SQL out of a model reply.

    Accepts ``{"sql": "..."}`` (optionally inside a markdown code fence) and
    falls back to a bare statement starting with SELECT or WITH.
    """
    cleaned = CODE_FENCE.sub("", response.strip()).strip()

    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        parsed = None

    if isinstance(parsed, dict):
        sql = parsed.get("sql")
        if isinstance(sql, str) and sql.strip():
            return sql.strip()
        raise SqlGenerationError("AI response did not contain a 'sql' value")

    # Some models ignore the JSON instruction and answer with the statement itself
    if re.match(r"^(SELECT|WITH)\b", cleaned, re.IGNORECASE):
        return cleaned

    raise SqlGenerationError("Failed to parse SQL from AI response")


class OllamaClient:
    """Client for Ollama local LLM."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = (base_url or settings.OLLAMA_URL).rstrip("/")
        self.model = model or settings.OLLAMA_MODEL
        self.timeout = timeout or settings.AI_TIMEOUT_SECONDS
        self.enabled = settings.AI_ENABLED
        self._transport = transport

    async def generate(
        self,
        prompt: str,
        system: Optional[str] = None,
        temperature: float = 0.1
    ) -> str:
        """Generate text from prompt."""
        if not self.enabled:
            raise SqlGenerationError("AI features are disabled")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    f"{self.base_url}/api/generate",
                    json={
                        "model": self.model,
                        "prompt": prompt,
                        "system": system,
                        "stream": False,
                        "format": "json",
                        "options": {"temperature": temperature}
                    }
                )
                response.raise_for_status()
                return response.json()["response"]
        except (httpx.HTTPError, KeyError, ValueError) as e:
            logger.error("ollama_error", error=str(e), model=self.model)
            raise SqlGenerationError(f"Ollama request failed: {e}") from e


class SqlGenerator:
    """Turns a question plus a connection's schema into one SQL statement."""

    def __init__(self, client: Optional[OllamaClient] = None):
        self.client = client or OllamaClient()

    async def generate_sql(self, question: str, connection: DatabaseConnection) -> str:
        system_prompt = SYSTEM_PROMPT.format(
            dialect=connection.dialect_name,
            schema=connection.schema_ddl or "-- No schema available"
        )

        logger.info("sql_generation_started", connection_id=connection.id, model=self.client.model)
        response = await self.client.generate(prompt=question, system=system_prompt)
        sql = extract_sql_from_response(response)
        logger.info("sql_generated", connection_id=connection.id, sql=sql)
        return sql


_generator: Optional[SqlGenerator] = None


def get_sql_generator() -> SqlGenerator:
    """FastAPI dependency; tests override it with a canned generator."""
    global _generator
    if _generator is None:
        _generator = SqlGenerator()
    return _generator
