"""
Query Exchange - one question in, SQL + verdict + rows out
"""
from dataclasses import dataclass, replace
from typing import List, Optional
import enum
import structlog

from querypilot.client.api import QueryPilotClient
from querypilot.client.errors import ApiError, AuthorizationError, ExecutionError, ValidationError
from querypilot.client.tabular import TabularResult

logger = structlog.get_logger()


class ExchangeState(str, enum.Enum):
    IDLE = "IDLE"
    SUBMITTED = "SUBMITTED"
    AUTHORIZED = "AUTHORIZED"
    REJECTED = "REJECTED"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


@dataclass(frozen=True)
class ExchangeOutcome:
    """
    Result of one submission.

    ``stale`` outcomes belong to a superseded submission and were not
    applied to the exchange.
    """
    state: ExchangeState
    generation: int
    connection_id: int
    question: str
    sql: Optional[str] = None
    safety_check: Optional[str] = None
    table: Optional[TabularResult] = None
    message: Optional[str] = None
    error: Optional[ApiError] = None
    stale: bool = False


class QueryExchange:
    """
    Tracks the latest question and applies only its answer.

    Each submit bumps a generation counter. A reply is applied only when
    its generation is still current, so an older, slower answer can never
    replace a newer one.
    """

    def __init__(self, client: QueryPilotClient):
        self.client = client
        self.state = ExchangeState.IDLE
        self.generation = 0
        self.last_outcome: Optional[ExchangeOutcome] = None
        self.transitions: List[ExchangeState] = []

    async def submit(self, connection_id: Optional[int], question: str) -> ExchangeOutcome:
        """
        Ask ``question`` against ``connection_id``.

        Raises:
            ValidationError: no connection selected or a blank question;
                nothing is sent in that case
        """
        question = (question or "").strip()
        if connection_id is None:
            raise ValidationError("Select a connection first")
        if not question:
            raise ValidationError("Question is required")

        self.generation += 1
        generation = self.generation
        self.state = ExchangeState.SUBMITTED
        self.transitions = [ExchangeState.SUBMITTED]
        logger.info("query_submitted", generation=generation, connection_id=connection_id)

        try:
            reply = await self.client.ask(connection_id, question)
        except AuthorizationError as e:
            outcome = ExchangeOutcome(
                state=ExchangeState.REJECTED,
                generation=generation,
                connection_id=connection_id,
                question=question,
                message=e.message,
                error=e
            )
        except ApiError as e:
            outcome = ExchangeOutcome(
                state=ExchangeState.FAILED,
                generation=generation,
                connection_id=connection_id,
                question=question,
                message=e.message,
                error=e
            )
        except BaseException:
            # Interrupted before any reply (e.g. cancelled): nothing to apply
            if generation == self.generation:
                self.state = ExchangeState.IDLE
                self.transitions = []
                logger.info("query_interrupted", generation=generation)
            raise
        else:
            outcome = ExchangeOutcome(
                state=ExchangeState.COMPLETED,
                generation=generation,
                connection_id=connection_id,
                question=question,
                sql=reply.sql,
                safety_check=reply.safety_check,
                table=TabularResult.from_rows(reply.result),
                message=reply.message
            )

        return self._apply(outcome)

    def cancel(self) -> None:
        """Disregard whatever is in flight."""
        self.generation += 1
        self.state = ExchangeState.IDLE
        self.transitions = []

    def _apply(self, outcome: ExchangeOutcome) -> ExchangeOutcome:
        if outcome.generation != self.generation:
            logger.info("query_result_discarded", generation=outcome.generation, current=self.generation)
            return replace(outcome, stale=True)

        if self._passed_gateway(outcome):
            self.transitions.append(ExchangeState.AUTHORIZED)
        self.transitions.append(outcome.state)
        self.state = outcome.state
        self.last_outcome = outcome
        if outcome.state == ExchangeState.COMPLETED:
            logger.info("query_completed", generation=outcome.generation, safety_check=outcome.safety_check)
        else:
            logger.info("query_not_completed", generation=outcome.generation, state=outcome.state.value)
        return outcome

    @staticmethod
    def _passed_gateway(outcome: ExchangeOutcome) -> bool:
        """
        The server only answers or fails the execution once the gateway has
        allowed the ask. Transport failures carry no status and never got
        that far.
        """
        if outcome.state == ExchangeState.COMPLETED:
            return True
        return isinstance(outcome.error, ExecutionError) and outcome.error.status_code is not None
