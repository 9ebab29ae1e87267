"""Query execution lifecycle: submit, poll until terminal, page results.

ExecutionController turns the service's asynchronous API into blocking
calls. Its phase moves SUBMITTING -> POLLING -> one terminal phase
(SUCCEEDED, FAILED, CANCELLED, TIMED_OUT) and never leaves a terminal phase.
Timeout and cancellation are ordinary terminal phases; raise_for_phase()
reports them to the caller as distinguished errors.
"""

from __future__ import annotations

import math
import threading
from datetime import datetime, timedelta, timezone
from enum import StrEnum
from typing import TYPE_CHECKING

import sentry_sdk
import structlog

from athena_sql.core.exceptions import (
    InterfaceError,
    NetworkError,
    PollError,
    QueryCancelled,
    QueryFailed,
    QueryTimedOut,
    SubmissionError,
)
from athena_sql.core.models import (
    QueryExecution,
    QueryState,
    StatementType,
    StatusObservation,
)
from athena_sql.core.service import is_insert_statement

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from athena_sql.core.models import ResultPage
    from athena_sql.core.service import RemoteQueryService

DEFAULT_POLL_INTERVAL = 1.0
DML_TIMEOUT = timedelta(seconds=3600)

_MB = 1 << 20
_TB = 1 << 40
USD_PER_TB_SCANNED = 5.0
MIN_BILLED_BYTES = 10 * _MB


class ExecutionPhase(StrEnum):
    SUBMITTING = "SUBMITTING"
    POLLING = "POLLING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"
    TIMED_OUT = "TIMED_OUT"

    @property
    def is_terminal(self) -> bool:
        return self not in (ExecutionPhase.SUBMITTING, ExecutionPhase.POLLING)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_query_timed_out(
    submitted_at: datetime,
    statement_type: StatementType | str | None,
    now: datetime | None = None,
) -> bool:
    """Only DML statements time out, after more than an hour.

    DDL, UTILITY and unrecognized statement types never time out here.
    """
    if not isinstance(statement_type, StatementType):
        statement_type = StatementType.parse(statement_type)
    if statement_type != StatementType.DML:
        return False
    now = now or _utcnow()
    return now - submitted_at > DML_TIMEOUT


def format_scanned_bytes(num_bytes: int) -> str:
    """Format a byte count with binary magnitude units."""
    units = [
        ("PB", 1 << 50),
        ("TB", _TB),
        ("GB", 1 << 30),
        ("MB", _MB),
        ("KB", 1 << 10),
    ]
    for suffix, threshold in units:
        if num_bytes >= threshold:
            return f"{num_bytes / threshold:.2f} {suffix}"
    return f"{num_bytes} bytes"


def estimate_cost_usd(num_bytes: int) -> float:
    """Athena bills per TB scanned, rounded up to the MB, 10 MB minimum."""
    if num_bytes <= 0:
        return 0.0
    billed = max(math.ceil(num_bytes / _MB) * _MB, MIN_BILLED_BYTES)
    return billed / _TB * USD_PER_TB_SCANNED


def cost_line(execution: QueryExecution | None) -> str | None:
    """Human-readable cost report, or None when bytes scanned is unknown."""
    if execution is None or execution.statistics.bytes_scanned is None:
        return None
    scanned = execution.statistics.bytes_scanned
    return (
        f"{execution.id}: scanned {format_scanned_bytes(scanned)}, "
        f"estimated cost ${estimate_cost_usd(scanned):.6f}"
    )


class ExecutionController:
    """Drives one query through its lifecycle.

    An instance owns exactly one QueryExecution and is not meant to be
    shared between threads; cancel() is the only method safe to call from
    another thread.

    Args:
        service: The remote query service.
        poll_interval: Seconds to wait between status polls.
        deadline: Optional caller deadline; reaching it times the query out
            regardless of statement type.
        cancel_event: External cancellation signal, checked on every poll.
        clock: Returns the current aware datetime.
    """

    def __init__(
        self,
        service: RemoteQueryService,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        deadline: datetime | None = None,
        cancel_event: threading.Event | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.service = service
        self.poll_interval = poll_interval
        self.deadline = deadline
        self._cancel_event = cancel_event or threading.Event()
        self._clock = clock or _utcnow
        self.phase = ExecutionPhase.SUBMITTING
        self.cost_report: str | None = None
        self._execution: QueryExecution | None = None
        self._pages_started = False

    @property
    def execution(self) -> QueryExecution:
        """A copy of the current execution record."""
        if self._execution is None:
            raise InterfaceError("No query has been submitted")
        return self._execution.model_copy(deep=True)

    @property
    def execution_id(self) -> str | None:
        return self._execution.id if self._execution is not None else None

    def submit(self, query_text: str) -> QueryExecution:
        log = structlog.get_logger()
        if self.phase != ExecutionPhase.SUBMITTING:
            raise InterfaceError("A query was already submitted on this controller")

        sql_normalized = " ".join(query_text.split())
        with sentry_sdk.start_span(
            op="athena.submit", description=sql_normalized[:100]
        ) as span:
            try:
                execution_id = self.service.submit(query_text)
            except NetworkError as e:
                self.phase = ExecutionPhase.FAILED
                span.set_status("unavailable")
                log.error("query submission failed", sql=sql_normalized, error=str(e))
                raise SubmissionError(f"Query submission failed: {e.message}") from e
            span.set_data("query_execution_id", execution_id)

        self._execution = QueryExecution(
            id=execution_id,
            query_text=query_text,
            submitted_at=self._clock(),
        )
        self.phase = ExecutionPhase.POLLING
        log.debug("query submitted", query_execution_id=execution_id, sql=sql_normalized)
        return self.execution

    def cancel(self) -> None:
        """Signal the poll loop to cancel at its next iteration."""
        self._cancel_event.set()

    def poll_once(self) -> ExecutionPhase:
        """Observe cancellation, deadline and remote status once."""
        if self.phase.is_terminal:
            return self.phase
        if self._execution is None:
            raise InterfaceError("No query has been submitted")

        if self._cancel_event.is_set():
            self._finish(ExecutionPhase.CANCELLED, notify_remote=True)
            return self.phase
        if self.deadline is not None and self._clock() >= self.deadline:
            self._finish(ExecutionPhase.TIMED_OUT, notify_remote=True)
            return self.phase

        observation = self._get_status()
        self._apply(observation)

        if observation.state == QueryState.SUCCEEDED:
            self._finish(ExecutionPhase.SUCCEEDED)
        elif observation.state == QueryState.FAILED:
            self._finish(ExecutionPhase.FAILED)
        elif observation.state == QueryState.CANCELLED:
            self._finish(ExecutionPhase.CANCELLED)
        elif is_query_timed_out(
            self._execution.submitted_at,
            self._execution.statement_type,
            self._clock(),
        ):
            self._finish(ExecutionPhase.TIMED_OUT, notify_remote=True)
        return self.phase

    def wait(self) -> QueryExecution:
        """Block until the query reaches a terminal phase."""
        if self.phase == ExecutionPhase.SUBMITTING:
            raise InterfaceError("No query has been submitted")
        while not self.poll_once().is_terminal:
            self._cancel_event.wait(self.poll_interval)
        return self.execution

    def run(self, query_text: str) -> QueryExecution:
        """Submit, wait, and raise if the query did not succeed."""
        self.submit(query_text)
        execution = self.wait()
        self.raise_for_phase()
        return execution

    def raise_for_phase(self) -> None:
        execution_id = self.execution_id
        if self.phase == ExecutionPhase.FAILED and self._execution is not None:
            reason = self._execution.failure_reason
            msg = f"Query {execution_id} failed: {reason or 'no reason given'}"
            raise QueryFailed(msg, execution_id, reason)
        if self.phase == ExecutionPhase.CANCELLED:
            raise QueryCancelled(f"Query {execution_id} was cancelled", execution_id)
        if self.phase == ExecutionPhase.TIMED_OUT:
            raise QueryTimedOut(f"Query {execution_id} timed out", execution_id)

    def iter_pages(self) -> Iterator[ResultPage]:
        """Return the single-pass stream of result pages.

        Pages are fetched on demand. The stream can be taken once; reading
        the results again requires submitting the query again.
        """
        if self.phase != ExecutionPhase.SUCCEEDED:
            self.raise_for_phase()
            raise InterfaceError("Results are only available after the query succeeded")
        if self._pages_started:
            raise InterfaceError("Result stream already consumed; re-submit the query")
        self._pages_started = True
        return self._pages()

    def _pages(self) -> Iterator[ResultPage]:
        log = structlog.get_logger()
        assert self._execution is not None
        execution_id = self._execution.id
        if is_insert_statement(self._execution.query_text):
            log.debug("insert statement, no result pages", query_execution_id=execution_id)
            return

        token: str | None = None
        page_number = 0
        while True:
            with sentry_sdk.start_span(
                op="athena.results", description=execution_id
            ) as span:
                page = self.service.get_results_page(execution_id, token)
                page_number += 1
                span.set_data("row_count", len(page.rows))
                span.set_data("page", page_number)
            yield page
            token = page.next_token
            if not token:
                break

    def _get_status(self) -> StatusObservation:
        log = structlog.get_logger()
        assert self._execution is not None
        execution_id = self._execution.id
        with sentry_sdk.start_span(op="athena.poll", description=execution_id) as span:
            try:
                observation = self.service.get_status(execution_id)
            except NetworkError as e:
                span.set_status("unavailable")
                log.error("query status poll failed", query_execution_id=execution_id, error=str(e))
                raise PollError(f"Polling query {execution_id} failed: {e.message}") from e
            span.set_data("state", observation.state.value)
        log.debug(
            "query status",
            query_execution_id=execution_id,
            state=observation.state.value,
            statement_type=observation.statement_type.value,
        )
        return observation

    def _apply(self, observation: StatusObservation) -> None:
        execution = self._execution
        if execution is None or execution.is_terminal:
            return
        execution.state = observation.state
        execution.statement_type = observation.statement_type
        execution.statistics = observation.statistics
        execution.failure_reason = observation.failure_reason

    def _finish(self, phase: ExecutionPhase, notify_remote: bool = False) -> None:
        log = structlog.get_logger()
        execution = self._execution
        assert execution is not None
        self.phase = phase
        if not execution.is_terminal:
            execution.state = QueryState.CANCELLED
        if notify_remote:
            self._notify_cancel()

        elapsed = (self._clock() - execution.submitted_at).total_seconds()
        log.debug(
            "query finished",
            query_execution_id=execution.id,
            phase=phase.value,
            elapsed_s=f"{elapsed:.1f}",
        )
        self.cost_report = cost_line(execution)
        if self.cost_report is not None:
            log.info("query cost", cost=self.cost_report)

    def _notify_cancel(self) -> None:
        log = structlog.get_logger()
        assert self._execution is not None
        try:
            self.service.cancel(self._execution.id)
        except NetworkError as e:
            log.warning(
                "cancel notification failed",
                query_execution_id=self._execution.id,
                error=str(e),
            )
