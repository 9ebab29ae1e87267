"""In-process query service that answers with generated rows.

Exercises the full submit / poll / paginate pipeline without contacting
Athena: every query walks through a scripted list of states and then serves
random rows for the declared columns, page by page.
"""

from __future__ import annotations

import random
import threading
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from athena_sql.core.converter import random_row
from athena_sql.core.exceptions import InputError
from athena_sql.core.models import (
    ColumnInfo,
    QueryState,
    QueryStatistics,
    ResultPage,
    StatementType,
    StatusObservation,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from athena_sql.core.models import Row


@dataclass
class _SyntheticQuery:
    query_text: str
    states: list[QueryState]
    rows: list[Row]
    cancelled: bool = False
    polls: int = 0


@dataclass
class SyntheticQueryService:
    """RemoteQueryService that fabricates its results.

    Attributes:
        columns: Result columns every query returns.
        row_count: Rows generated per query.
        page_size: Rows per result page.
        states: Non-terminal states reported before final_state.
        final_state: Terminal state reported once states are exhausted.
        statement_type: Statement type reported on every poll.
        bytes_scanned: Reported in statistics; None means not reported.
        failure_reason: Reported alongside a FAILED final state.
        seed: Seed for the row generator.
    """

    columns: Sequence[ColumnInfo] = ()
    row_count: int = 1
    page_size: int = 100
    states: Sequence[QueryState] = (QueryState.RUNNING,)
    final_state: QueryState = QueryState.SUCCEEDED
    statement_type: StatementType = StatementType.DML
    bytes_scanned: int | None = None
    failure_reason: str | None = None
    seed: int | None = None
    cancelled: list[str] = field(default_factory=list)
    _queries: dict[str, _SyntheticQuery] = field(default_factory=dict, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @classmethod
    def from_spec(cls, spec: str, **kwargs: object) -> SyntheticQueryService:
        """Build from a column spec such as ``"id:bigint,name:varchar"``."""
        columns = []
        for part in spec.split(","):
            name, sep, type_name = part.strip().partition(":")
            if not name or not sep:
                msg = f"Invalid column spec {part!r}, expected name:type"
                raise InputError(msg)
            columns.append(ColumnInfo(name=name, type_name=type_name))
        return cls(columns=tuple(columns), **kwargs)  # type: ignore[arg-type]

    def _get(self, execution_id: str) -> _SyntheticQuery:
        try:
            return self._queries[execution_id]
        except KeyError:
            msg = f"Unknown query execution id: {execution_id}"
            raise InputError(msg) from None

    def submit(self, query_text: str) -> str:
        rng = random.Random(self.seed)
        execution_id = str(uuid.uuid4())
        query = _SyntheticQuery(
            query_text=query_text,
            states=[*self.states, self.final_state],
            rows=[random_row(self.columns, rng) for _ in range(self.row_count)],
        )
        with self._lock:
            self._queries[execution_id] = query
        return execution_id

    def get_status(self, execution_id: str) -> StatusObservation:
        with self._lock:
            query = self._get(execution_id)
            if query.cancelled:
                state = QueryState.CANCELLED
            else:
                state = query.states[min(query.polls, len(query.states) - 1)]
                query.polls += 1
        terminal = state.is_terminal
        return StatusObservation(
            state=state,
            statement_type=self.statement_type,
            statistics=QueryStatistics(
                bytes_scanned=self.bytes_scanned if terminal else None
            ),
            failure_reason=self.failure_reason if state == QueryState.FAILED else None,
        )

    def get_results_page(
        self, execution_id: str, page_token: str | None
    ) -> ResultPage:
        with self._lock:
            query = self._get(execution_id)
        start = int(page_token or 0)
        end = start + self.page_size
        next_token = str(end) if end < len(query.rows) else None
        return ResultPage(
            columns=tuple(self.columns),
            rows=tuple(query.rows[start:end]),
            next_token=next_token,
        )

    def cancel(self, execution_id: str) -> None:
        with self._lock:
            self._get(execution_id).cancelled = True
            self.cancelled.append(execution_id)
