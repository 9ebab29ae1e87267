"""Data models for athena-sql.

Pydantic models for the values exchanged with the query service (column
metadata, status observations, result pages), the execution record owned by
an ExecutionController, and explicitly materialized results.
"""

from __future__ import annotations

from datetime import datetime  # noqa: TC003
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# One field per column; None is SQL NULL.
Row = tuple[str | None, ...]


class QueryState(StrEnum):
    QUEUED = "QUEUED"
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATES


_TERMINAL_STATES = frozenset(
    {QueryState.SUCCEEDED, QueryState.FAILED, QueryState.CANCELLED}
)


class StatementType(StrEnum):
    DDL = "DDL"
    DML = "DML"
    UTILITY = "UTILITY"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: str | None) -> StatementType:
        """Map the service's statement type string; anything else is UNKNOWN."""
        if not value:
            return cls.UNKNOWN
        try:
            return cls(value.strip().upper())
        except ValueError:
            return cls.UNKNOWN


class ColumnInfo(BaseModel):
    """Name and declared type of a single result column."""

    model_config = ConfigDict(frozen=True)

    name: str
    type_name: str = ""


class QueryStatistics(BaseModel):
    model_config = ConfigDict(frozen=True)

    bytes_scanned: int | None = None
    engine_execution_ms: int | None = None


class StatusObservation(BaseModel):
    """One answer from the service's status endpoint."""

    model_config = ConfigDict(frozen=True)

    state: QueryState
    statement_type: StatementType = StatementType.UNKNOWN
    statistics: QueryStatistics = Field(default_factory=QueryStatistics)
    failure_reason: str | None = None


class ResultPage(BaseModel):
    """One page of results; an empty next_token ends the stream."""

    model_config = ConfigDict(frozen=True)

    columns: tuple[ColumnInfo, ...]
    rows: tuple[Row, ...] = ()
    next_token: str | None = None


class QueryExecution(BaseModel):
    """Lifecycle record of one submitted query."""

    id: str
    query_text: str
    state: QueryState = QueryState.QUEUED
    statement_type: StatementType = StatementType.UNKNOWN
    submitted_at: datetime
    statistics: QueryStatistics = Field(default_factory=QueryStatistics)
    failure_reason: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.state.is_terminal


class NamedValue(BaseModel):
    """A parameter with an optional name and a 1-based position."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = ""
    ordinal: int = Field(ge=1)
    value: Any = None


class QueryResult(BaseModel):
    """A fully materialized query result."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    query_execution_id: str
    columns: list[ColumnInfo]
    rows: list[tuple[Any, ...]]
    row_count: int
    bytes_scanned: int | None = None
