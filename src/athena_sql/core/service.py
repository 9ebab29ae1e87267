"""Remote query service interface and the Amazon Athena implementation.

ExecutionController only talks to a RemoteQueryService. Implementations
raise NetworkError for transport failures so the controller can tell them
apart from query outcomes the service reports.
"""

from __future__ import annotations

import re
from typing import Any, Protocol, runtime_checkable

import boto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError

from athena_sql.core.exceptions import NetworkError
from athena_sql.core.models import (
    ColumnInfo,
    QueryState,
    QueryStatistics,
    ResultPage,
    StatementType,
    StatusObservation,
)

MAX_PAGE_SIZE = 1000


@runtime_checkable
class RemoteQueryService(Protocol):
    """The asynchronous submit / poll / paginate API behind the driver.

    Implementations must be safe to share between controllers.
    """

    def submit(self, query_text: str) -> str:
        """Start a query and return its execution id."""
        ...

    def get_status(self, execution_id: str) -> StatusObservation: ...

    def get_results_page(
        self, execution_id: str, page_token: str | None
    ) -> ResultPage: ...

    def cancel(self, execution_id: str) -> None: ...


# Whitespace, comments and opening parentheses ahead of the first keyword.
_LEADING_NOISE = re.compile(r"(?:\s+|--[^\n]*|/\*.*?\*/|\()+", re.DOTALL)
_KEYWORD = re.compile(r"[A-Za-z]+")


def leading_keyword(query_text: str) -> str:
    """Return the statement's first keyword, upper-cased, or "" if none."""
    noise = _LEADING_NOISE.match(query_text)
    start = noise.end() if noise else 0
    keyword = _KEYWORD.match(query_text, start)
    return keyword.group().upper() if keyword else ""


def column_header_in_first_page(query_text: str) -> bool:
    """SELECT results repeat the column names as the first row of page one."""
    return leading_keyword(query_text) in ("SELECT", "WITH")


def is_insert_statement(query_text: str) -> bool:
    return leading_keyword(query_text) == "INSERT"


def _is_header_row(
    row: tuple[str | None, ...], columns: tuple[ColumnInfo, ...]
) -> bool:
    return bool(columns) and row == tuple(col.name for col in columns)


def _parse_state(value: str | None) -> QueryState:
    try:
        return QueryState(value or "")
    except ValueError:
        return QueryState.RUNNING


class AthenaQueryService:
    """RemoteQueryService backed by the boto3 Athena client."""

    def __init__(
        self,
        *,
        region: str | None = None,
        workgroup: str | None = None,
        catalog: str | None = None,
        database: str | None = None,
        output_location: str | None = None,
        page_size: int = MAX_PAGE_SIZE,
        client: Any = None,
    ) -> None:
        self._client = client or boto3.client("athena", region_name=region)
        self.workgroup = workgroup
        self.catalog = catalog
        self.database = database
        self.output_location = output_location
        self.page_size = max(1, min(page_size, MAX_PAGE_SIZE))
        # Query text by execution id, kept until its first page is read.
        self._submitted: dict[str, str] = {}

    def _call(self, operation: str, **kwargs: Any) -> dict[str, Any]:
        try:
            return getattr(self._client, operation)(**kwargs)
        except (BotoCoreError, ClientError) as e:
            msg = f"Athena {operation} failed: {e}"
            raise NetworkError(msg) from e

    def submit(self, query_text: str) -> str:
        kwargs: dict[str, Any] = {"QueryString": query_text}
        context = {}
        if self.database:
            context["Database"] = self.database
        if self.catalog:
            context["Catalog"] = self.catalog
        if context:
            kwargs["QueryExecutionContext"] = context
        if self.workgroup:
            kwargs["WorkGroup"] = self.workgroup
        if self.output_location:
            kwargs["ResultConfiguration"] = {"OutputLocation": self.output_location}
        response = self._call("start_query_execution", **kwargs)
        execution_id = response["QueryExecutionId"]
        self._submitted[execution_id] = query_text
        return execution_id

    def _describe(self, execution_id: str) -> dict[str, Any]:
        response = self._call("get_query_execution", QueryExecutionId=execution_id)
        return response["QueryExecution"]

    def get_status(self, execution_id: str) -> StatusObservation:
        execution = self._describe(execution_id)
        status = execution.get("Status", {})
        stats = execution.get("Statistics", {})
        state = _parse_state(status.get("State"))
        if state in (QueryState.FAILED, QueryState.CANCELLED):
            self._submitted.pop(execution_id, None)
        return StatusObservation(
            state=state,
            statement_type=StatementType.parse(execution.get("StatementType")),
            statistics=QueryStatistics(
                bytes_scanned=stats.get("DataScannedInBytes"),
                engine_execution_ms=stats.get("EngineExecutionTimeInMillis"),
            ),
            failure_reason=status.get("StateChangeReason"),
        )

    def get_results_page(
        self, execution_id: str, page_token: str | None
    ) -> ResultPage:
        log = structlog.get_logger()
        kwargs: dict[str, Any] = {
            "QueryExecutionId": execution_id,
            "MaxResults": self.page_size,
        }
        if page_token:
            kwargs["NextToken"] = page_token
        response = self._call("get_query_results", **kwargs)
        result_set = response.get("ResultSet", {})
        metadata = result_set.get("ResultSetMetadata", {}).get("ColumnInfo", [])
        columns = tuple(
            ColumnInfo(name=col.get("Name", ""), type_name=col.get("Type", ""))
            for col in metadata
        )
        rows = [
            tuple(datum.get("VarCharValue") for datum in row.get("Data", []))
            for row in result_set.get("Rows", [])
        ]
        if page_token is None:
            query_text = self._submitted.pop(execution_id, None)
            if rows and _is_header_row(rows[0], columns):
                if query_text is None:
                    query_text = self._describe(execution_id).get("Query", "")
                if column_header_in_first_page(query_text):
                    rows = rows[1:]
        log.debug(
            "fetched result page",
            query_execution_id=execution_id,
            row_count=len(rows),
            has_next=bool(response.get("NextToken")),
        )
        return ResultPage(
            columns=columns, rows=tuple(rows), next_token=response.get("NextToken")
        )

    def cancel(self, execution_id: str) -> None:
        self._submitted.pop(execution_id, None)
        self._call("stop_query_execution", QueryExecutionId=execution_id)
