"""Synchronous client over the asynchronous query service.

AthenaClient is the surface a SQL driver sits on: prepare a query with
inlined parameters, execute it (blocking until a terminal state), then
stream its rows. Each execution is represented by a QueryHandle owning the
controller and the single-pass result stream.
"""

from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any

import structlog

from athena_sql.core.exceptions import InterfaceError
from athena_sql.core.execution import DEFAULT_POLL_INTERVAL, ExecutionController
from athena_sql.core.materializer import ResultMaterializer
from athena_sql.core.models import QueryResult
from athena_sql.core.parameters import interpolate
from athena_sql.core.service import AthenaQueryService

if TYPE_CHECKING:
    from collections.abc import Generator, Iterator, Mapping, Sequence

    from athena_sql.core.config import ResolvedConfig
    from athena_sql.core.models import QueryExecution, ResultPage, Row
    from athena_sql.core.service import RemoteQueryService


class QueryHandle:
    """One executed query and its not-yet-consumed result stream."""

    def __init__(self, controller: ExecutionController) -> None:
        self.controller = controller
        self.materializer = ResultMaterializer()
        self.closed = False
        self._stream: Generator[Any, None, None] | None = None

    @property
    def query_execution_id(self) -> str | None:
        return self.controller.execution_id

    @property
    def execution(self) -> QueryExecution:
        return self.controller.execution

    @property
    def cost_report(self) -> str | None:
        return self.controller.cost_report

    def open_pages(self) -> Iterator[ResultPage]:
        if self.closed:
            raise InterfaceError("Query handle is closed")
        return self.controller.iter_pages()

    def track(self, stream: Generator[Any, None, None]) -> Generator[Any, None, None]:
        self._stream = stream
        return stream

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self._stream is not None:
            self._stream.close()
            self._stream = None


class AthenaClient:
    """Blocking query client.

    Args:
        service: The remote query service.
        poll_interval: Seconds between status polls.
        timeout: Optional client-side limit in seconds for each execution;
            when reached the query is cancelled and reported as timed out.
    """

    def __init__(
        self,
        service: RemoteQueryService,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        timeout: float | None = None,
    ) -> None:
        self.service = service
        self.poll_interval = poll_interval
        self.timeout = timeout
        self._handles: list[QueryHandle] = []

    @classmethod
    def from_config(
        cls, config: ResolvedConfig, timeout: float | None = None
    ) -> AthenaClient:
        service = AthenaQueryService(
            region=config.region,
            workgroup=config.workgroup,
            catalog=config.catalog,
            database=config.database,
            output_location=config.output_location,
        )
        return cls(service, poll_interval=config.poll_interval, timeout=timeout)

    def __enter__(self) -> AthenaClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def prepare(
        self,
        query_template: str,
        parameters: Sequence[Any] | Mapping[str, Any] | None = None,
    ) -> str:
        """Return the finished query text with parameters inlined."""
        return interpolate(query_template, parameters)

    def execute(
        self, query_text: str, cancel_event: threading.Event | None = None
    ) -> QueryHandle:
        """Run a query to completion and return its handle.

        Raises QueryFailed, QueryCancelled or QueryTimedOut when the query
        does not succeed, SubmissionError or PollError on transport failure.
        """
        deadline: datetime | None = None
        if self.timeout is not None:
            deadline = datetime.now(timezone.utc) + timedelta(seconds=self.timeout)
        controller = ExecutionController(
            self.service,
            poll_interval=self.poll_interval,
            deadline=deadline,
            cancel_event=cancel_event,
        )
        controller.run(query_text)
        handle = QueryHandle(controller)
        self._handles.append(handle)
        return handle

    def fetch_rows(self, handle: QueryHandle) -> Iterator[tuple[Any, ...]]:
        """Lazily yield typed rows, fetching pages as the previous one runs out."""
        pages = handle.open_pages()
        return handle.track(self._typed_rows(handle.materializer, pages))

    def fetch_raw_rows(self, handle: QueryHandle) -> Iterator[Row]:
        """Lazily yield rows as the service returned them, None for NULL."""
        pages = handle.open_pages()
        return handle.track(self._raw_rows(handle.materializer, pages))

    def fetch_text(self, handle: QueryHandle, header: bool = True) -> Iterator[str]:
        """Lazily yield CSV lines; the header appears once for the whole stream."""
        pages = handle.open_pages()
        return handle.track(self._text_lines(handle.materializer, pages, header))

    def fetch_result(self, handle: QueryHandle) -> QueryResult:
        """Materialize every row in memory."""
        log = structlog.get_logger()
        rows = list(self.fetch_rows(handle))
        execution = handle.execution
        log.debug("result materialized", query_execution_id=execution.id, row_count=len(rows))
        return QueryResult(
            query_execution_id=execution.id,
            columns=list(handle.materializer.columns),
            rows=rows,
            row_count=len(rows),
            bytes_scanned=execution.statistics.bytes_scanned,
        )

    def close_handle(self, handle: QueryHandle) -> None:
        handle.close()
        if handle in self._handles:
            self._handles.remove(handle)

    def close(self) -> None:
        for handle in list(self._handles):
            self.close_handle(handle)

    @staticmethod
    def _raw_rows(
        materializer: ResultMaterializer, pages: Iterator[ResultPage]
    ) -> Generator[Row, None, None]:
        for page in pages:
            yield from materializer.raw_rows(page)

    @staticmethod
    def _typed_rows(
        materializer: ResultMaterializer, pages: Iterator[ResultPage]
    ) -> Generator[tuple[Any, ...], None, None]:
        for page in pages:
            yield from materializer.typed_rows(page)

    @staticmethod
    def _text_lines(
        materializer: ResultMaterializer, pages: Iterator[ResultPage], header: bool
    ) -> Generator[str, None, None]:
        for page in pages:
            yield from materializer.text_lines(page, with_header=header)
