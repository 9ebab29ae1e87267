"""PEP 249 (DB-API 2.0) interface.

Example:
    >>> import athena_sql.dbapi as athena
    >>> with athena.connect(workgroup="analytics") as conn:
    ...     cur = conn.cursor()
    ...     cur.execute("SELECT * FROM events WHERE day = ?", ["2024-01-01"])
    ...     rows = cur.fetchall()

The service has no transactions: commit() is a no-op and rollback() is not
provided.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any

from athena_sql.core.client import AthenaClient
from athena_sql.core.config import load_config, resolve_config
from athena_sql.core.exceptions import (
    AthenaSqlError,
    DataConversionError,
    InterfaceError,
    NetworkError,
    ParameterMismatchError,
    QueryError,
    ResultShapeError,
)
from athena_sql.core.execution import DEFAULT_POLL_INTERVAL

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping, Sequence

    from athena_sql.core.client import QueryHandle
    from athena_sql.core.config import ResolvedConfig
    from athena_sql.core.service import RemoteQueryService

apilevel = "2.0"
threadsafety = 1
paramstyle = "qmark"

Error = AthenaSqlError
DatabaseError = QueryError
OperationalError = NetworkError
ProgrammingError = ParameterMismatchError
DataError = DataConversionError
InternalError = ResultShapeError

__all__ = [
    "Connection",
    "Cursor",
    "DataError",
    "DatabaseError",
    "Error",
    "InterfaceError",
    "InternalError",
    "OperationalError",
    "ProgrammingError",
    "apilevel",
    "connect",
    "paramstyle",
    "threadsafety",
]


def connect(
    service: RemoteQueryService | None = None,
    *,
    config: ResolvedConfig | None = None,
    profile: str | None = None,
    timeout: float | None = None,
    poll_interval: float | None = None,
    **overrides: Any,
) -> Connection:
    """Open a connection.

    Pass a ready RemoteQueryService, or let the connection build an Athena
    service from config: an explicit ResolvedConfig, or the config file and
    environment resolved with ``profile`` and keyword ``overrides``
    (region, workgroup, catalog, database, output_location).
    """
    if service is not None:
        client = AthenaClient(
            service,
            poll_interval=DEFAULT_POLL_INTERVAL if poll_interval is None else poll_interval,
            timeout=timeout,
        )
        return Connection(client)

    if config is None:
        config = resolve_config(
            load_config(),
            profile_name=profile,
            poll_interval=poll_interval,
            **overrides,
        )
    return Connection(AthenaClient.from_config(config, timeout=timeout))


class Connection:
    def __init__(self, client: AthenaClient) -> None:
        self.client = client
        self.closed = False

    def __enter__(self) -> Connection:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def cursor(self) -> Cursor:
        if self.closed:
            raise InterfaceError("Connection is closed")
        return Cursor(self)

    def commit(self) -> None:
        """No-op: the service has no transactions."""

    def close(self) -> None:
        if not self.closed:
            self.client.close()
            self.closed = True


class Cursor:
    """Cursor returning typed rows.

    ``description`` is available once execute() returns; the first result
    page is fetched eagerly to learn the columns, later pages on demand.
    """

    def __init__(self, connection: Connection) -> None:
        self.connection = connection
        self.arraysize = 1
        self.rowcount = -1
        self.description: list[tuple[Any, ...]] | None = None
        self.closed = False
        self._handle: QueryHandle | None = None
        self._rows: Iterator[tuple[Any, ...]] = iter(())
        self._buffered: list[tuple[Any, ...]] = []
        self._cancel_event: threading.Event | None = None

    def __enter__(self) -> Cursor:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def __iter__(self) -> Iterator[tuple[Any, ...]]:
        while (row := self.fetchone()) is not None:
            yield row

    @property
    def query_execution_id(self) -> str | None:
        return self._handle.query_execution_id if self._handle is not None else None

    @property
    def cost_report(self) -> str | None:
        return self._handle.cost_report if self._handle is not None else None

    def _check_open(self) -> None:
        if self.closed or self.connection.closed:
            raise InterfaceError("Cursor is closed")

    def _release(self) -> None:
        if self._handle is not None:
            self.connection.client.close_handle(self._handle)
        self._handle = None
        self._rows = iter(())
        self._buffered = []
        self.description = None
        self.rowcount = -1

    def execute(
        self,
        operation: str,
        parameters: Sequence[Any] | Mapping[str, Any] | None = None,
    ) -> Cursor:
        self._check_open()
        self._release()
        client = self.connection.client
        query_text = client.prepare(operation, parameters)
        self._cancel_event = threading.Event()
        self._handle = client.execute(query_text, cancel_event=self._cancel_event)
        self._rows = client.fetch_rows(self._handle)

        first = next(self._rows, None)
        if first is not None:
            self._buffered.append(first)
        columns = self._handle.materializer.columns
        if columns:
            self.description = [
                (col.name, col.type_name, None, None, None, None, None)
                for col in columns
            ]
        return self

    def executemany(
        self,
        operation: str,
        seq_of_parameters: Sequence[Sequence[Any] | Mapping[str, Any]],
    ) -> None:
        for parameters in seq_of_parameters:
            self.execute(operation, parameters)

    def fetchone(self) -> tuple[Any, ...] | None:
        self._check_open()
        if self._buffered:
            return self._buffered.pop(0)
        return next(self._rows, None)

    def fetchmany(self, size: int | None = None) -> list[tuple[Any, ...]]:
        size = self.arraysize if size is None else size
        rows = []
        for _ in range(size):
            row = self.fetchone()
            if row is None:
                break
            rows.append(row)
        return rows

    def fetchall(self) -> list[tuple[Any, ...]]:
        return list(self)

    def cancel(self) -> None:
        """Cancel the executing query; safe to call from another thread."""
        if self._cancel_event is not None:
            self._cancel_event.set()

    def setinputsizes(self, sizes: Any) -> None:
        pass

    def setoutputsize(self, size: Any, column: Any = None) -> None:
        pass

    def close(self) -> None:
        if not self.closed:
            self._release()
            self.closed = True
