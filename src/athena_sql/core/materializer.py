"""Projection of paginated results into rows and CSV text.

Pages arrive one at a time from the query service. ResultMaterializer checks
each page's shape, converts fields to typed values, or projects them as
comma-separated text with the header emitted once per result stream.

The CSV projection does no quoting: fields are expected to be safe textual
representations already.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from athena_sql.core.converter import convert_row
from athena_sql.core.exceptions import ResultShapeError

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from athena_sql.core.models import ColumnInfo, ResultPage, Row

LINE_TERMINATOR = "\n"


def to_header_line(columns: Sequence[ColumnInfo]) -> str:
    if not columns:
        return ""
    return ",".join(col.name for col in columns) + LINE_TERMINATOR


def to_data_line(row: Row) -> str:
    return ",".join("" if field is None else field for field in row) + LINE_TERMINATOR


def to_full_text(columns: Sequence[ColumnInfo], rows: Sequence[Row]) -> str:
    return to_header_line(columns) + "".join(to_data_line(row) for row in rows)


class ResultMaterializer:
    """Per-stream state for turning result pages into caller-facing rows.

    One instance serves exactly one result stream; it remembers whether the
    header has been emitted and which columns the stream declared.
    """

    def __init__(self) -> None:
        self.columns: tuple[ColumnInfo, ...] = ()
        self.header_emitted = False
        self.rows_seen = 0

    def check_page(self, page: ResultPage) -> None:
        """Raise ResultShapeError if any row's arity differs from the columns."""
        if page.columns and not self.columns:
            self.columns = page.columns
        width = len(self.columns)
        for offset, row in enumerate(page.rows):
            if len(row) != width:
                msg = (
                    f"Row {self.rows_seen + offset + 1} has {len(row)} fields, "
                    f"expected {width}"
                )
                raise ResultShapeError(msg)

    def raw_rows(self, page: ResultPage) -> Iterator[Row]:
        self.check_page(page)
        for row in page.rows:
            self.rows_seen += 1
            yield tuple(row)

    def typed_rows(self, page: ResultPage) -> Iterator[tuple[Any, ...]]:
        self.check_page(page)
        for row in page.rows:
            self.rows_seen += 1
            yield convert_row(self.columns, row)

    def text_lines(self, page: ResultPage, with_header: bool = True) -> Iterator[str]:
        """Yield CSV lines for one page; the header only on the first call."""
        self.check_page(page)
        if with_header and not self.header_emitted:
            self.header_emitted = True
            header = to_header_line(self.columns)
            if header:
                yield header
        for row in page.rows:
            self.rows_seen += 1
            yield to_data_line(row)
