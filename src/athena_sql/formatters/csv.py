"""CSV output: the service's field text joined with commas, unquoted."""

from __future__ import annotations

from typing import TYPE_CHECKING

from athena_sql.core.materializer import to_data_line, to_header_line
from athena_sql.formatters.base import FormatOptions, registry

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence

    from athena_sql.core.models import ColumnInfo, Row


@registry.register("csv")
class CSVFormatter:
    def __init__(self, options: FormatOptions | None = None) -> None:
        self.options = options or FormatOptions()

    def format(
        self, columns: Sequence[ColumnInfo], rows: Iterable[Row]
    ) -> Iterator[str]:
        if self.options.header:
            header = to_header_line(columns)
            if header:
                yield header
        for row in rows:
            yield to_data_line(row)
