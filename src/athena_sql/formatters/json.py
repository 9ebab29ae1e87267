"""JSON output.

Fields are converted to their column types first. The default layout is an
indented array of objects, written one object at a time; compact output is
one JSON object per line.
"""

from __future__ import annotations

import json
import math
from datetime import date, time
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from athena_sql.core.converter import convert_row
from athena_sql.formatters.base import FormatOptions, registry

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence

    from athena_sql.core.models import ColumnInfo, Row

_INDENT = "  "


def _json_value(val: Any) -> Any:
    if isinstance(val, float) and not math.isfinite(val):
        if math.isnan(val):
            return "NaN"
        return "Infinity" if val > 0 else "-Infinity"
    if isinstance(val, Decimal):
        return str(val)
    if isinstance(val, bytes):
        return val.hex()
    if isinstance(val, (date, time)):
        return val.isoformat()
    return val


@registry.register("json")
class JSONFormatter:
    def __init__(self, options: FormatOptions | None = None) -> None:
        self.options = options or FormatOptions()

    def _objects(
        self, columns: Sequence[ColumnInfo], rows: Iterable[Row]
    ) -> Iterator[dict[str, Any]]:
        names = [col.name for col in columns]
        for row in rows:
            values = convert_row(columns, row)
            yield {name: _json_value(v) for name, v in zip(names, values, strict=True)}

    def format(
        self, columns: Sequence[ColumnInfo], rows: Iterable[Row]
    ) -> Iterator[str]:
        objects = self._objects(columns, rows)
        if self.options.compact:
            for obj in objects:
                yield json.dumps(obj, separators=(",", ":"), default=str) + "\n"
            return

        pending = next(objects, None)
        if pending is None:
            yield "[]\n"
            return
        yield "[\n"
        while pending is not None:
            following = next(objects, None)
            text = json.dumps(pending, indent=2, default=str)
            block = "\n".join(_INDENT + line for line in text.splitlines())
            yield block + ("," if following is not None else "") + "\n"
            pending = following
        yield "]\n"
