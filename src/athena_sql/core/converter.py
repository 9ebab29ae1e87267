"""Column type classification and value conversion.

The service reports every field as text plus a declared type name per
column. classify() maps the type name onto a closed set of categories and is
total: names it does not know (future types, typos, empty strings) fall into
UNKNOWN and are passed through as raw text.

sample_value() produces one valid literal per type, used to synthesize rows
without a live query.
"""

from __future__ import annotations

import random
import re
import struct
import sys
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal, InvalidOperation
from enum import StrEnum
from typing import TYPE_CHECKING, Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from athena_sql.core.exceptions import DataConversionError

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from athena_sql.core.models import ColumnInfo, Row


class TypeCategory(StrEnum):
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    DATE = "date"
    TIME = "time"
    TIME_TZ = "time_tz"
    TIMESTAMP = "timestamp"
    TIMESTAMP_TZ = "timestamp_tz"
    TEXT = "text"
    BINARY = "binary"
    COMPOSITE = "composite"
    INTERVAL = "interval"
    UNKNOWN = "unknown"


_CATEGORIES: dict[str, TypeCategory] = {
    "tinyint": TypeCategory.INT8,
    "smallint": TypeCategory.INT16,
    "integer": TypeCategory.INT32,
    "int": TypeCategory.INT32,
    "bigint": TypeCategory.INT64,
    "float": TypeCategory.FLOAT32,
    "real": TypeCategory.FLOAT32,
    "double": TypeCategory.FLOAT64,
    "decimal": TypeCategory.DECIMAL,
    "boolean": TypeCategory.BOOLEAN,
    "date": TypeCategory.DATE,
    "time": TypeCategory.TIME,
    "time with time zone": TypeCategory.TIME_TZ,
    "timestamp": TypeCategory.TIMESTAMP,
    "timestamp with time zone": TypeCategory.TIMESTAMP_TZ,
    "string": TypeCategory.TEXT,
    "char": TypeCategory.TEXT,
    "varchar": TypeCategory.TEXT,
    "json": TypeCategory.TEXT,
    "ipaddress": TypeCategory.TEXT,
    "uuid": TypeCategory.TEXT,
    "binary": TypeCategory.BINARY,
    "varbinary": TypeCategory.BINARY,
    "struct": TypeCategory.COMPOSITE,
    "row": TypeCategory.COMPOSITE,
    "array": TypeCategory.COMPOSITE,
    "map": TypeCategory.COMPOSITE,
    "interval year to month": TypeCategory.INTERVAL,
    "interval day to second": TypeCategory.INTERVAL,
}

# "decimal(10,2)" -> "decimal", "timestamp(3) with time zone" -> "timestamp with time zone"
_TYPE_PARAMS = re.compile(r"\s*\(.*\)")


def _base_type_name(type_name: str) -> str:
    name = _TYPE_PARAMS.sub("", type_name.strip().lower(), count=1)
    name = name.split("<", 1)[0]
    return " ".join(name.split())


def classify(type_name: str | None) -> TypeCategory:
    """Map a declared type name to its category. Never raises."""
    if not type_name:
        return TypeCategory.UNKNOWN
    return _CATEGORIES.get(_base_type_name(type_name), TypeCategory.UNKNOWN)


def _parse_bool(text: str) -> bool:
    lowered = text.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    raise ValueError(text)


def _parse_zone(name: str) -> Any:
    if name.upper() in ("UTC", "Z"):
        return timezone.utc
    if name[:1] in "+-":
        sign = -1 if name[0] == "-" else 1
        hours, _, minutes = name[1:].partition(":")
        return timezone(sign * timedelta(hours=int(hours), minutes=int(minutes or 0)))
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"unknown time zone {name!r}") from e


def _split_zone(text: str) -> tuple[str, Any]:
    stamp, sep, zone = text.strip().rpartition(" ")
    if not sep:
        raise ValueError(f"missing time zone in {text!r}")
    return stamp, _parse_zone(zone)


def _parse_timestamp(text: str) -> datetime:
    return datetime.fromisoformat(text.strip().replace(" ", "T", 1))


def _parse_timestamp_tz(text: str) -> datetime:
    stamp, zone = _split_zone(text)
    return _parse_timestamp(stamp).replace(tzinfo=zone)


def _parse_time_tz(text: str) -> time:
    stamp, zone = _split_zone(text)
    return time.fromisoformat(stamp).replace(tzinfo=zone)


def _parse_binary(text: str) -> bytes:
    # Athena renders varbinary as space separated hex pairs: "61 62 63"
    return bytes.fromhex(text)


_PARSERS: dict[TypeCategory, Callable[[str], Any]] = {
    TypeCategory.INT8: int,
    TypeCategory.INT16: int,
    TypeCategory.INT32: int,
    TypeCategory.INT64: int,
    TypeCategory.FLOAT32: float,
    TypeCategory.FLOAT64: float,
    TypeCategory.DECIMAL: Decimal,
    TypeCategory.BOOLEAN: _parse_bool,
    TypeCategory.DATE: lambda text: date.fromisoformat(text.strip()),
    TypeCategory.TIME: lambda text: time.fromisoformat(text.strip()),
    TypeCategory.TIME_TZ: _parse_time_tz,
    TypeCategory.TIMESTAMP: _parse_timestamp,
    TypeCategory.TIMESTAMP_TZ: _parse_timestamp_tz,
    TypeCategory.BINARY: _parse_binary,
}


def convert_value(type_name: str | None, text: str | None) -> Any:
    """Convert one field's text to the Python value for its column type.

    NULL stays None. Textual, composite, interval and unknown types return
    the text unmodified. Malformed text for a typed column raises
    DataConversionError.
    """
    if text is None:
        return None
    category = classify(type_name)
    parser = _PARSERS.get(category)
    if parser is None:
        return text
    try:
        return parser(text)
    except (ValueError, ArithmeticError, InvalidOperation) as e:
        msg = f"Cannot convert {text!r} to {type_name}: {e}"
        raise DataConversionError(msg) from e


def convert_row(columns: Sequence[ColumnInfo], row: Row) -> tuple[Any, ...]:
    return tuple(
        convert_value(col.type_name, field)
        for col, field in zip(columns, row, strict=True)
    )


_FLOAT32_MIN = struct.unpack("<f", struct.pack("<I", 0x00800000))[0]
_FLOAT32_MAX = struct.unpack("<f", struct.pack("<I", 0x7F7FFFFF))[0]

_INT_RANGES: dict[TypeCategory, tuple[int, int]] = {
    TypeCategory.INT8: (-(2**7), 2**7 - 1),
    TypeCategory.INT16: (-(2**15), 2**15 - 1),
    TypeCategory.INT32: (-(2**31), 2**31 - 1),
    TypeCategory.INT64: (0, 2**64 - 1),
}

_FLOAT_RANGES: dict[TypeCategory, tuple[float, float]] = {
    TypeCategory.FLOAT32: (_FLOAT32_MIN, _FLOAT32_MAX),
    TypeCategory.FLOAT64: (sys.float_info.min, sys.float_info.max),
}

_FIXED_SAMPLES: dict[TypeCategory, str] = {
    TypeCategory.DECIMAL: "1.23",
    TypeCategory.BOOLEAN: "true",
    TypeCategory.DATE: "2020-01-01",
    TypeCategory.TIME: "12:34:56.789",
    TypeCategory.TIME_TZ: "12:34:56.789 UTC",
    TypeCategory.TIMESTAMP: "2020-01-01 12:34:56.789",
    TypeCategory.TIMESTAMP_TZ: "2020-01-01 12:34:56.789 UTC",
    TypeCategory.TEXT: "a",
    TypeCategory.BINARY: "61 62",
    TypeCategory.COMPOSITE: "[a, b]",
    TypeCategory.INTERVAL: "0 00:00:01.000",
}

_DEFAULT_SAMPLE = "a\tb"


def sample_value(type_name: str | None, rng: random.Random | None = None) -> str:
    """Return one valid textual literal for the given column type.

    Integers are drawn uniformly from the full range of their width and
    floats from [smallest normal, max] of their precision; other types get a
    fixed literal.
    """
    rng = rng or random.Random()
    category = classify(type_name)
    if category in _INT_RANGES:
        low, high = _INT_RANGES[category]
        return str(rng.randint(low, high))
    if category in _FLOAT_RANGES:
        low, high = _FLOAT_RANGES[category]
        return repr(rng.uniform(low, high))
    return _FIXED_SAMPLES.get(category, _DEFAULT_SAMPLE)


def random_row(columns: Sequence[ColumnInfo], rng: random.Random | None = None) -> Row:
    rng = rng or random.Random()
    return tuple(sample_value(col.type_name, rng) for col in columns)
