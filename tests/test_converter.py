"""Tests for type classification, value conversion and sample generation."""

import math
import random
import struct
import sys
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal

import pytest

from athena_sql.core.converter import (
    TypeCategory,
    classify,
    convert_row,
    convert_value,
    random_row,
    sample_value,
)
from athena_sql.core.exceptions import DataConversionError
from athena_sql.core.models import ColumnInfo

ALL_TYPES = [
    "tinyint", "smallint", "integer", "bigint", "float", "real", "double",
    "json", "char", "varchar", "varbinary", "row", "string", "binary",
    "struct", "interval year to month", "interval day to second", "decimal",
    "ipaddress", "array", "map", "unknown", "boolean", "date", "time",
    "time with time zone", "timestamp with time zone", "timestamp", "weird_type",
]  # fmt: skip


@pytest.mark.unit
class TestClassify:
    @pytest.mark.parametrize(
        ("type_name", "category"),
        [
            ("tinyint", TypeCategory.INT8),
            ("smallint", TypeCategory.INT16),
            ("integer", TypeCategory.INT32),
            ("bigint", TypeCategory.INT64),
            ("float", TypeCategory.FLOAT32),
            ("real", TypeCategory.FLOAT32),
            ("double", TypeCategory.FLOAT64),
            ("decimal(10,2)", TypeCategory.DECIMAL),
            ("BOOLEAN", TypeCategory.BOOLEAN),
            ("varchar(255)", TypeCategory.TEXT),
            ("json", TypeCategory.TEXT),
            ("varbinary", TypeCategory.BINARY),
            ("array<integer>", TypeCategory.COMPOSITE),
            ("map(varchar, integer)", TypeCategory.COMPOSITE),
            ("row", TypeCategory.COMPOSITE),
            ("interval day to second", TypeCategory.INTERVAL),
            ("timestamp(3) with time zone", TypeCategory.TIMESTAMP_TZ),
            ("time with time zone", TypeCategory.TIME_TZ),
        ],
    )
    def test_known_types(self, type_name, category):
        assert classify(type_name) == category

    @pytest.mark.parametrize("type_name", ["weird_type", "unknown", "", None])
    def test_unknown_types(self, type_name):
        assert classify(type_name) == TypeCategory.UNKNOWN

    def test_every_listed_type_classifies(self):
        for type_name in ALL_TYPES:
            assert isinstance(classify(type_name), TypeCategory)


@pytest.mark.unit
class TestConvertValue:
    @pytest.mark.parametrize(
        ("type_name", "text", "expected"),
        [
            ("tinyint", "-5", -5),
            ("bigint", "18446744073709551615", 2**64 - 1),
            ("double", "1.25", 1.25),
            ("decimal(5,2)", "12.34", Decimal("12.34")),
            ("boolean", "true", True),
            ("boolean", "FALSE", False),
            ("date", "2024-02-29", date(2024, 2, 29)),
            ("time", "12:34:56.789", time(12, 34, 56, 789000)),
            ("timestamp", "2020-01-01 12:34:56.789", datetime(2020, 1, 1, 12, 34, 56, 789000)),
            ("varbinary", "61 62 63", b"abc"),
            ("varchar", "hello", "hello"),
            ("array<integer>", "[1, 2]", "[1, 2]"),
            ("interval day to second", "0 00:00:01.000", "0 00:00:01.000"),
            ("weird_type", "a\tb", "a\tb"),
        ],
    )
    def test_conversions(self, type_name, text, expected):
        assert convert_value(type_name, text) == expected

    def test_null_stays_none(self):
        assert convert_value("integer", None) is None
        assert convert_value("weird_type", None) is None

    def test_nan_double(self):
        assert math.isnan(convert_value("double", "NaN"))

    def test_timestamp_with_utc(self):
        value = convert_value("timestamp with time zone", "2020-01-01 12:34:56.789 UTC")
        assert value == datetime(2020, 1, 1, 12, 34, 56, 789000, tzinfo=timezone.utc)

    def test_timestamp_with_offset(self):
        value = convert_value("timestamp with time zone", "2020-01-01 12:00:00.000 +02:00")
        assert value.utcoffset() == timedelta(hours=2)

    def test_time_with_zone(self):
        value = convert_value("time with time zone", "12:34:56.789 UTC")
        assert value == time(12, 34, 56, 789000, tzinfo=timezone.utc)

    @pytest.mark.parametrize(
        ("type_name", "text"),
        [
            ("integer", "abc"),
            ("integer", "1.5"),
            ("double", "one"),
            ("decimal", "1,5"),
            ("boolean", "yes"),
            ("date", "2024-13-01"),
            ("timestamp with time zone", "2020-01-01 12:00:00"),
            ("varbinary", "zz"),
        ],
    )
    def test_malformed_text_raises(self, type_name, text):
        with pytest.raises(DataConversionError, match=type_name.split("(")[0]):
            convert_value(type_name, text)

    def test_convert_row(self):
        columns = [ColumnInfo(name="id", type_name="integer"), ColumnInfo(name="s", type_name="varchar")]
        assert convert_row(columns, ("7", None)) == (7, None)


def _float32_max() -> float:
    return struct.unpack("<f", struct.pack("<I", 0x7F7FFFFF))[0]


@pytest.mark.unit
class TestSampleValue:
    @pytest.mark.parametrize(
        ("type_name", "low", "high"),
        [
            ("tinyint", -128, 127),
            ("smallint", -(2**15), 2**15 - 1),
            ("integer", -(2**31), 2**31 - 1),
            ("bigint", 0, 2**64 - 1),
        ],
    )
    def test_integer_ranges(self, type_name, low, high):
        rng = random.Random(7)
        for _ in range(50):
            assert low <= int(sample_value(type_name, rng)) <= high

    def test_float32_range(self):
        rng = random.Random(7)
        for _ in range(50):
            value = float(sample_value("real", rng))
            assert 0 < value <= _float32_max()

    def test_float64_range(self):
        rng = random.Random(7)
        for _ in range(50):
            value = float(sample_value("double", rng))
            assert sys.float_info.min <= value <= sys.float_info.max

    def test_missing_type_uses_default_sample(self):
        assert sample_value(None) == "a\tb"
        assert sample_value("weird_type") == "a\tb"

    @pytest.mark.parametrize("type_name", ALL_TYPES)
    def test_samples_convert(self, type_name):
        text = sample_value(type_name, random.Random(1))
        convert_value(type_name, text)


@pytest.mark.unit
class TestRandomRow:
    def test_untyped_column(self):
        row = random_row([ColumnInfo(name="c1")])
        assert row == ("a\tb",)

    @pytest.mark.parametrize("type_name", ALL_TYPES)
    def test_one_field_per_column(self, type_name):
        row = random_row([ColumnInfo(name="c1", type_name=type_name)])
        assert len(row) == 1

    def test_seeded_rows_repeat(self):
        columns = [ColumnInfo(name="a", type_name="bigint"), ColumnInfo(name="b", type_name="double")]
        assert random_row(columns, random.Random(3)) == random_row(columns, random.Random(3))
