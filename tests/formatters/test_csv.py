"""Tests for CSVFormatter."""

import pytest

from athena_sql.core.models import ColumnInfo
from athena_sql.formatters.base import FormatOptions, Formatter
from athena_sql.formatters.csv import CSVFormatter

COLUMNS = [
    ColumnInfo(name="one", type_name="integer"),
    ColumnInfo(name="two", type_name="varchar"),
    ColumnInfo(name="three", type_name="boolean"),
]


def _format(rows, columns=COLUMNS, **options):
    return list(CSVFormatter(FormatOptions(**options)).format(columns, iter(rows)))


@pytest.mark.unit
def test_csv_formatter_implements_protocol():
    assert isinstance(CSVFormatter(), Formatter)


@pytest.mark.unit
def test_header_and_rows():
    assert _format([("1", "2", "true")]) == ["one,two,three\n", "1,2,true\n"]


@pytest.mark.unit
def test_no_header():
    assert _format([("1", "2", "false")], header=False) == ["1,2,false\n"]


@pytest.mark.unit
def test_null_is_empty_field():
    assert _format([(None, None, None)])[1] == ",,\n"


@pytest.mark.unit
def test_field_text_passed_through_unchanged():
    columns = [ColumnInfo(name="d", type_name="date"), ColumnInfo(name="n", type_name="decimal")]
    assert _format([("2024-01-02", "1.50")], columns, header=False) == ["2024-01-02,1.50\n"]


@pytest.mark.unit
def test_empty_result_keeps_header():
    assert _format([]) == ["one,two,three\n"]


@pytest.mark.unit
def test_no_columns_no_output():
    assert _format([], columns=[]) == []


@pytest.mark.unit
def test_rows_are_consumed_lazily():
    consumed = []

    def rows():
        for i in range(3):
            consumed.append(i)
            yield (str(i), "x", "true")

    lines = CSVFormatter().format(COLUMNS, rows())
    assert next(lines) == "one,two,three\n"
    assert consumed == []
    assert next(lines) == "0,x,true\n"
    assert consumed == [0]
