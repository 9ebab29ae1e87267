"""Tests for row projection and the header-once CSV stream."""

import pytest

from athena_sql.core.exceptions import ResultShapeError
from athena_sql.core.materializer import (
    ResultMaterializer,
    to_data_line,
    to_full_text,
    to_header_line,
)
from athena_sql.core.models import ColumnInfo, ResultPage

COLUMNS = (ColumnInfo(name="one"), ColumnInfo(name="two"), ColumnInfo(name="three"))


@pytest.mark.unit
class TestTextProjection:
    def test_header_line(self):
        assert to_header_line(COLUMNS) == "one,two,three\n"

    def test_header_without_columns(self):
        assert to_header_line(()) == ""

    def test_data_line(self):
        assert to_data_line(("1", "2", "3")) == "1,2,3\n"

    def test_null_renders_empty(self):
        assert to_data_line(("1", None, "3")) == "1,,3\n"

    def test_full_text(self):
        assert to_full_text(COLUMNS, [("1", "2", "3")]) == "one,two,three\n1,2,3\n"

    def test_full_text_no_rows(self):
        assert to_full_text(COLUMNS, []) == "one,two,three\n"

    def test_no_quoting(self):
        assert to_data_line(("a,b", "c")) == "a,b,c\n"


@pytest.mark.unit
class TestResultMaterializer:
    def test_header_emitted_once_across_pages(self):
        m = ResultMaterializer()
        first = ResultPage(columns=COLUMNS, rows=(("1", "2", "3"),), next_token="t")
        second = ResultPage(columns=COLUMNS, rows=(("4", "5", "6"),))
        lines = [*m.text_lines(first), *m.text_lines(second)]
        assert lines == ["one,two,three\n", "1,2,3\n", "4,5,6\n"]
        assert m.header_emitted
        assert m.rows_seen == 2

    def test_without_header(self):
        m = ResultMaterializer()
        page = ResultPage(columns=COLUMNS, rows=(("1", "2", "3"),))
        assert list(m.text_lines(page, with_header=False)) == ["1,2,3\n"]

    def test_header_for_empty_result(self):
        m = ResultMaterializer()
        assert list(m.text_lines(ResultPage(columns=COLUMNS))) == ["one,two,three\n"]

    def test_no_header_without_columns(self):
        m = ResultMaterializer()
        assert list(m.text_lines(ResultPage(columns=()))) == []

    def test_typed_rows(self):
        m = ResultMaterializer()
        columns = (ColumnInfo(name="n", type_name="integer"), ColumnInfo(name="s", type_name="varchar"))
        page = ResultPage(columns=columns, rows=(("1", "a"), (None, "b")))
        assert list(m.typed_rows(page)) == [(1, "a"), (None, "b")]
        assert m.columns == columns

    def test_raw_rows(self):
        m = ResultMaterializer()
        page = ResultPage(columns=COLUMNS, rows=(("1", None, "3"),))
        assert list(m.raw_rows(page)) == [("1", None, "3")]

    def test_arity_mismatch(self):
        m = ResultMaterializer()
        page = ResultPage(columns=COLUMNS, rows=(("1", "2"),))
        with pytest.raises(ResultShapeError, match="Row 1 has 2 fields, expected 3"):
            list(m.raw_rows(page))

    def test_arity_checked_against_first_page_columns(self):
        m = ResultMaterializer()
        list(m.raw_rows(ResultPage(columns=COLUMNS, rows=(("1", "2", "3"),))))
        with pytest.raises(ResultShapeError, match="Row 2"):
            list(m.raw_rows(ResultPage(columns=(), rows=(("x",),))))
