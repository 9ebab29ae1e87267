"""Tests for parameter normalization and literal interpolation."""

from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from athena_sql.core.exceptions import (
    InputError,
    ParameterMismatchError,
    UnsupportedParameterError,
)
from athena_sql.core.models import NamedValue
from athena_sql.core.parameters import (
    interpolate,
    named_values_from_values,
    normalize_parameters,
    render_literal,
    values_from_named_values,
)


class _Opaque:
    def __init__(self, s: str) -> None:
        self.s = s


@pytest.mark.unit
class TestNamedValueConversion:
    def test_values_get_ordinals_from_one(self):
        named = named_values_from_values([_Opaque("abc")])
        assert len(named) == 1
        assert named[0].name == ""
        assert named[0].ordinal == 1
        assert named[0].value.s == "abc"

    def test_ordinals_follow_position(self):
        named = named_values_from_values(["a", "b", "c"])
        assert [nv.ordinal for nv in named] == [1, 2, 3]

    def test_named_values_to_values_keeps_order(self):
        named = [
            NamedValue(name="abc", ordinal=1, value=10),
            NamedValue(name="", ordinal=2, value=None),
        ]
        assert values_from_named_values(named) == [10, None]

    def test_named_value_without_value(self):
        assert len(values_from_named_values([NamedValue(name="abc", ordinal=1)])) == 1

    def test_ordinal_must_be_positive(self):
        with pytest.raises(ValueError):
            NamedValue(ordinal=0, value=1)


@pytest.mark.unit
class TestNormalizeParameters:
    def test_none(self):
        assert normalize_parameters(None) == []

    def test_sequence(self):
        named = normalize_parameters([1, "x"])
        assert [(nv.name, nv.ordinal, nv.value) for nv in named] == [
            ("", 1, 1),
            ("", 2, "x"),
        ]

    def test_mapping(self):
        named = normalize_parameters({"day": "2024-01-01", "n": 3})
        assert [(nv.name, nv.ordinal) for nv in named] == [("day", 1), ("n", 2)]

    def test_mixed_named_values_kept(self):
        nv = NamedValue(name="x", ordinal=2, value=5)
        named = normalize_parameters([1, nv])
        assert named[1] is nv
        assert named[0].ordinal == 1

    def test_string_rejected(self):
        with pytest.raises(ParameterMismatchError):
            normalize_parameters("abc")


@pytest.mark.unit
class TestRenderLiteral:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (None, "NULL"),
            (True, "TRUE"),
            (False, "FALSE"),
            (42, "42"),
            (-7, "-7"),
            (1.5, "1.5"),
            (float("nan"), "nan()"),
            (float("inf"), "infinity()"),
            (float("-inf"), "-infinity()"),
            (Decimal("12.50"), "DECIMAL '12.50'"),
            ("plain", "'plain'"),
            ("it's", "'it\\'s'"),
            (b"\x01\xab", "X'01AB'"),
            (date(2024, 1, 2), "DATE '2024-01-02'"),
            (time(3, 4, 5, 6000), "TIME '03:04:05.006'"),
        ],
    )
    def test_literals(self, value, expected):
        assert render_literal(value) == expected

    def test_naive_timestamp(self):
        value = datetime(2024, 1, 2, 3, 4, 5, 123456)
        assert render_literal(value) == "TIMESTAMP '2024-01-02 03:04:05.123'"

    def test_timestamp_with_named_zone(self):
        value = datetime(2024, 1, 2, 3, 4, 5, tzinfo=ZoneInfo("Europe/Berlin"))
        assert render_literal(value) == "TIMESTAMP '2024-01-02 03:04:05.000 Europe/Berlin'"

    def test_timestamp_with_fixed_offset(self):
        value = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone(timedelta(hours=-5)))
        assert render_literal(value) == "TIMESTAMP '2024-01-02 03:04:05.000 -05:00'"

    def test_non_finite_decimal_rejected(self):
        with pytest.raises(UnsupportedParameterError):
            render_literal(Decimal("NaN"))

    def test_unsupported_type(self):
        with pytest.raises(UnsupportedParameterError, match="_Opaque"):
            render_literal(_Opaque("x"))

    def test_unsupported_is_input_error(self):
        with pytest.raises(InputError):
            render_literal(object())


@pytest.mark.unit
class TestInterpolate:
    def test_no_params_returns_template(self):
        sql = "SELECT '?' , ? FROM t"
        assert interpolate(sql) == sql
        assert interpolate(sql, []) == sql

    def test_positional(self):
        assert (
            interpolate("SELECT * FROM t WHERE a = ? AND b = ?", [1, "x"])
            == "SELECT * FROM t WHERE a = 1 AND b = 'x'"
        )

    def test_named(self):
        assert (
            interpolate("SELECT :day, :day AS again", {"day": date(2024, 1, 1)})
            == "SELECT DATE '2024-01-01', DATE '2024-01-01' AS again"
        )

    def test_placeholders_in_strings_untouched(self):
        sql = "SELECT '?', \"col?\", ':name' FROM t WHERE x = ?"
        assert interpolate(sql, [5]) == "SELECT '?', \"col?\", ':name' FROM t WHERE x = 5"

    def test_placeholders_in_comments_untouched(self):
        sql = "SELECT ? -- what about ?\nFROM t"
        assert interpolate(sql, [1]) == "SELECT 1 -- what about ?\nFROM t"

    def test_placeholders_in_block_comments_untouched(self):
        sql = "SELECT /* why? :reason */ ?"
        assert interpolate(sql, [1]) == "SELECT /* why? :reason */ 1"

    def test_multiline_block_comment_untouched(self):
        sql = "SELECT :v /* first ?\n second :w */ FROM t"
        assert interpolate(sql, {"v": "a"}) == "SELECT 'a' /* first ?\n second :w */ FROM t"

    def test_cast_operator_is_not_a_name(self):
        sql = "SELECT x::varchar, :v"
        assert interpolate(sql, {"v": "a"}) == "SELECT x::varchar, 'a'"

    def test_escaped_value(self):
        assert interpolate("SELECT ?", ["O'Brien"]) == "SELECT 'O\\'Brien'"

    def test_too_few_params(self):
        with pytest.raises(ParameterMismatchError, match="more '\\?' placeholders"):
            interpolate("SELECT ?, ?", [1])

    def test_too_many_params(self):
        with pytest.raises(ParameterMismatchError, match="1 '\\?' placeholders"):
            interpolate("SELECT ?", [1, 2])

    def test_unknown_name(self):
        with pytest.raises(ParameterMismatchError, match=":missing"):
            interpolate("SELECT :missing", {"other": 1})
