"""Parameter adaptation and literal interpolation.

Callers pass parameters positionally (``?`` placeholders) or by name
(``:name`` placeholders). Both are normalized to an ordered list of
NamedValue, then rendered as SQL literals straight into the query text
because the service cannot bind parameters itself.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from datetime import date, datetime, time
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from athena_sql.core.escaper import escape_string
from athena_sql.core.exceptions import ParameterMismatchError, UnsupportedParameterError
from athena_sql.core.models import NamedValue

if TYPE_CHECKING:
    from collections.abc import Sequence

# Quoted literals, quoted identifiers and comments are matched first so
# placeholders inside them are left alone.
_PLACEHOLDER = re.compile(
    r"(?P<squote>'(?:''|\\.|[^'\\])*')|"
    r'(?P<dquote>"(?:""|[^"])*")|'
    r"(?P<comment>--[^\n]*)|"
    r"(?P<bcomment>/\*.*?\*/)|"
    r"(?P<qmark>\?)|"
    r"(?<![:\w]):(?P<name>[A-Za-z_]\w*)",
    re.DOTALL,
)


def named_values_from_values(values: Sequence[Any]) -> list[NamedValue]:
    """Wrap plain values as unnamed NamedValues with ordinals 1..N."""
    return [
        NamedValue(name="", ordinal=i, value=value)
        for i, value in enumerate(values, start=1)
    ]


def values_from_named_values(named: Sequence[NamedValue]) -> list[Any]:
    return [nv.value for nv in named]


def normalize_parameters(
    params: Sequence[Any] | Mapping[str, Any] | None,
) -> list[NamedValue]:
    """Return the canonical ordered NamedValue list for any parameter shape.

    A mapping yields named values in insertion order. A sequence may mix
    plain values and NamedValues; plain values get their position as ordinal.
    """
    if params is None:
        return []
    if isinstance(params, Mapping):
        return [
            NamedValue(name=str(name), ordinal=i, value=value)
            for i, (name, value) in enumerate(params.items(), start=1)
        ]
    if isinstance(params, (str, bytes, bytearray)):
        msg = f"Parameters must be a sequence or mapping, not {type(params).__name__}"
        raise ParameterMismatchError(msg)
    return [
        item
        if isinstance(item, NamedValue)
        else NamedValue(name="", ordinal=i, value=item)
        for i, item in enumerate(params, start=1)
    ]


def _format_timestamp(value: datetime) -> str:
    text = value.strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
    if value.tzinfo is None:
        return text
    zone = getattr(value.tzinfo, "key", None)
    if zone:
        return f"{text} {zone}"
    return f"{text} {value.isoformat()[-6:]}"


def render_literal(value: Any) -> str:
    """Render a Python value as a SQL literal.

    Raises UnsupportedParameterError for values with no literal form.
    """
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isnan(value):
            return "nan()"
        if math.isinf(value):
            return "infinity()" if value > 0 else "-infinity()"
        return repr(value)
    if isinstance(value, Decimal):
        if not value.is_finite():
            msg = f"Cannot render non-finite decimal {value} as a literal"
            raise UnsupportedParameterError(msg)
        return f"DECIMAL '{value}'"
    if isinstance(value, str):
        return f"'{escape_string(value)}'"
    if isinstance(value, (bytes, bytearray, memoryview)):
        return f"X'{bytes(value).hex().upper()}'"
    if isinstance(value, datetime):
        return f"TIMESTAMP '{_format_timestamp(value)}'"
    if isinstance(value, date):
        return f"DATE '{value.isoformat()}'"
    if isinstance(value, time):
        return f"TIME '{value.strftime('%H:%M:%S.%f')[:-3]}'"
    msg = f"Unsupported parameter type: {type(value).__name__}"
    raise UnsupportedParameterError(msg)


def interpolate(
    template: str,
    params: Sequence[Any] | Mapping[str, Any] | None = None,
) -> str:
    """Substitute ``?`` and ``:name`` placeholders with rendered literals.

    ``?`` placeholders consume parameters by ordinal, in order of appearance;
    ``:name`` placeholders look parameters up by name. Without parameters
    the template is returned untouched.
    """
    named = normalize_parameters(params)
    if not named:
        return template

    by_ordinal = {nv.ordinal: nv for nv in named}
    by_name = {nv.name: nv for nv in named if nv.name}
    position = 0

    def _replace(match: re.Match[str]) -> str:
        nonlocal position
        if match.group("qmark") is not None:
            position += 1
            nv = by_ordinal.get(position)
            if nv is None:
                msg = f"Query has more '?' placeholders than the {len(named)} parameters supplied"
                raise ParameterMismatchError(msg)
            return render_literal(nv.value)
        name = match.group("name")
        if name is not None:
            if name not in by_name:
                msg = f"No value supplied for parameter :{name}"
                raise ParameterMismatchError(msg)
            return render_literal(by_name[name].value)
        return match.group(0)

    finished = _PLACEHOLDER.sub(_replace, template)
    if position and position != len(named):
        msg = f"Query has {position} '?' placeholders but {len(named)} parameters were supplied"
        raise ParameterMismatchError(msg)
    return finished
