"""Output formatters for athena-sql."""

from athena_sql.formatters.base import FormatOptions, Formatter, FormatterRegistry, registry
from athena_sql.formatters.csv import CSVFormatter
from athena_sql.formatters.json import JSONFormatter

__all__ = [
    "CSVFormatter",
    "FormatOptions",
    "Formatter",
    "FormatterRegistry",
    "JSONFormatter",
    "registry",
]
