"""Output format selection and writing."""

from __future__ import annotations

import sys
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from athena_sql.formatters.base import Formatter


class OutputFormat(StrEnum):
    CSV = "csv"
    JSON = "json"


def get_formatter(
    format_name: str = "csv",
    *,
    compact: bool = False,
    no_header: bool = False,
) -> Formatter:
    """Build the formatter registered under format_name."""
    # Importing the package registers every formatter.
    from athena_sql.formatters import FormatOptions, registry

    return registry.create(format_name, FormatOptions(header=not no_header, compact=compact))


def write_lines(lines: Iterable[str]) -> None:
    """Write already-terminated lines to stdout as they arrive."""
    for line in lines:
        sys.stdout.write(line)
