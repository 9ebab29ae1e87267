"""Query text resolution for the CLI.

The query comes from ``-e`` first, then a file argument (``-`` reads stdin),
then piped stdin. Blank queries are rejected before anything is submitted.
"""

from __future__ import annotations

import sys
from pathlib import Path

from athena_sql.core.exceptions import InputError


def _read_file(file_path: str) -> str:
    if file_path == "-":
        return sys.stdin.read()
    p = Path(file_path)
    if not p.is_file():
        msg = (
            f"Query file not found: {file_path}\n"
            "Use -e for inline queries or pipe the query via stdin."
        )
        raise InputError(msg)
    return p.read_text()


def resolve_query_source(inline: str | None, file_path: str | None) -> str:
    """Return the query text; raises InputError when there is none."""
    if inline is not None:
        sql = inline
    elif file_path is not None:
        sql = _read_file(file_path)
    elif not sys.stdin.isatty():
        sql = sys.stdin.read()
    else:
        raise InputError("No query provided. Use -e, a file path, or pipe to stdin.")

    if not sql.strip():
        raise InputError("Query is empty")
    return sql
