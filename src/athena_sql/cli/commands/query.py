from __future__ import annotations

import itertools
import sys
from typing import Annotated

import typer

from athena_sql.cli.commands._shared import format_options, get_client
from athena_sql.cli.output import get_formatter, write_lines
from athena_sql.core.exceptions import InputError
from athena_sql.core.exit_codes import ExitCode
from athena_sql.core.query_source import resolve_query_source


def query_command(
    ctx: typer.Context,
    file: Annotated[
        str | None,
        typer.Argument(help="SQL file to execute ('-' for stdin)"),
    ] = None,
    execute: Annotated[
        str | None,
        typer.Option("--execute", "-e", help="Execute inline SQL query"),
    ] = None,
    param: Annotated[
        list[str] | None,
        typer.Option(
            "--param", help="Value for the next '?' placeholder (repeatable)"
        ),
    ] = None,
    timeout: Annotated[
        float | None,
        typer.Option("--timeout", "-t", help="Client-side timeout in seconds"),
    ] = None,
) -> None:
    """Execute a SQL query from file, inline (-e), or stdin."""
    try:
        is_tty = sys.stdin.isatty()
    except (ValueError, AttributeError):
        is_tty = False
    if execute is None and file is None and is_tty:
        typer.echo(ctx.get_help())
        raise typer.Exit()

    try:
        sql = resolve_query_source(inline=execute, file_path=file)
    except InputError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(ExitCode.INPUT_ERROR) from exc

    formatter = get_formatter(**format_options(ctx))
    with get_client(ctx, timeout=timeout) as client:
        query_text = client.prepare(sql, param or None)
        handle = client.execute(query_text)
        rows = client.fetch_raw_rows(handle)
        # Columns are known once the first page has been read.
        first = next(rows, None)
        stream = rows if first is None else itertools.chain([first], rows)
        write_lines(formatter.format(handle.materializer.columns, stream))
