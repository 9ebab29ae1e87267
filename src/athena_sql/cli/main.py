"""athena-sql main entry point and command registration."""

from __future__ import annotations

import atexit
from pathlib import Path  # noqa: TC003
from typing import Annotated

import sentry_sdk
import typer

from athena_sql.__about__ import __version__
from athena_sql.cli.commands.config import config_app
from athena_sql.cli.commands.query import query_command
from athena_sql.cli.output import OutputFormat  # noqa: TC001
from athena_sql.core.config import (
    LOG_LEVEL_ENV_VARS,
    SENTRY_DSN_ENV_VARS,
    lookup_first_set,
)
from athena_sql.core.exceptions import AthenaSqlError
from athena_sql.core.logging import setup_logging
from athena_sql.core.monitoring import setup_sentry

app = typer.Typer(
    help="athena-sql - run SQL on Amazon Athena and stream the results",
    no_args_is_help=True,
)

app.add_typer(config_app, name="config")
app.command("query")(query_command)


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"athena-sql {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Enable verbose logging"),
    ] = False,
    profile: Annotated[
        str | None,
        typer.Option("--profile", "-P", help="Named profile"),
    ] = None,
    region: Annotated[
        str | None,
        typer.Option("--region", help="AWS region"),
    ] = None,
    workgroup: Annotated[
        str | None,
        typer.Option("--workgroup", "-w", help="Athena work group"),
    ] = None,
    catalog: Annotated[
        str | None,
        typer.Option("--catalog", help="Data catalog"),
    ] = None,
    database: Annotated[
        str | None,
        typer.Option("--database", "-d", help="Database name"),
    ] = None,
    output_location: Annotated[
        str | None,
        typer.Option("--output-location", "-o", help="S3 URI for query results"),
    ] = None,
    poll_interval: Annotated[
        float | None,
        typer.Option("--poll-interval", help="Seconds between status polls"),
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config file"),
    ] = None,
    format: Annotated[
        OutputFormat | None,
        typer.Option("--format", "-f", help="Output format: csv|json"),
    ] = None,
    compact: Annotated[
        bool,
        typer.Option("--compact", help="JSON Lines output: one object per line"),
    ] = False,
    no_header: Annotated[
        bool,
        typer.Option("--no-header", help="Suppress header row in CSV output"),
    ] = False,
) -> None:
    """athena-sql - run SQL on Amazon Athena and stream the results."""
    setup_logging(verbose, level=lookup_first_set(LOG_LEVEL_ENV_VARS) or None)
    if setup_sentry(lookup_first_set(SENTRY_DSN_ENV_VARS)):
        transaction = sentry_sdk.start_transaction(
            op="cli", name=ctx.invoked_subcommand or "athena-sql"
        )
        transaction.__enter__()

        def cleanup() -> None:
            transaction.__exit__(None, None, None)
            sentry_sdk.flush(timeout=2)

        atexit.register(cleanup)

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["profile"] = profile
    ctx.obj["region"] = region
    ctx.obj["workgroup"] = workgroup
    ctx.obj["catalog"] = catalog
    ctx.obj["database"] = database
    ctx.obj["output_location"] = output_location
    ctx.obj["poll_interval"] = poll_interval
    ctx.obj["config_file"] = config_file

    ctx.obj["format"] = format.value if format else None
    ctx.obj["compact"] = compact
    ctx.obj["no_header"] = no_header


def run() -> None:
    """Entry point with global error handling."""
    try:
        app()
    except AthenaSqlError as e:
        sentry_sdk.capture_exception(e)
        typer.echo(f"Error: {e.message}", err=True)
        raise SystemExit(e.exit_code) from None
    except SystemExit:
        raise
    except KeyboardInterrupt:
        raise SystemExit(130) from None
    except Exception as e:
        sentry_sdk.capture_exception(e)
        typer.echo(f"Error: {e}", err=True)
        raise SystemExit(1) from None
