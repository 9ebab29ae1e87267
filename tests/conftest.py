"""Shared test fixtures for athena-sql."""

from pathlib import Path
from tempfile import TemporaryDirectory

import pytest
from typer.testing import CliRunner

from athena_sql.cli.main import app
from tests.fakes import FakeClock


@pytest.fixture
def runner():
    """Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def cli_runner(runner):
    """Invoke the CLI app with the given arguments."""

    def invoke(*args: str, **kwargs):
        return runner.invoke(app, list(args), **kwargs)

    return invoke


@pytest.fixture
def temp_dir():
    """Temporary directory for test files."""
    with TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove Athena related environment variables."""
    for name in (
        "AWS_REGION",
        "AWS_DEFAULT_REGION",
        "ATHENA_WORKGROUP",
        "ATHENA_CATALOG",
        "ATHENA_DATABASE",
        "ATHENA_OUTPUT_LOCATION",
        "ATHENA_SQL_PROFILE",
        "ATHENA_SQL_SENTRY_DSN",
        "ATHENA_SQL_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def clock():
    return FakeClock()
