"""structlog setup for athena-sql.

Everything is rendered to stderr; stdout carries query output only. The
threshold is DEBUG with --verbose, otherwise the level named by
ATHENA_SQL_LOG_LEVEL, otherwise INFO.
"""

import logging
import sys
from typing import Any

import structlog

from athena_sql.core.exceptions import ConfigError


def _stderr_logger(*args: Any) -> structlog.PrintLogger:
    # Looked up per logger: CliRunner and capsys replace sys.stderr between runs.
    return structlog.PrintLogger(file=sys.stderr)


def parse_level(name: str) -> int:
    """Map a level name such as "warning" to its numeric value."""
    try:
        return logging.getLevelNamesMapping()[name.strip().upper()]
    except KeyError:
        raise ConfigError(f"Unknown log level {name!r}") from None


def setup_logging(verbose: bool = False, level: str | None = None) -> None:
    if verbose:
        threshold = logging.DEBUG
    elif level:
        threshold = parse_level(level)
    else:
        threshold = logging.INFO

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(threshold),
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )
