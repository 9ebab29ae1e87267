"""Sentry integration for error tracking and query tracing.

Only initialised when a DSN is configured; query spans are no-ops otherwise.
"""

from __future__ import annotations

import sentry_sdk

from athena_sql.__about__ import __version__


def setup_sentry(dsn: str | None, environment: str = "local") -> bool:
    """Initialise Sentry when a DSN is available. Returns True if enabled."""
    if not dsn:
        return False
    sentry_sdk.init(
        dsn=dsn,
        traces_sample_rate=0.03,
        environment=environment,
        release=__version__,
        attach_stacktrace=True,
        send_default_pii=False,
    )
    return True
