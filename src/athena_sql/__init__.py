"""athena-sql: a synchronous SQL driver for Amazon Athena."""

from athena_sql.__about__ import __version__
from athena_sql.core.client import AthenaClient, QueryHandle
from athena_sql.dbapi import connect

__all__ = ["AthenaClient", "QueryHandle", "__version__", "connect"]
