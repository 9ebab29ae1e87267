"""Standard exit codes for athena-sql.

Exit codes follow Unix conventions; query outcomes get their own codes so
scripts can tell a remote failure from a transport problem.
"""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes for athena-sql commands."""

    SUCCESS = 0
    GENERAL_ERROR = 1
    USAGE_ERROR = 2
    INPUT_ERROR = 3
    OUTPUT_ERROR = 4
    NETWORK_ERROR = 5
    TIMEOUT = 6
    CONFIG_ERROR = 7
    QUERY_FAILED = 8
    CANCELLED = 9
