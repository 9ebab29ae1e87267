"""Exception hierarchy for athena-sql.

All exceptions carry an exit_code for CLI return value mapping.
Transport failures from the query service are wrapped, never retried;
remote-reported query outcomes get their own branch of the tree.
"""

from athena_sql.core.exit_codes import ExitCode


class AthenaSqlError(Exception):
    """Base exception for all athena-sql errors."""

    exit_code: int = ExitCode.GENERAL_ERROR

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NetworkError(AthenaSqlError):
    """Transport failures talking to the query service."""

    exit_code: int = ExitCode.NETWORK_ERROR


class SubmissionError(NetworkError):
    """The service rejected or could not receive a query submission."""


class PollError(NetworkError):
    """Transport failure while polling a query's status."""


class TimeoutError(NetworkError):
    """Query or client-side deadline exceeded."""

    exit_code: int = ExitCode.TIMEOUT


class QueryError(AthenaSqlError):
    """A submitted query reached an unsuccessful terminal state."""

    exit_code: int = ExitCode.QUERY_FAILED

    def __init__(self, message: str, query_execution_id: str | None = None) -> None:
        self.query_execution_id = query_execution_id
        super().__init__(message)


class QueryFailed(QueryError):
    """The service itself reported the query as failed."""

    def __init__(
        self,
        message: str,
        query_execution_id: str | None = None,
        reason: str | None = None,
    ) -> None:
        self.reason = reason
        super().__init__(message, query_execution_id)


class QueryCancelled(QueryError):
    """The query was cancelled, locally or remotely."""

    exit_code: int = ExitCode.CANCELLED


class QueryTimedOut(TimeoutError):
    """Statement-type timeout policy or caller deadline triggered."""

    def __init__(self, message: str, query_execution_id: str | None = None) -> None:
        self.query_execution_id = query_execution_id
        super().__init__(message)


class ResultShapeError(AthenaSqlError):
    """Row arity does not match the result set's column count."""

    exit_code: int = ExitCode.OUTPUT_ERROR


class DataConversionError(AthenaSqlError):
    """A field's text is not valid for its declared column type."""

    exit_code: int = ExitCode.OUTPUT_ERROR


class InputError(AthenaSqlError):
    """File not found, invalid parameters."""

    exit_code: int = ExitCode.INPUT_ERROR


class UnsupportedParameterError(InputError):
    """A parameter value has no literal rendering."""


class ParameterMismatchError(InputError):
    """Placeholders and supplied parameters do not line up."""


class ConfigError(AthenaSqlError):
    """Malformed config, missing profile."""

    exit_code: int = ExitCode.CONFIG_ERROR


class InterfaceError(AthenaSqlError):
    """Driver misuse: closed handles, re-reading a consumed result."""

    exit_code: int = ExitCode.USAGE_ERROR
