"""
Convenience factory methods for common Result failures.

    from railway.result_failures import ResultFailures

    # Instead of:
    Result.failure(ErrorCode.MALFORMED_ENTRY, "Entry has no body")

    # Write:
    ResultFailures.malformed_entry("Entry has no body")
"""

from __future__ import annotations

from typing import TypeVar

from railway.failure import ErrorCode
from railway.result import Result

T = TypeVar("T")


class ResultFailures:
    """Factory methods for the failure kinds the ingestion pipeline produces."""

    @staticmethod
    def schema_error(message: str, exception: BaseException | None = None) -> Result:
        """Log API response shape violates the contract."""
        return Result.failure(ErrorCode.SCHEMA_ERROR, message, exception)

    @staticmethod
    def malformed_entry(message: str, exception: BaseException | None = None) -> Result:
        """A single log entry could not be decoded."""
        return Result.failure(ErrorCode.MALFORMED_ENTRY, message, exception)

    @staticmethod
    def from_exception(message: str, exception: BaseException) -> Result:
        """
        Auto-map a Python exception to the appropriate ErrorCode.

        Mapping:
          - TimeoutError, ConnectionError → NETWORK_ERROR
          - OSError (other I/O) → EMIT_ERROR
          - ValueError, TypeError, KeyError → SCHEMA_ERROR
          - Everything else → UNKNOWN_ERROR
        """
        return Result.failure(_map_exception_to_code(exception), message, exception)


def _map_exception_to_code(exception: BaseException) -> ErrorCode:
    match exception:
        case TimeoutError() | ConnectionError():
            return ErrorCode.NETWORK_ERROR
        case OSError():
            return ErrorCode.EMIT_ERROR
        case ValueError() | TypeError() | KeyError():
            return ErrorCode.SCHEMA_ERROR
        case _:
            return ErrorCode.UNKNOWN_ERROR
