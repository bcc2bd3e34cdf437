"""
Railway-Oriented Programming (ROP) support for rekor-tail.

Explicit, composable error handling — adapters return Result instead of raising.

    from railway import Result, ErrorCode

    def require_single_key(envelope: dict) -> Result[dict]:
        if len(envelope) != 1:
            return Result.failure(ErrorCode.MALFORMED_ENTRY, "Entry is not a single-key object")
        return Result.success(envelope)
"""

from railway.result import Result, Success, Failure
from railway.failure import ErrorCode, FailureDescription
from railway.execution import LoggingExecutionContext
from railway.result_failures import ResultFailures
from railway.assertions import ResultAssertions

__all__ = [
    "Result",
    "Success",
    "Failure",
    "ErrorCode",
    "FailureDescription",
    "LoggingExecutionContext",
    "ResultFailures",
    "ResultAssertions",
]
