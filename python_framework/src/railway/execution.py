"""
Execution contexts — separate WHAT (pure logic) from HOW (side effects).

  - Pure functions describe WHAT should happen → return Result[T]
  - The execution context describes HOW it happens → timing, logging, exception capture

The poll loop runs each cycle inside a LoggingExecutionContext, so a cycle
that raises instead of returning a Failure still ends up on the failure track.

    ctx = LoggingExecutionContext(operation="PollCycle")
    result = ctx.execute(lambda: poller.run_cycle())
"""

from __future__ import annotations

import time
from typing import Callable, TypeVar

import structlog

from railway.result import Result
from railway.result_failures import ResultFailures

T = TypeVar("T")
log = structlog.get_logger("railway.execution")


class LoggingExecutionContext:
    """
    Execution context that logs duration and result state.

    Exceptions escaping the computation are converted into a Failure whose
    code is derived from the exception type.
    """

    def __init__(self, operation: str = "unknown") -> None:
        self._operation = operation

    def execute(self, computation: Callable[[], Result[T]]) -> Result[T]:
        start = time.monotonic()

        try:
            result = computation()
        except Exception as e:
            log.error(
                "execution.raised",
                operation=self._operation,
                elapsed_seconds=round(time.monotonic() - start, 3),
                error=str(e),
            )
            return ResultFailures.from_exception(f"{self._operation} raised", e)

        log.debug(
            "execution.completed",
            operation=self._operation,
            elapsed_seconds=round(time.monotonic() - start, 3),
            state="SUCCESS" if result.is_success() else "FAILURE",
        )
        return result
