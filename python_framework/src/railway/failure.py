"""
Failure description — structured error information for the failure track.

ErrorCode enumerates every way a transparency-log ingestion step can fail,
and splits them into two families:

  - fatal codes stop the poll loop (the cycle has nothing to work on, or the
    output sink is broken)
  - recoverable codes belong to a single log entry; the batch moves on
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum, unique
from typing import Optional


@unique
class ErrorCode(Enum):
    """Structured error codes for the failure track."""

    # --- Cycle-level errors (fatal) ---
    NETWORK_ERROR = "NETWORK_ERROR"
    """Transport failure or non-success HTTP status talking to the log."""

    SCHEMA_ERROR = "SCHEMA_ERROR"
    """Log API response does not have the expected shape."""

    EMIT_ERROR = "EMIT_ERROR"
    """A record could not be written to the output sink."""

    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    """Invalid or missing settings."""

    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    """Unexpected exception escaping a computation."""

    # --- Entry-level errors (recoverable) ---
    MALFORMED_ENTRY = "MALFORMED_ENTRY"
    """Entry envelope or body could not be decoded."""

    CERTIFICATE_PARSE_ERROR = "CERTIFICATE_PARSE_ERROR"
    """PEM envelope or X.509 structure could not be decoded."""

    @property
    def fatal(self) -> bool:
        """True when a failure with this code must stop the poll loop."""
        return self not in _RECOVERABLE


_RECOVERABLE = frozenset({ErrorCode.MALFORMED_ENTRY, ErrorCode.CERTIFICATE_PARSE_ERROR})


@dataclass(frozen=True, slots=True)
class FailureDescription:
    """
    Immutable failure descriptor carrying error code, message, optional exception, and timestamp.

    >>> desc = FailureDescription(ErrorCode.MALFORMED_ENTRY, "Entry has no body")
    >>> desc.code
    <ErrorCode.MALFORMED_ENTRY: 'MALFORMED_ENTRY'>
    >>> desc.fatal
    False
    """

    code: ErrorCode
    message: str
    exception: Optional[BaseException] = field(default=None, repr=False)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    @staticmethod
    def create(
        code: ErrorCode,
        message: str,
        exception: Optional[BaseException] = None,
    ) -> FailureDescription:
        return FailureDescription(code=code, message=message, exception=exception)

    @property
    def fatal(self) -> bool:
        return self.code.fatal

    def detail(self) -> str:
        """Message plus the underlying exception text, when there is one."""
        if self.exception is None:
            return self.message
        return f"{self.message}: {self.exception}"

    def __str__(self) -> str:
        return f"{self.code.value}: {self.detail()}"
