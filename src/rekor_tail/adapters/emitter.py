"""
Record emitter adapter — one JSON object per line on the output stream.

Adapter layer — implements the RecordEmitter port. Records go to stdout by
default, diagnostics never do (structlog writes to stderr), so the output can
be piped straight into jq or a log shipper.
"""

from __future__ import annotations

import json
import sys
from typing import TextIO

from railway import ErrorCode
from railway.result import Result

from rekor_tail.domain.models import ExtensionRecord


class JsonLinesEmitter:
    """
    Serialize each record as a compact JSON line and flush it immediately.

    Implements the RecordEmitter port. A write or flush failure is EMIT_ERROR.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    def emit(self, record: ExtensionRecord) -> Result[ExtensionRecord]:
        return Result.from_computation(
            lambda: self._write(record),
            ErrorCode.EMIT_ERROR,
            f"Failed to write record for log index {record.log_index}",
        )

    def _write(self, record: ExtensionRecord) -> ExtensionRecord:
        # Resolved per call so a replaced sys.stdout is honoured.
        stream = self._stream if self._stream is not None else sys.stdout
        stream.write(json.dumps(record.to_dict(), ensure_ascii=False, separators=(",", ":")) + "\n")
        stream.flush()
        return record
