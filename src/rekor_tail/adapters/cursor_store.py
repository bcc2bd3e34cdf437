"""
In-memory cursor store — the poller's LogState lives only as long as the process.

A restart loses the position; the poller then re-seeds from the current log
size. Persistent stores can be injected through the CursorStore port.
"""

from __future__ import annotations

from rekor_tail.domain.models import LogState


class InMemoryCursorStore:
    """Implements the CursorStore port with a single attribute."""

    def __init__(self, initial: LogState | None = None) -> None:
        self._state = initial

    def load(self) -> LogState | None:
        return self._state

    def save(self, state: LogState) -> None:
        self._state = state
