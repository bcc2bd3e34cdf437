"""
Range poller — drives the ingestion loop over a growing transparency log.

Per cycle:
  1. ask the LogSizeTracker for the total committed size
  2. unchanged size → nothing to fetch
  3. otherwise fetch [last_size, new_size), run the batch pipeline and
     advance the cursor to new_size
  4. sleep for the configured interval, whatever happened above

The cursor is seeded to one below the current size on startup, so the first
cycle always re-observes at least the newest entry.

A fatal failure (size query, batch fetch or output sink) ends the loop and is
returned to the caller; per-entry failures never reach this level.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from enum import Enum

import structlog
from railway import LoggingExecutionContext
from railway.result import Failure, Result

from rekor_tail.adapters.cursor_store import InMemoryCursorStore
from rekor_tail.domain.models import BatchReport, CycleReport, IndexRange, LogState
from rekor_tail.domain.ports import (
    CertificateExtractor,
    CursorStore,
    EntryBatchFetcher,
    EntryDecoder,
    LogSizeTracker,
    RecordEmitter,
)
from rekor_tail.pipeline import process_batch

log = structlog.get_logger()

DEFAULT_INTERVAL_SECONDS = 3


class PollerState(Enum):
    IDLE = "idle"
    FETCHING = "fetching"


class RangePoller:
    """
    Poll the log for growth and push every new entry through the pipeline.

    The only state kept between cycles is the LogState held by the cursor store.
    """

    def __init__(
        self,
        size_tracker: LogSizeTracker,
        fetcher: EntryBatchFetcher,
        decoder: EntryDecoder,
        extractor: CertificateExtractor,
        emitter: RecordEmitter,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        cursor_store: CursorStore | None = None,
        max_batch_size: int = 0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._size_tracker = size_tracker
        self._fetcher = fetcher
        self._decoder = decoder
        self._extractor = extractor
        self._emitter = emitter
        self._interval = interval_seconds
        self._cursor = cursor_store if cursor_store is not None else InMemoryCursorStore()
        self._max_batch_size = max_batch_size
        self._sleep = sleep
        self._state = PollerState.IDLE

    @property
    def state(self) -> PollerState:
        return self._state

    @property
    def last_size(self) -> int | None:
        stored = self._cursor.load()
        return stored.size if stored is not None else None

    # ─────────────────────── Seeding ───────────────────────

    def seed(self) -> Result[LogState]:
        """
        Initialise the cursor unless the store already holds one.

        Seeds to `total_size - 1`, saturating at 0.
        """
        stored = self._cursor.load()
        if stored is not None:
            return Result.success(stored)

        return (
            self._size_tracker.fetch_total_size()
            .map(lambda size: LogState(size=max(size - 1, 0)))
            .peek(self._cursor.save)
            .peek(lambda state: log.info("poller.seeded", last_size=state.size))
        )

    # ─────────────────────── One Cycle ───────────────────────

    def run_cycle(self) -> Result[CycleReport]:
        """Observe the log size once and process whatever was committed since the last cycle."""
        return self.seed().flat_map(
            lambda state: self._size_tracker.fetch_total_size().flat_map(
                lambda new_size: self._advance(state, new_size)
            )
        )

    def _advance(self, state: LogState, new_size: int) -> Result[CycleReport]:
        if new_size == state.size:
            log.debug("poller.no_growth", size=new_size)
            return Result.success(CycleReport(previous_size=state.size, new_size=new_size))

        if new_size < state.size:
            # Append-only log: keep the cursor where it is.
            log.warning("poller.size_regressed", last_size=state.size, reported_size=new_size)
            return Result.success(CycleReport(previous_size=state.size, new_size=new_size))

        index_range = IndexRange.between(state.size, new_size)
        log.info(
            "poller.fetching",
            start=index_range.start,
            end=index_range.end - 1,
            count=len(index_range),
        )

        self._state = PollerState.FETCHING
        try:
            batch = self._fetch_and_process(index_range)
        finally:
            self._state = PollerState.IDLE

        return (
            batch.peek(lambda _: self._cursor.save(LogState(size=new_size)))
            .peek(
                lambda report: log.info(
                    "poller.batch_processed",
                    fetched=report.fetched,
                    emitted=report.emitted,
                    skipped=report.skipped,
                    failed=report.failed,
                )
            )
            .map(lambda report: CycleReport(previous_size=state.size, new_size=new_size, batch=report))
        )

    def _fetch_and_process(self, index_range: IndexRange) -> Result[BatchReport]:
        report = BatchReport()
        for chunk in index_range.chunks(self._max_batch_size):
            result = self._fetcher.fetch_entries(chunk).flat_map(
                lambda envelopes: process_batch(
                    envelopes, self._decoder, self._extractor, self._emitter
                )
            )
            if result.is_failure():
                return Failure(result.error())
            report = report + result.value()
        return Result.success(report)

    # ─────────────────────── Loop ───────────────────────

    def run(self, max_cycles: int | None = None) -> Result[int]:
        """
        Seed, then run cycles until a fatal failure (or `max_cycles`, when given).

        Sleeps for the interval after every completed cycle, whether or not
        anything was fetched. Returns Result[int] with the number of cycles
        completed, or the fatal Failure that stopped the loop.
        """
        ctx = LoggingExecutionContext(operation="PollCycle")

        seeded = self.seed()
        if seeded.is_failure():
            log.error("poller.seed_failed", failure=str(seeded.error()))
            return Failure(seeded.error())

        cycles = 0
        while max_cycles is None or cycles < max_cycles:
            result = ctx.execute(self.run_cycle).peek_failure(
                lambda err: log.error("poller.cycle_failed", failure=str(err), cycles=cycles)
            )
            if result.is_failure():
                return Failure(result.error())
            cycles += 1
            self._sleep(self._interval)

        return Result.success(cycles)
