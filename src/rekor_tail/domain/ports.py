"""
Ports — Protocol-based interfaces for infrastructure adapters.

These define WHAT the poller and pipeline need without specifying HOW it is
done. Following hexagonal architecture:

  Domain ← Ports (protocols) ← Adapters (implementations)

Each port is a Protocol (structural typing) so adapters satisfy the contract
simply by implementing the methods — no inheritance.

Ingestion flow per cycle:
  1. LogSizeTracker         → total committed entries
  2. EntryBatchFetcher      → raw envelopes for [last_size, new_size)
  3. EntryDecoder           → DecodedEntry per envelope
  4. CertificateExtractor   → ExtensionRecord (or SkippedEntry)
  5. RecordEmitter          → record written to the output sink
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from railway.result import Result

from rekor_tail.domain.models import (
    DecodedEntry,
    EntryEnvelope,
    ExtensionRecord,
    IndexRange,
    LogState,
    SkippedEntry,
)


@runtime_checkable
class LogSizeTracker(Protocol):
    """
    Port: total number of committed entries (active tree + inactive shards).

    Failures are NETWORK_ERROR or SCHEMA_ERROR, both fatal to the cycle.
    """

    def fetch_total_size(self) -> Result[int]: ...


@runtime_checkable
class EntryBatchFetcher(Protocol):
    """
    Port: retrieve raw entry envelopes for a range of indices in one round trip.

    An empty range succeeds with an empty list without touching the network.
    """

    def fetch_entries(self, indices: IndexRange) -> Result[list[EntryEnvelope]]: ...


@runtime_checkable
class EntryDecoder(Protocol):
    """
    Port: unwrap an entry envelope into log index, hash and certificate bytes.

    Every failure is MALFORMED_ENTRY and concerns this entry only.
    """

    def decode(self, envelope: EntryEnvelope) -> Result[DecodedEntry]: ...


@runtime_checkable
class CertificateExtractor(Protocol):
    """
    Port: map the certificate's known extensions onto an ExtensionRecord.

    Returns SkippedEntry (a success) when the PEM block is not a certificate.
    Decode failures are CERTIFICATE_PARSE_ERROR and concern this entry only.
    """

    def extract(self, entry: DecodedEntry) -> Result[ExtensionRecord | SkippedEntry]: ...


@runtime_checkable
class RecordEmitter(Protocol):
    """
    Port: write one record to the output boundary.

    Failure is EMIT_ERROR and is fatal: there is no recovery path for a
    broken output sink.
    """

    def emit(self, record: ExtensionRecord) -> Result[ExtensionRecord]: ...


@runtime_checkable
class CursorStore(Protocol):
    """Port: holds the poller's LogState between cycles."""

    def load(self) -> LogState | None: ...

    def save(self, state: LogState) -> None: ...
