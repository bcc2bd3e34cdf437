"""
Pipeline — per-entry railway and per-batch error isolation.

Orchestration only: all I/O is injected via ports (Protocol interfaces).

Each envelope of a fetched batch runs through its own railway:

  decode(envelope)
    → extract(decoded entry)
      → emit(record)            (SkippedEntry passes through untouched)

Failures short-circuit that entry only. Recoverable failures
(MALFORMED_ENTRY, CERTIFICATE_PARSE_ERROR) are logged and the batch moves on
to the next envelope; a fatal failure (EMIT_ERROR) stops the batch and is
returned to the poller.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

import structlog
from railway.result import Failure, Result, Success

from rekor_tail.domain.models import (
    BatchReport,
    EntryEnvelope,
    ExtensionRecord,
    SkippedEntry,
)
from rekor_tail.domain.ports import CertificateExtractor, EntryDecoder, RecordEmitter

log = structlog.get_logger()


def _emit_if_record(
    outcome: ExtensionRecord | SkippedEntry,
    emitter: RecordEmitter,
) -> Result[ExtensionRecord | SkippedEntry]:
    if isinstance(outcome, SkippedEntry):
        return Result.success(outcome)
    return emitter.emit(outcome)


def process_entry(
    envelope: EntryEnvelope,
    decoder: EntryDecoder,
    extractor: CertificateExtractor,
    emitter: RecordEmitter,
) -> Result[ExtensionRecord | SkippedEntry]:
    """Run one envelope through decode → extract → emit."""
    return (
        decoder.decode(envelope)
        .flat_map(extractor.extract)
        .flat_map(lambda outcome: _emit_if_record(outcome, emitter))
    )


def _envelope_uuid(envelope: EntryEnvelope) -> str | None:
    if isinstance(envelope, Mapping) and len(envelope) == 1:
        return str(next(iter(envelope)))
    return None


def process_batch(
    envelopes: Iterable[EntryEnvelope],
    decoder: EntryDecoder,
    extractor: CertificateExtractor,
    emitter: RecordEmitter,
) -> Result[BatchReport]:
    """
    Process a fetched batch in response order, isolating per-entry failures.

    Returns Result[BatchReport] with the counters for the batch, or the first
    fatal Failure (records emitted before it stay emitted).
    """
    fetched = emitted = skipped = failed = 0

    for position, envelope in enumerate(envelopes):
        fetched += 1
        match process_entry(envelope, decoder, extractor, emitter):
            case Success(ExtensionRecord()):
                emitted += 1
            case Success(SkippedEntry() as entry):
                skipped += 1
                log.debug("entry.skipped", log_index=entry.log_index, reason=entry.reason)
            case Failure(err) if err.fatal:
                return Failure(err)
            case Failure(err):
                failed += 1
                log.error(
                    "entry.failed",
                    code=err.code.value,
                    error=err.detail(),
                    position=position,
                    uuid=_envelope_uuid(envelope),
                )

    return Result.success(
        BatchReport(fetched=fetched, emitted=emitted, skipped=skipped, failed=failed)
    )
