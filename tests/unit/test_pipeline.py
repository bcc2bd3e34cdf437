"""
Unit tests for the per-entry railway and per-batch error isolation.

Uses mock ports (fake adapters) to test the pipeline in isolation.

Test categories:
  - Success track: decode → extract → emit for every envelope, in order
  - Short-circuit: an early failure prevents later stages for that entry
  - Isolation: recoverable failures are counted and the batch continues
  - Fatal: EMIT_ERROR stops the batch and is returned
"""

from __future__ import annotations

from unittest.mock import MagicMock

from railway import ErrorCode, Result, ResultAssertions
from structlog.testing import capture_logs

from rekor_tail.domain.models import BatchReport, DecodedEntry, ExtensionRecord, SkippedEntry
from rekor_tail.pipeline import process_batch, process_entry

# ─────────────────────── Mock Port Factories ───────────────────────


def _entry(log_index: int) -> DecodedEntry:
    return DecodedEntry(uuid=f"u{log_index}", log_index=log_index, hash="sha256:00", certificate=b"pem")


def _record(log_index: int) -> ExtensionRecord:
    return ExtensionRecord(log_index=log_index, hash="sha256:00")


def _make_decoder() -> MagicMock:
    """Decoder that reads the index out of `{"u<n>": n}` test envelopes."""
    mock = MagicMock()

    def decode(envelope: dict) -> Result[DecodedEntry]:
        (value,) = envelope.values()
        if value is None:
            return Result.failure(ErrorCode.MALFORMED_ENTRY, "Entry is missing a valid logIndex or body")
        return Result.success(_entry(value))

    mock.decode.side_effect = decode
    return mock


def _make_extractor(failing: set[int] = frozenset(), skipped: set[int] = frozenset()) -> MagicMock:
    mock = MagicMock()

    def extract(entry: DecodedEntry) -> Result[ExtensionRecord | SkippedEntry]:
        if entry.log_index in failing:
            return Result.failure(ErrorCode.CERTIFICATE_PARSE_ERROR, "Failed to parse X.509 certificate")
        if entry.log_index in skipped:
            return Result.success(SkippedEntry(log_index=entry.log_index, reason="PEM label 'PUBLIC KEY'"))
        return Result.success(_record(entry.log_index))

    mock.extract.side_effect = extract
    return mock


def _make_emitter(fail_at: int | None = None) -> MagicMock:
    mock = MagicMock()
    mock.emitted = []

    def emit(record: ExtensionRecord) -> Result[ExtensionRecord]:
        if record.log_index == fail_at:
            return Result.failure(ErrorCode.EMIT_ERROR, "Failed to write record")
        mock.emitted.append(record.log_index)
        return Result.success(record)

    mock.emit.side_effect = emit
    return mock


def _envelopes(*indices: int | None) -> list[dict]:
    return [{f"u{i}": i} for i in indices]


# ─────────────────────── Single Entry ───────────────────────


class TestProcessEntry:
    def test_success_track(self) -> None:
        emitter = _make_emitter()
        result = process_entry({"u1": 1}, _make_decoder(), _make_extractor(), emitter)
        assert ResultAssertions.assert_success(result) == _record(1)
        assert emitter.emitted == [1]

    def test_decode_failure_short_circuits(self) -> None:
        """
        GIVEN a decoder failure
        WHEN the entry is processed
        THEN extract and emit are never called.
        """
        extractor, emitter = _make_extractor(), _make_emitter()
        result = process_entry({"u": None}, _make_decoder(), extractor, emitter)
        ResultAssertions.assert_failure(result, ErrorCode.MALFORMED_ENTRY)
        extractor.extract.assert_not_called()
        emitter.emit.assert_not_called()

    def test_skipped_entry_not_emitted(self) -> None:
        emitter = _make_emitter()
        result = process_entry({"u3": 3}, _make_decoder(), _make_extractor(skipped={3}), emitter)
        assert isinstance(ResultAssertions.assert_success(result), SkippedEntry)
        emitter.emit.assert_not_called()


# ─────────────────────── Batch ───────────────────────


class TestProcessBatch:
    def test_emits_in_response_order(self) -> None:
        """
        GIVEN envelopes in non-ascending response order
        WHEN the batch is processed
        THEN records are emitted in that same order.
        """
        emitter = _make_emitter()
        result = process_batch(_envelopes(12, 10, 11), _make_decoder(), _make_extractor(), emitter)
        assert ResultAssertions.assert_success(result) == BatchReport(fetched=3, emitted=3)
        assert emitter.emitted == [12, 10, 11]

    def test_recoverable_failures_do_not_stop_batch(self) -> None:
        """
        GIVEN one malformed envelope and one unparseable certificate among good entries
        WHEN the batch is processed
        THEN the good entries are still emitted and both failures are logged.
        """
        emitter = _make_emitter()
        with capture_logs() as logs:
            result = process_batch(
                _envelopes(1, None, 3, 4),
                _make_decoder(),
                _make_extractor(failing={3}),
                emitter,
            )
        report = ResultAssertions.assert_success(result)
        assert report == BatchReport(fetched=4, emitted=2, failed=2)
        assert emitter.emitted == [1, 4]

        failures = [e for e in logs if e["event"] == "entry.failed"]
        assert [f["code"] for f in failures] == ["MALFORMED_ENTRY", "CERTIFICATE_PARSE_ERROR"]
        assert failures[0]["position"] == 1
        assert failures[1]["uuid"] == "u3"
        assert all(f["log_level"] == "error" for f in failures)

    def test_skipped_entries_counted_silently(self) -> None:
        with capture_logs() as logs:
            result = process_batch(
                _envelopes(1, 2), _make_decoder(), _make_extractor(skipped={2}), _make_emitter()
            )
        assert ResultAssertions.assert_success(result) == BatchReport(fetched=2, emitted=1, skipped=1)
        assert not [e for e in logs if e["log_level"] == "error"]

    def test_emit_failure_is_fatal(self) -> None:
        """
        GIVEN the output sink fails on the second record
        WHEN the batch is processed
        THEN processing stops there and EMIT_ERROR is returned.
        """
        emitter = _make_emitter(fail_at=2)
        result = process_batch(_envelopes(1, 2, 3), _make_decoder(), _make_extractor(), emitter)
        ResultAssertions.assert_failure(result, ErrorCode.EMIT_ERROR)
        assert emitter.emitted == [1]

    def test_empty_batch(self) -> None:
        result = process_batch([], _make_decoder(), _make_extractor(), _make_emitter())
        assert ResultAssertions.assert_success(result) == BatchReport()
