"""
Entry decoder adapter — envelope unwrapping + typed body decode.

Adapter layer — implements the EntryDecoder port using pydantic models from
`rekor_tail.domain.schemas`:

  {<uuid>: {logIndex, body}}
    → single-key check
    → LogEntryValue (logIndex: non-negative int, body: str)
    → base64 → DecodedBody (hash algorithm/value, publicKey content)
    → base64 → certificate bytes
    → DecodedEntry

Every step can fail independently; all failures are MALFORMED_ENTRY and
concern this entry only.
"""

from __future__ import annotations

import base64
import binascii
from collections.abc import Mapping

from pydantic import ValidationError
from railway import ErrorCode, ResultFailures
from railway.result import Result

from rekor_tail.domain.models import DecodedEntry, EntryEnvelope
from rekor_tail.domain.schemas import DecodedBody, LogEntryValue


def _b64decode(data: str) -> bytes:
    """Strict base64: characters outside the alphabet are an error, not skipped."""
    return base64.b64decode(data, validate=True)


def _single_value(envelope: EntryEnvelope) -> Result[tuple[str, object]]:
    return (
        Result.from_optional(envelope, "Entry is null")
        .ensure(
            lambda e: isinstance(e, Mapping) and len(e) == 1,
            ErrorCode.MALFORMED_ENTRY,
            "Entry is not a single-key object",
        )
        .map(lambda e: next(iter(e.items())))
    )


def _entry_value(value: object) -> Result[LogEntryValue]:
    try:
        return Result.success(LogEntryValue.model_validate(value))
    except ValidationError as e:
        return ResultFailures.malformed_entry("Entry is missing a valid logIndex or body", e)


def _decode_body(body: str) -> Result[DecodedBody]:
    try:
        raw = _b64decode(body)
    except (binascii.Error, ValueError) as e:
        return ResultFailures.malformed_entry("Entry body is not valid base64", e)
    try:
        return Result.success(DecodedBody.model_validate_json(raw))
    except ValidationError as e:
        return ResultFailures.malformed_entry(
            "Entry body is not JSON with spec.data.hash and spec.signature.publicKey.content",
            e,
        )


def _decode_certificate(content: str) -> Result[bytes]:
    return Result.from_computation(
        lambda: _b64decode(content),
        ErrorCode.MALFORMED_ENTRY,
        "Public key content is not valid base64",
    )


class RekorEntryDecoder:
    """
    Decode one retrieved log entry envelope into a DecodedEntry.

    Implements the EntryDecoder port. Stateless.
    """

    def decode(self, envelope: EntryEnvelope) -> Result[DecodedEntry]:
        return _single_value(envelope).flat_map(
            lambda pair: _entry_value(pair[1]).flat_map(
                lambda value: self._decode_value(pair[0], value)
            )
        )

    @staticmethod
    def _decode_value(uuid: str, value: LogEntryValue) -> Result[DecodedEntry]:
        return _decode_body(value.body).flat_map(
            lambda body: _decode_certificate(body.certificate_base64).map(
                lambda certificate: DecodedEntry(
                    uuid=uuid,
                    log_index=value.log_index,
                    hash=body.formatted_hash,
                    certificate=certificate,
                )
            )
        )
