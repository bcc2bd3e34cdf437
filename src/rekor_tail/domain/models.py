"""
Domain models — immutable value objects flowing through one poll cycle.

Everything here is created, transformed and discarded within a single
pipeline pass for one log index. The only state that outlives a cycle is
LogState.size, owned by the poller through a CursorStore.

All models are frozen dataclasses (immutable) following functional principles.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

# Raw `{<uuid>: {logIndex, body, ...}}` mapping as returned by the log API.
type EntryEnvelope = dict[str, Any]


@dataclass(frozen=True, slots=True)
class LogState:
    """Last observed total entry count of the log (append-only, so non-decreasing)."""

    size: int = 0


@dataclass(frozen=True, slots=True)
class IndexRange:
    """
    Contiguous ascending sequence of entry indices `[start, end)`.

    An empty range (start == end) means there is nothing to fetch.
    """

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0:
            raise ValueError(f"IndexRange start must be non-negative, got {self.start}")
        if self.end < self.start:
            raise ValueError(f"IndexRange end ({self.end}) must be >= start ({self.start})")

    def __len__(self) -> int:
        return self.end - self.start

    def __iter__(self) -> Iterator[int]:
        return iter(range(self.start, self.end))

    @property
    def is_empty(self) -> bool:
        return self.end == self.start

    def indices(self) -> list[int]:
        return list(range(self.start, self.end))

    def chunks(self, size: int) -> list[IndexRange]:
        """
        Split into consecutive sub-ranges of at most `size` indices.

        A non-positive size means "no limit" and returns the range itself.
        """
        if size <= 0 or len(self) <= size:
            return [self]
        return [
            IndexRange(lo, min(lo + size, self.end))
            for lo in range(self.start, self.end, size)
        ]

    @staticmethod
    def between(last_size: int, new_size: int) -> IndexRange:
        """Indices committed since `last_size`, i.e. `[last_size, new_size)`."""
        return IndexRange(last_size, new_size)


@dataclass(frozen=True, slots=True)
class DecodedEntry:
    """
    Extraction input produced by the entry decoder.

    `hash` is already formatted as "<algorithm>:<value>".
    `certificate` holds the decoded signing-certificate (or public key) PEM bytes.
    """

    uuid: str
    log_index: int
    hash: str
    certificate: bytes = field(repr=False)


# Output key order of an ExtensionRecord, attribute name → record key.
RECORD_FIELDS: tuple[tuple[str, str], ...] = (
    ("log_index", "LogIndex"),
    ("hash", "Hash"),
    ("subject", "Subject"),
    ("oidc_issuer", "OIDCIssuer"),
    ("github_workflow_trigger", "GitHubWorkflowTrigger"),
    ("github_workflow_sha", "GitHubWorkflowSHA"),
    ("github_workflow_name", "GitHubWorkflowName"),
    ("github_workflow_repository", "GitHubWorkflowRepository"),
    ("github_workflow_ref", "GitHubWorkflowRef"),
)


@dataclass(frozen=True, slots=True)
class ExtensionRecord:
    """
    Identity-binding fields extracted from one signing certificate.

    `log_index` and `hash` are always present. Every other field is set only
    when the matching extension was found in the certificate.

    These values are copied verbatim from the log; nothing here has been
    verified against the certificate chain or the signed tree head.
    """

    log_index: int
    hash: str
    subject: str | None = None
    oidc_issuer: str | None = None
    github_workflow_trigger: str | None = None
    github_workflow_sha: str | None = None
    github_workflow_name: str | None = None
    github_workflow_repository: str | None = None
    github_workflow_ref: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Ordered mapping with the wire key names; absent optional fields are omitted."""
        record: dict[str, Any] = {}
        for attribute, key in RECORD_FIELDS:
            value = getattr(self, attribute)
            if value is not None:
                record[key] = value
        return record


@dataclass(frozen=True, slots=True)
class SkippedEntry:
    """An entry deliberately filtered out (e.g. a bare public key instead of a certificate)."""

    log_index: int
    reason: str


@dataclass(frozen=True, slots=True)
class BatchReport:
    """Per-batch outcome counters."""

    fetched: int = 0
    emitted: int = 0
    skipped: int = 0
    failed: int = 0

    def __add__(self, other: BatchReport) -> BatchReport:
        return BatchReport(
            fetched=self.fetched + other.fetched,
            emitted=self.emitted + other.emitted,
            skipped=self.skipped + other.skipped,
            failed=self.failed + other.failed,
        )


@dataclass(frozen=True, slots=True)
class CycleReport:
    """What one poll cycle observed and did. `batch` is None when the log did not grow."""

    previous_size: int
    new_size: int
    batch: BatchReport | None = None

    @property
    def grew(self) -> bool:
        return self.new_size > self.previous_size
