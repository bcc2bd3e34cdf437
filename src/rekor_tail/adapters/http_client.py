"""
HTTP adapter — log size and entry batch retrieval via httpx.

Adapter layer — implements LogSizeTracker and EntryBatchFetcher ports using
httpx for sync HTTP calls against a Rekor-compatible transparency log:

  1. GET  {log_url}/api/v1/log                  → treeSize + inactiveShards[].treeSize
  2. POST {log_url}/api/v1/log/entries/retrieve → [{<uuid>: {logIndex, body, ...}}, ...]

Retry/backoff via tenacity on transient errors (network, timeout); a failure
is only reported once the retries are exhausted. Transport and HTTP status
errors become NETWORK_ERROR, unexpected response shapes become SCHEMA_ERROR.
No exceptions leak to the poller.
"""

from __future__ import annotations

import httpx
import structlog
from pydantic import ValidationError
from railway import ErrorCode, ResultFailures
from railway.result import Result
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from rekor_tail import __version__
from rekor_tail.domain.models import EntryEnvelope, IndexRange
from rekor_tail.domain.schemas import ENVELOPE_LIST, LogInfo

log = structlog.get_logger()

DEFAULT_LOG_URL = "https://rekor.sigstore.dev"
DEFAULT_USER_AGENT = f"rekor-tail/{__version__}"
LOG_INFO_PATH = "/api/v1/log"
RETRIEVE_PATH = "/api/v1/log/entries/retrieve"


def _endpoint(log_url: str, path: str) -> str:
    return log_url.rstrip("/") + path


class HttpLogSizeTracker:
    """
    Compute the total committed entry count from the log info endpoint.

    Implements the LogSizeTracker port.
    Uses tenacity retry on transient network errors only.
    """

    def __init__(
        self,
        log_url: str = DEFAULT_LOG_URL,
        timeout: float = 30,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self._url = _endpoint(log_url, LOG_INFO_PATH)
        self._timeout = timeout
        self._headers = {"User-Agent": user_agent, "Accept": "application/json"}

    def fetch_total_size(self) -> Result[int]:
        """
        Return treeSize plus the treeSize of every inactive shard.

        Returns Result.failure(NETWORK_ERROR, ...) when the request fails and
        Result.failure(SCHEMA_ERROR, ...) when the size fields are missing
        or not non-negative integers.
        """
        return (
            Result.from_computation(
                self._do_log_info_request,
                ErrorCode.NETWORK_ERROR,
                "Log info request failed",
            )
            .flat_map(_parse_log_info)
            .peek(lambda size: log.debug("log_size.fetched", total_size=size))
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=0.1, max=30),
        retry=retry_if_exception_type((httpx.TimeoutException, httpx.NetworkError)),
        reraise=True,
    )
    def _do_log_info_request(self) -> bytes:
        """HTTP GET with retry — exceptions caught by from_computation."""
        with httpx.Client(timeout=self._timeout, headers=self._headers) as client:
            response = client.get(self._url)
            response.raise_for_status()
            return response.content


def _parse_log_info(raw: bytes) -> Result[int]:
    return Result.from_computation(
        lambda: LogInfo.model_validate_json(raw).total_size,
        ErrorCode.SCHEMA_ERROR,
        "Log info response is missing a valid treeSize",
    )


class HttpEntryBatchFetcher:
    """
    Retrieve a batch of entry envelopes by log index in one request.

    Implements the EntryBatchFetcher port.
    Uses tenacity retry on transient network errors only.
    """

    def __init__(
        self,
        log_url: str = DEFAULT_LOG_URL,
        timeout: float = 30,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self._url = _endpoint(log_url, RETRIEVE_PATH)
        self._timeout = timeout
        self._headers = {"User-Agent": user_agent, "Accept": "application/json"}

    def fetch_entries(self, indices: IndexRange) -> Result[list[EntryEnvelope]]:
        """
        POST the full index list and return the decoded array of envelopes.

        Envelopes are returned in response order and are not validated here;
        per-entry decoding belongs to the EntryDecoder.
        Returns Result.failure(NETWORK_ERROR, ...) on transport/HTTP failure and
        Result.failure(SCHEMA_ERROR, ...) when the body is not a JSON array of objects.
        """
        if indices.is_empty:
            return Result.success([])

        return (
            Result.from_computation(
                lambda: self._do_retrieve(indices.indices()),
                ErrorCode.NETWORK_ERROR,
                f"Entry retrieval failed for [{indices.start}, {indices.end})",
            )
            .flat_map(_parse_envelopes)
            .peek(
                lambda envelopes: log.debug(
                    "entries.fetched", requested=len(indices), received=len(envelopes)
                )
            )
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=0.1, max=30),
        retry=retry_if_exception_type((httpx.TimeoutException, httpx.NetworkError)),
        reraise=True,
    )
    def _do_retrieve(self, log_indexes: list[int]) -> bytes:
        """HTTP POST with retry — exceptions caught by from_computation."""
        with httpx.Client(timeout=self._timeout, headers=self._headers) as client:
            response = client.post(self._url, json={"logIndexes": log_indexes})
            response.raise_for_status()
            return response.content


def _parse_envelopes(raw: bytes) -> Result[list[EntryEnvelope]]:
    try:
        return Result.success(ENVELOPE_LIST.validate_json(raw))
    except ValidationError as e:
        return ResultFailures.schema_error("Entries response is not a JSON array of objects", e)
