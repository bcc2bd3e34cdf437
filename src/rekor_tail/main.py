"""
Application entry point — wires dependencies and starts the poller.

Composition root: creates concrete adapters and injects them into the
RangePoller. This is the ONLY place where concrete classes are instantiated.
Everything else depends on Protocol interfaces.

Responsibilities:
  1. Parse the command line (--interval)
  2. Load and validate configuration from environment
  3. Configure structlog (diagnostics go to stderr, records to stdout)
  4. Create the concrete adapters and the poller
  5. Run until a fatal failure or Ctrl-C

Exit status: 0 on Ctrl-C, 1 on a fatal failure, 2 on a usage or
configuration error.
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence

import structlog
from railway import ErrorCode
from railway.result import Result

from rekor_tail import __version__
from rekor_tail.adapters.cursor_store import InMemoryCursorStore
from rekor_tail.adapters.emitter import JsonLinesEmitter
from rekor_tail.adapters.entry_decoder import RekorEntryDecoder
from rekor_tail.adapters.http_client import HttpEntryBatchFetcher, HttpLogSizeTracker
from rekor_tail.adapters.x509_extractor import X509ExtensionExtractor
from rekor_tail.config import AppSettings
from rekor_tail.poller import RangePoller

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_USAGE = 2


def configure_structlog(log_level: str = "INFO", json_output: bool = False) -> None:
    """
    Configure structlog for diagnostics on stderr.

    stdout is reserved for the JSON-lines record stream, so every log event
    is printed to stderr: colored console output by default, JSON lines
    when json_output is set.
    """
    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def _non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from None
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be non-negative, got {number}")
    return number


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse the command line; argparse exits with status 2 on bad input."""
    parser = argparse.ArgumentParser(
        prog="rekor-tail",
        description=(
            "Tail a Rekor transparency log and print the identity claims of "
            "every new signing certificate as JSON lines."
        ),
    )
    parser.add_argument(
        "--interval",
        type=_non_negative_int,
        default=None,
        metavar="SECONDS",
        help="seconds to sleep between polling cycles (default: 3)",
    )
    return parser.parse_args(argv)


def _load_settings(args: argparse.Namespace) -> AppSettings:
    overrides = {}
    if args.interval is not None:
        overrides["interval_seconds"] = args.interval
    return AppSettings(**overrides)


type _Adapters = tuple[
    HttpLogSizeTracker,
    HttpEntryBatchFetcher,
    RekorEntryDecoder,
    X509ExtensionExtractor,
    JsonLinesEmitter,
]


def _create_adapters(settings: AppSettings) -> _Adapters:
    """
    Instantiate all concrete adapters from application settings.

    Creates 5 adapters: log size tracker, batch fetcher, entry decoder,
    certificate extractor and stdout emitter.
    """
    size_tracker = HttpLogSizeTracker(
        log_url=settings.log_url,
        timeout=settings.http_timeout_seconds,
        user_agent=settings.user_agent,
    )
    fetcher = HttpEntryBatchFetcher(
        log_url=settings.log_url,
        timeout=settings.http_timeout_seconds,
        user_agent=settings.user_agent,
    )
    return size_tracker, fetcher, RekorEntryDecoder(), X509ExtensionExtractor(), JsonLinesEmitter()


def create_poller(settings: AppSettings) -> RangePoller:
    size_tracker, fetcher, decoder, extractor, emitter = _create_adapters(settings)
    return RangePoller(
        size_tracker=size_tracker,
        fetcher=fetcher,
        decoder=decoder,
        extractor=extractor,
        emitter=emitter,
        interval_seconds=settings.interval_seconds,
        cursor_store=InMemoryCursorStore(),
        max_batch_size=settings.max_batch_size,
    )


def main(argv: Sequence[str] | None = None) -> None:
    """Wire dependencies and run the polling loop until it stops."""
    args = parse_args(argv)

    loaded = Result.from_computation(
        lambda: _load_settings(args),
        ErrorCode.CONFIGURATION_ERROR,
        "Configuration error",
    )
    if loaded.is_failure():
        print(f"FATAL: {loaded.error()}", file=sys.stderr)  # noqa: T201
        sys.exit(EXIT_USAGE)
    settings = loaded.value()

    configure_structlog(settings.log_level, json_output=settings.log_json)
    log = structlog.get_logger()

    log.info(
        "app.starting",
        version=__version__,
        log_url=settings.log_url,
        interval_seconds=settings.interval_seconds,
        max_batch_size=settings.max_batch_size,
    )

    poller = create_poller(settings)

    try:
        result = poller.run()
    except KeyboardInterrupt:
        log.info("app.shutdown", reason="interrupted", last_size=poller.last_size)
        sys.exit(EXIT_OK)

    if result.is_failure():
        error = result.error()
        log.error("app.fatal_error", code=error.code.value, error=error.detail())
        sys.exit(EXIT_FATAL)

    log.info("app.shutdown", reason="completed", cycles=result.value())


if __name__ == "__main__":
    main()
