"""Run execution use-case services."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import Future, wait
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol

from acp_ingest.bus_consumption.envelope_messages import BusEnvelope
from acp_ingest.bus_consumption.envelope_reader import EnvelopeDecodeError, EnvelopeReader
from acp_ingest.configuration import (
    BusSettings,
    Configuration,
    ConfigurationError,
    load_configuration,
)
from acp_ingest.feed_normalization import FeedParserError, build_feed_envelope, build_feed_parser
from acp_ingest.message_filing import FileWriteResult, RouteDispatcher, WriteStatus

from .run_contracts import BusRunOutcome, BusRunRequest, IngestOutcome, IngestRequest

logger = logging.getLogger(__name__)


class RunExecutionError(Exception):
    """Raised when a run use case cannot be completed."""


class EnvelopeSource(Protocol):  # pylint: disable=too-few-public-methods
    """Anything yielding bus envelopes, real Kafka reader or test fake."""

    def consume(
        self,
        *,
        max_messages: int | None = None,
        idle_timeout_seconds: float | None = None,
    ) -> Iterable[BusEnvelope]: ...


ReaderFactory = Callable[[BusSettings, Sequence[str]], EnvelopeSource]


def execute_feed_ingest_run(request: IngestRequest) -> IngestOutcome:
    """Normalize one raw feed file and file the envelope on the feed's routes."""
    configuration = _load(request.config_path)
    feed = configuration.get_feed(request.feed_id)
    if feed is None:
        raise RunExecutionError(
            f"Feed '{request.feed_id}' is not configured in {configuration.path}."
        )
    try:
        raw = Path(request.input_path).read_bytes()
    except OSError as exc:
        raise RunExecutionError(f"Cannot read feed input {request.input_path}: {exc}") from exc
    try:
        parser = build_feed_parser(feed)
    except FeedParserError as exc:
        raise RunExecutionError(str(exc)) from exc

    records = parser.parse(raw)
    envelope = build_feed_envelope(feed, records, received_at=datetime.now(UTC))
    logger.info(
        "Feed %s: %d records parsed from %s", feed.feed_id, len(records), request.input_path
    )

    with RouteDispatcher(
        configuration.routes, parallelism=configuration.filing.parallelism
    ) as dispatcher:
        if not dispatcher.filers_for(feed.address):
            logger.warning("No route listens on %s, nothing filed", feed.address)
        if request.blocking:
            results = dispatcher.dispatch_blocking(feed.address, envelope.to_message())
        else:
            results = _collect(dispatcher.dispatch(feed.address, envelope.to_message()))

    written = sum(1 for result in results if result.status is WriteStatus.WRITTEN)
    return IngestOutcome(
        feed_id=feed.feed_id,
        record_count=len(records),
        written=written,
        failed=len(results) - written,
    )


def execute_bus_filing_run(
    request: BusRunRequest,
    *,
    reader_factory: ReaderFactory | None = None,
) -> BusRunOutcome:
    """Consume envelopes from the bus and file them on the subscribed routes."""
    configuration = _load(request.config_path)
    if configuration.bus is None:
        raise RunExecutionError(f"No bus section configured in {configuration.path}.")
    resolved_reader_factory = reader_factory or EnvelopeReader

    messages = 0
    tally = FilingTally()
    with RouteDispatcher(
        configuration.routes, parallelism=configuration.filing.parallelism
    ) as dispatcher:
        if not dispatcher.addresses:
            raise RunExecutionError(f"No routes configured in {configuration.path}.")
        try:
            reader = resolved_reader_factory(configuration.bus, dispatcher.addresses)
            for bus_envelope in reader.consume(
                max_messages=request.max_messages,
                idle_timeout_seconds=request.idle_timeout_seconds,
            ):
                messages += 1
                tally.track(dispatcher.dispatch(bus_envelope.address, bus_envelope.envelope))
        except EnvelopeDecodeError as exc:
            raise RunExecutionError(str(exc)) from exc
        tally.wait()

    logger.info(
        "Bus run finished: %d envelopes, %d written, %d failed",
        messages,
        tally.written,
        tally.failed,
    )
    return BusRunOutcome(messages=messages, written=tally.written, failed=tally.failed)


class FilingTally:
    """Running write counters for a long bus run.

    Only unfinished futures are held; each one is dropped and counted as soon
    as it completes. A task that crashed counts as failed.
    """

    def __init__(self) -> None:
        self._settled = threading.Condition()
        self._pending: set[Future[FileWriteResult]] = set()
        self.written = 0
        self.failed = 0

    @property
    def pending(self) -> int:
        with self._settled:
            return len(self._pending)

    def track(self, futures: Iterable[Future[FileWriteResult]]) -> None:
        for future in futures:
            with self._settled:
                self._pending.add(future)
            future.add_done_callback(self._settle)

    def wait(self) -> None:
        """Block until every tracked future has been counted."""
        with self._settled:
            self._settled.wait_for(lambda: not self._pending)

    def _settle(self, future: Future[FileWriteResult]) -> None:
        written = False
        if future.cancelled():
            logger.warning("Filing task cancelled before it ran")
        elif future.exception() is not None:
            logger.error("Filing task crashed: %s", future.exception())
        else:
            written = future.result().status is WriteStatus.WRITTEN
        with self._settled:
            self._pending.discard(future)
            if written:
                self.written += 1
            else:
                self.failed += 1
            self._settled.notify_all()


def _load(config_path: str) -> Configuration:
    try:
        return load_configuration(config_path)
    except ConfigurationError as exc:
        raise RunExecutionError(str(exc)) from exc


def _collect(futures: Sequence[Future[FileWriteResult]]) -> list[FileWriteResult]:
    wait(futures)
    results: list[FileWriteResult] = []
    for future in futures:
        exc = future.exception()
        if exc is not None:
            logger.error("Filing task crashed: %s", exc)
            continue
        results.append(future.result())
    return results
