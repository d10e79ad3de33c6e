"""Run execution entities."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class IngestRequest:
    """Input contract for normalizing and filing one raw feed file."""

    config_path: str
    feed_id: str
    input_path: str
    blocking: bool = True


@dataclass(frozen=True)
class IngestOutcome:
    """Output contract for one completed ingest run."""

    feed_id: str
    record_count: int
    written: int
    failed: int


@dataclass(frozen=True)
class BusRunRequest:
    """Input contract for filing envelopes consumed from the bus."""

    config_path: str
    max_messages: int | None = None
    idle_timeout_seconds: float | None = None


@dataclass(frozen=True)
class BusRunOutcome:
    """Output contract for one bus filing run."""

    messages: int
    written: int
    failed: int
