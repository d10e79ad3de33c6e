"""Feed envelope entities."""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from acp_ingest.configuration.runtime_settings import FeedConfig


@dataclass(frozen=True)
class FeedEnvelope:
    """Canonical message published once per feed fetch cycle."""

    module_name: str
    module_id: str
    feed_id: str
    ts: int
    acp_ts: str
    request_data: tuple[Mapping[str, Any], ...]

    def to_message(self) -> dict[str, Any]:
        """Return the JSON-compatible mapping published on the bus."""
        return {
            "module_name": self.module_name,
            "module_id": self.module_id,
            "feed_id": self.feed_id,
            "ts": self.ts,
            "acp_ts": self.acp_ts,
            "request_data": [dict(record) for record in self.request_data],
        }


def build_feed_envelope(
    feed: FeedConfig,
    records: Sequence[Mapping[str, Any]],
    *,
    received_at: datetime,
) -> FeedEnvelope:
    """Wrap parsed records with the producer metadata of `feed`."""
    seconds = math.floor(received_at.timestamp())
    millis = received_at.microsecond // 1000
    return FeedEnvelope(
        module_name=feed.module_name,
        module_id=feed.module_id,
        feed_id=feed.feed_id,
        ts=seconds,
        acp_ts=f"{seconds}.{millis:03d}",
        request_data=tuple(records),
    )
