"""Configuration domain entities."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from acp_ingest.message_reshaping.path_expressions import PathExpression
from acp_ingest.record_filtering.filter_predicates import FilterPredicate


class TagFormat(str, Enum):
    """Conversion applied when a tag mapping derives a new field."""

    STRING = "string"
    INT = "int"
    FLOAT = "float"
    DATETIME_ISO_TO_UTC = "datetime_iso_to_utc"
    DATETIME_ISO_TO_INT_UTC_SECONDS = "datetime_iso_to_int_utc_seconds"


class FeedType(str, Enum):
    """Supported raw feed parsers."""

    XML_FLAT = "feed_xml_flat"
    JOURNEY_TIMES = "feed_journey_times"


class StoreMode(str, Enum):
    """How a route writes each record to its target file."""

    WRITE = "write"
    APPEND = "append"


@dataclass(frozen=True)
class TagMapping:
    """Rename-plus-convert rule for one source tag."""

    source_field: str
    output_field: str
    format: TagFormat = TagFormat.STRING


@dataclass(frozen=True)
class FeedConfig:
    """Normalization settings for one feed type."""

    feed_id: str
    feed_type: FeedType
    address: str
    module_name: str
    module_id: str
    tag_record: str | None
    tag_map: tuple[TagMapping, ...]


@dataclass(frozen=True)
class RouteConfig:  # pylint: disable=too-many-instance-attributes
    """Filing rule binding a bus address to a filter, reshape mode and storage templates."""

    route_id: str
    source_address: str
    predicate: FilterPredicate | None
    flatten_field: str | None
    records_path: PathExpression | None
    merge_fields: tuple[str, ...]
    store_path_template: str
    store_name_template: str
    store_mode: StoreMode


@dataclass(frozen=True)
class FilingSettings:
    """Worker pool settings used by the non-blocking persistence path."""

    parallelism: int


@dataclass(frozen=True)
class BusSettings:
    """Kafka consumer configuration for the envelope bus."""

    bootstrap_servers: tuple[str, ...]
    group_id: str
    security: Mapping[str, object]
    poll_interval_ms: int
    auto_offset_reset: str


@dataclass(frozen=True)
class RejectedEntry:
    """A feed or route entry that failed validation and was left out."""

    section: str
    index: int
    message: str


@dataclass(frozen=True)
class Configuration:
    """Top-level configuration aggregate."""

    path: Path
    feeds: tuple[FeedConfig, ...]
    routes: tuple[RouteConfig, ...]
    filing: FilingSettings
    bus: BusSettings | None
    rejected_entries: tuple[RejectedEntry, ...] = ()

    def get_feed(self, feed_id: str) -> FeedConfig | None:
        """Return the feed configured under `feed_id`, if any."""
        for feed in self.feeds:
            if feed.feed_id == feed_id:
                return feed
        return None
