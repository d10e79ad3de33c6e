"""Feed normalization exports."""

from .feed_envelopes import FeedEnvelope, build_feed_envelope
from .feed_parsers import (
    FeedParser,
    FeedParserError,
    FlatXmlFeedParser,
    JourneyTimesFeedParser,
    build_feed_parser,
)
from .flat_tag_scanner import Record, parse_flat_records
from .tag_conversions import derive_field

__all__ = [
    "FeedEnvelope",
    "build_feed_envelope",
    "FeedParser",
    "FeedParserError",
    "FlatXmlFeedParser",
    "JourneyTimesFeedParser",
    "build_feed_parser",
    "Record",
    "parse_flat_records",
    "derive_field",
]
