"""Feed parser services selected by feed type."""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

from acp_ingest.configuration.runtime_settings import FeedConfig, FeedType

from .flat_tag_scanner import parse_flat_records

logger = logging.getLogger(__name__)


class FeedParserError(Exception):
    """Raised when no parser can be built for a feed configuration."""


class FeedParser(Protocol):  # pylint: disable=too-few-public-methods
    """Protocol for raw feed parsers."""

    def parse(self, raw: bytes | str) -> list[dict[str, Any]]: ...


class FlatXmlFeedParser:  # pylint: disable=too-few-public-methods
    """Flattens repeating XML records using the feed's tag_record and tag_map."""

    def __init__(self, feed: FeedConfig) -> None:
        if not feed.tag_record:
            raise FeedParserError(f"Feed {feed.feed_id} has no tag_record.")
        self._feed = feed
        self._record_tag = feed.tag_record
        logger.debug(
            "Flat XML parser for feed %s, %d tags to transform",
            feed.feed_id,
            len(feed.tag_map),
        )

    def parse(self, raw: bytes | str) -> list[dict[str, Any]]:
        return list(parse_flat_records(raw, self._record_tag, self._feed.tag_map))


class JourneyTimesFeedParser:  # pylint: disable=too-few-public-methods
    """Wraps a JSON array of journey times as a single `{"journeytimes": [...]}` record."""

    def parse(self, raw: bytes | str) -> list[dict[str, Any]]:
        text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
        try:
            decoded = json.loads(text)
        except json.JSONDecodeError as exc:
            logger.warning("Journey times feed is not valid JSON: %s", exc)
            return []
        if not isinstance(decoded, list):
            logger.warning("Journey times feed root is not a JSON array")
            return []
        return [{"journeytimes": decoded}]


def build_feed_parser(feed: FeedConfig) -> FeedParser:
    """Return the parser matching `feed.feed_type`."""
    if feed.feed_type is FeedType.XML_FLAT:
        return FlatXmlFeedParser(feed)
    if feed.feed_type is FeedType.JOURNEY_TIMES:
        return JourneyTimesFeedParser()
    raise FeedParserError(f"Unsupported feed type: {feed.feed_type}")
