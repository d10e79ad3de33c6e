"""Cursor scanner that flattens repeating XML-like records into flat field mappings.

Only atomic ``<Foo>value</Foo>`` pairs become fields; nesting is discarded and no
markup validation happens, so partially broken feeds still yield the records that
can be read. Within one record tag names are assumed unique (true for Siri-VM).
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

from acp_ingest.configuration.runtime_settings import TagMapping

from .tag_conversions import ScalarValue, derive_field

logger = logging.getLogger(__name__)

Record = dict[str, ScalarValue]


def parse_flat_records(
    raw: bytes | str,
    record_tag: str,
    tag_mappings: Sequence[TagMapping] = (),
) -> list[Record]:
    """Return one flat record per `<record_tag>...</record_tag>` span, in document order."""
    page = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
    mappings_by_tag = {mapping.source_field: mapping for mapping in tag_mappings}
    open_marker = f"<{record_tag}>"
    close_marker = f"</{record_tag}>"

    records: list[Record] = []
    cursor = 0
    while cursor < len(page):
        record_start = page.find(open_marker, cursor)
        if record_start < 0:
            break
        record_end = page.find(close_marker, record_start)
        if record_end < 0:
            logger.warning(
                "Incomplete %s object at offset %d, ignoring rest of feed",
                record_tag,
                record_start,
            )
            break
        records.append(_scan_record(page, record_start, record_end, mappings_by_tag))
        cursor = record_end

    logger.debug("Parsed %d %s records", len(records), record_tag)
    return records


def _scan_record(
    page: str,
    cursor: int,
    record_end: int,
    mappings_by_tag: Mapping[str, TagMapping],
) -> Record:
    """Collect atomic tag values between `cursor` (the record's opening `<`) and `record_end`."""
    record: Record = {}
    current_tag = ""
    while cursor < record_end:
        tag_open = page.find("<", cursor)
        if tag_open >= record_end:
            break
        # The closing record tag guarantees a '>' after any '<' inside the span.
        tag_close = page.find(">", tag_open)
        if page[tag_close - 1] == "/":
            # Self-closed element: the remainder of this record is dropped.
            logger.debug("Self-closed tag %s ends record early", page[tag_open : tag_close + 1])
            break
        tag_space = page.find(" ", tag_open, tag_close)
        tag_end = tag_space if tag_space > 0 else tag_close
        if tag_end >= record_end:
            break
        next_tag = page[tag_open + 1 : tag_end]
        if next_tag == f"/{current_tag}":
            value = page[cursor + 1 : tag_open]
            record[current_tag] = value
            mapping = mappings_by_tag.get(current_tag)
            if mapping is not None:
                record.update(derive_field(mapping, value))
        current_tag = next_tag
        cursor = tag_close
    return record
