"""Derived-field conversions applied by tag mappings."""

from __future__ import annotations

import math
from collections.abc import Callable
from datetime import UTC, datetime

from acp_ingest.configuration.runtime_settings import TagFormat, TagMapping

ScalarValue = str | int | float


def derive_field(mapping: TagMapping, raw_value: str) -> dict[str, ScalarValue]:
    """Return `{output_field: converted}`, or an empty dict when conversion fails."""
    try:
        converted = _CONVERTERS[mapping.format](raw_value)
    except (ValueError, OverflowError):
        return {}
    return {mapping.output_field: converted}


def _parse_offset_datetime(raw_value: str) -> datetime:
    # "2017-09-29T09:45:38+01:00"; timestamps without an offset are rejected.
    parsed = datetime.fromisoformat(raw_value.strip())
    if parsed.tzinfo is None:
        raise ValueError(f"Timestamp has no UTC offset: {raw_value}")
    return parsed.astimezone(UTC)


def _to_utc_text(raw_value: str) -> str:
    # "2017-09-29T09:45:38+01:00" -> "2017-09-29T08:45:38Z"
    moment = _parse_offset_datetime(raw_value)
    text = moment.strftime("%Y-%m-%dT%H:%M:%S")
    if moment.microsecond:
        fraction = f"{moment.microsecond:06d}"
        if fraction.endswith("000"):
            fraction = fraction[:3]
        text = f"{text}.{fraction}"
    return f"{text}Z"


def _to_utc_seconds(raw_value: str) -> int:
    return math.floor(_parse_offset_datetime(raw_value).timestamp())


_CONVERTERS: dict[TagFormat, Callable[[str], ScalarValue]] = {
    TagFormat.STRING: str,
    TagFormat.INT: int,
    TagFormat.FLOAT: float,
    TagFormat.DATETIME_ISO_TO_UTC: _to_utc_text,
    TagFormat.DATETIME_ISO_TO_INT_UTC_SECONDS: _to_utc_seconds,
}
