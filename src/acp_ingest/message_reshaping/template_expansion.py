"""Storage path templating with ``{{field}}`` and ``{{field|function}}`` placeholders."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any

logger = logging.getLogger(__name__)

PLACEHOLDER_START = "{{"
PLACEHOLDER_END = "}}"
FUNCTION_SEPARATOR = "|"


def expand_template(pattern: str, record: Mapping[str, Any]) -> str:
    """Return `pattern` with each placeholder replaced from `record`.

    Examples:
      "data/{{module_id}}"           -> "data/zone_manager"
      "{{ts|yyyy}}/{{ts|MM}}"        -> "2020/01"
      "{{x|foo}}"                    -> "x|foo"
    """
    parts: list[str] = []
    index = 0
    while index < len(pattern):
        start = pattern.find(PLACEHOLDER_START, index)
        end = pattern.find(PLACEHOLDER_END, start) if start >= 0 else -1
        if start < 0 or end < 0:
            parts.append(pattern[index:])
            break
        parts.append(pattern[index:start])
        parts.append(_fill_placeholder(pattern[start + len(PLACEHOLDER_START) : end], record))
        index = end + len(PLACEHOLDER_END)
    return "".join(parts)


def _fill_placeholder(placeholder: str, record: Mapping[str, Any]) -> str:
    separator = placeholder.find(FUNCTION_SEPARATOR)
    if separator < 0:
        return _render_field(placeholder, record)
    field_name = placeholder[:separator]
    for suffix, render in _FUNCTIONS.items():
        if placeholder.endswith(FUNCTION_SEPARATOR + suffix):
            return render(record, field_name)
    return placeholder


def _render_field(field_name: str, record: Mapping[str, Any]) -> str:
    if field_name not in record or record[field_name] is None:
        return field_name
    return str(record[field_name])


def _render_int(record: Mapping[str, Any], field_name: str) -> str:
    value = record.get(field_name)
    if isinstance(value, bool) or not isinstance(value, int | float):
        return "0"
    try:
        return str(int(value))
    except (ValueError, OverflowError):
        # NaN and infinities have no integer form.
        return "0"


def _render_date_part(
    pick: Callable[[datetime], int], width: int
) -> Callable[[Mapping[str, Any], str], str]:
    def render(record: Mapping[str, Any], field_name: str) -> str:
        return str(pick(_field_to_local_datetime(record, field_name))).zfill(width)

    return render


def _field_to_local_datetime(record: Mapping[str, Any], field_name: str) -> datetime:
    value = record.get(field_name, 0)
    try:
        if isinstance(value, int | float) and not isinstance(value, bool):
            return datetime.fromtimestamp(value, tz=UTC).astimezone()
        if isinstance(value, str):
            parsed = datetime.fromisoformat(value)
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=UTC)
            return parsed.astimezone()
    except (ValueError, OverflowError, OSError):
        logger.warning("Template field '%s' is not a timestamp: %r", field_name, value)
    return datetime.fromtimestamp(0, tz=UTC).astimezone()


_FUNCTIONS: dict[str, Callable[[Mapping[str, Any], str], str]] = {
    "int": _render_int,
    "yyyy": _render_date_part(lambda moment: moment.year, 4),
    "MM": _render_date_part(lambda moment: moment.month, 2),
    "dd": _render_date_part(lambda moment: moment.day, 2),
}
