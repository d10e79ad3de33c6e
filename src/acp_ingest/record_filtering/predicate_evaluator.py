"""Filter predicate evaluation service."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from .filter_predicates import (
    EqualsPredicate,
    FilterPredicate,
    InsidePolygonPredicate,
    MemberOfPredicate,
    PolygonVertex,
)

logger = logging.getLogger(__name__)


def evaluate(predicate: FilterPredicate, record: Mapping[str, Any]) -> bool:
    """Return True when `record` satisfies `predicate`; lookup failures give False."""
    if isinstance(predicate, EqualsPredicate):
        return _test_equals(predicate, record)
    if isinstance(predicate, InsidePolygonPredicate):
        return _test_inside(predicate, record)
    if isinstance(predicate, MemberOfPredicate):
        return _test_member_of(predicate, record)
    logger.warning("Filter predicate %r not recognised", predicate)
    return False


def point_in_polygon(lat: float, lng: float, vertices: Sequence[PolygonVertex]) -> bool:
    """Ray-casting test; the last vertex closes back onto the first."""
    inside = False
    count = len(vertices)
    if count < 3:
        return False
    previous = vertices[-1]
    for current in vertices:
        if (current.lat > lat) != (previous.lat > lat):
            crossing_lng = (previous.lng - current.lng) * (lat - current.lat) / (
                previous.lat - current.lat
            ) + current.lng
            if lng < crossing_lng:
                inside = not inside
        previous = current
    return inside


def _test_equals(predicate: EqualsPredicate, record: Mapping[str, Any]) -> bool:
    record_value = record.get(predicate.field)
    if not isinstance(record_value, str):
        return False
    return record_value == predicate.value


def _test_member_of(predicate: MemberOfPredicate, record: Mapping[str, Any]) -> bool:
    record_value = record.get(predicate.field)
    if not isinstance(record_value, str):
        return False
    return record_value in predicate.values


def _test_inside(predicate: InsidePolygonPredicate, record: Mapping[str, Any]) -> bool:
    lat = _coordinate(record, predicate.lat_field)
    lng = _coordinate(record, predicate.lng_field)
    if lat is None or lng is None:
        return False
    return point_in_polygon(lat, lng, predicate.vertices)


def _coordinate(record: Mapping[str, Any], field: str) -> float | None:
    value = record.get(field)
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None
