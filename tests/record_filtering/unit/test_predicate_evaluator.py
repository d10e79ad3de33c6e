"""Filter predicate evaluation tests."""

from __future__ import annotations

import logging

import pytest
from acp_ingest.record_filtering import (
    EqualsPredicate,
    InsidePolygonPredicate,
    MemberOfPredicate,
    PolygonVertex,
    evaluate,
    point_in_polygon,
)

UNIT_SQUARE = (
    PolygonVertex(lat=0.0, lng=0.0),
    PolygonVertex(lat=0.0, lng=1.0),
    PolygonVertex(lat=1.0, lng=1.0),
    PolygonVertex(lat=1.0, lng=0.0),
)


def _inside_square() -> InsidePolygonPredicate:
    return InsidePolygonPredicate(lat_field="acp_lat", lng_field="acp_lng", vertices=UNIT_SQUARE)


def test_equals_matches_string_value() -> None:
    predicate = EqualsPredicate(field="VehicleRef", value="SCNH-35224")

    assert evaluate(predicate, {"VehicleRef": "SCNH-35224"}) is True
    assert evaluate(predicate, {"VehicleRef": "SCNH-00001"}) is False
    assert evaluate(predicate, {}) is False


def test_equals_never_matches_numeric_record_value() -> None:
    predicate = EqualsPredicate(field="LineRef", value="4")

    assert evaluate(predicate, {"LineRef": 4}) is False
    assert evaluate(predicate, {"LineRef": "4"}) is True


def test_member_of_checks_string_membership() -> None:
    predicate = MemberOfPredicate(field="acp_id", values=frozenset({"a", "b"}))

    assert evaluate(predicate, {"acp_id": "b"}) is True
    assert evaluate(predicate, {"acp_id": "c"}) is False
    assert evaluate(predicate, {"acp_id": 1}) is False


def test_inside_polygon_accepts_numbers_and_numeric_strings() -> None:
    predicate = _inside_square()

    assert evaluate(predicate, {"acp_lat": 0.5, "acp_lng": 0.5}) is True
    assert evaluate(predicate, {"acp_lat": "0.5", "acp_lng": "0.25"}) is True
    assert evaluate(predicate, {"acp_lat": 2, "acp_lng": 0.5}) is False


@pytest.mark.parametrize(
    "record",
    [
        {},
        {"acp_lat": 0.5},
        {"acp_lat": "north", "acp_lng": 0.5},
        {"acp_lat": True, "acp_lng": 0.5},
        {"acp_lat": None, "acp_lng": None},
    ],
)
def test_inside_polygon_is_false_for_missing_or_unparseable_coordinates(record) -> None:
    assert evaluate(_inside_square(), record) is False


def test_points_on_edge_never_raise() -> None:
    for lat, lng in ((0.0, 0.5), (0.5, 0.0), (1.0, 1.0), (0.0, 0.0)):
        assert point_in_polygon(lat, lng, UNIT_SQUARE) in (True, False)


def test_concave_polygon_excludes_notch() -> None:
    # U shape opening north between lng 1 and 2.
    vertices = (
        PolygonVertex(0, 0),
        PolygonVertex(0, 3),
        PolygonVertex(3, 3),
        PolygonVertex(3, 2),
        PolygonVertex(1, 2),
        PolygonVertex(1, 1),
        PolygonVertex(3, 1),
        PolygonVertex(3, 0),
    )

    assert point_in_polygon(2.0, 0.5, vertices) is True
    assert point_in_polygon(2.0, 1.5, vertices) is False
    assert point_in_polygon(0.5, 1.5, vertices) is True


def test_unknown_predicate_logs_warning_and_is_false(caplog) -> None:
    with caplog.at_level(logging.WARNING):
        assert evaluate("VehicleRef == x", {"VehicleRef": "x"}) is False  # type: ignore[arg-type]

    assert "not recognised" in caplog.text
