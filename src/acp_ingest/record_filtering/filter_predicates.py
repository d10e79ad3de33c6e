"""Filter predicate entities and their configuration syntax."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

DEFAULT_LAT_FIELD = "acp_lat"
DEFAULT_LNG_FIELD = "acp_lng"


class PredicateConfigError(Exception):
    """Raised when a source_filter definition cannot be turned into a predicate."""


@dataclass(frozen=True)
class PolygonVertex:
    """One polygon corner in latitude/longitude."""

    lat: float
    lng: float


@dataclass(frozen=True)
class EqualsPredicate:
    """Record field must hold exactly this string."""

    field: str
    value: str


@dataclass(frozen=True)
class InsidePolygonPredicate:
    """Record position must lie inside the closed polygon."""

    lat_field: str
    lng_field: str
    vertices: tuple[PolygonVertex, ...]


@dataclass(frozen=True)
class MemberOfPredicate:
    """Record field must hold one of the listed strings."""

    field: str
    values: frozenset[str]


FilterPredicate = EqualsPredicate | InsidePolygonPredicate | MemberOfPredicate


def parse_filter_predicate(definition: Any) -> FilterPredicate:
    """Build a predicate from a `{"test": ..., ...}` filter definition.

    The `test` key selects the predicate kind and defaults to `"="`:

      {"test": "=", "key": "VehicleRef", "value": "SCNH-35224"}
      {"test": "inside", "lat_key": "Latitude", "lng_key": "Longitude",
       "points": [{"lat": 52.21, "lng": 0.099}, ...]}
      {"test": "in", "key": "acp_id", "values": ["elsys-eye-044504"]}
    """
    if not isinstance(definition, Mapping):
        raise PredicateConfigError("source_filter must be a mapping.")
    test = definition.get("test", "=")
    if test == "=":
        return EqualsPredicate(
            field=_require_key(definition, "key"),
            value=_require_scalar_text(definition.get("value"), "value"),
        )
    if test == "inside":
        return InsidePolygonPredicate(
            lat_field=_optional_key(definition, "lat_key", DEFAULT_LAT_FIELD),
            lng_field=_optional_key(definition, "lng_key", DEFAULT_LNG_FIELD),
            vertices=_parse_vertices(definition.get("points")),
        )
    if test == "in":
        values = definition.get("values")
        if isinstance(values, str) or not isinstance(values, Sequence):
            raise PredicateConfigError("source_filter 'in' requires a list of values.")
        return MemberOfPredicate(
            field=_require_key(definition, "key"),
            values=frozenset(_require_scalar_text(item, "values entry") for item in values),
        )
    raise PredicateConfigError(f"source_filter test '{test}' not recognised.")


def _parse_vertices(points: Any) -> tuple[PolygonVertex, ...]:
    if isinstance(points, str) or not isinstance(points, Sequence):
        raise PredicateConfigError("source_filter 'inside' requires a list of points.")
    vertices: list[PolygonVertex] = []
    for point in points:
        if not isinstance(point, Mapping):
            raise PredicateConfigError("Polygon points must be mappings with lat and lng.")
        try:
            vertices.append(PolygonVertex(lat=float(point["lat"]), lng=float(point["lng"])))
        except (KeyError, TypeError, ValueError) as exc:
            raise PredicateConfigError(f"Invalid polygon point: {dict(point)}") from exc
    if len(vertices) < 3:
        raise PredicateConfigError("Polygon requires at least three points.")
    return tuple(vertices)


def _require_key(definition: Mapping[str, Any], name: str) -> str:
    value = definition.get(name)
    if not isinstance(value, str) or not value.strip():
        raise PredicateConfigError(f"source_filter requires a non-empty '{name}'.")
    return value.strip()


def _optional_key(definition: Mapping[str, Any], name: str, default: str) -> str:
    if definition.get(name) is None:
        return default
    return _require_key(definition, name)


def _require_scalar_text(value: Any, label: str) -> str:
    # Numeric config values are kept in string form; records still match on strings only.
    if isinstance(value, bool) or value is None:
        raise PredicateConfigError(f"source_filter {label} must be a string or number.")
    if isinstance(value, str | int | float):
        return str(value)
    raise PredicateConfigError(f"source_filter {label} must be a string or number.")
