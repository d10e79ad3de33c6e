"""Record filtering exports."""

from .filter_predicates import (
    EqualsPredicate,
    FilterPredicate,
    InsidePolygonPredicate,
    MemberOfPredicate,
    PolygonVertex,
    PredicateConfigError,
    parse_filter_predicate,
)
from .predicate_evaluator import evaluate, point_in_polygon

__all__ = [
    "EqualsPredicate",
    "FilterPredicate",
    "InsidePolygonPredicate",
    "MemberOfPredicate",
    "PolygonVertex",
    "PredicateConfigError",
    "parse_filter_predicate",
    "evaluate",
    "point_in_polygon",
]
