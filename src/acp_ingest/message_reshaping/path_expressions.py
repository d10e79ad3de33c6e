"""Path expressions locating a nested list of records inside an envelope.

A path such as ``"a>request_data[0]>sites"`` compiles to::

    OBJECT: a > INDEXED_ARRAY: request_data[0] > ARRAY: sites

Every step but the last descends into a nested object, a ``name[n]`` step selects
the list ``name`` and continues into its element ``n``, and the last step (unless
indexed) selects the list that is returned.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

PATH_DELIMITER = ">"
_INDEXED_STEP_PATTERN = re.compile(r"^(?P<name>[^\[\]]+)\[(?P<index>[^\[\]]*)\]$")


class PathExpressionError(Exception):
    """Raised when a records path string cannot be compiled."""


class _PathResolutionError(Exception):
    """Internal signal that the envelope does not have the expected shape."""


@dataclass(frozen=True)
class ObjectStep:
    """Descend into a nested object field."""

    name: str

    def describe(self) -> str:
        return f"OBJECT: {self.name}"


@dataclass(frozen=True)
class ArrayStep:
    """Select a nested list field as the current result."""

    name: str

    def describe(self) -> str:
        return f"ARRAY: {self.name}"


@dataclass(frozen=True)
class IndexedArrayStep:
    """Select a nested list field and continue into one of its elements."""

    name: str
    index: int

    def describe(self) -> str:
        return f"INDEXED_ARRAY: {self.name}[{self.index}]"


PathStep = ObjectStep | ArrayStep | IndexedArrayStep


@dataclass(frozen=True)
class PathExpression:
    """Compiled records path."""

    source: str
    steps: tuple[PathStep, ...]

    def describe(self) -> str:
        """Return the step listing used in logs."""
        return " > ".join(step.describe() for step in self.steps)


def compile_path(path: str) -> PathExpression:
    """Compile a `>`-delimited path string into navigation steps."""
    if not isinstance(path, str) or not path.strip():
        raise PathExpressionError("Records path must be a non-empty string.")
    parts = path.strip().split(PATH_DELIMITER)
    steps: list[PathStep] = []
    for position, raw_part in enumerate(parts):
        part = raw_part.strip()
        if not part:
            raise PathExpressionError(f"Records path '{path}' contains an empty step.")
        is_last = position == len(parts) - 1
        steps.append(_compile_step(path, part, is_last=is_last))
    return PathExpression(source=path, steps=tuple(steps))


def resolve_path(expression: PathExpression, envelope: Mapping[str, Any]) -> list[Any]:
    """Return the list the path points at, or an empty list when the envelope does not fit."""
    try:
        return _walk(expression, envelope)
    except _PathResolutionError as exc:
        logger.warning("Records path '%s' not resolved: %s", expression.source, exc)
        return []


def _compile_step(path: str, part: str, *, is_last: bool) -> PathStep:
    if part.endswith("]"):
        match = _INDEXED_STEP_PATTERN.match(part)
        if match is None:
            raise PathExpressionError(f"Records path '{path}' has a malformed step '{part}'.")
        try:
            index = int(match.group("index"))
        except ValueError as exc:
            raise PathExpressionError(
                f"Records path '{path}' has a non-integer index in '{part}'."
            ) from exc
        if index < 0:
            raise PathExpressionError(f"Records path '{path}' has a negative index in '{part}'.")
        return IndexedArrayStep(name=match.group("name").strip(), index=index)
    if is_last:
        return ArrayStep(name=part)
    return ObjectStep(name=part)


def _walk(expression: PathExpression, envelope: Mapping[str, Any]) -> list[Any]:
    current_object: Any = envelope
    current_array: list[Any] = []
    for step in expression.steps:
        if not isinstance(current_object, Mapping):
            raise _PathResolutionError(f"expected an object before '{step.name}'")
        value = current_object.get(step.name)
        if isinstance(step, ObjectStep):
            if not isinstance(value, Mapping):
                raise _PathResolutionError(f"'{step.name}' is not an object")
            current_object = value
            continue
        if not isinstance(value, list):
            raise _PathResolutionError(f"'{step.name}' is not a list")
        current_array = value
        if isinstance(step, IndexedArrayStep):
            if step.index >= len(value):
                raise _PathResolutionError(
                    f"index {step.index} out of range for '{step.name}' ({len(value)} items)"
                )
            current_object = value[step.index]
    return current_array
