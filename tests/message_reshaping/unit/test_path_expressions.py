"""Records path compile and resolve tests."""

from __future__ import annotations

import logging

import pytest
from acp_ingest.message_reshaping import (
    ArrayStep,
    IndexedArrayStep,
    ObjectStep,
    PathExpressionError,
    compile_path,
    resolve_path,
)


def test_compiles_object_indexed_and_array_steps() -> None:
    expression = compile_path("a>request_data[0]>sites")

    assert expression.steps == (
        ObjectStep("a"),
        IndexedArrayStep("request_data", 0),
        ArrayStep("sites"),
    )
    assert expression.describe() == "OBJECT: a > INDEXED_ARRAY: request_data[0] > ARRAY: sites"


def test_resolves_list_nested_inside_indexed_element() -> None:
    sites = [{"site": 1}, {"site": 2}]
    envelope = {"request_data": [{"sites": sites}, {"sites": []}]}

    resolved = resolve_path(compile_path("request_data[0]>sites"), envelope)

    assert resolved == [{"site": 1}, {"site": 2}]
    assert resolved is sites


def test_single_step_returns_top_level_list() -> None:
    envelope = {"request_data": [{"a": 1}]}

    assert resolve_path(compile_path("request_data"), envelope) == [{"a": 1}]


@pytest.mark.parametrize(
    "envelope",
    [
        {},
        {"request_data": "not-a-list"},
        {"request_data": []},
        {"request_data": [{"sites": {"not": "a list"}}]},
        {"request_data": ["scalar"]},
    ],
)
def test_unresolvable_paths_return_empty_list_with_warning(envelope, caplog) -> None:
    with caplog.at_level(logging.WARNING):
        assert resolve_path(compile_path("request_data[0]>sites"), envelope) == []

    assert "not resolved" in caplog.text


@pytest.mark.parametrize("path", ["", "a>>b", "a>b[x]", "a[-1]>b", "a[0]]"])
def test_malformed_paths_fail_to_compile(path: str) -> None:
    with pytest.raises(PathExpressionError):
        compile_path(path)
