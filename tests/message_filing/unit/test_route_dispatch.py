"""Route dispatcher tests."""

from __future__ import annotations

import logging
from pathlib import Path

from acp_ingest.configuration import RouteConfig, StoreMode
from acp_ingest.message_filing import RouteDispatcher, WriteStatus


def _route(route_id: str, address: str, directory: Path, mode: StoreMode) -> RouteConfig:
    return RouteConfig(
        route_id=route_id,
        source_address=address,
        predicate=None,
        flatten_field="request_data",
        records_path=None,
        merge_fields=(),
        store_path_template=str(directory),
        store_name_template="{{acp_id}}.json",
        store_mode=mode,
    )


def _routes(tmp_path: Path) -> list[RouteConfig]:
    return [
        _route("latest", "acp.feed.siri_vm", tmp_path / "latest", StoreMode.WRITE),
        _route("history", "acp.feed.siri_vm", tmp_path / "history", StoreMode.APPEND),
        _route("zones", "acp.feed.zones", tmp_path / "zones", StoreMode.WRITE),
    ]


ENVELOPE = {"module_id": "siri_vm", "request_data": [{"acp_id": "bus-1"}, {"acp_id": "bus-2"}]}


def test_groups_filers_by_address(tmp_path: Path) -> None:
    with RouteDispatcher(_routes(tmp_path)) as dispatcher:
        assert dispatcher.addresses == ("acp.feed.siri_vm", "acp.feed.zones")
        assert [filer.route.route_id for filer in dispatcher.filers_for("acp.feed.siri_vm")] == [
            "latest",
            "history",
        ]
        assert dispatcher.filers_for("acp.feed.unknown") == ()


def test_blocking_dispatch_reaches_every_route_on_address(tmp_path: Path) -> None:
    with RouteDispatcher(_routes(tmp_path)) as dispatcher:
        results = dispatcher.dispatch_blocking("acp.feed.siri_vm", ENVELOPE)

    assert len(results) == 4
    assert all(result.status is WriteStatus.WRITTEN for result in results)
    assert (tmp_path / "latest" / "bus-1.json").exists()
    assert (tmp_path / "history" / "bus-2.json").exists()
    assert not (tmp_path / "zones").exists()


def test_non_blocking_dispatch_finishes_before_close_returns(tmp_path: Path) -> None:
    dispatcher = RouteDispatcher(_routes(tmp_path), parallelism=1)
    for _ in range(3):
        dispatcher.dispatch("acp.feed.siri_vm", ENVELOPE)
    dispatcher.close()

    history = (tmp_path / "history" / "bus-1.json").read_text(encoding="utf-8").splitlines()
    assert len(history) == 3
    assert (tmp_path / "latest" / "bus-1.json.prev").exists()


def test_one_failing_filer_does_not_stop_the_others(tmp_path: Path, monkeypatch, caplog) -> None:
    def _explode(message):
        raise RuntimeError("boom")

    dispatcher = RouteDispatcher(_routes(tmp_path))
    latest_filer = dispatcher.filers_for("acp.feed.siri_vm")[0]
    monkeypatch.setattr(latest_filer, "store_message_blocking", _explode)

    with caplog.at_level(logging.ERROR):
        results = dispatcher.dispatch_blocking("acp.feed.siri_vm", ENVELOPE)
    dispatcher.close()

    assert len(results) == 2
    assert "Route latest: message not filed: boom" in caplog.text
