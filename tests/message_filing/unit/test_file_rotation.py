"""Filesystem persistence and rotation tests."""

from __future__ import annotations

import logging
from pathlib import Path

from acp_ingest.configuration import StoreMode
from acp_ingest.message_filing import (
    FilingRequest,
    WriteStatus,
    overwrite_file,
    persist_filing_request,
)


def _request(directory: Path, content: str, mode: StoreMode = StoreMode.WRITE) -> FilingRequest:
    return FilingRequest(
        route_id="zones",
        directory=directory,
        file_name="zone.json",
        content=content,
        store_mode=mode,
    )


def test_overwrite_creates_missing_directories(tmp_path: Path) -> None:
    directory = tmp_path / "2020" / "06" / "15"

    result = persist_filing_request(_request(directory, '{"v":1}'))

    assert result.status is WriteStatus.WRITTEN
    assert result.path == directory / "zone.json"
    assert (directory / "zone.json").read_text(encoding="utf-8") == '{"v":1}'
    assert not (directory / "zone.json.prev").exists()


def test_overwrite_rotates_existing_file_to_prev(tmp_path: Path) -> None:
    persist_filing_request(_request(tmp_path, "first"))
    persist_filing_request(_request(tmp_path, "second"))
    persist_filing_request(_request(tmp_path, "third"))

    assert (tmp_path / "zone.json").read_text(encoding="utf-8") == "third"
    assert (tmp_path / "zone.json.prev").read_text(encoding="utf-8") == "second"


def test_overwrite_without_current_file_keeps_no_stale_prev(tmp_path: Path) -> None:
    (tmp_path / "zone.json.prev").write_text("stale", encoding="utf-8")

    overwrite_file(tmp_path / "zone.json", tmp_path / "zone.json.prev", "fresh")

    assert (tmp_path / "zone.json").read_text(encoding="utf-8") == "fresh"
    assert not (tmp_path / "zone.json.prev").exists()


def test_append_adds_one_line_per_write(tmp_path: Path) -> None:
    for index in range(5):
        result = persist_filing_request(_request(tmp_path, f'{{"n":{index}}}', StoreMode.APPEND))
        assert result.status is WriteStatus.WRITTEN

    lines = (tmp_path / "zone.json").read_text(encoding="utf-8").splitlines()
    assert lines == [f'{{"n":{index}}}' for index in range(5)]
    assert not (tmp_path / "zone.json.prev").exists()


def test_directory_creation_failure_is_reported_not_raised(tmp_path: Path, caplog) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("a file, not a directory", encoding="utf-8")

    with caplog.at_level(logging.ERROR):
        result = persist_filing_request(_request(blocker / "sub", "content"))

    assert result.status is WriteStatus.FAILED
    assert result.error_message
    assert "error creating path" in caplog.text


def test_write_failure_is_reported_not_raised(tmp_path: Path, caplog) -> None:
    (tmp_path / "zone.json").mkdir()
    (tmp_path / "zone.json" / "keep").write_text("x", encoding="utf-8")

    with caplog.at_level(logging.ERROR):
        result = persist_filing_request(_request(tmp_path, "content", StoreMode.APPEND))

    assert result.status is WriteStatus.FAILED
    assert "append failed" in caplog.text
