"""Filesystem write primitive shared by the blocking and non-blocking filing paths."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from acp_ingest.configuration.runtime_settings import StoreMode

from .filing_outcomes import FileWriteResult, FilingRequest

logger = logging.getLogger(__name__)


def persist_filing_request(request: FilingRequest) -> FileWriteResult:
    """Create the directory if needed, then overwrite-with-rotation or append.

    Failures are logged and reported in the result; nothing is raised or retried.
    """
    if not request.stays_in_directory():
        error = ValueError(f"file name {request.file_name!r} leaves {request.directory}")
        logger.error("Route %s: %s", request.route_id, error)
        return FileWriteResult.failed(request.path, error)
    try:
        _ensure_directory(request.path.parent)
    except OSError as exc:
        logger.error(
            "Route %s: error creating path %s: %s", request.route_id, request.path.parent, exc
        )
        return FileWriteResult.failed(request.path, exc)

    try:
        if request.store_mode is StoreMode.APPEND:
            append_file(request.path, request.content)
        else:
            overwrite_file(request.path, request.previous_path, request.content)
    except OSError as exc:
        logger.error(
            "Route %s: %s failed for %s: %s",
            request.route_id,
            request.store_mode.value,
            request.path,
            exc,
        )
        return FileWriteResult.failed(request.path, exc)
    return FileWriteResult.written(request.path)


def overwrite_file(path: Path, previous_path: Path, content: str) -> None:
    """Keep the current file as `previous_path`, then write `content` to `path`.

    Not atomic: a crash after the rename and before the write leaves only the
    previous version.
    """
    _remove_quietly(previous_path)
    _rename_quietly(path, previous_path)
    path.write_text(content, encoding="utf-8")


def append_file(path: Path, content: str) -> None:
    """Append `content` plus a newline and flush before closing."""
    with path.open("a", encoding="utf-8") as handle:
        handle.write(content)
        handle.write("\n")
        handle.flush()


def _ensure_directory(directory: Path) -> None:
    if directory.is_dir():
        return
    logger.info("Creating directory %s", directory)
    # exist_ok covers another writer creating the same directory meanwhile.
    directory.mkdir(parents=True, exist_ok=True)


def _remove_quietly(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.debug("Could not remove %s: %s", path, exc)


def _rename_quietly(source: Path, target: Path) -> None:
    try:
        os.replace(source, target)
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.debug("Could not rotate %s to %s: %s", source, target, exc)
