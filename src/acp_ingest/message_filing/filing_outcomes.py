"""Message filing domain entities."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from acp_ingest.configuration.runtime_settings import StoreMode

PREV_FILE_SUFFIX = ".prev"


@dataclass(frozen=True)
class FilingRequest:
    """One output record resolved to its target location and serialized content."""

    route_id: str
    directory: Path
    file_name: str
    content: str
    store_mode: StoreMode

    @property
    def path(self) -> Path:
        # String join keeps an absolute file name under the directory.
        return Path(f"{self.directory}/{self.file_name}")

    @property
    def previous_path(self) -> Path:
        return Path(f"{self.directory}/{self.file_name}{PREV_FILE_SUFFIX}")

    def stays_in_directory(self) -> bool:
        """True when the target does not climb out of `directory` via `..`."""
        relative = os.path.relpath(self.path, self.directory)
        return relative != os.pardir and not relative.startswith(os.pardir + os.sep)


class WriteStatus(str, Enum):
    """File write outcome status."""

    WRITTEN = "written"
    FAILED = "failed"


@dataclass(frozen=True)
class FileWriteResult:
    """Outcome of persisting one filing request."""

    path: Path
    status: WriteStatus
    error_message: str | None

    @staticmethod
    def written(path: Path) -> FileWriteResult:
        return FileWriteResult(path=path, status=WriteStatus.WRITTEN, error_message=None)

    @staticmethod
    def failed(path: Path, error: Exception) -> FileWriteResult:
        return FileWriteResult(path=path, status=WriteStatus.FAILED, error_message=str(error))
