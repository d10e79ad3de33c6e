"""Message filing exports."""

from .file_rotation import append_file, overwrite_file, persist_filing_request
from .filing_outcomes import PREV_FILE_SUFFIX, FileWriteResult, FilingRequest, WriteStatus
from .route_dispatch import RouteDispatcher
from .route_filer import RouteFiler

__all__ = [
    "append_file",
    "overwrite_file",
    "persist_filing_request",
    "PREV_FILE_SUFFIX",
    "FileWriteResult",
    "FilingRequest",
    "WriteStatus",
    "RouteDispatcher",
    "RouteFiler",
]
