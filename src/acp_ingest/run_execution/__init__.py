"""Run execution domain exports."""

from .ingest_run_use_case import (
    FilingTally,
    RunExecutionError,
    execute_bus_filing_run,
    execute_feed_ingest_run,
)
from .run_contracts import BusRunOutcome, BusRunRequest, IngestOutcome, IngestRequest

__all__ = [
    "IngestRequest",
    "IngestOutcome",
    "BusRunRequest",
    "BusRunOutcome",
    "RunExecutionError",
    "FilingTally",
    "execute_feed_ingest_run",
    "execute_bus_filing_run",
]
