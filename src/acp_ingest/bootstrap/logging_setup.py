"""Process-wide logging configuration for CLI entry points."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_LEVEL_NAMES = ("DEBUG", "INFO", "WARNING", "ERROR")
CONSOLE_HANDLER_NAME = "acp_ingest.console"


def configure_logging(level: str | int = logging.INFO) -> None:
    """Attach the acp-ingest stderr handler to the root logger and set its level.

    Handlers installed by others are left alone; repeated calls reuse the
    console handler and just adjust the level.
    """
    resolved_level = logging.getLevelName(level.upper()) if isinstance(level, str) else level
    if not isinstance(resolved_level, int):
        raise ValueError(f"Unknown log level: {level}")
    root = logging.getLogger()
    if not any(handler.get_name() == CONSOLE_HANDLER_NAME for handler in root.handlers):
        console = logging.StreamHandler()
        console.set_name(CONSOLE_HANDLER_NAME)
        console.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(console)
    root.setLevel(resolved_level)
