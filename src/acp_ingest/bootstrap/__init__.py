"""Process bootstrap exports."""

from .logging_setup import LOG_FORMAT, LOG_LEVEL_NAMES, configure_logging

__all__ = ["LOG_FORMAT", "LOG_LEVEL_NAMES", "configure_logging"]
