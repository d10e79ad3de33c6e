"""Bus consumption entities."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class BusEnvelope:
    """Decoded envelope received on one bus address."""

    address: str
    envelope: Mapping[str, Any]
    timestamp: datetime | None
