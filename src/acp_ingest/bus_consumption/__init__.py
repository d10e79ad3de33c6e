"""Bus consumption exports."""

from .envelope_messages import BusEnvelope
from .envelope_reader import EnvelopeDecodeError, EnvelopeReader

__all__ = ["BusEnvelope", "EnvelopeDecodeError", "EnvelopeReader"]
