"""Kafka consumer wrapper yielding feed envelopes per bus address."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Iterator, Mapping, Sequence
from datetime import UTC, datetime
from typing import Any, Protocol, cast

from confluent_kafka import Consumer, KafkaError

from acp_ingest.configuration.runtime_settings import BusSettings

from .envelope_messages import BusEnvelope

logger = logging.getLogger(__name__)

_KAFKA_CLIENT_LOGGER = logging.getLogger("acp_ingest.kafka.client")
_KAFKA_CLIENT_LOGGER.addHandler(logging.NullHandler())
_KAFKA_CLIENT_LOGGER.propagate = False
_KAFKA_CLIENT_LOGGER.setLevel(logging.CRITICAL + 1)


class EnvelopeDecodeError(Exception):
    """Raised when the bus reports an error that is not end-of-partition."""


class KafkaConsumerProtocol(Protocol):
    """Protocol implemented by both real and fake consumers."""

    def subscribe(self, topics: list[str], **kwargs: Any) -> None: ...

    def poll(self, timeout: float) -> _KafkaRawMessage | None: ...

    def close(self) -> None: ...


class _KafkaRawMessage(Protocol):
    """Subset of Kafka message API required by the reader."""

    def error(self) -> Any: ...

    def topic(self) -> str | None: ...

    def value(self) -> bytes | None: ...

    def timestamp(self) -> tuple[int, int | None]: ...


class EnvelopeReader:
    """Consumes the route source addresses as Kafka topics and yields decoded envelopes."""

    def __init__(
        self,
        bus_settings: BusSettings,
        addresses: Sequence[str],
        consumer: KafkaConsumerProtocol | None = None,
    ) -> None:
        self._settings = bus_settings
        self._addresses = list(addresses)
        self._consumer = consumer or self._create_consumer()

    def consume(
        self,
        *,
        max_messages: int | None = None,
        idle_timeout_seconds: float | None = None,
    ) -> Iterator[BusEnvelope]:
        """Yield envelopes until `max_messages` were read or the bus stayed idle too long.

        With neither limit set the reader runs until the consumer is interrupted.
        """
        self._consumer.subscribe(self._addresses)
        poll_timeout = self._settings.poll_interval_ms / 1000.0
        received = 0
        last_activity = time.monotonic()
        try:
            while max_messages is None or received < max_messages:
                message = self._consumer.poll(timeout=poll_timeout)
                if message is None:
                    if (
                        idle_timeout_seconds is not None
                        and time.monotonic() - last_activity >= idle_timeout_seconds
                    ):
                        break
                    continue
                last_activity = time.monotonic()
                if message.error():
                    if message.error().code() == KafkaError._PARTITION_EOF:
                        continue
                    raise EnvelopeDecodeError(f"Kafka error: {message.error()}")
                received += 1
                envelope = self._decode_envelope(message)
                if envelope is None:
                    continue
                yield BusEnvelope(
                    address=message.topic() or "",
                    envelope=envelope,
                    timestamp=self._decode_timestamp(message),
                )
        finally:
            self._consumer.close()

    @staticmethod
    def _decode_envelope(message: _KafkaRawMessage) -> Mapping[str, Any] | None:
        payload = message.value()
        if payload is None:
            logger.warning("Empty envelope on %s skipped", message.topic())
            return None
        try:
            decoded = json.loads(bytes(payload).decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.warning("Malformed envelope on %s skipped: %s", message.topic(), exc)
            return None
        if not isinstance(decoded, Mapping):
            logger.warning("Envelope on %s is not a JSON object, skipped", message.topic())
            return None
        return decoded

    @staticmethod
    def _decode_timestamp(message: _KafkaRawMessage) -> datetime | None:
        _timestamp_type, timestamp_value = message.timestamp()
        if timestamp_value is None:
            return None
        return datetime.fromtimestamp(timestamp_value / 1000, tz=UTC)

    def _create_consumer(self) -> KafkaConsumerProtocol:
        config: dict[str, str | int | float | bool | None] = {
            "bootstrap.servers": ",".join(self._settings.bootstrap_servers),
            "group.id": self._settings.group_id,
            "enable.auto.commit": True,
            "auto.offset.reset": self._settings.auto_offset_reset,
        }
        for key, value in self._settings.security.items():
            if isinstance(value, str | int | float | bool) or value is None:
                config[key] = value
        try:
            return cast(
                KafkaConsumerProtocol,
                Consumer(config, logger=_KAFKA_CLIENT_LOGGER),  # type: ignore[call-arg]
            )
        except TypeError:
            # Older/mock Consumer implementations may not support the logger kwarg.
            return cast(KafkaConsumerProtocol, Consumer(config))
