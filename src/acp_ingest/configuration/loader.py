"""Configuration loader service."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import Any, TypeVar

import yaml

from acp_ingest.message_reshaping.path_expressions import PathExpressionError, compile_path
from acp_ingest.record_filtering.filter_predicates import (
    PredicateConfigError,
    parse_filter_predicate,
)

from .runtime_settings import (
    BusSettings,
    Configuration,
    FeedConfig,
    FeedType,
    FilingSettings,
    RejectedEntry,
    RouteConfig,
    StoreMode,
    TagFormat,
    TagMapping,
)

logger = logging.getLogger(__name__)

DEFAULT_MODULE_NAME = "feedmaker"
DEFAULT_PARALLELISM = 4

_EntryT = TypeVar("_EntryT")


class ConfigurationError(Exception):
    """Raised when the configuration file is invalid."""


def load_configuration(config_path: Path | str) -> Configuration:
    """Load and validate the configuration file.

    Root, `filing` and `bus` problems are fatal. A broken feed or route entry is
    logged, recorded in `rejected_entries`, and left out so the rest still loads.
    """
    path = Path(config_path)
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}")

    text = path.read_text(encoding="utf-8")
    try:
        parsed = yaml.safe_load(text)
    except yaml.YAMLError as exc:  # pragma: no cover - exercised indirectly
        raise ConfigurationError(f"Failed to parse configuration file: {exc}") from exc

    if parsed is None:
        parsed = {}

    if not isinstance(parsed, Mapping):
        raise ConfigurationError("Configuration root must be a mapping.")

    rejected: list[RejectedEntry] = []
    feeds = _parse_entries(parsed.get("feeds"), "feeds", _parse_feed_entry, rejected)
    routes = _parse_entries(parsed.get("routes"), "routes", _parse_route_entry, rejected)
    _check_unique_feed_ids(feeds)
    filing = _parse_filing_section(parsed.get("filing"))
    bus = _parse_bus_section(parsed.get("bus"))

    return Configuration(
        path=path,
        feeds=tuple(feeds),
        routes=tuple(routes),
        filing=filing,
        bus=bus,
        rejected_entries=tuple(rejected),
    )


def _parse_entries(
    value: Any,
    section_name: str,
    parse_entry: Callable[[Mapping[str, Any], int], _EntryT],
    rejected: list[RejectedEntry],
) -> list[_EntryT]:
    if value is None:
        return []
    if isinstance(value, str) or not isinstance(value, Sequence):
        raise ConfigurationError(f"Configuration section '{section_name}' must be a list.")
    entries: list[_EntryT] = []
    for index, raw_entry in enumerate(value):
        try:
            entry_section = _require_mapping(raw_entry, f"{section_name}[{index}]")
            entries.append(parse_entry(entry_section, index))
        except ConfigurationError as exc:
            logger.error("Skipping %s[%d]: %s", section_name, index, exc)
            rejected.append(RejectedEntry(section=section_name, index=index, message=str(exc)))
    return entries


def _parse_feed_entry(section: Mapping[str, Any], index: int) -> FeedConfig:
    label = f"feeds[{index}]"
    feed_id = _require_non_empty_string(section.get("feed_id"), f"{label}.feed_id")
    feed_type = _require_enum(FeedType, section.get("feed_type"), f"{label}.feed_type")
    address = _require_non_empty_string(section.get("address"), f"{label}.address")
    module_name = (
        _optional_string(section.get("module_name"), f"{label}.module_name")
        or DEFAULT_MODULE_NAME
    )
    module_id = _optional_string(section.get("module_id"), f"{label}.module_id") or feed_id
    tag_record = _optional_string(section.get("tag_record"), f"{label}.tag_record")
    if feed_type is FeedType.XML_FLAT and tag_record is None:
        raise ConfigurationError(f"{label}.tag_record is required for {feed_type.value} feeds.")
    tag_map = _parse_tag_map(section.get("tag_map"), f"{label}.tag_map")
    return FeedConfig(
        feed_id=feed_id,
        feed_type=feed_type,
        address=address,
        module_name=module_name,
        module_id=module_id,
        tag_record=tag_record,
        tag_map=tag_map,
    )


def _parse_tag_map(value: Any, label: str) -> tuple[TagMapping, ...]:
    if value is None:
        return ()
    if isinstance(value, str) or not isinstance(value, Sequence):
        raise ConfigurationError(f"{label} must be a list of mappings.")
    mappings: list[TagMapping] = []
    for position, item in enumerate(value):
        entry = _require_mapping(item, f"{label}[{position}]")
        raw_format = entry.get("format")
        mappings.append(
            TagMapping(
                source_field=_require_non_empty_string(
                    entry.get("original_tag"), f"{label}[{position}].original_tag"
                ),
                output_field=_require_non_empty_string(
                    entry.get("new_tag"), f"{label}[{position}].new_tag"
                ),
                format=(
                    TagFormat.STRING
                    if raw_format is None
                    else _require_enum(TagFormat, raw_format, f"{label}[{position}].format")
                ),
            )
        )
    return tuple(mappings)


def _parse_route_entry(section: Mapping[str, Any], index: int) -> RouteConfig:
    label = f"routes[{index}]"
    route_id = _optional_string(section.get("route_id"), f"{label}.route_id") or f"route-{index}"
    source_address = _require_non_empty_string(
        section.get("source_address"), f"{label}.source_address"
    )
    flatten_field = _optional_string(section.get("flatten"), f"{label}.flatten")
    records_data = _optional_string(section.get("records_data"), f"{label}.records_data")
    if flatten_field and records_data:
        raise ConfigurationError(f"{label} must not set both flatten and records_data.")
    merge_fields = _normalize_string_sequence(section.get("merge_base"), f"{label}.merge_base")
    if merge_fields and not records_data:
        raise ConfigurationError(f"{label}.merge_base requires records_data.")

    predicate = None
    if section.get("source_filter") is not None:
        try:
            predicate = parse_filter_predicate(section.get("source_filter"))
        except PredicateConfigError as exc:
            raise ConfigurationError(f"{label}.source_filter: {exc}") from exc

    records_path = None
    if records_data:
        try:
            records_path = compile_path(records_data)
        except PathExpressionError as exc:
            raise ConfigurationError(f"{label}.records_data: {exc}") from exc
        logger.debug("Route %s records path: %s", route_id, records_path.describe())

    return RouteConfig(
        route_id=route_id,
        source_address=source_address,
        predicate=predicate,
        flatten_field=flatten_field,
        records_path=records_path,
        merge_fields=merge_fields,
        store_path_template=_require_non_empty_string(
            section.get("store_path"), f"{label}.store_path"
        ),
        store_name_template=_require_non_empty_string(
            section.get("store_name"), f"{label}.store_name"
        ),
        store_mode=_require_enum(StoreMode, section.get("store_mode"), f"{label}.store_mode"),
    )


def _parse_filing_section(value: Any) -> FilingSettings:
    if value is None:
        return FilingSettings(parallelism=DEFAULT_PARALLELISM)
    section = _require_mapping(value, "filing")
    parallelism = _require_positive_int(
        section.get("parallelism", DEFAULT_PARALLELISM), "filing.parallelism"
    )
    return FilingSettings(parallelism=parallelism)


def _parse_bus_section(value: Any) -> BusSettings | None:
    if value is None:
        return None
    section = _require_mapping(value, "bus")
    bootstrap_servers = _normalize_bootstrap_servers(section.get("bootstrap_servers"))
    group_id = _optional_string(section.get("group_id"), "bus.group_id") or "acp-ingest"
    security = section.get("security") or {}
    if not isinstance(security, Mapping):
        raise ConfigurationError("bus.security must be a mapping.")
    poll_interval_ms = _require_positive_int(
        section.get("poll_interval_ms", 500), "bus.poll_interval_ms"
    )
    auto_offset_reset = _require_non_empty_string(
        section.get("auto_offset_reset", "latest"), "bus.auto_offset_reset"
    ).lower()
    return BusSettings(
        bootstrap_servers=bootstrap_servers,
        group_id=group_id,
        security=dict(security),
        poll_interval_ms=poll_interval_ms,
        auto_offset_reset=auto_offset_reset,
    )


def _check_unique_feed_ids(feeds: Sequence[FeedConfig]) -> None:
    seen: set[str] = set()
    for feed in feeds:
        if feed.feed_id in seen:
            raise ConfigurationError(f"Duplicate feed_id: {feed.feed_id}")
        seen.add(feed.feed_id)


def _normalize_bootstrap_servers(value: Any) -> tuple[str, ...]:
    if value is None:
        raise ConfigurationError("bus.bootstrap_servers is required.")
    servers: list[str] = []
    if isinstance(value, str):
        servers = [item.strip() for item in value.split(",") if item.strip()]
    elif isinstance(value, Sequence):
        for item in value:
            if not isinstance(item, str):
                raise ConfigurationError("bus.bootstrap_servers entries must be strings.")
            stripped = item.strip()
            if stripped:
                servers.append(stripped)
    else:
        raise ConfigurationError("bus.bootstrap_servers must be a string or list of strings.")
    if not servers:
        raise ConfigurationError("bus.bootstrap_servers must contain at least one server.")
    return tuple(servers)


def _normalize_string_sequence(value: Any, field_name: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        stripped = value.strip()
        return (stripped,) if stripped else ()
    if isinstance(value, Sequence):
        normalized = []
        for item in value:
            if not isinstance(item, str):
                raise ConfigurationError(f"{field_name} entries must be strings.")
            stripped = item.strip()
            if stripped:
                normalized.append(stripped)
        return tuple(normalized)
    raise ConfigurationError(f"{field_name} must be a string or list of strings.")


_EnumT = TypeVar("_EnumT", FeedType, StoreMode, TagFormat)


def _require_enum(enum_cls: type[_EnumT], value: Any, field_name: str) -> _EnumT:
    text = _require_non_empty_string(value, field_name)
    try:
        return enum_cls(text)
    except ValueError as exc:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ConfigurationError(f"{field_name} must be one of: {allowed}.") from exc


def _require_mapping(value: Any, section_name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"Configuration section '{section_name}' is required.")
    return value


def _require_non_empty_string(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise ConfigurationError(f"{field_name} must be a string.")
    stripped = value.strip()
    if not stripped:
        raise ConfigurationError(f"{field_name} must not be empty.")
    return stripped


def _optional_string(value: Any, field_name: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigurationError(f"{field_name} must be a string.")
    stripped = value.strip()
    return stripped or None


def _require_positive_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"{field_name} must be an integer.")
    if not isinstance(value, int):
        raise ConfigurationError(f"{field_name} must be an integer.")
    if value <= 0:
        raise ConfigurationError(f"{field_name} must be greater than zero.")
    return value
