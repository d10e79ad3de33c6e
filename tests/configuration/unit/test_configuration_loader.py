"""Configuration loader tests."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
from acp_ingest.configuration import (
    FeedType,
    StoreMode,
    TagFormat,
    TagMapping,
)
from acp_ingest.configuration.loader import ConfigurationError, load_configuration
from acp_ingest.message_reshaping import IndexedArrayStep
from acp_ingest.record_filtering import EqualsPredicate, InsidePolygonPredicate


def _write_file(path: Path, contents: str) -> Path:
    path.write_text(contents, encoding="utf-8")
    return path


def test_loads_yaml_configuration_with_defaults(tmp_path: Path) -> None:
    config_path = _write_file(
        tmp_path / "config.yaml",
        """
feeds:
  - feed_id: siri_vm
    feed_type: feed_xml_flat
    address: acp.feed.siri_vm
    tag_record: VehicleActivity
    tag_map:
      - {original_tag: Latitude, new_tag: acp_lat, format: float}
      - {original_tag: VehicleRef, new_tag: acp_id}
routes:
  - source_address: acp.feed.siri_vm
    source_filter: {key: module_id, value: siri_vm}
    flatten: request_data
    store_path: "/data/{{ts|yyyy}}/{{ts|MM}}/{{ts|dd}}"
    store_name: "{{acp_id}}.json"
    store_mode: write
""",
    )

    configuration = load_configuration(config_path)

    feed = configuration.get_feed("siri_vm")
    assert feed is not None
    assert feed.feed_type is FeedType.XML_FLAT
    assert feed.module_name == "feedmaker"
    assert feed.module_id == "siri_vm"
    assert feed.tag_map == (
        TagMapping("Latitude", "acp_lat", TagFormat.FLOAT),
        TagMapping("VehicleRef", "acp_id", TagFormat.STRING),
    )
    (route,) = configuration.routes
    assert route.route_id == "route-0"
    assert route.predicate == EqualsPredicate(field="module_id", value="siri_vm")
    assert route.flatten_field == "request_data"
    assert route.store_mode is StoreMode.WRITE
    assert configuration.filing.parallelism == 4
    assert configuration.bus is None
    assert configuration.rejected_entries == ()


def test_loads_json_configuration_with_records_path_and_bus(tmp_path: Path) -> None:
    config = {
        "routes": [
            {
                "route_id": "zones",
                "source_address": "acp.feed.zones",
                "source_filter": {
                    "test": "inside",
                    "points": [{"lat": 0, "lng": 0}, {"lat": 0, "lng": 1}, {"lat": 1, "lng": 1}],
                },
                "records_data": "request_data[0]>sites",
                "merge_base": ["module_id", "ts"],
                "store_path": "/data/zones",
                "store_name": "{{site_id}}.jsonl",
                "store_mode": "append",
            }
        ],
        "filing": {"parallelism": 8},
        "bus": {
            "bootstrap_servers": "kafka-1:9092, kafka-2:9092",
            "security": {"security.protocol": "SASL_SSL"},
            "auto_offset_reset": "EARLIEST",
        },
    }
    config_path = _write_file(tmp_path / "config.json", json.dumps(config))

    configuration = load_configuration(config_path)

    (route,) = configuration.routes
    assert isinstance(route.predicate, InsidePolygonPredicate)
    assert route.records_path is not None
    assert route.records_path.steps[0] == IndexedArrayStep("request_data", 0)
    assert route.merge_fields == ("module_id", "ts")
    assert route.store_mode is StoreMode.APPEND
    assert configuration.filing.parallelism == 8
    assert configuration.bus is not None
    assert configuration.bus.bootstrap_servers == ("kafka-1:9092", "kafka-2:9092")
    assert configuration.bus.group_id == "acp-ingest"
    assert configuration.bus.auto_offset_reset == "earliest"
    assert configuration.bus.poll_interval_ms == 500


def test_broken_entries_are_rejected_individually(tmp_path: Path, caplog) -> None:
    config_path = _write_file(
        tmp_path / "config.yaml",
        """
feeds:
  - feed_id: siri_vm
    feed_type: feed_xml_flat
    address: acp.feed.siri_vm
  - feed_id: journeys
    feed_type: feed_journey_times
    address: acp.feed.journeys
routes:
  - source_address: a
    flatten: request_data
    records_data: request_data[0]>sites
    store_path: /x
    store_name: y
    store_mode: write
  - source_address: a
    store_path: /x
    store_name: y
    store_mode: rotate
  - source_address: a
    source_filter: {test: near, key: a}
    store_path: /x
    store_name: y
    store_mode: write
  - source_address: a
    records_data: "request_data[x]>sites"
    store_path: /x
    store_name: y
    store_mode: write
  - route_id: ok
    source_address: a
    store_path: /x
    store_name: y
    store_mode: append
""",
    )

    with caplog.at_level(logging.ERROR):
        configuration = load_configuration(config_path)

    assert [feed.feed_id for feed in configuration.feeds] == ["journeys"]
    assert [route.route_id for route in configuration.routes] == ["ok"]
    rejected = [(entry.section, entry.index) for entry in configuration.rejected_entries]
    assert rejected == [("feeds", 0), ("routes", 0), ("routes", 1), ("routes", 2), ("routes", 3)]
    messages = [entry.message for entry in configuration.rejected_entries]
    assert "tag_record is required" in messages[0]
    assert "both flatten and records_data" in messages[1]
    assert "store_mode must be one of: write, append" in messages[2]
    assert "source_filter" in messages[3]
    assert "records_data" in messages[4]
    assert "Skipping routes[1]" in caplog.text


def test_merge_base_requires_records_data(tmp_path: Path) -> None:
    config_path = _write_file(
        tmp_path / "config.yaml",
        """
routes:
  - source_address: a
    merge_base: [module_id]
    store_path: /x
    store_name: y
    store_mode: write
""",
    )

    configuration = load_configuration(config_path)

    assert configuration.routes == ()
    assert "merge_base requires records_data" in configuration.rejected_entries[0].message


@pytest.mark.parametrize(
    ("contents", "message"),
    [
        ("- just\n- a list\n", "root must be a mapping"),
        ("routes: {source_address: a}\n", "'routes' must be a list"),
        ("filing: {parallelism: 0}\n", "filing.parallelism must be greater than zero"),
        ("bus: {group_id: g}\n", "bus.bootstrap_servers is required"),
        (
            "feeds:\n"
            "  - {feed_id: a, feed_type: feed_journey_times, address: x}\n"
            "  - {feed_id: a, feed_type: feed_journey_times, address: y}\n",
            "Duplicate feed_id: a",
        ),
    ],
)
def test_file_level_problems_are_fatal(tmp_path: Path, contents: str, message: str) -> None:
    config_path = _write_file(tmp_path / "config.yaml", contents)

    with pytest.raises(ConfigurationError, match=message):
        load_configuration(config_path)


def test_missing_file_is_fatal(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="not found"):
        load_configuration(tmp_path / "absent.yaml")


def test_empty_file_loads_empty_configuration(tmp_path: Path) -> None:
    configuration = load_configuration(_write_file(tmp_path / "empty.yaml", ""))

    assert configuration.feeds == ()
    assert configuration.routes == ()
    assert configuration.get_feed("anything") is None
