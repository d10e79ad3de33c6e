"""Configuration scaffold generation helpers."""

from __future__ import annotations

from pathlib import Path

DEFAULT_CONFIG_FILENAME = "acp-ingest.yaml"

_CONFIG_SCAFFOLD_TEMPLATE = """# Feed and route configuration template for acp-ingest.
# Replace every <REQUIRED> placeholder before running ingest or serve.
# Replace <OPTIONAL> placeholders only when your setup needs them.

feeds:
  - feed_id: "<REQUIRED>"
    # feed_xml_flat | feed_journey_times
    feed_type: "feed_xml_flat"
    # Bus address the normalized envelope is published on.
    address: "<REQUIRED>"
    module_name: "<OPTIONAL>"
    module_id: "<OPTIONAL>"
    # Required for feed_xml_flat: the repeating record tag, e.g. VehicleActivity.
    tag_record: "<REQUIRED>"
    tag_map:
      # format: string | int | float | datetime_iso_to_utc | datetime_iso_to_int_utc_seconds
      - original_tag: "<OPTIONAL>"
        new_tag: "<OPTIONAL>"
        format: "string"

routes:
  - route_id: "<OPTIONAL>"
    source_address: "<REQUIRED>"
    # Optional filter, one of:
    #   {test: "=", key: <field>, value: <string>}
    #   {test: "in", key: <field>, values: [<string>, ...]}
    #   {test: "inside", lat_key: <field>, lng_key: <field>, points: [{lat: .., lng: ..}, ...]}
    # source_filter: {test: "=", key: "module_id", value: "<OPTIONAL>"}
    # Choose at most one of flatten or records_data.
    flatten: "request_data"
    # records_data: "request_data[0]>sites"
    # merge_base: ["module_id", "ts"]
    # Placeholders: {{field}}, {{field|int}}, {{field|yyyy}}, {{field|MM}}, {{field|dd}}
    store_path: "<REQUIRED>"
    store_name: "<REQUIRED>"
    # write (keeps the previous file as <name>.prev) | append (one JSON line per record)
    store_mode: "write"

filing:
  parallelism: 4

# Needed only by the serve command.
# bus:
#   bootstrap_servers:
#     - "<REQUIRED>"
#   group_id: "<OPTIONAL>"
#   security:
#     sasl.username: "<OPTIONAL>"
#     sasl.password: "<OPTIONAL>"
#   poll_interval_ms: 500
#   auto_offset_reset: "latest"
"""


def build_placeholder_configuration() -> str:
    """Build a YAML configuration template with placeholders and inline guidance."""
    return _CONFIG_SCAFFOLD_TEMPLATE


def write_placeholder_configuration(output_path: Path | str) -> Path:
    """Write the placeholder configuration template to the requested output path.

    Args:
      output_path: Destination file path for the scaffold.

    Returns:
      The resolved destination path.

    Raises:
      FileExistsError: If the destination file already exists.
      OSError: If writing the scaffold fails.
    """
    destination = Path(output_path)
    if destination.exists():
        raise FileExistsError(f"Configuration file already exists: {destination.resolve()}")
    destination.write_text(build_placeholder_configuration(), encoding="utf-8")
    return destination.resolve()
