"""Command line interface entry point."""

from __future__ import annotations

import sys

import click

from acp_ingest.bootstrap import LOG_LEVEL_NAMES, configure_logging
from acp_ingest.configuration import (
    DEFAULT_CONFIG_FILENAME,
    ConfigurationError,
    load_configuration,
    write_placeholder_configuration,
)
from acp_ingest.run_execution import (
    BusRunRequest,
    IngestRequest,
    RunExecutionError,
    execute_bus_filing_run,
    execute_feed_ingest_run,
)


class CliError(Exception):
    """Custom CLI error."""


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="acp-ingest")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVEL_NAMES, case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Minimum level of log records written to stderr.",
)
def cli(log_level: str) -> None:
    """Normalize city sensor feeds and file them per route."""
    configure_logging(log_level)


@cli.command(name="generate-config")
@click.option(
    "--output",
    "output_path",
    required=False,
    default=DEFAULT_CONFIG_FILENAME,
    show_default=True,
    type=click.Path(path_type=str),
    help="Path to the YAML configuration template to write",
)
def generate_config(output_path: str) -> None:
    """Generate a placeholder YAML feed and route configuration."""
    try:
        resolved_output = write_placeholder_configuration(output_path)
    except (FileExistsError, OSError) as exc:
        raise CliError(str(exc)) from exc
    click.echo(str(resolved_output))


@cli.command(name="check-config")
@click.option(
    "--config",
    "config_path",
    required=True,
    type=click.Path(path_type=str),
    help="Path to YAML/JSON feed and route configuration file",
)
def check_config(config_path: str) -> None:
    """Validate a configuration file and list rejected entries."""
    try:
        configuration = load_configuration(config_path)
    except ConfigurationError as exc:
        raise CliError(str(exc)) from exc
    click.echo(f"feeds: {len(configuration.feeds)}")
    click.echo(f"routes: {len(configuration.routes)}")
    for route in configuration.routes:
        if route.records_path is not None:
            click.echo(f"  {route.route_id}: records {route.records_path.describe()}")
    if configuration.rejected_entries:
        details = "\n".join(
            f"{entry.section}[{entry.index}]: {entry.message}"
            for entry in configuration.rejected_entries
        )
        raise CliError(f"rejected entries:\n{details}")


@cli.command(name="ingest")
@click.option(
    "--config",
    "config_path",
    required=True,
    type=click.Path(path_type=str),
    help="Path to YAML/JSON feed and route configuration file",
)
@click.option("--feed", "feed_id", required=True, help="Configured feed_id of the raw input")
@click.option(
    "--input",
    "input_path",
    required=True,
    type=click.Path(path_type=str),
    help="Path to one raw feed document (XML or JSON)",
)
@click.option(
    "--async",
    "non_blocking",
    is_flag=True,
    default=False,
    help="Schedule writes on the worker pool instead of the calling thread.",
)
def ingest(config_path: str, feed_id: str, input_path: str, non_blocking: bool) -> None:
    """Normalize one raw feed document and file it on the subscribed routes."""
    try:
        outcome = execute_feed_ingest_run(
            IngestRequest(
                config_path=config_path,
                feed_id=feed_id,
                input_path=input_path,
                blocking=not non_blocking,
            )
        )
    except RunExecutionError as exc:
        raise CliError(str(exc)) from exc
    click.echo(
        f"{outcome.feed_id}: {outcome.record_count} records, "
        f"{outcome.written} written, {outcome.failed} failed"
    )


@cli.command(name="serve")
@click.option(
    "--config",
    "config_path",
    required=True,
    type=click.Path(path_type=str),
    help="Path to YAML/JSON feed and route configuration file",
)
@click.option(
    "--max-messages",
    type=click.IntRange(min=1),
    default=None,
    help="Stop after this many envelopes.",
)
@click.option(
    "--idle-timeout-seconds",
    type=click.FloatRange(min=0),
    default=None,
    help="Stop after the bus stayed silent this long.",
)
def serve(config_path: str, max_messages: int | None, idle_timeout_seconds: float | None) -> None:
    """Consume envelopes from the bus and file them on the subscribed routes."""
    try:
        outcome = execute_bus_filing_run(
            BusRunRequest(
                config_path=config_path,
                max_messages=max_messages,
                idle_timeout_seconds=idle_timeout_seconds,
            )
        )
    except RunExecutionError as exc:
        raise CliError(str(exc)) from exc
    click.echo(
        f"{outcome.messages} envelopes, {outcome.written} written, {outcome.failed} failed"
    )


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for console_scripts wiring."""
    argv = argv if argv is not None else sys.argv[1:]
    try:
        cli.main(args=list(argv), standalone_mode=False)
    except CliError as exc:
        click.echo(str(exc), err=True)
        return 1
    except click.ClickException as exc:
        exc.show()
        return exc.exit_code
    except click.Abort:
        click.echo("Aborted.", err=True)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
