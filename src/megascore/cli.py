"""
Command-line interface for MEGASCORE.

Provides commands for scoring EDF flow recordings, inspecting EDF headers,
and managing analysis settings.
"""

import json
import logging
import sys

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version
from pathlib import Path
from typing import Any

import click

from megascore.analysis.register_all import create_default_registry
from megascore.analysis.service import AnalysisError, AnalysisService
from megascore.analysis.shared.types import ERROR_KEY, AnalysisConfig
from megascore.analysis.types import RecordingAnalysis
from megascore.config import (
    ANALYSIS_SECTION,
    get_config_path,
    load_analysis_config,
    load_config,
    reset_analysis_config,
    set_analysis_value,
)
from megascore.logging_config import setup_logging
from megascore.parsers import FormatError, read_edf

logger = logging.getLogger(__name__)

try:
    __version__ = get_version("megascore")
except PackageNotFoundError:
    __version__ = "dev"


def version_callback(ctx: click.Context, param: click.Parameter, value: bool) -> None:
    """Show version."""
    if not value or ctx.resilient_parsing:
        return
    click.echo(f"megascore, version {__version__}")
    ctx.exit()


def parse_overrides(assignments: tuple[str, ...]) -> dict[str, str]:
    """
    Parse repeated --set key=value options.

    Raises:
        click.BadParameter: If an assignment has no '='
    """
    overrides = {}
    for assignment in assignments:
        key, sep, value = assignment.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(
                f"Expected key=value, got {assignment!r}", param_hint="--set"
            )
        overrides[key.strip()] = value.strip()
    return overrides


def _format_table(headers: list[str], rows: list[list[str]]) -> str:
    widths = [len(header) for header in headers]
    for row in rows:
        widths = [max(width, len(cell)) for width, cell in zip(widths, row)]

    lines = ["  ".join(h.ljust(w) for h, w in zip(headers, widths))]
    lines.append("  ".join("-" * w for w in widths))
    for row in rows:
        lines.append("  ".join(cell.ljust(w) for cell, w in zip(row, widths)))
    return "\n".join(lines)


def _analysis_row(analysis: RecordingAnalysis, schema: list[Any]) -> list[str]:
    start = (
        analysis.recording_start.strftime("%Y-%m-%d %H:%M:%S")
        if analysis.recording_start
        else "-"
    )
    row = [analysis.source, start, f"{analysis.duration_minutes:.1f}"]
    for column in schema:
        result = analysis.results.get(column.analyzer_id, {})
        if ERROR_KEY in result:
            row.append("error")
        else:
            row.append(result.get(column.key, "-"))
    return row


@click.group()
@click.option(
    "--version",
    is_flag=True,
    callback=version_callback,
    expose_value=False,
    is_eager=True,
    help="Show version",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
def cli(verbose: bool) -> None:
    """MEGASCORE: Ventilatory stability scoring for CPAP flow recordings"""
    setup_logging(verbose=verbose, console_format="%(levelname)s: %(message)s")


@cli.command()
@click.argument(
    "files", nargs=-1, required=True, type=click.Path(dir_okay=False, path_type=Path)
)
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON")
@click.option(
    "--set",
    "assignments",
    multiple=True,
    metavar="KEY=VALUE",
    help="Override an analysis parameter for this run (repeatable)",
)
def analyze(files: tuple[Path, ...], as_json: bool, assignments: tuple[str, ...]) -> None:
    """Score one or more EDF recordings."""
    try:
        config = load_analysis_config(parse_overrides(assignments))
    except ValueError as e:
        raise click.ClickException(f"Invalid analysis parameters: {e}") from e

    service = AnalysisService()
    analyses: list[RecordingAnalysis] = []
    failed = 0

    for path in files:
        try:
            analyses.append(service.analyze_file(path, config))
        except (OSError, FormatError, AnalysisError) as e:
            failed += 1
            logger.debug(f"Failed to analyze {path}", exc_info=True)
            click.echo(f"✗ {path.name}: {e}", err=True)

    if as_json:
        payload = [analysis.model_dump(mode="json") for analysis in analyses]
        click.echo(json.dumps(payload, indent=2))
    elif analyses:
        schema = service.registry.column_schema()
        headers = ["File", "Start", "Duration (min)"] + [c.label for c in schema]
        rows = [_analysis_row(analysis, schema) for analysis in analyses]
        click.echo(_format_table(headers, rows))

        for analysis in analyses:
            for analyzer_id in analysis.failed_analyzers:
                message = analysis.results[analyzer_id][ERROR_KEY]
                click.echo(
                    f"⚠ {analysis.source}: {analyzer_id} failed: {message}", err=True
                )

    if failed:
        click.echo(f"\n{failed} of {len(files)} file(s) could not be analyzed", err=True)
        sys.exit(1)


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def inspect(file: Path) -> None:
    """Show the header and channel table of an EDF file."""
    try:
        recording = read_edf(file)
    except FormatError as e:
        raise click.ClickException(str(e)) from e

    header = recording.header
    click.echo(f"File:        {file.name}")
    click.echo(f"Version:     {header.version}")
    click.echo(f"Patient:     {header.patient_id}")
    click.echo(f"Recording:   {header.recording_id}")
    start = header.recording_timestamp
    click.echo(
        f"Start:       {start.isoformat(sep=' ') if start else 'unknown'} "
        f"({header.start_date} {header.start_time})"
    )
    click.echo(
        f"Records:     {header.num_data_records} × {header.record_duration_sec:g}s "
        f"({header.total_duration_minutes:.1f} min)"
    )
    click.echo(f"Signals:     {header.num_signals}\n")

    flow_label = recording.flow_channel.label if recording.flow_channel else None
    rows = []
    for channel in recording.channels:
        descriptor = channel.descriptor
        rows.append(
            [
                str(descriptor.signal_index),
                descriptor.label + (" *" if descriptor.label == flow_label else ""),
                descriptor.physical_dimension,
                f"{descriptor.sampling_rate_hz:g}",
                f"{descriptor.physical_min:g}..{descriptor.physical_max:g}",
                f"{descriptor.digital_min}..{descriptor.digital_max}",
            ]
        )
    click.echo(
        _format_table(["#", "Label", "Unit", "Rate (Hz)", "Physical", "Digital"], rows)
    )

    if flow_label is None:
        click.echo("\nNo flow channel found")
    else:
        click.echo(f"\n* flow channel: {flow_label}")


@cli.command()
def columns() -> None:
    """List the output columns of every registered analyzer."""
    registry = create_default_registry()
    rows = [
        [column.analyzer_id, column.key, column.label]
        for column in registry.column_schema()
    ]
    click.echo(_format_table(["Analyzer", "Key", "Label"], rows))


@cli.group()
def config() -> None:
    """Configuration management commands."""
    pass


@config.command("show")
def show_config_cmd() -> None:
    """Show the effective analysis parameters and file settings."""
    config_path = get_config_path()
    if config_path.exists():
        click.echo(f"Config file: {config_path}\n")
    else:
        click.echo(f"No config file: {config_path} (using defaults)\n")

    effective = load_analysis_config()

    click.echo(f"  [{ANALYSIS_SECTION}]")
    for name, value in effective.model_dump().items():
        source = " (default)" if value == AnalysisConfig.model_fields[name].default else ""
        click.echo(f"    {name} = {value:g}{source}")

    logging_settings = load_config().get("logging")
    if isinstance(logging_settings, dict) and logging_settings:
        click.echo("  [logging]")
        for key, value in logging_settings.items():
            click.echo(f"    {key} = {value!r}")


@config.command("set")
@click.argument("key")
@click.argument("value")
def set_config_cmd(key: str, value: str) -> None:
    """Persist an analysis parameter (camelCase or snake_case KEY)."""
    try:
        stored = set_analysis_value(key, value)
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    click.echo(f"✓ {key} = {stored:g}")
    click.echo(f"  Config: {get_config_path()}")


@config.command("reset")
def reset_config_cmd() -> None:
    """Remove all stored analysis parameters."""
    reset_analysis_config()
    click.echo("✓ Analysis parameters reset to defaults")


if __name__ == "__main__":
    cli()
