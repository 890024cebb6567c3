"""Click CLI for footfall analysis, forecasting, and heatmap export.

Provides five commands:
- ``analyze``: Build the full analytics report for a CSV upload.
- ``report``: Export the report as JSON or a flattened CSV row.
- ``forecast``: Print or export the 24-hour forecast.
- ``heatmap``: Export a density heatmap PNG from located records.
- ``template``: Write the upload CSV template.
"""

import json
import logging
from pathlib import Path
from typing import Optional

import click
import numpy as np
import pandas as pd

from src.analytics.aggregation import hour_label
from src.analytics.geo import bin_locations
from src.analytics.heatmap import HeatmapGenerator
from src.analytics.records import ValidationReport, validate_rows
from src.analytics.report import build_report
from src.utils.config import AppConfig, load_config
from src.utils.data_io import (
    flatten_report,
    read_footfall_csv,
    validate_csv_path,
    write_template_csv,
)
from src.utils.logger import setup_logger_from_config

logger = logging.getLogger(__name__)

__version__ = "1.0.0"


def _load_app_config(config_path: Optional[str], verbose: bool = False) -> AppConfig:
    config = load_config(config_path) if config_path else AppConfig()
    setup_logger_from_config("src", config.logging, verbose=verbose)
    return config


def _load_upload(input_path: str) -> ValidationReport:
    """Read and validate a CSV upload, turning data errors into usage errors."""
    try:
        validate_csv_path(input_path)
        validation = validate_rows(read_footfall_csv(input_path))
    except ValueError as exc:  # includes SchemaError and EmptyInputError
        raise click.BadParameter(str(exc), param_hint="'--input'") from exc
    for warning in validation.warnings:
        click.echo(f"Warning: {warning}", err=True)
    return validation


def _rng(seed: Optional[int]) -> np.random.Generator:
    return np.random.default_rng(seed)


input_option = click.option(
    "--input",
    "-i",
    "input_path",
    required=True,
    type=click.Path(exists=True),
    help="Footfall CSV file",
)
config_option = click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True),
    help="Application configuration YAML",
)
seed_option = click.option(
    "--seed",
    type=int,
    default=None,
    help="Random seed for reproducible forecasts and offers",
)


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """RetailPulse CLI - Footfall analytics, forecasting and recommendations."""


@cli.command()
@input_option
@config_option
@click.option(
    "--output",
    "-o",
    "output_dir",
    type=click.Path(),
    help="Output directory for results",
)
@seed_option
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
def analyze(
    input_path: str,
    config_path: Optional[str],
    output_dir: Optional[str],
    seed: Optional[int],
    verbose: bool,
) -> None:
    """Analyze a footfall CSV and write a JSON report.

    Example:
        retailpulse analyze -i footfall.csv -o output/ --seed 42
    """
    config = _load_app_config(config_path, verbose)
    validation = _load_upload(input_path)

    out = Path(output_dir) if output_dir else Path(input_path).parent / "output"
    out.mkdir(parents=True, exist_ok=True)

    click.echo(f"Analyzing: {input_path}")
    report = build_report(validation, config, rng=_rng(seed))

    results_path = out / "report.json"
    with open(results_path, "w") as f:
        json.dump(report.to_dict(), f, indent=2)

    summary = report.summary
    click.echo(f"\nResults saved to: {results_path}")
    click.echo(f"  Records: {summary.record_count}")
    click.echo(f"  Total footfall: {summary.total}")
    click.echo(f"  Average footfall: {summary.average}")
    click.echo(f"  Peak hour: {hour_label(summary.peak_hour)}")
    click.echo(f"  Lowest hour: {hour_label(summary.lowest_hour)}")
    click.echo(f"  Peak day: {summary.peak_day}")
    fc = report.forecast
    if fc:
        click.echo(
            f"  Forecast: {fc.total_predicted} visitors next 24h "
            f"({fc.trend_direction}, {fc.confidence} confidence)"
        )
    click.echo(f"  Location bins: {len(report.location_bins)}")


@cli.command()
@input_option
@config_option
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    help="Output file path",
)
@click.option(
    "--format",
    "-f",
    "fmt",
    type=click.Choice(["json", "csv"]),
    default="json",
    help="Output format",
)
@seed_option
def report(
    input_path: str,
    config_path: Optional[str],
    output: Optional[str],
    fmt: str,
    seed: Optional[int],
) -> None:
    """Export the analytics report as JSON or CSV.

    Example:
        retailpulse report -i footfall.csv -o report.csv -f csv
    """
    config = _load_app_config(config_path)
    validation = _load_upload(input_path)
    report_data = build_report(validation, config, rng=_rng(seed)).to_dict()

    output_path = Path(output) if output else Path(f"report.{fmt}")

    if fmt == "json":
        with open(output_path, "w") as f:
            json.dump(report_data, f, indent=2)
    elif fmt == "csv":
        df = pd.DataFrame([flatten_report(report_data)])
        df.to_csv(output_path, index=False)

    click.echo(f"Report saved to: {output_path}")


@cli.command()
@input_option
@config_option
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    help="Optional output file for the forecast table",
)
@click.option(
    "--format",
    "-f",
    "fmt",
    type=click.Choice(["json", "csv"]),
    default="csv",
    help="Output format when --output is given",
)
@seed_option
def forecast(
    input_path: str,
    config_path: Optional[str],
    output: Optional[str],
    fmt: str,
    seed: Optional[int],
) -> None:
    """Forecast footfall for the 24 hours after the latest record.

    Example:
        retailpulse forecast -i footfall.csv --seed 7 -o forecast.csv
    """
    config = _load_app_config(config_path)
    validation = _load_upload(input_path)
    result = build_report(validation, config, rng=_rng(seed)).forecast

    for point in result.points:
        click.echo(f"  {point.timestamp.isoformat()}  {point.predicted_footfall}")

    trend = (
        f"{result.trend_percent}%" if result.trend_percent is not None else "n/a"
    )
    click.echo(
        f"Total: {result.total_predicted} | Average: {result.avg_predicted} | "
        f"Peak: {result.peak_point.hour_label} | Trend: {result.trend_direction} "
        f"({trend}) | Confidence: {result.confidence}"
    )

    if output:
        if fmt == "json":
            with open(output, "w") as f:
                json.dump(result.to_dict(), f, indent=2)
        else:
            df = pd.DataFrame([p.to_dict() for p in result.points])
            df.to_csv(output, index=False)
        click.echo(f"Forecast saved to: {output}")


@cli.command()
@input_option
@config_option
@click.option(
    "--output",
    "-o",
    "output_path",
    required=True,
    type=click.Path(),
    help="Output heatmap path (PNG)",
)
@click.option(
    "--sigma",
    default=None,
    type=float,
    help="Gaussian smoothing sigma",
)
@click.option(
    "--colormap",
    default=None,
    type=click.Choice(["jet", "hot", "inferno", "viridis"]),
    help="Heatmap colormap",
)
def heatmap(
    input_path: str,
    config_path: Optional[str],
    output_path: str,
    sigma: Optional[float],
    colormap: Optional[str],
) -> None:
    """Generate a footfall density heatmap from located records.

    Example:
        retailpulse heatmap -i footfall.csv -o heatmap.png
    """
    config = _load_app_config(config_path)
    validation = _load_upload(input_path)

    if not validation.has_location_data:
        click.echo(
            "Upload has no latitude/longitude columns; heatmap disabled", err=True
        )
        raise SystemExit(1)

    bins = bin_locations(validation.records, precision=config.geo.precision)
    click.echo(f"Generating heatmap from {len(bins)} location bins")

    hc = config.heatmap
    generator = HeatmapGenerator.from_bins(
        bins, hc.width, hc.height, sigma=sigma if sigma is not None else hc.sigma
    )
    generator.export_png(output_path, colormap=colormap or hc.colormap)

    click.echo(f"Heatmap saved to: {output_path}")


@cli.command()
@click.option(
    "--output",
    "-o",
    "output_path",
    default="footfall_template.csv",
    type=click.Path(),
    help="Template output path",
)
def template(output_path: str) -> None:
    """Write the CSV upload template.

    Example:
        retailpulse template -o footfall_template.csv
    """
    path = write_template_csv(output_path)
    click.echo(f"Template saved to: {path}")


def main() -> None:
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
