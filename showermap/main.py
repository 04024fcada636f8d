#!/usr/bin/env python3
"""
ShowerMap - Location Pipeline Entry Point

Combines scraped shower-location files into deduplicated per-region files,
and maintains their coordinates through geocoding and manual corrections.

Usage:
    python -m showermap.main process ./data ./processed
    python -m showermap.main geocode ./processed ./geocoded --region TX
    python -m showermap.main correct corrections.csv ./processed
    python -m showermap.main status ./processed
"""

import json
from pathlib import Path

import click
from loguru import logger
from rich.console import Console
from rich.table import Table

from showermap.config import settings
from showermap.corrections import CoordinateCorrections
from showermap.deduplication import DUPLICATE_REASONS, deduplicate
from showermap.exporter import INDEX_FILENAME, RegionExporter
from showermap.geocoding import Geocoder, NominatimClient
from showermap.loader import load_directory

console = Console()


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--log-file", type=click.Path(dir_okay=False, path_type=Path), help="Also log to this file")
@click.option("--json-logs", is_flag=True, help="Write the log file as JSON lines")
def cli(debug, log_file, json_logs):
    """ShowerMap Location Pipeline"""
    if debug or log_file:
        from showermap.utils.logging import setup_logging
        setup_logging(level="DEBUG" if debug else None, log_file=log_file, json_file=json_logs)


def _breakdown_table(title: str, breakdown: dict) -> Table:
    table = Table(title=title)
    table.add_column("Reason")
    table.add_column("Duplicates", justify="right")
    for reason in DUPLICATE_REASONS:
        table.add_row(reason, f"{breakdown.get(reason, 0):,}")
    return table


@cli.command()
@click.argument("input_dir", type=click.Path(exists=True, file_okay=False, path_type=Path), required=False)
@click.argument("output_dir", type=click.Path(file_okay=False, path_type=Path), required=False)
@click.option("--pattern", default=None, help="Input filename glob (default: city_*.json)")
@click.option(
    "--corrections",
    "corrections_csv",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="CSV of known-good coordinates applied before deduplication",
)
def process(input_dir: Path | None, output_dir: Path | None, pattern: str | None, corrections_csv: Path | None):
    """
    Load, deduplicate and export locations.

    INPUT_DIR holds the scraped files; OUTPUT_DIR receives one file per
    region plus index.json. Both default to the configured directories.
    """
    input_dir = input_dir or settings.pipeline.data_input_dir
    output_dir = output_dir or settings.pipeline.data_output_dir

    console.print("\n[bold blue]ShowerMap - Location Processing[/bold blue]")
    console.print(f"Input: {input_dir}")
    console.print(f"Output: {output_dir}\n")

    loaded = load_directory(input_dir, pattern)
    if not loaded.records:
        console.print("[yellow]No locations found.[/yellow]")
        return

    records = loaded.records
    if corrections_csv:
        records, updated = CoordinateCorrections.from_csv(corrections_csv).apply(records)
        console.print(f"Applied coordinate corrections to {updated:,} locations")

    unique, stats = deduplicate(records)
    groups = RegionExporter(output_dir).export(unique, stats)

    console.print("\n[bold]Processing Summary[/bold]")
    summary = Table()
    summary.add_column("Metric")
    summary.add_column("Value", justify="right")
    summary.add_row("Files loaded", str(loaded.files_loaded))
    summary.add_row("Files skipped", str(len(loaded.skipped_files)))
    summary.add_row("Locations loaded", f"{len(records):,}")
    summary.add_row("Duplicates removed", f"{stats.duplicate_count:,}")
    summary.add_row("Unique locations", f"{len(unique):,}")
    summary.add_row("Regions", str(len(groups)))
    console.print(summary)
    console.print(_breakdown_table("Duplicates by reason", stats.by_reason))

    if loaded.skipped_files:
        console.print(f"[yellow]Skipped malformed files: {', '.join(loaded.skipped_files)}[/yellow]")


@cli.command()
@click.argument("input_dir", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.argument("output_dir", type=click.Path(file_okay=False, path_type=Path))
@click.option("--region", default=None, help="Only geocode this region code (e.g. TX)")
@click.option("--only-missing", is_flag=True, help="Only geocode locations without coordinates")
def geocode(input_dir: Path, output_dir: Path, region: str | None, only_missing: bool):
    """
    Geocode region files from INPUT_DIR into OUTPUT_DIR.

    Requests are throttled to the provider's fair-use limit, so large
    directories take hours.
    """
    console.print("\n[bold blue]ShowerMap - Geocoding[/bold blue]")
    console.print(f"Input: {input_dir}")
    console.print(f"Output: {output_dir}")
    if region:
        console.print(f"Region: {region.upper()}")
    console.print()

    with NominatimClient() as client:
        summary = Geocoder(client).geocode_directory(
            input_dir, output_dir, region=region, only_missing=only_missing,
        )

    table = Table(title="Geocoding Summary")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Regions processed", f"{summary['processedRegions']}/{summary['totalRegions']}")
    table.add_row("Locations", f"{summary['totalLocations']:,}")
    table.add_row("Success", f"[green]{summary['totalSuccess']:,}[/green]")
    table.add_row("Failed", f"[red]{summary['totalFailed']:,}[/red]")
    table.add_row("Skipped", f"{summary['totalSkipped']:,}")
    table.add_row("Success rate", summary["overallSuccessRate"])
    console.print(table)


@cli.command()
@click.argument("csv_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("regions_dir", type=click.Path(exists=True, file_okay=False, path_type=Path))
def correct(csv_path: Path, regions_dir: Path):
    """Apply coordinate corrections from CSV_PATH to the region files in REGIONS_DIR."""
    console.print("\n[bold blue]ShowerMap - Coordinate Corrections[/bold blue]\n")

    corrections = CoordinateCorrections.from_csv(csv_path)
    results = corrections.apply_to_directory(regions_dir)

    table = Table()
    table.add_column("File")
    table.add_column("Updated", justify="right")
    for name, updated in results.items():
        style = "green" if updated else "dim"
        table.add_row(name, f"[{style}]{updated}[/{style}]")
    console.print(table)
    console.print(f"Updated {sum(results.values()):,} locations in {len(results)} files")


@cli.command()
@click.argument("output_dir", type=click.Path(file_okay=False, path_type=Path), required=False)
def status(output_dir: Path | None):
    """Show totals from the index.json of a processed output directory."""
    output_dir = output_dir or settings.pipeline.data_output_dir
    index_path = Path(output_dir) / INDEX_FILENAME

    console.print("\n[bold blue]ShowerMap - Pipeline Status[/bold blue]\n")

    if not index_path.exists():
        console.print(f"[yellow]No {INDEX_FILENAME} in {output_dir}. Run 'process' first.[/yellow]")
        return

    with open(index_path, encoding="utf-8") as f:
        index = json.load(f)

    logger.debug(f"Read {index_path}")

    table = Table(title=f"Regions (generated {index.get('generated', '-')})")
    table.add_column("Region")
    table.add_column("Name")
    table.add_column("Locations", justify="right")
    table.add_column("Cities", justify="right")
    table.add_column("Reviews", justify="right")
    table.add_column("With phone", justify="right")

    for region in sorted(index.get("regions", []), key=lambda r: -r.get("locationCount", 0)):
        table.add_row(
            region.get("state", ""),
            region.get("stateName", ""),
            f"{region.get('locationCount', 0):,}",
            str(region.get("cityCount", 0)),
            f"{region.get('reviewCount', 0):,}",
            str(region.get("locationsWithPhone", 0)),
        )
    console.print(table)

    console.print(f"\nTotal locations: {index.get('totalLocations', 0):,}")
    console.print(f"Total regions: {index.get('totalRegions', 0)}")
    console.print(f"Duplicates removed: {index.get('duplicatesRemoved', 0):,}")
    console.print(_breakdown_table("Duplicates by reason", index.get("duplicateBreakdown", {})))


if __name__ == "__main__":
    cli()
