"""Levels command - Summarize clustering across a range of levels."""
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from gridcluster.cli.cluster import build_clusterer

console = Console()


def levels(
    features_file: Path = typer.Argument(
        ...,
        help="GeoJSON FeatureCollection or JSON list of point features",
    ),
    radius: Optional[float] = typer.Option(None, "--radius", "-r", help="Cluster radius in pixels"),
    weight_property: Optional[str] = typer.Option(None, "--weight-property", "-w"),
    min_level: Optional[int] = typer.Option(None, "--min-level", help="Coarsest level"),
    max_level: Optional[int] = typer.Option(None, "--max-level", help="Most detailed level"),
    base_resolution: Optional[float] = typer.Option(None, "--base-resolution"),
    strategy: Optional[str] = typer.Option(None, "--strategy"),
    lonlat: bool = typer.Option(False, "--lonlat", help="Project lon/lat input"),
):
    """Show cluster counts for every level in the configured range."""
    console.print("[bold blue]gridcluster[/bold blue] - Level summary")
    console.print()

    clusterer = build_clusterer(
        features_file, radius, weight_property, min_level, max_level,
        None, base_resolution, strategy, lonlat,
    )
    options = clusterer.options

    table = Table(title="Clusters per level")
    table.add_column("Level", style="cyan", justify="right")
    table.add_column("Status")
    table.add_column("Cell size", justify="right")
    table.add_column("Clusters", style="green", justify="right")
    table.add_column("Singletons", justify="right")
    table.add_column("Largest", justify="right")

    for level in range(options.min_level, options.max_level + 1):
        result = clusterer.get_level(level)
        if not result.has_data:
            table.add_row(str(level), result.status.value, "-", "-", "-", "-")
            continue
        stats = clusterer.get_stats(level)
        table.add_row(
            str(level),
            stats.status.value,
            f"{clusterer.cache.cell_size(level):.2f}",
            str(stats.num_clusters),
            str(stats.num_singletons),
            str(stats.largest_cluster_size),
        )

    console.print(table)
