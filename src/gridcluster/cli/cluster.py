"""Cluster command - Cluster point features at one level."""
import json
import math
from pathlib import Path
from typing import Any, Dict, List, Optional
from datetime import datetime

import typer
from rich.console import Console
from rich.table import Table

from gridcluster.clustering.clusterer import GridClusterer
from gridcluster.core.exceptions import DataLoadError, GridClusterError
from gridcluster.core.models import Feature
from gridcluster.resolution import web_mercator_resolution
from gridcluster.utils.logger import logger

console = Console()

EARTH_RADIUS = 6378137.0


def lonlat_to_mercator(lon: float, lat: float) -> List[float]:
    """Project WGS84 lon/lat to web mercator meters."""
    x = math.radians(lon) * EARTH_RADIUS
    y = math.log(math.tan(math.pi / 4 + math.radians(lat) / 2)) * EARTH_RADIUS
    return [x, y]


def _feature_from_raw(raw: Dict[str, Any], position: int, lonlat: bool) -> Feature:
    if raw.get("type") == "Feature":
        geometry = raw.get("geometry") or {}
        if geometry.get("type") != "Point":
            raise DataLoadError(f"Feature {position} is not a Point")
        coordinate = geometry.get("coordinates", [])[:2]
        feature_id = raw.get("id", position)
        properties = raw.get("properties") or {}
        visible = properties.get("visible", True)
    else:
        coordinate = raw.get("coordinate") or [raw.get("x"), raw.get("y")]
        feature_id = raw.get("id", position)
        properties = raw.get("properties") or {}
        visible = raw.get("visible", True)

    if len(coordinate) != 2 or any(c is None for c in coordinate):
        raise DataLoadError(f"Feature {feature_id} has no coordinate")
    if lonlat:
        coordinate = lonlat_to_mercator(float(coordinate[0]), float(coordinate[1]))

    return Feature(id=feature_id, coordinate=coordinate, visible=visible, properties=properties)


def load_features_file(file_path: Path, lonlat: bool = False) -> List[Feature]:
    """
    Load point features from a GeoJSON FeatureCollection or a JSON list.

    Raises:
        DataLoadError: If the file cannot be parsed
    """
    try:
        with open(file_path, "r") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise DataLoadError(f"Failed to read {file_path}: {e}")

    if isinstance(data, dict) and data.get("type") == "FeatureCollection":
        raw_features = data.get("features", [])
    elif isinstance(data, list):
        raw_features = data
    else:
        raise DataLoadError(f"Unsupported feature file format: {file_path}")

    try:
        return [_feature_from_raw(raw, i, lonlat) for i, raw in enumerate(raw_features)]
    except (ValueError, TypeError, AttributeError) as e:
        raise DataLoadError(f"Invalid feature in {file_path}: {e}")


def build_clusterer(
    features_file: Path,
    radius: Optional[float],
    weight_property: Optional[str],
    min_level: Optional[int],
    max_level: Optional[int],
    max_cluster_level: Optional[int],
    base_resolution: Optional[float],
    strategy: Optional[str],
    lonlat: bool,
    passthrough: bool = True,
) -> GridClusterer:
    """Load features and configure a clusterer from command line options."""
    if not features_file.exists():
        console.print(f"[red]Error:[/red] Features file not found: {features_file}")
        raise typer.Exit(1)

    overrides: Dict[str, Any] = {"singleton_passthrough": passthrough}
    for name, value in [
        ("max_cluster_radius", radius),
        ("weight_property", weight_property),
        ("min_level", min_level),
        ("max_level", max_level),
        ("max_cluster_level", max_cluster_level),
        ("merge_strategy", strategy),
    ]:
        if value is not None:
            overrides[name] = value

    try:
        features = load_features_file(features_file, lonlat=lonlat)
        clusterer = GridClusterer(web_mercator_resolution(base_resolution), **overrides)
        clusterer.add_features(features)
    except GridClusterError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    console.print(f"[green]Loaded {len(features)} features[/green]")
    return clusterer


def cluster(
    features_file: Path = typer.Argument(
        ...,
        help="GeoJSON FeatureCollection or JSON list of point features",
    ),
    level: int = typer.Option(
        0,
        "--level", "-z",
        help="Zoom level to cluster at",
    ),
    radius: Optional[float] = typer.Option(
        None,
        "--radius", "-r",
        help="Cluster radius in pixels (default: from config)",
    ),
    weight_property: Optional[str] = typer.Option(
        None,
        "--weight-property", "-w",
        help="Feature property to sum per cluster",
    ),
    min_level: Optional[int] = typer.Option(None, "--min-level", help="Coarsest level"),
    max_level: Optional[int] = typer.Option(None, "--max-level", help="Most detailed level"),
    max_cluster_level: Optional[int] = typer.Option(
        None,
        "--max-cluster-level",
        help="Levels above this are not clustered",
    ),
    base_resolution: Optional[float] = typer.Option(
        None,
        "--base-resolution",
        help="World units per pixel at level 0 (default: web mercator)",
    ),
    strategy: Optional[str] = typer.Option(
        None,
        "--strategy",
        help="Merge strategy: single_pass, union_find",
    ),
    lonlat: bool = typer.Option(
        False,
        "--lonlat",
        help="Input coordinates are WGS84 lon/lat; project to web mercator",
    ),
    passthrough: bool = typer.Option(
        True,
        "--passthrough/--no-passthrough",
        help="Report single-point clusters as bare points",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output", "-o",
        help="Write clusters to a JSON file",
    ),
) -> Optional[Path]:
    """Cluster point features at a single zoom level."""
    console.print("[bold blue]gridcluster[/bold blue] - Clustering")
    console.print()

    clusterer = build_clusterer(
        features_file, radius, weight_property, min_level, max_level,
        max_cluster_level, base_resolution, strategy, lonlat, passthrough,
    )

    logger.info("Starting clustering", features=str(features_file), level=level)

    result = clusterer.get_level(level)
    if not result.has_data:
        console.print(f"[yellow]No resolution available for level {level}[/yellow]")
        raise typer.Exit(1)

    clusters = clusterer.get_clusters(level)
    bare_points = clusterer.get_bare_points(level)
    stats = clusterer.get_stats(level)

    table = Table(title=f"Clusters at level {stats.level}")
    table.add_column("Key", style="cyan")
    table.add_column("Count", style="green", justify="right")
    table.add_column("Center", style="white")
    table.add_column("Weight", justify="right")
    table.add_column("Parent", style="magenta")

    for c in clusters:
        table.add_row(
            c.key_str,
            str(c.count),
            f"{c.center[0]:.2f}, {c.center[1]:.2f}",
            f"{c.property_sum:g}",
            c.parent.key_str if c.parent is not None else "-",
        )
    console.print(table)

    console.print(f"Cluster markers: {len(clusters)}")
    console.print(f"Bare points:     {len(bare_points)}")
    if stats.skipped_features:
        console.print(f"[yellow]Skipped features: {stats.skipped_features}[/yellow]")

    if output is None:
        return None

    output.parent.mkdir(parents=True, exist_ok=True)
    output_data = {
        "level": stats.level,
        "status": result.status.value,
        "cell_size": result.cell_size,
        "total_points": stats.total_points,
        "skipped_features": stats.skipped_features,
        "clusters": [
            {
                "key": c.key_str,
                "count": c.count,
                "center": list(c.center),
                "property_sum": c.property_sum,
                "children": c.children,
                "parent": c.parent.key_str if c.parent is not None else None,
            }
            for c in clusters
        ],
        "bare_points": [p.id for p in bare_points],
        "source_file": str(features_file),
        "created_at": datetime.now().isoformat(),
    }
    with open(output, "w") as f:
        json.dump(output_data, f, indent=2, default=str)

    console.print(f"[green]Saved clusters to: {output}[/green]")
    logger.info("Clustering complete", output=str(output), num_clusters=len(clusters))
    return output
