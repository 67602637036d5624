"""Main CLI application."""
import typer

from gridcluster.cli.cluster import cluster
from gridcluster.cli.levels import levels

app = typer.Typer(
    name="gridcluster",
    help="Grid-based point clustering for multi-level maps.",
    add_completion=False,
)

app.command()(cluster)
app.command()(levels)


if __name__ == "__main__":
    app()
