"""
gridcluster - Grid-based point clustering for multi-level map display.

Groups point features into clusters per zoom level, caches the results and
links clusters across adjacent levels.
"""

__version__ = "0.1.0"

from gridcluster.config import settings
from gridcluster.clustering import GridClusterer

__all__ = [
    "GridClusterer",
    "settings",
    "__version__",
]
