"""
Grid clustering of point features across zoom levels.
"""

from gridcluster.clustering.bucketer import GridBucketer
from gridcluster.clustering.clusterer import GridClusterer
from gridcluster.clustering.level_cache import LevelCache
from gridcluster.clustering.merger import ClusterMerger
from gridcluster.clustering.point_index import PointIndex
from gridcluster.clustering.query import ClusterQuery

__all__ = [
    "ClusterMerger",
    "ClusterQuery",
    "GridBucketer",
    "GridClusterer",
    "LevelCache",
    "PointIndex",
]
