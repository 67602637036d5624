"""
Lookups against cached clusters.
"""
from typing import List, Optional, Tuple

from gridcluster.clustering.level_cache import LevelCache
from gridcluster.clustering.merger import distance
from gridcluster.core.models import Cluster, ClusterOptions, Coordinate, FeatureId, LevelStatus


class ClusterQuery:
    """Answers which clusters are reported, and which one sits at a location."""

    def __init__(self, cache: LevelCache, options: ClusterOptions):
        self.cache = cache
        self.options = options

    def is_passthrough(self, cluster: Cluster) -> bool:
        """Check if a cluster should be drawn as a bare point."""
        return self.options.singleton_passthrough and cluster.is_singleton

    def split(self, level: int) -> Tuple[List[Cluster], List[FeatureId]]:
        """
        Separate a level into reported clusters and bare point ids.

        Above max_cluster_level nothing is clustered and every indexed point
        is bare.
        """
        if not self.options.clusters_at(self.options.clamp_level(level)):
            return [], [p.id for p in self.cache.index.points]

        result = self.cache.get_level(level)
        clusters: List[Cluster] = []
        bare: List[FeatureId] = []
        for cluster in result.clusters.values():
            if self.is_passthrough(cluster):
                bare.append(cluster.children[0])
            else:
                clusters.append(cluster)
        return clusters, bare

    def locate(self, level: int, world_point: Coordinate, hit_radius: float) -> Optional[Cluster]:
        """
        First reported cluster whose center lies within hit_radius of world_point.

        Clusters are scanned in stored order; the first match wins even if a
        later cluster is closer.
        """
        result = self.cache.get_level(level)
        if result.status != LevelStatus.READY:
            return None
        clusters, _ = self.split(level)
        for cluster in clusters:
            if distance(cluster.center, world_point) <= hit_radius:
                return cluster
        return None
