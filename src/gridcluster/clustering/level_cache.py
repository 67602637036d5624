"""
Per-level cache of clustering results.

Levels are computed lazily. Requesting a level first computes every missing
coarser level down to the minimum level (or the first level without a
resolution), then works back up so that each level can link its clusters to
the clusters of the level below it.
"""
import threading
from typing import Dict, List, Optional

from gridcluster.clustering.bucketer import GridBucketer, cell_key
from gridcluster.clustering.merger import ClusterMerger
from gridcluster.clustering.point_index import PointIndex
from gridcluster.core.models import ClusterOptions, ClusterStats, LevelResult, LevelStatus
from gridcluster.resolution import ResolutionFn, resolve
from gridcluster.utils.logger import logger


class LevelCache:
    """
    Memoized LevelResult per level.

    Results are immutable once computed. The lock only guards computing and
    invalidating; readers may share results freely.
    """

    def __init__(
        self,
        index: PointIndex,
        resolution_fn: ResolutionFn,
        options: ClusterOptions,
        bucketer: Optional[GridBucketer] = None,
        merger: Optional[ClusterMerger] = None,
    ):
        self.index = index
        self.resolution_fn = resolution_fn
        self.options = options
        self.bucketer = bucketer or GridBucketer()
        self.merger = merger or ClusterMerger(options.merge_strategy)

        self._levels: Dict[int, LevelResult] = {}
        self._lock = threading.RLock()

    def invalidate(self) -> None:
        """Drop every cached level."""
        with self._lock:
            if self._levels:
                logger.debug("Invalidating level cache", num_levels=len(self._levels))
            self._levels.clear()

    def cached_levels(self) -> List[int]:
        with self._lock:
            return sorted(self._levels)

    def peek(self, level: int) -> Optional[LevelResult]:
        """Cached result for a level without computing anything."""
        return self._levels.get(level)

    def cell_size(self, level: int) -> Optional[float]:
        """Cell edge length at a level, or None without a resolution."""
        resolution = resolve(self.resolution_fn, level)
        if resolution is None:
            return None
        return resolution * self.options.max_cluster_radius

    def get_level(self, level: int) -> LevelResult:
        """
        Clusters for a level, computing missing levels as needed.

        Args:
            level: Requested level, clamped to the configured range

        Returns:
            LevelResult with status READY, EMPTY (no points) or NO_DATA
            (no resolution for the level)
        """
        level = self.options.clamp_level(level)

        with self._lock:
            cached = self._levels.get(level)
            if cached is not None:
                return cached

            cell_size = self.cell_size(level)
            if cell_size is None:
                logger.info("No resolution for level", level=level)
                return LevelResult(level=level, status=LevelStatus.NO_DATA)

            if not self.index.points:
                return LevelResult(level=level, status=LevelStatus.EMPTY, cell_size=cell_size)

            # Walk down to the coarsest level that still needs computing
            start = level
            while (
                start - 1 >= self.options.min_level
                and (start - 1) not in self._levels
                and self.cell_size(start - 1) is not None
            ):
                start -= 1

            for current in range(start, level + 1):
                self._levels[current] = self._compute_level(current)

            return self._levels[level]

    def _compute_level(self, level: int) -> LevelResult:
        coarser = self._levels.get(level - 1)
        total_points = len(self.index)

        # Every cluster one level coarser is a single point; finer cells won't merge anything
        if coarser is not None and len(coarser.clusters) == total_points:
            logger.debug("Reusing singleton level", level=level, source_level=coarser.level)
            return coarser

        cell_size = self.cell_size(level)
        cells = self.bucketer.bucket(
            level,
            self.index.points,
            self.index.extent,
            cell_size,
            xs=self.index.xs,
            ys=self.index.ys,
        )
        clusters, cluster_map = self.merger.merge(cells, cell_size / 2)

        if coarser is not None and coarser.cell_size:
            extent = self.index.extent
            # The origin point is bucketed at the coarser level too, so its cell is occupied
            for cluster in clusters.values():
                parent_key = cell_key(cluster.origin[0], cluster.origin[1], extent, coarser.cell_size)
                cluster.parent = coarser.lookup(parent_key)

        logger.info(
            "Computed level",
            level=level,
            num_clusters=len(clusters),
            num_points=total_points,
            cell_size=cell_size,
        )
        return LevelResult(
            level=level,
            status=LevelStatus.READY,
            cell_size=cell_size,
            clusters=clusters,
            cluster_map=cluster_map,
        )

    def get_stats(self, level: int) -> ClusterStats:
        """
        Statistics for a level.

        Returns:
            ClusterStats for the (clamped) level
        """
        level = self.options.clamp_level(level)
        result = self.get_level(level)
        sizes = {c.key_str: c.count for c in result.clusters.values()}
        counts = list(sizes.values())

        return ClusterStats(
            level=level,
            status=result.status,
            num_clusters=len(counts),
            num_singletons=sum(1 for c in result.clusters.values() if c.is_singleton),
            total_points=sum(counts),
            cluster_sizes=sizes,
            avg_cluster_size=sum(counts) / len(counts) if counts else 0.0,
            largest_cluster_size=max(counts) if counts else 0,
            smallest_cluster_size=min(counts) if counts else 0,
            skipped_features=self.index.skipped_count,
        )
