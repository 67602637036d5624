"""
Merging of neighbouring grid cells into clusters.

Two strategies are available:

- ``single_pass`` visits cells once in ascending key order. Each visited cell
  that has not been absorbed survives and absorbs its not-yet-visited
  neighbours whose centers lie within the merge radius. Neighbours of
  absorbed cells are not followed, so a chain of close points spanning
  several cells may end up in more than one cluster.
- ``union_find`` joins every pair of neighbouring cells within the merge
  radius transitively. The smallest key of each connected group survives.

Both compare *pre-merge* cell centers and treat the radius as inclusive.
"""
import math
from typing import Dict, List, Tuple

from gridcluster.core.models import Cell, CellKey, Cluster, Coordinate, MergeStrategy
from gridcluster.utils.logger import logger

NEIGHBOUR_OFFSETS: List[Tuple[int, int]] = [
    (dx, dy) for dx in (-1, 0, 1) for dy in (-1, 0, 1) if (dx, dy) != (0, 0)
]

MergeResult = Tuple[Dict[CellKey, Cluster], Dict[CellKey, Cluster]]


def distance(a: Coordinate, b: Coordinate) -> float:
    """Planar Euclidean distance."""
    return math.hypot(a[0] - b[0], a[1] - b[1])


class ClusterMerger:
    """Turns one level's grid cells into clusters."""

    def __init__(self, strategy: MergeStrategy = MergeStrategy.SINGLE_PASS):
        self.strategy = MergeStrategy(strategy)

    def merge(self, cells: Dict[CellKey, Cell], merge_radius: float) -> MergeResult:
        """
        Merge cells whose centers are within merge_radius of a neighbour.

        Args:
            cells: Bucketed cells of one level
            merge_radius: Maximum center distance for merging (inclusive)

        Returns:
            Tuple of (surviving clusters by key, cluster for every original cell key)
        """
        if self.strategy == MergeStrategy.UNION_FIND:
            clusters, cluster_map = self._merge_union_find(cells, merge_radius)
        else:
            clusters, cluster_map = self._merge_single_pass(cells, merge_radius)

        logger.debug(
            "Merged cells",
            strategy=self.strategy.value,
            num_cells=len(cells),
            num_clusters=len(clusters),
        )
        return clusters, cluster_map

    def _merge_single_pass(self, cells: Dict[CellKey, Cell], merge_radius: float) -> MergeResult:
        clusters: Dict[CellKey, Cluster] = {}
        cluster_map: Dict[CellKey, Cluster] = {}
        absorbed = set()

        for key in sorted(cells):
            if key in absorbed:
                continue
            survivor = Cluster.from_cell(cells[key])
            clusters[key] = survivor
            cluster_map[key] = survivor

            center = cells[key].center
            gx, gy = key
            to_merge = []
            for dx, dy in NEIGHBOUR_OFFSETS:
                neighbour_key = (gx + dx, gy + dy)
                neighbour = cells.get(neighbour_key)
                # Survivors are final; only cells not yet visited can be absorbed
                if neighbour is None or neighbour_key in absorbed or neighbour_key in clusters:
                    continue
                if distance(center, neighbour.center) <= merge_radius:
                    to_merge.append(neighbour_key)

            for neighbour_key in to_merge:
                absorbed.add(neighbour_key)
                survivor.absorb(Cluster.from_cell(cells[neighbour_key]))
                cluster_map[neighbour_key] = survivor

        return clusters, cluster_map

    def _merge_union_find(self, cells: Dict[CellKey, Cell], merge_radius: float) -> MergeResult:
        parents: Dict[CellKey, CellKey] = {key: key for key in cells}

        def find(key: CellKey) -> CellKey:
            root = key
            while parents[root] != root:
                root = parents[root]
            # Path compression
            while parents[key] != root:
                parents[key], key = root, parents[key]
            return root

        ordered = sorted(cells)
        for key in ordered:
            center = cells[key].center
            gx, gy = key
            for dx, dy in NEIGHBOUR_OFFSETS:
                neighbour_key = (gx + dx, gy + dy)
                if neighbour_key not in cells or neighbour_key < key:
                    continue
                if distance(center, cells[neighbour_key].center) <= merge_radius:
                    root_a, root_b = find(key), find(neighbour_key)
                    if root_a != root_b:
                        low, high = min(root_a, root_b), max(root_a, root_b)
                        parents[high] = low

        clusters: Dict[CellKey, Cluster] = {}
        cluster_map: Dict[CellKey, Cluster] = {}
        for key in ordered:
            root = find(key)
            if root == key:
                clusters[key] = Cluster.from_cell(cells[key])
            else:
                clusters[root].absorb(Cluster.from_cell(cells[key]))
            cluster_map[key] = clusters[root]

        return clusters, cluster_map
