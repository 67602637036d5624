"""
Grid bucketing of points for one level.
"""
import math
from typing import Dict, List, Optional

import numpy as np

from gridcluster.core.exceptions import ClusteringError
from gridcluster.core.models import Cell, CellKey, Extent, Point
from gridcluster.utils.logger import logger


def cell_key(x: float, y: float, extent: Extent, cell_size: float) -> CellKey:
    """Grid cell holding a coordinate, relative to the extent's minimum corner."""
    return (
        math.floor((x - extent.min_x) / cell_size),
        math.floor((y - extent.min_y) / cell_size),
    )


class GridBucketer:
    """Projects points into square cells of a uniform grid."""

    def bucket(
        self,
        level: int,
        points: List[Point],
        extent: Optional[Extent],
        cell_size: float,
        xs: Optional[np.ndarray] = None,
        ys: Optional[np.ndarray] = None,
    ) -> Dict[CellKey, Cell]:
        """
        Bucket points into grid cells.

        Args:
            level: Level being computed (for logging)
            points: Points in stable order
            extent: Extent of all points, origin of the grid
            cell_size: Cell edge length in world units
            xs, ys: Optional precomputed coordinate arrays matching ``points``

        Returns:
            Mapping of cell key to Cell, in first-seen order

        Raises:
            ClusteringError: If cell_size is not a positive finite number
        """
        if not math.isfinite(cell_size) or cell_size <= 0:
            raise ClusteringError(f"Invalid cell size for level {level}: {cell_size}")

        cells: Dict[CellKey, Cell] = {}
        if not points or extent is None:
            return cells

        if xs is None or ys is None:
            xs = np.fromiter((p.x for p in points), dtype=np.float64, count=len(points))
            ys = np.fromiter((p.y for p in points), dtype=np.float64, count=len(points))

        gxs = np.floor((xs - extent.min_x) / cell_size).astype(np.int64)
        gys = np.floor((ys - extent.min_y) / cell_size).astype(np.int64)

        for point, gx, gy in zip(points, gxs.tolist(), gys.tolist()):
            key = (gx, gy)
            cell = cells.get(key)
            if cell is None:
                cell = cells[key] = Cell(key=key)
            cell.add(point.x, point.y, point.id, point.weight)

        logger.debug(
            "Bucketed points",
            level=level,
            num_points=len(points),
            num_cells=len(cells),
            cell_size=cell_size,
        )
        return cells
