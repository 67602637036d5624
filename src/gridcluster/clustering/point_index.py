"""
Flat index of clusterable points.
Rebuilt from the live feature set whenever it changes.
"""
import numbers
from typing import Iterable, List, Optional, Tuple

import numpy as np

from gridcluster.core.models import Extent, Feature, Point
from gridcluster.utils.logger import logger


class PointIndex:
    """
    Snapshot of visible, finite points and their combined extent.

    Points keep the order of the features they were built from, so every
    downstream step iterates them in a stable order.
    """

    def __init__(self, weight_property: Optional[str] = None):
        self.weight_property = weight_property

        self.points: List[Point] = []
        self.extent: Optional[Extent] = None
        self.xs: np.ndarray = np.empty(0, dtype=np.float64)
        self.ys: np.ndarray = np.empty(0, dtype=np.float64)
        self.skipped_count: int = 0
        self.hidden_count: int = 0
        self.is_built: bool = False

    def __len__(self) -> int:
        return len(self.points)

    def invalidate(self) -> None:
        """Drop the current snapshot; the next access rebuilds it."""
        self.points = []
        self.extent = None
        self.xs = np.empty(0, dtype=np.float64)
        self.ys = np.empty(0, dtype=np.float64)
        self.skipped_count = 0
        self.hidden_count = 0
        self.is_built = False

    def rebuild(self, features: Iterable[Feature]) -> Tuple[Optional[Extent], List[Point]]:
        """
        Build the point snapshot from features.

        Args:
            features: Current feature set, in stable order

        Returns:
            Tuple of (extent or None when nothing is indexable, point list)
        """
        self.invalidate()

        points: List[Point] = []
        min_x = min_y = max_x = max_y = None

        for feature in features:
            if not feature.visible:
                self.hidden_count += 1
                continue
            if not feature.is_finite:
                self.skipped_count += 1
                logger.warning(
                    "Skipping feature with non-finite coordinate",
                    feature_id=feature.id,
                    coordinate=feature.coordinate,
                )
                continue

            x, y = float(feature.x), float(feature.y)
            points.append(Point(x=x, y=y, id=feature.id, weight=self._weight_of(feature)))

            if min_x is None:
                min_x, min_y, max_x, max_y = x, y, x, y
            else:
                min_x, min_y = min(min_x, x), min(min_y, y)
                max_x, max_y = max(max_x, x), max(max_y, y)

        self.points = points
        if points:
            self.extent = Extent(min_x=min_x, min_y=min_y, max_x=max_x, max_y=max_y)
            self.xs = np.fromiter((p.x for p in points), dtype=np.float64, count=len(points))
            self.ys = np.fromiter((p.y for p in points), dtype=np.float64, count=len(points))
        self.is_built = True

        logger.info(
            "Point index rebuilt",
            num_points=len(points),
            skipped=self.skipped_count,
            hidden=self.hidden_count,
        )

        return self.extent, self.points

    def _weight_of(self, feature: Feature) -> float:
        if not self.weight_property:
            return 0.0
        value = feature.properties.get(self.weight_property)
        if not value:
            return 0.0
        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            logger.debug(
                "Ignoring non-numeric weight",
                feature_id=feature.id,
                property=self.weight_property,
            )
            return 0.0
        return float(value)
