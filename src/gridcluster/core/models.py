"""
Data models for grid clustering.
Pydantic models validate incoming features and options; dataclasses hold
the per-level clustering results.
"""
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Hashable, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

FeatureId = Union[str, int]
CellKey = Tuple[int, int]
Coordinate = Tuple[float, float]


class MergeStrategy(str, Enum):
    """How neighbouring grid cells are combined."""
    SINGLE_PASS = "single_pass"
    UNION_FIND = "union_find"


class LevelStatus(str, Enum):
    """Outcome of a level request."""
    READY = "ready"
    EMPTY = "empty"
    NO_DATA = "no_data"


class Feature(BaseModel):
    """
    A point feature supplied by the host.

    Coordinates are planar (already projected). Non-finite coordinates are
    accepted here and filtered out when the point index is built.
    """

    id: FeatureId = Field(..., description="Stable feature identifier")
    coordinate: Coordinate = Field(..., description="Projected (x, y)")
    visible: bool = Field(default=True, description="Hidden features are not clustered")
    properties: Dict[str, Any] = Field(default_factory=dict, description="Feature attributes")

    model_config = ConfigDict(validate_assignment=True)

    @property
    def x(self) -> float:
        return self.coordinate[0]

    @property
    def y(self) -> float:
        return self.coordinate[1]

    @property
    def is_finite(self) -> bool:
        """Check if both coordinates are finite numbers."""
        return math.isfinite(self.x) and math.isfinite(self.y)


class Point(BaseModel):
    """Immutable snapshot of a clusterable feature."""

    x: float
    y: float
    id: FeatureId
    weight: float = 0.0

    model_config = ConfigDict(frozen=True)


class Extent(BaseModel):
    """Axis-aligned bounding box in projected coordinates."""

    min_x: float
    min_y: float
    max_x: float
    max_y: float

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def check_order(self) -> "Extent":
        if self.min_x > self.max_x or self.min_y > self.max_y:
            raise ValueError("Extent minimum exceeds maximum")
        return self


class ClusterOptions(BaseModel):
    """
    Options controlling how features are clustered.
    Defaults come from settings via ``from_settings``.
    """

    max_cluster_radius: float = Field(
        default=160.0,
        gt=0.0,
        description="Grid cell size in display units",
    )
    weight_property: Optional[str] = Field(
        None,
        description="Feature property summed per cluster (None = counts only)",
    )
    singleton_passthrough: bool = Field(
        default=True,
        description="Report single-point clusters as bare points",
    )
    min_level: int = Field(default=0, description="Coarsest supported level")
    max_level: int = Field(default=20, description="Most detailed supported level")
    max_cluster_level: Optional[int] = Field(
        None,
        description="Levels above this are not clustered",
    )
    merge_strategy: MergeStrategy = Field(
        default=MergeStrategy.SINGLE_PASS,
        description="Neighbour merge algorithm",
    )

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    @field_validator("weight_property")
    @classmethod
    def validate_weight_property(cls, v: Optional[str]) -> Optional[str]:
        """Treat blank property names as unset."""
        if v is not None and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def check_level_range(self) -> "ClusterOptions":
        if self.min_level > self.max_level:
            raise ValueError(
                f"min_level ({self.min_level}) exceeds max_level ({self.max_level})"
            )
        return self

    @classmethod
    def from_settings(cls, **overrides: Any) -> "ClusterOptions":
        """Build options from global settings, applying overrides."""
        from gridcluster.config import settings

        values = {
            "max_cluster_radius": settings.MAX_CLUSTER_RADIUS,
            "weight_property": settings.WEIGHT_PROPERTY,
            "singleton_passthrough": settings.SINGLETON_PASSTHROUGH,
            "min_level": settings.MIN_LEVEL,
            "max_level": settings.MAX_LEVEL,
            "max_cluster_level": settings.MAX_CLUSTER_LEVEL,
            "merge_strategy": settings.MERGE_STRATEGY,
        }
        values.update(overrides)
        return cls(**values)

    def clamp_level(self, level: int) -> int:
        return max(self.min_level, min(self.max_level, level))

    def clusters_at(self, level: int) -> bool:
        """Check if clustering applies at a level."""
        return self.max_cluster_level is None or level <= self.max_cluster_level


@dataclass
class Cell:
    """Running totals for one grid cell during a bucketing pass."""

    key: CellKey
    sum_x: float = 0.0
    sum_y: float = 0.0
    count: int = 0
    property_sum: float = 0.0
    members: List[FeatureId] = field(default_factory=list)
    origin: Optional[Coordinate] = None

    def add(self, x: float, y: float, point_id: FeatureId, weight: float = 0.0) -> None:
        if self.origin is None:
            self.origin = (x, y)
        self.sum_x += x
        self.sum_y += y
        self.count += 1
        self.property_sum += weight
        self.members.append(point_id)

    @property
    def center(self) -> Coordinate:
        return (self.sum_x / self.count, self.sum_y / self.count)


@dataclass(eq=False)
class Cluster:
    """
    A group of one or more points at a single level.

    ``key`` is the grid cell the cluster originated from and stays its
    identity after it absorbs neighbouring cells. ``origin`` is the first
    point bucketed into that cell; ``parent`` is the cluster one level
    coarser whose cells cover ``origin``.
    """

    key: CellKey
    sum_x: float
    sum_y: float
    count: int
    property_sum: float = 0.0
    children: List[FeatureId] = field(default_factory=list)
    origin: Optional[Coordinate] = None
    center: Coordinate = field(init=False)
    parent: Optional["Cluster"] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        self._update_center()

    @classmethod
    def from_cell(cls, cell: Cell) -> "Cluster":
        return cls(
            key=cell.key,
            sum_x=cell.sum_x,
            sum_y=cell.sum_y,
            count=cell.count,
            property_sum=cell.property_sum,
            children=list(cell.members),
            origin=cell.origin,
        )

    def _update_center(self) -> None:
        self.center = (self.sum_x / self.count, self.sum_y / self.count)

    def absorb(self, other: "Cluster") -> None:
        """Merge another cluster's totals and members into this one."""
        self.sum_x += other.sum_x
        self.sum_y += other.sum_y
        self.count += other.count
        self.property_sum += other.property_sum
        self.children.extend(other.children)
        self._update_center()

    @property
    def is_singleton(self) -> bool:
        return self.count == 1

    @property
    def key_str(self) -> str:
        return f"{self.key[0]}_{self.key[1]}"

    def interpolate_from_parent(self, ratio: float) -> Coordinate:
        """
        Position between the parent's center (ratio 0) and this center (ratio 1).

        Without a parent the cluster's own center is returned.
        """
        if self.parent is None:
            return self.center
        px, py = self.parent.center
        cx, cy = self.center
        return (px + (cx - px) * ratio, py + (cy - py) * ratio)


@dataclass
class LevelResult:
    """
    Clusters computed for one level.

    A level reused from the next coarser one is the same object, so ``level``
    and ``cell_size`` describe the level the clusters were computed at.
    """

    level: int
    status: LevelStatus
    cell_size: Optional[float] = None
    clusters: Dict[CellKey, Cluster] = field(default_factory=dict)
    cluster_map: Dict[CellKey, Cluster] = field(default_factory=dict)

    @property
    def has_data(self) -> bool:
        return self.status != LevelStatus.NO_DATA

    @property
    def total_points(self) -> int:
        return sum(c.count for c in self.clusters.values())

    def __len__(self) -> int:
        return len(self.clusters)

    def lookup(self, key: Hashable) -> Optional[Cluster]:
        """Resolve any original cell key to the cluster that owns it."""
        return self.cluster_map.get(key)


@dataclass
class ClusterStats:
    """Statistics about one level's clustering results."""

    level: int
    status: LevelStatus
    num_clusters: int
    num_singletons: int
    total_points: int
    cluster_sizes: Dict[str, int]
    avg_cluster_size: float
    largest_cluster_size: int
    smallest_cluster_size: int
    skipped_features: int = 0
