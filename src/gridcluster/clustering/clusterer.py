"""
Grid clustering engine for point features.
Keeps the feature set, recomputes clusters lazily per level and answers
hit queries against them.
"""
from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import ValidationError

from gridcluster.clustering.level_cache import LevelCache
from gridcluster.clustering.merger import ClusterMerger, distance
from gridcluster.clustering.point_index import PointIndex
from gridcluster.clustering.query import ClusterQuery
from gridcluster.core.exceptions import ConfigurationError, DataValidationError
from gridcluster.core.models import (
    Cluster,
    ClusterOptions,
    ClusterStats,
    Coordinate,
    Feature,
    FeatureId,
    LevelResult,
    Point,
)
from gridcluster.resolution import ResolutionFn, web_mercator_resolution
from gridcluster.utils.logger import logger


class GridClusterer:
    """
    Grid-based clustering of point features across zoom levels.

    Each level buckets points into square cells sized by the level's
    resolution times ``max_cluster_radius``, then merges neighbouring cells
    whose centers are within half a cell of each other. Results are cached
    per level and every change to the features or options drops the cache.

    Clusters link to the cluster one level coarser that covers their center,
    which lets a renderer animate clusters splitting and joining.
    """

    def __init__(
        self,
        resolution_fn: Optional[ResolutionFn] = None,
        options: Optional[ClusterOptions] = None,
        **option_overrides: Any,
    ):
        """
        Initialize the clusterer.

        Args:
            resolution_fn: Level -> world units per display unit, None when
                unavailable (default: web mercator pyramid)
            options: Clustering options (default: from settings)
            **option_overrides: Individual option values applied on top
        """
        if options is None:
            options = ClusterOptions.from_settings()
        if option_overrides:
            options = self._validated(options, option_overrides)

        self.resolution_fn = resolution_fn or web_mercator_resolution()
        self.features: Dict[FeatureId, Feature] = {}
        self._build_components(options)

        logger.info(
            "Initialized GridClusterer",
            max_cluster_radius=options.max_cluster_radius,
            weight_property=options.weight_property,
            min_level=options.min_level,
            max_level=options.max_level,
            merge_strategy=options.merge_strategy.value,
        )

    @staticmethod
    def _validated(options: ClusterOptions, changes: Dict[str, Any]) -> ClusterOptions:
        try:
            return ClusterOptions(**{**options.model_dump(), **changes})
        except (ValidationError, TypeError) as e:
            raise ConfigurationError(f"Invalid clustering options: {e}")

    def _build_components(self, options: ClusterOptions) -> None:
        self.options = options
        self.index = PointIndex(weight_property=options.weight_property)
        self.cache = LevelCache(
            self.index,
            self.resolution_fn,
            options,
            merger=ClusterMerger(options.merge_strategy),
        )
        self.query = ClusterQuery(self.cache, options)

    def _invalidate(self) -> None:
        self.index.invalidate()
        self.cache.invalidate()

    def _ensure_index(self) -> None:
        if not self.index.is_built:
            self.cache.invalidate()
            self.index.rebuild(self.features.values())

    # Feature mutation

    def add_features(self, features: Iterable[Union[Feature, Dict[str, Any]]]) -> None:
        """
        Add point features.

        Args:
            features: Feature objects or dicts accepted by Feature

        Raises:
            DataValidationError: If a feature is malformed or its id already exists
        """
        parsed: List[Feature] = []
        seen = set()
        for raw in features:
            try:
                if isinstance(raw, Feature):
                    feature = raw.model_copy(deep=True)
                else:
                    feature = Feature.model_validate(raw)
            except ValidationError as e:
                raise DataValidationError(f"Invalid feature: {e}")
            if feature.id in self.features or feature.id in seen:
                raise DataValidationError(f"Duplicate feature id: {feature.id}")
            seen.add(feature.id)
            parsed.append(feature)

        if not parsed:
            logger.warning("No features provided to add_features")
            return

        for feature in parsed:
            self.features[feature.id] = feature
        self._invalidate()
        logger.info("Features added", new_features=len(parsed), total_features=len(self.features))

    def remove_features(self, feature_ids: Iterable[FeatureId]) -> int:
        """
        Remove features by id. Unknown ids are ignored.

        Returns:
            Number of features removed
        """
        removed = 0
        for feature_id in feature_ids:
            if self.features.pop(feature_id, None) is None:
                logger.warning("Feature not found", feature_id=feature_id)
                continue
            removed += 1
        if removed:
            self._invalidate()
        return removed

    def set_visible(self, feature_id: FeatureId, visible: bool) -> None:
        feature = self._get_feature(feature_id)
        if feature.visible != visible:
            feature.visible = visible
            self._invalidate()

    def move_feature(self, feature_id: FeatureId, coordinate: Coordinate) -> None:
        feature = self._get_feature(feature_id)
        try:
            feature.coordinate = coordinate
        except ValidationError as e:
            raise DataValidationError(f"Invalid coordinate for {feature_id}: {e}")
        self._invalidate()

    def clear(self) -> None:
        self.features.clear()
        self._invalidate()

    def _get_feature(self, feature_id: FeatureId) -> Feature:
        try:
            return self.features[feature_id]
        except KeyError:
            raise DataValidationError(f"Unknown feature id: {feature_id}")

    def configure(self, **changes: Any) -> ClusterOptions:
        """
        Change clustering options. Cached levels are dropped.

        Raises:
            ConfigurationError: If the resulting options are invalid
        """
        options = self._validated(self.options, changes)
        self._build_components(options)
        logger.info("Clustering options changed", changes=changes)
        return options

    # Queries

    def get_level(self, level: int) -> LevelResult:
        """All clusters for a level, including single-point ones."""
        self._ensure_index()
        return self.cache.get_level(level)

    def get_clusters(self, level: int) -> List[Cluster]:
        """Clusters a renderer should draw as cluster markers."""
        self._ensure_index()
        clusters, _ = self.query.split(level)
        return clusters

    def get_bare_points(self, level: int) -> List[Point]:
        """Points a renderer should draw as plain markers."""
        self._ensure_index()
        _, bare_ids = self.query.split(level)
        bare = set(bare_ids)
        return [p for p in self.index.points if p.id in bare]

    def locate(self, level: int, world_point: Coordinate, hit_radius: float) -> Optional[Cluster]:
        self._ensure_index()
        return self.query.locate(level, world_point, hit_radius)

    def identify(
        self,
        level: int,
        world_point: Coordinate,
        hit_radius: float,
    ) -> Union[Cluster, List[Point], None]:
        """
        Identify what is drawn at a location.

        Returns:
            The first cluster hit, otherwise the bare points within
            hit_radius, otherwise None
        """
        cluster = self.locate(level, world_point, hit_radius)
        if cluster is not None:
            return cluster

        hits = [
            p for p in self.get_bare_points(level)
            if distance((p.x, p.y), world_point) <= hit_radius
        ]
        return hits or None

    def get_stats(self, level: int) -> ClusterStats:
        self._ensure_index()
        return self.cache.get_stats(level)
