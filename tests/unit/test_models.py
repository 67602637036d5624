"""
Unit tests for data models.
"""
import math

import pytest
from pydantic import ValidationError

from gridcluster.core.models import (
    Cell,
    Cluster,
    ClusterOptions,
    Extent,
    Feature,
    LevelResult,
    LevelStatus,
    MergeStrategy,
)


class TestFeature:
    """Tests for Feature model."""

    def test_valid_feature(self):
        """Test creating a feature from plain values."""
        feature = Feature(id="a", coordinate=[1.5, 2.0], properties={"pop": 3})

        assert feature.x == 1.5
        assert feature.y == 2.0
        assert feature.visible is True
        assert feature.is_finite is True

    def test_non_finite_coordinate_is_accepted(self):
        """Test that NaN coordinates pass validation but are flagged."""
        feature = Feature(id=1, coordinate=(math.nan, 0.0))

        assert feature.is_finite is False

    def test_missing_coordinate_fails(self):
        """Test that a coordinate is required."""
        with pytest.raises(ValidationError):
            Feature(id="a")


class TestExtent:
    """Tests for Extent model."""

    def test_degenerate_extent(self):
        """Test that a single point is a valid zero-size extent."""
        extent = Extent(min_x=5, min_y=-2, max_x=5, max_y=-2)

        assert extent.min_x == extent.max_x == 5

    def test_frozen(self):
        extent = Extent(min_x=0, min_y=0, max_x=1, max_y=1)

        with pytest.raises(ValidationError):
            extent.min_x = -1

    def test_inverted_extent_fails(self):
        """Test that min greater than max is rejected."""
        with pytest.raises(ValidationError):
            Extent(min_x=2, min_y=0, max_x=1, max_y=1)


class TestClusterOptions:
    """Tests for ClusterOptions model."""

    def test_defaults(self):
        """Test default option values."""
        options = ClusterOptions()

        assert options.max_cluster_radius == 160.0
        assert options.weight_property is None
        assert options.singleton_passthrough is True
        assert options.merge_strategy == MergeStrategy.SINGLE_PASS

    def test_non_positive_radius_fails(self):
        with pytest.raises(ValidationError):
            ClusterOptions(max_cluster_radius=0)

    def test_level_range_validation(self):
        """Test that min_level must not exceed max_level."""
        with pytest.raises(ValidationError) as exc_info:
            ClusterOptions(min_level=5, max_level=2)

        assert "exceeds max_level" in str(exc_info.value)

    def test_blank_weight_property_is_unset(self):
        assert ClusterOptions(weight_property="  ").weight_property is None

    def test_unknown_option_fails(self):
        with pytest.raises(ValidationError):
            ClusterOptions(cluster_radius=10)

    def test_clamp_level(self):
        options = ClusterOptions(min_level=2, max_level=8)

        assert options.clamp_level(0) == 2
        assert options.clamp_level(5) == 5
        assert options.clamp_level(12) == 8

    def test_clusters_at(self):
        """Test max_cluster_level cut-off."""
        assert ClusterOptions().clusters_at(30) is True

        options = ClusterOptions(max_cluster_level=10)
        assert options.clusters_at(10) is True
        assert options.clusters_at(11) is False

    def test_from_settings_overrides(self):
        options = ClusterOptions.from_settings(max_cluster_radius=42, merge_strategy="union_find")

        assert options.max_cluster_radius == 42
        assert options.merge_strategy == MergeStrategy.UNION_FIND


class TestCluster:
    """Tests for Cell and Cluster."""

    def test_cell_accumulates(self):
        cell = Cell(key=(0, 0))
        cell.add(0.0, 0.0, "a", 2.0)
        cell.add(2.0, 4.0, "b", 3.0)

        assert cell.count == 2
        assert cell.center == (1.0, 2.0)
        assert cell.property_sum == 5.0
        assert cell.members == ["a", "b"]
        assert cell.origin == (0.0, 0.0)

    def test_absorb_recomputes_center(self):
        """Test that absorbing another cluster updates center and members."""
        a = Cluster(key=(0, 0), sum_x=0.0, sum_y=0.0, count=1, children=["a"], origin=(0.0, 0.0))
        b = Cluster(
            key=(1, 0), sum_x=6.0, sum_y=3.0, count=2, property_sum=4.0, children=["b", "c"], origin=(1.0, 1.0)
        )

        a.absorb(b)

        assert a.count == 3
        assert a.center == (2.0, 1.0)
        assert a.property_sum == 4.0
        assert a.children == ["a", "b", "c"]
        assert a.key == (0, 0)
        assert a.origin == (0.0, 0.0)
        assert a.is_singleton is False

    def test_identity_equality(self):
        """Test that clusters compare by identity."""
        a = Cluster(key=(0, 0), sum_x=1.0, sum_y=1.0, count=1, children=["a"])
        b = Cluster(key=(0, 0), sum_x=1.0, sum_y=1.0, count=1, children=["a"])

        assert a != b
        assert a.key_str == "0_0"

    def test_interpolate_from_parent(self):
        parent = Cluster(key=(0, 0), sum_x=0.0, sum_y=0.0, count=1)
        child = Cluster(key=(1, 1), sum_x=10.0, sum_y=20.0, count=1, parent=parent)

        assert child.interpolate_from_parent(0.0) == (0.0, 0.0)
        assert child.interpolate_from_parent(0.5) == (5.0, 10.0)
        assert child.interpolate_from_parent(1.0) == (10.0, 20.0)
        assert parent.interpolate_from_parent(0.3) == parent.center


class TestLevelResult:
    """Tests for LevelResult."""

    def test_lookup_and_totals(self):
        cluster = Cluster(key=(0, 0), sum_x=3.0, sum_y=0.0, count=3, children=[1, 2, 3])
        result = LevelResult(
            level=1,
            status=LevelStatus.READY,
            cell_size=10.0,
            clusters={(0, 0): cluster},
            cluster_map={(0, 0): cluster, (1, 0): cluster},
        )

        assert len(result) == 1
        assert result.total_points == 3
        assert result.lookup((1, 0)) is cluster
        assert result.lookup((5, 5)) is None
        assert result.has_data is True

    def test_no_data(self):
        result = LevelResult(level=3, status=LevelStatus.NO_DATA)

        assert result.has_data is False
        assert len(result) == 0
