"""
Unit tests for GridBucketer.
"""
import pytest

from gridcluster.clustering.bucketer import GridBucketer, cell_key
from gridcluster.core.exceptions import ClusteringError
from gridcluster.core.models import Extent, Point


@pytest.fixture
def sample_points():
    return [
        Point(x=-5.0, y=-5.0, id="a", weight=1.0),
        Point(x=4.9, y=0.0, id="b", weight=2.5),
        Point(x=5.0, y=0.0, id="c"),
        Point(x=-4.0, y=-4.0, id="d", weight=1.0),
    ]


@pytest.fixture
def sample_extent():
    return Extent(min_x=-5.0, min_y=-5.0, max_x=5.0, max_y=0.0)


class TestGridBucketer:
    """Tests for GridBucketer class."""

    def test_cells_relative_to_extent(self, sample_points, sample_extent):
        """Test that grid coordinates start at the extent's minimum corner."""
        cells = GridBucketer().bucket(0, sample_points, sample_extent, 10.0)

        assert set(cells) == {(0, 0), (1, 0)}
        assert cells[(0, 0)].count == 3
        assert cells[(1, 0)].count == 1

    def test_members_keep_point_order(self, sample_points, sample_extent):
        cells = GridBucketer().bucket(0, sample_points, sample_extent, 10.0)

        assert cells[(0, 0)].members == ["a", "b", "d"]
        assert cells[(1, 0)].members == ["c"]

    def test_sums(self, sample_points, sample_extent):
        cells = GridBucketer().bucket(0, sample_points, sample_extent, 10.0)
        cell = cells[(0, 0)]

        assert cell.sum_x == pytest.approx(-4.1)
        assert cell.sum_y == pytest.approx(-9.0)
        assert cell.property_sum == pytest.approx(4.5)
        assert cell.center == pytest.approx((-4.1 / 3, -3.0))

    def test_smaller_cells(self, sample_points, sample_extent):
        cells = GridBucketer().bucket(1, sample_points, sample_extent, 1.0)

        assert set(cells) == {(0, 0), (9, 5), (10, 5), (1, 1)}

    def test_matches_cell_key(self, sample_points, sample_extent):
        """Test that vectorized keys agree with the scalar helper."""
        cells = GridBucketer().bucket(0, sample_points, sample_extent, 3.0)

        for key, cell in cells.items():
            for point in sample_points:
                if point.id in cell.members:
                    assert cell_key(point.x, point.y, sample_extent, 3.0) == key

    def test_empty_points(self, sample_extent):
        assert GridBucketer().bucket(0, [], sample_extent, 10.0) == {}

    def test_no_extent(self, sample_points):
        assert GridBucketer().bucket(0, sample_points, None, 10.0) == {}

    @pytest.mark.parametrize("cell_size", [0.0, -1.0, float("nan")])
    def test_invalid_cell_size_raises_error(self, sample_points, sample_extent, cell_size):
        with pytest.raises(ClusteringError):
            GridBucketer().bucket(0, sample_points, sample_extent, cell_size)


class TestCellKey:
    """Tests for cell_key helper."""

    def test_floor_on_negative_offsets(self):
        extent = Extent(min_x=0.0, min_y=0.0, max_x=10.0, max_y=10.0)

        assert cell_key(-0.5, 25.0, extent, 10.0) == (-1, 2)
