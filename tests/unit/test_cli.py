"""
Unit tests for the command line interface.
"""
import json

import pytest
from typer.testing import CliRunner

from gridcluster.cli.cluster import load_features_file, lonlat_to_mercator
from gridcluster.cli.main import app
from gridcluster.core.exceptions import DataLoadError

runner = CliRunner()


@pytest.fixture
def features_file(tmp_path):
    path = tmp_path / "features.json"
    path.write_text(json.dumps([
        {"id": "a", "coordinate": [0, 0], "properties": {"pop": 2}},
        {"id": "b", "x": 1, "y": 0, "properties": {"pop": 5}},
        {"id": "c", "coordinate": [100, 100]},
        {"id": "hidden", "coordinate": [3, 3], "visible": False},
    ]))
    return path


@pytest.fixture
def geojson_file(tmp_path):
    path = tmp_path / "features.geojson"
    path.write_text(json.dumps({
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "id": "p1",
                "geometry": {"type": "Point", "coordinates": [0.0, 0.0]},
                "properties": {"name": "origin"},
            },
            {
                "type": "Feature",
                "geometry": {"type": "Point", "coordinates": [10.0, 20.0]},
                "properties": {},
            },
        ],
    }))
    return path


class TestLoadFeatures:

    def test_json_list(self, features_file):
        features = load_features_file(features_file)

        assert [f.id for f in features] == ["a", "b", "c", "hidden"]
        assert features[1].coordinate == (1.0, 0.0)
        assert features[3].visible is False

    def test_geojson(self, geojson_file):
        features = load_features_file(geojson_file)

        assert [f.id for f in features] == ["p1", 1]
        assert features[0].properties == {"name": "origin"}
        assert features[1].coordinate == (10.0, 20.0)

    def test_geojson_lonlat(self, geojson_file):
        features = load_features_file(geojson_file, lonlat=True)

        assert features[0].coordinate == pytest.approx((0.0, 0.0), abs=1e-6)
        assert features[1].coordinate == pytest.approx(tuple(lonlat_to_mercator(10.0, 20.0)))

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")

        with pytest.raises(DataLoadError):
            load_features_file(path)

    def test_non_point_geometry(self, tmp_path):
        path = tmp_path / "line.geojson"
        path.write_text(json.dumps({
            "type": "FeatureCollection",
            "features": [{"type": "Feature", "geometry": {"type": "LineString", "coordinates": []}}],
        }))

        with pytest.raises(DataLoadError):
            load_features_file(path)


class TestClusterCommand:

    def test_cluster_writes_output(self, features_file, tmp_path):
        output = tmp_path / "out" / "clusters.json"

        result = runner.invoke(app, [
            "cluster", str(features_file),
            "--level", "0",
            "--radius", "10",
            "--base-resolution", "1",
            "--weight-property", "pop",
            "--output", str(output),
        ])

        assert result.exit_code == 0, result.output
        data = json.loads(output.read_text())
        assert data["level"] == 0
        assert data["total_points"] == 3
        assert len(data["clusters"]) == 1
        assert data["clusters"][0]["count"] == 2
        assert data["clusters"][0]["property_sum"] == 7
        assert data["clusters"][0]["children"] == ["a", "b"]
        assert data["bare_points"] == ["c"]

    def test_cluster_missing_file(self, tmp_path):
        result = runner.invoke(app, ["cluster", str(tmp_path / "missing.json")])

        assert result.exit_code == 1

    def test_cluster_invalid_options(self, features_file):
        result = runner.invoke(app, ["cluster", str(features_file), "--radius", "0"])

        assert result.exit_code == 1

    def test_cluster_without_passthrough(self, features_file, tmp_path):
        output = tmp_path / "clusters.json"

        result = runner.invoke(app, [
            "cluster", str(features_file),
            "--radius", "10",
            "--base-resolution", "1",
            "--no-passthrough",
            "--output", str(output),
        ])

        assert result.exit_code == 0, result.output
        data = json.loads(output.read_text())
        assert [c["count"] for c in data["clusters"]] == [2, 1]
        assert data["bare_points"] == []


    def test_cluster_level_without_resolution(self, features_file):
        result = runner.invoke(app, ["cluster", str(features_file), "--base-resolution", "0"])

        assert result.exit_code == 1
        assert "No resolution available" in result.output

class TestLevelsCommand:

    def test_levels_summary(self, features_file):
        result = runner.invoke(app, [
            "levels", str(features_file),
            "--min-level", "0",
            "--max-level", "3",
            "--radius", "10",
            "--base-resolution", "1",
        ])

        assert result.exit_code == 0, result.output
        assert "Clusters per level" in result.output

    def test_levels_without_resolution(self, features_file):
        result = runner.invoke(app, [
            "levels", str(features_file),
            "--min-level", "0",
            "--max-level", "1",
            "--base-resolution", "0",
        ])

        assert result.exit_code == 0, result.output
        assert "no_data" in result.output
