"""Tests for observation ingestion and point set construction."""

import io

import numpy as np
import pandas as pd
import pytest

from parksmith.config import IngestConfig
from parksmith.tasks.pointsettask import build_point_set
from parksmith.workflows.io import normalize_observations, read_observations
from parksmith.utils.errors import DataValidationError


def _bounds(lon, lat, size=0.005):
    return (
        f"POLYGON(({lon} {lat}, {lon + size} {lat}, {lon + size} {lat + size}, "
        f"{lon} {lat + size}, {lon} {lat}))"
    )


@pytest.fixture
def raw_frame():
    return pd.DataFrame(
        {
            "Geohash": ["dpz83a", "dpz83b", "dpz83c", "dpz83d", "dpz83e"],
            "Country": ["Canada", "United States of America", "Canada", "Canada", "Canada"],
            "State": ["Ontario"] * 5,
            "City": ["Toronto"] * 5,
            "County": ["Toronto"] * 5,
            "Latitude": [43.65, 43.66, None, 43.67, 43.68],
            "Longitude": [-79.40, -79.39, -79.38, -79.37, -79.36],
            "TotalSearching": [12, 5, 3, 8, 1],
            "AvgTimeToPark": [4.5, 6.0, 3.0, None, 2.5],
            "GeohashBounds": [
                _bounds(-79.40, 43.65),
                _bounds(-79.39, 43.66),
                _bounds(-79.38, 43.66),
                _bounds(-79.37, 43.67),
                "POLYGON((not a polygon))",
            ],
        }
    )


class TestReadObservations:
    """Tests for read_observations and normalize_observations."""

    def test_renames_and_filters(self, raw_frame):
        buffer = io.StringIO(raw_frame.to_csv(index=False))
        frame = read_observations(buffer)
        assert list(frame["identifier"]) == ["dpz83a", "dpz83b", "dpz83e"]
        assert {"latitude", "longitude", "avg_time_to_park", "boundary"} <= set(frame.columns)
        assert frame["avg_time_to_park"].notna().all()

    def test_country_normalized(self, raw_frame):
        frame = normalize_observations(raw_frame)
        assert frame.loc[frame["identifier"] == "dpz83b", "country"].item() == "USA"

    def test_missing_columns(self, raw_frame):
        with pytest.raises(DataValidationError, match="GeohashBounds"):
            normalize_observations(raw_frame.drop(columns=["GeohashBounds"]))

    def test_custom_column_mapping(self, raw_frame):
        config = IngestConfig(
            columns={**IngestConfig().columns, "avg_time_to_park": "Minutes"}
        )
        frame = normalize_observations(
            raw_frame.rename(columns={"AvgTimeToPark": "Minutes"}), config
        )
        assert "avg_time_to_park" in frame.columns
        assert len(frame) == 3


class TestBuildPointSet:
    """Tests for build_point_set."""

    def test_malformed_boundary_excluded(self, raw_frame):
        build = build_point_set(normalize_observations(raw_frame))
        assert len(build.points) == 2
        assert len(build.excluded) == 1
        exclusion = build.excluded[0]
        assert exclusion.identifier == "dpz83e"
        assert exclusion.stage == "geometry"
        assert exclusion.reason

    def test_values_and_counts(self, raw_frame):
        points = build_point_set(normalize_observations(raw_frame)).points
        np.testing.assert_allclose(points.values, [4.5, 6.0])
        np.testing.assert_array_equal(points.counts, [12, 5])
        np.testing.assert_allclose(points.coordinates[0], [-79.40, 43.65])
        assert points.boundaries[0][0] == (-79.40, 43.65)

    def test_invalid_values_excluded(self):
        frame = pd.DataFrame(
            {
                "latitude": [43.6, 43.7, 95.0],
                "longitude": [-79.4, -79.3, -79.2],
                "avg_time_to_park": [1.0, -2.0, 3.0],
            }
        )
        build = build_point_set(frame)
        assert len(build.points) == 1
        assert [e.identifier for e in build.excluded] == ["1", "2"]

    def test_duplicates_removed(self):
        frame = pd.DataFrame(
            {
                "latitude": [43.6, 43.7, 43.6],
                "longitude": [-79.4, -79.3, -79.4],
                "avg_time_to_park": [1.0, 2.0, 3.0],
            }
        )
        build = build_point_set(frame)
        assert build.n_duplicates == 1
        np.testing.assert_allclose(build.points.values, [1.0, 2.0])

    def test_missing_required_column(self):
        with pytest.raises(DataValidationError):
            build_point_set(pd.DataFrame({"latitude": [1.0], "longitude": [2.0]}))

    def test_no_valid_rows(self):
        frame = pd.DataFrame(
            {"latitude": [99.0], "longitude": [0.0], "avg_time_to_park": [1.0]}
        )
        with pytest.raises(DataValidationError, match="No valid observations"):
            build_point_set(frame)
