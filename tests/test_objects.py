"""Tests for the immutable data objects."""

import numpy as np
import pytest

from parksmith.objects import (
    NeighborList,
    Observation,
    PointSet,
    PredictionGrid,
    SpatialWeights,
)
from parksmith.utils.errors import DataValidationError, IsolatedPointError


def _observation(identifier="a", lat=43.65, lon=-79.4, time=5.0, **kwargs):
    return Observation(
        identifier=identifier, latitude=lat, longitude=lon, avg_time_to_park=time, **kwargs
    )


class TestObservation:
    """Tests for Observation."""

    def test_location_is_lon_lat(self):
        assert _observation().location == (-79.4, 43.65)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"lat": 95.0},
            {"lon": -181.0},
            {"lat": float("nan")},
            {"time": -1.0},
            {"time": float("inf")},
            {"total_searching": -3},
        ],
    )
    def test_invalid_fields(self, kwargs):
        with pytest.raises(DataValidationError):
            _observation(**kwargs)

    def test_open_boundary_rejected(self):
        with pytest.raises(DataValidationError, match="not closed"):
            _observation(boundary=((0.0, 0.0), (1.0, 0.0), (1.0, 1.0)))


class TestPointSet:
    """Tests for PointSet."""

    def test_from_observations_preserves_order(self):
        points = PointSet.from_observations(
            [_observation("a", lon=-79.4), _observation("b", lon=-79.3, time=7.0)]
        )
        assert len(points) == 2
        assert list(points.identifiers) == ["a", "b"]
        np.testing.assert_allclose(points.values, [5.0, 7.0])
        np.testing.assert_allclose(points.coordinates[:, 0], [-79.4, -79.3])

    def test_arrays_are_read_only(self):
        points = PointSet(coordinates=np.zeros((2, 2)) + [[0, 0], [1, 1]], values=[1, 2])
        with pytest.raises(ValueError):
            points.values[0] = 10.0
        with pytest.raises(ValueError):
            points.coordinates[0, 0] = 10.0

    def test_input_array_not_aliased(self):
        coords = np.array([[0.0, 0.0], [1.0, 1.0]])
        points = PointSet(coordinates=coords)
        coords[0, 0] = 99.0
        assert points.coordinates[0, 0] == 0.0

    def test_shape_validation(self):
        with pytest.raises(DataValidationError):
            PointSet(coordinates=np.zeros((3, 3)))
        with pytest.raises(DataValidationError):
            PointSet(coordinates=np.zeros((3, 2)), values=[1.0, 2.0])

    def test_no_observations(self):
        with pytest.raises(DataValidationError):
            PointSet.from_observations([])

    def test_duplicates(self):
        points = PointSet(
            coordinates=np.array([[0.0, 0.0], [1.0, 1.0], [0.0, 0.0]]),
            values=[1.0, 2.0, 3.0],
        )
        assert points.has_duplicates
        np.testing.assert_array_equal(points.duplicate_mask(), [False, False, True])
        unique = points.deduplicate()
        assert len(unique) == 2
        np.testing.assert_allclose(unique.values, [1.0, 2.0])

    def test_subset_by_mask_and_index(self):
        points = PointSet(
            coordinates=np.arange(8, dtype=float).reshape(4, 2), values=[1, 2, 3, 4]
        )
        np.testing.assert_allclose(points.subset([True, False, True, False]).values, [1, 3])
        np.testing.assert_allclose(points.subset([3, 0]).values, [4, 1])

    def test_bounds(self):
        points = PointSet(coordinates=np.array([[0.0, 5.0], [2.0, -1.0]]))
        assert points.bounds == (0.0, -1.0, 2.0, 5.0)

    def test_require_values(self):
        with pytest.raises(DataValidationError):
            PointSet(coordinates=np.zeros((1, 2))).require_values()

    def test_to_frame(self):
        points = PointSet.from_observations([_observation("a"), _observation("b", lat=43.7)])
        frame = points.to_frame()
        assert list(frame.columns) == [
            "identifier", "longitude", "latitude", "avg_time_to_park", "total_searching"
        ]


class TestNeighborList:
    """Tests for NeighborList."""

    def test_rows_sorted_and_deduplicated(self):
        neighbors = NeighborList(neighbors=((2, 1, 1), (0,), (0,)))
        assert neighbors[0] == (1, 2)

    def test_self_loop_rejected(self):
        with pytest.raises(DataValidationError, match="itself"):
            NeighborList(neighbors=((0,),))

    def test_out_of_range_rejected(self):
        with pytest.raises(DataValidationError):
            NeighborList(neighbors=((5,), ()))

    def test_asymmetric_rejected_unless_directed(self):
        with pytest.raises(DataValidationError, match="symmetric"):
            NeighborList(neighbors=((1,), ()))
        directed = NeighborList(neighbors=((1,), ()), directed=True)
        assert directed.symmetrize().to_dict() == {0: {1}, 1: {0}}

    def test_from_dict_and_back(self):
        mapping = {0: {1, 2}, 1: {0}, 2: {0}, 3: set()}
        neighbors = NeighborList.from_dict(mapping)
        assert neighbors.to_dict() == mapping
        np.testing.assert_array_equal(neighbors.cardinalities, [2, 1, 1, 0])
        np.testing.assert_array_equal(neighbors.isolates, [3])
        assert neighbors.n_links == 4
        assert neighbors.edges() == [(0, 1), (0, 2)]

    def test_from_edges(self):
        neighbors = NeighborList.from_edges([(0, 1), (1, 2)], 4)
        assert neighbors.to_dict() == {0: {1}, 1: {0, 2}, 2: {1}, 3: set()}


class TestSpatialWeights:
    """Tests for SpatialWeights."""

    @pytest.fixture
    def path(self):
        return NeighborList.from_edges([(0, 1), (1, 2)], 3)

    def test_row_standardized(self, path):
        weights = SpatialWeights(
            neighbors=path, weights=(np.array([1.0]), np.array([0.5, 0.5]), np.array([1.0]))
        )
        np.testing.assert_allclose(weights.row_sums, 1.0)
        assert weights.s0 == pytest.approx(3.0)
        dense = weights.to_dense()
        np.testing.assert_allclose(dense, [[0, 1, 0], [0.5, 0, 0.5], [0, 1, 0]])

    def test_row_sum_checked(self, path):
        with pytest.raises(DataValidationError, match="sum to 1"):
            SpatialWeights(
                neighbors=path,
                weights=(np.array([1.0]), np.array([1.0, 1.0]), np.array([1.0])),
            )

    def test_weight_count_checked(self, path):
        with pytest.raises(DataValidationError):
            SpatialWeights(
                neighbors=path, weights=(np.array([1.0]), np.array([1.0]), np.array([1.0]))
            )

    def test_isolates_require_zero_policy(self):
        neighbors = NeighborList.from_edges([(0, 1)], 3)
        rows = (np.array([1.0]), np.array([1.0]), np.array([]))
        with pytest.raises(IsolatedPointError) as excinfo:
            SpatialWeights(neighbors=neighbors, weights=rows)
        assert excinfo.value.stage == "graph"
        weights = SpatialWeights(neighbors=neighbors, weights=rows, zero_policy=True)
        assert weights.n_isolates == 1

    def test_binary_moments(self, path):
        weights = SpatialWeights(
            neighbors=path,
            weights=(np.array([1.0]), np.array([1.0, 1.0]), np.array([1.0])),
            style="B",
        )
        assert weights.s0 == pytest.approx(4.0)
        # symmetric binary weights: s1 = 2 * s0
        assert weights.s1 == pytest.approx(8.0)
        # degrees (1, 2, 1): s2 = sum (2 d_i)^2
        assert weights.s2 == pytest.approx(4 + 16 + 4)
        assert weights.to_neighbor_list() is path


class TestPredictionGrid:
    """Tests for PredictionGrid."""

    def test_regular_row_major(self):
        grid = PredictionGrid.regular((0.0, 0.0, 2.0, 1.0), nx=3, ny=2)
        assert grid.shape == (2, 3)
        assert len(grid) == 6
        np.testing.assert_allclose(grid.coordinates[:3, 1], 0.0)
        np.testing.assert_allclose(grid.coordinates[:3, 0], [0.0, 1.0, 2.0])
        xs, ys = grid.axes
        np.testing.assert_allclose(xs, [0.0, 1.0, 2.0])
        np.testing.assert_allclose(ys, [0.0, 1.0])

    def test_covering_with_padding(self):
        points = PointSet(coordinates=np.array([[0.0, 0.0], [10.0, 20.0]]))
        grid = PredictionGrid.covering(points, nx=5, ny=5, padding=0.1)
        assert grid.coordinates[:, 0].min() == pytest.approx(-1.0)
        assert grid.coordinates[:, 1].max() == pytest.approx(22.0)

    def test_from_coordinates_is_irregular(self):
        grid = PredictionGrid.from_coordinates([[0.0, 0.0], [1.0, 1.0]])
        assert not grid.is_regular
        with pytest.raises(DataValidationError):
            grid.axes

    def test_invalid(self):
        with pytest.raises(DataValidationError):
            PredictionGrid.regular((0.0, 0.0, 1.0, 1.0), nx=0, ny=2)
        with pytest.raises(DataValidationError):
            PredictionGrid(coordinates=np.zeros((4, 2)), shape=(3, 3))
