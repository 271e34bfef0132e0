"""Tests for spatial weights construction."""

import logging

import numpy as np
import pytest

from parksmith.objects import NeighborList
from parksmith.primitives.neighbors import (
    delaunay_neighbors,
    grid_neighbors,
    neighbor_distances,
)
from parksmith.primitives.weights import build_spatial_weights
from parksmith.utils.errors import (
    GraphConstructionError,
    IsolatedPointError,
    ParameterError,
)


class TestBuildSpatialWeights:
    """Tests for build_spatial_weights."""

    def test_row_standardized_rows_sum_to_one(self):
        weights = build_spatial_weights(grid_neighbors(4, 5, queen=True))
        np.testing.assert_allclose(weights.row_sums, 1.0, atol=1e-12)
        assert weights.s0 == pytest.approx(20.0)

    def test_uniform_rows_split_equally(self):
        weights = build_spatial_weights(grid_neighbors(3, 3))
        np.testing.assert_allclose(weights.weights[4], 0.25)
        np.testing.assert_allclose(weights.weights[0], 0.5)

    def test_binary_style(self):
        weights = build_spatial_weights(grid_neighbors(3, 3), style="B")
        assert weights.s0 == pytest.approx(24.0)

    def test_inverse_distance_squared(self):
        coords = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 2.0]])
        neighbors = delaunay_neighbors(coords)
        distances = neighbor_distances(coords, neighbors)
        weights = build_spatial_weights(
            neighbors, distances=distances, style="B", distance_power=2.0
        )
        # point 0 links to 1 (d=1) and 2 (d=2)
        np.testing.assert_allclose(weights.weights[0], [1.0, 0.25])

        standardized = build_spatial_weights(
            neighbors, distances=distances, distance_power=2.0
        )
        np.testing.assert_allclose(standardized.weights[0], [0.8, 0.2])
        np.testing.assert_allclose(standardized.row_sums, 1.0)

    def test_topology_preserved(self):
        neighbors = grid_neighbors(3, 4)
        weights = build_spatial_weights(neighbors)
        rebuilt = weights.to_neighbor_list()
        assert rebuilt is not neighbors
        assert rebuilt.to_dict() == neighbors.to_dict()
        assert not rebuilt.directed

    def test_topology_from_inverse_distance_weights(self):
        coords = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 2.0], [3.0, 3.0]])
        neighbors = delaunay_neighbors(coords)
        weights = build_spatial_weights(
            neighbors, distances=neighbor_distances(coords, neighbors), distance_power=2.0
        )
        rebuilt = weights.to_neighbor_list()
        assert rebuilt.edges() == neighbors.edges()
        np.testing.assert_array_equal(rebuilt.cardinalities, neighbors.cardinalities)

    def test_topology_keeps_isolates(self):
        neighbors = NeighborList.from_dict({0: {1}, 1: {0}}, n=3)
        weights = build_spatial_weights(neighbors, zero_policy=True)
        rebuilt = weights.to_neighbor_list()
        assert rebuilt.isolates.tolist() == [2]
        assert rebuilt.to_dict() == {0: {1}, 1: {0}, 2: set()}

    def test_zero_length_link(self):
        neighbors = NeighborList.from_edges([(0, 1), (1, 2)], 3)
        distances = (np.array([1.0]), np.array([1.0, 0.0]), np.array([0.0]))
        with pytest.raises(GraphConstructionError, match="zero-length"):
            build_spatial_weights(neighbors, distances=distances, distance_power=2.0)

    def test_inverse_distance_requires_distances(self):
        with pytest.raises(ParameterError):
            build_spatial_weights(grid_neighbors(2, 2), distance_power=2.0)

    @pytest.mark.parametrize("power", [0.0, -1.0])
    def test_invalid_power(self, power):
        neighbors = grid_neighbors(2, 2)
        distances = tuple(np.ones(len(row)) for row in neighbors.neighbors)
        with pytest.raises(ParameterError):
            build_spatial_weights(neighbors, distances=distances, distance_power=power)

    def test_invalid_style(self):
        with pytest.raises(ParameterError):
            build_spatial_weights(grid_neighbors(2, 2), style="C")

    def test_isolate_rejected_without_zero_policy(self):
        neighbors = NeighborList.from_edges([(0, 1), (1, 2)], 4)
        with pytest.raises(IsolatedPointError):
            build_spatial_weights(neighbors)

    def test_isolate_allowed_with_zero_policy(self, caplog):
        neighbors = NeighborList.from_edges([(0, 1), (1, 2)], 4)
        with caplog.at_level(logging.WARNING):
            weights = build_spatial_weights(neighbors, zero_policy=True)
        assert weights.n_isolates == 1
        assert weights.row_sums[3] == 0.0
        assert "isolated" in caplog.text
