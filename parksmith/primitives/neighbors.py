"""Neighbourhood graph construction over point coordinates.

Provides:
- Delaunay triangulation neighbours
- Sphere-of-influence refinement of a candidate graph
- K-nearest neighbours
- Regular lattice (rook/queen) neighbours
- Distances along neighbour links
"""

import logging
from itertools import combinations
from typing import Optional

import numpy as np
from scipy.spatial import Delaunay, QhullError, cKDTree

from parksmith.objects.weights import NeighborList
from parksmith.primitives.spatial_reference import DistanceMetric, pairwise_distances
from parksmith.utils.errors import GraphConstructionError, ParameterError

logger = logging.getLogger(__name__)

# Relative slack on the circle-intersection test so that tangent circles
# count as intersecting despite rounding.
SOI_TOLERANCE = 1e-12


def _validate_coordinates(coordinates: np.ndarray, minimum: int) -> np.ndarray:
    coordinates = np.asarray(coordinates, dtype=np.float64)
    if coordinates.ndim != 2 or coordinates.shape[1] != 2:
        raise GraphConstructionError(
            f"coordinates must have shape (n_points, 2), got {coordinates.shape}"
        )
    if len(coordinates) < minimum:
        raise GraphConstructionError(
            f"Need at least {minimum} points, got {len(coordinates)}"
        )
    if len(np.unique(coordinates, axis=0)) != len(coordinates):
        raise GraphConstructionError(
            "Coordinates contain duplicate locations",
            suggestion="Call PointSet.deduplicate() before building the graph",
        )
    return coordinates


def delaunay_neighbors(coordinates: np.ndarray) -> NeighborList:
    """Neighbours from the Delaunay triangulation of the points.

    Args:
        coordinates: Point coordinates (n_points, 2), without duplicates.

    Returns:
        Symmetric NeighborList of triangulation edges.

    Raises:
        GraphConstructionError: If there are fewer than 2 points, duplicates,
            or the points are collinear.
    """
    coordinates = _validate_coordinates(coordinates, minimum=2)
    n = len(coordinates)

    if n == 2:
        return NeighborList.from_edges([(0, 1)], n)

    try:
        tri = Delaunay(coordinates)
    except QhullError as exc:
        raise GraphConstructionError(
            "Delaunay triangulation failed; the points may be collinear",
            details={"qhull": str(exc)},
        ) from exc

    edges = {
        tuple(sorted((int(i), int(j))))
        for simplex in tri.simplices
        for i, j in combinations(simplex, 2)
    }
    # Qhull may leave points out of every simplex when they are (near-)coplanar.
    if tri.coplanar.size:
        raise GraphConstructionError(
            f"{len(tri.coplanar)} point(s) were not triangulated",
            details={"coplanar": tri.coplanar[:, 0].tolist()},
        )

    neighbors = NeighborList.from_edges(edges, n)
    logger.debug(f"Delaunay graph: {len(edges)} edges over {n} points")
    return neighbors


def nearest_neighbor_distances(coordinates: np.ndarray) -> np.ndarray:
    """Distance from each point to its nearest other point."""
    coordinates = _validate_coordinates(coordinates, minimum=2)
    tree = cKDTree(coordinates)
    distances, _ = tree.query(coordinates, k=2)
    return distances[:, 1]


def sphere_of_influence_neighbors(
    coordinates: np.ndarray,
    candidates: Optional[NeighborList] = None,
) -> NeighborList:
    """Refine a candidate graph with the sphere-of-influence rule.

    Each point p gets a circle of radius r_p equal to its nearest-neighbour
    distance. A candidate edge (p, q) is kept when the two circles intersect,
    i.e. d(p, q) <= r_p + r_q.

    Args:
        coordinates: Point coordinates (n_points, 2), without duplicates.
        candidates: Candidate graph. Defaults to the Delaunay triangulation.

    Returns:
        Symmetric NeighborList containing the retained edges.
    """
    coordinates = _validate_coordinates(coordinates, minimum=2)
    if candidates is None:
        candidates = delaunay_neighbors(coordinates)
    if len(candidates) != len(coordinates):
        raise GraphConstructionError(
            f"Candidate graph has {len(candidates)} nodes, expected {len(coordinates)}"
        )

    radii = nearest_neighbor_distances(coordinates)
    edges = np.array(candidates.edges(), dtype=np.int64).reshape(-1, 2)
    lengths = np.hypot(*(coordinates[edges[:, 0]] - coordinates[edges[:, 1]]).T)
    reach = radii[edges[:, 0]] + radii[edges[:, 1]]
    keep = lengths <= reach * (1.0 + SOI_TOLERANCE)

    kept = [tuple(edge) for edge in edges[keep].tolist()]
    neighbors = NeighborList.from_edges(kept, len(coordinates))
    logger.info(
        f"Sphere-of-influence graph kept {len(kept)} of {len(edges)} candidate "
        f"edges ({len(neighbors.isolates)} isolates)"
    )
    return neighbors


def knn_neighbors(
    coordinates: np.ndarray,
    k: int = 4,
    symmetric: bool = True,
) -> NeighborList:
    """K-nearest-neighbour graph.

    Args:
        coordinates: Point coordinates (n_points, 2), without duplicates.
        k: Number of nearest neighbours.
        symmetric: If True, return the symmetric closure; otherwise a
            directed NeighborList.
    """
    coordinates = _validate_coordinates(coordinates, minimum=2)
    n = len(coordinates)
    if k < 1 or k >= n:
        raise ParameterError(f"k ({k}) must be in [1, {n - 1}]")

    tree = cKDTree(coordinates)
    _, indices = tree.query(coordinates, k=k + 1)
    rows = tuple(tuple(int(j) for j in row[1:]) for row in indices)
    directed = NeighborList(neighbors=rows, directed=True)
    return directed.symmetrize() if symmetric else directed


def grid_neighbors(n_rows: int, n_cols: int, queen: bool = False) -> NeighborList:
    """Neighbours on a regular lattice, indexed row-major.

    Args:
        n_rows: Number of rows.
        n_cols: Number of columns.
        queen: If True, diagonal cells are neighbours too (else rook).
    """
    if n_rows < 1 or n_cols < 1:
        raise ParameterError(f"Grid must be at least 1x1, got {n_rows}x{n_cols}")
    offsets = [(-1, 0), (1, 0), (0, -1), (0, 1)]
    if queen:
        offsets += [(-1, -1), (-1, 1), (1, -1), (1, 1)]

    rows = []
    for r in range(n_rows):
        for c in range(n_cols):
            rows.append(
                tuple(
                    (r + dr) * n_cols + (c + dc)
                    for dr, dc in offsets
                    if 0 <= r + dr < n_rows and 0 <= c + dc < n_cols
                )
            )
    return NeighborList(neighbors=tuple(rows))


def neighbor_distances(
    coordinates: np.ndarray,
    neighbors: NeighborList,
    metric: DistanceMetric = "euclidean",
) -> tuple[np.ndarray, ...]:
    """Distances along every neighbour link, aligned with the NeighborList rows.

    Args:
        coordinates: Point coordinates (n_points, 2).
        neighbors: NeighborList over the same points.
        metric: 'euclidean' or 'geodesic' (km, for longitude/latitude input).

    Returns:
        One distance array per point.
    """
    coordinates = np.asarray(coordinates, dtype=np.float64)
    if len(coordinates) != len(neighbors):
        raise GraphConstructionError(
            f"NeighborList has {len(neighbors)} nodes, expected {len(coordinates)}"
        )
    origins = np.repeat(np.arange(len(neighbors)), neighbors.cardinalities)
    targets = np.array(
        [j for row in neighbors.neighbors for j in row], dtype=np.int64
    )
    flat = pairwise_distances(coordinates[origins], coordinates[targets], metric)
    splits = np.cumsum(neighbors.cardinalities)[:-1]
    return tuple(np.split(flat, splits))
