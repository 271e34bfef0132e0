"""Coordinate reference handling and distances.

Planar (Euclidean) distances are used for projected coordinates and for the
variogram; geodesic distances on the WGS84 ellipsoid are available for
geographic (longitude, latitude) coordinates through pyproj.
"""

from __future__ import annotations

import logging
from typing import Literal

import numpy as np
from pyproj import CRS, Geod

from parksmith.utils.errors import ParameterError

logger = logging.getLogger(__name__)

DistanceMetric = Literal["euclidean", "geodesic"]

_WGS84 = Geod(ellps="WGS84")


def is_geographic(crs: str | int | CRS | None) -> bool:
    """True if the CRS uses angular (longitude/latitude) coordinates."""
    if crs is None:
        return False
    return bool(CRS.from_user_input(crs).is_geographic)


def pairwise_distances(
    origins: np.ndarray,
    destinations: np.ndarray,
    metric: DistanceMetric = "euclidean",
) -> np.ndarray:
    """Element-wise distance between matching rows of two coordinate arrays.

    Args:
        origins: Coordinates (n, 2) as (x, y) or (longitude, latitude).
        destinations: Coordinates (n, 2).
        metric: 'euclidean' (coordinate units) or 'geodesic' (kilometres on
            the WGS84 ellipsoid).

    Returns:
        Distances (n,).
    """
    origins = np.asarray(origins, dtype=np.float64).reshape(-1, 2)
    destinations = np.asarray(destinations, dtype=np.float64).reshape(-1, 2)
    if origins.shape != destinations.shape:
        raise ParameterError(
            f"origins {origins.shape} and destinations {destinations.shape} differ"
        )

    if metric == "euclidean":
        return np.hypot(*(origins - destinations).T)
    if metric == "geodesic":
        if len(origins) == 0:
            return np.empty(0)
        _, _, meters = _WGS84.inv(
            origins[:, 0], origins[:, 1], destinations[:, 0], destinations[:, 1]
        )
        return np.asarray(meters, dtype=np.float64) / 1000.0
    raise ParameterError(
        f"Unknown distance metric: {metric!r}",
        suggestion="Use 'euclidean' or 'geodesic'",
    )
