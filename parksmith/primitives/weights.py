"""Spatial weights construction from a neighbour list."""

import logging
from typing import Literal, Optional, Sequence

import numpy as np

from parksmith.objects.weights import NeighborList, SpatialWeights
from parksmith.utils.errors import GraphConstructionError, ParameterError

logger = logging.getLogger(__name__)


def build_spatial_weights(
    neighbors: NeighborList,
    distances: Optional[Sequence[np.ndarray]] = None,
    style: Literal["W", "B"] = "W",
    distance_power: Optional[float] = None,
    zero_policy: bool = False,
) -> SpatialWeights:
    """Create spatial weights from a neighbour list.

    Raw weights are 1 for every link, or ``1 / d**distance_power`` when
    ``distance_power`` is given (2.0 gives inverse-squared-distance weights).
    Style 'W' then row-standardizes, so uniform rows split weight equally
    among neighbours; style 'B' keeps the raw weights.

    Args:
        neighbors: NeighborList topology.
        distances: Link distances aligned with the neighbour rows. Required
            when distance_power is set.
        style: 'W' (row-standardized) or 'B' (raw weights).
        distance_power: Power for inverse-distance weighting, or None.
        zero_policy: Allow observations without neighbours. Their rows are
            empty and contribute zero to all statistics.

    Returns:
        SpatialWeights.

    Raises:
        IsolatedPointError: If a point has no neighbours and zero_policy is False.
        GraphConstructionError: If an inverse-distance link has zero length.
    """
    if style not in ("W", "B"):
        raise ParameterError(f"style must be 'W' or 'B', got {style!r}")

    if distance_power is not None:
        if distance_power <= 0:
            raise ParameterError(
                f"distance_power must be positive, got {distance_power}"
            )
        if distances is None:
            raise ParameterError("distances are required for inverse-distance weights")
        if len(distances) != len(neighbors):
            raise ParameterError(
                f"distances has {len(distances)} rows, expected {len(neighbors)}"
            )
        raw = []
        for i, row in enumerate(distances):
            row = np.asarray(row, dtype=np.float64)
            if np.any(row <= 0):
                raise GraphConstructionError(
                    f"Point {i} has a zero-length link; inverse-distance weights "
                    f"are undefined",
                    suggestion="Deduplicate coordinates before building weights",
                )
            raw.append(1.0 / row**distance_power)
    else:
        raw = [np.ones(len(row)) for row in neighbors.neighbors]

    if style == "W":
        weights = tuple(row / row.sum() if row.size else row for row in raw)
    else:
        weights = tuple(raw)

    spatial_weights = SpatialWeights(
        neighbors=neighbors, weights=weights, style=style, zero_policy=zero_policy
    )
    if spatial_weights.n_isolates:
        logger.warning(
            f"{spatial_weights.n_isolates} isolated point(s) kept with zero weight "
            f"under zero_policy"
        )
    logger.debug(f"Built {spatial_weights!r}")
    return spatial_weights
