"""Layer 1: Objects - Immutable data representations.

This layer contains only data structures. No I/O libraries, no shapely,
no matplotlib. Only standard library, numpy, pandas and scipy.sparse.
"""

from parksmith.objects.grid import PredictionGrid
from parksmith.objects.observation import Observation, Ring
from parksmith.objects.pointset import PointSet
from parksmith.objects.weights import NeighborList, SpatialWeights

__all__ = [
    "NeighborList",
    "Observation",
    "PointSet",
    "PredictionGrid",
    "Ring",
    "SpatialWeights",
]
