"""ParkSmith: spatial statistics for parking-search observations.

Layered package:

- ``parksmith.objects``: immutable data representations
- ``parksmith.primitives``: neighbourhood graphs, autocorrelation tests,
  variograms and kriging
- ``parksmith.tasks``: building point sets from observation tables
- ``parksmith.workflows``: ingestion, the staged analysis run and plotting
"""

import logging

from parksmith.config import AnalysisConfig, load_config
from parksmith.objects import (
    NeighborList,
    Observation,
    PointSet,
    PredictionGrid,
    SpatialWeights,
)
from parksmith.primitives import (
    FittedVariogramModel,
    UniversalKriging,
    VariogramFamily,
    build_spatial_weights,
    compute_empirical_variogram,
    fit_variogram_model,
    gearys_c,
    krige,
    local_morans_i,
    morans_i,
    sphere_of_influence_neighbors,
)
from parksmith.workflows import annotate_points, read_observations, run_analysis

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "AnalysisConfig",
    "FittedVariogramModel",
    "NeighborList",
    "Observation",
    "PointSet",
    "PredictionGrid",
    "SpatialWeights",
    "UniversalKriging",
    "VariogramFamily",
    "annotate_points",
    "build_spatial_weights",
    "compute_empirical_variogram",
    "fit_variogram_model",
    "gearys_c",
    "krige",
    "load_config",
    "local_morans_i",
    "morans_i",
    "read_observations",
    "run_analysis",
    "sphere_of_influence_neighbors",
]
