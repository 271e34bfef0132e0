"""Layer 2: Primitives - Algorithm interfaces and pure operations.

This layer holds the spatial-statistics engine. It can import numpy, scipy,
numba, shapely and pyproj. No file I/O or plotting.
"""

from parksmith.primitives.autocorrelation import (
    AutocorrelationResult,
    LocalAutocorrelationResult,
    gearys_c,
    local_morans_i,
    morans_i,
)
from parksmith.primitives.geometry import (
    GeometrySet,
    build_geometries,
    parse_boundary,
    ring_to_polygon,
)
from parksmith.primitives.kriging import KrigingResult, UniversalKriging, krige
from parksmith.primitives.kriging_cv import (
    CrossValidationResult,
    leave_one_out_cross_validation,
)
from parksmith.primitives.neighbors import (
    delaunay_neighbors,
    grid_neighbors,
    knn_neighbors,
    nearest_neighbor_distances,
    neighbor_distances,
    sphere_of_influence_neighbors,
)
from parksmith.primitives.spatial_reference import is_geographic, pairwise_distances
from parksmith.primitives.variogram import (
    EmpiricalVariogram,
    FittedVariogramModel,
    VariogramFamily,
    compute_empirical_variogram,
    covariance_function,
    fit_variogram_model,
    variogram_function,
)
from parksmith.primitives.weights import build_spatial_weights

__all__ = [
    # Geometry
    "GeometrySet",
    "build_geometries",
    "parse_boundary",
    "ring_to_polygon",
    # Neighbourhood graph
    "delaunay_neighbors",
    "grid_neighbors",
    "knn_neighbors",
    "nearest_neighbor_distances",
    "neighbor_distances",
    "sphere_of_influence_neighbors",
    "build_spatial_weights",
    "is_geographic",
    "pairwise_distances",
    # Autocorrelation
    "AutocorrelationResult",
    "LocalAutocorrelationResult",
    "gearys_c",
    "local_morans_i",
    "morans_i",
    # Variogram and kriging
    "EmpiricalVariogram",
    "FittedVariogramModel",
    "VariogramFamily",
    "compute_empirical_variogram",
    "covariance_function",
    "fit_variogram_model",
    "variogram_function",
    "KrigingResult",
    "UniversalKriging",
    "krige",
    "CrossValidationResult",
    "leave_one_out_cross_validation",
]
