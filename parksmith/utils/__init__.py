"""Utility modules for ParkSmith."""

from parksmith.utils.errors import (
    DataValidationError,
    DegenerateVariance,
    DependencyError,
    EmptyWeightsError,
    GraphConstructionError,
    IsolatedPointError,
    KrigingSystemError,
    MalformedGeometry,
    ParameterError,
    ParkSmithError,
    VariogramFitError,
    format_dependency_error,
    format_parameter_error,
    raise_dependency_error,
    raise_parameter_error,
)
from parksmith.utils.optional_imports import optional_import

__all__ = [
    "optional_import",
    "ParkSmithError",
    "DataValidationError",
    "ParameterError",
    "DependencyError",
    "MalformedGeometry",
    "GraphConstructionError",
    "IsolatedPointError",
    "DegenerateVariance",
    "EmptyWeightsError",
    "VariogramFitError",
    "KrigingSystemError",
    "format_parameter_error",
    "format_dependency_error",
    "raise_parameter_error",
    "raise_dependency_error",
]
