"""Standardized errors for ParkSmith.

Every error carries the analysis stage it belongs to so that the workflow
layer can report partial results with a readable cause.
"""

from typing import Any, Optional


class ParkSmithError(Exception):
    """Base exception for ParkSmith errors."""

    stage: Optional[str] = None

    def __init__(
        self,
        message: str,
        suggestion: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        stage: Optional[str] = None,
    ):
        """Initialize ParkSmith error.

        Args:
            message: Primary error message.
            suggestion: Optional suggestion for fixing the error.
            details: Optional dictionary with additional error details.
            stage: Analysis stage that failed. Defaults to the class stage.
        """
        super().__init__(message)
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}
        if stage is not None:
            self.stage = stage

    def __str__(self) -> str:
        """Format error message with stage and suggestion if available."""
        text = f"[{self.stage}] {self.message}" if self.stage else self.message
        if self.suggestion:
            return f"{text}\n\nSuggestion: {self.suggestion}"
        return text


class DataValidationError(ParkSmithError):
    """Error raised when data validation fails."""

    pass


class ParameterError(ParkSmithError):
    """Error raised when parameters are invalid."""

    stage = "config"


class DependencyError(ParkSmithError):
    """Error raised when required dependencies are missing."""

    pass


class MalformedGeometry(DataValidationError):
    """A boundary string could not be parsed into a polygon ring."""

    stage = "geometry"


class GraphConstructionError(ParkSmithError):
    """The neighbourhood graph could not be built from the coordinates."""

    stage = "graph"


class IsolatedPointError(GraphConstructionError):
    """A point has no neighbours and the zero policy is disabled."""

    pass


class DegenerateVariance(ParkSmithError):
    """The target variable is constant, so autocorrelation is undefined."""

    stage = "autocorrelation"


class EmptyWeightsError(ParkSmithError):
    """The weights sum to zero (the graph has no edges)."""

    stage = "autocorrelation"


class VariogramFitError(ParkSmithError):
    """The parametric variogram fit failed or gave invalid parameters."""

    stage = "kriging"


class KrigingSystemError(ParkSmithError):
    """The kriging linear system is singular or ill-posed."""

    stage = "kriging"


def format_parameter_error(
    parameter_name: str,
    value: Any,
    valid_values: Optional[list[str]] = None,
    constraint: Optional[str] = None,
) -> str:
    """Format a standardized parameter error message.

    Args:
        parameter_name: Name of the invalid parameter.
        value: Invalid value that was provided.
        valid_values: List of valid values (optional).
        constraint: Constraint that was violated (optional).

    Returns:
        Formatted error message string.
    """
    parts = [f"Invalid value for parameter '{parameter_name}': {value}"]
    if valid_values:
        parts.append(f"Valid values: {', '.join(map(str, valid_values))}")
    if constraint:
        parts.append(f"Constraint: {constraint}")
    return "\n".join(parts)


def format_dependency_error(
    dependency_name: str,
    optional_group: Optional[str] = None,
) -> str:
    """Format a standardized dependency error message.

    Args:
        dependency_name: Name of the missing dependency.
        optional_group: Optional dependency group name (optional).

    Returns:
        Formatted error message string.
    """
    parts = [f"Missing required dependency: {dependency_name}"]
    if optional_group:
        parts.append(f"Install with: pip install parksmith[{optional_group}]")
    else:
        parts.append(f"Install with: pip install {dependency_name}")
    return "\n".join(parts)


def raise_parameter_error(
    parameter_name: str,
    value: Any,
    valid_values: Optional[list[str]] = None,
    constraint: Optional[str] = None,
    suggestion: Optional[str] = None,
) -> None:
    """Raise a standardized parameter error.

    Raises:
        ParameterError: Always raises this exception.
    """
    error_msg = format_parameter_error(parameter_name, value, valid_values, constraint)
    raise ParameterError(error_msg, suggestion=suggestion)


def raise_dependency_error(
    dependency_name: str,
    optional_group: Optional[str] = None,
) -> None:
    """Raise a standardized dependency error.

    Raises:
        DependencyError: Always raises this exception.
    """
    raise DependencyError(format_dependency_error(dependency_name, optional_group))
