"""Kriging primitives for spatial interpolation.

Supports:
- Ordinary Kriging: constant but unknown mean (trend='constant')
- Universal Kriging: mean modeled as a first-order trend in the
  coordinates (trend='linear')
"""

import logging
from dataclasses import dataclass
from typing import Literal, Optional

import numpy as np
import pandas as pd
from scipy.spatial.distance import cdist

from parksmith.objects.grid import PredictionGrid
from parksmith.objects.pointset import PointSet
from parksmith.primitives.variogram import FittedVariogramModel, covariance_function
from parksmith.utils.errors import (
    DataValidationError,
    KrigingSystemError,
    ParameterError,
)

logger = logging.getLogger(__name__)

Trend = Literal["constant", "linear"]


@dataclass(frozen=True, eq=False)
class KrigingResult:
    """Container for kriging predictions.

    Attributes:
        predictions: Predicted values at the grid targets.
        variance: Kriging (prediction) variance at the grid targets.
        grid: The PredictionGrid that was predicted on.
    """

    predictions: np.ndarray
    variance: np.ndarray
    grid: PredictionGrid

    def as_raster(self) -> tuple[np.ndarray, np.ndarray]:
        """Predictions and variance reshaped to the (n_rows, n_cols) grid."""
        if self.grid.shape is None:
            raise DataValidationError("Only regular grids can be rasterized")
        return (
            self.predictions.reshape(self.grid.shape),
            self.variance.reshape(self.grid.shape),
        )

    def to_frame(self) -> pd.DataFrame:
        """Tabular view for rendering collaborators."""
        return pd.DataFrame(
            {
                "x": self.grid.coordinates[:, 0],
                "y": self.grid.coordinates[:, 1],
                "prediction": self.predictions,
                "variance": self.variance,
            }
        )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"KrigingResult(n_predictions={len(self.predictions)}, "
            f"mean_prediction={self.predictions.mean():.4f}, "
            f"mean_variance={self.variance.mean():.4f})"
        )


class UniversalKriging:
    """Kriging with a polynomial trend in the coordinates.

    Solves the augmented system

        [C   F] [λ]   [c]
        [F'  0] [ν] = [f]

    where C is the sample covariance matrix, F the trend basis at the samples,
    c the sample-to-target covariances and f the trend basis at the target.
    The prediction is λ'x and the variance C(0) - λ'c - ν'f.

    Attributes:
        variogram_model: Fitted variogram model.
        trend: 'linear' (basis 1, x, y) or 'constant' (basis 1, i.e.
            ordinary kriging).
        regularization: Small value added to the covariance diagonal.
    """

    def __init__(
        self,
        variogram_model: FittedVariogramModel,
        trend: Trend = "linear",
        regularization: float = 1e-10,
    ):
        """Initialize Universal Kriging.

        Args:
            variogram_model: Fitted variogram model.
            trend: 'linear' or 'constant'.
            regularization: Small value added to diagonal for stability.
        """
        if trend not in ("constant", "linear"):
            raise ParameterError(f"trend must be 'constant' or 'linear', got {trend!r}")
        if regularization < 0:
            raise ParameterError(
                f"regularization must be non-negative, got {regularization}"
            )
        self.variogram_model = variogram_model
        self.trend = trend
        self.regularization = regularization
        self.coordinates: Optional[np.ndarray] = None
        self.values: Optional[np.ndarray] = None
        self._origin: Optional[np.ndarray] = None
        self._system: Optional[np.ndarray] = None
        self._fitted = False

    @property
    def is_fitted(self) -> bool:
        """True once fit() has been called."""
        return self._fitted

    @property
    def n_trend(self) -> int:
        """Number of trend basis functions."""
        return 3 if self.trend == "linear" else 1

    def _trend_basis(self, coordinates: np.ndarray) -> np.ndarray:
        """Trend basis F with coordinates centred on the training centroid."""
        ones = np.ones((len(coordinates), 1))
        if self.trend == "constant":
            return ones
        return np.hstack([ones, coordinates - self._origin])

    def fit(self, points: PointSet, values: Optional[np.ndarray] = None) -> "UniversalKriging":
        """Assemble the kriging system from sample data.

        Args:
            points: PointSet with sample locations (no duplicated coordinates).
            values: Sample values; defaults to ``points.values``.

        Returns:
            Self for method chaining.

        Raises:
            DataValidationError: If inputs are invalid.
            KrigingSystemError: If the system matrix is singular.
        """
        values = points.require_values() if values is None else np.asarray(values, float)
        coordinates = points.coordinates

        if len(coordinates) != len(values):
            raise DataValidationError(
                f"Coordinates ({len(coordinates)}) and values ({len(values)}) "
                f"must have same length"
            )
        if len(values) <= self.n_trend:
            raise DataValidationError(
                f"Need more than {self.n_trend} samples for {self.trend} trend, "
                f"got {len(values)}"
            )
        if points.has_duplicates:
            raise DataValidationError(
                "Coincident samples make the kriging system singular",
                suggestion="Call PointSet.deduplicate() first",
            )

        self.coordinates = np.asarray(coordinates, dtype=np.float64)
        self.values = np.asarray(values, dtype=np.float64)
        self._origin = self.coordinates.mean(axis=0)
        n = len(values)
        m = self.n_trend

        K = covariance_function(self.variogram_model, cdist(coordinates, coordinates))
        K += self.regularization * np.eye(n)
        F = self._trend_basis(self.coordinates)

        system = np.zeros((n + m, n + m))
        system[:n, :n] = K
        system[:n, n:] = F
        system[n:, :n] = F.T

        if np.linalg.matrix_rank(F) < m:
            raise KrigingSystemError(
                f"Sample locations cannot support a {self.trend} trend "
                f"(collinear coordinates)"
            )

        self._system = system
        self._fitted = True
        logger.info(f"Fitted {self.trend} kriging system on {n} samples")
        return self

    def predict(self, grid: PredictionGrid | PointSet) -> KrigingResult:
        """Predict values and kriging variance at target locations.

        All targets are solved together as one multi-right-hand-side system.

        Args:
            grid: PredictionGrid (or PointSet) with target locations.

        Returns:
            KrigingResult with predictions and variance.

        Raises:
            ValueError: If model not fitted.
            KrigingSystemError: If the system cannot be solved.
        """
        if not self.is_fitted or self._system is None:
            raise ValueError("Model not fitted. Call fit() first.")
        if isinstance(grid, PointSet):
            grid = PredictionGrid.from_coordinates(grid.coordinates)

        targets = grid.coordinates
        n = len(self.values)  # type: ignore

        c = covariance_function(self.variogram_model, cdist(self.coordinates, targets))
        f = self._trend_basis(targets).T
        rhs = np.vstack([c, f])

        try:
            solution = np.linalg.solve(self._system, rhs)
        except np.linalg.LinAlgError as exc:
            raise KrigingSystemError(f"Kriging system could not be solved: {exc}") from exc

        weights = solution[:n]
        predictions = weights.T @ self.values
        c0 = self.variogram_model.sill
        variance = c0 - np.einsum("ij,ij->j", solution, rhs)
        variance = np.maximum(variance, 0.0)

        result = KrigingResult(predictions=predictions, variance=variance, grid=grid)
        logger.debug(f"Predicted {result!r}")
        return result


def krige(
    points: PointSet,
    variogram_model: FittedVariogramModel,
    grid: PredictionGrid,
    values: Optional[np.ndarray] = None,
    trend: Trend = "linear",
    regularization: float = 1e-10,
) -> KrigingResult:
    """Fit and predict in one call.

    Example:
        >>> model = fit_variogram_model(compute_empirical_variogram(points))
        >>> result = krige(points, model, PredictionGrid.covering(points))
        >>> surface, variance = result.as_raster()
    """
    kriging = UniversalKriging(
        variogram_model=variogram_model, trend=trend, regularization=regularization
    )
    return kriging.fit(points, values).predict(grid)
