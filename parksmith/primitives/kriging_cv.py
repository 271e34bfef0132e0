"""Cross-validation for kriging models.

Leave-one-out cross-validation assesses prediction quality and the choice
of variogram model.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from parksmith.objects.grid import PredictionGrid
from parksmith.objects.pointset import PointSet
from parksmith.primitives.kriging import Trend, UniversalKriging
from parksmith.primitives.variogram import FittedVariogramModel
from parksmith.utils.errors import DataValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class CrossValidationResult:
    """Results from cross-validation.

    Attributes:
        predictions: Cross-validated predictions (n_samples,).
        variance: Kriging variance of each held-out prediction.
        errors: Prediction errors (observed - predicted).
        mae: Mean Absolute Error.
        rmse: Root Mean Squared Error.
        r2: Coefficient of determination (R²).
        mean_error: Mean error (bias).
        mean_squared_z: Mean of errors² / variance; close to 1 when the
            kriging variance is well calibrated.
    """

    predictions: np.ndarray
    variance: np.ndarray
    errors: np.ndarray
    mae: float
    rmse: float
    r2: float
    mean_error: float
    mean_squared_z: float

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"CrossValidationResult(MAE={self.mae:.4f}, RMSE={self.rmse:.4f}, "
            f"R²={self.r2:.4f}, Bias={self.mean_error:.4f}, "
            f"MSDR={self.mean_squared_z:.4f})"
        )


def leave_one_out_cross_validation(
    points: PointSet,
    variogram_model: FittedVariogramModel,
    values: Optional[np.ndarray] = None,
    trend: Trend = "linear",
    regularization: float = 1e-10,
) -> CrossValidationResult:
    """Perform leave-one-out cross-validation for kriging.

    For each sample point, fit kriging on all other points and predict at
    that point.

    Args:
        points: PointSet with sample locations.
        variogram_model: Fitted variogram model.
        values: Sample values; defaults to ``points.values``.
        trend: 'linear' (universal) or 'constant' (ordinary) kriging.
        regularization: Regularization parameter.

    Returns:
        CrossValidationResult with metrics and predictions.
    """
    values = points.require_values() if values is None else np.asarray(values, float)
    n_samples = len(values)

    if n_samples < 5:
        raise DataValidationError(
            f"Need at least 5 samples for cross-validation, got {n_samples}"
        )

    predictions = np.zeros(n_samples)
    variance = np.zeros(n_samples)

    for i in range(n_samples):
        train_mask = np.ones(n_samples, dtype=bool)
        train_mask[i] = False

        kriging = UniversalKriging(
            variogram_model=variogram_model, trend=trend, regularization=regularization
        )
        kriging.fit(points.subset(train_mask), values[train_mask])
        result = kriging.predict(
            PredictionGrid.from_coordinates(points.coordinates[i : i + 1])
        )
        predictions[i] = result.predictions[0]
        variance[i] = result.variance[0]

    errors = values - predictions

    mae = float(np.mean(np.abs(errors)))
    rmse = float(np.sqrt(np.mean(errors**2)))
    mean_error = float(np.mean(errors))

    ss_res = np.sum(errors**2)
    ss_tot = np.sum((values - np.mean(values)) ** 2)
    r2 = float(1.0 - (ss_res / ss_tot)) if ss_tot > 0 else 0.0

    positive = variance > 0
    mean_squared_z = (
        float(np.mean(errors[positive] ** 2 / variance[positive]))
        if positive.any()
        else float("nan")
    )

    result = CrossValidationResult(
        predictions=predictions,
        variance=variance,
        errors=errors,
        mae=mae,
        rmse=rmse,
        r2=r2,
        mean_error=mean_error,
        mean_squared_z=mean_squared_z,
    )
    logger.info(f"Leave-one-out {result!r}")
    return result
