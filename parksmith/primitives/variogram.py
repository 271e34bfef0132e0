"""Variogram analysis primitives.

Empirical semivariogram estimation, parametric model fitting and model
evaluation. Model families form a closed set (``VariogramFamily``) with a
fixed dispatch table.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

import numpy as np
from numba import njit
from scipy.optimize import curve_fit, nnls

from parksmith.objects.pointset import PointSet
from parksmith.utils.errors import DataValidationError, ParameterError, VariogramFitError

logger = logging.getLogger(__name__)

# Fraction of the sill that defines the practical range
SILL_FRACTION = 0.95


class VariogramFamily(str, Enum):
    """Supported parametric variogram families."""

    EXPONENTIAL = "exponential"
    SPHERICAL = "spherical"
    GAUSSIAN = "gaussian"


@dataclass(frozen=True)
class FittedVariogramModel:
    """Fitted variogram model parameters.

    Attributes:
        family: Model family.
        nugget: Nugget effect (small-scale variance).
        partial_sill: Partial sill (structured variance).
        range_param: Range parameter. For the exponential family the
            practical range is about 3 * range_param.
        r_squared: Goodness of fit against the empirical semivariances.
        sill_within_cutoff: False when the model does not reach 95% of its
            sill within the variogram cutoff. The range is then fixed at the
            cutoff and only nugget and partial sill are fitted.
    """

    family: VariogramFamily
    nugget: float
    partial_sill: float
    range_param: float
    r_squared: float = float("nan")
    sill_within_cutoff: bool = True

    def __post_init__(self) -> None:
        """Validate FittedVariogramModel parameters."""
        object.__setattr__(self, "family", VariogramFamily(self.family))
        if not self.nugget >= 0:
            raise ValueError(f"nugget must be non-negative, got {self.nugget}")
        if not self.partial_sill >= 0:
            raise ValueError(
                f"partial_sill must be non-negative, got {self.partial_sill}"
            )
        if not self.range_param > 0:
            raise ValueError(f"range_param must be positive, got {self.range_param}")

    @property
    def sill(self) -> float:
        """Total sill (nugget + partial sill)."""
        return self.nugget + self.partial_sill

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"FittedVariogramModel(family={self.family.value}, "
            f"nugget={self.nugget:.4f}, psill={self.partial_sill:.4f}, "
            f"range={self.range_param:.4f}, r²={self.r_squared:.4f})"
        )


@dataclass(frozen=True, eq=False)
class EmpiricalVariogram:
    """Binned empirical semivariogram.

    Attributes:
        lags: Mean pair distance of each non-empty bin.
        semivariance: Semivariance estimate of each non-empty bin.
        n_pairs: Number of point pairs in each non-empty bin.
        bin_edges: Edges of all lag bins (n_lags + 1).
        cutoff: Largest distance considered.
    """

    lags: np.ndarray
    semivariance: np.ndarray
    n_pairs: np.ndarray
    bin_edges: np.ndarray
    cutoff: float

    def __len__(self) -> int:
        return len(self.lags)

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"EmpiricalVariogram(n_bins={len(self)}, cutoff={self.cutoff:.4f}, "
            f"n_pairs={int(self.n_pairs.sum())})"
        )


def _exponential_model(
    h: np.ndarray, nugget: float, partial_sill: float, range_param: float
) -> np.ndarray:
    """Exponential variogram model."""
    return nugget + partial_sill * (1 - np.exp(-h / range_param))


def _spherical_model(
    h: np.ndarray, nugget: float, partial_sill: float, range_param: float
) -> np.ndarray:
    """Spherical variogram model."""
    h_scaled = np.minimum(h / range_param, 1.0)
    return nugget + partial_sill * (1.5 * h_scaled - 0.5 * h_scaled**3)


def _gaussian_model(
    h: np.ndarray, nugget: float, partial_sill: float, range_param: float
) -> np.ndarray:
    """Gaussian variogram model."""
    return nugget + partial_sill * (1 - np.exp(-(h**2) / range_param**2))


VARIOGRAM_MODELS: dict[VariogramFamily, Callable[..., np.ndarray]] = {
    VariogramFamily.EXPONENTIAL: _exponential_model,
    VariogramFamily.SPHERICAL: _spherical_model,
    VariogramFamily.GAUSSIAN: _gaussian_model,
}


@njit(cache=True)
def _accumulate_lag_bins(
    coordinates: np.ndarray,
    values: np.ndarray,
    lag_width: float,
    cutoff: float,
    n_lags: int,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Sum half squared differences and distances of point pairs per lag bin."""
    n_points = coordinates.shape[0]
    semivariance_sum = np.zeros(n_lags)
    distance_sum = np.zeros(n_lags)
    n_pairs = np.zeros(n_lags, dtype=np.int64)

    for i in range(n_points - 1):
        for j in range(i + 1, n_points):
            dx = coordinates[i, 0] - coordinates[j, 0]
            dy = coordinates[i, 1] - coordinates[j, 1]
            dist = np.sqrt(dx * dx + dy * dy)
            if dist <= 0.0 or dist > cutoff:
                continue
            k = int(np.ceil(dist / lag_width)) - 1
            if k >= n_lags:
                k = n_lags - 1
            diff = values[i] - values[j]
            semivariance_sum[k] += 0.5 * diff * diff
            distance_sum[k] += dist
            n_pairs[k] += 1

    return semivariance_sum, distance_sum, n_pairs


def compute_empirical_variogram(
    points: PointSet,
    values: Optional[np.ndarray] = None,
    n_lags: int = 15,
    cutoff: Optional[float] = None,
) -> EmpiricalVariogram:
    """Compute the empirical semivariogram of point data.

    Pair distances in (0, cutoff] are partitioned into ``n_lags`` equal-width
    bins; each bin's semivariance is sum((x_i - x_j)^2) / (2 N_h).

    Args:
        points: PointSet with sample locations (no duplicated coordinates).
        values: Sample values; defaults to ``points.values``.
        n_lags: Number of lag bins.
        cutoff: Maximum pair distance (default: one third of the bounding
            box diagonal).

    Returns:
        EmpiricalVariogram with empty bins removed.

    Raises:
        DataValidationError: If inputs are invalid or contain duplicates.
    """
    values = points.require_values() if values is None else np.asarray(values, float)
    coordinates = points.coordinates

    if len(coordinates) != len(values):
        raise DataValidationError(
            f"Coordinates ({len(coordinates)}) and values ({len(values)}) "
            f"must have same length"
        )
    if len(values) < 5:
        raise DataValidationError(
            f"Need at least 5 samples for variogram, got {len(values)}"
        )
    if points.has_duplicates:
        raise DataValidationError(
            "Coincident points bias the smallest lag bin",
            suggestion="Call PointSet.deduplicate() first",
        )
    if n_lags < 1:
        raise ParameterError(f"n_lags must be positive, got {n_lags}")

    if cutoff is None:
        min_x, min_y, max_x, max_y = points.bounds
        cutoff = float(np.hypot(max_x - min_x, max_y - min_y)) / 3.0
    if not cutoff > 0:
        raise ParameterError(f"cutoff must be positive, got {cutoff}")

    lag_width = cutoff / n_lags
    semivariance_sum, distance_sum, n_pairs = _accumulate_lag_bins(
        np.ascontiguousarray(coordinates, dtype=np.float64),
        np.ascontiguousarray(values, dtype=np.float64),
        lag_width,
        cutoff,
        n_lags,
    )

    filled = n_pairs > 0
    variogram = EmpiricalVariogram(
        lags=distance_sum[filled] / n_pairs[filled],
        semivariance=semivariance_sum[filled] / n_pairs[filled],
        n_pairs=n_pairs[filled],
        bin_edges=np.linspace(0.0, cutoff, n_lags + 1),
        cutoff=cutoff,
    )
    logger.info(f"Computed {variogram!r}")
    return variogram


def fit_variogram_model(
    variogram: EmpiricalVariogram,
    family: VariogramFamily = VariogramFamily.EXPONENTIAL,
    initial: Optional[dict[str, float]] = None,
    max_iterations: int = 10000,
) -> FittedVariogramModel:
    """Fit a parametric variogram model by weighted nonlinear least squares.

    Each bin's squared error is weighted by its pair count. When the fitted
    model stays below SILL_FRACTION of its sill at the cutoff, partial sill
    and range cannot be told apart; the range is then fixed at the cutoff and
    nugget and partial sill are refitted with non-negative least squares.

    Args:
        variogram: Empirical variogram.
        family: Model family.
        initial: Optional initial guesses with keys 'nugget', 'partial_sill'
            and 'range'.
        max_iterations: Cap on function evaluations.

    Returns:
        FittedVariogramModel.

    Raises:
        VariogramFitError: If the fit does not converge or yields invalid
            parameters.
    """
    family = VariogramFamily(family)
    lags = variogram.lags
    semivariance = variogram.semivariance

    if len(lags) < 3:
        raise VariogramFitError(
            f"Need at least 3 non-empty lag bins, got {len(lags)}",
            suggestion="Increase the cutoff or the number of points",
        )

    initial = initial or {}
    nugget_guess = initial.get("nugget", float(semivariance[0]) / 2)
    sill_guess = max(float(np.max(semivariance)), 1e-12)
    psill_guess = initial.get("partial_sill", max(sill_guess - nugget_guess, 1e-12))
    range_guess = initial.get("range", float(lags[-1]) / 3.0)

    model_func = VARIOGRAM_MODELS[family]
    try:
        # the nugget cannot exceed the largest observed semivariance
        popt, _ = curve_fit(
            model_func,
            lags,
            semivariance,
            p0=[
                min(max(nugget_guess, 0.0), sill_guess),
                max(psill_guess, 1e-12),
                max(range_guess, 1e-12),
            ],
            sigma=1.0 / np.sqrt(variogram.n_pairs),
            bounds=([0.0, 0.0, 1e-12], [sill_guess, np.inf, np.inf]),
            maxfev=max_iterations,
        )
    except (RuntimeError, ValueError) as exc:
        raise VariogramFitError(
            f"{family.value} variogram fit did not converge: {exc}",
            details={"lags": lags.tolist(), "semivariance": semivariance.tolist()},
        ) from exc

    nugget, partial_sill, range_param = (float(v) for v in popt)
    if not np.all(np.isfinite(popt)) or range_param <= 0:
        raise VariogramFitError(
            f"{family.value} variogram fit gave invalid parameters: {popt.tolist()}"
        )

    sill_within_cutoff = _reaches_sill(
        model_func, partial_sill, range_param, variogram.cutoff
    )
    if not sill_within_cutoff:
        # Below the sill only the ratio of partial sill to range is identified
        range_param = float(variogram.cutoff)
        nugget, partial_sill = _fit_variances(model_func, variogram, range_param)
        logger.warning(
            f"{family.value} model does not reach its sill within the cutoff "
            f"{variogram.cutoff:.4g}; range fixed at the cutoff"
        )

    predicted = model_func(lags, nugget, partial_sill, range_param)
    ss_res = np.sum((semivariance - predicted) ** 2)
    ss_tot = np.sum((semivariance - np.mean(semivariance)) ** 2)
    r_squared = 1 - (ss_res / ss_tot) if ss_tot > 0 else 0.0

    model = FittedVariogramModel(
        family=family,
        nugget=nugget,
        partial_sill=partial_sill,
        range_param=range_param,
        r_squared=float(r_squared),
        sill_within_cutoff=sill_within_cutoff,
    )
    logger.info(f"Fitted {model!r}")
    return model


def _reaches_sill(
    model_func: Callable[..., np.ndarray],
    partial_sill: float,
    range_param: float,
    cutoff: float,
) -> bool:
    """Whether the structured part reaches SILL_FRACTION of the sill by the cutoff."""
    at_cutoff = model_func(np.array([cutoff]), 0.0, partial_sill, range_param)[0]
    return bool(at_cutoff >= SILL_FRACTION * partial_sill)


def _fit_variances(
    model_func: Callable[..., np.ndarray],
    variogram: EmpiricalVariogram,
    range_param: float,
) -> tuple[float, float]:
    """Nugget and partial sill for a fixed range by non-negative weighted least squares."""
    weights = np.sqrt(variogram.n_pairs)
    design = np.column_stack(
        [np.ones(len(variogram)), model_func(variogram.lags, 0.0, 1.0, range_param)]
    )
    (nugget, partial_sill), _ = nnls(
        design * weights[:, None], variogram.semivariance * weights
    )
    return float(nugget), float(partial_sill)


def variogram_function(model: FittedVariogramModel, distances: np.ndarray) -> np.ndarray:
    """Semivariance of a fitted model at given distances; zero at distance 0."""
    distances = np.asarray(distances, dtype=np.float64)
    gamma = VARIOGRAM_MODELS[model.family](
        distances, model.nugget, model.partial_sill, model.range_param
    )
    return np.where(distances > 0, gamma, 0.0)


def covariance_function(model: FittedVariogramModel, distances: np.ndarray) -> np.ndarray:
    """Covariance C(h) = sill - gamma(h) of a fitted model."""
    return model.sill - variogram_function(model, distances)
