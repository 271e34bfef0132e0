"""Spatial autocorrelation: Global Moran's I, Geary's C and Local Moran's I.

All statistics use analytic moments under either the normality or the
randomization assumption, with Z-scores and p-values from the standard
normal distribution.
"""

import logging
from dataclasses import dataclass
from typing import Literal

import numpy as np
import pandas as pd
from scipy import stats

from parksmith.objects.weights import SpatialWeights
from parksmith.utils.errors import (
    DataValidationError,
    DegenerateVariance,
    EmptyWeightsError,
    ParameterError,
)

logger = logging.getLogger(__name__)

Assumption = Literal["randomization", "normality"]
Alternative = Literal["two-sided", "greater", "less"]

_ASSUMPTIONS = ("randomization", "normality")
_ALTERNATIVES = ("two-sided", "greater", "less")


def _stars(p_value: float) -> str:
    if not np.isfinite(p_value):
        return ""
    return "***" if p_value < 0.001 else "**" if p_value < 0.01 else "*" if p_value < 0.05 else ""


@dataclass(frozen=True)
class AutocorrelationResult:
    """Result of a global spatial autocorrelation test.

    Attributes:
        statistic: Name of the statistic ('moran_i' or 'geary_c').
        value: Observed statistic.
        expected: Expected value under the null of spatial randomness.
        variance: Variance under the null.
        z_score: Standardized deviate, positive for positive autocorrelation.
            (value - expected) / sqrt(variance) for Moran's I and
            (expected - value) / sqrt(variance) for Geary's C.
        p_value: P-value for the chosen alternative.
        alternative: 'two-sided', 'greater' or 'less'.
        assumption: 'randomization' or 'normality'.
        n: Number of observations used (isolates excluded under zero policy).
    """

    statistic: str
    value: float
    expected: float
    variance: float
    z_score: float
    p_value: float
    alternative: str
    assumption: str
    n: int

    @property
    def direction(self) -> str:
        """'positive', 'negative' or 'none' (not significant at 5%)."""
        if not self.p_value < 0.05:
            return "none"
        # Geary's C falls below its expectation under positive autocorrelation.
        above = self.value > self.expected
        if self.statistic == "geary_c":
            above = not above
        return "positive" if above else "negative"

    def to_dict(self) -> dict:
        """Typed record for reporting collaborators."""
        return {
            "statistic": self.statistic,
            "value": self.value,
            "expected": self.expected,
            "variance": self.variance,
            "z_score": self.z_score,
            "p_value": self.p_value,
            "alternative": self.alternative,
            "assumption": self.assumption,
            "n": self.n,
        }

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"AutocorrelationResult({self.statistic}={self.value:.4f}, "
            f"E={self.expected:.4f}, z={self.z_score:.2f}, "
            f"p={self.p_value:.4f}{_stars(self.p_value)})"
        )


@dataclass(frozen=True, eq=False)
class LocalAutocorrelationResult:
    """Per-point Local Moran's I results.

    These are exploratory per-location diagnostics; no multiple-comparison
    correction is applied.

    Attributes:
        values: Local statistic I_i per point.
        expected: E[I_i] per point.
        variance: Var[I_i] per point.
        z_scores: Standardized deviates (NaN where the variance is zero).
        p_values: P-values for the chosen alternative (NaN where undefined).
        quadrants: 'HH', 'LL', 'HL' or 'LH' per point (value vs spatial lag);
            '' for isolated points.
        alternative: 'two-sided', 'greater' or 'less'.
        conditional: True if moments are conditional on the point's own value.
    """

    values: np.ndarray
    expected: np.ndarray
    variance: np.ndarray
    z_scores: np.ndarray
    p_values: np.ndarray
    quadrants: np.ndarray
    alternative: str
    conditional: bool

    def __len__(self) -> int:
        return len(self.values)

    def significant(self, alpha: float = 0.05) -> np.ndarray:
        """Boolean mask of points with p < alpha."""
        with np.errstate(invalid="ignore"):
            return np.nan_to_num(self.p_values, nan=1.0) < alpha

    def to_frame(self) -> pd.DataFrame:
        """Typed per-point records for reporting and rendering collaborators."""
        return pd.DataFrame(
            {
                "local_i": self.values,
                "expected": self.expected,
                "variance": self.variance,
                "z_score": self.z_scores,
                "p_value": self.p_values,
                "abs_z": np.abs(self.z_scores),
                "quadrant": self.quadrants,
            }
        )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"LocalAutocorrelationResult(n={len(self)}, "
            f"n_significant={int(self.significant().sum())}, "
            f"mean_I={np.nanmean(self.values):.4f})"
        )


def _check_options(assumption: str, alternative: str) -> None:
    if assumption not in _ASSUMPTIONS:
        raise ParameterError(
            f"assumption must be one of {_ASSUMPTIONS}, got {assumption!r}"
        )
    if alternative not in _ALTERNATIVES:
        raise ParameterError(
            f"alternative must be one of {_ALTERNATIVES}, got {alternative!r}"
        )


def _centered(values: np.ndarray, weights: SpatialWeights) -> np.ndarray:
    values = np.asarray(values, dtype=np.float64)
    if values.ndim != 1 or len(values) != weights.n_observations:
        raise DataValidationError(
            f"values length ({values.size}) must match weights n_observations "
            f"({weights.n_observations})"
        )
    if not np.all(np.isfinite(values)):
        raise DataValidationError("values must be finite")
    z = values - values.mean()
    if np.all(values == values[0]) or np.sum(z**2) == 0:
        raise DegenerateVariance(
            "All values are identical; spatial autocorrelation is undefined",
            details={"value": float(values[0])},
        )
    return z


def _effective_n(weights: SpatialWeights) -> int:
    n = weights.n_observations - weights.n_isolates
    if weights.n_isolates:
        logger.warning(
            f"zero_policy: {weights.n_isolates} isolate(s) removed from n "
            f"({weights.n_observations} -> {n})"
        )
    if n < 4:
        raise DataValidationError(
            f"Need at least 4 connected observations for analytic moments, got {n}"
        )
    return n


def _s0(weights: SpatialWeights) -> float:
    s0 = weights.s0
    if s0 == 0:
        raise EmptyWeightsError(
            "Sum of weights is zero - no spatial relationships",
            suggestion="Check the neighbour graph; it has no edges",
        )
    return s0


def _p_value(z: np.ndarray | float, alternative: str) -> np.ndarray | float:
    if alternative == "two-sided":
        return 2.0 * stats.norm.sf(np.abs(z))
    if alternative == "greater":
        return stats.norm.sf(z)
    return stats.norm.cdf(z)


def _z_score(value: float, expected: float, variance: float) -> float:
    if variance <= 0:
        return float("nan")
    return (value - expected) / np.sqrt(variance)


def morans_i(
    values: np.ndarray,
    weights: SpatialWeights,
    assumption: Assumption = "randomization",
    alternative: Alternative = "two-sided",
) -> AutocorrelationResult:
    """Compute Global Moran's I with an analytic significance test.

    Moran's I measures spatial autocorrelation:
    - I > E[I]: Positive autocorrelation (similar values cluster)
    - I < E[I]: Negative autocorrelation (dissimilar values are adjacent)
    - I ≈ E[I] = -1/(n-1): Consistent with spatial randomness

    Args:
        values: Array of values (n_observations,).
        weights: SpatialWeights object.
        assumption: 'randomization' (kurtosis-adjusted) or 'normality'.
        alternative: 'two-sided', 'greater' or 'less'.

    Returns:
        AutocorrelationResult.

    Raises:
        DegenerateVariance: If all values are identical.
        EmptyWeightsError: If the weights sum to zero.

    Example:
        >>> from parksmith.primitives.neighbors import sphere_of_influence_neighbors
        >>> from parksmith.primitives.weights import build_spatial_weights
        >>> w = build_spatial_weights(sphere_of_influence_neighbors(coords))
        >>> result = morans_i(values, w)
        >>> print(f"Moran's I: {result.value:.4f}, p-value: {result.p_value:.4f}")
    """
    _check_options(assumption, alternative)
    z = _centered(values, weights)
    s0 = _s0(weights)
    n = _effective_n(weights)

    w = weights.to_sparse()
    zz = float(np.sum(z**2))
    I = (n / s0) * float(z @ (w @ z)) / zz

    expected = -1.0 / (n - 1)
    s1, s2 = weights.s1, weights.s2
    if assumption == "normality":
        variance = (n**2 * s1 - n * s2 + 3 * s0**2) / (s0**2 * (n**2 - 1))
    else:
        kurtosis = weights.n_observations * float(np.sum(z**4)) / zz**2
        variance = (
            n * ((n**2 - 3 * n + 3) * s1 - n * s2 + 3 * s0**2)
            - kurtosis * ((n**2 - n) * s1 - 2 * n * s2 + 6 * s0**2)
        ) / ((n - 1) * (n - 2) * (n - 3) * s0**2)
    variance -= expected**2

    z_score = _z_score(I, expected, variance)
    result = AutocorrelationResult(
        statistic="moran_i",
        value=float(I),
        expected=expected,
        variance=float(variance),
        z_score=float(z_score),
        p_value=float(_p_value(z_score, alternative)),
        alternative=alternative,
        assumption=assumption,
        n=n,
    )
    logger.info(f"Global Moran's I: {result!r}")
    return result


def gearys_c(
    values: np.ndarray,
    weights: SpatialWeights,
    assumption: Assumption = "randomization",
    alternative: Alternative = "two-sided",
) -> AutocorrelationResult:
    """Compute Global Geary's C with an analytic significance test.

    Geary's C is more sensitive to local differences than Moran's I:
    - C < 1: Positive autocorrelation (similar values cluster)
    - C > 1: Negative autocorrelation (dissimilar values are adjacent)
    - C ≈ 1: No spatial autocorrelation

    Args:
        values: Array of values (n_observations,).
        weights: SpatialWeights object.
        assumption: 'randomization' (kurtosis-adjusted) or 'normality'.
        alternative: 'two-sided', 'greater' or 'less'. 'greater' tests for
            positive autocorrelation, i.e. C below 1.

    Returns:
        AutocorrelationResult.
    """
    _check_options(assumption, alternative)
    x = np.asarray(values, dtype=np.float64)
    z = _centered(x, weights)
    s0 = _s0(weights)
    n = _effective_n(weights)

    w = weights.to_sparse().tocoo()
    squared_diffs = float(np.sum(w.data * (x[w.row] - x[w.col]) ** 2))
    zz = float(np.sum(z**2))
    C = ((n - 1) / (2 * s0)) * squared_diffs / zz

    expected = 1.0
    s1, s2 = weights.s1, weights.s2
    if assumption == "normality":
        variance = ((2 * s1 + s2) * (n - 1) - 4 * s0**2) / (2 * (n + 1) * s0**2)
    else:
        kurtosis = weights.n_observations * float(np.sum(z**4)) / zz**2
        variance = (
            (n - 1) * s1 * (n**2 - 3 * n + 3 - (n - 1) * kurtosis)
            - 0.25 * (n - 1) * s2 * (n**2 + 3 * n - 6 - (n**2 - n + 2) * kurtosis)
            + s0**2 * (n**2 - 3 - (n - 1) ** 2 * kurtosis)
        ) / (n * (n - 2) * (n - 3) * s0**2)

    # Positive autocorrelation lowers C, so the deviate is taken as E - C.
    z_score = _z_score(expected, C, variance)
    result = AutocorrelationResult(
        statistic="geary_c",
        value=float(C),
        expected=expected,
        variance=float(variance),
        z_score=float(z_score),
        p_value=float(_p_value(z_score, alternative)),
        alternative=alternative,
        assumption=assumption,
        n=n,
    )
    logger.info(f"Global Geary's C: {result!r}")
    return result


def local_morans_i(
    values: np.ndarray,
    weights: SpatialWeights,
    conditional: bool = False,
    alternative: Alternative = "two-sided",
) -> LocalAutocorrelationResult:
    """Compute Local Moran's I for every observation.

    I_i = (z_i / m2) * sum_j w_ij z_j with m2 = sum(z^2) / n. Moments follow
    the randomization assumption and depend on the point's own weight row
    (row sum W_i and sum of squared weights); with ``conditional=True`` they
    are also conditioned on the point's own value z_i.

    Args:
        values: Array of values (n_observations,).
        weights: SpatialWeights object.
        conditional: Use moments conditional on z_i.
        alternative: 'two-sided', 'greater' or 'less'.

    Returns:
        LocalAutocorrelationResult with one entry per observation.
    """
    _check_options("randomization", alternative)
    z = _centered(values, weights)
    _s0(weights)
    n = weights.n_observations
    if n < 3:
        raise DataValidationError(f"Need at least 3 observations, got {n}")

    w = weights.to_sparse()
    lag = w @ z
    m2 = float(np.sum(z**2)) / n
    local_i = (z / m2) * lag

    row_sums = np.asarray(w.sum(axis=1)).ravel()
    row_sq_sums = np.asarray(w.power(2).sum(axis=1)).ravel()

    if conditional:
        expected = -(z**2 * row_sums) / ((n - 1) * m2)
        variance = (
            (z / m2) ** 2
            * (n / (n - 2))
            * (row_sq_sums - row_sums**2 / (n - 1))
            * (m2 - z**2 / (n - 1))
        )
    else:
        b2 = (float(np.sum(z**4)) / n) / m2**2
        expected = -row_sums / (n - 1)
        variance = (
            row_sq_sums * (n - b2) / (n - 1)
            + (row_sums**2 - row_sq_sums) * (2 * b2 - n) / ((n - 1) * (n - 2))
            - row_sums**2 / (n - 1) ** 2
        )

    with np.errstate(divide="ignore", invalid="ignore"):
        z_scores = np.where(
            variance > 0, (local_i - expected) / np.sqrt(np.abs(variance)), np.nan
        )
    p_values = np.where(np.isfinite(z_scores), _p_value(z_scores, alternative), np.nan)

    quadrants = np.where(
        z >= 0, np.where(lag >= 0, "HH", "HL"), np.where(lag >= 0, "LH", "LL")
    ).astype(object)
    quadrants[row_sums == 0] = ""

    result = LocalAutocorrelationResult(
        values=local_i,
        expected=expected,
        variance=variance,
        z_scores=z_scores,
        p_values=p_values,
        quadrants=quadrants,
        alternative=alternative,
        conditional=conditional,
    )
    logger.info(f"Local Moran's I: {result!r}")
    return result
