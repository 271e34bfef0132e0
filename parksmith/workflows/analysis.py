"""Staged spatial analysis of parking-search observations.

Layer 4: Workflows - Public entry points.

The run has independent stages: neighbourhood graph, global Moran's I,
global Geary's C, local Moran's I, empirical variogram, variogram fit,
kriging and (optionally) cross-validation. A failing stage is reported as
unavailable with its cause; stages that do not depend on it still run.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Union

import numpy as np
import pandas as pd

from parksmith.config import AnalysisConfig
from parksmith.objects.grid import PredictionGrid
from parksmith.objects.pointset import PointSet
from parksmith.objects.weights import SpatialWeights
from parksmith.primitives.autocorrelation import gearys_c, local_morans_i, morans_i
from parksmith.primitives.kriging import krige
from parksmith.primitives.kriging_cv import leave_one_out_cross_validation
from parksmith.primitives.neighbors import (
    neighbor_distances,
    sphere_of_influence_neighbors,
)
from parksmith.primitives.spatial_reference import is_geographic
from parksmith.primitives.variogram import (
    compute_empirical_variogram,
    fit_variogram_model,
)
from parksmith.primitives.weights import build_spatial_weights
from parksmith.tasks.pointsettask import Exclusion, build_point_set
from parksmith.utils.errors import ParkSmithError, raise_parameter_error

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class StageOutcome:
    """Outcome of one analysis stage.

    Attributes:
        stage: Stage name.
        available: True if the stage produced a result.
        result: Stage result, or None when unavailable.
        cause: Human-readable reason the stage is unavailable.
    """

    stage: str
    available: bool
    result: Any = None
    cause: Optional[str] = None

    def __repr__(self) -> str:
        """String representation."""
        if self.available:
            return f"StageOutcome({self.stage}: {self.result!r})"
        return f"StageOutcome({self.stage}: unavailable, {self.cause})"


@dataclass(frozen=True, eq=False)
class AnalysisReport:
    """Results of an analysis run.

    Attributes:
        points: Deduplicated PointSet the statistics were computed on.
        outcomes: Stage name -> StageOutcome, in run order.
        excluded: Observations excluded before the run.
        config: Configuration used.
    """

    points: PointSet
    outcomes: dict[str, StageOutcome]
    excluded: tuple[Exclusion, ...] = field(default_factory=tuple)
    config: AnalysisConfig = field(default_factory=AnalysisConfig)

    def __getitem__(self, stage: str) -> StageOutcome:
        return self.outcomes[stage]

    def result(self, stage: str) -> Any:
        """Result of a stage, or None if it is unavailable."""
        return self.outcomes[stage].result

    @property
    def unavailable(self) -> dict[str, str]:
        """Stage name -> cause for every unavailable stage."""
        return {
            name: outcome.cause
            for name, outcome in self.outcomes.items()
            if not outcome.available
        }

    def summary(self) -> pd.DataFrame:
        """One row per stage with availability and cause."""
        return pd.DataFrame(
            [
                {
                    "stage": outcome.stage,
                    "available": outcome.available,
                    "cause": outcome.cause,
                }
                for outcome in self.outcomes.values()
            ]
        )

    def __repr__(self) -> str:
        """String representation."""
        available = sum(outcome.available for outcome in self.outcomes.values())
        return (
            f"AnalysisReport(n_points={len(self.points)}, "
            f"stages={available}/{len(self.outcomes)} available, "
            f"excluded={len(self.excluded)})"
        )


def _run_stage(stage: str, func: Callable[[], Any]) -> StageOutcome:
    try:
        result = func()
    except ParkSmithError as exc:
        logger.warning(f"Stage '{stage}' unavailable: {exc}")
        return StageOutcome(stage=stage, available=False, cause=str(exc))
    logger.info(f"Stage '{stage}' complete")
    return StageOutcome(stage=stage, available=True, result=result)


def _skipped(stage: str, dependency: StageOutcome) -> StageOutcome:
    cause = f"requires stage '{dependency.stage}', which is unavailable"
    logger.warning(f"Stage '{stage}' skipped: {cause}")
    return StageOutcome(stage=stage, available=False, cause=cause)


def build_weights(points: PointSet, config: AnalysisConfig) -> SpatialWeights:
    """Sphere-of-influence graph and spatial weights for a PointSet."""
    graph = config.graph
    metric = graph.distance_metric
    if metric == "auto":
        metric = "geodesic" if is_geographic(points.crs) else "euclidean"
    elif metric not in ("euclidean", "geodesic"):
        raise_parameter_error(
            "distance_metric", metric, valid_values=["euclidean", "geodesic", "auto"]
        )

    neighbors = sphere_of_influence_neighbors(points.coordinates)
    distances = None
    distance_power = None
    if graph.inverse_distance:
        distances = neighbor_distances(points.coordinates, neighbors, metric=metric)
        distance_power = graph.distance_power
    return build_spatial_weights(
        neighbors,
        distances=distances,
        style=graph.style,
        distance_power=distance_power,
        zero_policy=graph.zero_policy,
    )


def run_analysis(
    data: Union[pd.DataFrame, PointSet],
    config: Optional[AnalysisConfig] = None,
    grid: Optional[PredictionGrid] = None,
) -> AnalysisReport:
    """Run the full spatial analysis.

    Args:
        data: Canonical observation table (see ``read_observations``) or a
            PointSet with values.
        config: Analysis configuration; defaults to ``AnalysisConfig()``.
        grid: Kriging targets. Defaults to a regular grid covering the points.

    Returns:
        AnalysisReport. Every stage is present; failed stages are marked
        unavailable with their cause.

    Example:
        >>> from parksmith.workflows import read_observations, run_analysis
        >>> report = run_analysis(read_observations("parking.csv"))
        >>> report.result("global_moran")
    """
    config = config or AnalysisConfig()
    excluded: tuple[Exclusion, ...] = ()
    if isinstance(data, PointSet):
        points = data.deduplicate()
    else:
        build = build_point_set(data)
        points, excluded = build.points, build.excluded
    values = points.require_values()
    logger.info(f"Running analysis on {len(points)} observations")

    auto = config.autocorrelation
    kriging = config.kriging
    outcomes: dict[str, StageOutcome] = {}

    outcomes["graph"] = _run_stage("graph", lambda: build_weights(points, config))
    graph = outcomes["graph"]
    if graph.available:
        weights = graph.result
        outcomes["global_moran"] = _run_stage(
            "global_moran",
            lambda: morans_i(values, weights, auto.assumption, auto.alternative),
        )
        outcomes["global_geary"] = _run_stage(
            "global_geary",
            lambda: gearys_c(values, weights, auto.assumption, auto.alternative),
        )
        outcomes["local_moran"] = _run_stage(
            "local_moran",
            lambda: local_morans_i(
                values, weights, conditional=auto.local_conditional,
                alternative=auto.alternative,
            ),
        )
    else:
        for stage in ("global_moran", "global_geary", "local_moran"):
            outcomes[stage] = _skipped(stage, graph)

    outcomes["variogram"] = _run_stage(
        "variogram",
        lambda: compute_empirical_variogram(
            points, values, n_lags=kriging.n_lags, cutoff=kriging.cutoff
        ),
    )
    if outcomes["variogram"].available:
        empirical = outcomes["variogram"].result
        outcomes["variogram_fit"] = _run_stage(
            "variogram_fit",
            lambda: fit_variogram_model(
                empirical, family=kriging.family, max_iterations=kriging.max_iterations
            ),
        )
    else:
        outcomes["variogram_fit"] = _skipped("variogram_fit", outcomes["variogram"])

    fit = outcomes["variogram_fit"]
    if fit.available:
        model = fit.result
        targets = grid
        if targets is None:
            targets = PredictionGrid.covering(
                points, nx=kriging.grid_nx, ny=kriging.grid_ny, padding=kriging.padding
            )
        outcomes["kriging"] = _run_stage(
            "kriging",
            lambda: krige(
                points, model, targets, values=values, trend=kriging.trend,
                regularization=kriging.regularization,
            ),
        )
        if config.run_cross_validation:
            outcomes["cross_validation"] = _run_stage(
                "cross_validation",
                lambda: leave_one_out_cross_validation(
                    points, model, values=values, trend=kriging.trend,
                    regularization=kriging.regularization,
                ),
            )
    else:
        outcomes["kriging"] = _skipped("kriging", fit)
        if config.run_cross_validation:
            outcomes["cross_validation"] = _skipped("cross_validation", fit)

    report = AnalysisReport(
        points=points, outcomes=outcomes, excluded=excluded, config=config
    )
    logger.info(f"Analysis finished: {report!r}")
    return report


def annotate_points(report: AnalysisReport) -> pd.DataFrame:
    """Point table joined with local Moran scores for marker rendering.

    Adds local_i, z_score, p_value, abs_z, quadrant and significant columns.
    When the local stage is unavailable these columns are NaN (quadrant and
    significant empty/False).
    """
    frame = report.points.to_frame()
    outcome = report.outcomes.get("local_moran")
    if outcome is not None and outcome.available:
        local = outcome.result
        scores = local.to_frame()[["local_i", "z_score", "p_value", "abs_z", "quadrant"]]
        frame = pd.concat([frame, scores], axis=1)
        frame["significant"] = local.significant(report.config.autocorrelation.alpha)
    else:
        for name in ("local_i", "z_score", "p_value", "abs_z"):
            frame[name] = np.nan
        frame["quadrant"] = ""
        frame["significant"] = False
    return frame
