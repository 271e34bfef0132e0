"""Layer 4: Workflows - Public entry points.

Workflows provide the public entry points users call. Workflows can import
I/O libraries and plotting libraries. Put file loading and saving here.
Put plotting here.
"""

from parksmith.workflows.analysis import (
    AnalysisReport,
    StageOutcome,
    annotate_points,
    build_weights,
    run_analysis,
)
from parksmith.workflows.io import normalize_observations, read_observations

# Plotting functions raise DependencyError when matplotlib is missing
from parksmith.workflows.plotting import (
    MATPLOTLIB_AVAILABLE,
    plot_distributions,
    plot_kriging_surface,
    plot_local_moran,
    plot_variogram,
)

__all__ = [
    "AnalysisReport",
    "MATPLOTLIB_AVAILABLE",
    "StageOutcome",
    "annotate_points",
    "build_weights",
    "normalize_observations",
    "plot_distributions",
    "plot_kriging_surface",
    "plot_local_moran",
    "plot_variogram",
    "read_observations",
    "run_analysis",
]
