"""Plotting for parking-search analyses.

Layer 4: Workflows - Public entry points with plotting.
matplotlib is optional; install with ``pip install parksmith[viz]``.
"""

import logging
from typing import TYPE_CHECKING, Optional, Sequence

import numpy as np
import pandas as pd

from parksmith.primitives.kriging import KrigingResult
from parksmith.primitives.variogram import (
    EmpiricalVariogram,
    FittedVariogramModel,
    variogram_function,
)
from parksmith.utils.errors import raise_dependency_error
from parksmith.utils.optional_imports import optional_import

if TYPE_CHECKING:
    from matplotlib.figure import Figure

logger = logging.getLogger(__name__)

MATPLOTLIB_AVAILABLE, _mpl = optional_import("matplotlib", ["pyplot"])
plt = _mpl["pyplot"]

QUADRANT_COLORS = {
    "HH": "#d7191c",
    "LL": "#2c7bb6",
    "HL": "#fdae61",
    "LH": "#abd9e9",
    "": "#bdbdbd",
}


def _require_matplotlib() -> None:
    if not MATPLOTLIB_AVAILABLE:
        raise_dependency_error("matplotlib", optional_group="viz")


def plot_variogram(
    empirical: EmpiricalVariogram,
    model: Optional[FittedVariogramModel] = None,
    title: str = "Semivariogram",
    figsize: tuple[float, float] = (8, 5),
) -> "Figure":
    """Plot the empirical semivariogram and, optionally, the fitted model.

    Marker size scales with the number of pairs in each bin.

    Raises:
        DependencyError: If matplotlib is not installed.
    """
    _require_matplotlib()

    fig, ax = plt.subplots(figsize=figsize)
    sizes = 20 + 80 * empirical.n_pairs / max(empirical.n_pairs.max(), 1)
    ax.scatter(
        empirical.lags, empirical.semivariance, s=sizes, color="black",
        label="Empirical", zorder=3,
    )
    if model is not None:
        distances = np.linspace(0, empirical.cutoff, 200)
        ax.plot(
            distances, variogram_function(model, distances), color="C1",
            label=f"{model.family.value.capitalize()} model",
        )
        ax.axhline(model.sill, color="gray", linestyle="--", linewidth=0.8, label="Sill")
    ax.set_xlabel("Lag distance")
    ax.set_ylabel("Semivariance")
    ax.set_xlim(0, empirical.cutoff)
    ax.set_ylim(bottom=0)
    ax.set_title(title)
    ax.legend()
    fig.tight_layout()
    return fig


def plot_kriging_surface(
    result: KrigingResult,
    points: Optional[pd.DataFrame] = None,
    show_variance: bool = False,
    title: Optional[str] = None,
    cmap: str = "viridis",
    figsize: tuple[float, float] = (8, 6),
) -> "Figure":
    """Plot a kriged surface on its regular grid.

    Args:
        result: Kriging result on a regular PredictionGrid.
        points: Optional table with longitude/latitude columns to overlay.
        show_variance: Plot the kriging variance instead of predictions.
        title: Plot title.
        cmap: Colormap name.
        figsize: Figure size in inches.

    Raises:
        DependencyError: If matplotlib is not installed.
        DataValidationError: If the grid is not regular.
    """
    _require_matplotlib()

    predictions, variance = result.as_raster()
    surface = variance if show_variance else predictions
    xs, ys = result.grid.axes

    fig, ax = plt.subplots(figsize=figsize)
    mesh = ax.pcolormesh(xs, ys, surface, shading="auto", cmap=cmap)
    fig.colorbar(mesh, ax=ax, label="Kriging variance" if show_variance else "Prediction")
    if points is not None:
        ax.scatter(
            points["longitude"], points["latitude"], s=8, color="white",
            edgecolor="black", linewidth=0.4,
        )
    ax.set_xlabel("Longitude")
    ax.set_ylabel("Latitude")
    ax.set_title(title or ("Kriging variance" if show_variance else "Kriging prediction"))
    fig.tight_layout()
    return fig


def plot_local_moran(
    annotated: pd.DataFrame,
    alpha: float = 0.05,
    title: str = "Local Moran's I clusters",
    figsize: tuple[float, float] = (8, 6),
) -> "Figure":
    """Map local Moran quadrants, sized by |Z|.

    Args:
        annotated: Output of ``annotate_points``.
        alpha: Points with p >= alpha are drawn grey.

    Raises:
        DependencyError: If matplotlib is not installed.
    """
    _require_matplotlib()

    significant = annotated["p_value"].fillna(1.0) < alpha
    quadrants = annotated["quadrant"].where(significant, "")
    sizes = 10 + 20 * annotated["abs_z"].fillna(0.0)

    fig, ax = plt.subplots(figsize=figsize)
    for quadrant, color in QUADRANT_COLORS.items():
        mask = quadrants == quadrant
        if not mask.any():
            continue
        ax.scatter(
            annotated.loc[mask, "longitude"], annotated.loc[mask, "latitude"],
            s=sizes[mask], color=color, alpha=0.8,
            label=quadrant or "Not significant",
        )
    ax.set_xlabel("Longitude")
    ax.set_ylabel("Latitude")
    ax.set_title(title)
    ax.legend()
    fig.tight_layout()
    return fig


def plot_distributions(
    frame: pd.DataFrame,
    columns: Sequence[str] = ("avg_time_to_park", "total_searching"),
    bins: int = 30,
    figsize: tuple[float, float] = (10, 4),
) -> "Figure":
    """Histograms of observation columns.

    Raises:
        DependencyError: If matplotlib is not installed.
    """
    _require_matplotlib()

    columns = [name for name in columns if name in frame.columns]
    fig, axes = plt.subplots(1, max(len(columns), 1), figsize=figsize, squeeze=False)
    for ax, name in zip(axes[0], columns):
        ax.hist(frame[name].dropna(), bins=bins, color="C0", edgecolor="white")
        ax.set_title(name)
        ax.set_ylabel("Count")
    if not columns:
        logger.warning("None of the requested columns are present")
    fig.tight_layout()
    return fig
