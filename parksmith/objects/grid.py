"""Prediction grid for spatial interpolation."""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from parksmith.objects.pointset import PointSet
from parksmith.utils.errors import DataValidationError


@dataclass(frozen=True, eq=False)
class PredictionGrid:
    """Target coordinates for interpolation.

    Attributes:
        coordinates: Target coordinates (n_targets, 2) as (x, y).
        shape: (n_rows, n_cols) for regular grids, None for arbitrary targets.
            Regular grids are stored row-major with y increasing by row.
    """

    coordinates: np.ndarray
    shape: Optional[tuple[int, int]] = None

    def __post_init__(self) -> None:
        """Validate PredictionGrid parameters."""
        coordinates = np.array(self.coordinates, dtype=np.float64)
        if coordinates.ndim != 2 or coordinates.shape[1] != 2:
            raise DataValidationError(
                f"coordinates must have shape (n_targets, 2), got {coordinates.shape}"
            )
        if len(coordinates) == 0:
            raise DataValidationError("PredictionGrid needs at least one target")
        if not np.all(np.isfinite(coordinates)):
            raise DataValidationError("coordinates must be finite")
        if self.shape is not None and self.shape[0] * self.shape[1] != len(coordinates):
            raise DataValidationError(
                f"shape {self.shape} does not match {len(coordinates)} targets"
            )
        coordinates.setflags(write=False)
        object.__setattr__(self, "coordinates", coordinates)

    @classmethod
    def from_coordinates(cls, coordinates: np.ndarray) -> "PredictionGrid":
        """Arbitrary set of target coordinates."""
        return cls(coordinates=np.asarray(coordinates, dtype=np.float64).reshape(-1, 2))

    @classmethod
    def regular(
        cls, bounds: tuple[float, float, float, float], nx: int, ny: int
    ) -> "PredictionGrid":
        """Regular nx x ny grid over (min_x, min_y, max_x, max_y)."""
        if nx < 1 or ny < 1:
            raise DataValidationError(f"nx and ny must be positive, got {nx}, {ny}")
        min_x, min_y, max_x, max_y = bounds
        if max_x < min_x or max_y < min_y:
            raise DataValidationError(f"Invalid bounds: {bounds}")
        xs = np.linspace(min_x, max_x, nx)
        ys = np.linspace(min_y, max_y, ny)
        grid_x, grid_y = np.meshgrid(xs, ys)
        coords = np.column_stack([grid_x.ravel(), grid_y.ravel()])
        return cls(coordinates=coords, shape=(ny, nx))

    @classmethod
    def covering(
        cls, points: PointSet, nx: int = 50, ny: int = 50, padding: float = 0.0
    ) -> "PredictionGrid":
        """Regular grid over the bounding box of points, padded by a fraction."""
        min_x, min_y, max_x, max_y = points.bounds
        pad_x = (max_x - min_x) * padding
        pad_y = (max_y - min_y) * padding
        return cls.regular(
            (min_x - pad_x, min_y - pad_y, max_x + pad_x, max_y + pad_y), nx, ny
        )

    def __len__(self) -> int:
        return self.coordinates.shape[0]

    @property
    def is_regular(self) -> bool:
        """True if the grid has a raster shape."""
        return self.shape is not None

    @property
    def axes(self) -> tuple[np.ndarray, np.ndarray]:
        """Unique x and y coordinates of a regular grid."""
        if self.shape is None:
            raise DataValidationError("axes are only defined for regular grids")
        n_rows, n_cols = self.shape
        xs = self.coordinates[:n_cols, 0]
        ys = self.coordinates[::n_cols, 1]
        return xs, ys

    def __repr__(self) -> str:
        """String representation."""
        return f"PredictionGrid(n_targets={len(self)}, shape={self.shape})"
