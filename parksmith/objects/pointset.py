"""Immutable point collection with target and auxiliary values."""

from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

import numpy as np
import pandas as pd

from parksmith.objects.observation import Observation, Ring
from parksmith.utils.errors import DataValidationError


def _frozen(array: np.ndarray) -> np.ndarray:
    array = np.array(array, copy=True)
    array.setflags(write=False)
    return array


@dataclass(frozen=True, eq=False)
class PointSet:
    """Ordered collection of point observations sharing one CRS.

    Coordinates are stored as (x, y), i.e. (longitude, latitude) for
    geographic data. All arrays are copied and made read-only.

    Attributes:
        coordinates: Point coordinates (n_points, 2).
        values: Optional target values (n_points,).
        counts: Optional auxiliary counts (n_points,).
        identifiers: Optional identifiers (n_points,).
        boundaries: Optional boundary rings, one per point (None where absent).
        crs: Coordinate reference system of the coordinates.
    """

    coordinates: np.ndarray
    values: Optional[np.ndarray] = None
    counts: Optional[np.ndarray] = None
    identifiers: Optional[np.ndarray] = None
    boundaries: Optional[tuple[Optional[Ring], ...]] = field(default=None, repr=False)
    crs: str = "EPSG:4326"

    def __post_init__(self) -> None:
        """Validate PointSet parameters."""
        coordinates = np.asarray(self.coordinates, dtype=np.float64)
        if coordinates.ndim != 2 or coordinates.shape[1] != 2:
            raise DataValidationError(
                f"coordinates must have shape (n_points, 2), got {coordinates.shape}"
            )
        if not np.all(np.isfinite(coordinates)):
            raise DataValidationError("coordinates must be finite")
        n = coordinates.shape[0]
        object.__setattr__(self, "coordinates", _frozen(coordinates))

        for name, dtype in (("values", np.float64), ("counts", np.int64)):
            array = getattr(self, name)
            if array is None:
                continue
            array = np.asarray(array, dtype=dtype)
            if array.shape != (n,):
                raise DataValidationError(
                    f"{name} must have shape ({n},), got {array.shape}"
                )
            object.__setattr__(self, name, _frozen(array))

        if self.identifiers is not None:
            identifiers = np.asarray(self.identifiers, dtype=object)
            if identifiers.shape != (n,):
                raise DataValidationError(
                    f"identifiers must have shape ({n},), got {identifiers.shape}"
                )
            object.__setattr__(self, "identifiers", _frozen(identifiers))

        if self.boundaries is not None:
            boundaries = tuple(self.boundaries)
            if len(boundaries) != n:
                raise DataValidationError(
                    f"boundaries must have {n} entries, got {len(boundaries)}"
                )
            object.__setattr__(self, "boundaries", boundaries)

    @classmethod
    def from_observations(
        cls, observations: Iterable[Observation], crs: str = "EPSG:4326"
    ) -> "PointSet":
        """Create a PointSet from Observation records, preserving order."""
        observations = list(observations)
        if not observations:
            raise DataValidationError("Cannot build a PointSet from no observations")
        return cls(
            coordinates=np.array([obs.location for obs in observations]),
            values=np.array([obs.avg_time_to_park for obs in observations]),
            counts=np.array([obs.total_searching for obs in observations]),
            identifiers=np.array([obs.identifier for obs in observations], dtype=object),
            boundaries=tuple(obs.boundary for obs in observations),
            crs=crs,
        )

    def __len__(self) -> int:
        return self.coordinates.shape[0]

    @property
    def n_points(self) -> int:
        """Number of points."""
        return len(self)

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        """Bounding box (min_x, min_y, max_x, max_y)."""
        min_x, min_y = self.coordinates.min(axis=0)
        max_x, max_y = self.coordinates.max(axis=0)
        return (float(min_x), float(min_y), float(max_x), float(max_y))

    def require_values(self) -> np.ndarray:
        """Return the target values, raising if the set carries none."""
        if self.values is None:
            raise DataValidationError("PointSet has no target values")
        return self.values

    def duplicate_mask(self) -> np.ndarray:
        """Boolean mask marking points whose coordinates repeat an earlier point."""
        _, first_index = np.unique(self.coordinates, axis=0, return_index=True)
        mask = np.ones(len(self), dtype=bool)
        mask[first_index] = False
        return mask

    @property
    def has_duplicates(self) -> bool:
        """True if two points share identical coordinates."""
        return bool(self.duplicate_mask().any())

    def subset(self, selection: Sequence[int] | np.ndarray) -> "PointSet":
        """Return a new PointSet restricted to a mask or index array."""
        selection = np.asarray(selection)
        if selection.dtype == bool:
            selection = np.flatnonzero(selection)
        return PointSet(
            coordinates=self.coordinates[selection],
            values=None if self.values is None else self.values[selection],
            counts=None if self.counts is None else self.counts[selection],
            identifiers=(
                None if self.identifiers is None else self.identifiers[selection]
            ),
            boundaries=(
                None
                if self.boundaries is None
                else tuple(self.boundaries[i] for i in selection)
            ),
            crs=self.crs,
        )

    def deduplicate(self) -> "PointSet":
        """Drop points whose coordinates repeat an earlier point (first kept)."""
        mask = self.duplicate_mask()
        if not mask.any():
            return self
        return self.subset(~mask)

    def to_frame(self) -> pd.DataFrame:
        """Tabular view for rendering collaborators."""
        frame = pd.DataFrame(
            {"longitude": self.coordinates[:, 0], "latitude": self.coordinates[:, 1]}
        )
        if self.identifiers is not None:
            frame.insert(0, "identifier", self.identifiers)
        if self.values is not None:
            frame["avg_time_to_park"] = self.values
        if self.counts is not None:
            frame["total_searching"] = self.counts
        return frame

    def __repr__(self) -> str:
        """String representation."""
        return f"PointSet(n_points={len(self)}, crs={self.crs})"
