"""A single parking-search observation."""

import math
from dataclasses import dataclass
from typing import Optional

from parksmith.utils.errors import DataValidationError

Ring = tuple[tuple[float, float], ...]


@dataclass(frozen=True)
class Observation:
    """Point-located parking-search observation.

    Attributes:
        identifier: Observation identifier (e.g. a geohash).
        latitude: Latitude of the observation.
        longitude: Longitude of the observation.
        avg_time_to_park: Average time to find parking (target variable).
        total_searching: Number of drivers searching for parking.
        boundary: Optional closed polygon ring as (x, y) pairs.
        country: Optional country code.
        state: Optional state or province.
        city: Optional city name.
        county: Optional county name.
    """

    identifier: str
    latitude: float
    longitude: float
    avg_time_to_park: float
    total_searching: int = 0
    boundary: Optional[Ring] = None
    country: Optional[str] = None
    state: Optional[str] = None
    city: Optional[str] = None
    county: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate Observation fields."""
        if not (math.isfinite(self.latitude) and -90.0 <= self.latitude <= 90.0):
            raise DataValidationError(
                f"latitude must be within [-90, 90], got {self.latitude} "
                f"for observation {self.identifier!r}"
            )
        if not (math.isfinite(self.longitude) and -180.0 <= self.longitude <= 180.0):
            raise DataValidationError(
                f"longitude must be within [-180, 180], got {self.longitude} "
                f"for observation {self.identifier!r}"
            )
        if not math.isfinite(self.avg_time_to_park) or self.avg_time_to_park < 0:
            raise DataValidationError(
                f"avg_time_to_park must be a non-negative number, got "
                f"{self.avg_time_to_park} for observation {self.identifier!r}"
            )
        if self.total_searching < 0:
            raise DataValidationError(
                f"total_searching must be non-negative, got {self.total_searching} "
                f"for observation {self.identifier!r}"
            )
        if self.boundary is not None and self.boundary[0] != self.boundary[-1]:
            raise DataValidationError(
                f"boundary ring of observation {self.identifier!r} is not closed"
            )

    @property
    def location(self) -> tuple[float, float]:
        """(x, y) location, i.e. (longitude, latitude)."""
        return (self.longitude, self.latitude)
