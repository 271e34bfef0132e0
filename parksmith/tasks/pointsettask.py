"""Point set construction from observation tables.

Layer 3: Tasks - User intent translation.

Rows whose boundary cannot be parsed, or whose values are invalid, are
excluded individually and reported rather than aborting the run.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

import numpy as np
import pandas as pd

from parksmith.objects.observation import Observation
from parksmith.objects.pointset import PointSet
from parksmith.primitives.geometry import parse_boundary, ring_to_polygon
from parksmith.utils.errors import DataValidationError

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("latitude", "longitude", "avg_time_to_park")


@dataclass(frozen=True)
class Exclusion:
    """An observation left out of the analysis, with the reason."""

    identifier: str
    stage: str
    reason: str


@dataclass(frozen=True)
class PointSetBuild:
    """Result of building a PointSet from a table.

    Attributes:
        points: PointSet of the retained, deduplicated observations.
        excluded: Observations that were dropped and why.
        n_duplicates: Number of rows removed as duplicated locations.
    """

    points: PointSet
    excluded: tuple[Exclusion, ...] = field(default_factory=tuple)
    n_duplicates: int = 0


def _optional_text(value) -> Optional[str]:
    if value is None or (isinstance(value, float) and np.isnan(value)):
        return None
    return str(value)


def _row_to_observation(row: pd.Series, identifier: str) -> Observation:
    boundary = None
    text = _optional_text(row.get("boundary"))
    if text is not None:
        boundary = parse_boundary(text)
        ring_to_polygon(boundary)

    total = row.get("total_searching")
    total = 0 if total is None or pd.isna(total) else int(total)
    return Observation(
        identifier=identifier,
        latitude=float(row["latitude"]),
        longitude=float(row["longitude"]),
        avg_time_to_park=float(row["avg_time_to_park"]),
        total_searching=total,
        boundary=boundary,
        country=_optional_text(row.get("country")),
        state=_optional_text(row.get("state")),
        city=_optional_text(row.get("city")),
        county=_optional_text(row.get("county")),
    )


def build_point_set(frame: pd.DataFrame, deduplicate: bool = True) -> PointSetBuild:
    """Build a PointSet from a table with canonical column names.

    Expected columns: latitude, longitude, avg_time_to_park and optionally
    identifier, total_searching, boundary, country, state, city, county
    (see ``parksmith.workflows.io.read_observations``).

    Args:
        frame: Observation table.
        deduplicate: Drop rows repeating an earlier location.

    Returns:
        PointSetBuild with the retained points and the exclusions.

    Raises:
        DataValidationError: If required columns are missing or no valid
            observation remains.
    """
    missing = [name for name in REQUIRED_FIELDS if name not in frame.columns]
    if missing:
        raise DataValidationError(
            f"Observation table is missing required columns: {missing}",
            stage="geometry",
        )

    observations: list[Observation] = []
    excluded: list[Exclusion] = []
    for position, (_, row) in enumerate(frame.iterrows()):
        identifier = _optional_text(row.get("identifier")) or str(position)
        try:
            observations.append(_row_to_observation(row, identifier))
        except DataValidationError as exc:
            stage = exc.stage or "geometry"
            excluded.append(Exclusion(identifier=identifier, stage=stage, reason=exc.message))
        except (TypeError, ValueError) as exc:
            excluded.append(Exclusion(identifier=identifier, stage="geometry", reason=str(exc)))

    if excluded:
        logger.warning(
            f"Excluded {len(excluded)} of {len(frame)} observations; first: "
            f"{excluded[0].identifier}: {excluded[0].reason}"
        )
    if not observations:
        raise DataValidationError(
            "No valid observations remain after parsing", stage="geometry"
        )

    points = PointSet.from_observations(observations)
    n_duplicates = 0
    if deduplicate:
        n_duplicates = int(points.duplicate_mask().sum())
        if n_duplicates:
            logger.info(f"Removed {n_duplicates} observations at duplicated locations")
            points = points.deduplicate()

    logger.info(f"Built PointSet with {len(points)} observations")
    return PointSetBuild(points=points, excluded=tuple(excluded), n_duplicates=n_duplicates)
