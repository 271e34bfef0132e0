"""Observation table ingestion.

Layer 4: Workflows - Public entry points with I/O.
"""

import logging
from pathlib import Path
from typing import IO, Optional, Union

import pandas as pd

from parksmith.config import IngestConfig
from parksmith.utils.errors import DataValidationError

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = (
    "country",
    "state",
    "city",
    "county",
    "latitude",
    "longitude",
    "total_searching",
    "avg_time_to_park",
    "boundary",
)
NUMERIC_COLUMNS = ("latitude", "longitude", "total_searching", "avg_time_to_park")


def normalize_observations(
    frame: pd.DataFrame, config: Optional[IngestConfig] = None
) -> pd.DataFrame:
    """Rename, clean and filter a raw observation table.

    Args:
        frame: Raw table with the source column names.
        config: Column mapping and country aliases.

    Returns:
        Table with canonical snake_case columns. Rows missing coordinates
        or the average time to park are dropped.

    Raises:
        DataValidationError: If required columns are missing.
    """
    config = config or IngestConfig()
    columns = config.columns

    missing = [
        columns.get(name, name)
        for name in REQUIRED_COLUMNS
        if columns.get(name, name) not in frame.columns
    ]
    if missing:
        raise DataValidationError(
            f"Observation table is missing required columns: {missing}",
            suggestion=f"Available columns: {list(frame.columns)}",
        )

    renamed = frame.rename(columns={source: name for name, source in columns.items()})
    keep = [name for name in columns if name in renamed.columns]
    renamed = renamed[keep].copy()

    for name in NUMERIC_COLUMNS:
        renamed[name] = pd.to_numeric(renamed[name], errors="coerce")

    if config.country_aliases:
        renamed["country"] = renamed["country"].replace(config.country_aliases)

    n_before = len(renamed)
    renamed = renamed.dropna(subset=["latitude", "longitude", "avg_time_to_park"])
    n_dropped = n_before - len(renamed)
    if n_dropped:
        logger.warning(
            f"Dropped {n_dropped} rows with missing coordinates or time to park"
        )

    return renamed.reset_index(drop=True)


def read_observations(
    path_or_buffer: Union[str, Path, IO[str]],
    config: Optional[IngestConfig] = None,
) -> pd.DataFrame:
    """Read a parking observation CSV into a canonical table.

    Args:
        path_or_buffer: CSV file path or open text buffer.
        config: Column mapping and country aliases.

    Returns:
        DataFrame with columns identifier (if present), country, state,
        city, county, latitude, longitude, total_searching,
        avg_time_to_park and boundary.

    Example:
        >>> from parksmith.workflows.io import read_observations
        >>> frame = read_observations("parking.csv")
    """
    frame = pd.read_csv(path_or_buffer)
    logger.info(f"Read {len(frame)} rows from {path_or_buffer}")
    return normalize_observations(frame, config)
