"""Analysis configuration.

Configuration is a tree of frozen dataclasses. It can be loaded from a YAML
or JSON file, either passed explicitly or named by the ``PARKSMITH_CONFIG``
environment variable. Missing sections and keys fall back to defaults.

Example YAML::

    graph:
      zero_policy: true
      distance_power: 2.0
    kriging:
      family: exponential
      grid_nx: 100
      grid_ny: 100
"""

import json
import logging
import os
from dataclasses import MISSING, dataclass, field, fields, is_dataclass, replace
from pathlib import Path
from typing import Any, Literal, Optional, Union

import yaml

from parksmith.primitives.variogram import VariogramFamily
from parksmith.utils.errors import ParameterError, raise_parameter_error

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "PARKSMITH_CONFIG"


@dataclass(frozen=True)
class IngestConfig:
    """Column mapping and input cleaning for observation tables.

    Attributes:
        columns: Canonical field name -> column name in the input table.
        country_aliases: Long-form country name -> canonical short code.
    """

    columns: dict[str, str] = field(
        default_factory=lambda: {
            "identifier": "Geohash",
            "country": "Country",
            "state": "State",
            "city": "City",
            "county": "County",
            "latitude": "Latitude",
            "longitude": "Longitude",
            "total_searching": "TotalSearching",
            "avg_time_to_park": "AvgTimeToPark",
            "boundary": "GeohashBounds",
        }
    )
    country_aliases: dict[str, str] = field(
        default_factory=lambda: {"United States of America": "USA"}
    )


@dataclass(frozen=True)
class GraphConfig:
    """Neighbourhood graph and spatial weights options.

    Attributes:
        distance_metric: 'euclidean', 'geodesic', or 'auto' (geodesic for
            geographic coordinate systems).
        inverse_distance: Weight links by 1 / d**distance_power before
            row-standardization.
        distance_power: Power for inverse-distance weighting.
        style: 'W' (row-standardized) or 'B' (raw weights).
        zero_policy: Allow points without neighbours (zero weight).
    """

    distance_metric: Literal["euclidean", "geodesic", "auto"] = "auto"
    inverse_distance: bool = True
    distance_power: float = 2.0
    style: Literal["W", "B"] = "W"
    zero_policy: bool = False


@dataclass(frozen=True)
class AutocorrelationConfig:
    """Autocorrelation test options.

    Attributes:
        assumption: 'randomization' or 'normality' for global moments.
        alternative: 'two-sided', 'greater' or 'less'.
        local_conditional: Condition local moments on each point's own value.
        alpha: Significance level for reporting local clusters.
    """

    assumption: Literal["randomization", "normality"] = "randomization"
    alternative: Literal["two-sided", "greater", "less"] = "two-sided"
    local_conditional: bool = False
    alpha: float = 0.05


@dataclass(frozen=True)
class KrigingConfig:
    """Variogram and kriging options.

    Attributes:
        family: Variogram model family.
        n_lags: Number of lag bins in the empirical variogram.
        cutoff: Maximum lag distance (None: a third of the bounding-box diagonal).
        trend: 'linear' (universal kriging) or 'constant' (ordinary kriging).
        grid_nx: Prediction grid columns.
        grid_ny: Prediction grid rows.
        padding: Grid padding as a fraction of the data extent.
        max_iterations: Function-evaluation cap for the variogram fit.
        regularization: Diagonal regularization of the kriging system.
    """

    family: VariogramFamily = VariogramFamily.EXPONENTIAL
    n_lags: int = 15
    cutoff: Optional[float] = None
    trend: Literal["constant", "linear"] = "linear"
    grid_nx: int = 50
    grid_ny: int = 50
    padding: float = 0.0
    max_iterations: int = 10000
    regularization: float = 1e-10

    def __post_init__(self) -> None:
        """Coerce the family name to the enum."""
        try:
            object.__setattr__(self, "family", VariogramFamily(self.family))
        except ValueError:
            raise_parameter_error(
                "family", self.family, valid_values=[f.value for f in VariogramFamily]
            )


@dataclass(frozen=True)
class AnalysisConfig:
    """Complete configuration of an analysis run."""

    ingest: IngestConfig = field(default_factory=IngestConfig)
    graph: GraphConfig = field(default_factory=GraphConfig)
    autocorrelation: AutocorrelationConfig = field(
        default_factory=AutocorrelationConfig
    )
    kriging: KrigingConfig = field(default_factory=KrigingConfig)
    run_cross_validation: bool = False


def _build(cls: type, data: dict[str, Any], path: str) -> Any:
    if not isinstance(data, dict):
        raise ParameterError(f"Config section '{path}' must be a mapping, got {data!r}")
    known = {f.name: f for f in fields(cls)}
    unknown = set(data) - set(known)
    if unknown:
        raise_parameter_error(
            path or "config",
            sorted(unknown),
            valid_values=sorted(known),
            constraint="unknown configuration keys",
        )
    kwargs = {}
    for name, value in data.items():
        spec = known[name]
        default = (
            spec.default_factory() if spec.default_factory is not MISSING else spec.default
        )
        if is_dataclass(default):
            kwargs[name] = _build(type(default), value, f"{path}.{name}".strip("."))
        elif isinstance(default, dict) and isinstance(value, dict):
            kwargs[name] = {**default, **value}
        else:
            kwargs[name] = value
    return cls(**kwargs)


def config_from_dict(data: Optional[dict[str, Any]]) -> AnalysisConfig:
    """Build an AnalysisConfig from a nested mapping."""
    return _build(AnalysisConfig, data or {}, "")


def load_config(path: Union[str, Path, None] = None) -> AnalysisConfig:
    """Load configuration from a YAML or JSON file.

    Args:
        path: Config file. Defaults to ``$PARKSMITH_CONFIG``; with neither,
            the defaults are returned.

    Returns:
        AnalysisConfig.

    Raises:
        FileNotFoundError: If the file does not exist.
        ParameterError: If the file format or contents are invalid.
    """
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR)
        if not path:
            return AnalysisConfig()

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    suffix = path.suffix.lower()
    with open(path) as f:
        if suffix in (".yaml", ".yml"):
            data = yaml.safe_load(f)
        elif suffix == ".json":
            data = json.load(f)
        else:
            raise ParameterError(
                f"Unsupported config file format: {suffix}. Use .yaml, .yml, or .json"
            )

    config = config_from_dict(data)
    logger.info(f"Loaded configuration from {path}")
    return config


def with_overrides(config: AnalysisConfig, **sections: dict[str, Any]) -> AnalysisConfig:
    """Return a copy of config with some section fields replaced.

    Example:
        >>> cfg = with_overrides(AnalysisConfig(), graph={"zero_policy": True})
    """
    updates = {}
    for name, values in sections.items():
        current = getattr(config, name)
        updates[name] = replace(current, **values) if is_dataclass(current) else values
    return replace(config, **updates)
