"""Tests for configuration loading."""

import json

import pytest

from parksmith.config import (
    CONFIG_ENV_VAR,
    AnalysisConfig,
    config_from_dict,
    load_config,
    with_overrides,
)
from parksmith.primitives.variogram import VariogramFamily
from parksmith.utils.errors import ParameterError


class TestConfig:
    """Tests for AnalysisConfig construction."""

    def test_defaults(self):
        config = AnalysisConfig()
        assert config.graph.style == "W"
        assert config.graph.zero_policy is False
        assert config.graph.distance_power == 2.0
        assert config.autocorrelation.assumption == "randomization"
        assert config.kriging.family is VariogramFamily.EXPONENTIAL
        assert config.kriging.n_lags == 15
        assert config.ingest.columns["avg_time_to_park"] == "AvgTimeToPark"

    def test_from_dict_merges_sections(self):
        config = config_from_dict(
            {
                "graph": {"zero_policy": True},
                "kriging": {"family": "spherical", "grid_nx": 10},
                "ingest": {"columns": {"boundary": "Bounds"}},
            }
        )
        assert config.graph.zero_policy is True
        assert config.graph.style == "W"
        assert config.kriging.family is VariogramFamily.SPHERICAL
        assert config.kriging.grid_nx == 10
        assert config.ingest.columns["boundary"] == "Bounds"
        assert config.ingest.columns["latitude"] == "Latitude"

    def test_unknown_key(self):
        with pytest.raises(ParameterError, match="unknown"):
            config_from_dict({"graph": {"zero_polcy": True}})

    def test_unknown_family(self):
        with pytest.raises(ParameterError):
            config_from_dict({"kriging": {"family": "cubic"}})

    def test_section_must_be_mapping(self):
        with pytest.raises(ParameterError):
            config_from_dict({"graph": ["zero_policy"]})

    def test_with_overrides(self):
        config = with_overrides(
            AnalysisConfig(), graph={"zero_policy": True}, run_cross_validation=True
        )
        assert config.graph.zero_policy is True
        assert config.run_cross_validation is True


class TestLoadConfig:
    """Tests for load_config."""

    def test_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("graph:\n  zero_policy: true\nkriging:\n  trend: constant\n")
        config = load_config(path)
        assert config.graph.zero_policy is True
        assert config.kriging.trend == "constant"

    def test_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"autocorrelation": {"alpha": 0.01}}))
        assert load_config(path).autocorrelation.alpha == 0.01

    def test_empty_yaml(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("")
        assert load_config(path) == AnalysisConfig()

    def test_environment_variable(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text("run_cross_validation: true\n")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
        assert load_config().run_cross_validation is True

    def test_defaults_without_path(self, monkeypatch):
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        assert load_config() == AnalysisConfig()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "absent.yaml")

    def test_unsupported_format(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text("")
        with pytest.raises(ParameterError):
            load_config(path)
