#!/usr/bin/env python3
"""
Tests for configuration defaults and environment overrides.
"""

import config


def test_defaults_are_valid():
    assert config.validate_config()
    assert config.OCCLUSION_PARAMS["ray_origin_height_m"] == 0.75
    assert config.OCCLUSION_PARAMS["max_ray_distance_m"] == 2000.0
    assert config.BUILDING_PARAMS["default_height_m"] == 10.0
    assert config.PREDICTION_PARAMS["horizon_minutes"] == 480


def test_invalid_value_fails_validation(monkeypatch):
    monkeypatch.setitem(config.OCCLUSION_PARAMS, "max_ray_distance_m", 0)
    assert not config.validate_config()


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("SUNTERRACE_DEFAULT_HEIGHT_M", "12.5")
    monkeypatch.setenv("SUNTERRACE_HORIZON_MINUTES", "240")
    monkeypatch.setenv("SUNTERRACE_LOG_LEVEL", "debug")

    overrides = config.get_env_overrides()
    assert overrides == {"default_height_m": 12.5, "horizon_minutes": 240, "log_level": "DEBUG"}


def test_invalid_env_values_are_ignored(monkeypatch):
    monkeypatch.setenv("SUNTERRACE_DEFAULT_HEIGHT_M", "tall")
    monkeypatch.delenv("SUNTERRACE_HORIZON_MINUTES", raising=False)

    overrides = config.get_env_overrides()
    assert "default_height_m" not in overrides
    assert "horizon_minutes" not in overrides


def test_apply_env_overrides(monkeypatch):
    monkeypatch.setitem(config.BUILDING_PARAMS, "default_height_m", 10.0)
    monkeypatch.setitem(config.PREDICTION_PARAMS, "horizon_minutes", 480)
    monkeypatch.setenv("SUNTERRACE_DEFAULT_HEIGHT_M", "14")
    monkeypatch.setenv("SUNTERRACE_HORIZON_MINUTES", "120")

    config.apply_env_overrides()

    assert config.BUILDING_PARAMS["default_height_m"] == 14.0
    assert config.PREDICTION_PARAMS["horizon_minutes"] == 120
