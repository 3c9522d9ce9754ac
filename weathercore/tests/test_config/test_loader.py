"""Tests for config loading, saving, get/set and derived objects."""

from datetime import timedelta
from pathlib import Path

import pytest
from pydantic import ValidationError

from weathercore.config.loader import (
    config_hash,
    get_config_value,
    load_config,
    make_client,
    query_context,
    save_config,
    set_config_value,
)
from weathercore.config.schema import WeatherConfig, WindSpeedUnit


class TestLoadConfig:
    def test_load_from_yaml(self, config_yaml_path: Path):
        config = load_config(config_yaml_path)
        assert config.location.name == "Oslo"
        assert config.location.latitude == "59.910000"
        assert config.schedule.tick_seconds == 30

    def test_empty_yaml_uses_defaults(self, tmp_path: Path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        config = load_config(path)
        assert config == WeatherConfig()

    def test_fixtures_config(self, fixtures_dir: Path):
        config = load_config(fixtures_dir / "config_default.yaml")
        assert config.location.utc_offset_minutes == 60
        assert config.units.windspeed == WindSpeedUnit.MPS

    def test_invalid_yaml_values(self, tmp_path: Path):
        path = tmp_path / "bad.yaml"
        path.write_text("schedule:\n  tick_seconds: 0\n")
        with pytest.raises(ValidationError):
            load_config(path)


class TestSaveConfig:
    def test_round_trip(self, config_yaml_path: Path, tmp_path: Path):
        config = load_config(config_yaml_path)
        out = tmp_path / "nested" / "saved.yaml"
        save_config(config, out)
        assert load_config(out) == config


class TestConfigHash:
    def test_deterministic(self):
        assert config_hash(WeatherConfig()) == config_hash(WeatherConfig())

    def test_different_config_different_hash(self, default_config: WeatherConfig):
        changed = set_config_value(default_config, "location.latitude", "1.0")
        assert config_hash(default_config) != config_hash(changed)


class TestDerivedObjects:
    def test_query_context(self, config_yaml_path: Path):
        ctx = query_context(load_config(config_yaml_path))
        assert ctx.latitude == "59.910000"
        assert ctx.longitude == "10.750000"
        assert ctx.elevation_meters == 94
        assert ctx.utc_offset_minutes == 60
        assert ctx.cache_max_age == timedelta(hours=48)
        assert ctx.location_name == "Oslo"
        assert ctx.has_coordinates

    def test_query_context_without_location(self, default_config: WeatherConfig):
        assert not query_context(default_config).has_coordinates

    def test_make_client(self, default_config: WeatherConfig):
        config = set_config_value(
            default_config, "endpoints.forecast_base", "https://example.com/forecast/"
        )
        client = make_client(config)
        assert client.forecast_base == "https://example.com/forecast"
        assert client.timeout == 10.0


class TestGetConfigValue:
    def test_dotted_key(self, default_config: WeatherConfig):
        assert get_config_value(default_config, "schedule.data_max_age_minutes") == 20

    def test_top_level(self, default_config: WeatherConfig):
        assert get_config_value(default_config, "cache").max_age_hours == 48

    def test_invalid_key(self, default_config: WeatherConfig):
        with pytest.raises((KeyError, AttributeError)):
            get_config_value(default_config, "nonexistent.key")


class TestSetConfigValue:
    def test_set_and_revalidate(self, default_config: WeatherConfig):
        new_config = set_config_value(default_config, "location.name", "Tromsø")
        assert new_config.location.name == "Tromsø"
        assert default_config.location.name == ""

    def test_set_string_coercion(self, default_config: WeatherConfig):
        new_config = set_config_value(default_config, "schedule.tick_seconds", "60")
        assert new_config.schedule.tick_seconds == 60
        new_config = set_config_value(default_config, "endpoints.timeout_seconds", "2.5")
        assert new_config.endpoints.timeout_seconds == 2.5

    def test_unknown_leaf(self, default_config: WeatherConfig):
        with pytest.raises(KeyError):
            set_config_value(default_config, "schedule.bogus", "1")

    def test_invalid_value_raises(self, default_config: WeatherConfig):
        with pytest.raises(ValidationError):
            set_config_value(default_config, "location.elevation_meters", -1000)
