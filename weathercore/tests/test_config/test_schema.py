"""Tests for config schema validation."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from weathercore.config.schema import (
    CacheConfig,
    LocationConfig,
    ScheduleConfig,
    TemperatureUnit,
    UnitsConfig,
    WeatherConfig,
    WindSpeedUnit,
)
from weathercore.ingest.met_client import FORECAST_BASE_URL


class TestWeatherConfig:
    def test_defaults(self):
        config = WeatherConfig()
        assert config.location.latitude == ""
        assert config.schedule.tick_seconds == 15
        assert config.schedule.data_max_age_minutes == 20
        assert config.schedule.retention_hours == 24
        assert config.cache.max_age_hours == 48
        assert config.endpoints.forecast_base == FORECAST_BASE_URL

    def test_extra_fields_rejected(self):
        with pytest.raises(ValidationError, match="Extra inputs are not permitted"):
            WeatherConfig(unknown_field="bad")

    def test_nested_extra_fields_rejected(self):
        with pytest.raises(ValidationError, match="Extra inputs are not permitted"):
            ScheduleConfig(tick_seconds=15, bogus=True)


class TestLocationConfig:
    def test_valid(self):
        config = LocationConfig(
            name="Oslo", latitude="59.91", longitude="10.75",
            elevation_meters=94, utc_offset_minutes=60,
        )
        assert config.elevation_meters == 94

    def test_elevation_bounds(self):
        with pytest.raises(ValidationError):
            LocationConfig(elevation_meters=-421)
        with pytest.raises(ValidationError):
            LocationConfig(elevation_meters=10001)

    def test_offset_bounds(self):
        LocationConfig(utc_offset_minutes=-720)
        with pytest.raises(ValidationError):
            LocationConfig(utc_offset_minutes=24 * 60 + 1)


class TestScheduleConfig:
    def test_conditions_interval_bounds(self):
        with pytest.raises(ValidationError):
            ScheduleConfig(conditions_interval_minutes=0)
        with pytest.raises(ValidationError):
            ScheduleConfig(conditions_interval_minutes=61)

    def test_tick_must_be_positive(self):
        with pytest.raises(ValidationError):
            ScheduleConfig(tick_seconds=0)


class TestCacheConfig:
    def test_path_expands_user(self):
        config = CacheConfig(directory="~/weather")
        assert config.path == Path("~/weather").expanduser()
        assert "~" not in str(config.path)


class TestUnitsConfig:
    def test_defaults(self):
        config = UnitsConfig()
        assert config.temperature == TemperatureUnit.CELSIUS
        assert config.windspeed == WindSpeedUnit.KMH

    def test_values(self):
        config = UnitsConfig(temperature="fahrenheit", windspeed="knots")
        assert config.temperature == TemperatureUnit.FAHRENHEIT
        assert config.windspeed == WindSpeedUnit.KNOTS

    def test_unknown_unit(self):
        with pytest.raises(ValidationError):
            UnitsConfig(temperature="kelvin")
