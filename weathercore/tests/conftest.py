"""Shared test fixtures."""

from datetime import UTC, datetime
from pathlib import Path

import pytest
import yaml

from weathercore.config.schema import WeatherConfig
from weathercore.models.context import QueryContext

FIXTURE_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the path to the test fixtures directory."""
    return FIXTURE_DIR


@pytest.fixture
def forecast_body() -> bytes:
    return (FIXTURE_DIR / "forecast_oslo.xml").read_bytes()


@pytest.fixture
def astro_body() -> bytes:
    return (FIXTURE_DIR / "astro_oslo.xml").read_bytes()


@pytest.fixture
def oslo() -> QueryContext:
    return QueryContext(
        latitude="59.910000",
        longitude="10.750000",
        elevation_meters=94,
        utc_offset_minutes=60,
        location_name="Oslo",
    )


@pytest.fixture
def bergen() -> QueryContext:
    return QueryContext(
        latitude="60.390000",
        longitude="5.320000",
        elevation_meters=12,
        utc_offset_minutes=60,
        location_name="Bergen",
    )


@pytest.fixture
def now() -> datetime:
    return datetime(2024, 1, 1, 10, 7, 0, tzinfo=UTC)


@pytest.fixture
def default_config() -> WeatherConfig:
    return WeatherConfig()


@pytest.fixture
def config_yaml_path(tmp_path: Path) -> Path:
    """Write a minimal valid config YAML and return its path."""
    data = {
        "location": {
            "name": "Oslo",
            "latitude": "59.910000",
            "longitude": "10.750000",
            "elevation_meters": 94,
            "utc_offset_minutes": 60,
        },
        "schedule": {"tick_seconds": 30},
        "cache": {"directory": str(tmp_path / "cache")},
    }
    path = tmp_path / "test_config.yaml"
    with open(path, "w") as f:
        yaml.dump(data, f)
    return path
