"""Pydantic v2 configuration schema with strict validation."""

from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, Field

from weathercore.ingest.met_client import (
    ASTRO_BASE_URL,
    DEFAULT_USER_AGENT,
    FORECAST_BASE_URL,
    GEONAMES_BASE_URL,
    GEONAMES_USERNAME,
    TIMEZONE_BASE_URL,
)


class TemperatureUnit(StrEnum):
    CELSIUS = "celsius"
    FAHRENHEIT = "fahrenheit"


class PressureUnit(StrEnum):
    HECTOPASCAL = "hectopascal"
    INCH_MERCURY = "inch-mercury"
    PSI = "psi"
    TORR = "torr"


class WindSpeedUnit(StrEnum):
    KMH = "km/h"
    MPH = "mph"
    MPS = "m/s"
    FTS = "ft/s"
    KNOTS = "knots"


class PrecipitationUnit(StrEnum):
    MILLIMETERS = "mm"
    INCHES = "in"


class AltitudeUnit(StrEnum):
    METERS = "meters"
    FEET = "feet"


class LocationConfig(BaseModel):
    model_config = {"extra": "forbid"}

    name: str = ""
    latitude: str = ""
    longitude: str = ""
    elevation_meters: int = Field(default=0, ge=-420, le=10000)
    utc_offset_minutes: int = Field(default=0, ge=-24 * 60, le=24 * 60)


class ScheduleConfig(BaseModel):
    model_config = {"extra": "forbid"}

    tick_seconds: int = Field(default=15, ge=1)
    data_max_age_minutes: int = Field(default=20, ge=1)
    conditions_interval_minutes: int = Field(default=5, ge=1, le=60)
    retention_hours: int = Field(default=24, ge=1)


class CacheConfig(BaseModel):
    model_config = {"extra": "forbid"}

    directory: Path = Path("~/.cache/weathercore")
    max_age_hours: int = Field(default=48, ge=0)

    @property
    def path(self) -> Path:
        return self.directory.expanduser()


class EndpointConfig(BaseModel):
    model_config = {"extra": "forbid"}

    forecast_base: str = FORECAST_BASE_URL
    astro_base: str = ASTRO_BASE_URL
    geonames_base: str = GEONAMES_BASE_URL
    geonames_username: str = GEONAMES_USERNAME
    timezone_base: str = TIMEZONE_BASE_URL
    user_agent: str = DEFAULT_USER_AGENT
    timeout_seconds: float = Field(default=10.0, gt=0.0)


class UnitsConfig(BaseModel):
    model_config = {"extra": "forbid"}

    temperature: TemperatureUnit = TemperatureUnit.CELSIUS
    pressure: PressureUnit = PressureUnit.HECTOPASCAL
    windspeed: WindSpeedUnit = WindSpeedUnit.KMH
    precipitation: PrecipitationUnit = PrecipitationUnit.MILLIMETERS
    altitude: AltitudeUnit = AltitudeUnit.METERS


class WeatherConfig(BaseModel):
    model_config = {"extra": "forbid"}

    location: LocationConfig = LocationConfig()
    schedule: ScheduleConfig = ScheduleConfig()
    cache: CacheConfig = CacheConfig()
    endpoints: EndpointConfig = EndpointConfig()
    units: UnitsConfig = UnitsConfig()
