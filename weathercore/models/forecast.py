"""Forecast, astronomical and lookup data models."""

from dataclasses import dataclass, field, fields, replace
from datetime import datetime

from weathercore.models.common import IntervalKey


@dataclass(frozen=True)
class LocationAttributes:
    """Weather fields reported for one forecast interval.

    Every field is optional: ``None`` means the source did not report it,
    which is different from an empty string.
    """

    altitude: str | None = None
    latitude: str | None = None
    longitude: str | None = None
    temperature_value: str | None = None
    temperature_unit: str | None = None
    wind_dir_deg: str | None = None
    wind_dir_name: str | None = None
    wind_speed_mps: str | None = None
    wind_speed_beaufort: str | None = None
    humidity_value: str | None = None
    humidity_unit: str | None = None
    pressure_value: str | None = None
    pressure_unit: str | None = None
    clouds_low: str | None = None
    clouds_med: str | None = None
    clouds_high: str | None = None
    clouds_cloudiness: str | None = None
    fog_percent: str | None = None
    precipitation_value: str | None = None
    precipitation_unit: str | None = None
    symbol: str | None = None
    symbol_id: int | None = None

    def present(self) -> dict[str, str | int]:
        """Return only the reported fields, in declaration order."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }

    def merged_with(self, other: "LocationAttributes") -> "LocationAttributes":
        """Overlay the reported fields of ``other`` on top of this record."""
        return replace(self, **other.present())

    def is_empty(self) -> bool:
        return not self.present()


@dataclass
class ForecastInterval:
    start: datetime
    end: datetime
    attributes: LocationAttributes = field(default_factory=LocationAttributes)
    point: datetime | None = None  # only set on selected or cache-restored records

    @property
    def key(self) -> IntervalKey:
        return (self.start, self.end)

    @property
    def span_seconds(self) -> float:
        return (self.end - self.start).total_seconds()

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant <= self.end


@dataclass(frozen=True)
class AstroSnapshot:
    sun_never_rises: bool = False
    sun_never_sets: bool = False
    sunrise: datetime | None = None
    sunset: datetime | None = None
    moon_never_rises: bool = False
    moon_never_sets: bool = False
    moonrise: datetime | None = None
    moonset: datetime | None = None
    moon_phase: str | None = None


@dataclass(frozen=True)
class TimezoneInfo:
    offset_minutes: int
    suffix: str | None = None
    dst: str | None = None
    localtime: str | None = None
    isotime: str | None = None
    utctime: str | None = None
