"""Query context: the location identity a dataset and its cache belong to."""

from dataclasses import dataclass
from datetime import timedelta

DEFAULT_CACHE_MAX_AGE = timedelta(hours=48)


@dataclass(frozen=True)
class QueryContext:
    latitude: str
    longitude: str
    elevation_meters: int = 0
    utc_offset_minutes: int = 0
    cache_max_age: timedelta = DEFAULT_CACHE_MAX_AGE
    location_name: str = ""

    @property
    def has_coordinates(self) -> bool:
        return bool(self.latitude) and bool(self.longitude)

    def matches(self, other: "QueryContext | None") -> bool:
        """True when ``other`` identifies the same location and time zone."""
        if other is None:
            return False
        return (
            self.latitude == other.latitude
            and self.longitude == other.longitude
            and self.elevation_meters == other.elevation_meters
            and self.utc_offset_minutes == other.utc_offset_minutes
        )
