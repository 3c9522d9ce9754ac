"""In-memory store of forecast intervals, current conditions and astro data."""

import logging
from collections.abc import Iterable, Iterator
from datetime import datetime, timedelta

from weathercore.models.common import IntervalKey, format_timestamp
from weathercore.models.forecast import AstroSnapshot, ForecastInterval

logger = logging.getLogger(__name__)

DEFAULT_RETENTION = timedelta(hours=24)


class WeatherDataset:
    """Owns the forecast intervals of one location, keyed by ``(start, end)``.

    ``current`` is always derived from the intervals by the selector and is
    never merged back into them.
    """

    def __init__(self) -> None:
        self._intervals: dict[IntervalKey, ForecastInterval] = {}
        self._current: ForecastInterval | None = None
        self.astro: AstroSnapshot | None = None

    def __len__(self) -> int:
        return len(self._intervals)

    def __iter__(self) -> Iterator[ForecastInterval]:
        return iter(list(self._intervals.values()))

    def __contains__(self, key: object) -> bool:
        return key in self._intervals

    @property
    def intervals(self) -> list[ForecastInterval]:
        return list(self._intervals.values())

    @property
    def current(self) -> ForecastInterval | None:
        if not self._intervals:
            return None
        return self._current

    @current.setter
    def current(self, value: ForecastInterval | None) -> None:
        self._current = value

    def get(self, start: datetime, end: datetime) -> ForecastInterval | None:
        return self._intervals.get((start, end))

    def upsert(self, interval: ForecastInterval) -> ForecastInterval:
        """Insert a new interval or overlay the attributes of an existing one.

        On an existing key, fields the new record reports overwrite the stored
        ones and fields it leaves unset keep their stored values.
        """
        existing = self._intervals.get(interval.key)
        if existing is None:
            stored = ForecastInterval(
                start=interval.start,
                end=interval.end,
                attributes=interval.attributes,
                point=interval.point,
            )
            self._intervals[interval.key] = stored
            return stored
        existing.attributes = existing.attributes.merged_with(interval.attributes)
        return existing

    def merge(self, intervals: Iterable[ForecastInterval]) -> int:
        """Apply a batch of upserts in order. Returns the number applied."""
        count = 0
        for interval in intervals:
            self.upsert(interval)
            count += 1
        return count

    def expire(self, now: datetime, max_age: timedelta = DEFAULT_RETENTION) -> int:
        """Drop every interval whose end lies more than ``max_age`` before ``now``."""
        cutoff = now - max_age
        expired = [key for key, ts in self._intervals.items() if ts.end < cutoff]
        for key in expired:
            start, end = key
            logger.debug(
                "Removing expired interval [%s - %s]",
                format_timestamp(start), format_timestamp(end),
            )
            del self._intervals[key]
        if not self._intervals:
            self._current = None
        return len(expired)

    def free(self) -> None:
        """Release all intervals, current conditions and astro data."""
        logger.debug(
            "Freeing %d intervals%s",
            len(self._intervals),
            " and current conditions" if self._current else "",
        )
        self._intervals.clear()
        self._current = None
        self.astro = None

    clear = free
