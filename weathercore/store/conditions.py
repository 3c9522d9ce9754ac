"""Current-conditions selection and day/night status."""

from collections.abc import Iterable
from datetime import datetime

from weathercore.models.common import to_local
from weathercore.models.forecast import AstroSnapshot, ForecastInterval

CONDITIONS_GRID_MINUTES = 5
NIGHT_STARTS_HOUR = 21
NIGHT_ENDS_HOUR = 5


def normalize_instant(now: datetime, grid_minutes: int = CONDITIONS_GRID_MINUTES) -> datetime:
    """Truncate ``now`` down to the most recent grid boundary."""
    return now.replace(
        minute=now.minute - now.minute % grid_minutes,
        second=0,
        microsecond=0,
    )


def select_current(
    intervals: Iterable[ForecastInterval],
    now: datetime,
    grid_minutes: int = CONDITIONS_GRID_MINUTES,
) -> ForecastInterval | None:
    """Pick the interval that best represents ``now``.

    Among intervals containing the normalized instant, the narrowest span
    wins and ties go to the earliest start. The returned record is a copy
    with ``point`` set to the normalized instant.
    """
    instant = normalize_instant(now, grid_minutes)
    candidates = [ts for ts in intervals if ts.contains(instant)]
    if not candidates:
        return None
    best = min(candidates, key=lambda ts: (ts.span_seconds, ts.start))
    return ForecastInterval(
        start=best.start,
        end=best.end,
        attributes=best.attributes,
        point=instant,
    )


def is_night_time(
    astro: AstroSnapshot | None,
    now: datetime,
    utc_offset_minutes: int = 0,
) -> bool:
    """Decide whether ``now`` is night at the location."""
    if astro is not None:
        if astro.sun_never_rises:
            return True
        if astro.sun_never_sets:
            return False
        if astro.sunrise is not None and astro.sunset is not None:
            return now < astro.sunrise or now >= astro.sunset

    # no usable astro data, guess from the local clock
    hour = to_local(now, utc_offset_minutes).hour
    return hour >= NIGHT_STARTS_HOUR or hour < NIGHT_ENDS_HOUR
