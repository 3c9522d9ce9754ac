"""Due checks for astro, forecast and current-conditions refreshes."""

from datetime import UTC, datetime, timedelta

from weathercore.models.common import to_local

DATA_MAX_AGE_MINUTES = 20
CONDITIONS_INTERVAL_MINUTES = 5


def minutes_since(earlier: datetime | None, now: datetime | None = None) -> float:
    """Minutes elapsed since ``earlier``; infinite when it never happened."""
    if now is None:
        now = datetime.now(UTC)
    if earlier is None:
        return float("inf")
    return (now - earlier) / timedelta(minutes=1)


def need_astro_update(
    last_update: datetime | None,
    now: datetime | None = None,
    utc_offset_minutes: int = 0,
) -> bool:
    """Astro data is fetched once per local calendar day."""
    if now is None:
        now = datetime.now(UTC)
    if last_update is None:
        return True
    today = to_local(now, utc_offset_minutes).date()
    fetched_on = to_local(last_update, utc_offset_minutes).date()
    return today != fetched_on


def need_data_update(
    last_update: datetime | None,
    now: datetime | None = None,
    max_age_minutes: int = DATA_MAX_AGE_MINUTES,
) -> bool:
    """Forecast data is refetched once it reaches the maximum data age."""
    return minutes_since(last_update, now) >= max_age_minutes


def need_conditions_update(
    last_update: datetime | None,
    now: datetime | None = None,
    interval_minutes: int = CONDITIONS_INTERVAL_MINUTES,
    utc_offset_minutes: int = 0,
) -> bool:
    """Conditions are recomputed on the grid, at most once per interval."""
    if now is None:
        now = datetime.now(UTC)
    if last_update is None:
        return True
    on_grid = to_local(now, utc_offset_minutes).minute % interval_minutes == 0
    return minutes_since(last_update, now) > interval_minutes and on_grid
