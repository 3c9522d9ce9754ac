"""Update scheduler: decides on each tick what needs refreshing.

Three independent refreshes are driven from a fixed polling tick:

- astro data, once per local calendar day
- forecast data, once the last successful fetch reaches the max data age
- current conditions, recomputed locally on the 5-minute grid

Network requests run in the background; their results are drained and
applied at the start of the next tick, on the scheduler's own thread. That
thread is the only one that ever touches the dataset.
"""

import logging
from collections.abc import Callable
from concurrent.futures import wait
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path

from weathercore.ingest import staleness
from weathercore.ingest.dispatcher import PendingRequest, RequestCategory, RequestDispatcher
from weathercore.ingest.parsers import parse_astro, parse_forecast, parse_xml
from weathercore.models.common import format_timestamp, to_local
from weathercore.models.context import QueryContext
from weathercore.models.reporting import (
    SchedulerState,
    TickResult,
    UpdateEvent,
    UpdateReason,
)
from weathercore.storage.cache_file import read_cache_file, write_cache_file
from weathercore.store.conditions import is_night_time, normalize_instant, select_current
from weathercore.store.timeseries import DEFAULT_RETENTION, WeatherDataset

logger = logging.getLogger(__name__)

UpdateListener = Callable[[UpdateEvent], None]


@dataclass
class ScheduleSettings:
    data_max_age_minutes: int = staleness.DATA_MAX_AGE_MINUTES
    conditions_interval_minutes: int = staleness.CONDITIONS_INTERVAL_MINUTES
    retention: timedelta = DEFAULT_RETENTION


class WeatherSession:
    """Everything that belongs to one location: context, data and timers."""

    def __init__(self, context: QueryContext):
        self.context = context
        self.dataset = WeatherDataset()
        self.last_astro_update: datetime | None = None
        self.last_data_update: datetime | None = None
        self.last_conditions_update: datetime | None = None
        self.night_time = False

    def invalidate_timers(self) -> None:
        self.last_astro_update = None
        self.last_data_update = None
        self.last_conditions_update = None


class UpdateScheduler:
    def __init__(
        self,
        context: QueryContext,
        dispatcher: RequestDispatcher,
        cache_dir: str | Path | None = None,
        settings: ScheduleSettings | None = None,
        on_update: UpdateListener | None = None,
    ):
        self.session = WeatherSession(context)
        self.dispatcher = dispatcher
        self.cache_dir = Path(cache_dir) if cache_dir is not None else None
        self.settings = settings or ScheduleSettings()
        self.on_update = on_update
        self._pending: list[PendingRequest] = []

    @property
    def context(self) -> QueryContext:
        return self.session.context

    @property
    def dataset(self) -> WeatherDataset:
        return self.session.dataset

    # --- Tick ---

    def tick(self, now: datetime | None = None) -> TickResult:
        """Run one polling step. Never raises for network or data problems."""
        if now is None:
            now = datetime.now(UTC)
        result = TickResult()
        session = self.session
        ctx = session.context

        self._drain(now, result)

        if not ctx.has_coordinates:
            self._notify(UpdateReason.NO_LOCATION)
            return result

        if (
            staleness.need_astro_update(
                session.last_astro_update, now, ctx.utc_offset_minutes
            )
            and not self._in_flight(RequestCategory.ASTRO)
        ):
            day = to_local(now, ctx.utc_offset_minutes).date()
            self._pending.append(self.dispatcher.submit_astro(ctx, day))
            result.astro_requested = True
            result.state = SchedulerState.ASTRO_PENDING

        forecast_due = staleness.need_data_update(
            session.last_data_update, now, self.settings.data_max_age_minutes
        )
        if forecast_due:
            if not self._in_flight(RequestCategory.FORECAST):
                self._pending.append(self.dispatcher.submit_forecast(ctx))
                result.forecast_requested = True
            # the forecast response recomputes conditions when it arrives
            result.state = SchedulerState.FORECAST_PENDING
            return result

        if staleness.need_conditions_update(
            session.last_conditions_update,
            now,
            self.settings.conditions_interval_minutes,
            ctx.utc_offset_minutes,
        ):
            logger.debug("Updating current conditions")
            self.refresh_conditions(now)
            result.conditions_updated = True
            if result.state == SchedulerState.IDLE:
                result.state = SchedulerState.CONDITIONS_ONLY

        night_time = is_night_time(
            self.dataset.astro, now, ctx.utc_offset_minutes
        )
        if night_time != session.night_time:
            logger.debug("Night time status changed, updating icon")
            session.night_time = night_time
            result.night_time_changed = True
            self._notify(UpdateReason.NIGHT_TIME)

        return result

    def refresh_conditions(self, now: datetime) -> None:
        """Recompute current conditions and the day/night flag."""
        session = self.session
        instant = normalize_instant(now, self.settings.conditions_interval_minutes)
        session.last_conditions_update = instant
        current = select_current(
            self.dataset, now, self.settings.conditions_interval_minutes
        )
        if current is not None:
            self.dataset.current = current
        else:
            logger.debug(
                "No interval covers %s, keeping previous conditions",
                format_timestamp(instant),
            )
        session.night_time = is_night_time(
            self.dataset.astro, now, session.context.utc_offset_minutes
        )
        self._notify(UpdateReason.CONDITIONS)

    # --- Responses ---

    def _in_flight(self, category: RequestCategory) -> bool:
        return any(p.category == category for p in self._pending)

    def collect(self, now: datetime | None = None) -> TickResult:
        """Apply finished responses without scheduling anything new."""
        if now is None:
            now = datetime.now(UTC)
        result = TickResult()
        self._drain(now, result)
        return result

    def _drain(self, now: datetime, result: TickResult) -> None:
        done: list[PendingRequest] = []
        still_running: list[PendingRequest] = []
        for pending in self._pending:
            (done if pending.done() else still_running).append(pending)
        self._pending = still_running
        for pending in done:
            if not pending.context.matches(self.context):
                logger.info(
                    "Discarding %s response issued for a previous location",
                    pending.category,
                )
                result.responses_discarded.append(pending.category.value)
                continue
            if pending.category == RequestCategory.ASTRO:
                self._apply_astro(pending, now, result)
            else:
                self._apply_forecast(pending, now, result)

    def _apply_astro(self, pending: PendingRequest, now: datetime, result: TickResult) -> None:
        fetched = pending.result()
        astro = parse_astro(parse_xml(fetched.body)) if fetched.ok else None
        if astro is None:
            reason = fetched.detail or "no usable astro data"
            logger.warning("Astro update failed: %s", reason)
            result.errors.append(f"astro: {reason}")
            return
        self.dataset.astro = astro
        self.session.last_astro_update = now
        result.responses_applied.append(RequestCategory.ASTRO.value)
        logger.debug("Astro data updated: %s", astro)

    def _apply_forecast(self, pending: PendingRequest, now: datetime, result: TickResult) -> None:
        fetched = pending.result()
        root = parse_xml(fetched.body) if fetched.ok else None
        if root is None or root.tag != "weatherdata":
            reason = fetched.detail or "no usable forecast document"
            logger.warning("Forecast update failed: %s", reason)
            result.errors.append(f"forecast: {reason}")
            # conditions were skipped while the request was in flight
            self.refresh_conditions(now)
            result.conditions_updated = True
            return

        logger.debug("Processing downloaded weather data")
        merged = self.dataset.merge(parse_forecast(root))
        self.session.last_data_update = now
        expired = self.dataset.expire(now, self.settings.retention)
        logger.info(
            "Merged %d forecast intervals (%d expired, %d stored)",
            merged, expired, len(self.dataset),
        )
        self.refresh_conditions(now)
        result.conditions_updated = True
        result.responses_applied.append(RequestCategory.FORECAST.value)
        if self.cache_dir is not None:
            write_cache_file(self.cache_dir, self.dataset, self.context, now)

    def wait(self, timeout: float | None = None) -> bool:
        """Block until all pending requests complete. Returns False on timeout."""
        futures = [p.future for p in self._pending]
        if not futures:
            return True
        _, not_done = wait(futures, timeout=timeout)
        return not not_done

    @property
    def pending(self) -> list[PendingRequest]:
        return list(self._pending)

    # --- Location changes ---

    def reset(self, clear: bool = False, now: datetime | None = None) -> None:
        """Force all refreshes on the next tick.

        With ``clear`` the dataset is dropped and reseeded from the disk cache,
        which is what a location change needs.
        """
        logger.debug("Update weatherdata with reset (clear=%s)", clear)
        self.session.invalidate_timers()
        if not clear:
            return

        self.session.dataset.free()
        self.session.dataset = WeatherDataset()
        self.load_cache(now)

    def load_cache(self, now: datetime | None = None) -> int:
        """Seed the dataset from the disk cache. Returns intervals loaded."""
        if self.cache_dir is None or not self.context.has_coordinates:
            return 0
        if now is None:
            now = datetime.now(UTC)
        seed = read_cache_file(self.cache_dir, self.context, now)
        if seed is None:
            return 0
        loaded = self.dataset.merge(seed)
        logger.info("Loaded %d intervals from cache", loaded)
        return loaded

    def set_context(self, context: QueryContext, now: datetime | None = None) -> None:
        """Apply new settings. A different location clears the dataset."""
        same_location = context.matches(self.context)
        self.session.context = context
        self.reset(clear=not same_location, now=now)

    def close(self) -> None:
        self.dispatcher.shutdown()
        self.session.dataset.free()
        self._pending.clear()

    # --- Notifications ---

    def _notify(self, reason: UpdateReason) -> None:
        if self.on_update is None:
            return
        self.on_update(
            UpdateEvent(
                reason=reason,
                current=self.dataset.current,
                night_time=self.session.night_time,
            )
        )
