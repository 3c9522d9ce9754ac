"""Scheduler outcome and notification models."""

from dataclasses import dataclass, field
from enum import StrEnum

from weathercore.models.forecast import ForecastInterval


class SchedulerState(StrEnum):
    IDLE = "Idle"
    ASTRO_PENDING = "AstroPending"
    FORECAST_PENDING = "ForecastPending"
    CONDITIONS_ONLY = "ConditionsOnly"


class UpdateReason(StrEnum):
    NO_LOCATION = "no-location"
    CONDITIONS = "conditions"
    NIGHT_TIME = "night-time"


@dataclass(frozen=True)
class UpdateEvent:
    """Sent to the display layer whenever icon or label state may have changed."""

    reason: UpdateReason
    current: ForecastInterval | None
    night_time: bool


@dataclass
class TickResult:
    state: SchedulerState = SchedulerState.IDLE
    astro_requested: bool = False
    forecast_requested: bool = False
    conditions_updated: bool = False
    night_time_changed: bool = False
    responses_applied: list[str] = field(default_factory=list)
    responses_discarded: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
