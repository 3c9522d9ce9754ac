"""Tests for refresh due checks with boundary conditions."""

from datetime import UTC, datetime

from weathercore.ingest.staleness import (
    minutes_since,
    need_astro_update,
    need_conditions_update,
    need_data_update,
)


class TestMinutesSince:
    def test_elapsed(self):
        now = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)
        assert minutes_since(datetime(2024, 1, 1, 11, 30, tzinfo=UTC), now) == 30

    def test_never(self):
        assert minutes_since(None) == float("inf")


class TestNeedDataUpdate:
    def test_never_fetched(self):
        assert need_data_update(None) is True

    def test_fresh(self):
        now = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)
        last = datetime(2024, 1, 1, 11, 50, tzinfo=UTC)
        assert need_data_update(last, now, 20) is False

    def test_boundary_exact(self):
        now = datetime(2024, 1, 1, 12, 20, tzinfo=UTC)
        last = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)
        # reaching the max age counts as due
        assert need_data_update(last, now, 20) is True

    def test_just_before_boundary(self):
        now = datetime(2024, 1, 1, 12, 19, 59, tzinfo=UTC)
        last = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)
        assert need_data_update(last, now, 20) is False


class TestNeedAstroUpdate:
    def test_never_fetched(self):
        assert need_astro_update(None) is True

    def test_same_day(self):
        last = datetime(2024, 1, 1, 0, 30, tzinfo=UTC)
        now = datetime(2024, 1, 1, 22, 0, tzinfo=UTC)
        assert need_astro_update(last, now, 0) is False

    def test_new_utc_day(self):
        last = datetime(2024, 1, 1, 23, 30, tzinfo=UTC)
        now = datetime(2024, 1, 2, 0, 5, tzinfo=UTC)
        assert need_astro_update(last, now, 0) is True

    def test_local_day_uses_offset(self):
        # 22:30 and 23:30 UTC are 23:30 and 00:30 local at UTC+1
        last = datetime(2024, 1, 1, 22, 30, tzinfo=UTC)
        now = datetime(2024, 1, 1, 23, 30, tzinfo=UTC)
        assert need_astro_update(last, now, 0) is False
        assert need_astro_update(last, now, 60) is True


class TestNeedConditionsUpdate:
    def test_never_computed(self):
        assert need_conditions_update(None) is True

    def test_on_grid_after_interval(self):
        last = datetime(2024, 1, 1, 10, 0, tzinfo=UTC)
        now = datetime(2024, 1, 1, 10, 10, tzinfo=UTC)
        assert need_conditions_update(last, now, 5) is True

    def test_off_grid(self):
        last = datetime(2024, 1, 1, 10, 0, tzinfo=UTC)
        now = datetime(2024, 1, 1, 10, 7, tzinfo=UTC)
        assert need_conditions_update(last, now, 5) is False

    def test_exactly_one_interval_is_not_enough(self):
        last = datetime(2024, 1, 1, 10, 0, tzinfo=UTC)
        now = datetime(2024, 1, 1, 10, 5, tzinfo=UTC)
        assert need_conditions_update(last, now, 5) is False

    def test_later_in_grid_minute(self):
        last = datetime(2024, 1, 1, 10, 0, tzinfo=UTC)
        now = datetime(2024, 1, 1, 10, 5, 30, tzinfo=UTC)
        assert need_conditions_update(last, now, 5) is True

    def test_grid_uses_local_minute(self):
        # a half-hour offset keeps the 5-minute grid aligned
        last = datetime(2024, 1, 1, 10, 0, tzinfo=UTC)
        now = datetime(2024, 1, 1, 10, 10, tzinfo=UTC)
        assert need_conditions_update(last, now, 5, 330) is True
        assert need_conditions_update(last, now, 15, 0) is False
