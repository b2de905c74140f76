"""Tests for dt_utils - period bounds and reset scheduling.

All times are evaluated in UTC (see the autouse fixture in conftest).
Reference point: Wednesday 2026-01-21 15:00, weekly reset day Sunday (0).
"""

from datetime import UTC, date, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from custom_components.family_economy.utils import dt_utils
from custom_components.family_economy.utils.dt_utils import (
    RECURRENCE_DAILY,
    RECURRENCE_WEEKLY,
    days_between,
    dt_end_of_week,
    dt_parse,
    dt_start_of_week,
    dt_today_iso,
    is_current_period,
    is_this_week,
    is_today,
    is_yesterday,
    needs_reset,
    next_reset_time,
    period_label,
    time_until_reset,
    weekday_to_python,
)

from tests.conftest import WEDNESDAY_AFTERNOON as NOW

# =============================================================================
# PARSING
# =============================================================================


class TestParse:
    """dt_parse normalization."""

    def test_iso_string_with_offset(self) -> None:
        parsed = dt_parse("2026-01-21T10:00:00+00:00")
        assert parsed == datetime(2026, 1, 21, 10, 0, tzinfo=UTC)

    def test_naive_string_uses_default_zone(self) -> None:
        parsed = dt_parse("2026-01-21T10:00:00")
        assert parsed is not None
        assert parsed.tzinfo == ZoneInfo("UTC")

    def test_date_becomes_midnight(self) -> None:
        parsed = dt_parse(date(2026, 1, 18))
        assert parsed == datetime(2026, 1, 18, 0, 0, tzinfo=UTC)

    @pytest.mark.parametrize("value", [None, "", "not a date", 42])
    def test_bad_input_returns_none(self, value) -> None:
        assert dt_parse(value) is None

    def test_today_iso(self) -> None:
        assert dt_today_iso(NOW) == "2026-01-21"


# =============================================================================
# WEEK BOUNDS
# =============================================================================


class TestWeekBounds:
    """Week start respects the configured reset day."""

    @pytest.mark.parametrize(
        ("reset_day", "python_weekday"),
        [(0, 6), (1, 0), (3, 2), (6, 5)],
    )
    def test_weekday_to_python(self, reset_day, python_weekday) -> None:
        """Sunday-first reset days map onto date.weekday() numbering."""
        assert weekday_to_python(reset_day) == python_weekday
        assert dt_start_of_week(reset_day, NOW).weekday() == python_weekday

    def test_sunday_reset(self) -> None:
        assert dt_start_of_week(0, NOW) == datetime(2026, 1, 18, tzinfo=UTC)

    def test_reset_day_is_today(self) -> None:
        """On the reset day itself the week starts at today's midnight."""
        assert dt_start_of_week(3, NOW) == datetime(2026, 1, 21, tzinfo=UTC)

    def test_reset_day_later_in_week(self) -> None:
        """A Thursday reset means the current week began last Thursday."""
        assert dt_start_of_week(4, NOW) == datetime(2026, 1, 15, tzinfo=UTC)

    def test_end_of_week(self) -> None:
        assert dt_end_of_week(0, NOW) == datetime(2026, 1, 25, tzinfo=UTC)

    def test_local_zone_changes_the_date(self) -> None:
        """Week bounds follow the configured local zone."""
        dt_utils.set_default_timezone(ZoneInfo("Pacific/Auckland"))
        # 2026-01-24 13:00 UTC is already Sunday 02:00 in Auckland
        now = datetime(2026, 1, 24, 13, 0, tzinfo=UTC)
        start = dt_start_of_week(0, now)
        assert start.date() == date(2026, 1, 25)


# =============================================================================
# PERIOD MEMBERSHIP
# =============================================================================


class TestMembership:
    """is_today / is_yesterday / is_this_week / is_current_period."""

    def test_is_today(self) -> None:
        assert is_today("2026-01-21T00:00:01+00:00", NOW)
        assert not is_today("2026-01-20T23:59:59+00:00", NOW)
        assert not is_today(None, NOW)

    def test_is_yesterday(self) -> None:
        assert is_yesterday("2026-01-20T08:00:00+00:00", NOW)
        assert not is_yesterday("2026-01-19T08:00:00+00:00", NOW)

    def test_is_this_week(self) -> None:
        assert is_this_week("2026-01-18T00:00:00+00:00", 0, NOW)
        assert not is_this_week("2026-01-17T23:59:59+00:00", 0, NOW)

    def test_current_period_dispatch(self) -> None:
        monday = "2026-01-19T12:00:00+00:00"
        assert not is_current_period(monday, RECURRENCE_DAILY, 0, NOW)
        assert is_current_period(monday, RECURRENCE_WEEKLY, 0, NOW)

    def test_unknown_recurrence(self) -> None:
        assert not is_current_period(NOW, "monthly", 0, NOW)


# =============================================================================
# RESET SCHEDULING
# =============================================================================


class TestResetScheduling:
    """needs_reset and the countdown helpers."""

    def test_missing_last_reset_needs_reset(self) -> None:
        assert needs_reset(None, RECURRENCE_DAILY, 0, NOW)

    def test_daily(self) -> None:
        assert needs_reset("2026-01-20T23:00:00+00:00", RECURRENCE_DAILY, 0, NOW)
        assert not needs_reset("2026-01-21T00:30:00+00:00", RECURRENCE_DAILY, 0, NOW)

    def test_weekly(self) -> None:
        assert needs_reset("2026-01-17T12:00:00+00:00", RECURRENCE_WEEKLY, 0, NOW)
        assert not needs_reset("2026-01-18T12:00:00+00:00", RECURRENCE_WEEKLY, 0, NOW)

    def test_weekly_after_eight_days(self) -> None:
        """A reset stamped now is due again after eight days, not after one hour."""
        stamp = NOW.isoformat()
        assert not needs_reset(
            stamp, RECURRENCE_WEEKLY, 0, NOW + timedelta(hours=1)
        )
        assert needs_reset(stamp, RECURRENCE_WEEKLY, 0, NOW + timedelta(days=8))

    def test_unknown_recurrence_never_resets(self) -> None:
        assert not needs_reset("2020-01-01T00:00:00+00:00", "yearly", 0, NOW)

    def test_next_reset_and_countdown(self) -> None:
        assert next_reset_time(RECURRENCE_DAILY, 0, NOW) == datetime(
            2026, 1, 22, tzinfo=UTC
        )
        assert time_until_reset(RECURRENCE_DAILY, 0, NOW) == timedelta(hours=9)
        assert time_until_reset(RECURRENCE_WEEKLY, 0, NOW) == timedelta(
            days=3, hours=9
        )


# =============================================================================
# DISPLAY
# =============================================================================


def test_days_between() -> None:
    """Whole days ignoring order; unparsable input gives 0."""
    assert days_between("2026-01-18T00:00:00+00:00", NOW) == 3
    assert days_between(NOW, "2026-01-18T00:00:00+00:00") == 3
    assert days_between("garbage", NOW) == 0


def test_period_label() -> None:
    assert period_label(RECURRENCE_DAILY) == "Today"
    assert period_label(RECURRENCE_WEEKLY) == "This Week"
