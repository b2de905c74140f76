# File: utils/dt_utils.py
"""Date and time utilities for Family Economy.

Pure Python date/time functions with ZERO Home Assistant dependencies.
All functions here can be unit tested without Home Assistant mocking.

Period functions take the weekly reset weekday (0 = Sunday ... 6 = Saturday)
and an optional ``now`` so callers and tests can evaluate them against a fixed
clock. Calendar dates are always evaluated in DEFAULT_TIME_ZONE.

Functions:
    - dt_now_local / dt_now_utc / dt_now_iso / dt_today_iso: Clock helpers
    - as_local / start_of_local_day: Timezone conversion
    - dt_parse: Normalize str/date/datetime to an aware datetime
    - dt_start_of_today / dt_start_of_week / dt_end_of_week: Period bounds
    - is_today / is_yesterday / is_this_week / is_current_period: Membership
    - needs_reset / next_reset_time / time_until_reset: Reset scheduling
    - days_between / period_label: Display helpers
"""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta
import logging
from zoneinfo import ZoneInfo

# Third-party date utilities (no HA dependency)
from dateutil.relativedelta import FR, MO, SA, SU, TH, TU, WE, relativedelta

# Module-level logger (no HA dependency)
_LOGGER = logging.getLogger(__name__)

# ==============================================================================
# Constants (local copies to avoid circular imports)
# These mirror const.py values but are defined locally for purity.
# ==============================================================================

DEFAULT_TIME_ZONE: ZoneInfo = ZoneInfo("UTC")

RECURRENCE_DAILY = "daily"
RECURRENCE_WEEKLY = "weekly"

DEFAULT_WEEKLY_RESET_DAY = 0  # Sunday

# Indexed by Python weekday numbering (Monday = 0)
_RELATIVEDELTA_WEEKDAYS = (MO, TU, WE, TH, FR, SA, SU)

DAYS_PER_WEEK = 7


# ==============================================================================
# Timezone Configuration
# ==============================================================================


def set_default_timezone(tz: ZoneInfo) -> None:
    """Set the default timezone for all dt_utils functions.

    Call this during integration setup to configure the user's timezone.
    """
    global DEFAULT_TIME_ZONE  # noqa: PLW0603
    DEFAULT_TIME_ZONE = tz


def get_default_timezone() -> ZoneInfo:
    """Get the current default timezone."""
    return DEFAULT_TIME_ZONE


# ==============================================================================
# Current Date/Time Functions
# ==============================================================================


def dt_now_local(tz: ZoneInfo | None = None) -> datetime:
    """Return the current datetime in local timezone (timezone-aware)."""
    return datetime.now(tz or DEFAULT_TIME_ZONE)


def dt_now_utc() -> datetime:
    """Return the current datetime in UTC (timezone-aware)."""
    return datetime.now(UTC)


def dt_now_iso(now: datetime | None = None) -> str:
    """Return the given (or current) moment as an ISO 8601 string."""
    return (now or dt_now_local()).isoformat()


def dt_today_iso(now: datetime | None = None) -> str:
    """Return the local calendar date of ``now`` as "YYYY-MM-DD"."""
    return as_local(now or dt_now_local()).date().isoformat()


# ==============================================================================
# Timezone Conversion and Parsing
# ==============================================================================


def as_local(dt_obj: datetime, tz: ZoneInfo | None = None) -> datetime:
    """Convert a datetime to local timezone. Naive input is treated as UTC."""
    tz_info = tz or DEFAULT_TIME_ZONE
    if dt_obj.tzinfo is None:
        dt_obj = dt_obj.replace(tzinfo=UTC)
    return dt_obj.astimezone(tz_info)


def start_of_local_day(dt_obj: datetime, tz: ZoneInfo | None = None) -> datetime:
    """Get local midnight (00:00:00) of the day containing ``dt_obj``."""
    local_dt = as_local(dt_obj, tz)
    return local_dt.replace(hour=0, minute=0, second=0, microsecond=0)


def dt_parse(dt_input: str | date | datetime | None) -> datetime | None:
    """Normalize a string, date or datetime into an aware datetime.

    Naive values are interpreted in DEFAULT_TIME_ZONE; dates become local
    midnight. Returns None for empty or unparsable input.

    Example:
        >>> dt_parse("2026-01-18")
        datetime.datetime(2026, 1, 18, 0, 0, tzinfo=zoneinfo.ZoneInfo(key='UTC'))
    """
    if not dt_input:
        return None

    result: datetime
    if isinstance(dt_input, datetime):
        result = dt_input
    elif isinstance(dt_input, date):
        result = datetime.combine(dt_input, datetime.min.time())
    elif isinstance(dt_input, str):
        try:
            result = datetime.fromisoformat(dt_input)
        except ValueError:
            _LOGGER.debug("Unparsable datetime string '%s'", dt_input)
            return None
    else:
        return None

    if result.tzinfo is None:
        result = result.replace(tzinfo=DEFAULT_TIME_ZONE)
    return result


# ==============================================================================
# Period Bounds
# ==============================================================================


def weekday_to_python(reset_day: int) -> int:
    """Map the Sunday = 0 reset day numbering to Python's Monday = 0.

    Example:
        weekday_to_python(0) → 6 (Sunday)
        weekday_to_python(1) → 0 (Monday)
    """
    return (reset_day - 1) % DAYS_PER_WEEK


def dt_start_of_today(now: datetime | None = None) -> datetime:
    """Local midnight of the current day."""
    return start_of_local_day(now or dt_now_local())


def dt_start_of_week(
    reset_day: int = DEFAULT_WEEKLY_RESET_DAY, now: datetime | None = None
) -> datetime:
    """Local midnight of the most recent ``reset_day`` (today if it is that day).

    Example:
        Reset day Sunday (0), now Wednesday 2026-01-21 15:00
        → Sunday 2026-01-18 00:00
    """
    target = _RELATIVEDELTA_WEEKDAYS[weekday_to_python(reset_day)]
    return dt_start_of_today(now) + relativedelta(weekday=target(-1))


def dt_end_of_week(
    reset_day: int = DEFAULT_WEEKLY_RESET_DAY, now: datetime | None = None
) -> datetime:
    """Start of the next week (exclusive upper bound of the current week)."""
    return dt_start_of_week(reset_day, now) + timedelta(days=DAYS_PER_WEEK)


# ==============================================================================
# Period Membership
# ==============================================================================


def is_today(value: str | date | datetime | None, now: datetime | None = None) -> bool:
    """Return True when ``value`` falls on the same local calendar date as now."""
    parsed = dt_parse(value)
    if parsed is None:
        return False
    return as_local(parsed).date() == as_local(now or dt_now_local()).date()


def is_yesterday(
    value: str | date | datetime | None, now: datetime | None = None
) -> bool:
    """Return True when ``value`` falls on the local calendar date before now."""
    parsed = dt_parse(value)
    if parsed is None:
        return False
    yesterday = as_local(now or dt_now_local()).date() - timedelta(days=1)
    return as_local(parsed).date() == yesterday


def is_this_week(
    value: str | date | datetime | None,
    reset_day: int = DEFAULT_WEEKLY_RESET_DAY,
    now: datetime | None = None,
) -> bool:
    """Return True when ``value`` lies in [week start, next week start)."""
    parsed = dt_parse(value)
    if parsed is None:
        return False
    week_start = dt_start_of_week(reset_day, now)
    return week_start <= parsed < week_start + timedelta(days=DAYS_PER_WEEK)


def is_current_period(
    value: str | date | datetime | None,
    recurrence: str,
    reset_day: int = DEFAULT_WEEKLY_RESET_DAY,
    now: datetime | None = None,
) -> bool:
    """Return True when ``value`` belongs to the current daily/weekly period.

    Unknown recurrences and missing timestamps are never in the current period.
    """
    if recurrence == RECURRENCE_DAILY:
        return is_today(value, now)
    if recurrence == RECURRENCE_WEEKLY:
        return is_this_week(value, reset_day, now)
    return False


# ==============================================================================
# Reset Scheduling
# ==============================================================================


def needs_reset(
    last_reset: str | datetime | None,
    recurrence: str,
    reset_day: int = DEFAULT_WEEKLY_RESET_DAY,
    now: datetime | None = None,
) -> bool:
    """Return True when ``last_reset`` predates the start of the current period.

    A missing or unparsable ``last_reset`` always needs a reset.
    """
    parsed = dt_parse(last_reset)
    if parsed is None:
        return True

    if recurrence == RECURRENCE_DAILY:
        return parsed < dt_start_of_today(now)
    if recurrence == RECURRENCE_WEEKLY:
        return parsed < dt_start_of_week(reset_day, now)
    return False


def next_reset_time(
    recurrence: str,
    reset_day: int = DEFAULT_WEEKLY_RESET_DAY,
    now: datetime | None = None,
) -> datetime:
    """Return when the current period of ``recurrence`` ends."""
    current = now or dt_now_local()
    if recurrence == RECURRENCE_DAILY:
        return dt_start_of_today(current) + timedelta(days=1)
    if recurrence == RECURRENCE_WEEKLY:
        return dt_end_of_week(reset_day, current)
    return current


def time_until_reset(
    recurrence: str,
    reset_day: int = DEFAULT_WEEKLY_RESET_DAY,
    now: datetime | None = None,
) -> timedelta:
    """Return the time remaining until the next reset (never negative)."""
    current = now or dt_now_local()
    remaining = next_reset_time(recurrence, reset_day, current) - current
    return max(remaining, timedelta(0))


# ==============================================================================
# Display Helpers
# ==============================================================================


def days_between(a: str | datetime, b: str | datetime) -> int:
    """Whole days between two moments, ignoring order. Unparsable → 0."""
    first = dt_parse(a)
    second = dt_parse(b)
    if first is None or second is None:
        return 0
    return abs(second - first) // timedelta(days=1)


def period_label(recurrence: str) -> str:
    """Short label for the current period of ``recurrence``."""
    return "Today" if recurrence == RECURRENCE_DAILY else "This Week"
