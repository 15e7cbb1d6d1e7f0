# File: utils/dt_utils.py
"""Date and time utilities for habitflow.

Pure Python date/time functions shared by the engines and managers.
Everything is timezone-aware: naive inputs are read in the configured local
timezone, and "calendar day" always means the local calendar day.

Functions:
    - set_default_timezone / get_default_timezone: Local timezone configuration
    - dt_now_utc / dt_now_local / dt_today_local: Current time helpers
    - as_utc / as_local: Timezone conversion
    - start_of_local_day / end_of_local_day: Day boundaries (DST-safe)
    - dt_parse: Normalize ISO strings, epoch numbers, dates and datetimes
    - dt_parse_day: Normalize day inputs to a `datetime.date`
    - dt_to_epoch_ms / dt_from_epoch_ms: Epoch millisecond conversion
    - dt_day_key: Local `YYYY-MM-DD` key for a datetime
    - dt_iter_days: Inclusive local day iteration
    - dt_same_local_day: Calendar-day comparison
    - dt_format_short / dt_format_time / dt_format_date: Display formatting
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC, date, datetime, time, timedelta
import logging
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

# Module-level logger
_LOGGER = logging.getLogger(__name__)

# ==============================================================================
# Constants
# ==============================================================================

# Default timezone - can be overridden by caller
DEFAULT_TIME_ZONE: ZoneInfo = ZoneInfo("UTC")

# Epoch numbers below this magnitude are seconds, above are milliseconds
EPOCH_SECONDS_THRESHOLD = 1e12

MILLIS_PER_SECOND = 1000


# ==============================================================================
# Timezone Configuration
# ==============================================================================


def set_default_timezone(tz: ZoneInfo | str) -> None:
    """Set the default timezone for all dt_utils functions.

    Args:
        tz: ZoneInfo object or IANA name (e.g. "Asia/Ho_Chi_Minh")

    Note:
        Unknown names are logged and leave the current timezone in place.
    """
    global DEFAULT_TIME_ZONE  # noqa: PLW0603
    if isinstance(tz, str):
        try:
            tz = ZoneInfo(tz)
        except (ZoneInfoNotFoundError, ValueError):
            _LOGGER.warning("Unknown timezone '%s', keeping %s", tz, DEFAULT_TIME_ZONE)
            return
    DEFAULT_TIME_ZONE = tz


def get_default_timezone() -> ZoneInfo:
    """Get the current default timezone."""
    return DEFAULT_TIME_ZONE


# ==============================================================================
# Current Date/Time Functions
# ==============================================================================


def dt_now_utc() -> datetime:
    """Return the current datetime in UTC (timezone-aware)."""
    return datetime.now(UTC)


def dt_now_local(tz: ZoneInfo | None = None) -> datetime:
    """Return the current datetime in local timezone (timezone-aware)."""
    return datetime.now(tz or DEFAULT_TIME_ZONE)


def dt_today_local(tz: ZoneInfo | None = None) -> date:
    """Return today's date in local timezone."""
    return dt_now_local(tz).date()


# ==============================================================================
# Timezone Conversion
# ==============================================================================


def as_utc(dt_obj: datetime) -> datetime:
    """Convert a datetime to UTC, reading naive values as local time."""
    if dt_obj.tzinfo is None:
        dt_obj = dt_obj.replace(tzinfo=DEFAULT_TIME_ZONE)
    return dt_obj.astimezone(UTC)


def as_local(dt_obj: datetime, tz: ZoneInfo | None = None) -> datetime:
    """Convert a datetime to local timezone, reading naive values as local time."""
    tz_info = tz or DEFAULT_TIME_ZONE
    if dt_obj.tzinfo is None:
        return dt_obj.replace(tzinfo=tz_info)
    return dt_obj.astimezone(tz_info)


def start_of_local_day(
    dt_obj: datetime | date, tz: ZoneInfo | None = None
) -> datetime:
    """Get 00:00:00 of the local calendar day containing `dt_obj`.

    Built with `datetime.combine` on the local date so a DST change earlier in
    the day does not shift the result.
    """
    tz_info = tz or DEFAULT_TIME_ZONE
    day = as_local(dt_obj, tz_info).date() if isinstance(dt_obj, datetime) else dt_obj
    return datetime.combine(day, time.min, tzinfo=tz_info)


def end_of_local_day(dt_obj: datetime | date, tz: ZoneInfo | None = None) -> datetime:
    """Get 23:59:59.999999 of the local calendar day containing `dt_obj`."""
    tz_info = tz or DEFAULT_TIME_ZONE
    day = as_local(dt_obj, tz_info).date() if isinstance(dt_obj, datetime) else dt_obj
    return datetime.combine(day, time.max, tzinfo=tz_info)


# ==============================================================================
# Parsing
# ==============================================================================


def dt_parse(value: object, tz: ZoneInfo | None = None) -> datetime | None:
    """Normalize a stored time value into an aware datetime.

    Accepts:
    - datetime (naive values are read in local time)
    - date (local midnight)
    - ISO 8601 strings, with or without time ("2025-01-01", "2025-01-01T09:00")
    - epoch numbers: seconds when below 1e12 in magnitude, otherwise milliseconds

    Returns:
        Aware datetime, or None when the value is empty or unparseable.

    Example:
        dt_parse(1735722000000) -> datetime(2025, 1, 1, 9, 0, tzinfo=UTC)
    """
    tz_info = tz or DEFAULT_TIME_ZONE

    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=tz_info)

    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=tz_info)

    if isinstance(value, (int, float)):
        if value != value:  # NaN
            return None
        if abs(value) < EPOCH_SECONDS_THRESHOLD:
            value = value * MILLIS_PER_SECOND
        return dt_from_epoch_ms(value)

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            result = datetime.fromisoformat(text)
        except ValueError:
            _LOGGER.debug("Unparseable time value: %s", value)
            return None
        return result if result.tzinfo else result.replace(tzinfo=tz_info)

    return None


def dt_parse_day(value: object, tz: ZoneInfo | None = None) -> date | None:
    """Normalize a day input (date, datetime, day key, epoch) to a local date."""
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    parsed = dt_parse(value, tz)
    if parsed is None:
        return None
    return as_local(parsed, tz).date()


# ==============================================================================
# Epoch / Keys
# ==============================================================================


def dt_to_epoch_ms(dt_obj: datetime) -> int:
    """Convert an aware datetime into integer epoch milliseconds."""
    return int(round(as_utc(dt_obj).timestamp() * MILLIS_PER_SECOND))


def dt_from_epoch_ms(millis: int | float) -> datetime:
    """Convert epoch milliseconds into an aware UTC datetime."""
    return datetime.fromtimestamp(millis / MILLIS_PER_SECOND, tz=UTC)


def dt_day_key(value: datetime | date, tz: ZoneInfo | None = None) -> str:
    """Return the local calendar day key (YYYY-MM-DD) for a datetime or date."""
    if isinstance(value, datetime):
        return as_local(value, tz).date().isoformat()
    return value.isoformat()


def dt_iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every calendar day from `start` to `end`, both inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def dt_same_local_day(
    first: datetime, second: datetime, tz: ZoneInfo | None = None
) -> bool:
    """Check whether two instants fall on the same local calendar day."""
    return as_local(first, tz).date() == as_local(second, tz).date()


# ==============================================================================
# Formatting
# ==============================================================================


def dt_format_time(dt_obj: datetime) -> str:
    """Format as local "HH:MM"."""
    return as_local(dt_obj).strftime("%H:%M")


def dt_format_date(dt_obj: datetime) -> str:
    """Format as local "DD/MM/YYYY"."""
    return as_local(dt_obj).strftime("%d/%m/%Y")


def dt_format_short(dt_obj: datetime) -> str:
    """Format as local "HH:MM DD/MM/YYYY" for conflict messages."""
    return f"{dt_format_time(dt_obj)} {dt_format_date(dt_obj)}"
