# File: schemas.py
"""Voluptuous schemas for habitflow boundaries.

Stored recurrence rows keep weekday and month-day selections as JSON strings
(e.g. '["Mon","Wed"]'). They are decoded and normalized here, once, into a
typed `RecurrenceRule`. Malformed values are filtered out, never rejected:
a corrupt rule degrades to fewer (or no) repeats.

Also holds the coordinator configuration schema.
"""

from __future__ import annotations

from collections.abc import Mapping
import json
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import voluptuous as vol

from . import const
from .engines.occurrence_engine import RecurrenceRule
from .utils.dt_utils import dt_parse, end_of_local_day

# =============================================================================
# FIELD VALIDATORS
# =============================================================================


def json_list(value: Any) -> list[Any]:
    """Decode a JSON-encoded list; anything unusable becomes an empty list."""
    if value is None or value == "":
        return []
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            const.LOGGER.debug("Dropping undecodable day list: %s", value)
            return []
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    return []


def weekday_set(values: list[Any]) -> frozenset[int]:
    """Map weekday tokens ("Mon", "monday", ...) to weekday indices (0=Mon)."""
    result: set[int] = set()
    for token in values:
        if not isinstance(token, str):
            continue
        index = const.WEEKDAY_TOKENS.get(token.strip().lower())
        if index is None:
            const.LOGGER.debug("Ignoring unknown weekday token: %s", token)
            continue
        result.add(index)
    return frozenset(result)


def month_day_set(values: list[Any]) -> frozenset[int]:
    """Keep day numbers 1..31 (ints or numeric strings)."""
    result: set[int] = set()
    for raw in values:
        if isinstance(raw, bool):
            continue
        try:
            day = int(str(raw).strip())
        except ValueError:
            const.LOGGER.debug("Ignoring non-numeric day of month: %s", raw)
            continue
        if const.MIN_DAY_OF_MONTH <= day <= const.MAX_DAY_OF_MONTH:
            result.add(day)
    return frozenset(result)


def frequency(value: Any) -> str:
    """Lower-case frequency name, defaulting to daily when empty."""
    if not value or not isinstance(value, str):
        return const.DEFAULT_FREQUENCY
    return value.strip().lower()


def positive_interval(value: Any) -> int:
    """Interval of at least 1; unusable values fall back to 1."""
    try:
        interval = int(value)
    except (TypeError, ValueError):
        return const.DEFAULT_INTERVAL
    return max(const.DEFAULT_INTERVAL, interval)


def flag(value: Any) -> bool:
    """Integer/boolean column to bool (1/True → True)."""
    return value in (1, True, "1", "true", "True")


def optional_instant(value: Any) -> Any:
    """Parse a stored time value, None when missing or invalid."""
    return dt_parse(value)


def end_of_day_instant(value: Any) -> Any:
    """Parse an end date and push it to the end of its local day."""
    parsed = dt_parse(value)
    return end_of_local_day(parsed) if parsed is not None else None


def valid_timezone(value: Any) -> str:
    """Validate an IANA timezone name.

    Raises:
        vol.Invalid: If the name is not a known timezone
    """
    if not isinstance(value, str):
        raise vol.Invalid("Timezone must be a string")
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError) as err:
        raise vol.Invalid(f"Unknown timezone: '{value}'") from err
    return value


# =============================================================================
# SCHEMAS
# =============================================================================

RECURRENCE_RECORD_SCHEMA = vol.Schema(
    {
        vol.Optional(const.DATA_RECURRENCE_ID): vol.Any(int, str, None),
        vol.Optional(
            const.DATA_RECURRENCE_TYPE, default=const.DEFAULT_FREQUENCY
        ): frequency,
        vol.Optional(
            const.DATA_RECURRENCE_INTERVAL, default=const.DEFAULT_INTERVAL
        ): positive_interval,
        vol.Optional(const.DATA_RECURRENCE_DAYS_OF_WEEK, default=None): vol.All(
            json_list, weekday_set
        ),
        vol.Optional(const.DATA_RECURRENCE_DAY_OF_MONTH, default=None): vol.All(
            json_list, month_day_set
        ),
        vol.Optional(const.DATA_RECURRENCE_START_DATE, default=None): optional_instant,
        vol.Optional(const.DATA_RECURRENCE_END_DATE, default=None): end_of_day_instant,
        vol.Optional(const.DATA_RECURRENCE_MERGE_STREAK, default=0): flag,
        vol.Optional(const.DATA_RECURRENCE_AUTO_COMPLETE, default=0): flag,
        vol.Optional(
            const.DATA_RECURRENCE_AUTO_COMPLETE_ENABLED_AT, default=None
        ): optional_instant,
    },
    extra=vol.REMOVE_EXTRA,
)

CONFIG_SCHEMA = vol.Schema(
    {
        vol.Optional(
            const.CONF_TIME_ZONE, default=const.DEFAULT_TIME_ZONE
        ): valid_timezone,
        vol.Optional(const.CONF_STORAGE_PATH, default=None): vol.Any(None, str),
    }
)


# =============================================================================
# PARSERS
# =============================================================================


def parse_recurrence(record: Mapping[str, Any] | None) -> RecurrenceRule:
    """Parse a stored recurrence row into a typed rule.

    Never raises: a row that cannot be validated becomes a disabled rule,
    which expands to the base occurrence only.
    """
    if not isinstance(record, Mapping):
        return RecurrenceRule(enabled=False)

    try:
        data = RECURRENCE_RECORD_SCHEMA(dict(record))
    except vol.Invalid as err:
        const.LOGGER.warning(
            "WARNING: Recurrence %s could not be parsed (%s); treating as one-off",
            record.get(const.DATA_RECURRENCE_ID),
            err,
        )
        return RecurrenceRule(
            enabled=False, recurrence_id=record.get(const.DATA_RECURRENCE_ID)
        )

    return RecurrenceRule(
        frequency=data[const.DATA_RECURRENCE_TYPE],
        interval=data[const.DATA_RECURRENCE_INTERVAL],
        days_of_week=data[const.DATA_RECURRENCE_DAYS_OF_WEEK],
        days_of_month=data[const.DATA_RECURRENCE_DAY_OF_MONTH],
        start_date=data[const.DATA_RECURRENCE_START_DATE],
        end_date=data[const.DATA_RECURRENCE_END_DATE],
        merge=data[const.DATA_RECURRENCE_MERGE_STREAK],
        auto_complete=data[const.DATA_RECURRENCE_AUTO_COMPLETE],
        auto_complete_enabled_at=data[const.DATA_RECURRENCE_AUTO_COMPLETE_ENABLED_AT],
        recurrence_id=data.get(const.DATA_RECURRENCE_ID),
    )
