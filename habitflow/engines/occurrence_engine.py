"""Occurrence Engine for habitflow.

Expands a base interval plus a recurrence rule into the concrete intervals
("occurrences") the rule implies, using `dateutil.rrule` for the walk:

- DAILY: every N days, base time-of-day carried forward
- WEEKLY: weekday set, weeks run Monday..Sunday, N-1 weeks skipped in between
- MONTHLY: day-of-month set, every N months; days a month lacks are skipped
- YEARLY: every N years on the base month/day (a Feb 29 base skips
  non-leap years rather than moving to Mar 1)

Occurrences are never stored; they are recomputed on demand from the base
task and its rule.

IMPORTANT: This module must NOT import from managers/ or coordinator.py.
Only import from const.py, type_defs.py, utils and third-party libraries.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from itertools import islice
from typing import TYPE_CHECKING, ClassVar

from dateutil.rrule import DAILY, MO, MONTHLY, WEEKLY, YEARLY, rrule

from .. import const
from ..utils.dt_utils import as_local, as_utc, dt_day_key, dt_parse, dt_parse_day

if TYPE_CHECKING:
    from ..type_defs import RecurrenceId, TaskData


# =============================================================================
# DATA STRUCTURES
# =============================================================================


@dataclass(frozen=True)
class RecurrenceRule:
    """Typed recurrence rule, parsed once from a stored recurrence record.

    Attributes:
        frequency: One of const.FREQUENCY_OPTIONS
        interval: Step between repeats (values below 1 are treated as 1)
        days_of_week: Weekday indices (0=Mon, 6=Sun), used by WEEKLY
        days_of_month: Day numbers 1..31, used by MONTHLY
        start_date: First day of the recurrence as stored, informational
        end_date: Inclusive end boundary; None means no expansion
        enabled: False turns the rule into a single occurrence
        merge: Streak mode, completion counts over the whole span at once
        auto_complete: Mark ended occurrences done automatically
        auto_complete_enabled_at: Instant auto-complete was switched on
        recurrence_id: Owning recurrence record id
    """

    frequency: str = const.DEFAULT_FREQUENCY
    interval: int = const.DEFAULT_INTERVAL
    days_of_week: frozenset[int] = field(default_factory=frozenset)
    days_of_month: frozenset[int] = field(default_factory=frozenset)
    start_date: datetime | None = None
    end_date: datetime | None = None
    enabled: bool = True
    merge: bool = False
    auto_complete: bool = False
    auto_complete_enabled_at: datetime | None = None
    recurrence_id: RecurrenceId | None = None

    @property
    def single_day_auto(self) -> bool:
        """Auto-complete rule whose start and end date fall on one local day.

        Such rules only keep the auto flag of a one-off task, so they are not
        expanded as recurring for conflict checks.
        """
        if not self.auto_complete or self.start_date is None or self.end_date is None:
            return False
        return dt_day_key(self.start_date) == dt_day_key(self.end_date)


@dataclass(frozen=True)
class Occurrence:
    """One concrete interval generated from a rule."""

    start_at: datetime
    end_at: datetime

    @property
    def day_key(self) -> str:
        """Local calendar day (YYYY-MM-DD) the occurrence starts on."""
        return dt_day_key(self.start_at)

    @property
    def duration(self) -> timedelta:
        """Length of the occurrence."""
        return self.end_at - self.start_at


# =============================================================================
# OCCURRENCE ENGINE
# =============================================================================


class OccurrenceEngine:
    """Pure logic engine for recurrence expansion.

    All methods are static - no instance state.
    """

    FREQUENCY_TO_RRULE: ClassVar[dict[str, int]] = {
        const.FREQUENCY_DAILY: DAILY,
        const.FREQUENCY_WEEKLY: WEEKLY,
        const.FREQUENCY_MONTHLY: MONTHLY,
        const.FREQUENCY_YEARLY: YEARLY,
    }

    @staticmethod
    def generate(
        base_start: datetime,
        base_end: datetime | None,
        rule: RecurrenceRule | None,
        limit: int = const.MAX_OCCURRENCES,
    ) -> list[Occurrence]:
        """Generate the ordered occurrences a rule implies.

        Args:
            base_start: Start of the base occurrence (template time-of-day).
            base_end: End of the base occurrence; None means zero duration.
            rule: Recurrence rule, or None for a one-off interval.
            limit: Safety cap on the number of occurrences returned.

        Returns:
            Occurrences in strictly ascending start order, base first.

        Note:
            A disabled rule, a missing end date, or an end date at or before
            the base start yields exactly the base interval.
        """
        base_start = as_local(base_start)
        base_end = base_start if base_end is None else as_local(base_end)

        if (
            rule is None
            or not rule.enabled
            or rule.end_date is None
            or as_local(rule.end_date) <= base_start
        ):
            return [Occurrence(base_start, base_end)]

        duration = max(timedelta(0), base_end - base_start)
        start_local = base_start
        occurrences = [Occurrence(start_local, start_local + duration)]

        recurrence = OccurrenceEngine._build_rrule(start_local, rule)
        if recurrence is None:
            return occurrences

        until = as_local(rule.end_date)
        for candidate in islice(recurrence, limit + 1):
            # rrule drops sub-second parts of dtstart
            candidate = candidate.replace(microsecond=start_local.microsecond)
            if candidate > until:
                break
            if candidate <= start_local:
                # Base already emitted; rrule may yield it again
                continue
            if len(occurrences) >= limit:
                const.LOGGER.warning(
                    "OccurrenceEngine: Occurrence cap (%s) reached for %s rule",
                    limit,
                    rule.frequency,
                )
                break
            occurrences.append(Occurrence(candidate, candidate + duration))

        return occurrences

    @staticmethod
    def planned_occurrences(
        task: TaskData, rule: RecurrenceRule | None
    ) -> list[Occurrence]:
        """Occurrences for a stored task; empty when the task has no start."""
        start = dt_parse(task.get(const.DATA_TASK_START_AT))
        if start is None:
            return []
        end = dt_parse(task.get(const.DATA_TASK_END_AT))
        return OccurrenceEngine.generate(start, end, rule)

    @staticmethod
    def planned_days(task: TaskData, rule: RecurrenceRule | None) -> list[str]:
        """Distinct local day keys of the planned occurrences, in order."""
        days: list[str] = []
        for occurrence in OccurrenceEngine.planned_occurrences(task, rule):
            key = occurrence.day_key
            if key not in days:
                days.append(key)
        return days

    @staticmethod
    def occurrence_on(
        task: TaskData, rule: RecurrenceRule | None, day: date | datetime | str
    ) -> Occurrence | None:
        """Return the planned occurrence starting on a local day, if any."""
        target = dt_parse_day(day)
        if target is None:
            return None
        key = target.isoformat()
        for occurrence in OccurrenceEngine.planned_occurrences(task, rule):
            if occurrence.day_key == key:
                return occurrence
        return None

    @staticmethod
    def to_rrule_string(rule: RecurrenceRule) -> str:
        """Generate an RFC 5545 RRULE string for calendar export.

        Returns:
            RRULE string (e.g., "FREQ=WEEKLY;INTERVAL=2;BYDAY=MO,WE")
            or empty string if the rule does not repeat.
        """
        if not rule.enabled or rule.frequency not in OccurrenceEngine.FREQUENCY_TO_RRULE:
            return ""

        parts = [
            f"FREQ={rule.frequency.upper()}",
            f"INTERVAL={max(1, rule.interval)}",
        ]
        weekdays = OccurrenceEngine._valid_weekdays(rule.days_of_week)
        month_days = OccurrenceEngine._valid_month_days(rule.days_of_month)
        if rule.frequency == const.FREQUENCY_WEEKLY and weekdays:
            parts.append(
                "BYDAY=" + ",".join(const.WEEKDAY_RRULE_CODES[d] for d in weekdays)
            )
        if rule.frequency == const.FREQUENCY_MONTHLY and month_days:
            parts.append("BYMONTHDAY=" + ",".join(str(d) for d in month_days))
        if rule.end_date is not None:
            parts.append("UNTIL=" + as_utc(rule.end_date).strftime("%Y%m%dT%H%M%SZ"))
        return ";".join(parts)

    # =========================================================================
    # Private helpers
    # =========================================================================

    @staticmethod
    def _build_rrule(start_local: datetime, rule: RecurrenceRule) -> rrule | None:
        """Build the dateutil rrule walking forward from the base start."""
        frequency = OccurrenceEngine.FREQUENCY_TO_RRULE.get(rule.frequency)
        if frequency is None:
            const.LOGGER.warning(
                "OccurrenceEngine: Unknown frequency '%s', no repeats generated",
                rule.frequency,
            )
            return None

        interval = max(1, rule.interval or 1)
        until = as_local(rule.end_date) if rule.end_date else None

        if frequency == WEEKLY:
            weekdays = OccurrenceEngine._valid_weekdays(rule.days_of_week) or [
                start_local.weekday()
            ]
            return rrule(
                WEEKLY,
                interval=interval,
                dtstart=start_local,
                until=until,
                byweekday=weekdays,
                wkst=MO,
            )

        if frequency == MONTHLY:
            month_days = OccurrenceEngine._valid_month_days(rule.days_of_month) or [
                start_local.day
            ]
            # bymonthday skips months that lack a day (no clamping)
            return rrule(
                MONTHLY,
                interval=interval,
                dtstart=start_local,
                until=until,
                bymonthday=month_days,
            )

        # DAILY and YEARLY keep the base date pattern. A Feb 29 base repeats
        # only in leap years; it never rolls over to Mar 1
        return rrule(
            frequency,  # type: ignore[arg-type]
            interval=interval,
            dtstart=start_local,
            until=until,
        )

    @staticmethod
    def _valid_weekdays(days: frozenset[int]) -> list[int]:
        return sorted(d for d in days if isinstance(d, int) and 0 <= d <= 6)

    @staticmethod
    def _valid_month_days(days: frozenset[int]) -> list[int]:
        return sorted(
            d
            for d in days
            if isinstance(d, int)
            and const.MIN_DAY_OF_MONTH <= d <= const.MAX_DAY_OF_MONTH
        )
