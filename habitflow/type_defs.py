"""Type definitions for records consumed by habitflow.

Tasks, recurrences and schedule blocks are owned by external CRUD layers.
These TypedDicts describe the fields habitflow reads; they are static
analysis only and nothing here is enforced at runtime. Time fields arrive
as ISO strings, epoch numbers or datetimes and are normalized with
`utils.dt_utils.dt_parse`.

Typed values produced by habitflow itself (rules, occurrences, reports)
are dataclasses living next to the engine that builds them.

IMPORTANT: This file must NOT import from engines/, managers/ or
coordinator.py to avoid circular dependencies.
"""

from datetime import datetime
from typing import Any, NotRequired, TypedDict

# =============================================================================
# Type Aliases (for readability)
# =============================================================================

TaskId = int | str
RecurrenceId = int | str
DayKey = str  # Local calendar day "2025-01-18"
EpochMillis = int
TimeValue = str | int | float | datetime | None


# =============================================================================
# External Records
# =============================================================================


class TaskData(TypedDict):
    """A task as stored by the task CRUD layer."""

    id: TaskId
    title: NotRequired[str]
    start_at: NotRequired[TimeValue]
    end_at: NotRequired[TimeValue]
    recurrence_id: NotRequired[RecurrenceId | None]
    status: NotRequired[str]  # pending | in-progress | completed
    completed_at: NotRequired[str | None]
    completion_status: NotRequired[str | None]
    completion_diff_minutes: NotRequired[int | None]


class RecurrenceData(TypedDict, total=False):
    """A recurrence row as stored by the recurrence CRUD layer.

    `days_of_week` and `day_of_month` may still be JSON-encoded strings
    (e.g. '["Mon","Wed"]'); they are decoded once by `schemas.py`.
    """

    id: RecurrenceId
    type: str  # daily | weekly | monthly | yearly
    interval: int
    days_of_week: str | list[str]
    day_of_month: str | list[str | int]
    start_date: TimeValue
    end_date: TimeValue
    merge_streak: int | bool
    auto_complete_expired: int | bool
    auto_complete_enabled_at: TimeValue


class ScheduleBlockData(TypedDict):
    """A fixed timetable entry (class, shift, ...) that always blocks time."""

    id: NotRequired[Any]
    subject: NotRequired[str]
    start_at: TimeValue
    end_at: TimeValue


class TaskUpdates(TypedDict, total=False):
    """Field updates a caller should persist on a task."""

    status: str
    completed_at: str
    completion_status: str
    completion_diff_minutes: int


# =============================================================================
# Collection Type Aliases
# =============================================================================

CompletionTimes = dict[DayKey, EpochMillis]
