"""Conflict Engine - time-range conflict detection.

Pure query logic for:
- Half-open overlap checks between a candidate interval and existing items
- Expanding a recurring candidate and reporting conflicts per occurrence
- Expanding recurring neighbors so their future occurrences are checked too
- The end-after-start validation surfaced to task forms

Existing items come from three pools: one-off tasks, occurrences of other
recurring tasks, and fixed schedule blocks. Expired and completed items do
not block new bookings; schedule blocks always do.

IMPORTANT: This module must NOT import from managers/ or coordinator.py.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

from .. import const
from ..utils.dt_utils import (
    as_local,
    dt_format_date,
    dt_format_short,
    dt_format_time,
    dt_now_utc,
    dt_parse,
    dt_same_local_day,
)
from .occurrence_engine import Occurrence, OccurrenceEngine, RecurrenceRule

if TYPE_CHECKING:
    from ..type_defs import RecurrenceId, ScheduleBlockData, TaskData


# =============================================================================
# REPORT DATA STRUCTURES
# =============================================================================


def _format_span(start: datetime, end: datetime) -> str:
    """Format "HH:MM - HH:MM DD/MM/YYYY" or full stamps across days."""
    if dt_same_local_day(start, end):
        return f"{dt_format_time(start)} - {dt_format_time(end)} {dt_format_date(start)}"
    return f"{dt_format_short(start)} - {dt_format_short(end)}"


@dataclass(frozen=True)
class ConflictItem:
    """An existing item that overlaps a candidate interval.

    Attributes:
        kind: CONFLICT_KIND_TASK, CONFLICT_KIND_RECURRING_TASK or CONFLICT_KIND_SCHEDULE
        item_id: Task or schedule block id
        title: Task title or schedule subject
        start_at: Start of the blocking interval
        end_at: End of the blocking interval
    """

    kind: str
    item_id: Any
    title: str
    start_at: datetime
    end_at: datetime

    def describe(self) -> str:
        """Human-readable bullet for conflict dialogs."""
        if self.kind == const.CONFLICT_KIND_SCHEDULE:
            name = f"• {const.LABEL_SCHEDULE} {self.title}"
        elif self.kind == const.CONFLICT_KIND_RECURRING_TASK:
            name = f"• {self.title} {const.LABEL_RECURRING}"
            if dt_same_local_day(self.start_at, self.end_at):
                return (
                    f"{name}\n  {const.LABEL_TIME}: "
                    f"{_format_span(self.start_at, self.end_at)}"
                )
        else:
            name = f"• {self.title}"
        return (
            f"{name}\n"
            f"  {const.LABEL_START}: {dt_format_short(self.start_at)}\n"
            f"  {const.LABEL_END}: {dt_format_short(self.end_at)}"
        )


@dataclass(frozen=True)
class OccurrenceConflict:
    """Conflicts of a single candidate occurrence."""

    occurrence: Occurrence
    items: list[ConflictItem]

    @property
    def head(self) -> str:
        """Header line naming the occurrence."""
        return (
            f"{const.LABEL_OCCURRENCE}: "
            f"{_format_span(self.occurrence.start_at, self.occurrence.end_at)}"
        )

    def describe(self) -> str:
        """Header plus one bullet per colliding item."""
        return "\n".join([self.head, *(item.describe() for item in self.items)])


@dataclass
class ConflictReport:
    """Result of a conflict query, grouped per candidate occurrence."""

    blocks: list[OccurrenceConflict] = field(default_factory=list)
    recurring: bool = False

    @property
    def has_conflict(self) -> bool:
        """True when at least one occurrence collides with something."""
        return bool(self.blocks)

    @property
    def items(self) -> list[ConflictItem]:
        """All colliding items, flattened (may repeat across occurrences)."""
        return [item for block in self.blocks for item in block.items]

    @property
    def message(self) -> str:
        """Human-readable summary; per-occurrence blocks for recurring candidates."""
        if not self.blocks:
            return ""
        if self.recurring:
            return "\n\n".join(block.describe() for block in self.blocks)
        return "\n".join(item.describe() for item in self.items)


# =============================================================================
# CONFLICT ENGINE
# =============================================================================


class ConflictEngine:
    """Pure logic engine for conflict detection.

    All methods are static - no instance state.
    """

    @staticmethod
    def overlaps(
        start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime
    ) -> bool:
        """Half-open overlap test: touching intervals do not conflict."""
        return start_a < end_b and end_a > start_b

    @staticmethod
    def validate_task_time(
        start: datetime | None, end: datetime | None
    ) -> str | None:
        """Return the rejection message when end is not after start.

        Returns:
            Error message, or None when the ordering is valid or incomplete.
        """
        if start is None or end is None:
            return None
        if end <= start:
            return const.MESSAGE_END_BEFORE_START
        return None

    @staticmethod
    def check_conflicts(
        candidate_start: datetime,
        candidate_end: datetime,
        tasks: Iterable[TaskData],
        schedule_blocks: Iterable[ScheduleBlockData],
        exclude_id: Any = None,
        *,
        rule: RecurrenceRule | None = None,
        recurrences: Mapping[RecurrenceId, RecurrenceRule] | None = None,
        completed_days: Callable[[RecurrenceId], set[str]] | None = None,
        now: datetime | None = None,
    ) -> ConflictReport:
        """Report existing items that overlap the candidate.

        Args:
            candidate_start: Start of the candidate (base occurrence if recurring).
            candidate_end: End of the candidate.
            tasks: Existing tasks.
            schedule_blocks: Fixed schedule blocks, always checked.
            exclude_id: Id of the task being edited.
            rule: Candidate's own recurrence rule; expanded when given.
            recurrences: Parsed rules of existing tasks, by recurrence id. Tasks
                         whose rule is found here are expanded into occurrences.
            completed_days: Lookup of completed day keys per recurrence id;
                            completed neighbor occurrences never block.
            now: Reference instant for expiry (defaults to current time).

        Returns:
            ConflictReport with one block per conflicting candidate occurrence.
        """
        reference = as_local(now) if now else dt_now_utc()
        pool = ConflictEngine.collect_existing(
            tasks,
            schedule_blocks,
            exclude_id,
            recurrences=recurrences,
            completed_days=completed_days,
            now=reference,
        )

        candidates = (
            OccurrenceEngine.generate(candidate_start, candidate_end, rule)
            if rule is not None
            else [Occurrence(as_local(candidate_start), as_local(candidate_end))]
        )

        report = ConflictReport(recurring=rule is not None)
        for occurrence in candidates:
            hits = [
                item
                for item in pool
                if ConflictEngine.overlaps(
                    occurrence.start_at, occurrence.end_at, item.start_at, item.end_at
                )
            ]
            if hits:
                report.blocks.append(OccurrenceConflict(occurrence, hits))

        if report.has_conflict:
            const.LOGGER.debug(
                "ConflictEngine: %s of %s candidate occurrence(s) conflict",
                len(report.blocks),
                len(candidates),
            )
        return report

    @staticmethod
    def collect_existing(
        tasks: Iterable[TaskData],
        schedule_blocks: Iterable[ScheduleBlockData],
        exclude_id: Any = None,
        *,
        recurrences: Mapping[RecurrenceId, RecurrenceRule] | None = None,
        completed_days: Callable[[RecurrenceId], set[str]] | None = None,
        now: datetime | None = None,
    ) -> list[ConflictItem]:
        """Build the pool of intervals a candidate must not overlap."""
        reference = as_local(now) if now else dt_now_utc()
        recurrences = recurrences or {}
        pool: list[ConflictItem] = []

        for task in tasks:
            task_id = task.get(const.DATA_TASK_ID)
            if exclude_id is not None and task_id == exclude_id:
                continue
            if task.get(const.DATA_TASK_STATUS) == const.TASK_STATUS_COMPLETED:
                continue

            start = dt_parse(task.get(const.DATA_TASK_START_AT))
            end = dt_parse(task.get(const.DATA_TASK_END_AT))
            if start is None or end is None:
                continue

            title = task.get(const.DATA_TASK_TITLE) or const.LABEL_UNTITLED
            recurrence_id = task.get(const.DATA_TASK_RECURRENCE_ID)
            rule = recurrences.get(recurrence_id) if recurrence_id is not None else None
            if rule is not None and rule.single_day_auto:
                rule = None

            if rule is None:
                if end < reference:
                    continue
                pool.append(
                    ConflictItem(const.CONFLICT_KIND_TASK, task_id, title, start, end)
                )
                continue

            done = completed_days(recurrence_id) if completed_days else set()
            for occurrence in OccurrenceEngine.generate(start, end, rule):
                if occurrence.end_at < reference or occurrence.day_key in done:
                    continue
                pool.append(
                    ConflictItem(
                        const.CONFLICT_KIND_RECURRING_TASK,
                        task_id,
                        title,
                        occurrence.start_at,
                        occurrence.end_at,
                    )
                )

        for block in schedule_blocks:
            start = dt_parse(block.get(const.DATA_SCHEDULE_START_AT))
            end = dt_parse(block.get(const.DATA_SCHEDULE_END_AT))
            if start is None or end is None:
                continue
            pool.append(
                ConflictItem(
                    const.CONFLICT_KIND_SCHEDULE,
                    block.get(const.DATA_SCHEDULE_ID),
                    block.get(const.DATA_SCHEDULE_SUBJECT) or const.LABEL_UNNAMED,
                    start,
                    end,
                )
            )

        return pool
