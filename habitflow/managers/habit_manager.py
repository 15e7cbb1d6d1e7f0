"""Habit Manager - per-day completion tracking for recurring tasks.

Responsibilities:
- Mark / unmark single days and inclusive day ranges (idempotent)
- Progress per recurrence (day-based, or a single cycle in merge mode)
- Auto-complete of ended occurrences, without backfilling past the instant
  the option was switched on
- Early / on-time / late classification of recorded completions
- Notify subscribed listeners after every change

Storage is best-effort: a failed read yields empty results and a mutation
whose read fails is skipped; nothing is raised to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import TYPE_CHECKING

from .. import const
from ..dispatcher import HabitDispatcher
from ..engines.deadline_engine import CompletionDelta, DeadlineEngine
from ..engines.occurrence_engine import Occurrence, OccurrenceEngine, RecurrenceRule
from ..store import HabitRecord, HabitStorage
from ..utils.dt_utils import (
    as_local,
    as_utc,
    dt_day_key,
    dt_from_epoch_ms,
    dt_iter_days,
    dt_now_utc,
    dt_parse,
    dt_parse_day,
    dt_to_epoch_ms,
    dt_today_local,
)
from ..utils.math_utils import calculate_percentage

if TYPE_CHECKING:
    from ..type_defs import RecurrenceId, TaskData, TaskUpdates

DayInput = date | datetime | str


@dataclass(frozen=True)
class HabitProgress:
    """Completion progress of one recurrence.

    Attributes:
        completed: Completed planned days (merge mode: completed cycles, 0/1)
        total: Planned days (merge mode: cycles, 0/1)
        percent: Whole-number percentage (merge mode: 0 or 100)
        today_done: Today is a planned day and is marked
    """

    completed: int
    total: int
    percent: int
    today_done: bool


class HabitManager:
    """Reads and mutates habit completion records.

    Instances are cheap; all state lives in the key-value store.
    """

    def __init__(
        self, storage: HabitStorage, dispatcher: HabitDispatcher | None = None
    ) -> None:
        """Initialize the manager.

        Args:
            storage: Completion record storage
            dispatcher: Listener registry notified after changes
        """
        self.storage = storage
        self.dispatcher = dispatcher or HabitDispatcher()

    # =========================================================================
    # Queries
    # =========================================================================

    def completed_days(self, recurrence_id: RecurrenceId) -> set[str]:
        """Completed day keys of a recurrence (empty on storage failure)."""
        record = self.storage.load(recurrence_id)
        return set(record.completions) if record is not None else set()

    def is_done_on_date(self, recurrence_id: RecurrenceId, day: DayInput) -> bool:
        """Check whether a local calendar day is marked complete."""
        key = _day_key(day)
        if key is None:
            return False
        return key in self.completed_days(recurrence_id)

    def compute_progress(
        self, task: TaskData, rule: RecurrenceRule | None
    ) -> HabitProgress:
        """Compute completion progress over the planned occurrence days.

        In merge mode the whole span is one cycle: it counts as completed only
        when every planned day is marked, so percent is exactly 0 or 100.
        """
        recurrence_id = _recurrence_id(task, rule)
        if recurrence_id is None:
            return HabitProgress(0, 0, 0, False)

        planned = OccurrenceEngine.planned_days(task, rule)
        completions = self.completed_days(recurrence_id)
        done = [day for day in planned if day in completions]
        today = dt_today_local().isoformat()
        today_done = today in done

        if rule is not None and rule.merge:
            total = 1 if planned else 0
            completed = 1 if planned and len(done) == len(planned) else 0
            return HabitProgress(
                completed, total, 100 if completed else 0, today_done
            )

        return HabitProgress(
            len(done),
            len(planned),
            calculate_percentage(len(done), len(planned)),
            today_done,
        )

    def get_completion_delta(
        self,
        task: TaskData,
        rule: RecurrenceRule | None,
        day: DayInput | None = None,
    ) -> CompletionDelta | None:
        """Classify the stored completion of a day's occurrence.

        Args:
            task: Base task of the recurrence
            rule: Parsed recurrence rule
            day: Local day to look at (defaults to today)

        Returns:
            CompletionDelta, or None when the day has no planned occurrence
            or no recorded completion instant.
        """
        recurrence_id = _recurrence_id(task, rule)
        if recurrence_id is None:
            return None

        target = dt_today_local() if day is None else dt_parse_day(day)
        if target is None:
            return None
        occurrence = OccurrenceEngine.occurrence_on(task, rule, target)
        if occurrence is None:
            return None

        record = self.storage.load(recurrence_id)
        if record is None:
            return None
        millis = record.times.get(target.isoformat())
        if millis is None:
            return None
        return DeadlineEngine.classify(occurrence.end_at, dt_from_epoch_ms(millis))

    # =========================================================================
    # Mutations
    # =========================================================================

    def mark_day(
        self,
        recurrence_id: RecurrenceId,
        day: DayInput,
        task: TaskData | None = None,
        rule: RecurrenceRule | None = None,
    ) -> CompletionDelta | None:
        """Mark one local day complete, recording the current instant.

        Marking an already-marked day keeps the original completion instant.

        Returns:
            Classification of the recorded instant against the day's
            occurrence when the task is given, otherwise None.
        """
        key = _day_key(day)
        if key is None:
            const.LOGGER.warning(
                "WARNING: Cannot mark recurrence %s, invalid day: %s",
                recurrence_id,
                day,
            )
            return None

        record = self.storage.load(recurrence_id)
        if record is None:
            return None

        if key not in record.completions:
            record.completions.add(key)
            record.times[key] = dt_to_epoch_ms(dt_now_utc())
            self._commit(recurrence_id, record)
            const.LOGGER.debug("DEBUG: Marked %s for recurrence %s", key, recurrence_id)
        elif key not in record.times:
            record.times[key] = dt_to_epoch_ms(dt_now_utc())
            self._commit(recurrence_id, record)

        if task is None:
            return None
        occurrence = OccurrenceEngine.occurrence_on(task, rule, key)
        if occurrence is None:
            return None
        return DeadlineEngine.classify(
            occurrence.end_at, dt_from_epoch_ms(record.times[key])
        )

    def unmark_day(self, recurrence_id: RecurrenceId, day: DayInput) -> None:
        """Clear one local day's mark and completion instant."""
        key = _day_key(day)
        if key is None:
            return

        record = self.storage.load(recurrence_id)
        if record is None:
            return
        if key not in record.completions and key not in record.times:
            return

        record.completions.discard(key)
        record.times.pop(key, None)
        self._commit(recurrence_id, record)
        const.LOGGER.debug("DEBUG: Unmarked %s for recurrence %s", key, recurrence_id)

    def mark_range(
        self,
        recurrence_id: RecurrenceId,
        start: DayInput,
        end: DayInput,
        task: TaskData | None = None,
        rule: RecurrenceRule | None = None,
    ) -> int:
        """Mark every local day in [start, end] complete.

        With a known schedule (task given), a planned day records its
        occurrence end when that end has already passed, otherwise now.
        Days already marked keep their recorded instant.

        Returns:
            Number of days newly marked.
        """
        first, last = _day_key(start), _day_key(end)
        if first is None or last is None:
            return 0

        record = self.storage.load(recurrence_id)
        if record is None:
            return 0

        occurrence_ends: dict[str, datetime] = {}
        if task is not None:
            for occurrence in OccurrenceEngine.planned_occurrences(task, rule):
                occurrence_ends.setdefault(occurrence.day_key, occurrence.end_at)

        now = dt_now_utc()
        added = 0
        for current in dt_iter_days(date.fromisoformat(first), date.fromisoformat(last)):
            key = current.isoformat()
            if key in record.completions:
                continue
            occurrence_end = occurrence_ends.get(key)
            recorded = (
                occurrence_end
                if occurrence_end is not None and occurrence_end <= now
                else now
            )
            record.completions.add(key)
            record.times[key] = dt_to_epoch_ms(recorded)
            added += 1

        if added:
            self._commit(recurrence_id, record)
            const.LOGGER.debug(
                "DEBUG: Marked %s day(s) %s..%s for recurrence %s",
                added,
                first,
                last,
                recurrence_id,
            )
        return added

    def unmark_range(
        self, recurrence_id: RecurrenceId, start: DayInput, end: DayInput
    ) -> int:
        """Clear every local day in [start, end].

        Returns:
            Number of days unmarked.
        """
        first, last = _day_key(start), _day_key(end)
        if first is None or last is None:
            return 0

        record = self.storage.load(recurrence_id)
        if record is None:
            return 0

        removed = 0
        for current in dt_iter_days(date.fromisoformat(first), date.fromisoformat(last)):
            key = current.isoformat()
            if key in record.completions or key in record.times:
                record.completions.discard(key)
                record.times.pop(key, None)
                removed += 1

        if removed:
            self._commit(recurrence_id, record)
        return removed

    def auto_complete_past_if_enabled(
        self,
        task: TaskData,
        rule: RecurrenceRule | None,
        now: datetime | None = None,
    ) -> bool:
        """Mark ended occurrences complete when the rule's auto option is on.

        Non-merge rules mark each ended occurrence with its own end instant
        (exactly on time); existing marks are untouched. Merge rules mark the
        whole span once, after the final occurrence has ended. Occurrences
        that ended before `auto_complete_enabled_at` are never backfilled.

        Returns:
            True when any day was marked.
        """
        if rule is None or not rule.auto_complete:
            return False
        recurrence_id = _recurrence_id(task, rule)
        if recurrence_id is None:
            return False

        reference = as_local(now) if now else dt_now_utc()
        enabled_at = rule.auto_complete_enabled_at
        eligible = [
            occurrence
            for occurrence in OccurrenceEngine.planned_occurrences(task, rule)
            if occurrence.end_at <= reference
            and (enabled_at is None or occurrence.end_at >= enabled_at)
        ]
        if not eligible:
            return False

        if rule.merge:
            return self._auto_complete_merged(task, rule, recurrence_id, eligible, reference)

        record = self.storage.load(recurrence_id)
        if record is None:
            return False

        changed = False
        for occurrence in eligible:
            key = occurrence.day_key
            if key not in record.completions:
                record.completions.add(key)
                changed = True
            if key not in record.times:
                record.times[key] = dt_to_epoch_ms(occurrence.end_at)
                changed = True

        if changed:
            self._commit(recurrence_id, record)
            const.LOGGER.debug(
                "DEBUG: Auto-completed ended occurrences for recurrence %s",
                recurrence_id,
            )
        return changed

    def evaluate_task_completion(
        self,
        task: TaskData,
        rule: RecurrenceRule | None,
        now: datetime | None = None,
    ) -> TaskUpdates | None:
        """Build task updates once every planned occurrence is complete.

        Returns:
            Field updates (status, completed_at, completion_status,
            completion_diff_minutes) classified against the final occurrence
            end, or None when the task is already completed or not done.
        """
        if task.get(const.DATA_TASK_STATUS) == const.TASK_STATUS_COMPLETED:
            return None

        progress = self.compute_progress(task, rule)
        if progress.total == 0 or progress.completed < progress.total:
            return None

        occurrences = OccurrenceEngine.planned_occurrences(task, rule)
        due = occurrences[-1].end_at if occurrences else None
        if due is None and rule is not None and rule.end_date is not None:
            due = rule.end_date
        if due is None:
            due = dt_parse(task.get(const.DATA_TASK_END_AT))

        completed_at = as_utc(now) if now else dt_now_utc()
        updates: TaskUpdates = {
            const.DATA_TASK_STATUS: const.TASK_STATUS_COMPLETED,
            const.DATA_TASK_COMPLETED_AT: completed_at.isoformat(),
        }
        if due is not None:
            delta = DeadlineEngine.classify(due, completed_at)
            updates[const.DATA_TASK_COMPLETION_STATUS] = delta.status
            updates[const.DATA_TASK_COMPLETION_DIFF_MINUTES] = delta.diff_minutes
        return updates

    # =========================================================================
    # Private helpers
    # =========================================================================

    def _auto_complete_merged(
        self,
        task: TaskData,
        rule: RecurrenceRule,
        recurrence_id: RecurrenceId,
        eligible: list[Occurrence],
        reference: datetime,
    ) -> bool:
        """Mark the whole merged span once its final occurrence has ended."""
        planned = OccurrenceEngine.planned_occurrences(task, rule)
        final = planned[-1]
        if final.end_at > reference or eligible[-1] != final:
            return False

        completions = self.completed_days(recurrence_id)
        if all(occurrence.day_key in completions for occurrence in eligible):
            return False

        added = self.mark_range(
            recurrence_id, eligible[0].start_at, final.end_at, task, rule
        )
        return added > 0

    def _commit(self, recurrence_id: RecurrenceId, record: HabitRecord) -> None:
        """Persist a changed record and notify listeners."""
        if self.storage.save(recurrence_id, record):
            self.dispatcher.notify(recurrence_id)


def _day_key(day: DayInput) -> str | None:
    if isinstance(day, datetime):
        return dt_day_key(day)
    parsed = dt_parse_day(day)
    return parsed.isoformat() if parsed is not None else None


def _recurrence_id(task: TaskData, rule: RecurrenceRule | None) -> RecurrenceId | None:
    """Recurrence id from the rule, falling back to the task's link."""
    if rule is not None and rule.recurrence_id is not None:
        return rule.recurrence_id
    return task.get(const.DATA_TASK_RECURRENCE_ID)
