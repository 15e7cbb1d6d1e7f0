"""Tests for ConflictEngine - overlap detection across tasks and schedules."""

from __future__ import annotations

from habitflow import const
from habitflow.engines.conflict_engine import ConflictEngine
from habitflow.engines.occurrence_engine import RecurrenceRule
from tests.helpers import make_dt, make_task

NOW = make_dt(2025, 1, 15, 8)


def _check(start, end, tasks=(), blocks=(), **kwargs):
    kwargs.setdefault("now", NOW)
    return ConflictEngine.check_conflicts(start, end, list(tasks), list(blocks), **kwargs)


# =============================================================================
# TEST: OVERLAP BOUNDARIES
# =============================================================================


class TestOverlapBoundaries:
    """Half-open interval semantics."""

    def test_touching_intervals_do_not_conflict(self) -> None:
        """[10:00, 11:00) vs [11:00, 12:00) is not a conflict."""
        existing = make_task(2, make_dt(2025, 1, 15, 11), make_dt(2025, 1, 15, 12))

        report = _check(make_dt(2025, 1, 15, 10), make_dt(2025, 1, 15, 11), [existing])

        assert not report.has_conflict
        assert report.message == ""

    def test_one_minute_overlap_conflicts(self) -> None:
        """[10:00, 11:00) vs [10:59, 11:30) is a conflict."""
        existing = make_task(
            2, make_dt(2025, 1, 15, 10, 59), make_dt(2025, 1, 15, 11, 30)
        )

        report = _check(make_dt(2025, 1, 15, 10), make_dt(2025, 1, 15, 11), [existing])

        assert report.has_conflict
        assert [item.item_id for item in report.items] == [2]

    def test_overlaps_helper(self) -> None:
        """overlaps() mirrors the same rule."""
        assert ConflictEngine.overlaps(
            make_dt(2025, 1, 1, 10), make_dt(2025, 1, 1, 11),
            make_dt(2025, 1, 1, 10, 30), make_dt(2025, 1, 1, 10, 45),
        )
        assert not ConflictEngine.overlaps(
            make_dt(2025, 1, 1, 10), make_dt(2025, 1, 1, 11),
            make_dt(2025, 1, 1, 9), make_dt(2025, 1, 1, 10),
        )

    def test_zero_duration_candidate_is_tolerated(self) -> None:
        """Zero-length candidates do not crash; a point on a boundary is free."""
        existing = make_task(2, make_dt(2025, 1, 15, 11), make_dt(2025, 1, 15, 12))

        inside = _check(
            make_dt(2025, 1, 15, 11, 30), make_dt(2025, 1, 15, 11, 30), [existing]
        )
        boundary = _check(make_dt(2025, 1, 15, 11), make_dt(2025, 1, 15, 11), [existing])

        assert inside.has_conflict
        assert not boundary.has_conflict

    def test_empty_inputs(self) -> None:
        """No tasks and no schedules: no conflicts."""
        report = _check(make_dt(2025, 1, 15, 10), make_dt(2025, 1, 15, 11))

        assert not report.has_conflict
        assert report.items == []


# =============================================================================
# TEST: FILTERING
# =============================================================================


class TestExistingTaskFiltering:
    """Which existing tasks can block a candidate."""

    def test_excluded_task_is_ignored(self) -> None:
        """The task being edited never conflicts with itself."""
        existing = make_task(7, make_dt(2025, 1, 15, 10), make_dt(2025, 1, 15, 11))

        report = _check(
            make_dt(2025, 1, 15, 10), make_dt(2025, 1, 15, 11), [existing], exclude_id=7
        )

        assert not report.has_conflict

    def test_exclude_id_zero_is_respected(self) -> None:
        """A falsy id is still excluded."""
        existing = make_task(0, make_dt(2025, 1, 15, 10), make_dt(2025, 1, 15, 11))

        report = _check(
            make_dt(2025, 1, 15, 10), make_dt(2025, 1, 15, 11), [existing], exclude_id=0
        )

        assert not report.has_conflict

    def test_completed_task_is_ignored(self) -> None:
        """Completed tasks no longer block time."""
        existing = make_task(
            2,
            make_dt(2025, 1, 15, 10),
            make_dt(2025, 1, 15, 11),
            status=const.TASK_STATUS_COMPLETED,
        )

        report = _check(make_dt(2025, 1, 15, 10), make_dt(2025, 1, 15, 11), [existing])

        assert not report.has_conflict

    def test_expired_task_is_ignored(self) -> None:
        """Tasks that ended before now are skipped."""
        existing = make_task(2, make_dt(2025, 1, 14, 10), make_dt(2025, 1, 14, 11))

        report = _check(make_dt(2025, 1, 14, 10), make_dt(2025, 1, 14, 11), [existing])

        assert not report.has_conflict

    def test_task_without_end_is_ignored(self) -> None:
        """Tasks need both start and end to block."""
        existing = make_task(2, make_dt(2025, 1, 15, 10), None)

        report = _check(make_dt(2025, 1, 15, 10), make_dt(2025, 1, 15, 11), [existing])

        assert not report.has_conflict

    def test_schedule_block_always_checked(self) -> None:
        """Schedule blocks block time even when already past."""
        block = {
            "id": "s1",
            "subject": "Math",
            "start_at": make_dt(2025, 1, 14, 10).isoformat(),
            "end_at": make_dt(2025, 1, 14, 12).isoformat(),
        }

        report = _check(
            make_dt(2025, 1, 14, 11), make_dt(2025, 1, 14, 13), blocks=[block]
        )

        assert report.has_conflict
        assert report.items[0].kind == const.CONFLICT_KIND_SCHEDULE
        assert report.message == (
            "• [Schedule] Math\n"
            "  Start: 10:00 14/01/2025\n"
            "  End: 12:00 14/01/2025"
        )


# =============================================================================
# TEST: RECURRING CANDIDATES AND NEIGHBORS
# =============================================================================


class TestRecurringConflicts:
    """Expansion of recurring candidates and recurring neighbors."""

    def test_recurring_candidate_reports_per_occurrence(self) -> None:
        """Only the colliding occurrence gets a block."""
        rule = RecurrenceRule(end_date=make_dt(2025, 1, 17, 23, 59))
        existing = make_task(
            2,
            make_dt(2025, 1, 16, 10, 30),
            make_dt(2025, 1, 16, 11, 30),
            title="Dentist",
        )

        report = _check(
            make_dt(2025, 1, 15, 10), make_dt(2025, 1, 15, 11), [existing], rule=rule
        )

        assert len(report.blocks) == 1
        assert report.blocks[0].occurrence.start_at == make_dt(2025, 1, 16, 10)
        assert report.message == (
            "Occurrence: 10:00 - 11:00 16/01/2025\n"
            "• Dentist\n"
            "  Start: 10:30 16/01/2025\n"
            "  End: 11:30 16/01/2025"
        )

    def test_multiple_occurrence_blocks_are_separated(self) -> None:
        """Each conflicting occurrence gets its own block."""
        rule = RecurrenceRule(end_date=make_dt(2025, 1, 17, 23, 59))
        block = {
            "subject": "Gym",
            "start_at": make_dt(2025, 1, 15, 10).isoformat(),
            "end_at": make_dt(2025, 1, 17, 23).isoformat(),
        }

        report = _check(
            make_dt(2025, 1, 15, 10), make_dt(2025, 1, 15, 11), blocks=[block], rule=rule
        )

        assert len(report.blocks) == 3
        assert report.message.count("\n\n") == 2

    def test_recurring_neighbor_is_expanded(self) -> None:
        """Future occurrences of another recurring task block time."""
        neighbor = make_task(
            5,
            make_dt(2025, 1, 15, 14),
            make_dt(2025, 1, 15, 15),
            title="Standup",
            recurrence_id=9,
        )
        recurrences = {9: RecurrenceRule(end_date=make_dt(2025, 1, 20, 23, 59))}

        report = _check(
            make_dt(2025, 1, 18, 14, 30),
            make_dt(2025, 1, 18, 15, 30),
            [neighbor],
            recurrences=recurrences,
        )

        assert report.has_conflict
        item = report.items[0]
        assert item.kind == const.CONFLICT_KIND_RECURRING_TASK
        assert item.start_at == make_dt(2025, 1, 18, 14)
        assert item.describe() == (
            "• Standup (recurring)\n  Time: 14:00 - 15:00 18/01/2025"
        )

    def test_recurring_neighbor_without_rule_uses_base_only(self) -> None:
        """Without its rule a neighbor is just its base interval."""
        neighbor = make_task(
            5, make_dt(2025, 1, 15, 14), make_dt(2025, 1, 15, 15), recurrence_id=9
        )

        report = _check(
            make_dt(2025, 1, 18, 14, 30), make_dt(2025, 1, 18, 15, 30), [neighbor]
        )

        assert not report.has_conflict

    def test_completed_neighbor_day_does_not_block(self) -> None:
        """A neighbor occurrence marked done is skipped."""
        neighbor = make_task(
            5, make_dt(2025, 1, 15, 14), make_dt(2025, 1, 15, 15), recurrence_id=9
        )
        recurrences = {9: RecurrenceRule(end_date=make_dt(2025, 1, 20, 23, 59))}

        report = _check(
            make_dt(2025, 1, 18, 14, 30),
            make_dt(2025, 1, 18, 15, 30),
            [neighbor],
            recurrences=recurrences,
            completed_days=lambda rid: {"2025-01-18"} if rid == 9 else set(),
        )

        assert not report.has_conflict

    def test_ended_neighbor_occurrence_does_not_block(self) -> None:
        """Neighbor occurrences that already ended are skipped."""
        neighbor = make_task(
            5, make_dt(2025, 1, 10, 14), make_dt(2025, 1, 10, 15), recurrence_id=9
        )
        recurrences = {9: RecurrenceRule(end_date=make_dt(2025, 1, 20, 23, 59))}

        report = _check(
            make_dt(2025, 1, 12, 14), make_dt(2025, 1, 12, 15), [neighbor],
            recurrences=recurrences,
        )

        assert not report.has_conflict

    def test_single_day_auto_rule_is_a_plain_task(self) -> None:
        """An auto-complete rule starting and ending on one day is not recurring."""
        neighbor = make_task(
            5,
            make_dt(2025, 1, 16, 14),
            make_dt(2025, 1, 16, 15),
            title="Dentist",
            recurrence_id=9,
        )
        rule = RecurrenceRule(
            auto_complete=True,
            start_date=make_dt(2025, 1, 16),
            end_date=make_dt(2025, 1, 16, 23, 59),
        )
        assert rule.single_day_auto

        report = _check(
            make_dt(2025, 1, 16, 14, 30),
            make_dt(2025, 1, 16, 15, 30),
            [neighbor],
            recurrences={9: rule},
            completed_days=lambda rid: {"2025-01-16"},
        )

        assert report.has_conflict
        assert report.items[0].kind == const.CONFLICT_KIND_TASK

    def test_single_day_rule_without_auto_stays_recurring(self) -> None:
        """Without the auto option a one-day rule is still expanded."""
        neighbor = make_task(
            5, make_dt(2025, 1, 16, 14), make_dt(2025, 1, 16, 15), recurrence_id=9
        )
        rule = RecurrenceRule(
            start_date=make_dt(2025, 1, 16), end_date=make_dt(2025, 1, 16, 23, 59)
        )
        assert not rule.single_day_auto

        report = _check(
            make_dt(2025, 1, 16, 14, 30),
            make_dt(2025, 1, 16, 15, 30),
            [neighbor],
            recurrences={9: rule},
        )

        assert report.items[0].kind == const.CONFLICT_KIND_RECURRING_TASK


# =============================================================================
# TEST: VALIDATION
# =============================================================================


class TestValidateTaskTime:
    """End-after-start rejection message."""

    def test_end_before_start_rejected(self) -> None:
        """end <= start returns the message."""
        start = make_dt(2025, 1, 15, 10)

        assert ConflictEngine.validate_task_time(start, start) == (
            const.MESSAGE_END_BEFORE_START
        )
        assert ConflictEngine.validate_task_time(start, make_dt(2025, 1, 15, 9))

    def test_valid_or_incomplete_ordering(self) -> None:
        """Valid ordering or missing values pass."""
        start = make_dt(2025, 1, 15, 10)

        assert ConflictEngine.validate_task_time(start, make_dt(2025, 1, 15, 11)) is None
        assert ConflictEngine.validate_task_time(None, start) is None
