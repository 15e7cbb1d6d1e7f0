"""Deadline Engine - classifies a completion instant against its due instant.

The policy has two branches:

1. Completion on the due date's calendar day, with the 23:59 cutoff after
   the due instant:
   - at/before due  → early, diff = completion - due (≤ 0)
   - before cutoff  → on_time, diff = 0
   - after cutoff   → late, diff = completion - cutoff (> 0)
2. Anything else: diff = completion - due, early below -1 minute,
   late above +1 minute, on_time in between.

The cutoff is fixed at 23:59 local time of the due date. The same function
serves both mark-time snapshots and read-time recomputation, so both agree
for the same pair of instants.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time

from .. import const
from ..utils.dt_utils import as_local, dt_same_local_day
from ..utils.math_utils import minutes_between

END_OF_DAY_CUTOFF = time(const.END_OF_DAY_HOUR, const.END_OF_DAY_MINUTE)


@dataclass(frozen=True)
class CompletionDelta:
    """Classification of one completion.

    Attributes:
        status: early | on_time | late
        diff_minutes: Signed minutes (negative = ahead of due)
    """

    status: str
    diff_minutes: int


class DeadlineEngine:
    """Pure logic engine for early/on-time/late classification."""

    @staticmethod
    def cutoff_for(due: datetime) -> datetime:
        """Return 23:59 local time on the due instant's calendar day."""
        due_local = as_local(due)
        return datetime.combine(
            due_local.date(), END_OF_DAY_CUTOFF, tzinfo=due_local.tzinfo
        )

    @staticmethod
    def classify(due: datetime, completion: datetime) -> CompletionDelta:
        """Classify a completion instant relative to its due instant.

        Args:
            due: Due instant (occurrence or task end).
            completion: Instant the completion was recorded.

        Returns:
            CompletionDelta with status and signed minute difference.

        Examples:
            due 18:00, done 17:00 same day → early, -60
            due 18:00, done 20:00 same day → on_time, 0
            due 18:00, done 00:30 next day → late, 390
        """
        cutoff = DeadlineEngine.cutoff_for(due)

        if dt_same_local_day(due, completion) and cutoff > due:
            if completion <= due:
                return CompletionDelta(
                    const.COMPLETION_STATUS_EARLY, minutes_between(due, completion)
                )
            if completion <= cutoff:
                return CompletionDelta(const.COMPLETION_STATUS_ON_TIME, 0)
            return CompletionDelta(
                const.COMPLETION_STATUS_LATE, minutes_between(cutoff, completion)
            )

        diff = minutes_between(due, completion)
        if diff < -const.ON_TIME_TOLERANCE_MINUTES:
            status = const.COMPLETION_STATUS_EARLY
        elif diff > const.ON_TIME_TOLERANCE_MINUTES:
            status = const.COMPLETION_STATUS_LATE
        else:
            status = const.COMPLETION_STATUS_ON_TIME
        return CompletionDelta(status, diff)
