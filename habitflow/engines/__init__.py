"""Engine modules for habitflow.

Contains pure computation engines:
- occurrence_engine: Recurrence expansion and RRULE generation
- conflict_engine: Overlap detection across tasks, recurring tasks and schedules
- deadline_engine: Early / on-time / late classification
"""

from .conflict_engine import (
    ConflictEngine,
    ConflictItem,
    ConflictReport,
    OccurrenceConflict,
)
from .deadline_engine import CompletionDelta, DeadlineEngine
from .occurrence_engine import Occurrence, OccurrenceEngine, RecurrenceRule

__all__ = [
    "CompletionDelta",
    "ConflictEngine",
    "ConflictItem",
    "ConflictReport",
    "DeadlineEngine",
    "Occurrence",
    "OccurrenceConflict",
    "OccurrenceEngine",
    "RecurrenceRule",
]
