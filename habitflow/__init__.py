"""habitflow - recurrence, conflict and habit-completion core for task planners.

Exposes the occurrence generator, the conflict detector, the habit
completion store and the deadline classifier, plus a coordinator wiring
them to external task/recurrence/schedule providers.
"""

from .coordinator import DataSource, HabitFlowCoordinator
from .dispatcher import HabitDispatcher
from .engines import (
    CompletionDelta,
    ConflictEngine,
    ConflictItem,
    ConflictReport,
    DeadlineEngine,
    Occurrence,
    OccurrenceConflict,
    OccurrenceEngine,
    RecurrenceRule,
)
from .managers import HabitManager, HabitProgress
from .schemas import CONFIG_SCHEMA, parse_recurrence
from .store import (
    HabitRecord,
    HabitStorage,
    JsonFileKeyValueStore,
    KeyValueStore,
    MemoryKeyValueStore,
)

__all__ = [
    "CONFIG_SCHEMA",
    "CompletionDelta",
    "ConflictEngine",
    "ConflictItem",
    "ConflictReport",
    "DataSource",
    "DeadlineEngine",
    "HabitDispatcher",
    "HabitFlowCoordinator",
    "HabitManager",
    "HabitProgress",
    "HabitRecord",
    "HabitStorage",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "Occurrence",
    "OccurrenceConflict",
    "OccurrenceEngine",
    "RecurrenceRule",
    "parse_recurrence",
]
