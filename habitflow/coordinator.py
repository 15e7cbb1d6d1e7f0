# File: coordinator.py
"""Coordinator for habitflow.

Wires storage, the listener registry, the habit manager and the engines
around a read-only provider of tasks, recurrences and schedule blocks.
Providers are external CRUD layers; habitflow never mutates their records.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol

from . import const
from .dispatcher import HabitDispatcher
from .engines.conflict_engine import ConflictEngine, ConflictReport
from .engines.occurrence_engine import RecurrenceRule
from .managers.habit_manager import HabitManager
from .schemas import CONFIG_SCHEMA, parse_recurrence
from .store import (
    HabitStorage,
    JsonFileKeyValueStore,
    KeyValueStore,
    MemoryKeyValueStore,
)
from .utils.dt_utils import set_default_timezone

if TYPE_CHECKING:
    from .type_defs import (
        RecurrenceData,
        RecurrenceId,
        ScheduleBlockData,
        TaskData,
        TaskId,
        TaskUpdates,
    )


class DataSource(Protocol):
    """Read access to the external task, recurrence and schedule stores."""

    def get_tasks(self) -> Iterable[TaskData]:
        """Return every task."""

    def get_recurrences(self) -> Iterable[RecurrenceData]:
        """Return every recurrence row."""

    def get_schedule_blocks(self) -> Iterable[ScheduleBlockData]:
        """Return every fixed schedule block."""


class HabitFlowCoordinator:
    """Entry point tying the habitflow components together."""

    def __init__(
        self,
        data_source: DataSource,
        store: KeyValueStore | None = None,
        config: Mapping[str, Any] | None = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            data_source: Provider of tasks, recurrences and schedule blocks
            store: Key-value store for completions; when omitted, a JSON file
                   store is used if `storage_path` is configured, else memory
            config: Options validated with CONFIG_SCHEMA

        Raises:
            vol.Invalid: If the options do not validate
        """
        self.config = CONFIG_SCHEMA(dict(config or {}))
        set_default_timezone(self.config[const.CONF_TIME_ZONE])

        if store is None:
            storage_path = self.config[const.CONF_STORAGE_PATH]
            store = (
                JsonFileKeyValueStore(storage_path)
                if storage_path
                else MemoryKeyValueStore()
            )

        self.data_source = data_source
        self.dispatcher = HabitDispatcher()
        self.storage = HabitStorage(store)
        self.habits = HabitManager(self.storage, self.dispatcher)

        const.LOGGER.debug(
            "%s coordinator initialized (time zone %s)",
            const.TITLE,
            self.config[const.CONF_TIME_ZONE],
        )

    # -------------------------------------------------------------------------------------
    # Recurrence rules
    # -------------------------------------------------------------------------------------

    def get_rules(self) -> dict[RecurrenceId, RecurrenceRule]:
        """Parse every recurrence row from the provider, keyed by id."""
        rules: dict[RecurrenceId, RecurrenceRule] = {}
        for record in self.data_source.get_recurrences():
            recurrence_id = record.get(const.DATA_RECURRENCE_ID)
            if recurrence_id is None:
                continue
            rules[recurrence_id] = parse_recurrence(record)
        return rules

    def get_rule(self, recurrence_id: RecurrenceId | None) -> RecurrenceRule | None:
        """Parse the recurrence row with the given id, None when unknown."""
        if recurrence_id is None:
            return None
        for record in self.data_source.get_recurrences():
            if record.get(const.DATA_RECURRENCE_ID) == recurrence_id:
                return parse_recurrence(record)
        return None

    # -------------------------------------------------------------------------------------
    # Conflicts
    # -------------------------------------------------------------------------------------

    def check_conflicts(
        self,
        start: datetime,
        end: datetime,
        rule: RecurrenceRule | None = None,
        exclude_id: TaskId | None = None,
        now: datetime | None = None,
    ) -> ConflictReport:
        """Check a candidate interval against everything the provider knows.

        Recurring neighbors are expanded with their parsed rules; their
        completed days come from the habit records.
        """
        return ConflictEngine.check_conflicts(
            start,
            end,
            list(self.data_source.get_tasks()),
            list(self.data_source.get_schedule_blocks()),
            exclude_id,
            rule=rule,
            recurrences=self.get_rules(),
            completed_days=self.habits.completed_days,
            now=now,
        )

    # -------------------------------------------------------------------------------------
    # Auto-complete scan
    # -------------------------------------------------------------------------------------

    def run_auto_complete_scan(
        self, now: datetime | None = None
    ) -> dict[TaskId, TaskUpdates]:
        """Auto-complete ended occurrences of every rule with the option on.

        Returns:
            Task updates for tasks whose planned occurrences are now all
            complete; the caller persists them through its task store.
        """
        rules = self.get_rules()
        tasks = list(self.data_source.get_tasks())
        updates: dict[TaskId, TaskUpdates] = {}

        for recurrence_id, rule in rules.items():
            if not rule.auto_complete:
                continue
            for task in tasks:
                if task.get(const.DATA_TASK_RECURRENCE_ID) != recurrence_id:
                    continue
                self.habits.auto_complete_past_if_enabled(task, rule, now=now)
                task_updates = self.habits.evaluate_task_completion(task, rule, now=now)
                if task_updates is not None:
                    updates[task[const.DATA_TASK_ID]] = task_updates

        if updates:
            const.LOGGER.info(
                "INFO: Auto-complete scan completed %s task(s)", len(updates)
            )
        return updates
