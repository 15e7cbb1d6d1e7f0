"""Test helpers for habitflow tests.

Usage:
    from tests.helpers import make_dt, make_task, StaticDataSource
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

from habitflow.store import MemoryKeyValueStore

UTC_TZ = ZoneInfo("UTC")


def make_dt(
    year: int, month: int, day: int, hour: int = 0, minute: int = 0
) -> datetime:
    """Create an aware datetime in UTC (the default test timezone)."""
    return datetime(year, month, day, hour, minute, tzinfo=UTC_TZ)


def make_task(
    task_id: Any,
    start: datetime | None,
    end: datetime | None,
    **fields: Any,
) -> dict[str, Any]:
    """Build a task record with ISO time fields."""
    task: dict[str, Any] = {
        "id": task_id,
        "title": fields.pop("title", f"Task {task_id}"),
        "start_at": start.isoformat() if start else None,
        "end_at": end.isoformat() if end else None,
        "status": fields.pop("status", "pending"),
    }
    task.update(fields)
    return task


class FailingKeyValueStore:
    """Key-value store whose every access raises OSError."""

    def get(self, key: str) -> str | None:
        raise OSError(f"read failed for {key}")

    def set(self, key: str, value: str) -> None:
        raise OSError(f"write failed for {key}")


class ReadOnlyKeyValueStore(MemoryKeyValueStore):
    """Readable store whose writes fail."""

    def set(self, key: str, value: str) -> None:
        raise OSError(f"write failed for {key}")


class KeyFailingKeyValueStore(MemoryKeyValueStore):
    """Store whose writes fail only for keys starting with a prefix."""

    def __init__(self, failing_prefix: str) -> None:
        super().__init__()
        self.failing_prefix = failing_prefix

    def set(self, key: str, value: str) -> None:
        if key.startswith(self.failing_prefix):
            raise OSError(f"write failed for {key}")
        super().set(key, value)


class StaticDataSource:
    """In-memory provider of tasks, recurrences and schedule blocks."""

    def __init__(
        self,
        tasks: list[dict[str, Any]] | None = None,
        recurrences: list[dict[str, Any]] | None = None,
        schedule_blocks: list[dict[str, Any]] | None = None,
    ) -> None:
        self.tasks = tasks or []
        self.recurrences = recurrences or []
        self.schedule_blocks = schedule_blocks or []

    def get_tasks(self) -> list[dict[str, Any]]:
        return self.tasks

    def get_recurrences(self) -> list[dict[str, Any]]:
        return self.recurrences

    def get_schedule_blocks(self) -> list[dict[str, Any]]:
        return self.schedule_blocks


__all__ = [
    "UTC_TZ",
    "FailingKeyValueStore",
    "KeyFailingKeyValueStore",
    "ReadOnlyKeyValueStore",
    "StaticDataSource",
    "make_dt",
    "make_task",
]
