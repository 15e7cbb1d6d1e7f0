"""Shared fixtures for habitflow tests."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from habitflow.dispatcher import HabitDispatcher
from habitflow.managers.habit_manager import HabitManager
from habitflow.store import HabitStorage, MemoryKeyValueStore
from habitflow.utils import dt_utils
from tests.helpers import UTC_TZ


@pytest.fixture(autouse=True)
def reset_timezone() -> Iterator[None]:
    """Run every test in UTC and restore it afterwards."""
    dt_utils.set_default_timezone(UTC_TZ)
    yield
    dt_utils.set_default_timezone(UTC_TZ)


@pytest.fixture
def kv_store() -> MemoryKeyValueStore:
    """Empty in-memory key-value store."""
    return MemoryKeyValueStore()


@pytest.fixture
def dispatcher() -> HabitDispatcher:
    """Fresh listener registry."""
    return HabitDispatcher()


@pytest.fixture
def habit_storage(kv_store: MemoryKeyValueStore) -> HabitStorage:
    """Habit storage over the in-memory store."""
    return HabitStorage(kv_store)


@pytest.fixture
def habit_manager(
    habit_storage: HabitStorage, dispatcher: HabitDispatcher
) -> HabitManager:
    """Habit manager backed by the in-memory store."""
    return HabitManager(habit_storage, dispatcher)
