"""Stateful managers for habitflow.

Managers own read-modify-write sequences against storage and notify
listeners; the pure calculations they rely on live in engines/.
"""

from .habit_manager import HabitManager, HabitProgress

__all__ = ["HabitManager", "HabitProgress"]
