# File: store.py
"""Handles persistent storage of habit completions.

The application's key-value store (get/set of strings by key) is external.
`KeyValueStore` describes that interface; `MemoryKeyValueStore` and
`JsonFileKeyValueStore` are ready-made backends. `HabitStorage` keeps two
independent keys per recurrence:

- habit_completions:<id>       JSON array of completed day keys
- habit_completion_times:<id>  JSON object day key -> epoch milliseconds

Storage failures never propagate: reads report None, writes report False,
and the error is logged.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import json
import os
from pathlib import Path
import tempfile
from typing import TYPE_CHECKING, Any, Protocol

from . import const

if TYPE_CHECKING:
    from .type_defs import CompletionTimes, RecurrenceId


class KeyValueStore(Protocol):
    """Minimal string key-value interface (AsyncStorage-style)."""

    def get(self, key: str) -> str | None:
        """Return the stored string, or None when the key is absent."""

    def set(self, key: str, value: str) -> None:
        """Store a string under a key."""


class MemoryKeyValueStore:
    """Dict-backed key-value store."""

    def __init__(self, data: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(data or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileKeyValueStore:
    """Key-value store persisted as a single JSON document on disk.

    Every write replaces the file atomically (temp file + rename), so a crash
    mid-write leaves the previous document intact. Reads and writes always go
    to disk, so several instances on one file see each other's keys.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path)
        self._missing_logged = False

    @property
    def path(self) -> Path:
        """Location of the storage file."""
        return self._path

    def get(self, key: str) -> str | None:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        # Merge into the current document, not a copy read earlier
        data = self._load()
        data[key] = value
        self._write(data)

    def _load(self) -> dict[str, str]:
        if not self._path.exists():
            if not self._missing_logged:
                const.LOGGER.info("INFO: No existing storage found at %s", self._path)
                self._missing_logged = True
            return {}
        with self._path.open(encoding="utf-8") as handle:
            loaded = json.load(handle)
        if not isinstance(loaded, dict):
            raise ValueError(f"Storage file {self._path} is not a JSON object")
        return loaded

    def _write(self, data: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle, ensure_ascii=False)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


@dataclass
class HabitRecord:
    """Completion marks of one recurrence.

    Attributes:
        completions: Completed local day keys (YYYY-MM-DD)
        times: Day key -> epoch milliseconds the completion was recorded
    """

    completions: set[str] = field(default_factory=set)
    times: CompletionTimes = field(default_factory=dict)


class HabitStorage:
    """Reads and writes habit completion records through a KeyValueStore."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    @staticmethod
    def completions_key(recurrence_id: RecurrenceId) -> str:
        """Key of the completed-days array for a recurrence."""
        return f"{const.STORAGE_KEY_COMPLETIONS}{const.STORAGE_KEY_SEPARATOR}{recurrence_id}"

    @staticmethod
    def times_key(recurrence_id: RecurrenceId) -> str:
        """Key of the completion-time map for a recurrence."""
        return f"{const.STORAGE_KEY_COMPLETION_TIMES}{const.STORAGE_KEY_SEPARATOR}{recurrence_id}"

    def load(self, recurrence_id: RecurrenceId) -> HabitRecord | None:
        """Load a recurrence's completion record.

        Returns:
            HabitRecord (empty when nothing was stored yet), or None when the
            storage could not be read or decoded.
        """
        try:
            raw_days = self._store.get(self.completions_key(recurrence_id))
            raw_times = self._store.get(self.times_key(recurrence_id))
            days = json.loads(raw_days) if raw_days else []
            times = json.loads(raw_times) if raw_times else {}
        except OSError as err:
            const.LOGGER.error(
                "ERROR: Failed to read habit data for recurrence %s: %s",
                recurrence_id,
                err,
            )
            return None
        except ValueError as err:
            const.LOGGER.error(
                "ERROR: Habit data for recurrence %s is not valid JSON: %s",
                recurrence_id,
                err,
            )
            return None

        if not isinstance(days, list) or not isinstance(times, dict):
            const.LOGGER.error(
                "ERROR: Habit data for recurrence %s has an unexpected shape",
                recurrence_id,
            )
            return None

        return HabitRecord(
            completions={str(day) for day in days},
            times=_clean_times(times),
        )

    def save(self, recurrence_id: RecurrenceId, record: HabitRecord) -> bool:
        """Write both keys of a recurrence's completion record.

        The times key is written first: a failure before the completions key
        lands leaves the stored completed days unchanged.

        Returns:
            True when both keys were written, False on storage failure.
        """
        try:
            days_payload = json.dumps(sorted(record.completions))
            times_payload = json.dumps(dict(sorted(record.times.items())))
            self._store.set(self.times_key(recurrence_id), times_payload)
            self._store.set(self.completions_key(recurrence_id), days_payload)
        except OSError as err:
            const.LOGGER.error(
                "ERROR: Failed to save habit data for recurrence %s due to "
                "file system error: %s",
                recurrence_id,
                err,
            )
            return False
        except (TypeError, ValueError) as err:
            const.LOGGER.error(
                "ERROR: Failed to save habit data for recurrence %s due to "
                "non-serializable data: %s",
                recurrence_id,
                err,
            )
            return False

        const.LOGGER.debug(
            "DEBUG: Saved %s completion(s) for recurrence %s",
            len(record.completions),
            recurrence_id,
        )
        return True


def _clean_times(raw: dict[str, Any]) -> CompletionTimes:
    """Keep numeric completion times, normalizing seconds to milliseconds."""
    times: CompletionTimes = {}
    for day, value in raw.items():
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            continue
        millis = value * 1000 if abs(value) < 1e12 else value
        times[str(day)] = int(millis)
    return times
