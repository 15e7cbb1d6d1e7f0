"""Recurrence-scoped publish/subscribe for habit changes.

Views showing the same recurrence subscribe under its id and re-query after
every notification instead of caching completion state.
"""

from __future__ import annotations

from collections.abc import Callable

from . import const
from .type_defs import RecurrenceId

HabitListener = Callable[[RecurrenceId], None]


class HabitDispatcher:
    """Listener registry keyed by recurrence id.

    Provides:
    - subscribe(): register a listener, returns its unsubscribe callable
    - unsubscribe(): remove a listener (no-op when absent)
    - notify(): call every listener of one recurrence

    A listener that raises is logged; the remaining listeners still run.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[HabitListener]] = {}

    @staticmethod
    def _signal(recurrence_id: RecurrenceId) -> str:
        # 7 and "7" address the same stored keys, so they share listeners
        return str(recurrence_id)

    def subscribe(
        self, recurrence_id: RecurrenceId, listener: HabitListener
    ) -> Callable[[], None]:
        """Register a listener for one recurrence.

        Returns:
            Callable that removes this subscription.

        Example:
            unsub = dispatcher.subscribe(12, lambda rid: refresh_view(rid))
            ...
            unsub()
        """
        self._listeners.setdefault(self._signal(recurrence_id), []).append(listener)
        const.LOGGER.debug(
            "Listener %s subscribed to recurrence %s",
            getattr(listener, "__name__", listener),
            recurrence_id,
        )

        def _unsubscribe() -> None:
            self.unsubscribe(recurrence_id, listener)

        return _unsubscribe

    def unsubscribe(self, recurrence_id: RecurrenceId, listener: HabitListener) -> None:
        """Remove a listener; unknown listeners are ignored."""
        signal = self._signal(recurrence_id)
        listeners = self._listeners.get(signal)
        if not listeners or listener not in listeners:
            return
        listeners.remove(listener)
        if not listeners:
            del self._listeners[signal]

    def listener_count(self, recurrence_id: RecurrenceId) -> int:
        """Number of listeners currently registered for a recurrence."""
        return len(self._listeners.get(self._signal(recurrence_id), []))

    def notify(self, recurrence_id: RecurrenceId) -> None:
        """Call every listener subscribed to a recurrence."""
        # Copy so listeners may unsubscribe while being notified
        for listener in list(self._listeners.get(self._signal(recurrence_id), [])):
            try:
                listener(recurrence_id)
            except Exception:
                const.LOGGER.exception(
                    "Habit listener failed for recurrence %s", recurrence_id
                )
