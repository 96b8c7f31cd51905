"""
Data change notifications

Services emit an event after every mutation so that views (charts, heatmaps,
achievement badges) can refresh. Subscribers may be plain functions or
coroutines; a failing subscriber is logged and never affects the mutation
that emitted the event or the remaining subscribers.
"""

import inspect
import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

HABIT_DATA_CHANGED = "habit_data_changed"
LEVEL_UP = "level_up"
ACHIEVEMENT_UNLOCKED = "achievement_unlocked"

Callback = Callable[..., Any]


class DataChangeBus:
    """In-process publish/subscribe for data change events"""

    def __init__(self):
        self._subscribers: Dict[str, List[Callback]] = defaultdict(list)

    def subscribe(self, event: str, callback: Callback) -> None:
        if callback not in self._subscribers[event]:
            self._subscribers[event].append(callback)

    def unsubscribe(self, event: str, callback: Callback) -> None:
        if callback in self._subscribers.get(event, []):
            self._subscribers[event].remove(callback)

    def subscriber_count(self, event: str) -> int:
        return len(self._subscribers.get(event, []))

    async def emit(self, event: str, **payload: Any) -> None:
        """
        Notify every subscriber of `event`

        Args:
            event: Event name
            **payload: Keyword arguments passed to each subscriber
        """
        for callback in list(self._subscribers.get(event, [])):
            try:
                result = callback(**payload)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(
                    f"Subscriber {getattr(callback, '__name__', callback)!r} "
                    f"failed on {event}: {e}",
                    exc_info=True,
                )
