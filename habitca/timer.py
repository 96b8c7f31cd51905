"""
Session timer

Storage-agnostic stopwatch for time-tracked habits. Elapsed time is always
derived from timestamps (wall time since start minus time spent paused), so a
snapshot taken before the process is suspended can be restored later and
still report the right value.
"""

import logging
from datetime import datetime
from typing import Optional

from habitca.models.session import TimerState

logger = logging.getLogger(__name__)


def format_time(seconds: int) -> str:
    """Format seconds as HH:MM:SS (hours always shown)"""
    seconds = max(0, int(seconds))
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


class SessionTimer:
    """Pausable timer for one running session at a time"""

    def __init__(self):
        self._state: Optional[TimerState] = None

    @property
    def is_running(self) -> bool:
        return self._state is not None

    @property
    def is_paused(self) -> bool:
        return self._state is not None and self._state.is_paused

    @property
    def habit_id(self) -> Optional[int]:
        return self._state.habit_id if self._state else None

    @property
    def session_id(self) -> Optional[int]:
        return self._state.session_id if self._state else None

    def start(self, habit_id: int, session_id: int, now: datetime) -> None:
        """Start timing; replaces any timer already running"""
        if self._state is not None:
            logger.warning(
                f"Replacing running timer for session {self._state.session_id} "
                f"with session {session_id}"
            )
        self._state = TimerState(habit_id=habit_id, session_id=session_id, started_at=now)

    def pause(self, now: datetime) -> None:
        if self._state is None or self._state.is_paused:
            return
        self._state = self._state.model_copy(update={"paused_at": now})

    def resume(self, now: datetime) -> None:
        if self._state is None or not self._state.is_paused:
            return
        paused_for = max(0.0, (now - self._state.paused_at).total_seconds())
        self._state = self._state.model_copy(update={
            "paused_seconds": self._state.paused_seconds + paused_for,
            "paused_at": None,
        })

    def elapsed_seconds(self, now: datetime) -> int:
        """Whole seconds of active (unpaused) time"""
        if self._state is None:
            return 0

        # A paused timer stops counting at the moment it was paused
        until = self._state.paused_at or now
        active = (until - self._state.started_at).total_seconds() - self._state.paused_seconds
        return max(0, int(active))

    def stop(self, now: datetime) -> int:
        """Stop the timer and return the elapsed seconds"""
        elapsed = self.elapsed_seconds(now)
        self._state = None
        return elapsed

    def to_snapshot(self) -> Optional[TimerState]:
        return self._state.model_copy() if self._state else None

    @classmethod
    def from_snapshot(cls, state: Optional[TimerState]) -> "SessionTimer":
        timer = cls()
        timer._state = state.model_copy() if state else None
        return timer
