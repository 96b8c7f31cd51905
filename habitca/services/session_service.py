"""
SessionService - Time Tracking

Timer sessions for habits with track_time enabled. Stopping a session adds
its duration to the day's time_spent and completes the day through the
completion ledger the first time; later sessions on the same day only add
time.
"""

import logging
from datetime import date, datetime
from typing import List, Optional

from habitca.db.store import HabitStore
from habitca.events import HABIT_DATA_CHANGED, DataChangeBus
from habitca.exceptions import RecordNotFoundError, SessionError, ValidationError
from habitca.models.session import HabitSession
from habitca.services.completion_service import CompletionService

logger = logging.getLogger(__name__)

MIN_INTENSITY = 1
MAX_INTENSITY = 5


class SessionService:
    """
    Service for time-tracking sessions.

    Responsibilities:
    - Starting and stopping sessions
    - Feeding session time into the completion ledger
    - Counting session notes toward the journaling achievement
    """

    def __init__(
        self,
        store: HabitStore,
        ledger: CompletionService,
        bus: Optional[DataChangeBus] = None,
    ):
        self.store = store
        self.ledger = ledger
        self.bus = bus or ledger.bus
        logger.debug("SessionService initialized")

    async def start_session(self, habit_id: int, now: Optional[datetime] = None) -> HabitSession:
        """
        Open a session for a time-tracked habit

        Raises:
            RecordNotFoundError: Unknown habit
            SessionError: Habit does not track time, or already has a running session
        """
        habit = await self.store.get_habit(habit_id)
        if habit is None:
            raise RecordNotFoundError(
                f"Habit {habit_id} does not exist",
                record_type="Habit",
                record_id=habit_id,
                operation="start_session",
            )
        if not habit.track_time:
            raise SessionError(f"Habit {habit_id} does not track time")

        active = await self.store.get_active_sessions(habit_id)
        if active:
            raise SessionError(
                f"Habit {habit_id} already has a running session",
                session_id=active[0].id,
            )

        session = await self.store.create_session(habit_id, now or datetime.now())
        logger.info(f"Started session {session.id} for habit {habit_id}")
        return session

    async def stop_session(
        self,
        session_id: int,
        now: Optional[datetime] = None,
        intensity: int = 3,
        notes: str = "",
        duration: Optional[int] = None,
    ) -> HabitSession:
        """
        Close a session and log its time

        Args:
            session_id: Session to stop
            now: End time (defaults to datetime.now())
            intensity: Effort rating 1-5
            notes: Optional journal note; non-empty notes count toward habit_notes
            duration: Active seconds measured by a SessionTimer (pauses excluded);
                defaults to the wall time between start and end

        Returns:
            The stopped session

        Raises:
            ValidationError: Intensity outside 1-5
            SessionError: Unknown or already stopped session
        """
        if not MIN_INTENSITY <= intensity <= MAX_INTENSITY:
            raise ValidationError(
                f"Intensity must be between {MIN_INTENSITY} and {MAX_INTENSITY}",
                field="intensity",
                value=intensity,
            )

        now = now or datetime.now()

        # Check-and-close must not interleave with another stop of the same session
        async with self.ledger.lock:
            session = await self.store.get_session(session_id)
            if session is None:
                raise SessionError(f"Session {session_id} does not exist", session_id=session_id)
            if not session.is_active:
                raise SessionError(f"Session {session_id} is already stopped", session_id=session_id)

            if duration is None:
                duration = int((now - session.start_time).total_seconds())
            duration = max(0, duration)

            stopped = session.model_copy(update={
                "end_time": now,
                "duration": duration,
                "intensity": intensity,
                "notes": notes,
            })
            await self.store.update_session(stopped)

            if notes.strip():
                await self.store.update_user_counters({"habit_notes": 1})

            result = await self.ledger.add_session_time(session.habit_id, session.date, duration, now)

        await self.ledger.notify_session_time(session.habit_id, result)

        logger.info(f"Stopped session {session_id} after {duration}s")
        return stopped

    async def get_active_session(self, habit_id: int) -> Optional[HabitSession]:
        """Most recently started running session of a habit"""
        sessions = await self.store.get_active_sessions(habit_id)
        return sessions[0] if sessions else None

    async def get_all_active_sessions(self) -> List[HabitSession]:
        return await self.store.get_active_sessions()

    async def get_habit_sessions(self, habit_id: int, start: date, end: date) -> List[HabitSession]:
        """Sessions started in [start, end], newest first"""
        return await self.store.get_sessions(habit_id, start, end)

    async def delete_session(self, session_id: int) -> bool:
        deleted = await self.store.delete_session(session_id)
        if deleted:
            logger.info(f"Deleted session {session_id}")
            await self.bus.emit(HABIT_DATA_CHANGED, session_id=session_id)
        return deleted
