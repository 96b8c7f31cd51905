"""
In-memory HabitStore

Used by the test suite and the 'memory' backend. Nothing is persisted.
Models are copied on the way in and out so callers always work by value.
"""

import logging
from collections import Counter
from datetime import date, datetime
from typing import Optional

from habitca.models.achievement import Achievement
from habitca.models.habit import CompletionRecord, Habit, HabitInput
from habitca.models.session import HabitSession
from habitca.models.user_stats import UserStats

logger = logging.getLogger(__name__)


class InMemoryHabitStore:
    """Process-local store keyed the same way as the SQL schema"""

    def __init__(self):
        self._habits: dict[int, Habit] = {}
        self._logs: dict[tuple[int, date], CompletionRecord] = {}
        self._stats = UserStats()
        self._achievements: dict[str, Achievement] = {}
        self._sessions: dict[int, HabitSession] = {}
        self._next_habit_id = 1
        self._next_session_id = 1
        logger.debug("InMemoryHabitStore initialized")

    # ==========================================
    # Habits
    # ==========================================

    async def add_habit(self, habit: HabitInput, created_at: date) -> Habit:
        created = Habit(id=self._next_habit_id, created_at=created_at, **habit.model_dump())
        self._habits[created.id] = created
        self._next_habit_id += 1
        return created.model_copy()

    async def update_habit(self, habit_id: int, habit: HabitInput) -> Optional[Habit]:
        existing = self._habits.get(habit_id)
        if existing is None:
            return None
        updated = existing.model_copy(update=habit.model_dump())
        self._habits[habit_id] = updated
        return updated.model_copy()

    async def get_habit(self, habit_id: int) -> Optional[Habit]:
        habit = self._habits.get(habit_id)
        return habit.model_copy() if habit else None

    async def get_habits(self) -> list[Habit]:
        active = [h for h in self._habits.values() if h.is_active]
        active.sort(key=lambda h: (h.created_at, h.id), reverse=True)
        return [h.model_copy() for h in active]

    async def get_all_habits(self) -> list[Habit]:
        return [h.model_copy() for h in self._habits.values()]

    async def set_habit_active(self, habit_id: int, is_active: bool) -> bool:
        habit = self._habits.get(habit_id)
        if habit is None:
            return False
        self._habits[habit_id] = habit.model_copy(update={"is_active": is_active})
        return True

    # ==========================================
    # Completion Ledger
    # ==========================================

    async def get_completion_record(self, habit_id: int, day: date) -> Optional[CompletionRecord]:
        record = self._logs.get((habit_id, day))
        return record.model_copy() if record else None

    async def get_completion_records(self, habit_id: int, start: date, end: date) -> list[CompletionRecord]:
        records = [
            r for (hid, day), r in self._logs.items()
            if hid == habit_id and start <= day <= end
        ]
        records.sort(key=lambda r: r.date)
        return [r.model_copy() for r in records]

    async def get_completed_dates(self, habit_id: int) -> list[date]:
        dates = [day for (hid, day), r in self._logs.items() if hid == habit_id and r.completed]
        return sorted(dates, reverse=True)

    async def get_all_completion_records(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
        completed_only: bool = True,
    ) -> list[CompletionRecord]:
        records = []
        for (_, day), record in self._logs.items():
            if start is not None and day < start:
                continue
            if end is not None and day > end:
                continue
            if completed_only and not record.completed:
                continue
            records.append(record.model_copy())
        records.sort(key=lambda r: (r.date, r.habit_id))
        return records

    async def upsert_completion_record(self, record: CompletionRecord) -> None:
        self._logs[(record.habit_id, record.date)] = record.model_copy()

    async def count_completions_by_day(self, start: date, end: date) -> dict[date, int]:
        counts = Counter(
            day for (_, day), r in self._logs.items()
            if r.completed and start <= day <= end
        )
        return dict(counts)

    # ==========================================
    # User Stats
    # ==========================================

    async def get_user_stats(self) -> UserStats:
        return self._stats.model_copy(deep=True)

    async def set_user_stats(self, xp: int, level: int) -> None:
        self._stats = self._stats.model_copy(update={"xp": xp, "level": level})

    async def update_user_counters(self, increments: dict[str, int]) -> UserStats:
        counters = dict(self._stats.achievements)
        for name, amount in increments.items():
            counters[name] = counters.get(name, 0) + amount
        self._stats = self._stats.model_copy(update={"achievements": counters})
        return self._stats.model_copy(deep=True)

    async def set_longest_streak(self, longest_streak: int) -> None:
        self._stats = self._stats.model_copy(update={"longest_streak": longest_streak})

    # ==========================================
    # Achievements
    # ==========================================

    async def seed_achievements(self, achievements: list[Achievement]) -> int:
        inserted = 0
        for achievement in achievements:
            if achievement.id not in self._achievements:
                self._achievements[achievement.id] = achievement.model_copy(
                    update={"is_unlocked": False, "unlocked_at": None}
                )
                inserted += 1
        return inserted

    async def get_achievements(self) -> list[Achievement]:
        return [a.model_copy(deep=True) for a in self._achievements.values()]

    async def set_achievement_unlocked(self, achievement_id: str, unlocked_at: datetime, xp_earned: int) -> bool:
        achievement = self._achievements.get(achievement_id)
        if achievement is None or achievement.is_unlocked:
            return False
        self._achievements[achievement_id] = achievement.model_copy(
            update={"is_unlocked": True, "unlocked_at": unlocked_at}
        )
        return True

    # ==========================================
    # Time Tracking Sessions
    # ==========================================

    async def create_session(self, habit_id: int, start_time: datetime) -> HabitSession:
        session = HabitSession(
            id=self._next_session_id,
            habit_id=habit_id,
            date=start_time.date(),
            start_time=start_time,
        )
        self._sessions[session.id] = session
        self._next_session_id += 1
        return session.model_copy()

    async def get_session(self, session_id: int) -> Optional[HabitSession]:
        session = self._sessions.get(session_id)
        return session.model_copy() if session else None

    async def update_session(self, session: HabitSession) -> None:
        self._sessions[session.id] = session.model_copy()

    async def get_active_sessions(self, habit_id: Optional[int] = None) -> list[HabitSession]:
        sessions = [
            s for s in self._sessions.values()
            if s.end_time is None and (habit_id is None or s.habit_id == habit_id)
        ]
        sessions.sort(key=lambda s: s.start_time, reverse=True)
        return [s.model_copy() for s in sessions]

    async def get_sessions(self, habit_id: int, start: date, end: date) -> list[HabitSession]:
        sessions = [
            s for s in self._sessions.values()
            if s.habit_id == habit_id and start <= s.date <= end
        ]
        sessions.sort(key=lambda s: s.start_time, reverse=True)
        return [s.model_copy() for s in sessions]

    async def delete_session(self, session_id: int) -> bool:
        return self._sessions.pop(session_id, None) is not None
