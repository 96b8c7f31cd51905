"""
Storage collaborator interface

The progression engine only talks to persistence through this protocol.
Implementations return models by value; the engine fetches, computes and
writes back, holding no long-lived object graph.
"""
from datetime import date, datetime
from typing import Optional, Protocol, runtime_checkable

from habitca.models.achievement import Achievement
from habitca.models.habit import CompletionRecord, Habit, HabitInput
from habitca.models.session import HabitSession
from habitca.models.user_stats import UserStats


@runtime_checkable
class HabitStore(Protocol):
    """Async storage interface used by every service"""

    # Habits
    async def add_habit(self, habit: HabitInput, created_at: date) -> Habit: ...

    async def update_habit(self, habit_id: int, habit: HabitInput) -> Optional[Habit]: ...

    async def get_habit(self, habit_id: int) -> Optional[Habit]: ...

    async def get_habits(self) -> list[Habit]:
        """Active habits, newest first"""
        ...

    async def get_all_habits(self) -> list[Habit]:
        """Every habit ever created, including soft-deleted ones"""
        ...

    async def set_habit_active(self, habit_id: int, is_active: bool) -> bool: ...

    # Completion ledger
    async def get_completion_record(self, habit_id: int, day: date) -> Optional[CompletionRecord]: ...

    async def get_completion_records(self, habit_id: int, start: date, end: date) -> list[CompletionRecord]:
        """Records for one habit in [start, end], ascending by date"""
        ...

    async def get_completed_dates(self, habit_id: int) -> list[date]:
        """Completed dates for one habit, descending"""
        ...

    async def get_all_completion_records(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
        completed_only: bool = True,
    ) -> list[CompletionRecord]: ...

    async def upsert_completion_record(self, record: CompletionRecord) -> None: ...

    async def count_completions_by_day(self, start: date, end: date) -> dict[date, int]: ...

    # User stats (single row)
    async def get_user_stats(self) -> UserStats: ...

    async def set_user_stats(self, xp: int, level: int) -> None: ...

    async def update_user_counters(self, increments: dict[str, int]) -> UserStats: ...

    async def set_longest_streak(self, longest_streak: int) -> None: ...

    # Achievements
    async def seed_achievements(self, achievements: list[Achievement]) -> int: ...

    async def get_achievements(self) -> list[Achievement]: ...

    async def set_achievement_unlocked(self, achievement_id: str, unlocked_at: datetime, xp_earned: int) -> bool:
        """Returns False when the achievement is unknown or already unlocked"""
        ...

    # Time tracking sessions
    async def create_session(self, habit_id: int, start_time: datetime) -> HabitSession: ...

    async def get_session(self, session_id: int) -> Optional[HabitSession]: ...

    async def update_session(self, session: HabitSession) -> None: ...

    async def get_active_sessions(self, habit_id: Optional[int] = None) -> list[HabitSession]: ...

    async def get_sessions(self, habit_id: int, start: date, end: date) -> list[HabitSession]: ...

    async def delete_session(self, session_id: int) -> bool: ...
