"""
CompletionService - Completion Ledger

Owns the per-(habit, date) completion records and keeps user XP consistent
with them:
- complete: award 10 XP + 5 per full week of the run ending the day before
- uncomplete: revoke exactly what the day earned, keeping the row
- toggle: complete/uncomplete plus achievements, longest streak and events

Every mutation runs under one asyncio.Lock, so the read streak / compute /
write / apply XP / evaluate achievements sequence never interleaves.
"""

import asyncio
import logging
from datetime import date, datetime, timedelta
from typing import Any, Dict, Optional

from habitca.db.store import HabitStore
from habitca.events import (
    ACHIEVEMENT_UNLOCKED,
    HABIT_DATA_CHANGED,
    LEVEL_UP,
    DataChangeBus,
)
from habitca.exceptions import AlreadyCompletedError, RecordNotFoundError
from habitca.gamification.achievement_system import check_and_award_achievements
from habitca.gamification.streak_system import (
    calculate_completion_xp,
    calculate_current_streak,
    get_habit_streak,
    get_longest_streak,
    get_prior_streak,
)
from habitca.gamification.xp_system import (
    award_xp,
    get_level_rewards,
    get_level_title,
    get_xp_progress,
)
from habitca.models.habit import CompletionRecord
from habitca.models.user_stats import LevelUpData, ToggleResult, UserStats, XPProgress
from habitca.observability.metrics import record_completion

logger = logging.getLogger(__name__)

STATS_WINDOW_DAYS = 30


class CompletionService:
    """
    Service for the completion ledger.

    Responsibilities:
    - Completing and uncompleting a habit for a day
    - XP award and revocation for those changes
    - Running the achievement engine after a completion
    - Per-habit streak and completion statistics
    """

    def __init__(self, store: HabitStore, bus: Optional[DataChangeBus] = None):
        """
        Initialize CompletionService.

        Args:
            store: Storage collaborator
            bus: Event bus notified after every mutation
        """
        self.store = store
        self.bus = bus or DataChangeBus()
        self._lock = asyncio.Lock()
        logger.debug("CompletionService initialized")

    # ==========================================
    # Ledger
    # ==========================================

    async def complete(
        self,
        habit_id: int,
        day: date,
        completed_at: Optional[datetime] = None,
    ) -> int:
        """
        Mark a habit completed for a day and award XP

        Returns:
            XP earned for the day

        Raises:
            AlreadyCompletedError: The day is already completed
            RecordNotFoundError: Unknown habit
        """
        async with self._lock:
            xp_earned, _ = await self._complete(habit_id, day, completed_at)
            return xp_earned

    async def uncomplete(self, habit_id: int, day: date) -> int:
        """
        Revoke a day's completion and the XP it earned

        Missing or not-completed records are a no-op.

        Returns:
            XP revoked (0 for a no-op)
        """
        async with self._lock:
            return await self._uncomplete(habit_id, day)

    async def is_completed(self, habit_id: int, day: date) -> bool:
        record = await self.store.get_completion_record(habit_id, day)
        return record is not None and record.completed

    async def toggle_habit_completion(
        self,
        habit_id: int,
        day: date,
        now: Optional[datetime] = None,
    ) -> ToggleResult:
        """
        Flip a habit's completion for a day

        After a completion the achievement engine runs and the longest streak
        is refreshed. Listeners get habit_data_changed (plus level_up and
        achievement_unlocked when they apply).

        Args:
            habit_id: Habit to toggle
            day: Calendar day being toggled
            now: Wall-clock moment of the toggle (defaults to datetime.now())

        Returns:
            ToggleResult (xp_earned is negative when a completion was revoked)
        """
        now = now or datetime.now()

        async with self._lock:
            record = await self.store.get_completion_record(habit_id, day)
            if record is not None and record.completed:
                revoked = await self._uncomplete(habit_id, day)
                result = ToggleResult(habit_id=habit_id, completed=False, xp_earned=-revoked)
            else:
                result = await self._complete_and_evaluate(habit_id, day, now)

        await self._notify(result)
        return result

    async def log_session_time(
        self,
        habit_id: int,
        day: date,
        seconds: int,
        now: Optional[datetime] = None,
    ) -> Optional[ToggleResult]:
        """
        Add tracked time to a day, completing it if it is not completed yet

        Returns:
            ToggleResult when this call completed the day, otherwise None
        """
        now = now or datetime.now()

        async with self._lock:
            result = await self.add_session_time(habit_id, day, seconds, now)

        await self.notify_session_time(habit_id, result)
        return result

    @property
    def lock(self) -> asyncio.Lock:
        """Lock serialising every ledger mutation"""
        return self._lock

    async def add_session_time(
        self,
        habit_id: int,
        day: date,
        seconds: int,
        now: datetime,
    ) -> Optional[ToggleResult]:
        """
        log_session_time for callers already holding `lock`

        Emits nothing; pass the result to notify_session_time once the lock
        is released.
        """
        record = await self.store.get_completion_record(habit_id, day)
        if record is None:
            record = CompletionRecord(habit_id=habit_id, date=day)

        record.time_spent += max(0, seconds)
        await self.store.upsert_completion_record(record)
        logger.info(f"Logged {seconds}s for habit {habit_id} on {day}")

        if record.completed:
            return None
        return await self._complete_and_evaluate(habit_id, day, now)

    async def notify_session_time(self, habit_id: int, result: Optional[ToggleResult]) -> None:
        if result is not None:
            await self._notify(result)
        else:
            await self.bus.emit(HABIT_DATA_CHANGED, habit_id=habit_id)

    # ==========================================
    # Queries
    # ==========================================

    async def get_current_streak(self, habit_id: int, day: date) -> int:
        return await get_habit_streak(self.store, habit_id, day)

    async def get_xp_progress(self, xp: Optional[int] = None, level: Optional[int] = None) -> XPProgress:
        """Progress inside the current level (reads user stats when not given)"""
        if xp is None or level is None:
            stats = await self.store.get_user_stats()
            xp, level = stats.xp, stats.level
        return get_xp_progress(xp, level)

    async def get_habit_stats(self, habit_id: int, today: date) -> Dict[str, Any]:
        """
        Streak and completion statistics for one habit

        Returns:
            {
                'current_streak': int,
                'longest_streak': int,
                'completion_rate': int,  # % of the last 30 days, rounded
                'total_completed': int,
                'completed_today': bool
            }
        """
        completed_dates = await self.store.get_completed_dates(habit_id)
        window_start = today - timedelta(days=STATS_WINDOW_DAYS - 1)
        recent = [d for d in completed_dates if window_start <= d <= today]

        return {
            "current_streak": calculate_current_streak(completed_dates, today),
            "longest_streak": await get_longest_streak(self.store, habit_id),
            "completion_rate": round(len(recent) / STATS_WINDOW_DAYS * 100),
            "total_completed": len(completed_dates),
            "completed_today": today in completed_dates,
        }

    # ==========================================
    # Internals (caller holds the lock)
    # ==========================================

    async def _complete(
        self,
        habit_id: int,
        day: date,
        completed_at: Optional[datetime],
    ) -> tuple[int, Optional[LevelUpData]]:
        habit = await self.store.get_habit(habit_id)
        if habit is None:
            raise RecordNotFoundError(
                f"Habit {habit_id} does not exist",
                record_type="Habit",
                record_id=habit_id,
                operation="complete",
            )

        existing = await self.store.get_completion_record(habit_id, day)
        if existing is not None and existing.completed:
            raise AlreadyCompletedError(habit_id, day)

        # Streak before this day's record is written
        prior_streak = await get_prior_streak(self.store, habit_id, day)
        xp_earned = calculate_completion_xp(prior_streak)

        await self.store.upsert_completion_record(CompletionRecord(
            habit_id=habit_id,
            date=day,
            completed=True,
            xp_earned=xp_earned,
            time_spent=existing.time_spent if existing else 0,
            completed_at=completed_at,
        ))

        xp_result = await award_xp(self.store, xp_earned, source_type="completion")
        record_completion("complete")

        logger.info(
            f"Completed habit {habit_id} for {day} "
            f"(prior streak {prior_streak}) +{xp_earned} XP"
        )
        return xp_earned, xp_result["level_up_data"]

    async def _uncomplete(self, habit_id: int, day: date) -> int:
        record = await self.store.get_completion_record(habit_id, day)
        if record is None or not record.completed:
            return 0

        revoked = record.xp_earned
        await self.store.upsert_completion_record(
            record.model_copy(update={"completed": False, "xp_earned": 0, "completed_at": None})
        )
        await award_xp(self.store, -revoked, source_type="completion")
        record_completion("uncomplete")

        logger.info(f"Uncompleted habit {habit_id} for {day} -{revoked} XP")
        return revoked

    async def _complete_and_evaluate(self, habit_id: int, day: date, now: datetime) -> ToggleResult:
        stats_before = await self.store.get_user_stats()
        xp_earned, level_up = await self._complete(habit_id, day, now)

        unlocked = await check_and_award_achievements(self.store, today=now.date(), now=now)

        # Achievement XP can push the level further than the completion alone
        stats_after = await self.store.get_user_stats()
        if stats_after.level > stats_before.level:
            level_up = self._level_up_data(stats_before.level, stats_after, stats_after.xp - stats_before.xp)

        await self._refresh_longest_streak(habit_id, stats_after.longest_streak)

        return ToggleResult(
            habit_id=habit_id,
            completed=True,
            xp_earned=xp_earned,
            newly_unlocked_achievement_ids=unlocked,
            level_up=level_up,
        )

    @staticmethod
    def _level_up_data(previous_level: int, stats: UserStats, xp_gained: int) -> LevelUpData:
        return LevelUpData(
            new_level=stats.level,
            previous_level=previous_level,
            xp_gained=xp_gained,
            total_xp=stats.xp,
            level_title=get_level_title(stats.level),
            level_rewards=get_level_rewards(stats.level),
        )

    async def _refresh_longest_streak(self, habit_id: int, current_longest: int) -> None:
        longest = await get_longest_streak(self.store, habit_id)
        if longest > current_longest:
            await self.store.set_longest_streak(longest)

    async def _notify(self, result: ToggleResult) -> None:
        await self.bus.emit(HABIT_DATA_CHANGED, habit_id=result.habit_id)
        if result.level_up is not None:
            await self.bus.emit(LEVEL_UP, level_up=result.level_up)
        for achievement_id in result.newly_unlocked_achievement_ids:
            await self.bus.emit(ACHIEVEMENT_UNLOCKED, achievement_id=achievement_id)
