"""
HabitService - Habit Management

Handles habit CRUD (soft delete), sample data and the social share trigger.
"""

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from habitca.db.store import HabitStore
from habitca.events import ACHIEVEMENT_UNLOCKED, HABIT_DATA_CHANGED, DataChangeBus
from habitca.exceptions import ValidationError
from habitca.gamification.achievement_catalog import SOCIAL_SHARE_ACHIEVEMENT_ID
from habitca.gamification.achievement_system import unlock_achievement
from habitca.models.habit import Habit, HabitInput

logger = logging.getLogger(__name__)

SAMPLE_HABITS: List[Dict[str, Any]] = [
    {
        "title": "Morning Meditation",
        "description": "Start the day with 10 minutes of mindfulness",
        "emoji": "🧘",
        "category": "Mindfulness & Mental Health",
        "time": "07:00",
        "track_time": True,
    },
    {
        "title": "Read for 30 minutes",
        "description": "Read books to expand knowledge and vocabulary",
        "emoji": "📖",
        "category": "Study & Learning",
        "time": "20:00",
        "track_time": True,
    },
    {
        "title": "Exercise",
        "description": "Get moving with any form of physical activity",
        "emoji": "🏃‍♂️",
        "category": "Health & Fitness",
        "time": "18:00",
        "track_time": True,
    },
    {
        "title": "Drink 8 glasses of water",
        "description": "Stay hydrated throughout the day",
        "emoji": "💧",
        "category": "Health & Fitness",
        "time": "09:00",
        "track_time": False,
    },
]


def parse_habit_input(data: Union[HabitInput, Dict[str, Any]]) -> HabitInput:
    """
    Validate a create/update payload

    Raises:
        ValidationError: First failing field of the payload
    """
    if isinstance(data, HabitInput):
        return data

    try:
        return HabitInput(**data)
    except PydanticValidationError as e:
        first_error = e.errors()[0] if e.errors() else {}
        loc = first_error.get("loc") or ("input",)
        field = str(loc[0])
        raise ValidationError(
            first_error.get("msg", "Invalid value"),
            field=field,
            value=data.get(field),
            operation="parse_habit_input",
            cause=e,
        )


def _edited_marker(habit_id: int) -> str:
    return f"edited_habit_{habit_id}"


class HabitService:
    """
    Service for habit management.

    Responsibilities:
    - Create, update, soft-delete and restore habits
    - Activity counters for edits and social shares
    - Sample habits for a fresh install
    """

    def __init__(self, store: HabitStore, bus: Optional[DataChangeBus] = None):
        self.store = store
        self.bus = bus or DataChangeBus()
        logger.debug("HabitService initialized")

    async def add_habit(
        self,
        data: Union[HabitInput, Dict[str, Any]],
        today: Optional[date] = None,
    ) -> Habit:
        habit_input = parse_habit_input(data)
        habit = await self.store.add_habit(habit_input, created_at=today or date.today())
        logger.info(f"Added habit {habit.id}: {habit.title}")

        await self.bus.emit(HABIT_DATA_CHANGED, habit_id=habit.id)
        return habit

    async def update_habit(
        self,
        habit_id: int,
        data: Union[HabitInput, Dict[str, Any]],
    ) -> Optional[Habit]:
        """
        Update a habit

        The first edit of each habit counts toward the habit_edits counter, so
        it reflects how many different habits were refined.

        Returns:
            Updated habit, or None if it does not exist
        """
        habit_input = parse_habit_input(data)
        habit = await self.store.update_habit(habit_id, habit_input)
        if habit is None:
            return None

        stats = await self.store.get_user_stats()
        if not stats.counter(_edited_marker(habit_id)):
            await self.store.update_user_counters({
                _edited_marker(habit_id): 1,
                "habit_edits": 1,
            })

        logger.info(f"Updated habit {habit_id}")
        await self.bus.emit(HABIT_DATA_CHANGED, habit_id=habit_id)
        return habit

    async def delete_habit(self, habit_id: int) -> bool:
        """Soft delete: history is kept and the habit can be restored"""
        deleted = await self.store.set_habit_active(habit_id, False)
        if deleted:
            logger.info(f"Deleted habit {habit_id}")
            await self.bus.emit(HABIT_DATA_CHANGED, habit_id=habit_id)
        return deleted

    async def restore_habit(self, habit_id: int) -> bool:
        restored = await self.store.set_habit_active(habit_id, True)
        if restored:
            logger.info(f"Restored habit {habit_id}")
            await self.bus.emit(HABIT_DATA_CHANGED, habit_id=habit_id)
        return restored

    async def get_habits(self) -> List[Habit]:
        """Active habits, newest first"""
        return await self.store.get_habits()

    async def get_habit(self, habit_id: int) -> Optional[Habit]:
        return await self.store.get_habit(habit_id)

    async def seed_sample_habits(self, today: Optional[date] = None) -> List[Habit]:
        """
        Add the sample habits to an empty store

        Deleted habits count as existing, so samples never come back after
        the user removed them.
        """
        if await self.store.get_all_habits():
            return []

        created = []
        for sample in SAMPLE_HABITS:
            created.append(await self.store.add_habit(HabitInput(**sample), created_at=today or date.today()))

        logger.info(f"Seeded {len(created)} sample habits")
        await self.bus.emit(HABIT_DATA_CHANGED, habit_id=None)
        return created

    async def trigger_social_share(self, now: Optional[datetime] = None) -> bool:
        """
        Record a share and unlock the social share achievement

        Returns:
            True when the achievement was unlocked by this share
        """
        now = now or datetime.now()
        await self.store.update_user_counters({"social_shares": 1})

        unlocked = await unlock_achievement(self.store, SOCIAL_SHARE_ACHIEVEMENT_ID, now)
        if unlocked:
            logger.info("Social share achievement unlocked")
            await self.bus.emit(ACHIEVEMENT_UNLOCKED, achievement_id=SOCIAL_SHARE_ACHIEVEMENT_ID)
        return unlocked
