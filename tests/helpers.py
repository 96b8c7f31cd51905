"""Shared test data builders"""
import asyncio
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from habitca.db.memory_store import InMemoryHabitStore
from habitca.models.habit import CompletionRecord, HabitInput

# Monday
TODAY = date(2026, 10, 19)
NOW = datetime(2026, 10, 19, 9, 0, 0)


def habit_input(title: str = "Morning Run", time: str = "07:00", **kwargs) -> HabitInput:
    return HabitInput(title=title, time=time, **kwargs)


async def add_habit(store, title: str = "Morning Run", created_at: date = TODAY, **kwargs):
    return await store.add_habit(habit_input(title, **kwargs), created_at=created_at)


async def mark_completed(
    store,
    habit_id: int,
    days: Iterable[date],
    xp_earned: int = 10,
    completed_at: Optional[datetime] = None,
) -> None:
    """Write completed ledger rows directly, bypassing XP"""
    for day in days:
        await store.upsert_completion_record(CompletionRecord(
            habit_id=habit_id,
            date=day,
            completed=True,
            xp_earned=xp_earned,
            completed_at=completed_at,
        ))


class InterleavingStore(InMemoryHabitStore):
    """In-memory store whose reads hand control back to the event loop"""

    async def get_completion_record(self, habit_id, day):
        record = await super().get_completion_record(habit_id, day)
        await asyncio.sleep(0)
        return record

    async def get_completed_dates(self, habit_id):
        dates = await super().get_completed_dates(habit_id)
        await asyncio.sleep(0)
        return dates

    async def get_user_stats(self):
        stats = await super().get_user_stats()
        await asyncio.sleep(0)
        return stats

    async def get_session(self, session_id):
        session = await super().get_session(session_id)
        await asyncio.sleep(0)
        return session


def days_back(end: date, count: int) -> list[date]:
    """`count` consecutive days ending at `end`, oldest first"""
    return [end - timedelta(days=offset) for offset in range(count - 1, -1, -1)]
