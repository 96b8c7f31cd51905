"""Unit tests for InMemoryHabitStore (habitca/db/memory_store.py)"""
import pytest
from datetime import timedelta

from habitca.gamification.achievement_catalog import DEFAULT_ACHIEVEMENTS
from habitca.models.habit import CompletionRecord
from tests.helpers import NOW, TODAY, add_habit, habit_input, mark_completed


@pytest.mark.asyncio
async def test_habits_newest_first(bare_store):
    old = await add_habit(bare_store, "Old", created_at=TODAY - timedelta(days=3))
    new = await add_habit(bare_store, "New", created_at=TODAY)

    habits = await bare_store.get_habits()

    assert [h.id for h in habits] == [new.id, old.id]


@pytest.mark.asyncio
async def test_returned_models_are_copies(bare_store):
    habit = await add_habit(bare_store)
    habit.title = "Changed outside"

    assert (await bare_store.get_habit(habit.id)).title == "Morning Run"


@pytest.mark.asyncio
async def test_update_habit_keeps_identity(bare_store):
    habit = await add_habit(bare_store, created_at=TODAY - timedelta(days=2))

    updated = await bare_store.update_habit(habit.id, habit_input("Evening Run", "19:00"))

    assert updated.id == habit.id
    assert updated.created_at == habit.created_at
    assert updated.time == "19:00"


@pytest.mark.asyncio
async def test_one_record_per_habit_day(bare_store):
    habit = await add_habit(bare_store)
    await mark_completed(bare_store, habit.id, [TODAY])
    await bare_store.upsert_completion_record(CompletionRecord(habit_id=habit.id, date=TODAY))

    records = await bare_store.get_completion_records(habit.id, TODAY, TODAY)

    assert len(records) == 1
    assert records[0].completed is False


@pytest.mark.asyncio
async def test_completed_dates_newest_first(bare_store):
    habit = await add_habit(bare_store)
    await mark_completed(bare_store, habit.id, [TODAY - timedelta(days=2), TODAY])
    await bare_store.upsert_completion_record(
        CompletionRecord(habit_id=habit.id, date=TODAY - timedelta(days=1))
    )

    assert await bare_store.get_completed_dates(habit.id) == [TODAY, TODAY - timedelta(days=2)]


@pytest.mark.asyncio
async def test_count_completions_by_day(bare_store):
    first = await add_habit(bare_store, "Read")
    second = await add_habit(bare_store, "Run")
    await mark_completed(bare_store, first.id, [TODAY, TODAY - timedelta(days=1)])
    await mark_completed(bare_store, second.id, [TODAY])

    counts = await bare_store.count_completions_by_day(TODAY - timedelta(days=1), TODAY)

    assert counts == {TODAY: 2, TODAY - timedelta(days=1): 1}


@pytest.mark.asyncio
async def test_user_counters_accumulate(bare_store):
    await bare_store.update_user_counters({"social_shares": 1})
    stats = await bare_store.update_user_counters({"social_shares": 2, "habit_notes": 1})

    assert stats.counter("social_shares") == 3
    assert stats.counter("habit_notes") == 1
    assert stats.counter("habit_edits") == 0


@pytest.mark.asyncio
async def test_seed_achievements_is_idempotent(bare_store):
    assert await bare_store.seed_achievements(DEFAULT_ACHIEVEMENTS) == len(DEFAULT_ACHIEVEMENTS)
    await bare_store.set_achievement_unlocked("first_habit", NOW, 50)

    assert await bare_store.seed_achievements(DEFAULT_ACHIEVEMENTS) == 0
    unlocked = [a.id for a in await bare_store.get_achievements() if a.is_unlocked]
    assert unlocked == ["first_habit"]


@pytest.mark.asyncio
async def test_set_achievement_unlocked_once(store):
    assert await store.set_achievement_unlocked("first_habit", NOW, 50) is True
    assert await store.set_achievement_unlocked("first_habit", NOW, 50) is False
    assert await store.set_achievement_unlocked("no_such_badge", NOW, 10) is False


@pytest.mark.asyncio
async def test_sessions(bare_store):
    habit = await add_habit(bare_store, track_time=True)
    session = await bare_store.create_session(habit.id, NOW)

    assert session.date == TODAY
    assert [s.id for s in await bare_store.get_active_sessions()] == [session.id]
    assert await bare_store.get_active_sessions(habit_id=habit.id + 1) == []

    await bare_store.update_session(session.model_copy(update={"end_time": NOW + timedelta(minutes=1)}))
    assert await bare_store.get_active_sessions() == []
    assert len(await bare_store.get_sessions(habit.id, TODAY, TODAY)) == 1

    assert await bare_store.delete_session(session.id) is True
    assert await bare_store.get_session(session.id) is None
