"""Unit tests for PostgresHabitStore (habitca/db/postgres_store.py)"""
import pytest
from contextlib import asynccontextmanager
from datetime import date
from unittest.mock import MagicMock

from habitca.db.connection import Database
from habitca.db.postgres_store import PostgresHabitStore
from habitca.exceptions import ConnectionError, InvariantViolationError, QueryError
from habitca.models.achievement import AchievementTier, RequirementType
from habitca.models.habit import CompletionRecord
from tests.helpers import NOW, TODAY, habit_input


def _store_for(conn) -> PostgresHabitStore:
    """Store whose Database hands out `conn`"""
    db = MagicMock()

    @asynccontextmanager
    async def connection():
        yield conn

    db.connection = connection
    return PostgresHabitStore(db)


def _log_row(**overrides):
    row = {
        "habit_id": 1,
        "date": TODAY,
        "completed": True,
        "xp_earned": 10,
        "time_spent": 0,
        "completed_at": None,
    }
    row.update(overrides)
    return row


# ============================================================================
# Connection Tests
# ============================================================================

@pytest.mark.asyncio
async def test_uninitialized_pool_raises_connection_error():
    store = PostgresHabitStore(Database("postgresql://localhost/unused"))

    with pytest.raises(ConnectionError):
        await store.get_habits()


# ============================================================================
# Habit Tests
# ============================================================================

@pytest.mark.asyncio
async def test_add_habit(mock_db_connection, mock_db_cursor):
    mock_db_cursor.fetchone.return_value = {
        "id": 5,
        "title": "Morning Run",
        "description": "",
        "emoji": "⭐",
        "category": "Other / Custom",
        "frequency": "daily",
        "time": "07:00",
        "created_at": TODAY,
        "is_active": True,
        "track_time": False,
    }
    store = _store_for(mock_db_connection)

    habit = await store.add_habit(habit_input(), created_at=TODAY)

    assert habit.id == 5
    query, params = mock_db_cursor.execute.call_args.args
    assert "INSERT INTO habits" in query
    assert params[0] == "Morning Run"
    assert params[-1] == TODAY
    mock_db_connection.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_add_habit_without_returned_row(mock_db_connection):
    store = _store_for(mock_db_connection)

    with pytest.raises(QueryError):
        await store.add_habit(habit_input(), created_at=TODAY)


@pytest.mark.asyncio
async def test_set_habit_active_reports_missing(mock_db_connection, mock_db_cursor):
    mock_db_cursor.rowcount = 0
    store = _store_for(mock_db_connection)

    assert await store.set_habit_active(99, False) is False


# ============================================================================
# Completion Ledger Tests
# ============================================================================

@pytest.mark.asyncio
async def test_get_completion_record(mock_db_connection, mock_db_cursor):
    mock_db_cursor.fetchall.return_value = [_log_row(time_spent=120)]
    store = _store_for(mock_db_connection)

    record = await store.get_completion_record(1, TODAY)

    assert record.completed is True
    assert record.time_spent == 120


@pytest.mark.asyncio
async def test_get_completion_record_missing(mock_db_connection):
    store = _store_for(mock_db_connection)

    assert await store.get_completion_record(1, TODAY) is None


@pytest.mark.asyncio
async def test_duplicate_completion_rows_raise(mock_db_connection, mock_db_cursor):
    mock_db_cursor.fetchall.return_value = [_log_row(), _log_row(completed=False, xp_earned=0)]
    store = _store_for(mock_db_connection)

    with pytest.raises(InvariantViolationError) as exc_info:
        await store.get_completion_record(1, TODAY)

    assert exc_info.value.invariant == "one_record_per_habit_day"


@pytest.mark.asyncio
async def test_upsert_completion_record_uses_conflict_clause(mock_db_connection, mock_db_cursor):
    store = _store_for(mock_db_connection)

    await store.upsert_completion_record(CompletionRecord(habit_id=1, date=TODAY, completed=True, xp_earned=10))

    query, params = mock_db_cursor.execute.call_args.args
    assert "ON CONFLICT (habit_id, date) DO UPDATE" in query
    assert params[:4] == (1, TODAY, True, 10)


@pytest.mark.asyncio
async def test_all_completion_records_filters(mock_db_connection, mock_db_cursor):
    store = _store_for(mock_db_connection)

    await store.get_all_completion_records(start=date(2026, 10, 1), completed_only=True)

    query, params = mock_db_cursor.execute.call_args.args
    assert "date >= %s" in query
    assert "date <= %s" not in query
    assert "completed" in query
    assert params == (date(2026, 10, 1),)


@pytest.mark.asyncio
async def test_count_completions_by_day(mock_db_connection, mock_db_cursor):
    mock_db_cursor.fetchall.return_value = [{"date": TODAY, "completed_count": 3}]
    store = _store_for(mock_db_connection)

    assert await store.count_completions_by_day(TODAY, TODAY) == {TODAY: 3}


# ============================================================================
# User Stats Tests
# ============================================================================

@pytest.mark.asyncio
async def test_get_user_stats_defaults_when_row_missing(mock_db_connection):
    store = _store_for(mock_db_connection)

    stats = await store.get_user_stats()

    assert stats.level == 1
    assert stats.xp == 0


@pytest.mark.asyncio
async def test_update_user_counters_merges(mock_db_connection, mock_db_cursor):
    mock_db_cursor.fetchone.return_value = {
        "id": 1, "level": 2, "xp": 80, "total_streaks": 0, "longest_streak": 4,
        "achievements": {"social_shares": 1},
    }
    store = _store_for(mock_db_connection)

    stats = await store.update_user_counters({"social_shares": 1, "habit_notes": 1})

    assert stats.achievements == {"social_shares": 2, "habit_notes": 1}
    assert stats.xp == 80
    update_query, (payload,) = mock_db_cursor.execute.call_args.args
    assert "UPDATE user_stats SET achievements" in update_query
    assert payload.obj == {"social_shares": 2, "habit_notes": 1}


# ============================================================================
# Achievement Tests
# ============================================================================

@pytest.mark.asyncio
async def test_get_achievements_maps_unlock_state(mock_db_connection, mock_db_cursor):
    mock_db_cursor.fetchall.return_value = [{
        "id": "first_habit",
        "title": "First Steps",
        "description": "Complete your first habit",
        "icon": "🎯",
        "type": "bronze",
        "requirement_type": "habits_completed",
        "requirement_value": 1,
        "requirement_timeframe": None,
        "xp_reward": 50,
        "unlocked_at": NOW,
    }]
    store = _store_for(mock_db_connection)

    (achievement,) = await store.get_achievements()

    assert achievement.is_unlocked
    assert achievement.type == AchievementTier.BRONZE
    assert achievement.requirement.type == RequirementType.HABITS_COMPLETED


@pytest.mark.asyncio
async def test_set_achievement_unlocked_conflict(mock_db_connection, mock_db_cursor):
    mock_db_cursor.rowcount = 0
    store = _store_for(mock_db_connection)

    assert await store.set_achievement_unlocked("first_habit", NOW, 50) is False
