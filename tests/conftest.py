"""Global test fixtures and utilities for habitca tests"""
import pytest
from unittest.mock import AsyncMock, MagicMock

from habitca.db.memory_store import InMemoryHabitStore
from habitca.events import DataChangeBus
from habitca.gamification.achievement_catalog import DEFAULT_ACHIEVEMENTS
from habitca.services.activity_service import ActivityService
from habitca.services.completion_service import CompletionService
from habitca.services.habit_service import HabitService
from habitca.services.session_service import SessionService
from tests.helpers import NOW, TODAY


# ============================================================================
# Reference Dates
# ============================================================================

@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def now():
    return NOW


# ============================================================================
# Storage Fixtures
# ============================================================================

@pytest.fixture
def bare_store():
    """Empty in-memory store without the achievement catalog"""
    return InMemoryHabitStore()


@pytest.fixture
async def store():
    """In-memory store with the default achievement catalog seeded"""
    store = InMemoryHabitStore()
    await store.seed_achievements(DEFAULT_ACHIEVEMENTS)
    return store


@pytest.fixture
def mock_db_cursor():
    """Mock psycopg cursor with empty results"""
    cursor = AsyncMock()
    cursor.fetchone = AsyncMock(return_value=None)
    cursor.fetchall = AsyncMock(return_value=[])
    cursor.execute = AsyncMock()
    cursor.rowcount = 1
    return cursor


@pytest.fixture
def mock_db_connection(mock_db_cursor):
    """Mock psycopg connection whose cursor() yields mock_db_cursor"""
    conn = MagicMock()
    conn.cursor.return_value.__aenter__.return_value = mock_db_cursor
    conn.commit = AsyncMock()
    return conn


# ============================================================================
# Service Fixtures
# ============================================================================

@pytest.fixture
def bus():
    return DataChangeBus()


@pytest.fixture
def ledger(store, bus):
    return CompletionService(store, bus)


@pytest.fixture
def habit_service(store, bus):
    return HabitService(store, bus)


@pytest.fixture
def session_service(store, ledger, bus):
    return SessionService(store, ledger, bus)


@pytest.fixture
def activity_service(store):
    return ActivityService(store)
