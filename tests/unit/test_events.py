"""Unit tests for DataChangeBus (habitca/events.py)"""
import pytest
from unittest.mock import AsyncMock, MagicMock

from habitca.events import HABIT_DATA_CHANGED, LEVEL_UP, DataChangeBus


@pytest.mark.asyncio
async def test_emit_calls_sync_and_async_subscribers():
    bus = DataChangeBus()
    sync_listener = MagicMock(return_value=None)
    async_listener = AsyncMock()
    bus.subscribe(HABIT_DATA_CHANGED, sync_listener)
    bus.subscribe(HABIT_DATA_CHANGED, async_listener)

    await bus.emit(HABIT_DATA_CHANGED, habit_id=3)

    sync_listener.assert_called_once_with(habit_id=3)
    async_listener.assert_awaited_once_with(habit_id=3)


@pytest.mark.asyncio
async def test_emit_only_reaches_matching_event():
    bus = DataChangeBus()
    listener = AsyncMock()
    bus.subscribe(LEVEL_UP, listener)

    await bus.emit(HABIT_DATA_CHANGED, habit_id=1)

    listener.assert_not_awaited()


def test_subscribe_is_idempotent():
    bus = DataChangeBus()
    listener = MagicMock()

    bus.subscribe(LEVEL_UP, listener)
    bus.subscribe(LEVEL_UP, listener)

    assert bus.subscriber_count(LEVEL_UP) == 1


@pytest.mark.asyncio
async def test_unsubscribe():
    bus = DataChangeBus()
    listener = AsyncMock()
    bus.subscribe(HABIT_DATA_CHANGED, listener)

    bus.unsubscribe(HABIT_DATA_CHANGED, listener)
    bus.unsubscribe(HABIT_DATA_CHANGED, listener)
    await bus.emit(HABIT_DATA_CHANGED, habit_id=1)

    listener.assert_not_awaited()
    assert bus.subscriber_count(HABIT_DATA_CHANGED) == 0


@pytest.mark.asyncio
async def test_failing_subscriber_is_isolated(caplog):
    bus = DataChangeBus()
    failing = AsyncMock(side_effect=RuntimeError("boom"))
    healthy = AsyncMock()
    bus.subscribe(HABIT_DATA_CHANGED, failing)
    bus.subscribe(HABIT_DATA_CHANGED, healthy)

    await bus.emit(HABIT_DATA_CHANGED, habit_id=1)

    healthy.assert_awaited_once_with(habit_id=1)
    assert "boom" in caplog.text
