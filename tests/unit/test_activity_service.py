"""Unit tests for ActivityService (habitca/services/activity_service.py)"""
import pytest
from datetime import date, timedelta
from unittest.mock import patch

from habitca.exceptions import ValidationError
from habitca.models.habit import CompletionRecord
from habitca.services.activity_service import period_label, period_start, shift_period
from tests.helpers import NOW, TODAY, add_habit, mark_completed


async def _log_time(store, habit_id, day, seconds, completed=True):
    await store.upsert_completion_record(CompletionRecord(
        habit_id=habit_id, date=day, completed=completed, xp_earned=10 if completed else 0, time_spent=seconds,
    ))


# ============================================================================
# Period Arithmetic Tests
# ============================================================================

def test_week_starts_on_monday():
    assert period_start(date(2026, 10, 25), "week") == date(2026, 10, 19)
    assert period_start(date(2026, 10, 19), "week") == date(2026, 10, 19)


def test_shift_month_across_year():
    assert shift_period(date(2026, 1, 1), "month", -2) == date(2025, 11, 1)


@pytest.mark.parametrize("granularity,expected", [
    ("day", "Oct 19"),
    ("month", "Oct 2026"),
    ("year", "2026"),
])
def test_period_labels(granularity, expected):
    assert period_label(period_start(TODAY, granularity), granularity) == expected


def test_week_label_uses_iso_week():
    assert period_label(TODAY, "week") == f"Week {TODAY.isocalendar()[1]}"


# ============================================================================
# Activity Series Tests
# ============================================================================

@pytest.mark.asyncio
async def test_daily_series_is_zero_filled(activity_service, store):
    habit = await add_habit(store)
    await mark_completed(store, habit.id, [TODAY, TODAY - timedelta(days=5)])

    series = await activity_service.get_activity_series("day", 30, now=TODAY)

    assert len(series) == 30
    assert [p.value for p in series].count(0) == 28
    assert series[-1].date == TODAY
    assert series[-1].value == 1
    assert series[-6].value == 1
    assert series[0].date == TODAY - timedelta(days=29)
    assert series[0].label == "Sep 20"


@pytest.mark.asyncio
async def test_series_counts_every_habit(activity_service, store):
    first = await add_habit(store, "Read")
    second = await add_habit(store, "Stretch")
    await mark_completed(store, first.id, [TODAY])
    await mark_completed(store, second.id, [TODAY])

    series = await activity_service.get_activity_series("day", 7, now=NOW)

    assert series[-1].value == 2


@pytest.mark.asyncio
async def test_series_ignores_uncompleted_rows(activity_service, store):
    habit = await add_habit(store)
    await _log_time(store, habit.id, TODAY, 600, completed=False)

    series = await activity_service.get_activity_series("day", 7, now=TODAY)

    assert sum(p.value for p in series) == 0


@pytest.mark.asyncio
async def test_weekly_series(activity_service, store):
    habit = await add_habit(store)
    # Sunday belongs to the previous ISO week
    await mark_completed(store, habit.id, [TODAY, TODAY - timedelta(days=1), TODAY - timedelta(days=2)])

    series = await activity_service.get_activity_series("week", 12, now=TODAY)

    assert len(series) == 12
    assert series[-1].date == TODAY
    assert series[-1].value == 1
    assert series[-2].value == 2
    assert series[-1].label == f"Week {TODAY.isocalendar()[1]}"


@pytest.mark.asyncio
async def test_monthly_series(activity_service, store):
    habit = await add_habit(store)
    await mark_completed(store, habit.id, [date(2026, 10, 1), date(2026, 9, 30), date(2025, 10, 31)])

    series = await activity_service.get_activity_series("month", 12, now=TODAY)

    assert len(series) == 12
    assert series[0].date == date(2025, 11, 1)
    assert series[0].label == "Nov 2025"
    assert series[-1].label == "Oct 2026"
    assert series[-1].value == 1
    assert series[-2].value == 1
    # October 2025 is outside the window
    assert sum(p.value for p in series) == 2


@pytest.mark.asyncio
async def test_yearly_series(activity_service, store):
    habit = await add_habit(store)
    await mark_completed(store, habit.id, [date(2024, 6, 1), date(2026, 1, 1), date(2026, 10, 19)])

    series = await activity_service.get_activity_series("year", 3, now=TODAY)

    assert [p.label for p in series] == ["2024", "2025", "2026"]
    assert [p.value for p in series] == [1, 0, 2]


@pytest.mark.asyncio
async def test_series_dates_unique_and_ascending(activity_service):
    for granularity in ("day", "week", "month", "year"):
        series = await activity_service.get_activity_series(granularity, 5, now=TODAY)
        dates = [p.date for p in series]
        assert dates == sorted(set(dates))


@pytest.mark.asyncio
async def test_default_lookback(activity_service):
    assert len(await activity_service.get_activity_series("day", now=TODAY)) == 30
    assert len(await activity_service.get_activity_series("week", now=TODAY)) == 12
    assert len(await activity_service.get_activity_series("year", now=TODAY)) == 3


@pytest.mark.asyncio
async def test_unknown_granularity(activity_service):
    with pytest.raises(ValidationError) as exc_info:
        await activity_service.get_activity_series("hour", 10, now=TODAY)

    assert exc_info.value.field == "granularity"


@pytest.mark.asyncio
async def test_non_positive_lookback(activity_service):
    with pytest.raises(ValidationError):
        await activity_service.get_activity_series("day", 0, now=TODAY)


@pytest.mark.asyncio
async def test_series_records_metric(activity_service):
    with patch("habitca.services.activity_service.record_activity_request") as mock_record:
        await activity_service.get_activity_series("month", 2, now=TODAY)

        mock_record.assert_called_once_with("month")


# ============================================================================
# Time Analytics Tests
# ============================================================================

@pytest.mark.asyncio
async def test_habit_time_data(activity_service, store):
    habit = await add_habit(store, track_time=True)
    await _log_time(store, habit.id, TODAY - timedelta(days=2), 600)
    await _log_time(store, habit.id, TODAY - timedelta(days=1), 0)
    await _log_time(store, habit.id, TODAY, 900)

    data = await activity_service.get_habit_time_data(habit.id, days=14, today=TODAY)

    assert data == [
        {"date": TODAY - timedelta(days=2), "time_spent": 600},
        {"date": TODAY, "time_spent": 900},
    ]


@pytest.mark.asyncio
async def test_time_distribution(activity_service, store):
    read = await add_habit(store, "Read", track_time=True)
    run = await add_habit(store, "Run", track_time=True)
    await _log_time(store, read.id, TODAY, 900)
    await _log_time(store, run.id, TODAY, 300)

    distribution = await activity_service.get_time_distribution(days=7, today=TODAY)

    assert [d["title"] for d in distribution] == ["Read", "Run"]
    assert distribution[0]["percentage"] == pytest.approx(75.0)
    assert distribution[1]["total_time"] == 300


@pytest.mark.asyncio
async def test_time_distribution_skips_deleted_habits(activity_service, store):
    habit = await add_habit(store, track_time=True)
    await _log_time(store, habit.id, TODAY, 900)
    await store.set_habit_active(habit.id, False)

    assert await activity_service.get_time_distribution(days=7, today=TODAY) == []


@pytest.mark.asyncio
async def test_top_time_habits_change(activity_service, store):
    habit = await add_habit(store, track_time=True)
    await _log_time(store, habit.id, TODAY, 1200)
    await _log_time(store, habit.id, TODAY - timedelta(days=8), 600)

    top = await activity_service.get_top_time_habits(days=7, limit=3, today=TODAY)

    assert len(top) == 1
    assert top[0]["total_time"] == 1200
    assert top[0]["previous_time"] == 600
    assert top[0]["change"] == pytest.approx(100.0)


@pytest.mark.asyncio
async def test_time_consistency_stats(activity_service, store):
    habit = await add_habit(store, track_time=True)
    for offset in (0, 1, 2, 10):
        await _log_time(store, habit.id, TODAY - timedelta(days=offset), 60)

    stats = await activity_service.get_time_consistency_stats(days=20, today=TODAY)

    assert stats == {
        "days_with_time": 4,
        "total_days": 20,
        "consistency_percentage": pytest.approx(20.0),
        "current_streak": 3,
    }


@pytest.mark.asyncio
async def test_time_window_must_be_positive(activity_service):
    with pytest.raises(ValidationError):
        await activity_service.get_time_consistency_stats(days=0, today=TODAY)
