"""
ActivityService - Statistics

Completion counts bucketed by day, week, month or year for the activity
charts, plus time-tracking analytics (time per day, distribution across
habits, top habits, consistency).

Series are always zero-filled: exactly `lookback` points, oldest first, the
last one being the period that contains "now".
"""

import logging
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Union

from habitca.config import DEFAULT_ACTIVITY_LOOKBACK
from habitca.db.store import HabitStore
from habitca.exceptions import ValidationError
from habitca.gamification.streak_system import calculate_current_streak
from habitca.models.activity import VALID_GRANULARITIES, ActivityDataPoint
from habitca.observability.metrics import record_activity_request

logger = logging.getLogger(__name__)

MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


# ==========================================
# Period arithmetic
# ==========================================

def period_start(day: date, granularity: str) -> date:
    """First day of the period containing `day` (weeks start on Monday)"""
    if granularity == "day":
        return day
    if granularity == "week":
        return day - timedelta(days=day.weekday())
    if granularity == "month":
        return day.replace(day=1)
    return day.replace(month=1, day=1)


def shift_period(start: date, granularity: str, periods: int) -> date:
    """Start of the period `periods` steps away from `start` (negative = back)"""
    if granularity == "day":
        return start + timedelta(days=periods)
    if granularity == "week":
        return start + timedelta(weeks=periods)
    if granularity == "month":
        months = start.year * 12 + (start.month - 1) + periods
        return date(months // 12, months % 12 + 1, 1)
    return date(start.year + periods, 1, 1)


def period_label(start: date, granularity: str) -> str:
    if granularity == "day":
        return f"{MONTH_ABBR[start.month - 1]} {start.day}"
    if granularity == "week":
        return f"Week {start.isocalendar()[1]}"
    if granularity == "month":
        return f"{MONTH_ABBR[start.month - 1]} {start.year}"
    return str(start.year)


def _as_date(now: Optional[Union[date, datetime]]) -> date:
    if now is None:
        return date.today()
    if isinstance(now, datetime):
        return now.date()
    return now


def _window(days: int, today: date) -> tuple[date, date]:
    """Inclusive [start, today] spanning `days` calendar days"""
    if days <= 0:
        raise ValidationError("Window must be at least one day", field="days", value=days)
    return today - timedelta(days=days - 1), today


class ActivityService:
    """
    Service for activity and time-tracking statistics.

    Responsibilities:
    - Zero-filled completion series per granularity
    - Time spent per day and per habit
    - Time consistency
    """

    def __init__(self, store: HabitStore):
        self.store = store
        logger.debug("ActivityService initialized")

    async def get_activity_series(
        self,
        granularity: str,
        lookback: Optional[int] = None,
        now: Optional[Union[date, datetime]] = None,
    ) -> List[ActivityDataPoint]:
        """
        Completion counts per period

        Args:
            granularity: day, week, month or year
            lookback: Number of periods (defaults per granularity: 30/12/12/3)
            now: Reference moment; its period is the last point

        Returns:
            Exactly `lookback` ActivityDataPoints, oldest first

        Raises:
            ValidationError: Unknown granularity or non-positive lookback
        """
        if granularity not in VALID_GRANULARITIES:
            raise ValidationError(
                f"Unknown granularity '{granularity}'. Must be one of: {', '.join(VALID_GRANULARITIES)}",
                field="granularity",
                value=granularity,
            )
        if lookback is None:
            lookback = DEFAULT_ACTIVITY_LOOKBACK[granularity]
        if lookback <= 0:
            raise ValidationError("Lookback must be positive", field="lookback", value=lookback)

        today = _as_date(now)
        current = period_start(today, granularity)
        starts = [shift_period(current, granularity, -offset) for offset in range(lookback - 1, -1, -1)]
        end = shift_period(current, granularity, 1) - timedelta(days=1)

        counts = await self.store.count_completions_by_day(starts[0], end)

        totals = {start: 0 for start in starts}
        for day, count in counts.items():
            bucket = period_start(day, granularity)
            if bucket in totals:
                totals[bucket] += count

        record_activity_request(granularity)
        logger.debug(f"Activity series: {granularity} x{lookback} ending {today}")

        return [
            ActivityDataPoint(date=start, label=period_label(start, granularity), value=totals[start])
            for start in starts
        ]

    # ==========================================
    # Time tracking analytics
    # ==========================================

    async def get_habit_time_data(
        self,
        habit_id: int,
        days: int = 14,
        today: Optional[date] = None,
    ) -> List[Dict[str, Any]]:
        """Days with tracked time for one habit: [{'date', 'time_spent'}], ascending"""
        start, end = _window(days, today or date.today())
        records = await self.store.get_completion_records(habit_id, start, end)
        return [
            {"date": r.date, "time_spent": r.time_spent}
            for r in records
            if r.time_spent > 0
        ]

    async def _time_per_habit(self, start: date, end: date) -> Dict[int, int]:
        """Seconds tracked per active habit in [start, end]"""
        active_ids = {h.id for h in await self.store.get_habits()}
        records = await self.store.get_all_completion_records(start, end, completed_only=False)

        totals: Dict[int, int] = {}
        for record in records:
            if record.time_spent > 0 and record.habit_id in active_ids:
                totals[record.habit_id] = totals.get(record.habit_id, 0) + record.time_spent
        return totals

    async def get_time_distribution(
        self,
        days: int = 7,
        today: Optional[date] = None,
    ) -> List[Dict[str, Any]]:
        """
        Share of tracked time per active habit

        Returns:
            [{'habit_id', 'title', 'emoji', 'total_time', 'percentage'}],
            largest first
        """
        start, end = _window(days, today or date.today())
        totals = await self._time_per_habit(start, end)
        habits = {h.id: h for h in await self.store.get_habits()}
        grand_total = sum(totals.values())

        distribution = [
            {
                "habit_id": habit_id,
                "title": habits[habit_id].title,
                "emoji": habits[habit_id].emoji,
                "total_time": total,
                "percentage": total / grand_total * 100 if grand_total > 0 else 0,
            }
            for habit_id, total in totals.items()
        ]
        distribution.sort(key=lambda x: x["total_time"], reverse=True)
        return distribution

    async def get_top_time_habits(
        self,
        days: int = 7,
        limit: int = 3,
        today: Optional[date] = None,
    ) -> List[Dict[str, Any]]:
        """
        Habits with the most tracked time, compared with the previous window

        Returns:
            [{'habit_id', 'title', 'emoji', 'total_time', 'previous_time', 'change'}]
            where change is the % difference (0 when there is no previous time)
        """
        start, end = _window(days, today or date.today())
        previous_end = start - timedelta(days=1)
        previous_start = previous_end - timedelta(days=days - 1)

        current = await self._time_per_habit(start, end)
        previous = await self._time_per_habit(previous_start, previous_end)
        habits = {h.id: h for h in await self.store.get_habits()}

        top = sorted(current.items(), key=lambda item: item[1], reverse=True)[:limit]

        result = []
        for habit_id, total in top:
            previous_time = previous.get(habit_id, 0)
            change = (total - previous_time) / previous_time * 100 if previous_time > 0 else 0
            result.append({
                "habit_id": habit_id,
                "title": habits[habit_id].title,
                "emoji": habits[habit_id].emoji,
                "total_time": total,
                "previous_time": previous_time,
                "change": change,
            })
        return result

    async def get_time_consistency_stats(
        self,
        days: int = 30,
        today: Optional[date] = None,
    ) -> Dict[str, Any]:
        """
        How regularly time was tracked

        Returns:
            {
                'days_with_time': int,
                'total_days': int,
                'consistency_percentage': float,
                'current_streak': int  # consecutive tracked days ending today
            }
        """
        today = today or date.today()
        start, end = _window(days, today)
        records = await self.store.get_all_completion_records(start, end, completed_only=False)
        tracked_days = {r.date for r in records if r.time_spent > 0}

        return {
            "days_with_time": len(tracked_days),
            "total_days": days,
            "consistency_percentage": len(tracked_days) / days * 100,
            "current_streak": calculate_current_streak(tracked_days, today),
        }
