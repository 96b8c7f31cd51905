"""
Streak Calculation

Streaks are counted in calendar days (date differences, never 24h wall-clock
spans), so DST changes and timezones cannot split or merge days.

- Current streak: unbroken run of completed days ending exactly at a
  reference date. 0 when the reference date itself is not completed.
- Longest streak: longest run of consecutive completed days in a history.
- Completion XP: 10 base + 5 per full week of the run that precedes the day
  being completed, so the 8th consecutive day is the first with a bonus.
"""

from typing import Iterable, List, Tuple
from datetime import date, timedelta
import logging

from habitca.db.store import HabitStore
from habitca.models.habit import CompletionRecord

logger = logging.getLogger(__name__)

BASE_COMPLETION_XP = 10
STREAK_BONUS_XP = 5
STREAK_BONUS_INTERVAL = 7


def days_between(later: date, earlier: date) -> int:
    """Calendar days from `earlier` to `later`"""
    return (later - earlier).days


def calculate_current_streak(completed_dates: Iterable[date], as_of: date) -> int:
    """
    Count consecutive completed days ending at `as_of`

    Walks completed dates newest first: the i-th one extends the streak only
    when it lies exactly i days before `as_of`. Completions after `as_of`
    are ignored.

    Args:
        completed_dates: Dates the habit was completed (any order, duplicates allowed)
        as_of: Reference date

    Returns:
        Streak length in days
    """
    ordered = sorted({d for d in completed_dates if d <= as_of}, reverse=True)

    streak = 0
    for i, completed_on in enumerate(ordered):
        if days_between(as_of, completed_on) == i:
            streak += 1
        else:
            break

    return streak


def calculate_longest_streak(records: Iterable[CompletionRecord]) -> int:
    """Longest run of consecutive completed days in a habit's history"""
    completed = sorted({r.date for r in records if r.completed})
    if not completed:
        return 0

    longest = 1
    current = 1
    for previous, day in zip(completed, completed[1:]):
        if days_between(day, previous) == 1:
            current += 1
        else:
            longest = max(longest, current)
            current = 1

    return max(longest, current)


def calculate_streak_runs(completed_dates: Iterable[date]) -> List[Tuple[date, int]]:
    """
    Split a history into runs of consecutive days

    Returns:
        [(run_start, run_length), ...] oldest run first
    """
    ordered = sorted(set(completed_dates))
    runs: List[Tuple[date, int]] = []

    for day in ordered:
        if runs:
            start, length = runs[-1]
            if days_between(day, start) == length:
                runs[-1] = (start, length + 1)
                continue
        runs.append((day, 1))

    return runs


def calculate_streak_bonus(prior_streak: int) -> int:
    return (max(0, prior_streak) // STREAK_BONUS_INTERVAL) * STREAK_BONUS_XP


def calculate_completion_xp(prior_streak: int) -> int:
    """XP for completing a day, given the run that ends the day before it"""
    return BASE_COMPLETION_XP + calculate_streak_bonus(prior_streak)


async def get_habit_streak(store: HabitStore, habit_id: int, as_of: date) -> int:
    """Current streak of a habit as of a date (0 for unknown habits)"""
    completed_dates = await store.get_completed_dates(habit_id)
    if not completed_dates:
        return 0

    return calculate_current_streak(completed_dates, as_of)


async def get_prior_streak(store: HabitStore, habit_id: int, day: date) -> int:
    """Run of completed days ending the day before `day`"""
    completed_dates = await store.get_completed_dates(habit_id)
    previous_day = day - timedelta(days=1)
    return calculate_current_streak(
        (d for d in completed_dates if d != day),
        previous_day,
    )


async def get_longest_streak(store: HabitStore, habit_id: int) -> int:
    completed_dates = await store.get_completed_dates(habit_id)
    return calculate_longest_streak(
        CompletionRecord(habit_id=habit_id, date=d, completed=True) for d in completed_dates
    )
