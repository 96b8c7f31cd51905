"""
Achievement Rules

One pure predicate per requirement type, registered in RULES. A predicate
receives the requirement (value/timeframe) and an AchievementContext
snapshot of aggregate state, and returns whether the achievement is earned.

Predicates never touch storage, so each can be tested in isolation with a
hand-built context.
"""

import calendar
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from functools import cached_property
from typing import Callable, Dict, List, Optional, Set, Tuple

from habitca.gamification.streak_system import (
    calculate_current_streak,
    calculate_streak_runs,
    days_between,
)
from habitca.models.achievement import AchievementRequirement, RequirementType, Timeframe
from habitca.models.habit import CompletionRecord, Habit

logger = logging.getLogger(__name__)

ROUTINE_MIN_HABITS = 3
MORNING_START_HOUR = 5
AFTERNOON_START_HOUR = 12
NIGHT_START_HOUR = 18

Predicate = Callable[[AchievementRequirement, "AchievementContext"], bool]

RULES: Dict[RequirementType, Predicate] = {}


@dataclass(frozen=True)
class AchievementContext:
    """
    Aggregate state an achievement evaluation pass runs against

    Attributes:
        today: Reference date for "today", streaks and rolling windows
        level: Current user level
        xp: Current total XP
        habits: Every habit ever created (soft-deleted ones included)
        completed: Completed ledger records per habit id, ascending by date
        counters: Activity counters from the user stats blob
        gold_unlocked: Number of gold-tier achievements already unlocked
        night_hour_start: Completions logged at or after this hour are "night"
        consistency_window_days: Rolling window for consistency_period
    """
    today: date
    level: int = 1
    xp: int = 0
    habits: Tuple[Habit, ...] = ()
    completed: Dict[int, Tuple[CompletionRecord, ...]] = field(default_factory=dict)
    counters: Dict[str, int] = field(default_factory=dict)
    gold_unlocked: int = 0
    night_hour_start: int = 22
    consistency_window_days: int = 14

    @cached_property
    def active_habits(self) -> List[Habit]:
        return [h for h in self.habits if h.is_active]

    def completed_dates(self, habit_id: int) -> Set[date]:
        return {r.date for r in self.completed.get(habit_id, ())}

    @cached_property
    def all_completed_dates(self) -> Set[date]:
        return {r.date for records in self.completed.values() for r in records}

    @cached_property
    def total_completed(self) -> int:
        return sum(len(records) for records in self.completed.values())

    def completions_on(self, day: date) -> int:
        return sum(
            1 for records in self.completed.values() for r in records if r.date == day
        )

    @cached_property
    def current_streaks(self) -> Dict[int, int]:
        """Current streak per active habit as of today"""
        return {
            h.id: calculate_current_streak(self.completed_dates(h.id), self.today)
            for h in self.active_habits
        }

    @cached_property
    def max_current_streak(self) -> int:
        return max(self.current_streaks.values(), default=0)

    def habits_due_on(self, day: date) -> List[Habit]:
        """Active habits that existed on `day`"""
        return [h for h in self.active_habits if h.created_at <= day]

    def counter(self, name: str) -> int:
        return self.counters.get(name, 0)


def rule(*requirement_types: RequirementType) -> Callable[[Predicate], Predicate]:
    """Register a predicate for one or more requirement types"""
    def decorator(func: Predicate) -> Predicate:
        for requirement_type in requirement_types:
            RULES[requirement_type] = func
        return func
    return decorator


def get_rule(requirement_type: RequirementType) -> Predicate:
    """Predicate for a requirement type; KeyError when none is registered"""
    try:
        key = RequirementType(requirement_type)
    except ValueError:
        raise KeyError(requirement_type) from None
    return RULES[key]


def evaluate(requirement: AchievementRequirement, ctx: AchievementContext) -> bool:
    return get_rule(requirement.type)(requirement, ctx)


def day_part(habit: Habit) -> str:
    """morning / afternoon / night bucket of a habit's scheduled time"""
    hour = habit.scheduled_time.hour
    if MORNING_START_HOUR <= hour < AFTERNOON_START_HOUR:
        return "morning"
    if AFTERNOON_START_HOUR <= hour < NIGHT_START_HOUR:
        return "afternoon"
    return "night"


def _consistency_window(requirement: AchievementRequirement, ctx: AchievementContext) -> Tuple[date, date, int]:
    """(start, end, total_days) the consistency percentage is measured over"""
    if requirement.timeframe == Timeframe.WEEK:
        return ctx.today - timedelta(days=6), ctx.today, 7
    if requirement.timeframe == Timeframe.PERIOD:
        days = ctx.consistency_window_days
        return ctx.today - timedelta(days=days - 1), ctx.today, days

    # Calendar month containing today
    days_in_month = calendar.monthrange(ctx.today.year, ctx.today.month)[1]
    start = ctx.today.replace(day=1)
    end = ctx.today.replace(day=days_in_month)
    return start, end, days_in_month


# ============================================
# Progression
# ============================================

@rule(RequirementType.LEVEL)
def level_reached(requirement: AchievementRequirement, ctx: AchievementContext) -> bool:
    return ctx.level >= requirement.value


@rule(RequirementType.TOTAL_XP)
def total_xp_reached(requirement: AchievementRequirement, ctx: AchievementContext) -> bool:
    return ctx.xp >= requirement.value


@rule(RequirementType.GOLD_ACHIEVEMENTS)
def gold_achievements_collected(requirement: AchievementRequirement, ctx: AchievementContext) -> bool:
    return ctx.gold_unlocked >= requirement.value


# ============================================
# Streaks
# ============================================

@rule(RequirementType.STREAK, RequirementType.STREAK_START, RequirementType.MEGA_STREAK)
def any_streak_reached(requirement: AchievementRequirement, ctx: AchievementContext) -> bool:
    """Any active habit currently on a streak of at least `value` days"""
    return ctx.max_current_streak >= requirement.value


@rule(RequirementType.ACTIVE_HABITS_DURATION)
def routine_maintained(requirement: AchievementRequirement, ctx: AchievementContext) -> bool:
    """At least three active habits each on a streak of `value` days"""
    long_running = [s for s in ctx.current_streaks.values() if s >= requirement.value]
    return len(long_running) >= ROUTINE_MIN_HABITS


@rule(RequirementType.NO_ZERO_DAYS)
def no_zero_days(requirement: AchievementRequirement, ctx: AchievementContext) -> bool:
    """Something completed every day for `value` days up to today"""
    return calculate_current_streak(ctx.all_completed_dates, ctx.today) >= requirement.value


@rule(RequirementType.STREAK_RECOVERY)
def streak_recovered(requirement: AchievementRequirement, ctx: AchievementContext) -> bool:
    """
    A running streak restarted after missing between 1 and `value` days
    """
    for habit_id, streak in ctx.current_streaks.items():
        if streak == 0:
            continue
        run_start = ctx.today - timedelta(days=streak - 1)
        earlier = [d for d in ctx.completed_dates(habit_id) if d < run_start]
        if not earlier:
            continue
        missed = days_between(run_start, max(earlier)) - 1
        if 1 <= missed <= requirement.value:
            return True
    return False


@rule(RequirementType.STREAK_COMEBACK)
def streak_comeback(requirement: AchievementRequirement, ctx: AchievementContext) -> bool:
    """
    Habits whose current run is longer than every run before its last break
    """
    comebacks = 0
    for habit_id, streak in ctx.current_streaks.items():
        if streak == 0:
            continue
        runs = calculate_streak_runs(ctx.completed_dates(habit_id))
        *earlier_runs, _ = runs
        if earlier_runs and streak > max(length for _, length in earlier_runs):
            comebacks += 1
    return comebacks >= requirement.value


# ============================================
# Completion Volume
# ============================================

@rule(RequirementType.HABITS_COMPLETED)
def habits_completed(requirement: AchievementRequirement, ctx: AchievementContext) -> bool:
    """All-time completions, or today's when the timeframe is a day"""
    if requirement.timeframe == Timeframe.DAY:
        return ctx.completions_on(ctx.today) >= requirement.value
    return ctx.total_completed >= requirement.value


@rule(RequirementType.HABITS_PER_DAY)
def habits_per_day(requirement: AchievementRequirement, ctx: AchievementContext) -> bool:
    return ctx.completions_on(ctx.today) >= requirement.value


@rule(RequirementType.TOTAL_HABITS_CREATED)
def habits_created(requirement: AchievementRequirement, ctx: AchievementContext) -> bool:
    """Counts soft-deleted habits too"""
    return len(ctx.habits) >= requirement.value


@rule(RequirementType.NIGHT_HABITS)
def night_completions(requirement: AchievementRequirement, ctx: AchievementContext) -> bool:
    night = sum(
        1
        for records in ctx.completed.values()
        for r in records
        if r.completed_at is not None and r.completed_at.hour >= ctx.night_hour_start
    )
    return night >= requirement.value


@rule(RequirementType.TIME_BASED_HABITS)
def day_parts_covered(requirement: AchievementRequirement, ctx: AchievementContext) -> bool:
    """Habits scheduled in `value` different parts of the day completed today"""
    habits_by_id = {h.id: h for h in ctx.habits}
    parts = {
        day_part(habits_by_id[habit_id])
        for habit_id, records in ctx.completed.items()
        if habit_id in habits_by_id and any(r.date == ctx.today for r in records)
    }
    return len(parts) >= requirement.value


# ============================================
# Consistency
# ============================================

@rule(RequirementType.CONSISTENCY, RequirementType.MONTHLY_PERFECT)
def calendar_consistency(requirement: AchievementRequirement, ctx: AchievementContext) -> bool:
    """
    Percentage of days in the window with at least one completion

    The window is the calendar month by default, so 100% can only be reached
    on the last day of the month.
    """
    start, end, total_days = _consistency_window(requirement, ctx)
    active_days = sum(1 for d in ctx.all_completed_dates if start <= d <= end)
    consistency = active_days / total_days * 100
    return consistency >= requirement.value


@rule(RequirementType.CONSISTENCY_PERIOD)
def rolling_consistency(requirement: AchievementRequirement, ctx: AchievementContext) -> bool:
    """
    Share of scheduled habit-days completed over the trailing window

    Only counts once habits have been tracked for the full window.
    """
    window = ctx.consistency_window_days
    start = ctx.today - timedelta(days=window - 1)
    if not ctx.active_habits or min(h.created_at for h in ctx.active_habits) > start:
        return False

    scheduled = 0
    done = 0
    for offset in range(window):
        day = start + timedelta(days=offset)
        for habit in ctx.habits_due_on(day):
            scheduled += 1
            if day in ctx.completed_dates(habit.id):
                done += 1

    if scheduled == 0:
        return False
    return done / scheduled * 100 >= requirement.value


@rule(RequirementType.ZEN_MODE)
def zen_mode(requirement: AchievementRequirement, ctx: AchievementContext) -> bool:
    """Every active habit completed on each of the last `value` days"""
    days = requirement.value
    start = ctx.today - timedelta(days=days - 1)
    if not ctx.active_habits or min(h.created_at for h in ctx.active_habits) > start:
        return False

    for offset in range(days):
        day = start + timedelta(days=offset)
        for habit in ctx.habits_due_on(day):
            if day not in ctx.completed_dates(habit.id):
                return False
    return True


@rule(RequirementType.WEEKEND_COMPLETE)
def full_weekends(requirement: AchievementRequirement, ctx: AchievementContext) -> bool:
    """`value` weekends on which every active habit was done Saturday and Sunday"""
    if not ctx.active_habits or not ctx.all_completed_dates:
        return False

    first = min(ctx.all_completed_dates)
    saturday = first + timedelta(days=(calendar.SATURDAY - first.weekday()) % 7)
    full = 0
    while saturday + timedelta(days=1) <= ctx.today:
        sunday = saturday + timedelta(days=1)
        due = ctx.habits_due_on(saturday)
        if due and all(
            saturday in ctx.completed_dates(h.id) and sunday in ctx.completed_dates(h.id)
            for h in due
        ):
            full += 1
            if full >= requirement.value:
                return True
        saturday += timedelta(days=7)
    return False


@rule(RequirementType.HABIT_REVIVAL)
def habit_revived(requirement: AchievementRequirement, ctx: AchievementContext) -> bool:
    """A habit completed today after going untouched for more than `value` days"""
    for habit in ctx.active_habits:
        dates = ctx.completed_dates(habit.id)
        if ctx.today not in dates:
            continue
        earlier = [d for d in dates if d < ctx.today]
        if earlier and days_between(ctx.today, max(earlier)) > requirement.value:
            return True
    return False


# ============================================
# Calendar & Social
# ============================================

@rule(RequirementType.SPECIAL_DATE)
def new_year_completion(requirement: AchievementRequirement, ctx: AchievementContext) -> bool:
    """Habit completed on January 1st"""
    is_new_year = ctx.today.month == 1 and ctx.today.day == 1
    return is_new_year and ctx.completions_on(ctx.today) >= requirement.value


@rule(RequirementType.SOCIAL_SHARE)
def social_shares(requirement: AchievementRequirement, ctx: AchievementContext) -> bool:
    return ctx.counter("social_shares") >= requirement.value


@rule(RequirementType.HABIT_NOTES)
def notes_logged(requirement: AchievementRequirement, ctx: AchievementContext) -> bool:
    return ctx.counter("habit_notes") >= requirement.value


@rule(RequirementType.HABIT_EDITS)
def habits_edited(requirement: AchievementRequirement, ctx: AchievementContext) -> bool:
    return ctx.counter("habit_edits") >= requirement.value


# ============================================
# Progress
# ============================================

def measure_progress(requirement: AchievementRequirement, ctx: AchievementContext) -> Dict[str, int]:
    """
    Current vs. required value for locked achievements

    Requirement types without a natural count report 0/1 or 1/1.
    """
    kind = requirement.type
    current: Optional[int] = None
    required = requirement.value

    if kind == RequirementType.LEVEL:
        current = ctx.level
    elif kind == RequirementType.TOTAL_XP:
        current = ctx.xp
    elif kind in (RequirementType.STREAK, RequirementType.STREAK_START, RequirementType.MEGA_STREAK):
        current = ctx.max_current_streak
    elif kind == RequirementType.HABITS_COMPLETED and requirement.timeframe != Timeframe.DAY:
        current = ctx.total_completed
    elif kind in (RequirementType.HABITS_COMPLETED, RequirementType.HABITS_PER_DAY):
        current = ctx.completions_on(ctx.today)
    elif kind == RequirementType.TOTAL_HABITS_CREATED:
        current = len(ctx.habits)
    elif kind == RequirementType.GOLD_ACHIEVEMENTS:
        current = ctx.gold_unlocked
    elif kind == RequirementType.NO_ZERO_DAYS:
        current = calculate_current_streak(ctx.all_completed_dates, ctx.today)
    elif kind == RequirementType.ACTIVE_HABITS_DURATION:
        current = len([s for s in ctx.current_streaks.values() if s >= requirement.value])
        required = ROUTINE_MIN_HABITS
    elif kind == RequirementType.SOCIAL_SHARE:
        current = ctx.counter("social_shares")
    elif kind == RequirementType.HABIT_NOTES:
        current = ctx.counter("habit_notes")
    elif kind == RequirementType.HABIT_EDITS:
        current = ctx.counter("habit_edits")

    if current is None:
        current = 1 if evaluate(requirement, ctx) else 0
        required = 1

    percentage = min(100, int(current / required * 100)) if required > 0 else 100

    return {
        "current": current,
        "required": required,
        "percentage": percentage,
    }
