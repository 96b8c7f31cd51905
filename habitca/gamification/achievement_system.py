"""
Achievement System

Evaluates the achievement catalog against aggregate user state and awards
newly earned achievements:
- Progression (levels, total XP, gold collection)
- Streaks (current, recovered, comeback, routines)
- Volume (completions, habits created, night owl, day parts)
- Consistency (monthly, rolling window, zen mode, weekends)
- Social & special (shares, notes, edits, new year, revival)

Features:
- Unlocks are monotonic: unlocked_at is written once and never cleared
- XP rewards are applied through the XP system in the same event
- Passes repeat until nothing new unlocks, so XP and gold-count
  achievements cascade
- Progress tracking for locked achievements
"""

from typing import Any, Dict, List, Optional
from datetime import date, datetime
from collections import defaultdict
import logging

from habitca.config import CONSISTENCY_WINDOW_DAYS, NIGHT_HOUR_START
from habitca.db.store import HabitStore
from habitca.gamification.achievement_rules import (
    AchievementContext,
    evaluate,
    measure_progress,
)
from habitca.gamification.xp_system import award_xp
from habitca.models.achievement import Achievement, AchievementTier
from habitca.observability.metrics import record_achievement_unlock

logger = logging.getLogger(__name__)


async def build_achievement_context(store: HabitStore, today: date) -> AchievementContext:
    """
    Snapshot everything the achievement rules look at

    Args:
        store: Storage collaborator
        today: Reference date for streaks and windows

    Returns:
        AchievementContext
    """
    stats = await store.get_user_stats()
    habits = await store.get_all_habits()
    records = await store.get_all_completion_records(completed_only=True)
    achievements = await store.get_achievements()

    completed = defaultdict(list)
    for record in records:
        completed[record.habit_id].append(record)

    gold_unlocked = sum(
        1 for a in achievements
        if a.is_unlocked and a.type == AchievementTier.GOLD
    )

    return AchievementContext(
        today=today,
        level=stats.level,
        xp=stats.xp,
        habits=tuple(habits),
        completed={
            habit_id: tuple(sorted(items, key=lambda r: r.date))
            for habit_id, items in completed.items()
        },
        counters=dict(stats.achievements),
        gold_unlocked=gold_unlocked,
        night_hour_start=NIGHT_HOUR_START,
        consistency_window_days=CONSISTENCY_WINDOW_DAYS,
    )


async def _grant(store: HabitStore, achievement: Achievement, now: datetime) -> bool:
    """Store the unlock and apply its XP reward; False if it was already unlocked"""
    stored = await store.set_achievement_unlocked(achievement.id, now, achievement.xp_reward)
    if not stored:
        return False

    if achievement.xp_reward:
        await award_xp(store, achievement.xp_reward, source_type="achievement")

    record_achievement_unlock(achievement.type.value)
    logger.info(
        f"Unlocked achievement: {achievement.id} "
        f"({achievement.title}) +{achievement.xp_reward} XP"
    )
    return True


async def check_and_award_achievements(
    store: HabitStore,
    today: date,
    now: Optional[datetime] = None,
) -> List[str]:
    """
    Unlock every achievement whose requirement is now met

    Already-unlocked achievements are skipped without evaluating their
    requirement. After a pass that unlocked something the context is rebuilt
    and the catalog re-checked, until a pass unlocks nothing.

    Args:
        store: Storage collaborator
        today: Reference date
        now: Unlock timestamp (defaults to datetime.now())

    Returns:
        Ids of newly unlocked achievements, in unlock order
    """
    now = now or datetime.now()
    newly_unlocked: List[str] = []

    while True:
        achievements = await store.get_achievements()
        locked = [a for a in achievements if not a.is_unlocked]
        if not locked:
            break

        ctx = await build_achievement_context(store, today)
        unlocked_this_pass = []

        for achievement in locked:
            try:
                met = evaluate(achievement.requirement, ctx)
            except KeyError:
                logger.warning(
                    f"No rule for requirement type {achievement.requirement.type} "
                    f"(achievement {achievement.id})"
                )
                continue

            logger.debug(f"Achievement {achievement.id}: {'met' if met else 'not met'}")
            if met and await _grant(store, achievement, now):
                unlocked_this_pass.append(achievement.id)

        if not unlocked_this_pass:
            break
        newly_unlocked.extend(unlocked_this_pass)

    return newly_unlocked


async def unlock_achievement(
    store: HabitStore,
    achievement_id: str,
    now: Optional[datetime] = None,
) -> bool:
    """
    Unlock one achievement directly (e.g. social share)

    Returns:
        True when it was newly unlocked; False if unknown or already unlocked
    """
    achievements = await store.get_achievements()
    achievement = next((a for a in achievements if a.id == achievement_id), None)
    if achievement is None:
        logger.warning(f"Unknown achievement: {achievement_id}")
        return False
    if achievement.is_unlocked:
        return False

    return await _grant(store, achievement, now or datetime.now())


def _summarize(achievement: Achievement) -> Dict[str, Any]:
    return {
        "id": achievement.id,
        "title": achievement.title,
        "description": achievement.description,
        "icon": achievement.icon,
        "tier": achievement.type.value,
        "xp_reward": achievement.xp_reward,
    }


async def get_user_achievements(
    store: HabitStore,
    today: date,
    include_locked: bool = False,
) -> Dict[str, Any]:
    """
    Get achievements with progress

    Args:
        store: Storage collaborator
        today: Reference date for progress of locked achievements
        include_locked: Whether to include locked achievements with progress

    Returns:
        {
            'unlocked': [list of unlocked achievements],
            'locked': [list of locked achievements with progress] (if include_locked=True),
            'total_unlocked': int,
            'total_achievements': int,
            'total_xp_from_achievements': int
        }
    """
    achievements = await store.get_achievements()

    unlocked = []
    total_xp = 0
    for achievement in achievements:
        if achievement.is_unlocked:
            unlocked.append({**_summarize(achievement), "unlocked_at": achievement.unlocked_at})
            total_xp += achievement.xp_reward

    # Most recent first
    unlocked.sort(key=lambda x: x["unlocked_at"] or datetime.min, reverse=True)

    result = {
        "unlocked": unlocked,
        "total_unlocked": len(unlocked),
        "total_achievements": len(achievements),
        "total_xp_from_achievements": total_xp,
    }

    if include_locked:
        ctx = await build_achievement_context(store, today)
        locked = [
            {**_summarize(a), "progress": measure_progress(a.requirement, ctx)}
            for a in achievements
            if not a.is_unlocked
        ]
        # Closest to completion first
        locked.sort(key=lambda x: x["progress"]["percentage"], reverse=True)
        result["locked"] = locked

    return result
