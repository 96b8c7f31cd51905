"""
XP and Leveling System

Manages XP awards, level calculations, and level-up rewards.

Leveling Curve:
- level = floor(sqrt(xp / 50)) + 1
- Level L spans total XP [(L-1)^2 * 50, L^2 * 50 - 1]
- L1 = 0-49, L2 = 50-199, L3 = 200-449, L4 = 450-799, ...

XP Award Rules:
- Habit completion: 10 XP + 5 XP per full 7 days of prior streak
- Achievement unlocks: the achievement's xp_reward
- Uncompleting a day revokes exactly what that day earned
"""

import logging
import math
from typing import Any, Dict, List, Tuple

from habitca.db.store import HabitStore
from habitca.models.user_stats import LevelUpData, XPProgress
from habitca.observability.metrics import record_xp_change

logger = logging.getLogger(__name__)

XP_PER_LEVEL_UNIT = 50


def calculate_level_from_xp(total_xp: int) -> int:
    """Level for a total XP amount (always >= 1)"""
    total_xp = max(0, total_xp)
    level = math.isqrt(total_xp // XP_PER_LEVEL_UNIT) + 1
    return level


def get_xp_for_next_level(level: int) -> int:
    """Total accumulated XP needed to finish `level` (reach level + 1)"""
    return level * level * XP_PER_LEVEL_UNIT


def get_xp_progress(current_xp: int, current_level: int) -> XPProgress:
    """
    Progress inside the current level

    Returns:
        XPProgress(current=xp above the level floor,
                   needed=size of the level,
                   percentage=0-100)
    """
    level_floor = (current_level - 1) * (current_level - 1) * XP_PER_LEVEL_UNIT
    level_ceiling = get_xp_for_next_level(current_level)
    progress_xp = current_xp - level_floor
    needed_xp = level_ceiling - level_floor

    return XPProgress(
        current=progress_xp,
        needed=needed_xp,
        percentage=min(progress_xp / needed_xp * 100, 100),
    )


def apply_xp_delta(current_xp: int, delta: int) -> Tuple[int, int]:
    """New (xp, level) after a delta; XP never drops below zero"""
    new_xp = max(0, current_xp + delta)
    return new_xp, calculate_level_from_xp(new_xp)


def get_level_title(level: int) -> str:
    if level >= 50:
        return "Habit Legend 🌟"
    if level >= 30:
        return "Habit Guru 🧘"
    if level >= 20:
        return "Habit Master 🏆"
    if level >= 15:
        return "Habit Expert 🎯"
    if level >= 10:
        return "Habit Pro 💪"
    if level >= 5:
        return "Habit Builder 🔨"
    return "Habit Beginner 🌱"


def get_level_rewards(level: int) -> List[str]:
    """Cosmetic rewards announced when `level` is reached"""
    rewards = []

    if level % 5 == 0:
        rewards.append(f"🎁 {50 * level} Bonus XP")

    if level == 5:
        rewards.append("🎨 Focus Mode Badge")
    elif level == 10:
        rewards.append("⚡ Streak Multiplier")
    elif level == 15:
        rewards.append("🏅 Expert Badge")
    elif level == 20:
        rewards.append("👑 Master Crown")
    elif level >= 25 and level % 10 == 0:
        rewards.append("💎 Legendary Badge")

    if level % 3 == 0 and level > 3:
        rewards.append("🌟 New Achievement Category")

    return rewards


async def award_xp(
    store: HabitStore,
    amount: int,
    source_type: str = "completion",
) -> Dict[str, Any]:
    """
    Apply an XP delta (positive or negative) and recompute the level

    XP and level are written together in a single set_user_stats call.

    Args:
        store: Storage collaborator
        amount: XP delta; negative values revoke XP
        source_type: What caused the change (completion, achievement)

    Returns:
        {
            'xp_awarded': int,
            'old_total_xp': int,
            'new_total_xp': int,
            'old_level': int,
            'new_level': int,
            'leveled_up': bool,
            'level_up_data': LevelUpData | None
        }
    """
    stats = await store.get_user_stats()
    old_total_xp = stats.xp
    old_level = stats.level

    new_total_xp, new_level = apply_xp_delta(old_total_xp, amount)
    await store.set_user_stats(new_total_xp, new_level)

    record_xp_change(amount, source_type, new_level)

    leveled_up = new_level > old_level
    level_up_data = None
    if leveled_up:
        level_up_data = LevelUpData(
            new_level=new_level,
            previous_level=old_level,
            xp_gained=amount,
            total_xp=new_total_xp,
            level_title=get_level_title(new_level),
            level_rewards=get_level_rewards(new_level),
        )
        logger.info(f"Leveled up from {old_level} to {new_level}!")

    logger.info(
        f"Applied {amount:+d} XP for {source_type}. "
        f"Total: {new_total_xp} XP, Level: {new_level}"
    )

    return {
        "xp_awarded": amount,
        "old_total_xp": old_total_xp,
        "new_total_xp": new_total_xp,
        "old_level": old_level,
        "new_level": new_level,
        "leveled_up": leveled_up,
        "level_up_data": level_up_data,
    }
