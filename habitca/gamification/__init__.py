"""
Gamification system for habitca

- XP and leveling (quadratic curve, level titles and rewards)
- Per-habit streaks and the streak completion bonus
- Achievement catalog, rules and unlocking
"""

from habitca.gamification.xp_system import (
    award_xp,
    apply_xp_delta,
    calculate_level_from_xp,
    get_xp_progress,
)
from habitca.gamification.streak_system import (
    calculate_completion_xp,
    calculate_current_streak,
    calculate_longest_streak,
    get_habit_streak,
)
from habitca.gamification.achievement_system import (
    check_and_award_achievements,
    get_user_achievements,
    unlock_achievement,
)

__all__ = [
    "award_xp",
    "apply_xp_delta",
    "calculate_level_from_xp",
    "get_xp_progress",
    "calculate_completion_xp",
    "calculate_current_streak",
    "calculate_longest_streak",
    "get_habit_streak",
    "check_and_award_achievements",
    "get_user_achievements",
    "unlock_achievement",
]
