"""
Default achievement catalog

Seeded into the store on startup; existing rows are left untouched so unlock
state survives restarts.

Tiers and XP rewards:
- Bronze: early engagement (50-100 XP)
- Silver: building routines (150-200 XP)
- Gold: sustained consistency (250-500 XP)
- Platinum: long-term mastery (500-1000 XP)
- Special: dates, edits, revivals, sharing
"""

from typing import Optional

from habitca.models.achievement import (
    Achievement,
    AchievementRequirement,
    AchievementTier,
    RequirementType,
    Timeframe,
)


def _achievement(
    id: str,
    tier: AchievementTier,
    title: str,
    description: str,
    icon: str,
    requirement: RequirementType,
    value: int,
    xp_reward: int,
    timeframe: Optional[Timeframe] = None,
) -> Achievement:
    return Achievement(
        id=id,
        type=tier,
        title=title,
        description=description,
        icon=icon,
        xp_reward=xp_reward,
        requirement=AchievementRequirement(type=requirement, value=value, timeframe=timeframe),
    )


BRONZE, SILVER, GOLD, PLATINUM = (
    AchievementTier.BRONZE,
    AchievementTier.SILVER,
    AchievementTier.GOLD,
    AchievementTier.PLATINUM,
)
R = RequirementType

DEFAULT_ACHIEVEMENTS: list[Achievement] = [
    # 🥉 Bronze
    _achievement("first_habit", BRONZE, "First Steps", "Complete your first habit",
                 "🎯", R.HABITS_COMPLETED, 1, 50),
    _achievement("double_up", BRONZE, "Double Up", "Complete 2 habits in a single day",
                 "⚡", R.HABITS_PER_DAY, 2, 50, Timeframe.DAY),
    _achievement("streak_starter", BRONZE, "Streak Starter", "Start a streak of 3 days",
                 "🔥", R.STREAK_START, 3, 50),
    _achievement("the_explorer", BRONZE, "The Explorer", "Add 5 different habits",
                 "🗺️", R.TOTAL_HABITS_CREATED, 5, 75),
    _achievement("reflection_rookie", BRONZE, "Reflection Rookie", "Log a habit note/journal entry 5 times",
                 "📝", R.HABIT_NOTES, 5, 75),
    _achievement("quick_recovery", BRONZE, "Quick Recovery", "Resume a streak within 2 days of breaking it",
                 "🏃‍♂️", R.STREAK_RECOVERY, 2, 100),
    _achievement("week_warrior", BRONZE, "Week Warrior", "Maintain a 7-day streak",
                 "🔥", R.STREAK, 7, 100),

    # 🥈 Silver
    _achievement("habit_architect", SILVER, "Habit Architect", "Create 10 total habits",
                 "🏗️", R.TOTAL_HABITS_CREATED, 10, 150),
    _achievement("weekend_warrior", SILVER, "Weekend Warrior",
                 "Complete all habits for a weekend (Saturday + Sunday)",
                 "🏖️", R.WEEKEND_COMPLETE, 1, 150, Timeframe.WEEKEND),
    _achievement("night_owl", SILVER, "Night Owl", "Log a habit after 10 PM 7 times",
                 "🦉", R.NIGHT_HABITS, 7, 150),
    _achievement("consistency_climber", SILVER, "Consistency Climber", "Achieve 75% consistency over any 2 weeks",
                 "🧗‍♂️", R.CONSISTENCY_PERIOD, 75, 175, Timeframe.PERIOD),
    _achievement("routine_builder", SILVER, "Routine Builder", "Maintain 3 active habits for 21 straight days",
                 "🏗️", R.ACTIVE_HABITS_DURATION, 21, 200),
    _achievement("level_five", SILVER, "Rising Star", "Reach level 5",
                 "⭐", R.LEVEL, 5, 150),

    # 🥇 Gold
    _achievement("no_zero_days", GOLD, "No Zero Days", "Do something every day for a full month",
                 "📅", R.NO_ZERO_DAYS, 30, 300, Timeframe.MONTH),
    _achievement("all_rounder", GOLD, "All Rounder", "Log morning, afternoon, and night habits on the same day",
                 "🌅", R.TIME_BASED_HABITS, 3, 250, Timeframe.DAY),
    _achievement("wall_of_fame", GOLD, "Wall of Fame", "Achieve 3 Gold-tier achievements",
                 "🏆", R.GOLD_ACHIEVEMENTS, 3, 300),
    _achievement("monthly_mastery", GOLD, "Monthly Mastery", "100% consistency for one full month",
                 "💯", R.MONTHLY_PERFECT, 100, 500, Timeframe.MONTH),
    _achievement("bounced_back", GOLD, "Bounced Back",
                 "Recover from a streak break and go on to build a longer one",
                 "🔄", R.STREAK_COMEBACK, 1, 300),
    _achievement("level_ten", GOLD, "Habit Pro", "Reach level 10",
                 "💪", R.LEVEL, 10, 250),
    _achievement("streak_master", GOLD, "Streak Master", "Maintain a 30-day streak",
                 "🏆", R.STREAK, 30, 500),

    # 💎 Platinum
    _achievement("the_relentless", PLATINUM, "The Relentless", "Maintain a 100-day streak",
                 "🔥", R.MEGA_STREAK, 100, 750),
    _achievement("xp_beast", PLATINUM, "XP Beast", "Cross 5000 XP total",
                 "💎", R.TOTAL_XP, 5000, 500),
    _achievement("zen_mode", PLATINUM, "Zen Mode", "Complete all habits for 14 days without missing a single one",
                 "🧘", R.ZEN_MODE, 14, 600),
    _achievement("lifetime_loyalist", PLATINUM, "Lifetime Loyalist", "Complete 1000 habits total",
                 "👑", R.HABITS_COMPLETED, 1000, 1000, Timeframe.ALL_TIME),

    # 🎉 Special
    _achievement("new_year_new_me", BRONZE, "New Year, New Me", "Log a habit on Jan 1st",
                 "🎊", R.SPECIAL_DATE, 1, 50),
    _achievement("habit_hacker", SILVER, "Habit Hacker", "Edit and optimize 10 different habits over time",
                 "🔧", R.HABIT_EDITS, 10, 150),
    _achievement("ghostbuster", SILVER, "Ghostbuster", "Revive an old habit you abandoned over 30 days ago",
                 "👻", R.HABIT_REVIVAL, 30, 200),
    _achievement("social_spark", BRONZE, "Social Spark", "Share a milestone with a friend or on social media",
                 "📱", R.SOCIAL_SHARE, 1, 75),
]

SOCIAL_SHARE_ACHIEVEMENT_ID = "social_spark"
