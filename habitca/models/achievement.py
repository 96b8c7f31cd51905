"""Achievement models for gamification"""
from enum import Enum
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class AchievementTier(str, Enum):
    """Achievement tiers (cosmetic)"""
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    PLATINUM = "platinum"


class RequirementType(str, Enum):
    """Condition kinds an achievement can be unlocked by"""
    LEVEL = "level"
    TOTAL_XP = "total_xp"
    STREAK = "streak"
    STREAK_START = "streak_start"
    MEGA_STREAK = "mega_streak"
    HABITS_COMPLETED = "habits_completed"
    HABITS_PER_DAY = "habits_per_day"
    TOTAL_HABITS_CREATED = "total_habits_created"
    CONSISTENCY = "consistency"
    MONTHLY_PERFECT = "monthly_perfect"
    GOLD_ACHIEVEMENTS = "gold_achievements"
    SPECIAL_DATE = "special_date"
    SOCIAL_SHARE = "social_share"
    HABIT_NOTES = "habit_notes"
    STREAK_RECOVERY = "streak_recovery"
    WEEKEND_COMPLETE = "weekend_complete"
    NIGHT_HABITS = "night_habits"
    CONSISTENCY_PERIOD = "consistency_period"
    ACTIVE_HABITS_DURATION = "active_habits_duration"
    NO_ZERO_DAYS = "no_zero_days"
    TIME_BASED_HABITS = "time_based_habits"
    STREAK_COMEBACK = "streak_comeback"
    ZEN_MODE = "zen_mode"
    HABIT_EDITS = "habit_edits"
    HABIT_REVIVAL = "habit_revival"


class Timeframe(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    ALL_TIME = "all_time"
    WEEKEND = "weekend"
    PERIOD = "period"


class AchievementRequirement(BaseModel):
    """Typed unlock condition"""
    type: RequirementType
    value: int = Field(ge=0)
    timeframe: Optional[Timeframe] = None


class Achievement(BaseModel):
    """Achievement definition plus its unlock state"""
    id: str
    type: AchievementTier
    title: str
    description: str
    icon: str
    xp_reward: int = Field(ge=0)
    requirement: AchievementRequirement
    is_unlocked: bool = False
    unlocked_at: Optional[datetime] = None
