"""User progression models"""
from typing import Optional
from pydantic import BaseModel, Field


class UserStats(BaseModel):
    """
    Single-row progression state (id is always 1).

    xp and level are only ever written together, through an XP delta.
    The achievements blob holds activity counters used by achievement rules
    (social_shares, habit_notes, habit_edits).
    """
    id: int = 1
    level: int = Field(default=1, ge=1)
    xp: int = Field(default=0, ge=0)
    total_streaks: int = Field(default=0, ge=0)
    longest_streak: int = Field(default=0, ge=0)
    achievements: dict[str, int] = Field(default_factory=dict)

    def counter(self, name: str) -> int:
        return self.achievements.get(name, 0)


class XPProgress(BaseModel):
    """Progress inside the current level"""
    current: int
    needed: int
    percentage: float


class LevelUpData(BaseModel):
    """Details surfaced to the caller when a level is gained"""
    new_level: int
    previous_level: int
    xp_gained: int
    total_xp: int
    level_title: str
    level_rewards: list[str] = Field(default_factory=list)


class ToggleResult(BaseModel):
    """Outcome of toggling a habit for a day"""
    habit_id: int
    completed: bool
    xp_earned: int  # negative when a completion was revoked
    newly_unlocked_achievement_ids: list[str] = Field(default_factory=list)
    level_up: Optional[LevelUpData] = None
