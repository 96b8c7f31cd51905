"""Habit and completion ledger models"""
from typing import Literal, Optional
from datetime import date, datetime, time as dt_time
from pydantic import BaseModel, Field, field_validator


def _validate_hhmm(v: str) -> str:
    """Ensure HH:MM format and valid time"""
    try:
        dt_time.fromisoformat(v)
    except ValueError:
        raise ValueError(
            f"Invalid time format: '{v}'. Must be HH:MM (e.g., '07:30')"
        )
    if len(v) != 5:
        raise ValueError(
            f"Invalid time format: '{v}'. Must be HH:MM (e.g., '07:30')"
        )
    return v


class HabitInput(BaseModel):
    """Create/update payload for a habit"""
    title: str = Field(min_length=1, max_length=200)
    description: str = ""
    emoji: str = "⭐"
    category: str = "Other / Custom"
    frequency: Literal["daily"] = "daily"
    time: str  # "07:00"
    track_time: bool = False

    @field_validator('title')
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Reject whitespace-only titles"""
        if not v.strip():
            raise ValueError("Title cannot be empty")
        return v.strip()

    @field_validator('time')
    @classmethod
    def validate_time_format(cls, v: str) -> str:
        return _validate_hhmm(v)


class Habit(BaseModel):
    """A daily habit. Soft-deleted (is_active=False) rather than removed."""
    id: int
    title: str
    description: str = ""
    emoji: str = "⭐"
    category: str = "Other / Custom"
    frequency: Literal["daily"] = "daily"
    time: str
    created_at: date
    track_time: bool = False
    is_active: bool = True

    @field_validator('time')
    @classmethod
    def validate_time_format(cls, v: str) -> str:
        return _validate_hhmm(v)

    @property
    def scheduled_time(self) -> dt_time:
        return dt_time.fromisoformat(self.time)


class CompletionRecord(BaseModel):
    """
    Ledger entry for one (habit, day).

    At most one record exists per (habit_id, date); toggles overwrite it.
    """
    habit_id: int
    date: date
    completed: bool = False
    xp_earned: int = Field(default=0, ge=0)
    time_spent: int = Field(default=0, ge=0)  # seconds, only for track_time habits
    completed_at: Optional[datetime] = None  # when the completion was logged
