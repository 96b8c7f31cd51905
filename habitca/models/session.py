"""Time tracking models"""
from typing import Optional
from datetime import date, datetime
from pydantic import BaseModel, Field


class HabitSession(BaseModel):
    """One timer session; a habit can have several per day"""
    id: int
    habit_id: int
    date: date
    start_time: datetime
    end_time: Optional[datetime] = None
    duration: int = Field(default=0, ge=0)  # seconds
    intensity: int = Field(default=3, ge=1, le=5)
    notes: str = ""

    @property
    def is_active(self) -> bool:
        return self.end_time is None


class TimerState(BaseModel):
    """
    Snapshot of a running timer, persisted only to survive app suspension.

    Elapsed time is derived: wall time since start minus time spent paused.
    """
    habit_id: int
    session_id: int
    started_at: datetime
    paused_seconds: float = Field(default=0, ge=0)
    paused_at: Optional[datetime] = None

    @property
    def is_paused(self) -> bool:
        return self.paused_at is not None
