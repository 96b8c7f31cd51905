"""Activity chart models"""
from typing import Literal
from datetime import date
from pydantic import BaseModel, Field

Granularity = Literal["day", "week", "month", "year"]

VALID_GRANULARITIES = ("day", "week", "month", "year")


class ActivityDataPoint(BaseModel):
    """One zero-filled bucket of completions"""
    date: date  # first day of the period
    label: str
    value: int = Field(default=0, ge=0)
