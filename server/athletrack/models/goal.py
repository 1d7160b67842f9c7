# athletrack/models/goal.py
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, validator

from athletrack.utils.helpers import to_utc_naive

GoalType = Literal[
    "weekly_workouts",
    "weekly_distance",
    "weekly_duration",
    "monthly_workouts",
    "monthly_distance",
    "daily_streak",
    "weight_target",
    "run_distance",
    "custom",
]
GoalUnit = Literal["workouts", "km", "min", "days", "kg", "count"]
GoalStatus = Literal["active", "completed", "failed", "paused"]


class GoalIn(BaseModel):
    type: GoalType
    title: str = Field(min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    target: float = Field(gt=0)
    unit: GoalUnit
    start_date: Optional[datetime] = None
    end_date: datetime
    reminders: bool = True

    @validator('start_date', 'end_date')
    def normalize_dates(cls, v):
        return to_utc_naive(v)


class GoalUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    target: Optional[float] = Field(None, gt=0)
    end_date: Optional[datetime] = None
    status: Optional[GoalStatus] = None
    reminders: Optional[bool] = None

    @validator('end_date')
    def normalize_end_date(cls, v):
        return to_utc_naive(v)
