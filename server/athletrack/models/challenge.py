# athletrack/models/challenge.py
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, validator

from athletrack.utils.helpers import to_utc_naive

ChallengeType = Literal["distance", "duration", "workouts", "calories"]
ChallengeUnit = Literal["km", "min", "count", "kcal"]
Visibility = Literal["public", "private", "invite-only"]
ChallengeCategory = Literal["running", "cycling", "general", "strength", "yoga", "custom"]


class ChallengeIn(BaseModel):
    title: str = Field(min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    type: ChallengeType
    target: float = Field(ge=1)
    unit: ChallengeUnit
    start_date: datetime
    end_date: datetime
    visibility: Visibility = "public"
    category: ChallengeCategory = "general"

    @validator('start_date', 'end_date')
    def normalize_dates(cls, v):
        return to_utc_naive(v)


class JoinChallengeIn(BaseModel):
    invite_code: Optional[str] = None
