# athletrack/models/workout.py
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, validator

from athletrack.utils.helpers import to_utc_naive

WorkoutKind = Literal["run", "lift", "cardio", "yoga", "biometrics"]
MuscleGroup = Literal["chest", "back", "shoulders", "arms", "legs", "core", "full-body"]
CardioActivity = Literal["cycling", "swimming", "rowing", "elliptical", "stairmaster", "hiit", "other"]
YogaStyle = Literal["vinyasa", "hatha", "ashtanga", "yin", "restorative", "power", "kundalini", "other"]

# payload attribute name == kind
PAYLOAD_KINDS = ("run", "lift", "cardio", "yoga", "biometrics")


class RunDetails(BaseModel):
    distance_km: Optional[float] = Field(None, ge=0)
    pace_min_per_km: Optional[float] = Field(None, ge=0)
    elevation_m: Optional[float] = Field(None, ge=0)
    avg_heart_rate: Optional[int] = None
    calories: Optional[float] = Field(None, ge=0)


class LiftExercise(BaseModel):
    name: str
    sets: int = Field(ge=1)
    reps: int = Field(ge=1)
    weight_kg: Optional[float] = Field(None, ge=0)


class LiftDetails(BaseModel):
    muscle_group: Optional[MuscleGroup] = None
    exercises: List[LiftExercise] = Field(default_factory=list)


class CardioDetails(BaseModel):
    activity: CardioActivity = "other"
    distance_km: Optional[float] = Field(None, ge=0)
    avg_heart_rate: Optional[int] = None
    calories: Optional[float] = Field(None, ge=0)


class YogaDetails(BaseModel):
    style: Optional[YogaStyle] = None
    meditation_minutes: Optional[float] = Field(None, ge=0)
    calories_burned: Optional[float] = Field(None, ge=0)


class BiometricsDetails(BaseModel):
    weight_kg: Optional[float] = Field(None, ge=0)
    body_fat: Optional[float] = Field(None, ge=0, le=100)
    sleep_hours: Optional[float] = Field(None, ge=0, le=24)
    resting_heart_rate: Optional[int] = None
    hrv: Optional[float] = None


class WorkoutIn(BaseModel):
    kind: WorkoutKind
    title: str = Field(min_length=1, max_length=100)
    date: Optional[datetime] = None
    duration_min: Optional[float] = Field(None, ge=0)
    rpe: Optional[int] = Field(None, ge=1, le=10)
    notes: Optional[str] = Field(None, max_length=500)
    run: Optional[RunDetails] = None
    lift: Optional[LiftDetails] = None
    cardio: Optional[CardioDetails] = None
    yoga: Optional[YogaDetails] = None
    biometrics: Optional[BiometricsDetails] = None

    @validator('date')
    def normalize_date(cls, v):
        return to_utc_naive(v)


class WorkoutUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    date: Optional[datetime] = None
    duration_min: Optional[float] = Field(None, ge=0)
    rpe: Optional[int] = Field(None, ge=1, le=10)
    notes: Optional[str] = Field(None, max_length=500)
    run: Optional[RunDetails] = None
    lift: Optional[LiftDetails] = None
    cardio: Optional[CardioDetails] = None
    yoga: Optional[YogaDetails] = None
    biometrics: Optional[BiometricsDetails] = None

    @validator('date')
    def normalize_date(cls, v):
        return to_utc_naive(v)
