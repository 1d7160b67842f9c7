# athletrack/models/nutrition.py
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, validator

from athletrack.utils.helpers import to_utc_naive

MealType = Literal["breakfast", "lunch", "dinner", "snack", "pre-workout", "post-workout"]
FoodUnit = Literal["g", "ml", "oz", "cup", "piece", "serving", "tbsp", "tsp"]


class FoodItem(BaseModel):
    name: str
    quantity: float = Field(ge=0)
    unit: FoodUnit = "g"
    calories: float = Field(ge=0)
    protein: float = Field(0, ge=0)
    carbs: float = Field(0, ge=0)
    fat: float = Field(0, ge=0)
    fiber: float = Field(0, ge=0)
    sugar: float = Field(0, ge=0)
    sodium: float = Field(0, ge=0)


class MealIn(BaseModel):
    date: Optional[datetime] = None
    type: MealType
    name: str = Field(min_length=1, max_length=100)
    foods: List[FoodItem] = Field(default_factory=list)
    notes: Optional[str] = Field(None, max_length=500)

    @validator('date')
    def normalize_date(cls, v):
        return to_utc_naive(v)


class MealUpdate(BaseModel):
    date: Optional[datetime] = None
    type: Optional[MealType] = None
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    foods: Optional[List[FoodItem]] = None
    notes: Optional[str] = Field(None, max_length=500)

    @validator('date')
    def normalize_date(cls, v):
        return to_utc_naive(v)


class MacroTargets(BaseModel):
    # percentages of daily calories
    protein: float = Field(25, ge=0, le=100)
    carbs: float = Field(50, ge=0, le=100)
    fat: float = Field(25, ge=0, le=100)
    # explicit grams override the percentages when set
    protein_grams: Optional[float] = Field(None, ge=0)
    carbs_grams: Optional[float] = Field(None, ge=0)
    fat_grams: Optional[float] = Field(None, ge=0)


class NutritionGoalIn(BaseModel):
    daily_calories: float = Field(2000, ge=500, le=10000)
    macro_targets: MacroTargets = Field(default_factory=MacroTargets)
    water_target: float = Field(2.5, ge=0.5, le=10)
    goal_type: Literal["lose", "maintain", "gain", "custom"] = "maintain"
    activity_level: Literal["sedentary", "light", "moderate", "active", "very-active"] = "moderate"


class CalorieCalcIn(BaseModel):
    weight: float = Field(gt=0)  # kg
    height: float = Field(gt=0)  # cm
    age: int = Field(gt=0)
    gender: Literal["male", "female"]
    activity_level: Literal["sedentary", "light", "moderate", "active", "very-active"] = "moderate"
    goal_type: Literal["lose", "maintain", "gain", "custom"] = "maintain"
