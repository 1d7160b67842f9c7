# athletrack/services/macros.py
"""Nutrition arithmetic shared by the meal endpoints and the badge engine."""
from typing import Dict, Iterable, Optional

KCAL_PER_GRAM = {"protein": 4, "carbs": 4, "fat": 9}

TOTAL_FIELDS = ("calories", "protein", "carbs", "fat", "fiber")

DEFAULT_DAILY_CALORIES = 2000
DEFAULT_SPLIT = {"protein": 25, "carbs": 50, "fat": 25}

ACTIVITY_MULTIPLIERS = {
    "sedentary": 1.2,
    "light": 1.375,
    "moderate": 1.55,
    "active": 1.725,
    "very-active": 1.9,
}

GOAL_ADJUSTMENTS = {"lose": -500, "maintain": 0, "gain": 300}


def meal_totals(foods: Iterable[dict]) -> Dict[str, float]:
    """Sum nutrient line items into {calories, protein, carbs, fat, fiber}."""
    totals = {field: 0.0 for field in TOTAL_FIELDS}
    for food in foods or []:
        for field in TOTAL_FIELDS:
            totals[field] += food.get(field) or 0
    return {field: round(value, 2) for field, value in totals.items()}


def totals_to_doc(totals: Dict[str, float]) -> Dict[str, float]:
    return {f"total_{field}": value for field, value in totals.items()}


def macro_grams(goal: Optional[dict]) -> Dict[str, int]:
    """
    Daily gram targets. Explicit `<macro>_grams` win; otherwise they are
    derived from the calorie percentages.
    """
    goal = goal or {}
    calories = goal.get("daily_calories") or DEFAULT_DAILY_CALORIES
    targets = goal.get("macro_targets") or {}

    grams = {}
    for macro, kcal in KCAL_PER_GRAM.items():
        explicit = targets.get(f"{macro}_grams")
        if explicit:
            grams[macro] = round(explicit)
        else:
            pct = targets.get(macro, DEFAULT_SPLIT[macro])
            grams[macro] = round(calories * pct / 100 / kcal)
    return grams


def percent_of(value: float, target: float) -> int:
    if not target:
        return 0
    return round(value / target * 100)


def recommended_calories(weight: float, height: float, age: int, gender: str,
                         activity_level: str = "moderate", goal_type: str = "maintain") -> int:
    # Mifflin-St Jeor
    bmr = 10 * weight + 6.25 * height - 5 * age
    bmr += 5 if gender == "male" else -161
    tdee = bmr * ACTIVITY_MULTIPLIERS.get(activity_level, 1.55)
    return round(tdee + GOAL_ADJUSTMENTS.get(goal_type, 0))
