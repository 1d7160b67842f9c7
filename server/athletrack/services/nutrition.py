# athletrack/services/nutrition.py
import logging
from datetime import date, timedelta
from typing import Optional

from athletrack.errors import NotFoundError
from athletrack.services.badges import BadgeEngine
from athletrack.services.macros import (
    DEFAULT_DAILY_CALORIES,
    DEFAULT_SPLIT,
    TOTAL_FIELDS,
    macro_grams,
    meal_totals,
    percent_of,
    recommended_calories,
    totals_to_doc,
)
from athletrack.utils.helpers import day_bounds, local_day, now as _now

logger = logging.getLogger(__name__)

MACROS = ("protein", "carbs", "fat")


def _with_totals(meal: dict) -> dict:
    return {**meal, **totals_to_doc(meal_totals(meal.get("foods") or []))}


class NutritionService:
    def __init__(self, repos):
        self.meals = repos.meals
        self.goals = repos.nutrition_goals
        self.badges = BadgeEngine(repos)

    # ---------- meals ----------
    def log_meal(self, user_id: str, data: dict) -> dict:
        now = _now()
        meal = self.meals.insert(_with_totals({
            **data,
            "user_id": user_id,
            "date": data.get("date") or now,
            "created_at": now,
        }))

        new_badges = []
        try:
            new_badges = self.badges.check_nutrition(user_id)
        except Exception as e:
            logger.error(f"Nutrition badge check failed for user {user_id}: {e}", exc_info=True)
        return {"meal": meal, "new_badges": new_badges}

    def update_meal(self, user_id: str, meal_id: str, changes: dict) -> dict:
        meal = self.meals.get(user_id, meal_id)
        if not meal:
            raise NotFoundError("Meal not found")
        meal.update(changes)
        meal["updated_at"] = _now()
        return self.meals.replace(_with_totals(meal))

    def delete_meal(self, user_id: str, meal_id: str) -> None:
        if not self.meals.delete(user_id, meal_id):
            raise NotFoundError("Meal not found")

    def meals_for_day(self, user_id: str, day: date):
        start, end = day_bounds(day)
        return self.meals.list_between(user_id, start, end)

    # ---------- goals ----------
    def get_goal(self, user_id: str) -> dict:
        goal = self.goals.get(user_id)
        if goal is None:
            goal = self.goals.upsert(user_id, {
                "daily_calories": DEFAULT_DAILY_CALORIES,
                "macro_targets": dict(DEFAULT_SPLIT),
                "water_target": 2.5,
                "goal_type": "maintain",
                "activity_level": "moderate",
                "updated_at": _now(),
            })
        return {**goal, "macro_grams": macro_grams(goal)}

    def update_goal(self, user_id: str, fields: dict) -> dict:
        goal = self.goals.upsert(user_id, {**fields, "updated_at": _now()})
        return {**goal, "macro_grams": macro_grams(goal)}

    # ---------- read-path aggregates ----------
    def daily_summary(self, user_id: str, day: date) -> dict:
        meals = self.meals_for_day(user_id, day)
        totals = {field: 0 for field in TOTAL_FIELDS}
        for meal in meals:
            for field in TOTAL_FIELDS:
                totals[field] += meal.get(f"total_{field}") or 0
        totals = {field: round(value, 2) for field, value in totals.items()}

        goal = self.goals.get(user_id)
        grams = macro_grams(goal)
        calories = (goal or {}).get("daily_calories") or DEFAULT_DAILY_CALORIES
        targets = {"calories": calories, **grams}

        by_type = {}
        for meal in meals:
            by_type.setdefault(meal.get("type"), []).append(meal)

        return {
            "date": day.isoformat(),
            "totals": totals,
            "targets": targets,
            "progress": {key: percent_of(totals[key], target) for key, target in targets.items()},
            "remaining": {key: max(0, round(target - totals[key], 2)) for key, target in targets.items()},
            "meals_by_type": by_type,
            "meal_count": len(meals),
        }

    def weekly_stats(self, user_id: str, today: Optional[date] = None) -> dict:
        today = today or local_day(_now())
        start, _ = day_bounds(today - timedelta(days=6))
        _, end = day_bounds(today)
        daily = self.meals.daily_totals(user_id, start=start, end=end)

        tracked = max(1, len(daily))
        averages = {
            key: round(sum(row.get(key) or 0 for row in daily) / tracked)
            for key in ("calories", *MACROS)
        }
        return {
            "daily": [{"date": row["day"].isoformat(), **{k: v for k, v in row.items() if k != "day"}} for row in daily],
            "averages": averages,
            "days_tracked": len(daily),
        }

    @staticmethod
    def calculate_calories(data: dict) -> dict:
        calories = recommended_calories(
            data["weight"], data["height"], data["age"], data["gender"],
            data.get("activity_level", "moderate"), data.get("goal_type", "maintain"),
        )
        split = {macro: round(calories * DEFAULT_SPLIT[macro] / 100 / kcal)
                 for macro, kcal in (("protein", 4), ("carbs", 4), ("fat", 9))}
        return {"recommended_calories": calories, "macro_grams": split}
