# athletrack/services/personal_records.py
"""
Personal-record engine.

Records are append-only: every improvement inserts a new row and the current
record of a type is simply the most extreme value among the user's rows.
"""
import logging
from typing import Dict, List, Optional, Tuple

from athletrack.errors import NotFoundError
from athletrack.utils.helpers import now as _now

logger = logging.getLogger(__name__)

PR_TYPES: Dict[str, dict] = {
    "fastest_5k": {"name": "Fastest 5K", "icon": "🏃", "unit": "min", "category": "running"},
    "fastest_10k": {"name": "Fastest 10K", "icon": "🏃", "unit": "min", "category": "running"},
    "longest_run": {"name": "Longest Run", "icon": "📏", "unit": "km", "category": "running"},
    "highest_elevation_run": {"name": "Highest Elevation", "icon": "⛰️", "unit": "m", "category": "running"},
    "longest_cardio": {"name": "Longest Cardio", "icon": "❤️", "unit": "min", "category": "cardio"},
    "longest_cycling": {"name": "Longest Cycling", "icon": "🚴", "unit": "km", "category": "cardio"},
    "longest_workout": {"name": "Longest Workout", "icon": "⏱️", "unit": "min", "category": "general"},
    "heaviest_deadlift": {"name": "Heaviest Deadlift", "icon": "🏋️", "unit": "kg", "category": "strength"},
    "heaviest_squat": {"name": "Heaviest Squat", "icon": "🏋️", "unit": "kg", "category": "strength"},
    "heaviest_bench": {"name": "Heaviest Bench Press", "icon": "🏋️", "unit": "kg", "category": "strength"},
}

# Time-based records: smaller is better
LOWER_IS_BETTER = {"fastest_5k", "fastest_10k"}

# substring in the exercise name -> record type
LIFT_PATTERNS = (
    ("deadlift", "heaviest_deadlift"),
    ("squat", "heaviest_squat"),
    ("bench", "heaviest_bench"),
)


def pr_type_info(record_type: str) -> dict:
    return PR_TYPES.get(record_type, {"name": record_type, "icon": "🏆", "unit": "", "category": "general"})


def improves(value: float, best: Optional[float], lower_is_better: bool) -> bool:
    if best is None:
        return True
    return value < best if lower_is_better else value > best


def candidate_records(workout: dict) -> List[Tuple[str, Optional[float], str]]:
    """(type, value, unit) pairs a workout could set, by kind."""
    kind = workout.get("kind")
    duration = workout.get("duration_min")
    candidates = []

    if kind == "run" and workout.get("run"):
        run = workout["run"]
        distance = run.get("distance_km")
        candidates.append(("longest_run", distance, "km"))
        # Even-pace extrapolation from the whole run
        if distance and duration:
            pace = duration / distance
            if distance >= 5:
                candidates.append(("fastest_5k", pace * 5, "min"))
            if distance >= 10:
                candidates.append(("fastest_10k", pace * 10, "min"))
        candidates.append(("highest_elevation_run", run.get("elevation_m"), "m"))

    elif kind == "cardio" and workout.get("cardio"):
        cardio = workout["cardio"]
        candidates.append(("longest_cardio", duration, "min"))
        if cardio.get("activity") == "cycling":
            candidates.append(("longest_cycling", cardio.get("distance_km"), "km"))

    elif kind == "lift" and workout.get("lift"):
        for exercise in workout["lift"].get("exercises") or []:
            name = (exercise.get("name") or "").lower()
            for pattern, record_type in LIFT_PATTERNS:
                if pattern in name:
                    candidates.append((record_type, exercise.get("weight_kg"), "kg"))

    candidates.append(("longest_workout", duration, "min"))
    return candidates


class PersonalRecordEngine:
    def __init__(self, repos):
        self.records = repos.personal_records

    def evaluate(self, user_id: str, workout: dict) -> List[dict]:
        """Insert a record row for every category this workout strictly improves."""
        created = []
        for record_type, value, unit in candidate_records(workout):
            if value is None or value <= 0:
                continue
            value = round(float(value), 2)
            lower = record_type in LOWER_IS_BETTER

            best = self.records.best(user_id, record_type, lower_is_better=lower)
            previous = best["value"] if best else None
            if not improves(value, previous, lower):
                continue

            improvement = None
            if previous:
                improvement = round((value - previous) / previous * 100, 1)

            record = self.records.insert({
                "user_id": user_id,
                "type": record_type,
                "value": value,
                "unit": unit,
                "workout_id": workout.get("_id"),
                "previous_value": previous,
                "improvement": improvement,
                "achieved_at": _now(),
            })
            logger.info(f"New PR for user {user_id}: {record_type} = {value} {unit}")
            created.append(record)
        return created

    def grouped(self, user_id: str) -> dict:
        records = self.records.list(user_id)
        grouped = {"running": [], "cardio": [], "strength": [], "general": []}
        for record in records:
            info = pr_type_info(record["type"])
            grouped.setdefault(info["category"], []).append({**record, **info})
        return {"records": records, "grouped": grouped, "total": len(records)}

    def history(self, user_id: str, record_type: str) -> dict:
        if record_type not in PR_TYPES:
            raise NotFoundError(f"Unknown record type: {record_type}")
        history = self.records.list(user_id, record_type)
        lower = record_type in LOWER_IS_BETTER
        current = None
        if history:
            pick = min if lower else max
            current = pick(history, key=lambda r: r["value"])
        return {"type": record_type, **pr_type_info(record_type), "history": history, "current": current}
