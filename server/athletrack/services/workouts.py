# athletrack/services/workouts.py
import logging
from datetime import datetime, timedelta
from typing import Optional

from athletrack.errors import NotFoundError, ValidationError
from athletrack.models.workout import PAYLOAD_KINDS
from athletrack.services.ai_insights import analyze_performance
from athletrack.services.file_import import parse_workout_file, to_workout
from athletrack.services.pipeline import DerivedStatePipeline
from athletrack.services.streak import calculate_streak, longest_streak, to_days
from athletrack.utils.helpers import local_day, now as _now

logger = logging.getLogger(__name__)

INSIGHT_WINDOW_DAYS = 30


def check_payload(kind: str, data: dict) -> None:
    """Only the payload named after the workout kind may be set."""
    stray = [name for name in PAYLOAD_KINDS if name != kind and data.get(name) is not None]
    if stray:
        raise ValidationError(f"Payload not allowed for a {kind} workout", fields=stray)


class WorkoutService:
    def __init__(self, repos):
        self.repos = repos
        self.workouts = repos.workouts

    def create(self, user_id: str, data: dict) -> dict:
        check_payload(data["kind"], data)

        now = _now()
        doc = {k: v for k, v in data.items() if k not in PAYLOAD_KINDS or k == data["kind"]}
        doc.update({"user_id": user_id, "date": data.get("date") or now, "created_at": now})
        workout = self.workouts.insert(doc)
        logger.info(f"Workout logged for user {user_id}: {workout['kind']}")

        derived = DerivedStatePipeline(self.repos).run(user_id, workout)
        return {"workout": workout, **derived}

    def import_file(self, user_id: str, filename: str, content: bytes) -> dict:
        """Log a run parsed from a GPX or CSV upload."""
        parsed = parse_workout_file(filename, content)
        result = self.create(user_id, to_workout(parsed, filename))
        return {**result, "parsed": parsed}

    def list(self, user_id: str, kind: Optional[str] = None, start: Optional[datetime] = None,
             end: Optional[datetime] = None, page: int = 1, limit: int = 20) -> dict:
        skip = (page - 1) * limit
        items = self.workouts.list(user_id, kind=kind, start=start, end=end, limit=limit, skip=skip)
        total = self.workouts.count_all(user_id, kind=kind, start=start, end=end)
        return {
            "workouts": items,
            "pagination": {"page": page, "limit": limit, "total": total, "pages": -(-total // limit)},
        }

    def get(self, user_id: str, workout_id: str) -> dict:
        workout = self.workouts.get(user_id, workout_id)
        if not workout:
            raise NotFoundError("Workout not found")
        return workout

    def update(self, user_id: str, workout_id: str, changes: dict) -> dict:
        workout = self.get(user_id, workout_id)
        check_payload(workout["kind"], changes)
        changes = {**changes, "updated_at": _now()}
        return self.workouts.update(user_id, workout_id, changes)

    def delete(self, user_id: str, workout_id: str) -> None:
        if not self.workouts.delete(user_id, workout_id):
            raise NotFoundError("Workout not found")

    def weekly_stats(self, user_id: str) -> dict:
        now = _now()
        week_ago = now - timedelta(days=7)
        all_days = to_days(self.workouts.activity_dates(user_id))

        return {
            "by_kind": self.workouts.stats_by_kind(user_id, week_ago),
            "running": self.workouts.run_totals(user_id, week_ago),
            "daily_minutes": self.workouts.daily_durations(user_id, week_ago),
            "total_workouts": self.workouts.count(user_id, start=week_ago),
            "total_duration": self.workouts.total_duration(user_id, start=week_ago),
            "current_streak": calculate_streak(all_days, local_day(now)),
            "longest_streak": longest_streak(all_days),
        }

    def insights(self, user_id: str) -> dict:
        recent = self.workouts.list(user_id, start=_now() - timedelta(days=INSIGHT_WINDOW_DAYS))
        return {"insights": analyze_performance(recent), "workout_count": len(recent)}
