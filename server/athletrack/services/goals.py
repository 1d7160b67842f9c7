# athletrack/services/goals.py
import logging
from datetime import datetime, timedelta
from typing import List, Optional

from athletrack.errors import NotFoundError, ValidationError
from athletrack.services.streak import calculate_streak, to_days
from athletrack.utils.helpers import local_day, now as _now

logger = logging.getLogger(__name__)

# trailing window in days per aggregate-backed goal type
COUNT_WINDOWS = {"weekly_workouts": 7, "monthly_workouts": 30}
DISTANCE_WINDOWS = {"weekly_distance": 7, "monthly_distance": 30}
DURATION_WINDOWS = {"weekly_duration": 7}

GOAL_TYPE_INFO = {
    "weekly_workouts": {"name": "Weekly Workouts", "icon": "🏋️", "unit": "workouts", "default_target": 5},
    "weekly_distance": {"name": "Weekly Distance", "icon": "🏃", "unit": "km", "default_target": 30},
    "weekly_duration": {"name": "Weekly Training Time", "icon": "⏱️", "unit": "min", "default_target": 300},
    "monthly_workouts": {"name": "Monthly Workouts", "icon": "📅", "unit": "workouts", "default_target": 20},
    "monthly_distance": {"name": "Monthly Distance", "icon": "📏", "unit": "km", "default_target": 100},
    "daily_streak": {"name": "Workout Streak", "icon": "🔥", "unit": "days", "default_target": 7},
    "weight_target": {"name": "Weight Goal", "icon": "⚖️", "unit": "kg", "default_target": 70},
    "run_distance": {"name": "Distance Milestone", "icon": "🎯", "unit": "km", "default_target": 10},
    "custom": {"name": "Custom Goal", "icon": "⭐", "unit": "count", "default_target": 1},
}

# user-requested status changes: current status -> allowed new statuses
USER_TRANSITIONS = {
    "active": {"active", "paused", "completed"},
    "paused": {"paused", "active"},
    "completed": {"completed"},
    "failed": {"failed"},
}


def present(goal: dict, now: Optional[datetime] = None) -> dict:
    """Goal document plus derived progress fields."""
    now = now or _now()
    target = goal.get("target") or 0
    current = goal.get("current") or 0
    days_left = (goal["end_date"] - now).total_seconds() / 86400 if goal.get("end_date") else 0
    return {
        **goal,
        "progress": min(100, round(current / target * 100)) if target else 0,
        "remaining": max(0, target - current),
        "days_remaining": max(0, int(-(-days_left // 1))),
        "type_info": GOAL_TYPE_INFO.get(goal.get("type"), GOAL_TYPE_INFO["custom"]),
    }


class GoalTracker:
    def __init__(self, repos):
        self.goals = repos.goals
        self.workouts = repos.workouts

    def aggregate_for(self, user_id: str, goal_type: str, now: datetime) -> Optional[float]:
        """Current value of an aggregate-backed goal type, None for other types."""
        if goal_type in COUNT_WINDOWS:
            return self.workouts.count(user_id, start=now - timedelta(days=COUNT_WINDOWS[goal_type]))
        if goal_type in DISTANCE_WINDOWS:
            return self.workouts.total_distance(user_id, start=now - timedelta(days=DISTANCE_WINDOWS[goal_type]))
        if goal_type in DURATION_WINDOWS:
            return self.workouts.total_duration(user_id, start=now - timedelta(days=DURATION_WINDOWS[goal_type]))
        if goal_type == "daily_streak":
            days = to_days(self.workouts.activity_dates(user_id))
            return calculate_streak(days, local_day(now))
        return None

    def refresh(self, user_id: str, workout: dict) -> List[dict]:
        """Recompute every active goal touched by a new workout and persist it."""
        now = _now()
        updated = []
        for goal in self.goals.list(user_id, status="active"):
            if goal["type"] == "run_distance":
                distance = (workout.get("run") or {}).get("distance_km") if workout.get("kind") == "run" else None
                if distance is None or distance < goal["target"]:
                    continue
                goal["current"] = distance
            else:
                value = self.aggregate_for(user_id, goal["type"], now)
                if value is None:
                    continue
                goal["current"] = value

            if goal["current"] >= goal["target"]:
                goal["status"] = "completed"
                goal["completed_at"] = now
                logger.info(f"Goal completed for user {user_id}: {goal.get('title')}")

            goal["updated_at"] = now
            self.goals.save(goal)
            updated.append(goal)
        return updated

    def expire(self, goals: List[dict], now: Optional[datetime] = None) -> List[dict]:
        """Close active goals whose window has ended. The only path to `failed`."""
        now = now or _now()
        for goal in goals:
            if goal.get("status") != "active" or not goal.get("end_date") or goal["end_date"] >= now:
                continue
            if (goal.get("current") or 0) >= goal["target"]:
                goal["status"] = "completed"
                goal["completed_at"] = goal["end_date"]
            else:
                goal["status"] = "failed"
            goal["updated_at"] = now
            self.goals.save(goal)
        return goals

    # ---------- CRUD ----------
    def list_goals(self, user_id: str, status: Optional[str] = None) -> dict:
        now = _now()
        goals = self.expire(self.goals.list(user_id), now)
        if status:
            goals = [g for g in goals if g.get("status") == status]
        summary = {"total": len(goals)}
        for key in ("active", "completed", "failed", "paused"):
            summary[key] = sum(1 for g in goals if g.get("status") == key)
        return {"goals": [present(g, now) for g in goals], "summary": summary}

    def create(self, user_id: str, data: dict) -> dict:
        now = _now()
        start = data.get("start_date") or now
        if data["end_date"] <= start:
            raise ValidationError("end_date must be after start_date", fields=["end_date"])

        current = self.aggregate_for(user_id, data["type"], now) or 0
        goal = self.goals.insert({
            **data,
            "user_id": user_id,
            "start_date": start,
            "current": current,
            "status": "active",
            "completed_at": None,
            "created_at": now,
            "updated_at": now,
        })
        return present(goal, now)

    def update(self, user_id: str, goal_id: str, changes: dict) -> dict:
        goal = self.goals.get(user_id, goal_id)
        if not goal:
            raise NotFoundError("Goal not found")

        requested = changes.get("status")
        if requested and requested not in USER_TRANSITIONS.get(goal["status"], set()):
            raise ValidationError(
                f"Cannot move a {goal['status']} goal to {requested}", fields=["status"]
            )

        now = _now()
        changes = {**changes, "updated_at": now}
        if requested == "completed" and goal["status"] != "completed":
            changes["completed_at"] = now
        return present(self.goals.update_fields(user_id, goal_id, changes), now)

    def delete(self, user_id: str, goal_id: str) -> None:
        if not self.goals.delete(user_id, goal_id):
            raise NotFoundError("Goal not found")
