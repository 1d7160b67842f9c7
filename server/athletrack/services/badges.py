# athletrack/services/badges.py
"""
Badge engine.

One rule evaluator (`evaluate_rules`) is fed by three aggregate collectors:
workout history, nutrition logging and challenge outcomes. Event-triggered
paths collect only the aggregates their trigger can move; `retro_sync`
collects all of them from scratch. Grants rely on the unique
(user_id, badge_id) index, so a racing duplicate insert is a silent no-op.
"""
import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Set

from pymongo.errors import DuplicateKeyError

from athletrack.services.badge_definitions import BADGES, CATEGORIES
from athletrack.services.leaderboard import leaderboard
from athletrack.services.macros import macro_grams
from athletrack.services.streak import calculate_streak, to_days
from athletrack.utils.helpers import local_day, local_time, now as _now

logger = logging.getLogger(__name__)

EARLY_HOUR = 6
LATE_HOUR = 22
SATURDAY, SUNDAY = 5, 6


def evaluate_rules(aggregates: Dict[str, float], granted: Set[str]) -> List[str]:
    """Ids of ungranted badges whose metric is present and at/over threshold."""
    earned = []
    for badge_id, badge in BADGES.items():
        if badge_id in granted:
            continue
        value = aggregates.get(badge["metric"])
        if value is not None and value >= badge["threshold"]:
            earned.append(badge_id)
    return earned


def weekend_weeks(days: Iterable) -> int:
    """ISO weeks containing both a Saturday and the Sunday after it."""
    weeks: Dict[tuple, Set[int]] = {}
    for day in days:
        if day.weekday() in (SATURDAY, SUNDAY):
            iso = day.isocalendar()
            weeks.setdefault((iso[0], iso[1]), set()).add(day.weekday())
    return sum(1 for seen in weeks.values() if len(seen) == 2)


def _hour_counts(timestamps: Iterable[datetime]) -> Dict[str, int]:
    early = late = 0
    for ts in timestamps:
        hour = local_time(ts).hour
        if hour < EARLY_HOUR:
            early += 1
        elif hour >= LATE_HOUR:
            late += 1
    return {"early_sessions": early, "late_sessions": late}


class BadgeEngine:
    def __init__(self, repos):
        self.repos = repos
        self.badges = repos.badges

    # ---------- aggregate collectors ----------
    def workout_metrics(self, user_id: str, workout: Optional[dict] = None) -> Dict[str, float]:
        """
        Training aggregates. With a triggering workout the time-of-day metrics
        look at that session only; without one they scan the full history.
        """
        workouts = self.repos.workouts
        today = local_day(_now())

        history = workouts.activity_dates(user_id)
        days = to_days(history)
        yoga_days = to_days(workouts.activity_dates(user_id, kind="yoga"))

        if workout is not None:
            when = workout.get("date") or workout.get("created_at")
            hours = _hour_counts([when]) if when and workout.get("kind") != "biometrics" else {}
        else:
            hours = _hour_counts(history)

        return {
            "workout_count": workouts.count(user_id),
            "total_distance_km": workouts.total_distance(user_id),
            "current_streak": calculate_streak(days, today),
            "weekend_weeks": weekend_weeks(days),
            "personal_records": self.repos.personal_records.count(user_id),
            "goals_completed": self.repos.goals.count(user_id, status="completed"),
            "yoga_sessions": workouts.count(user_id, kind="yoga"),
            "yoga_streak": calculate_streak(yoga_days, today),
            "meditation_minutes": workouts.total_meditation_minutes(user_id),
            **hours,
        }

    def nutrition_metrics(self, user_id: str) -> Dict[str, float]:
        daily = self.repos.meals.daily_totals(user_id)
        logged_days = {row["day"] for row in daily}

        protein_days = 0
        goal = self.repos.nutrition_goals.get(user_id)
        if goal:
            target = macro_grams(goal)["protein"]
            protein_days = sum(1 for row in daily if (row.get("protein") or 0) >= target)

        return {
            "meals_logged": self.repos.meals.count(user_id),
            "nutrition_streak": calculate_streak(logged_days, local_day(_now())),
            "protein_target_days": protein_days,
        }

    def challenge_metrics(self, user_id: str) -> Dict[str, float]:
        finished = podiums = wins = 0
        for challenge in self.repos.challenges.completed_for_user(user_id):
            for entry in leaderboard(challenge):
                if str(entry["user_id"]) != str(user_id):
                    continue
                if (entry.get("progress") or 0) >= challenge["target"]:
                    finished += 1
                if entry["rank"] <= 3:
                    podiums += 1
                if entry["rank"] == 1:
                    wins += 1
        return {
            "challenges_created": self.repos.challenges.count_created_by(user_id),
            "challenges_finished": finished,
            "challenge_podiums": podiums,
            "challenge_wins": wins,
        }

    # ---------- granting ----------
    def award(self, user_id: str, badge_ids: Iterable[str], workout_id=None) -> List[dict]:
        granted = []
        for badge_id in badge_ids:
            badge = BADGES.get(badge_id)
            if badge is None:
                continue
            try:
                row = self.badges.insert(user_id, badge_id, earned_at=_now(), workout_id=workout_id)
            except DuplicateKeyError:
                logger.debug(f"Badge {badge_id} already granted to user {user_id}")
                continue
            logger.info(f"Badge earned by user {user_id}: {badge['name']}")
            granted.append({**badge, "earned_at": row["earned_at"]})
        return granted

    def _award_from(self, user_id: str, aggregates: Dict[str, float], workout_id=None) -> List[dict]:
        granted = self.badges.granted_ids(user_id)
        return self.award(user_id, evaluate_rules(aggregates, granted), workout_id=workout_id)

    def check_and_award(self, user_id: str, workout: dict) -> List[dict]:
        """Badges newly earned through a logged workout."""
        return self._award_from(user_id, self.workout_metrics(user_id, workout), workout.get("_id"))

    def check_nutrition(self, user_id: str) -> List[dict]:
        return self._award_from(user_id, self.nutrition_metrics(user_id))

    def check_challenges(self, user_id: str) -> List[dict]:
        return self._award_from(user_id, self.challenge_metrics(user_id))

    def retro_sync(self, user_id: str) -> List[dict]:
        """Recompute every aggregate from scratch and grant whatever is missing."""
        aggregates = {
            **self.workout_metrics(user_id),
            **self.nutrition_metrics(user_id),
            **self.challenge_metrics(user_id),
        }
        return self._award_from(user_id, aggregates)

    # ---------- read path ----------
    def user_badges(self, user_id: str) -> dict:
        rows = {row["badge_id"]: row for row in self.badges.list(user_id)}

        all_badges = []
        by_category = {category: [] for category in CATEGORIES}
        for badge_id, badge in BADGES.items():
            row = rows.get(badge_id)
            entry = {
                **badge,
                "earned": row is not None,
                "earned_at": row["earned_at"] if row else None,
                "workout_id": row.get("workout_id") if row else None,
            }
            all_badges.append(entry)
            by_category.setdefault(badge["category"], []).append(entry)

        return {
            "all": all_badges,
            "by_category": by_category,
            "earned": len(rows),
            "total": len(BADGES),
        }
