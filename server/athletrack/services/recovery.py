# athletrack/services/recovery.py
"""
Recovery score model.

A 0-100 readiness estimate built from four sub-scores over the trailing two
weeks of training. Nothing is persisted; the score is recomputed per request.
"""
import math
from datetime import datetime, timedelta
from typing import List, Optional

from athletrack.utils.helpers import now as _now

LOOKBACK_DAYS = 14

WEIGHTS = {
    "recent_load": 0.35,
    "weekly_volume": 0.25,
    "rest_days": 0.25,
    "rpe_trend": 0.15,
}

STATUSES = (
    (80, {"label": "Fresh", "color": "lime", "icon": "💪", "message": "Ready for high intensity!"}),
    (60, {"label": "Recovered", "color": "primary", "icon": "✅", "message": "Good to train normally"}),
    (40, {"label": "Moderate", "color": "yellow", "icon": "⚠️", "message": "Consider lighter training"}),
    (0, {"label": "Fatigued", "color": "red", "icon": "🔴", "message": "Recovery day recommended"}),
)

DEFAULT_RPE = 5
DEFAULT_DURATION = 30
# three days of an hour at RPE 7
EXPECTED_LOAD = 3 * 60 * 0.7


def half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def status_for(score: int) -> dict:
    for minimum, status in STATUSES:
        if score >= minimum:
            return dict(status)
    return dict(STATUSES[-1][1])


def _days_between(later: datetime, earlier: datetime) -> int:
    return int((later - earlier).total_seconds() // 86400)


def recent_load_score(workouts: List[dict], now: datetime) -> int:
    cutoff = now - timedelta(days=3)
    recent = [w for w in workouts if w["date"] >= cutoff]
    if not recent:
        return 100

    load = sum((w.get("rpe") or DEFAULT_RPE) / 10 * (w.get("duration_min") or DEFAULT_DURATION) for w in recent)
    ratio = load / EXPECTED_LOAD
    if ratio <= 0.5:
        return 100
    if ratio >= 2:
        return 20
    return half_up(100 - (ratio - 0.5) * 53)


def weekly_volume_score(workouts: List[dict], now: datetime) -> int:
    week_ago = now - timedelta(days=7)
    this_week = sum(w.get("duration_min") or 0 for w in workouts if w["date"] >= week_ago)
    last_week = sum(w.get("duration_min") or 0 for w in workouts if w["date"] < week_ago)

    if last_week == 0:
        if this_week < 120:
            return 90
        if this_week > 420:
            return 40
        return 70

    ratio = this_week / last_week
    if ratio <= 0.9:
        return 95
    if ratio <= 1.1:
        return 85
    if ratio <= 1.3:
        return 60
    if ratio <= 1.5:
        return 40
    return 25


def rest_days_score(days_since_last: int) -> int:
    if days_since_last <= 0:
        return 50
    if days_since_last == 1:
        return 80
    if days_since_last == 2:
        return 95
    return 100


def rpe_trend_score(workouts: List[dict]) -> int:
    rated = [w["rpe"] for w in workouts if w.get("rpe")][:5]
    if not rated:
        return 70

    avg = sum(rated) / len(rated)
    if avg <= 4:
        return 95
    if avg <= 6:
        return 75
    if avg <= 7:
        return 55
    if avg <= 8:
        return 40
    return 25


def insights_for(factors: dict) -> List[str]:
    insights = []
    if factors["recent_load"] < 50:
        insights.append("High training load in the last 3 days")
    if factors["weekly_volume"] < 50:
        insights.append("Training volume increased significantly this week")
    if factors["rest_days"] < 60:
        insights.append("Consider taking a rest day")
    if factors["rpe_trend"] < 50:
        insights.append("Recent workouts have been high intensity")

    if not insights:
        if factors["recent_load"] > 80 and factors["rest_days"] > 80:
            insights.append("Well-rested with balanced training")
        else:
            insights.append("Training load is manageable")
    return insights


def recommendation_for(score: int, last_workout: Optional[dict]) -> str:
    if score >= 80:
        if not last_workout or last_workout["days_ago"] >= 2:
            return "Perfect time for a challenging workout or PR attempt"
        return "Ready for normal training intensity"
    if score >= 60:
        return "Good for moderate training. Avoid max efforts."
    if score >= 40:
        return "Light training recommended: easy run, mobility, or technique work"
    return "Rest day recommended. Focus on sleep, nutrition, and stretching."


def compute_recovery(workouts: List[dict], now: Optional[datetime] = None) -> dict:
    """Score non-biometric workouts from the trailing 14 days, any order."""
    now = now or _now()
    cutoff = now - timedelta(days=LOOKBACK_DAYS)
    workouts = sorted(
        (w for w in workouts if w.get("date") and w["date"] >= cutoff and w.get("kind") != "biometrics"),
        key=lambda w: w["date"],
        reverse=True,
    )

    if not workouts:
        return {
            "score": 100,
            "status": status_for(100),
            "factors": {name: 100 for name in WEIGHTS},
            "insights": ["No recent workouts - you're fully recovered!"],
            "last_workout": None,
            "recommendation": "Ready for any workout intensity",
        }

    last = workouts[0]
    days_ago = _days_between(now, last["date"])
    factors = {
        "recent_load": recent_load_score(workouts, now),
        "weekly_volume": weekly_volume_score(workouts, now),
        "rest_days": rest_days_score(days_ago),
        "rpe_trend": rpe_trend_score(workouts),
    }
    score = half_up(sum(factors[name] * weight for name, weight in WEIGHTS.items()))
    last_workout = {
        "date": last["date"],
        "kind": last.get("kind"),
        "duration_min": last.get("duration_min"),
        "days_ago": days_ago,
    }

    return {
        "score": score,
        "status": status_for(score),
        "factors": factors,
        "insights": insights_for(factors),
        "last_workout": last_workout,
        "recommendation": recommendation_for(score, last_workout),
    }


class RecoveryService:
    def __init__(self, repos):
        self.workouts = repos.workouts

    def score(self, user_id: str) -> dict:
        now = _now()
        recent = self.workouts.list(
            user_id, start=now - timedelta(days=LOOKBACK_DAYS), exclude_biometrics=True
        )
        return compute_recovery(recent, now)
