# athletrack/services/ai_insights.py
import json
import logging
from datetime import datetime, timedelta
from typing import List, Optional

from groq import Groq

from athletrack.config import GROQ_API_KEY, GROQ_MODEL
from athletrack.errors import ExternalProviderError
from athletrack.utils.helpers import now as _now, safe_json_parse

logger = logging.getLogger(__name__)

# ====== Groq Client ======
client = None
if GROQ_API_KEY:
    try:
        client = Groq(api_key=GROQ_API_KEY)
        logger.info("AI insights: Groq client initialized")
    except Exception as e:
        logger.warning(f"AI insights: failed to initialize Groq client: {e}")
        client = None
else:
    logger.info("AI insights: GROQ_API_KEY not set, using mock insights")

INSIGHTS_PROMPT = """You are an elite sports performance coach and data analyst. Analyze the following workout data for an athlete and provide comprehensive insights.

WORKOUT DATA:
{summary}

RESPOND WITH JSON ONLY:
{{
  "performance_score": <number 0-100>,
  "score_breakdown": {{"consistency": <0-100>, "intensity": <0-100>, "recovery": <0-100>, "progression": <0-100>}},
  "weekly_training_load": "<low|moderate|high|very high>",
  "fatigue_risk": "<low|moderate|high>",
  "key_insights": ["<insight>", "<insight>", "<insight>"],
  "trends": {{"positive": ["<trend>"], "negative": ["<trend>"]}},
  "recommendations": [
    {{"priority": "<high|medium|low>", "category": "<training|recovery|nutrition|technique>",
      "title": "<short title>", "description": "<detailed recommendation>"}}
  ],
  "weekly_plan": {{"monday": "...", "tuesday": "...", "wednesday": "...", "thursday": "...",
                   "friday": "...", "saturday": "...", "sunday": "..."}},
  "summary": "<2-3 sentence overall summary>"
}}

Be specific, actionable, and athlete-friendly."""


def _average(values: List[float]) -> float:
    values = [v for v in values if v]
    if not values:
        return 0
    return round(sum(values) / len(values), 1)


def _by_kind(workouts: List[dict]) -> dict:
    counts = {}
    for w in workouts:
        counts[w.get("kind")] = counts.get(w.get("kind"), 0) + 1
    return counts


def _week(workouts: List[dict]) -> dict:
    return {
        "count": len(workouts),
        "total_duration": sum(w.get("duration_min") or 0 for w in workouts),
        "avg_rpe": _average([w.get("rpe") for w in workouts]),
        "by_kind": _by_kind(workouts),
    }


def summarize_workouts(workouts: List[dict], now: Optional[datetime] = None) -> dict:
    """Compact training summary handed to the provider."""
    now = now or _now()
    week_ago = now - timedelta(days=7)
    two_weeks_ago = now - timedelta(days=14)
    runs = [w for w in workouts if w.get("kind") == "run"]

    return {
        "total_workouts": len(workouts),
        "this_week": _week([w for w in workouts if w["date"] >= week_ago]),
        "last_week": _week([w for w in workouts if two_weeks_ago <= w["date"] < week_ago]),
        "running": {
            "total_distance_km": round(sum((w.get("run") or {}).get("distance_km") or 0 for w in runs), 2),
            "avg_pace_min_per_km": _average([(w.get("run") or {}).get("pace_min_per_km") for w in runs]),
        },
        "recent_biometrics": [
            {
                "date": w["date"].isoformat(),
                "weight_kg": (w.get("biometrics") or {}).get("weight_kg"),
                "sleep_hours": (w.get("biometrics") or {}).get("sleep_hours"),
                "hrv": (w.get("biometrics") or {}).get("hrv"),
            }
            for w in workouts if w.get("kind") == "biometrics"
        ][:5],
    }


def mock_insights(workouts: List[dict]) -> dict:
    total = len([w for w in workouts if w.get("kind") != "biometrics"])
    if total > 5:
        load = "high"
    elif total > 3:
        load = "moderate"
    else:
        load = "low"

    return {
        "performance_score": min(95, 60 + total * 2),
        "score_breakdown": {
            "consistency": min(100, 50 + total * 3),
            "intensity": 75,
            "recovery": 70,
            "progression": 80,
        },
        "weekly_training_load": load,
        "fatigue_risk": "moderate" if total > 6 else "low",
        "key_insights": [
            f"You've completed {total} workouts - great dedication!",
            "Your training consistency is building a strong foundation",
            "Consider adding more variety to your workout types",
        ],
        "trends": {
            "positive": ["Consistent training schedule", "Good workout frequency"],
            "negative": ["Training volume could increase"] if total < 3 else [],
        },
        "recommendations": [
            {
                "priority": "high",
                "category": "training",
                "title": "Maintain Consistency",
                "description": "Keep up your current training frequency. Aim for at least 4-5 workouts per week.",
            },
            {
                "priority": "medium",
                "category": "recovery",
                "title": "Track Sleep & Recovery",
                "description": "Log your biometrics daily to get better insights into your recovery patterns.",
            },
            {
                "priority": "low",
                "category": "technique",
                "title": "Add Interval Training",
                "description": "Incorporate one high-intensity interval session per week to boost performance.",
            },
        ],
        "weekly_plan": {
            "monday": "Easy run or recovery workout",
            "tuesday": "Strength training - upper body focus",
            "wednesday": "Tempo run or moderate cardio",
            "thursday": "Cross-training or active recovery",
            "friday": "Strength training - lower body focus",
            "saturday": "Long run or endurance workout",
            "sunday": "Rest day or light yoga",
        },
        "summary": (
            "Your training is showing good consistency. Focus on maintaining your current routine "
            "while gradually increasing intensity. Don't forget to prioritize recovery between sessions."
        ),
        "ai_generated": False,
    }


def _ask_provider(summary: dict) -> dict:
    try:
        response = client.chat.completions.create(
            model=GROQ_MODEL,
            messages=[{"role": "user", "content": INSIGHTS_PROMPT.format(summary=json.dumps(summary, indent=2))}],
            temperature=0.7,
            max_tokens=2000,
            response_format={"type": "json_object"},
        )
        content = response.choices[0].message.content or ""
    except Exception as e:
        raise ExternalProviderError(f"Groq request failed: {e}")

    parsed = safe_json_parse(content)
    if not parsed:
        raise ExternalProviderError("Provider returned no parsable JSON")
    return parsed


def analyze_performance(workouts: List[dict]) -> dict:
    """Provider insights for a workout history, or the deterministic mock."""
    if client is None:
        return mock_insights(workouts)
    try:
        return {**_ask_provider(summarize_workouts(workouts)), "ai_generated": True}
    except ExternalProviderError as e:
        logger.warning(f"AI insights fallback: {e.detail}")
        return mock_insights(workouts)
