# server/tests/test_pipeline.py
import logging
from datetime import datetime, timedelta
from unittest.mock import patch

import pytest

from athletrack.services.goals import GoalTracker
from athletrack.services.personal_records import PersonalRecordEngine
from athletrack.services.recovery import RecoveryService
from athletrack.services.workouts import WorkoutService

RUN = {"kind": "run", "title": "Morning run", "duration_min": 28, "rpe": 6, "run": {"distance_km": 5.2}}


class TestDerivedStatePipeline:
    """A workout write fans out into records, goals, badges and challenges"""

    def test_first_run_end_to_end(self, repos, user_id):
        goal = GoalTracker(repos).create(user_id, {
            "type": "weekly_distance", "title": "20k week", "target": 20, "unit": "km",
            "end_date": datetime.utcnow() + timedelta(days=7),
        })

        result = WorkoutService(repos).create(user_id, dict(RUN))

        longest = next(r for r in result["new_prs"] if r["type"] == "longest_run")
        assert longest["value"] == 5.2
        assert longest["previous_value"] is None

        badge_ids = [b["id"] for b in result["new_badges"]]
        assert "first_workout" in badge_ids
        assert "first_pr" in badge_ids

        assert repos.goals.get(user_id, goal["_id"])["current"] == pytest.approx(5.2)
        assert result["challenges_synced"] is True

        recovery = RecoveryService(repos).score(user_id)
        assert "recent_load" in recovery["factors"]
        assert recovery["last_workout"]["kind"] == "run"

    def test_failing_step_is_isolated(self, repos, user_id, caplog):
        with patch.object(PersonalRecordEngine, "evaluate", side_effect=RuntimeError("boom")):
            with caplog.at_level(logging.ERROR):
                result = WorkoutService(repos).create(user_id, dict(RUN))

        assert "new_prs" not in result
        assert "first_workout" in [b["id"] for b in result["new_badges"]]
        assert "goals_updated" in result
        assert repos.workouts.count_all(user_id) == 1
        assert "personal_records failed: boom" in caplog.text

    def test_biometrics_skip_training_state(self, repos, user_id):
        result = WorkoutService(repos).create(user_id, {
            "kind": "biometrics", "title": "Morning weigh-in", "biometrics": {"weight_kg": 71.4},
        })
        assert result["new_prs"] == []
        assert result["new_badges"] == []
