# server/tests/test_personal_records.py
import pytest

from athletrack.errors import NotFoundError
from athletrack.services.personal_records import PersonalRecordEngine, candidate_records


def _run(distance, duration, elevation=None):
    return {"kind": "run", "duration_min": duration,
            "run": {"distance_km": distance, "elevation_m": elevation}}


class TestCandidateRecords:
    def test_run_extrapolates_5k_pace(self):
        found = {t: v for t, v, _ in candidate_records(_run(10, 50))}
        assert found["longest_run"] == 10
        assert found["fastest_5k"] == pytest.approx(25)
        assert found["fastest_10k"] == pytest.approx(50)
        assert found["longest_workout"] == 50

    def test_short_run_has_no_5k(self):
        types = [t for t, _, _ in candidate_records(_run(4.9, 30))]
        assert "fastest_5k" not in types

    def test_lift_names_match_case_insensitively(self):
        workout = {"kind": "lift", "duration_min": 60, "lift": {"exercises": [
            {"name": "Romanian DEADLIFT", "sets": 3, "reps": 5, "weight_kg": 140},
            {"name": "Back Squat", "sets": 5, "reps": 5, "weight_kg": 120},
            {"name": "Incline Bench Press", "sets": 3, "reps": 8, "weight_kg": 80},
        ]}}
        found = {t: v for t, v, _ in candidate_records(workout)}
        assert found["heaviest_deadlift"] == 140
        assert found["heaviest_squat"] == 120
        assert found["heaviest_bench"] == 80

    def test_cycling_distance(self):
        workout = {"kind": "cardio", "duration_min": 90, "cardio": {"activity": "cycling", "distance_km": 42}}
        found = {t: v for t, v, _ in candidate_records(workout)}
        assert found["longest_cardio"] == 90
        assert found["longest_cycling"] == 42


class TestPersonalRecordEngine:
    def test_first_record_has_no_previous(self, repos, user_id):
        created = PersonalRecordEngine(repos).evaluate(user_id, _run(5.2, 28))
        longest = next(r for r in created if r["type"] == "longest_run")
        assert longest["value"] == 5.2
        assert longest["previous_value"] is None
        assert longest["improvement"] is None

    def test_no_record_without_strict_improvement(self, repos, user_id):
        engine = PersonalRecordEngine(repos)
        engine.evaluate(user_id, _run(8, 40))
        created = engine.evaluate(user_id, _run(8, 45))
        assert "longest_run" not in [r["type"] for r in created]

    def test_improvement_percentage(self, repos, user_id):
        engine = PersonalRecordEngine(repos)
        engine.evaluate(user_id, _run(10, 60))
        created = engine.evaluate(user_id, _run(12, 80))
        longest = next(r for r in created if r["type"] == "longest_run")
        assert longest["previous_value"] == 10
        assert longest["improvement"] == 20.0

    def test_values_are_strictly_improving(self, repos, user_id):
        engine = PersonalRecordEngine(repos)
        for distance, duration in [(5, 30), (6, 33), (5.5, 26), (10, 48), (7, 40), (10, 45)]:
            engine.evaluate(user_id, _run(distance, duration))

        # insertion order
        longest = [r["value"] for r in repos.personal_records.docs if r["type"] == "longest_run"]
        fastest = [r["value"] for r in repos.personal_records.docs if r["type"] == "fastest_5k"]
        assert longest == [5, 6, 10]
        assert fastest == [30, 27.5, 23.64, 22.5]

    def test_missing_or_zero_values_are_skipped(self, repos, user_id):
        created = PersonalRecordEngine(repos).evaluate(user_id, {"kind": "run", "duration_min": 0, "run": {}})
        assert created == []

    def test_history_unknown_type(self, repos, user_id):
        with pytest.raises(NotFoundError):
            PersonalRecordEngine(repos).history(user_id, "longest_swim")

    def test_history_current_for_time_record(self, repos, user_id):
        engine = PersonalRecordEngine(repos)
        engine.evaluate(user_id, _run(5, 30))
        engine.evaluate(user_id, _run(5, 25))
        history = engine.history(user_id, "fastest_5k")
        assert len(history["history"]) == 2
        assert history["current"]["value"] == 25
