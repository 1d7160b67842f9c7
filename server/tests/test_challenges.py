# server/tests/test_challenges.py
from datetime import datetime, timedelta
from unittest.mock import patch

import pytest
from bson import ObjectId

from athletrack.errors import ConflictError, NotFoundError, ValidationError
from athletrack.services.challenges import ChallengeService
from athletrack.services.leaderboard import leaderboard, rank_participants


def _challenge_data(**overrides):
    now = datetime.utcnow()
    return {
        "title": "June distance",
        "description": None,
        "type": "distance",
        "target": 50,
        "unit": "km",
        "start_date": now - timedelta(days=2),
        "end_date": now + timedelta(days=5),
        "visibility": "public",
        "category": "running",
        **overrides,
    }


def _badge_ids(repos, user_id):
    return repos.badges.granted_ids(user_id)


class TestRanking:
    def test_ties_go_to_the_earlier_joiner(self):
        base = datetime(2024, 6, 1)
        participants = [
            {"user_id": "P1", "progress": 40, "joined_at": base},
            {"user_id": "P2", "progress": 90, "joined_at": base + timedelta(hours=1)},
            {"user_id": "P3", "progress": 40, "joined_at": base + timedelta(hours=2)},
            {"user_id": "P4", "progress": 10, "joined_at": base + timedelta(hours=3)},
        ]
        rank_participants(participants)
        assert {p["user_id"]: p["rank"] for p in participants} == {"P1": 2, "P2": 1, "P3": 3, "P4": 4}

    def test_join_time_beats_list_position(self):
        base = datetime(2024, 6, 1)
        participants = [
            {"user_id": "late", "progress": 10, "joined_at": base + timedelta(days=1)},
            {"user_id": "early", "progress": 10, "joined_at": base},
        ]
        rank_participants(participants)
        assert [p["rank"] for p in participants] == [2, 1]

    def test_leaderboard_is_sorted_with_percent(self):
        challenge = {"target": 80, "participants": [
            {"user_id": "a", "progress": 20, "joined_at": datetime(2024, 1, 1)},
            {"user_id": "b", "progress": 100, "joined_at": datetime(2024, 1, 2)},
        ]}
        board = leaderboard(challenge)
        assert [p["user_id"] for p in board] == ["b", "a"]
        assert [p["progress_percent"] for p in board] == [100, 25]


class TestProgressSync:
    def test_distance_inside_window_only(self, repos, user_id, add_workout):
        service = ChallengeService(repos)
        challenge = service.create(user_id, _challenge_data())

        add_workout("run", days_ago=1, run={"distance_km": 3})
        add_workout("cardio", cardio={"activity": "cycling", "distance_km": 2.5})
        add_workout("run", days_ago=6, run={"distance_km": 20})
        add_workout("biometrics", biometrics={"weight_kg": 70})

        assert service.sync_all_for_user(user_id) is True
        stored = repos.challenges.get(challenge["_id"])
        assert stored["participants"][0]["progress"] == 5.5

    def test_workout_count_excludes_biometrics(self, repos, user_id, add_workout):
        service = ChallengeService(repos)
        challenge = service.create(user_id, _challenge_data(type="workouts", target=10, unit="count"))
        add_workout("lift")
        add_workout("biometrics")
        assert service.sync_one(challenge["_id"], user_id) == 1

    def test_sync_failure_reports_false(self, repos, user_id):
        service = ChallengeService(repos)
        with patch.object(repos.challenges, "active_for_user", side_effect=RuntimeError("boom")):
            assert service.sync_all_for_user(user_id) is False

    def test_sync_reranks_everyone(self, repos, user_id, add_workout):
        service = ChallengeService(repos)
        challenge = service.create(user_id, _challenge_data())
        rival = str(ObjectId())
        service.join(str(challenge["_id"]), rival)

        add_workout("run", owner=rival, run={"distance_km": 4})
        service.sync_one(challenge["_id"], rival)
        ranks = {str(p["user_id"]): p["rank"] for p in repos.challenges.get(challenge["_id"])["participants"]}
        assert ranks == {rival: 1, user_id: 2}


class TestStatusSweep:
    def _finished(self, repos, progresses, target=50):
        past = datetime.utcnow() - timedelta(days=1)
        users = [str(ObjectId()) for _ in progresses]
        participants = [
            {"user_id": ObjectId(uid), "progress": progress, "joined_at": past - timedelta(days=10, hours=-i),
             "rank": i + 1, "last_updated": past}
            for i, (uid, progress) in enumerate(zip(users, progresses))
        ]
        repos.challenges.insert({
            "title": "Done", "type": "distance", "target": target, "unit": "km",
            "creator_id": ObjectId(users[0]), "participants": participants, "status": "active",
            "visibility": "public", "start_date": past - timedelta(days=10), "end_date": past,
        })
        return users

    def test_completion_awards(self, repos):
        p1, p2, p3, p4 = self._finished(repos, [40, 90, 40, 10])
        completed = ChallengeService(repos).run_status_sweep()
        assert len(completed) == 1

        assert {"challenge_finisher", "challenge_top3", "challenge_winner"} <= _badge_ids(repos, p2)
        assert _badge_ids(repos, p1) == {"challenge_top3"}
        assert _badge_ids(repos, p3) == {"challenge_top3"}
        assert _badge_ids(repos, p4) == set()

    def test_repeated_sweeps_are_safe(self, repos):
        users = self._finished(repos, [60, 30])
        service = ChallengeService(repos)
        service.run_status_sweep()
        assert service.run_status_sweep() == []
        service.badges.check_challenges(users[0])
        assert len([b for b in repos.badges.list(users[0]) if b["badge_id"] == "challenge_winner"]) == 1

    def test_upcoming_becomes_active(self, repos, user_id):
        service = ChallengeService(repos)
        challenge = service.create(user_id, _challenge_data(
            start_date=datetime.utcnow() + timedelta(days=1), end_date=datetime.utcnow() + timedelta(days=8)))
        assert challenge["status"] == "upcoming"

        service.run_status_sweep(datetime.utcnow() + timedelta(days=2))
        assert repos.challenges.get(challenge["_id"])["status"] == "active"


class TestChallengeCrud:
    def test_window_already_over_is_rejected(self, repos, user_id):
        with pytest.raises(ValidationError) as exc:
            ChallengeService(repos).create(user_id, _challenge_data(
                start_date=datetime.utcnow() - timedelta(days=10), end_date=datetime.utcnow() - timedelta(days=1)))
        assert exc.value.fields == ["end_date"]
        assert repos.challenges.docs == []

    def test_invite_code_collision_is_retried(self, repos, user_id):
        service = ChallengeService(repos)
        with patch("athletrack.services.challenges.generate_invite_code", side_effect=["AAAA", "AAAA", "BBBB"]):
            first = service.create(user_id, _challenge_data(visibility="invite-only"))
            second = service.create(user_id, _challenge_data(visibility="invite-only"))
        assert first["invite_code"] == "AAAA"
        assert second["invite_code"] == "BBBB"

    def test_invite_code_exhaustion(self, repos, user_id):
        service = ChallengeService(repos)
        with patch("athletrack.services.challenges.generate_invite_code", return_value="AAAA"):
            service.create(user_id, _challenge_data(visibility="invite-only"))
            with pytest.raises(ConflictError):
                service.create(user_id, _challenge_data(visibility="invite-only"))

    def test_invite_only_join_needs_the_code(self, repos, user_id):
        service = ChallengeService(repos)
        challenge = service.create(user_id, _challenge_data(visibility="invite-only"))
        friend = str(ObjectId())

        with pytest.raises(ValidationError):
            service.join(str(challenge["_id"]), friend, "WRONG")
        joined = service.join(str(challenge["_id"]), friend, challenge["invite_code"].lower())
        assert joined["participant_count"] == 2

        with pytest.raises(ValidationError):
            service.join(str(challenge["_id"]), friend, challenge["invite_code"])

    def test_private_challenge_is_hidden(self, repos, user_id):
        service = ChallengeService(repos)
        challenge = service.create(user_id, _challenge_data(visibility="private"))
        with pytest.raises(NotFoundError):
            service.get(str(challenge["_id"]), str(ObjectId()))
        assert service.get(str(challenge["_id"]), user_id)["is_creator"] is True

    def test_only_creator_deletes(self, repos, user_id):
        service = ChallengeService(repos)
        challenge = service.create(user_id, _challenge_data())
        with pytest.raises(NotFoundError):
            service.delete(str(challenge["_id"]), str(ObjectId()))
        service.delete(str(challenge["_id"]), user_id)
        assert repos.challenges.get(challenge["_id"]) is None

    def test_discover_hides_joined(self, repos, user_id):
        service = ChallengeService(repos)
        service.create(user_id, _challenge_data())
        stranger = str(ObjectId())
        assert service.discover(user_id) == []
        assert len(service.discover(stranger)) == 1

    def test_creator_badge_after_five(self, repos, user_id):
        service = ChallengeService(repos)
        for _ in range(4):
            service.create(user_id, _challenge_data())
        fifth = service.create(user_id, _challenge_data())
        assert "challenge_creator" in [b["id"] for b in fifth["new_badges"]]
