# athletrack/services/challenges.py
"""
Challenge progress synchronizer and challenge CRUD.

Participant progress is always recomputed from the workout history inside the
challenge window, so a sync can be repeated any number of times. Completion
badges go through the badge engine's unique insert.
"""
import logging
import secrets
from datetime import datetime
from typing import List, Optional

from pymongo.errors import DuplicateKeyError

from athletrack.errors import ConflictError, NotFoundError, ValidationError
from athletrack.services.badges import BadgeEngine
from athletrack.services.leaderboard import leaderboard, progress_percent, rank_participants
from athletrack.utils.helpers import now as _now, oid

logger = logging.getLogger(__name__)

INVITE_CODE_ATTEMPTS = 5


def generate_invite_code() -> str:
    return secrets.token_hex(6).upper()


def _same_user(a, b) -> bool:
    return str(a) == str(b)


def find_participant(challenge: dict, user_id: str) -> Optional[dict]:
    for participant in challenge.get("participants") or []:
        if _same_user(participant["user_id"], user_id):
            return participant
    return None


def can_view(challenge: dict, user_id: str) -> bool:
    if challenge.get("visibility") == "public":
        return True
    return _same_user(challenge.get("creator_id"), user_id) or find_participant(challenge, user_id) is not None


def initial_status(start: datetime, now: datetime) -> str:
    return "active" if now >= start else "upcoming"


class ChallengeService:
    def __init__(self, repos):
        self.challenges = repos.challenges
        self.workouts = repos.workouts
        self.badges = BadgeEngine(repos)

    # ---------- progress ----------
    def compute_progress(self, challenge: dict, user_id: str) -> float:
        """Participant total inside [start_date, end_date] for the challenge type."""
        start, end = challenge["start_date"], challenge["end_date"]
        kind = challenge["type"]

        if kind == "distance":
            value = self.workouts.total_distance(user_id, start=start, end=end)
        elif kind == "duration":
            value = self.workouts.total_duration(user_id, start=start, end=end)
        elif kind == "workouts":
            value = self.workouts.count(user_id, start=start, end=end)
        elif kind == "calories":
            value = self.workouts.total_calories(user_id, start=start, end=end)
        else:
            value = 0
        return round(value or 0, 2)

    def sync_one(self, challenge_id, user_id: str) -> float:
        challenge = self.challenges.get(challenge_id)
        if not challenge:
            raise NotFoundError("Challenge not found")
        participant = find_participant(challenge, user_id)
        if participant is None:
            raise NotFoundError("Not a participant of this challenge")

        participant["progress"] = self.compute_progress(challenge, user_id)
        participant["last_updated"] = _now()
        rank_participants(challenge["participants"])
        self.challenges.save_participants(challenge["_id"], challenge["participants"])
        return participant["progress"]

    def sync_all_for_user(self, user_id: str, workout: Optional[dict] = None) -> bool:
        """Resync the user's progress in every active challenge they are in."""
        try:
            for challenge in self.challenges.active_for_user(user_id):
                self.sync_one(challenge["_id"], user_id)
            return True
        except Exception as e:
            logger.error(f"Challenge sync failed for user {user_id}: {e}", exc_info=True)
            return False

    def run_status_sweep(self, now: Optional[datetime] = None) -> List:
        """Advance challenge statuses and award completion badges."""
        completed = self.challenges.update_statuses(now or _now())
        for challenge_id in completed:
            challenge = self.challenges.get(challenge_id)
            if not challenge:
                continue
            logger.info(f"Challenge completed: {challenge.get('title')}")
            for participant in challenge.get("participants") or []:
                self.badges.check_challenges(str(participant["user_id"]))
        return completed

    # ---------- reads ----------
    def present(self, challenge: dict, user_id: str) -> dict:
        me = find_participant(challenge, user_id)
        board = leaderboard(challenge)
        my_rank = next((p["rank"] for p in board if _same_user(p["user_id"], user_id)), None)
        return {
            **challenge,
            "participants": board,
            "participant_count": len(board),
            "is_participant": me is not None,
            "is_creator": _same_user(challenge.get("creator_id"), user_id),
            "my_progress": me.get("progress") if me else None,
            "my_percent": progress_percent(me.get("progress"), challenge.get("target")) if me else None,
            "my_rank": my_rank,
        }

    def mine(self, user_id: str, status: Optional[str] = None) -> List[dict]:
        self.run_status_sweep()
        return [self.present(c, user_id) for c in self.challenges.list_for_participant(user_id, status)]

    def discover(self, user_id: str, category: Optional[str] = None) -> List[dict]:
        self.run_status_sweep()
        return [self.present(c, user_id) for c in self.challenges.discover(user_id, category)]

    def get(self, challenge_id: str, user_id: str) -> dict:
        challenge = self.challenges.get(challenge_id)
        if not challenge or not can_view(challenge, user_id):
            raise NotFoundError("Challenge not found")
        return self.present(challenge, user_id)

    def leaderboard(self, challenge_id: str, user_id: str) -> List[dict]:
        return self.get(challenge_id, user_id)["participants"]

    # ---------- writes ----------
    def create(self, user_id: str, data: dict) -> dict:
        now = _now()
        if data["end_date"] <= data["start_date"]:
            raise ValidationError("end_date must be after start_date", fields=["end_date"])
        if data["end_date"] <= now:
            raise ValidationError("end_date must be in the future", fields=["end_date"])

        doc = {
            **data,
            "creator_id": oid(user_id),
            "participants": [{
                "user_id": oid(user_id),
                "progress": 0,
                "joined_at": now,
                "rank": 1,
                "last_updated": now,
            }],
            "status": initial_status(data["start_date"], now),
            "created_at": now,
        }

        challenge = None
        for _ in range(INVITE_CODE_ATTEMPTS):
            if data.get("visibility") == "invite-only":
                doc["invite_code"] = generate_invite_code()
            try:
                challenge = self.challenges.insert(dict(doc))
                break
            except DuplicateKeyError:
                logger.debug("Invite code collision, retrying")
        if challenge is None:
            raise ConflictError("Could not allocate an invite code")

        if challenge["status"] == "active":
            self.sync_one(challenge["_id"], user_id)
            challenge = self.challenges.get(challenge["_id"]) or challenge

        new_badges = self.badges.check_challenges(user_id)
        return {**self.present(challenge, user_id), "new_badges": new_badges}

    def join(self, challenge_id: str, user_id: str, invite_code: Optional[str] = None) -> dict:
        challenge = self.challenges.get(challenge_id)
        if not challenge or challenge.get("visibility") == "private":
            raise NotFoundError("Challenge not found")
        if challenge.get("status") == "completed":
            raise ValidationError("Challenge has already ended")
        if find_participant(challenge, user_id) is not None:
            raise ValidationError("Already joined this challenge")
        if challenge.get("visibility") == "invite-only":
            if not invite_code or invite_code.strip().upper() != challenge.get("invite_code"):
                raise ValidationError("Invalid invite code", fields=["invite_code"])

        now = _now()
        updated = self.challenges.add_participant(challenge["_id"], {
            "user_id": oid(user_id),
            "progress": 0,
            "joined_at": now,
            "rank": len(challenge.get("participants") or []) + 1,
            "last_updated": now,
        })
        if updated is None:
            raise ValidationError("Already joined this challenge")

        if updated.get("status") == "active":
            self.sync_one(updated["_id"], user_id)
            updated = self.challenges.get(updated["_id"]) or updated
        return self.present(updated, user_id)

    def sync_for(self, challenge_id: str, user_id: str) -> dict:
        challenge = self.challenges.get(challenge_id)
        if not challenge or find_participant(challenge, user_id) is None:
            raise NotFoundError("Challenge not found")
        progress = self.sync_one(challenge_id, user_id)
        return {"progress": progress, "leaderboard": self.leaderboard(challenge_id, user_id)}

    def delete(self, challenge_id: str, user_id: str) -> None:
        challenge = self.challenges.get(challenge_id)
        if not challenge or not _same_user(challenge.get("creator_id"), user_id):
            raise NotFoundError("Challenge not found")
        self.challenges.delete(challenge["_id"])
