# athletrack/database/repositories.py
"""
Query layer over the MongoDB collections.

Services never touch pymongo directly; they receive a `Repositories` bundle
and call the narrow methods below. All user ids arrive as strings and are
stored as ObjectId. Date windows are inclusive on both ends.
"""
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Set

from pymongo import ASCENDING, DESCENDING, ReturnDocument

from athletrack.config import TZ_OFFSET_MINUTES
from athletrack.utils.helpers import oid

logger = logging.getLogger(__name__)

DISTANCE_KINDS = ["run", "cardio"]
NON_ACTIVITY_KINDS = ["biometrics"]


def _tz_string(offset_minutes: int) -> str:
    sign = "+" if offset_minutes >= 0 else "-"
    hours, minutes = divmod(abs(offset_minutes), 60)
    return f"{sign}{hours:02d}:{minutes:02d}"


def _date_range(start: Optional[datetime], end: Optional[datetime]) -> dict:
    rng = {}
    if start is not None:
        rng["$gte"] = start
    if end is not None:
        rng["$lte"] = end
    return {"date": rng} if rng else {}


def _sum(collection, match: dict, expr: Any) -> float:
    result = list(collection.aggregate([
        {"$match": match},
        {"$group": {"_id": None, "total": {"$sum": expr}}},
    ]))
    return result[0]["total"] if result else 0


# Per-kind distance: run.distance_km for runs, cardio.distance_km otherwise
DISTANCE_EXPR = {
    "$cond": [
        {"$eq": ["$kind", "run"]},
        {"$ifNull": ["$run.distance_km", 0]},
        {"$ifNull": ["$cardio.distance_km", 0]},
    ]
}

CALORIES_EXPR = {
    "$add": [
        {"$ifNull": ["$run.calories", 0]},
        {"$ifNull": ["$cardio.calories", 0]},
        {"$ifNull": ["$yoga.calories_burned", 0]},
    ]
}


class WorkoutRepository:
    def __init__(self, db):
        self.col = db.workouts

    def _activity_match(self, user_id: str, start=None, end=None, kind=None) -> dict:
        match = {"user_id": oid(user_id), **_date_range(start, end)}
        if kind:
            match["kind"] = kind
        else:
            match["kind"] = {"$nin": NON_ACTIVITY_KINDS}
        return match

    def insert(self, doc: dict) -> dict:
        doc = {**doc, "user_id": oid(doc["user_id"])}
        res = self.col.insert_one(doc)
        doc["_id"] = res.inserted_id
        return doc

    def get(self, user_id: str, workout_id: str) -> Optional[dict]:
        return self.col.find_one({"_id": oid(workout_id), "user_id": oid(user_id)})

    def list(self, user_id: str, kind: str = None, start: datetime = None, end: datetime = None,
             exclude_biometrics: bool = False, limit: int = None, skip: int = 0) -> List[dict]:
        query = {"user_id": oid(user_id), **_date_range(start, end)}
        if kind:
            query["kind"] = kind
        elif exclude_biometrics:
            query["kind"] = {"$nin": NON_ACTIVITY_KINDS}
        cursor = self.col.find(query).sort("date", DESCENDING).skip(skip)
        if limit:
            cursor = cursor.limit(limit)
        return list(cursor)

    def count_all(self, user_id: str, kind: str = None, start=None, end=None) -> int:
        query = {"user_id": oid(user_id), **_date_range(start, end)}
        if kind:
            query["kind"] = kind
        return self.col.count_documents(query)

    def count(self, user_id: str, start=None, end=None, kind: str = None) -> int:
        """Non-biometric sessions (or sessions of one kind) in the window."""
        return self.col.count_documents(self._activity_match(user_id, start, end, kind))

    def total_distance(self, user_id: str, start=None, end=None) -> float:
        match = {"user_id": oid(user_id), "kind": {"$in": DISTANCE_KINDS}, **_date_range(start, end)}
        return _sum(self.col, match, DISTANCE_EXPR)

    def total_duration(self, user_id: str, start=None, end=None, kind: str = None) -> float:
        return _sum(self.col, self._activity_match(user_id, start, end, kind),
                    {"$ifNull": ["$duration_min", 0]})

    def total_calories(self, user_id: str, start=None, end=None) -> float:
        return _sum(self.col, self._activity_match(user_id, start, end), CALORIES_EXPR)

    def total_meditation_minutes(self, user_id: str) -> float:
        return _sum(self.col, self._activity_match(user_id, kind="yoga"),
                    {"$ifNull": ["$yoga.meditation_minutes", 0]})

    def activity_dates(self, user_id: str, kind: str = None, limit: int = 0) -> List[datetime]:
        """Session timestamps, newest first. limit=0 returns the full history."""
        cursor = (
            self.col.find(self._activity_match(user_id, kind=kind), {"date": 1})
            .sort("date", DESCENDING)
            .limit(limit)
        )
        return [d["date"] for d in cursor if d.get("date")]

    def stats_by_kind(self, user_id: str, start: datetime) -> List[dict]:
        rows = self.col.aggregate([
            {"$match": {"user_id": oid(user_id), "date": {"$gte": start}}},
            {"$group": {
                "_id": "$kind",
                "count": {"$sum": 1},
                "total_duration": {"$sum": {"$ifNull": ["$duration_min", 0]}},
                "avg_duration": {"$avg": "$duration_min"},
                "avg_rpe": {"$avg": "$rpe"},
            }},
            {"$sort": {"_id": 1}},
        ])
        return [{"kind": r.pop("_id"), **r} for r in rows]

    def run_totals(self, user_id: str, start: datetime) -> dict:
        rows = list(self.col.aggregate([
            {"$match": {"user_id": oid(user_id), "kind": "run", "date": {"$gte": start}}},
            {"$group": {
                "_id": None,
                "total_distance": {"$sum": {"$ifNull": ["$run.distance_km", 0]}},
                "avg_pace": {"$avg": "$run.pace_min_per_km"},
                "total_elevation": {"$sum": {"$ifNull": ["$run.elevation_m", 0]}},
            }},
        ]))
        if not rows:
            return {}
        rows[0].pop("_id", None)
        return rows[0]

    def daily_durations(self, user_id: str, start: datetime, offset_minutes: int = None) -> Dict[str, float]:
        """Minutes trained per local calendar day since start (YYYY-MM-DD keys)."""
        tz = _tz_string(TZ_OFFSET_MINUTES if offset_minutes is None else offset_minutes)
        rows = self.col.aggregate([
            {"$match": self._activity_match(user_id, start=start)},
            {"$group": {
                "_id": {"$dateToString": {"format": "%Y-%m-%d", "date": "$date", "timezone": tz}},
                "minutes": {"$sum": {"$ifNull": ["$duration_min", 0]}},
            }},
        ])
        return {r["_id"]: r["minutes"] for r in rows}

    def update(self, user_id: str, workout_id: str, fields: dict) -> Optional[dict]:
        return self.col.find_one_and_update(
            {"_id": oid(workout_id), "user_id": oid(user_id)},
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
        )

    def delete(self, user_id: str, workout_id: str) -> bool:
        res = self.col.delete_one({"_id": oid(workout_id), "user_id": oid(user_id)})
        return res.deleted_count > 0


class PersonalRecordRepository:
    def __init__(self, db):
        self.col = db.personal_records

    def best(self, user_id: str, record_type: str, lower_is_better: bool = False) -> Optional[dict]:
        direction = ASCENDING if lower_is_better else DESCENDING
        return self.col.find_one(
            {"user_id": oid(user_id), "type": record_type},
            sort=[("value", direction)],
        )

    def insert(self, doc: dict) -> dict:
        doc = {**doc, "user_id": oid(doc["user_id"])}
        res = self.col.insert_one(doc)
        doc["_id"] = res.inserted_id
        return doc

    def list(self, user_id: str, record_type: str = None) -> List[dict]:
        query = {"user_id": oid(user_id)}
        if record_type:
            query["type"] = record_type
        return list(self.col.find(query).sort("achieved_at", DESCENDING))

    def count(self, user_id: str) -> int:
        return self.col.count_documents({"user_id": oid(user_id)})


class GoalRepository:
    def __init__(self, db):
        self.col = db.goals

    def insert(self, doc: dict) -> dict:
        doc = {**doc, "user_id": oid(doc["user_id"])}
        res = self.col.insert_one(doc)
        doc["_id"] = res.inserted_id
        return doc

    def get(self, user_id: str, goal_id: str) -> Optional[dict]:
        return self.col.find_one({"_id": oid(goal_id), "user_id": oid(user_id)})

    def list(self, user_id: str, status: str = None) -> List[dict]:
        query = {"user_id": oid(user_id)}
        if status:
            query["status"] = status
        return list(self.col.find(query).sort("created_at", DESCENDING))

    def save(self, goal: dict) -> dict:
        self.col.replace_one({"_id": goal["_id"]}, goal)
        return goal

    def update_fields(self, user_id: str, goal_id: str, fields: dict) -> Optional[dict]:
        return self.col.find_one_and_update(
            {"_id": oid(goal_id), "user_id": oid(user_id)},
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
        )

    def delete(self, user_id: str, goal_id: str) -> bool:
        res = self.col.delete_one({"_id": oid(goal_id), "user_id": oid(user_id)})
        return res.deleted_count > 0

    def count(self, user_id: str, status: str = None) -> int:
        query = {"user_id": oid(user_id)}
        if status:
            query["status"] = status
        return self.col.count_documents(query)


class BadgeRepository:
    """Grant rows; (user_id, badge_id) carries a unique index."""

    def __init__(self, db):
        self.col = db.user_badges

    def granted_ids(self, user_id: str) -> Set[str]:
        return {b["badge_id"] for b in self.col.find({"user_id": oid(user_id)}, {"badge_id": 1})}

    def insert(self, user_id: str, badge_id: str, earned_at: datetime, workout_id=None) -> dict:
        """Raises pymongo.errors.DuplicateKeyError if the badge was already granted."""
        doc = {"user_id": oid(user_id), "badge_id": badge_id, "earned_at": earned_at}
        if workout_id is not None:
            doc["workout_id"] = workout_id
        res = self.col.insert_one(doc)
        doc["_id"] = res.inserted_id
        return doc

    def list(self, user_id: str) -> List[dict]:
        return list(self.col.find({"user_id": oid(user_id)}).sort("earned_at", DESCENDING))


class ChallengeRepository:
    def __init__(self, db):
        self.col = db.challenges

    def insert(self, doc: dict) -> dict:
        """Raises DuplicateKeyError on an invite code collision."""
        res = self.col.insert_one(doc)
        doc["_id"] = res.inserted_id
        return doc

    def get(self, challenge_id: str) -> Optional[dict]:
        return self.col.find_one({"_id": oid(challenge_id)})

    def list_for_participant(self, user_id: str, status: str = None, limit: int = 20) -> List[dict]:
        query = {"participants.user_id": oid(user_id)}
        if status:
            query["status"] = status
        return list(self.col.find(query).sort("start_date", DESCENDING).limit(limit))

    def discover(self, user_id: str, category: str = None, limit: int = 20) -> List[dict]:
        query = {
            "visibility": "public",
            "status": {"$in": ["upcoming", "active"]},
            "participants.user_id": {"$ne": oid(user_id)},
        }
        if category:
            query["category"] = category
        return list(self.col.find(query).sort("start_date", ASCENDING).limit(limit))

    def active_for_user(self, user_id: str) -> List[dict]:
        return list(self.col.find({"participants.user_id": oid(user_id), "status": "active"}))

    def completed_for_user(self, user_id: str) -> List[dict]:
        return list(self.col.find({"participants.user_id": oid(user_id), "status": "completed"}))

    def save_participants(self, challenge_id, participants: List[dict]) -> None:
        self.col.update_one({"_id": oid(challenge_id)}, {"$set": {"participants": participants}})

    def add_participant(self, challenge_id, participant: dict) -> Optional[dict]:
        """Push unless the user is already in the list."""
        return self.col.find_one_and_update(
            {"_id": oid(challenge_id), "participants.user_id": {"$ne": participant["user_id"]}},
            {"$push": {"participants": participant}},
            return_document=ReturnDocument.AFTER,
        )

    def delete(self, challenge_id) -> bool:
        return self.col.delete_one({"_id": oid(challenge_id)}).deleted_count > 0

    def count_created_by(self, user_id: str) -> int:
        return self.col.count_documents({"creator_id": oid(user_id)})

    def update_statuses(self, now: datetime) -> List[Any]:
        """Set-based status sweep. Returns ids that moved to completed."""
        self.col.update_many(
            {"status": "upcoming", "start_date": {"$lte": now}},
            {"$set": {"status": "active"}},
        )
        finishing = [c["_id"] for c in self.col.find(
            {"status": "active", "end_date": {"$lt": now}}, {"_id": 1}
        )]
        if finishing:
            self.col.update_many(
                {"_id": {"$in": finishing}, "status": "active"},
                {"$set": {"status": "completed"}},
            )
        return finishing


class MealRepository:
    def __init__(self, db):
        self.col = db.meals

    def insert(self, doc: dict) -> dict:
        doc = {**doc, "user_id": oid(doc["user_id"])}
        res = self.col.insert_one(doc)
        doc["_id"] = res.inserted_id
        return doc

    def get(self, user_id: str, meal_id: str) -> Optional[dict]:
        return self.col.find_one({"_id": oid(meal_id), "user_id": oid(user_id)})

    def replace(self, meal: dict) -> dict:
        self.col.replace_one({"_id": meal["_id"]}, meal)
        return meal

    def delete(self, user_id: str, meal_id: str) -> bool:
        return self.col.delete_one({"_id": oid(meal_id), "user_id": oid(user_id)}).deleted_count > 0

    def list_between(self, user_id: str, start: datetime, end: datetime) -> List[dict]:
        """Meals with start <= date < end, oldest first."""
        return list(self.col.find({
            "user_id": oid(user_id),
            "date": {"$gte": start, "$lt": end},
        }).sort("created_at", ASCENDING))

    def count(self, user_id: str) -> int:
        return self.col.count_documents({"user_id": oid(user_id)})

    def daily_totals(self, user_id: str, start: datetime = None, end: datetime = None,
                     offset_minutes: int = None) -> List[dict]:
        """Per local day: {day, calories, protein, carbs, fat, meals}, oldest first."""
        tz = _tz_string(TZ_OFFSET_MINUTES if offset_minutes is None else offset_minutes)
        rows = self.col.aggregate([
            {"$match": {"user_id": oid(user_id), **_date_range(start, end)}},
            {"$group": {
                "_id": {"$dateToString": {"format": "%Y-%m-%d", "date": "$date", "timezone": tz}},
                "calories": {"$sum": "$total_calories"},
                "protein": {"$sum": "$total_protein"},
                "carbs": {"$sum": "$total_carbs"},
                "fat": {"$sum": "$total_fat"},
                "meals": {"$sum": 1},
            }},
            {"$sort": {"_id": 1}},
        ])
        return [{"day": date.fromisoformat(r.pop("_id")), **r} for r in rows]


class NutritionGoalRepository:
    def __init__(self, db):
        self.col = db.nutrition_goals

    def get(self, user_id: str) -> Optional[dict]:
        return self.col.find_one({"user_id": oid(user_id)})

    def upsert(self, user_id: str, fields: dict) -> dict:
        return self.col.find_one_and_update(
            {"user_id": oid(user_id)},
            {"$set": fields, "$setOnInsert": {"user_id": oid(user_id)}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )


class Repositories:
    """Everything the derived-state components are allowed to see."""

    def __init__(self, workouts, personal_records, goals, badges, challenges, meals, nutrition_goals):
        self.workouts = workouts
        self.personal_records = personal_records
        self.goals = goals
        self.badges = badges
        self.challenges = challenges
        self.meals = meals
        self.nutrition_goals = nutrition_goals

    @classmethod
    def from_db(cls, db) -> "Repositories":
        return cls(
            workouts=WorkoutRepository(db),
            personal_records=PersonalRecordRepository(db),
            goals=GoalRepository(db),
            badges=BadgeRepository(db),
            challenges=ChallengeRepository(db),
            meals=MealRepository(db),
            nutrition_goals=NutritionGoalRepository(db),
        )


def ensure_indexes(db) -> None:
    # at-most-once badge grants rely on this one
    db.user_badges.create_index(
        [("user_id", ASCENDING), ("badge_id", ASCENDING)], unique=True, name="ux_user_badge"
    )
    db.challenges.create_index([("invite_code", ASCENDING)], unique=True, sparse=True, name="ux_invite_code")
    db.nutrition_goals.create_index([("user_id", ASCENDING)], unique=True, name="ux_nutrition_goal_user")
    try:
        db.workouts.create_index([("user_id", ASCENDING), ("date", DESCENDING)], name="idx_user_date")
        db.workouts.create_index([("user_id", ASCENDING), ("kind", ASCENDING), ("date", DESCENDING)],
                                 name="idx_user_kind_date")
        db.personal_records.create_index([("user_id", ASCENDING), ("type", ASCENDING)], name="idx_user_type")
        db.goals.create_index([("user_id", ASCENDING), ("status", ASCENDING)], name="idx_user_status")
        db.meals.create_index([("user_id", ASCENDING), ("date", DESCENDING)], name="idx_user_date")
        db.challenges.create_index([("participants.user_id", ASCENDING)], name="idx_participants")
        db.challenges.create_index([("status", ASCENDING), ("start_date", ASCENDING)], name="idx_status_start")
    except Exception as e:
        logger.warning(f"Could not create query indexes: {e}")
