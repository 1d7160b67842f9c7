# server/tests/conftest.py
"""
In-memory stand-ins for the repository classes in
athletrack.database.repositories. Same method names and return shapes,
including DuplicateKeyError on unique-key violations.
"""
import copy
from datetime import datetime, timedelta

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from athletrack.database.repositories import Repositories
from athletrack.utils.helpers import local_day, oid

USER_ID = str(ObjectId())


def _same(a, b) -> bool:
    return str(a) == str(b)


def _in_window(ts, start=None, end=None) -> bool:
    if ts is None:
        return False
    if start is not None and ts < start:
        return False
    if end is not None and ts > end:
        return False
    return True


class _Store:
    def __init__(self):
        self.docs = []

    def _insert(self, doc: dict) -> dict:
        doc.setdefault("_id", ObjectId())
        self.docs.append(copy.deepcopy(doc))
        return doc

    def _find(self, **match):
        return [d for d in self.docs if all(_same(d.get(k), v) for k, v in match.items())]

    def _replace(self, doc: dict) -> dict:
        for i, existing in enumerate(self.docs):
            if existing["_id"] == doc["_id"]:
                self.docs[i] = copy.deepcopy(doc)
        return doc

    def _remove(self, **match) -> bool:
        found = self._find(**match)
        for doc in found:
            self.docs.remove(doc)
        return bool(found)


class FakeWorkouts(_Store):
    def _activity(self, user_id, start=None, end=None, kind=None):
        return [
            d for d in self._find(user_id=user_id)
            if _in_window(d.get("date"), start, end)
            and (d["kind"] == kind if kind else d["kind"] != "biometrics")
        ]

    def insert(self, doc):
        return self._insert({**doc, "user_id": oid(doc["user_id"])})

    def get(self, user_id, workout_id):
        found = self._find(_id=workout_id, user_id=user_id)
        return copy.deepcopy(found[0]) if found else None

    def list(self, user_id, kind=None, start=None, end=None, exclude_biometrics=False, limit=None, skip=0):
        docs = [d for d in self._find(user_id=user_id) if _in_window(d.get("date"), start, end)]
        if kind:
            docs = [d for d in docs if d["kind"] == kind]
        elif exclude_biometrics:
            docs = [d for d in docs if d["kind"] != "biometrics"]
        docs.sort(key=lambda d: d["date"], reverse=True)
        docs = docs[skip:]
        if limit:
            docs = docs[:limit]
        return copy.deepcopy(docs)

    def count_all(self, user_id, kind=None, start=None, end=None):
        return len(self.list(user_id, kind=kind, start=start, end=end))

    def count(self, user_id, start=None, end=None, kind=None):
        return len(self._activity(user_id, start, end, kind))

    def total_distance(self, user_id, start=None, end=None):
        total = 0
        for d in self._find(user_id=user_id):
            if d["kind"] in ("run", "cardio") and _in_window(d.get("date"), start, end):
                total += (d.get(d["kind"]) or {}).get("distance_km") or 0
        return total

    def total_duration(self, user_id, start=None, end=None, kind=None):
        return sum(d.get("duration_min") or 0 for d in self._activity(user_id, start, end, kind))

    def total_calories(self, user_id, start=None, end=None):
        total = 0
        for d in self._activity(user_id, start, end):
            total += (d.get("run") or {}).get("calories") or 0
            total += (d.get("cardio") or {}).get("calories") or 0
            total += (d.get("yoga") or {}).get("calories_burned") or 0
        return total

    def total_meditation_minutes(self, user_id):
        return sum((d.get("yoga") or {}).get("meditation_minutes") or 0
                   for d in self._activity(user_id, kind="yoga"))

    def activity_dates(self, user_id, kind=None, limit=0):
        dates = sorted((d["date"] for d in self._activity(user_id, kind=kind)), reverse=True)
        return dates[:limit] if limit else dates

    def stats_by_kind(self, user_id, start):
        groups = {}
        for d in self._find(user_id=user_id):
            if d["date"] >= start:
                groups.setdefault(d["kind"], []).append(d)
        rows = []
        for kind in sorted(groups):
            docs = groups[kind]
            durations = [d["duration_min"] for d in docs if d.get("duration_min") is not None]
            rpes = [d["rpe"] for d in docs if d.get("rpe") is not None]
            rows.append({
                "kind": kind,
                "count": len(docs),
                "total_duration": sum(durations),
                "avg_duration": sum(durations) / len(durations) if durations else None,
                "avg_rpe": sum(rpes) / len(rpes) if rpes else None,
            })
        return rows

    def run_totals(self, user_id, start):
        runs = [d for d in self._find(user_id=user_id) if d["kind"] == "run" and d["date"] >= start]
        if not runs:
            return {}
        paces = [d["run"]["pace_min_per_km"] for d in runs if (d.get("run") or {}).get("pace_min_per_km")]
        return {
            "total_distance": sum((d.get("run") or {}).get("distance_km") or 0 for d in runs),
            "avg_pace": sum(paces) / len(paces) if paces else None,
            "total_elevation": sum((d.get("run") or {}).get("elevation_m") or 0 for d in runs),
        }

    def daily_durations(self, user_id, start, offset_minutes=None):
        out = {}
        for d in self._activity(user_id, start=start):
            key = local_day(d["date"], offset_minutes).isoformat()
            out[key] = out.get(key, 0) + (d.get("duration_min") or 0)
        return out

    def update(self, user_id, workout_id, fields):
        doc = self.get(user_id, workout_id)
        if doc is None:
            return None
        doc.update(fields)
        return self._replace(doc)

    def delete(self, user_id, workout_id):
        return self._remove(_id=workout_id, user_id=user_id)


class FakePersonalRecords(_Store):
    def best(self, user_id, record_type, lower_is_better=False):
        rows = self._find(user_id=user_id, type=record_type)
        if not rows:
            return None
        pick = min if lower_is_better else max
        return copy.deepcopy(pick(rows, key=lambda r: r["value"]))

    def insert(self, doc):
        return self._insert({**doc, "user_id": oid(doc["user_id"])})

    def list(self, user_id, record_type=None):
        rows = self._find(user_id=user_id, type=record_type) if record_type else self._find(user_id=user_id)
        return copy.deepcopy(sorted(rows, key=lambda r: r["achieved_at"], reverse=True))

    def count(self, user_id):
        return len(self._find(user_id=user_id))


class FakeGoals(_Store):
    def insert(self, doc):
        return self._insert({**doc, "user_id": oid(doc["user_id"])})

    def get(self, user_id, goal_id):
        found = self._find(_id=goal_id, user_id=user_id)
        return copy.deepcopy(found[0]) if found else None

    def list(self, user_id, status=None):
        rows = self._find(user_id=user_id, status=status) if status else self._find(user_id=user_id)
        return copy.deepcopy(sorted(rows, key=lambda g: g["created_at"], reverse=True))

    def save(self, goal):
        return self._replace(goal)

    def update_fields(self, user_id, goal_id, fields):
        goal = self.get(user_id, goal_id)
        if goal is None:
            return None
        goal.update(fields)
        return self._replace(goal)

    def delete(self, user_id, goal_id):
        return self._remove(_id=goal_id, user_id=user_id)

    def count(self, user_id, status=None):
        return len(self.list(user_id, status))


class FakeBadges(_Store):
    def granted_ids(self, user_id):
        return {b["badge_id"] for b in self._find(user_id=user_id)}

    def insert(self, user_id, badge_id, earned_at, workout_id=None):
        if self._find(user_id=user_id, badge_id=badge_id):
            raise DuplicateKeyError("E11000 duplicate key error collection: user_badges")
        doc = {"user_id": oid(user_id), "badge_id": badge_id, "earned_at": earned_at}
        if workout_id is not None:
            doc["workout_id"] = workout_id
        return self._insert(doc)

    def list(self, user_id):
        return copy.deepcopy(sorted(self._find(user_id=user_id), key=lambda b: b["earned_at"], reverse=True))


class FakeChallenges(_Store):
    def _with_participant(self, user_id):
        return [c for c in self.docs if any(_same(p["user_id"], user_id) for p in c.get("participants") or [])]

    def insert(self, doc):
        code = doc.get("invite_code")
        if code and any(c.get("invite_code") == code for c in self.docs):
            raise DuplicateKeyError("E11000 duplicate key error collection: challenges")
        return self._insert(doc)

    def get(self, challenge_id):
        found = self._find(_id=challenge_id)
        return copy.deepcopy(found[0]) if found else None

    def list_for_participant(self, user_id, status=None, limit=20):
        rows = [c for c in self._with_participant(user_id) if not status or c["status"] == status]
        rows.sort(key=lambda c: c["start_date"], reverse=True)
        return copy.deepcopy(rows[:limit])

    def discover(self, user_id, category=None, limit=20):
        mine = {id(c) for c in self._with_participant(user_id)}
        rows = [
            c for c in self.docs
            if c.get("visibility") == "public"
            and c["status"] in ("upcoming", "active")
            and id(c) not in mine
            and (not category or c.get("category") == category)
        ]
        rows.sort(key=lambda c: c["start_date"])
        return copy.deepcopy(rows[:limit])

    def active_for_user(self, user_id):
        return copy.deepcopy([c for c in self._with_participant(user_id) if c["status"] == "active"])

    def completed_for_user(self, user_id):
        return copy.deepcopy([c for c in self._with_participant(user_id) if c["status"] == "completed"])

    def save_participants(self, challenge_id, participants):
        for c in self._find(_id=challenge_id):
            c["participants"] = copy.deepcopy(participants)

    def add_participant(self, challenge_id, participant):
        found = self._find(_id=challenge_id)
        if not found or any(_same(p["user_id"], participant["user_id"]) for p in found[0]["participants"]):
            return None
        found[0]["participants"].append(copy.deepcopy(participant))
        return copy.deepcopy(found[0])

    def delete(self, challenge_id):
        return self._remove(_id=challenge_id)

    def count_created_by(self, user_id):
        return len(self._find(creator_id=user_id))

    def update_statuses(self, now):
        for c in self.docs:
            if c["status"] == "upcoming" and c["start_date"] <= now:
                c["status"] = "active"
        finishing = [c["_id"] for c in self.docs if c["status"] == "active" and c["end_date"] < now]
        for c in self.docs:
            if c["_id"] in finishing:
                c["status"] = "completed"
        return finishing


class FakeMeals(_Store):
    def insert(self, doc):
        return self._insert({**doc, "user_id": oid(doc["user_id"])})

    def get(self, user_id, meal_id):
        found = self._find(_id=meal_id, user_id=user_id)
        return copy.deepcopy(found[0]) if found else None

    def replace(self, meal):
        return self._replace(meal)

    def delete(self, user_id, meal_id):
        return self._remove(_id=meal_id, user_id=user_id)

    def list_between(self, user_id, start, end):
        rows = [m for m in self._find(user_id=user_id) if start <= m["date"] < end]
        return copy.deepcopy(sorted(rows, key=lambda m: m["created_at"]))

    def count(self, user_id):
        return len(self._find(user_id=user_id))

    def daily_totals(self, user_id, start=None, end=None, offset_minutes=None):
        days = {}
        for m in self._find(user_id=user_id):
            if not _in_window(m["date"], start, end):
                continue
            row = days.setdefault(local_day(m["date"], offset_minutes),
                                  {"calories": 0, "protein": 0, "carbs": 0, "fat": 0, "meals": 0})
            for key in ("calories", "protein", "carbs", "fat"):
                row[key] += m.get(f"total_{key}") or 0
            row["meals"] += 1
        return [{"day": day, **row} for day, row in sorted(days.items())]


class FakeNutritionGoals(_Store):
    def get(self, user_id):
        found = self._find(user_id=user_id)
        return copy.deepcopy(found[0]) if found else None

    def upsert(self, user_id, fields):
        found = self._find(user_id=user_id)
        if found:
            found[0].update(copy.deepcopy(fields))
            return copy.deepcopy(found[0])
        return copy.deepcopy(self._insert({**fields, "user_id": oid(user_id)}))


def make_repos() -> Repositories:
    return Repositories(
        workouts=FakeWorkouts(),
        personal_records=FakePersonalRecords(),
        goals=FakeGoals(),
        badges=FakeBadges(),
        challenges=FakeChallenges(),
        meals=FakeMeals(),
        nutrition_goals=FakeNutritionGoals(),
    )


@pytest.fixture
def repos():
    return make_repos()


@pytest.fixture
def user_id():
    return USER_ID


@pytest.fixture
def add_workout(repos, user_id):
    """Store a workout directly, bypassing the derived-state pipeline."""
    def _add(kind="run", days_ago=0, minutes_ago=1, owner=None, **fields):
        when = fields.pop("date", None) or datetime.utcnow() - timedelta(days=days_ago, minutes=minutes_ago)
        return repos.workouts.insert({
            "user_id": owner or user_id,
            "kind": kind,
            "title": f"{kind} session",
            "date": when,
            "created_at": when,
            **fields,
        })
    return _add
