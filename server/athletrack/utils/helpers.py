# athletrack/utils/helpers.py
import json
from datetime import date, datetime, timedelta, timezone
from typing import Any

from bson import ObjectId

from athletrack.config import TZ_OFFSET_MINUTES


def safe_json_parse(raw_text: str, default: dict = None) -> dict:
    """Pull the outermost {...} block out of free text, or return default."""
    default = default or {}
    try:
        start = raw_text.find("{")
        end = raw_text.rfind("}")
        if start == -1 or end <= start:
            return default
        parsed = json.loads(raw_text[start:end + 1])
        return parsed if isinstance(parsed, dict) else default
    except Exception:
        return default


def oid(val: Any):
    """Convert to ObjectId, falling back to the raw value for legacy string ids."""
    if isinstance(val, ObjectId):
        return val
    try:
        return ObjectId(val)
    except Exception:
        return val


def convert_objectids_to_strings(data):
    """Convert MongoDB ObjectIds to strings in a document"""
    if isinstance(data, dict):
        result = {}
        for key, value in data.items():
            if isinstance(value, ObjectId):
                result[key] = str(value)
            elif isinstance(value, (dict, list)):
                result[key] = convert_objectids_to_strings(value)
            else:
                result[key] = value
        return result
    elif isinstance(data, list):
        return [convert_objectids_to_strings(item) for item in data]
    elif isinstance(data, ObjectId):
        return str(data)
    return data


def serialize(doc: dict) -> dict:
    """Mongo document -> API dict with `id` instead of `_id`."""
    if doc is None:
        return None
    out = convert_objectids_to_strings(doc)
    if "_id" in out:
        out["id"] = out.pop("_id")
    return out


def now() -> datetime:
    return datetime.utcnow()


def to_utc_naive(ts):
    """Offset-aware timestamps -> naive UTC, the form every stored date uses."""
    if ts is None or ts.tzinfo is None:
        return ts
    return ts.astimezone(timezone.utc).replace(tzinfo=None)


def local_time(ts: datetime, offset_minutes: int = None) -> datetime:
    """Stored UTC timestamp shifted by the configured offset."""
    if offset_minutes is None:
        offset_minutes = TZ_OFFSET_MINUTES
    return ts + timedelta(minutes=offset_minutes)


def local_day(ts: datetime, offset_minutes: int = None) -> date:
    """Calendar day of a stored UTC timestamp."""
    return local_time(ts, offset_minutes).date()


def day_bounds(day: date, offset_minutes: int = None):
    """UTC [start, end) covering one local calendar day."""
    if offset_minutes is None:
        offset_minutes = TZ_OFFSET_MINUTES
    start = datetime.combine(day, datetime.min.time()) - timedelta(minutes=offset_minutes)
    return start, start + timedelta(days=1)
