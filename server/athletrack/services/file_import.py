# athletrack/services/file_import.py
"""
Workout file import.

GPX tracks and CSV exports are turned into a run workout payload. The payload
is then logged through the normal workout path, so imported sessions feed
records, goals, badges and challenges like any other run.
"""
import csv
import io
import logging
from datetime import datetime
from typing import Optional

import gpxpy

from athletrack.errors import ValidationError
from athletrack.utils.helpers import to_utc_naive

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ("gpx", "csv")


def _round(value: Optional[float], digits: int = 2) -> Optional[float]:
    return round(value, digits) if value is not None else None


def _number(value, cast=float):
    try:
        return cast(float(value))
    except (TypeError, ValueError):
        return None


def _heart_rate(point) -> Optional[int]:
    # Garmin TrackPointExtension: <gpxtpx:hr> somewhere under <extensions>
    for extension in point.extensions or []:
        for element in extension.iter():
            if element.tag == "hr" or element.tag.endswith("}hr"):
                return _number(element.text, int)
    return None


def parse_gpx(content: bytes) -> dict:
    try:
        gpx = gpxpy.parse(content.decode("utf-8"))
    except Exception as e:
        raise ValidationError(f"Failed to parse GPX file: {e}", fields=["file"])

    track = gpx.tracks[0] if gpx.tracks else None
    title = (track.name if track else None) or "GPX Import"
    points = [p for segment in (track.segments if track else []) for p in segment.points]
    if not points:
        return {"title": title, "date": None, "distance_km": 0, "duration_min": 0}

    start, end = points[0].time, points[-1].time
    duration = round((end - start).total_seconds() / 60) if start and end else 0
    distance = track.length_2d() / 1000

    gain = 0.0
    previous = None
    for point in points:
        if point.elevation is None:
            continue
        if previous is not None and point.elevation > previous:
            gain += point.elevation - previous
        previous = point.elevation

    heart_rates = [hr for hr in (_heart_rate(p) for p in points) if hr]
    pace = duration / distance if distance > 0 and duration > 0 else None

    return {
        "title": title,
        "date": to_utc_naive(start),
        "distance_km": round(distance, 2),
        "duration_min": duration,
        "pace_min_per_km": _round(pace),
        "elevation_m": round(gain),
        "avg_heart_rate": round(sum(heart_rates) / len(heart_rates)) if heart_rates else None,
    }


def _parse_date(raw: Optional[str]) -> Optional[datetime]:
    if not raw:
        return None
    try:
        return to_utc_naive(datetime.fromisoformat(raw.strip().replace("Z", "+00:00")))
    except ValueError:
        raise ValidationError(f"Unrecognized date in CSV file: {raw}", fields=["file"])


def parse_csv(content: bytes) -> dict:
    """First data row of a headered CSV export; header names are case-insensitive."""
    try:
        reader = csv.DictReader(io.StringIO(content.decode("utf-8-sig")))
        rows = [
            {k.strip().lower(): (v or "").strip() for k, v in row.items() if k is not None}
            for row in reader
        ]
    except (UnicodeDecodeError, csv.Error) as e:
        raise ValidationError(f"Failed to parse CSV file: {e}", fields=["file"])
    if not rows:
        raise ValidationError("CSV file is empty or has no data rows", fields=["file"])

    first = rows[0]
    return {
        "title": first.get("title") or first.get("name") or "CSV Import",
        "date": _parse_date(first.get("date")),
        "distance_km": _number(first.get("distance")) or 0,
        "duration_min": _number(first.get("duration"), int) or 0,
        "elevation_m": _number(first.get("elevation")) or 0,
        "avg_heart_rate": _number(first.get("heart_rate") or first.get("hr"), int),
        "rows": len(rows),
    }


def parse_workout_file(filename: str, content: bytes) -> dict:
    ext = (filename or "").rsplit(".", 1)[-1].lower()
    if ext not in SUPPORTED_FORMATS:
        raise ValidationError("Invalid file type. Only GPX and CSV files are supported", fields=["file"])
    parsed = parse_gpx(content) if ext == "gpx" else parse_csv(content)
    logger.info(f"Parsed {ext.upper()} import {filename}: {parsed.get('distance_km')} km")
    return {**parsed, "format": ext}


def to_workout(parsed: dict, filename: str) -> dict:
    """Run workout payload for WorkoutService.create."""
    run = {
        "distance_km": parsed.get("distance_km"),
        "pace_min_per_km": parsed.get("pace_min_per_km"),
        "elevation_m": parsed.get("elevation_m"),
        "avg_heart_rate": parsed.get("avg_heart_rate"),
    }
    return {
        "kind": "run",
        "title": parsed.get("title") or f"Imported {parsed['format'].upper()} workout",
        "date": parsed.get("date"),
        "duration_min": parsed.get("duration_min"),
        "run": {k: v for k, v in run.items() if v is not None},
        "source": {"filename": filename, "format": parsed["format"]},
    }
