# athletrack/services/leaderboard.py
from datetime import datetime
from typing import List


def rank_participants(participants: List[dict]) -> List[dict]:
    """
    Assign 1-based ranks in place: highest progress first, ties go to the
    earlier joiner, then to list position.
    """
    order = sorted(
        range(len(participants)),
        key=lambda i: (
            -(participants[i].get("progress") or 0),
            participants[i].get("joined_at") or datetime.min,
            i,
        ),
    )
    for rank, index in enumerate(order, start=1):
        participants[index]["rank"] = rank
    return participants


def progress_percent(progress: float, target: float) -> int:
    if not target:
        return 0
    return min(100, round((progress or 0) / target * 100))


def leaderboard(challenge: dict) -> List[dict]:
    """Participants sorted by rank, recomputed from current progress."""
    ranked = rank_participants([dict(p) for p in challenge.get("participants") or []])
    ranked.sort(key=lambda p: p["rank"])
    for p in ranked:
        p["progress_percent"] = progress_percent(p.get("progress"), challenge.get("target"))
    return ranked
