# athletrack/services/pipeline.py
"""
Derived-state pipeline run after every workout write.

Steps run in a fixed order and never see each other's output. A failing step
is logged and its section is left out of the result; the workout itself is
already stored by the time the pipeline starts.
"""
import logging
from typing import Callable, List, Tuple

from athletrack.errors import DerivedStateComputationError
from athletrack.services.badges import BadgeEngine
from athletrack.services.challenges import ChallengeService
from athletrack.services.goals import GoalTracker
from athletrack.services.personal_records import PersonalRecordEngine

logger = logging.getLogger(__name__)


class DerivedStatePipeline:
    def __init__(self, repos):
        self.records = PersonalRecordEngine(repos)
        self.goals = GoalTracker(repos)
        self.badges = BadgeEngine(repos)
        self.challenges = ChallengeService(repos)

    def steps(self) -> List[Tuple[str, str, Callable]]:
        return [
            ("personal_records", "new_prs", self.records.evaluate),
            ("goals", "goals_updated", self.goals.refresh),
            ("badges", "new_badges", self.badges.check_and_award),
            ("challenges", "challenges_synced", self.challenges.sync_all_for_user),
        ]

    def run(self, user_id: str, workout: dict) -> dict:
        results = {}
        for step, key, func in self.steps():
            try:
                results[key] = func(user_id, workout)
            except Exception as e:
                err = DerivedStateComputationError(step, e)
                logger.error(f"Derived state step skipped for user {user_id}: {err.detail}", exc_info=True)
        return results
