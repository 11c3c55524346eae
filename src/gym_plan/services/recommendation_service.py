"""
Coaching recommendations derived from recent training history.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from statistics import fmean

from ..config import SETTINGS
from ..ports import ExerciseCatalog, SessionHistory
from ..schemas import MuscleGroup, WorkoutSessionRecord

logger = logging.getLogger(__name__)

ONBOARDING = "Start by logging your first workout to receive personalized recommendations!"
KEEP_GOING = "Keep training regularly! Consistency is the key to success."
IMPROVING = "Congratulations! Your performance is improving. Keep it up!"
DECLINING = (
    "Your performance has dropped a bit. Consider resting more or reviewing your nutrition."
)
ON_TRACK = "You're on the right track! Keep training consistently."

KEY_GROUPS = (MuscleGroup.CHEST, MuscleGroup.BACK, MuscleGroup.LEGS, MuscleGroup.SHOULDERS)
RECENT_WINDOW = 3
TREND_MARGIN = 0.10


def missing_groups_message(groups: Sequence[MuscleGroup]) -> str:
    names = ", ".join(g.value for g in groups)
    return f"Consider adding {names} exercises to your workouts for more balanced development."


def build_recommendations(
    sessions: Sequence[WorkoutSessionRecord],
    groups_by_exercise: Mapping[str, MuscleGroup],
) -> list[str]:
    """Apply the coaching rules to sessions ordered most recent first."""
    if not sessions:
        return [ONBOARDING]

    messages: list[str] = []
    if len(sessions) < RECENT_WINDOW:
        messages.append(KEEP_GOING)

    scores = [s.performance_score for s in sessions if s.performance_score is not None]
    if len(scores) >= RECENT_WINDOW:
        recent = fmean(scores[:RECENT_WINDOW])
        older = scores[RECENT_WINDOW:]
        older_mean = fmean(older) if older else 0.0
        if recent > older_mean * (1 + TREND_MARGIN):
            messages.append(IMPROVING)
        elif recent < older_mean * (1 - TREND_MARGIN):
            messages.append(DECLINING)

    trained = {
        groups_by_exercise[ex.exercise_id]
        for s in sessions
        for ex in s.exercises
        if ex.exercise_id in groups_by_exercise
    }
    missing = [g for g in KEY_GROUPS if g not in trained]
    if missing:
        messages.append(missing_groups_message(missing))

    if not messages:
        messages.append(ON_TRACK)
    return messages


class RecommendationEngine:
    def __init__(self, history: SessionHistory, exercises: ExerciseCatalog) -> None:
        self.history = history
        self.exercises = exercises

    async def recommend(self, user_id: str) -> list[str]:
        sessions = await self.history.fetch_recent_sessions(
            user_id, SETTINGS.RECOMMENDATION_WINDOW
        )
        groups: dict[str, MuscleGroup] = {}
        if sessions:
            ids = {ex.exercise_id for s in sessions for ex in s.exercises}
            catalog = await self.exercises.find_exercises(ids)
            groups = {entry.id: entry.muscle_group for entry in catalog}
        messages = build_recommendations(sessions, groups)
        logger.info("Built %d recommendation(s) for user %s", len(messages), user_id)
        return messages
