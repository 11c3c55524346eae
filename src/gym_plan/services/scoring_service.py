"""
Performance scoring for logged training sessions.

The score is a ranking heuristic: values are only comparable between
sessions scored with the same constants.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from statistics import fmean

from ..config import SETTINGS
from ..nutrition import round_half_up
from ..ports import SessionHistory
from ..schemas import SessionExercise

logger = logging.getLogger(__name__)

NEUTRAL_SCORE = 50
POINTS_PER_EXERCISE = 100
MINUTES_PER_EXERCISE = 10
DURATION_BONUS = 1.05
DURATION_PENALTY = 0.95
HISTORY_BONUS = 1.10


def _mean(values: Sequence[float]) -> float:
    return fmean(values) if values else 0.0


def exercise_points(ex: SessionExercise) -> float:
    """Raw points (0-100) earned by one exercise."""
    mean_reps = _mean(ex.reps)
    mean_load = _mean(ex.loads)
    deviation = _mean([abs(r - mean_reps) for r in ex.reps])

    set_points = min(30, ex.sets_performed * 10)
    consistency_points = max(0.0, 30 - deviation * 3)
    load_points = 20 if mean_load > 0 else 10
    volume_points = min(20.0, ex.sets_performed * mean_reps * mean_load / 100)
    return set_points + consistency_points + load_points + volume_points


def duration_factor(duration_minutes: int | None, exercise_count: int) -> float:
    if not duration_minutes:
        return 1.0
    gap = abs(duration_minutes - exercise_count * MINUTES_PER_EXERCISE)
    if gap < 15:
        return DURATION_BONUS
    if gap > 30:
        return DURATION_PENALTY
    return 1.0


def compute_score(
    exercises: Sequence[SessionExercise],
    duration_minutes: int | None = None,
    history_scores: Sequence[float] = (),
) -> int:
    """Score a session from 0 to 100; an empty session scores 50."""
    total = sum(exercise_points(ex) for ex in exercises)
    max_total = POINTS_PER_EXERCISE * len(exercises)

    total *= duration_factor(duration_minutes, len(exercises))

    # Raw total (not the normalized score) against the mean of prior final scores.
    if history_scores and total > fmean(history_scores):
        total *= HISTORY_BONUS

    if max_total == 0:
        return NEUTRAL_SCORE
    return max(0, min(100, round_half_up(total / max_total * 100)))


class PerformanceScorer:
    """Scores sessions, optionally against the user's recent history."""

    def __init__(self, history: SessionHistory | None = None) -> None:
        self.history = history

    async def prior_scores(self, user_id: str) -> list[float]:
        if self.history is None or not SETTINGS.FF_HISTORY_NORMALIZATION:
            return []
        sessions = await self.history.fetch_recent_sessions(
            user_id, SETTINGS.SCORE_HISTORY_WINDOW
        )
        return [s.performance_score for s in sessions if s.performance_score is not None]

    async def score(
        self,
        exercises: Sequence[SessionExercise],
        duration_minutes: int | None = None,
        user_id: str | None = None,
    ) -> int:
        history = await self.prior_scores(user_id) if user_id else []
        result = compute_score(exercises, duration_minutes, history)
        logger.debug(
            "Scored session: exercises=%d duration=%s history=%d score=%d",
            len(exercises),
            duration_minutes,
            len(history),
            result,
        )
        return result
