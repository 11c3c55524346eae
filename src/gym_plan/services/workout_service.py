"""
Service for template-based workout plan generation.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Mapping

from ..config import SETTINGS
from ..errors import UserNotFoundError
from ..ports import ExerciseCatalog, ProfileReader
from ..schemas import (
    WEEKDAY_LABELS,
    ExerciseCatalogEntry,
    Level,
    MuscleGroup,
    PlanExercise,
    UserProfile,
    WorkoutPlanDraft,
)
from ..templates import (
    EXERCISES_PER_GROUP,
    MAX_TRAINING_DAYS,
    MIN_TRAINING_DAYS,
    OBJECTIVE_LABELS,
    clamp,
    resolve_day_split,
    resolve_prescription,
)

logger = logging.getLogger(__name__)

# Training weeks start on Monday.
TRAINING_WEEKDAYS = (1, 2, 3, 4, 5)


def eligible_exercises(
    catalog: Iterable[ExerciseCatalogEntry], level: Level
) -> list[ExerciseCatalogEntry]:
    """Entries recommended at or below ``level``, catalog order kept."""
    return [ex for ex in catalog if ex.level.rank <= level.rank]


def group_by_muscle(
    exercises: Iterable[ExerciseCatalogEntry],
) -> dict[MuscleGroup, list[ExerciseCatalogEntry]]:
    groups: dict[MuscleGroup, list[ExerciseCatalogEntry]] = defaultdict(list)
    for ex in exercises:
        groups[ex.muscle_group].append(ex)
    return groups


def build_workout_plan(
    profile: UserProfile,
    catalog: Iterable[ExerciseCatalogEntry],
    days_per_week: int,
) -> WorkoutPlanDraft:
    """Map a profile and an exercise catalog onto a weekly schedule."""
    objective, level = profile.objective, profile.level
    days = clamp(days_per_week, MIN_TRAINING_DAYS, MAX_TRAINING_DAYS)
    if days != days_per_week:
        logger.debug("Clamped days_per_week %s -> %s", days_per_week, days)

    groups = group_by_muscle(eligible_exercises(catalog, level))
    split = resolve_day_split(objective, days)
    prescription = resolve_prescription(objective, level)
    per_group = EXERCISES_PER_GROUP[level]

    exercises: list[PlanExercise] = []
    for weekday, day_groups in zip(TRAINING_WEEKDAYS[:days], split, strict=False):
        order = 1
        for group in day_groups:
            selected = groups.get(group, [])[:per_group]
            if not selected:
                logger.debug("No eligible %s exercises for %s", group.value, level.value)
            for ex in selected:
                exercises.append(
                    PlanExercise(
                        exercise_id=ex.id,
                        weekday=weekday,
                        order=order,
                        sets=prescription.sets,
                        reps=prescription.reps,
                        rest_seconds=prescription.rest_seconds,
                    )
                )
                order += 1

    return WorkoutPlanDraft(
        name=f"{OBJECTIVE_LABELS[objective]} Plan - {days}x per week",
        notes=(
            f"Automatically generated plan for objective {objective.value}. "
            f"Level: {level.value}. "
            "Rest 1-2 days between sessions for the same muscle group."
        ),
        exercises=exercises,
        days_per_week=days,
    )


class WorkoutPlanGenerator:
    """Generates a weekly workout plan for a stored user."""

    def __init__(self, profiles: ProfileReader, exercises: ExerciseCatalog) -> None:
        self.profiles = profiles
        self.exercises = exercises

    async def generate(self, user_id: str, days_per_week: int | None = None) -> WorkoutPlanDraft:
        profile = await self.profiles.fetch_user_profile(user_id)
        if profile is None:
            raise UserNotFoundError(user_id)
        catalog = await self.exercises.list_exercises(max_level=profile.level)
        if days_per_week is None:
            days_per_week = SETTINGS.DEFAULT_DAYS_PER_WEEK
        draft = build_workout_plan(profile, catalog, days_per_week)
        logger.info(
            "Generated workout plan for user %s: %d exercises over %d days",
            user_id,
            len(draft.exercises),
            draft.days_per_week,
        )
        return draft


def render_plan_message(
    plan: WorkoutPlanDraft, names: Mapping[str, str] | None = None
) -> str:
    """Render a workout plan as a formatted message."""
    names = names or {}
    message = f"**{plan.name}**\n{plan.notes}\n\n"

    by_day: dict[int, list[PlanExercise]] = defaultdict(list)
    for ex in plan.exercises:
        by_day[ex.weekday].append(ex)

    for weekday in sorted(by_day):
        message += f"**{WEEKDAY_LABELS[weekday]}**\n"
        for ex in sorted(by_day[weekday], key=lambda e: e.order):
            name = names.get(ex.exercise_id, ex.exercise_id)
            message += f"{ex.order}. {name}: {ex.sets}x{ex.reps} (rest {ex.rest_seconds}s)\n"
        message += "\n"

    return message.strip()
