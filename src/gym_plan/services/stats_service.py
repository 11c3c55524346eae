"""
Training statistics and "today" views over stored plans and sessions.
"""

from __future__ import annotations

import enum
from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from datetime import date, datetime, timedelta
from statistics import fmean

from pydantic import BaseModel

from ..nutrition import round_half_up
from ..schemas import (
    MEAL_SLOT_LABELS,
    WEEKDAY_LABELS,
    MealCatalogEntry,
    MealPlanDraft,
    MuscleGroup,
    PlanExercise,
    PlanMeal,
    WorkoutPlanDraft,
    WorkoutSessionRecord,
)


class StatsPeriod(str, enum.Enum):
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


_PERIOD_DAYS = {StatsPeriod.WEEK: 7, StatsPeriod.MONTH: 30, StatsPeriod.YEAR: 365}


class GroupCount(BaseModel):
    muscle_group: MuscleGroup
    count: int


class ScorePoint(BaseModel):
    performed_at: datetime
    score: float


class SessionStats(BaseModel):
    total_sessions: int
    mean_score: int
    total_volume: int
    top_groups: list[GroupCount]
    score_trend: list[ScorePoint]


class UserStats(BaseModel):
    total_sessions: int
    total_exercises: int
    mean_score: int
    last_session_at: datetime | None
    streak_days: int


class TodayWorkout(BaseModel):
    weekday: int
    message: str
    exercises: list[PlanExercise]


class TodayMeal(BaseModel):
    slot_label: str
    meal: PlanMeal
    calories: int


class TodayMeals(BaseModel):
    weekday: int
    message: str
    meals: list[TodayMeal]
    total_calories: int


def weekday_index(day: date) -> int:
    """Weekday with Sunday as 0."""
    return day.isoweekday() % 7


def period_start(period: StatsPeriod, now: datetime) -> datetime:
    return now - timedelta(days=_PERIOD_DAYS[period])


def _mean_score(sessions: Iterable[WorkoutSessionRecord]) -> int:
    scores = [s.performance_score for s in sessions if s.performance_score is not None]
    return round_half_up(fmean(scores)) if scores else 0


def session_stats(
    sessions: Sequence[WorkoutSessionRecord],
    groups_by_exercise: Mapping[str, MuscleGroup],
) -> SessionStats:
    """Aggregate sessions of a period; the trend is oldest first."""
    volume = 0.0
    groups: Counter[MuscleGroup] = Counter()
    for session in sessions:
        for ex in session.exercises:
            mean_reps = fmean(ex.reps) if ex.reps else 0.0
            mean_load = fmean(ex.loads) if ex.loads else 0.0
            volume += ex.sets_performed * mean_reps * mean_load
            group = groups_by_exercise.get(ex.exercise_id)
            if group is not None:
                groups[group] += 1

    chronological = sorted(sessions, key=lambda s: s.performed_at)
    return SessionStats(
        total_sessions=len(sessions),
        mean_score=_mean_score(sessions),
        total_volume=round_half_up(volume),
        top_groups=[GroupCount(muscle_group=g, count=c) for g, c in groups.most_common(5)],
        score_trend=[
            ScorePoint(performed_at=s.performed_at, score=s.performance_score)
            for s in chronological
            if s.performance_score is not None
        ],
    )


def user_stats(sessions: Sequence[WorkoutSessionRecord], today: date) -> UserStats:
    """Lifetime totals; ``sessions`` must be ordered most recent first."""
    streak = 0
    for session in sessions:
        gap = (today - session.performed_at.date()).days
        if gap in (streak, streak + 1):
            streak += 1
        else:
            break

    return UserStats(
        total_sessions=len(sessions),
        total_exercises=sum(len(s.exercises) for s in sessions),
        mean_score=_mean_score(sessions),
        last_session_at=sessions[0].performed_at if sessions else None,
        streak_days=streak,
    )


def todays_workout(plan: WorkoutPlanDraft, today: date) -> TodayWorkout:
    weekday = weekday_index(today)
    exercises = sorted(
        (ex for ex in plan.exercises if ex.weekday == weekday), key=lambda ex: ex.order
    )
    label = WEEKDAY_LABELS[weekday]
    if not exercises:
        message = f"Rest day! ({label})"
    else:
        message = f"{label} workout - {len(exercises)} exercise(s)"
    return TodayWorkout(weekday=weekday, message=message, exercises=exercises)


def todays_meals(
    plan: MealPlanDraft, catalog: Iterable[MealCatalogEntry], today: date
) -> TodayMeals:
    weekday = weekday_index(today)
    calories = {m.id: m.calories or 0 for m in catalog}
    meals = [
        TodayMeal(
            slot_label=MEAL_SLOT_LABELS[pm.slot],
            meal=pm,
            calories=calories.get(pm.meal_id, 0),
        )
        for pm in sorted(plan.meals, key=lambda m: m.order)
        if pm.weekday == weekday
    ]
    total = sum(m.calories for m in meals)
    return TodayMeals(
        weekday=weekday,
        message=f"{len(meals)} meal(s) for {WEEKDAY_LABELS[weekday]} - Total: {total} kcal",
        meals=meals,
        total_calories=total,
    )
