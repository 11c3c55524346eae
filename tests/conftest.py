import os
from collections.abc import Collection, Sequence
from datetime import UTC, datetime, timedelta

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("FF_ADMIN_ALERTS", "false")

from gym_plan.errors import PlanConflictError, UserNotFoundError
from gym_plan.schemas import (
    ExerciseCatalogEntry,
    Level,
    MealCatalogEntry,
    MealPlanDraft,
    MealTag,
    MuscleGroup,
    Objective,
    PlanKind,
    SessionExercise,
    UserProfile,
    WorkoutPlanDraft,
    WorkoutSessionRecord,
)

CATALOG_GROUPS = (
    MuscleGroup.CHEST,
    MuscleGroup.BACK,
    MuscleGroup.LEGS,
    MuscleGroup.SHOULDERS,
    MuscleGroup.BICEPS,
    MuscleGroup.TRICEPS,
    MuscleGroup.CARDIO,
    MuscleGroup.FULL_BODY,
)


def make_profile(**overrides) -> UserProfile:
    data = {
        "id": "u1",
        "name": "Alex",
        "weight_kg": 80,
        "height_cm": 180,
        "age": 30,
        "objective": Objective.HYPERTROPHY,
        "level": Level.INTERMEDIATE,
    }
    data.update(overrides)
    return UserProfile(**data)


def make_exercise_catalog() -> list[ExerciseCatalogEntry]:
    """Per group: three beginner, one intermediate and one advanced exercise."""
    catalog = []
    for group in CATALOG_GROUPS:
        for suffix, level in (
            ("b1", Level.BEGINNER),
            ("b2", Level.BEGINNER),
            ("b3", Level.BEGINNER),
            ("i1", Level.INTERMEDIATE),
            ("a1", Level.ADVANCED),
        ):
            catalog.append(
                ExerciseCatalogEntry(
                    id=f"{group.value}-{suffix}",
                    name=f"{group.value.title()} {suffix.upper()}",
                    muscle_group=group,
                    level=level,
                )
            )
    return catalog


def make_meal(meal_id: str, protein: float, carb: float, fat: float, *tags: MealTag):
    return MealCatalogEntry(
        id=meal_id, name=meal_id.title(), protein_g=protein, carb_g=carb, fat_g=fat, tags=tags
    )


def make_meal_catalog() -> list[MealCatalogEntry]:
    return [
        # 245 kcal
        make_meal("light-1", 20, 30, 5, MealTag.VEGAN, MealTag.GLUTEN_FREE, MealTag.LACTOSE_FREE),
        # 250 kcal
        make_meal("light-2", 15, 25, 10, MealTag.VEGETARIAN),
        # 535 kcal
        make_meal("main-1", 40, 60, 15, MealTag.GLUTEN_FREE, MealTag.LACTOSE_FREE),
        # 640 kcal
        make_meal("main-2", 45, 70, 20),
        # 78 kcal
        make_meal("tiny", 5, 10, 2, MealTag.VEGAN, MealTag.GLUTEN_FREE, MealTag.LACTOSE_FREE),
        # 1080 kcal
        make_meal("huge", 60, 120, 40),
    ]


def make_session(
    score: float | None,
    days_ago: int = 0,
    exercise_ids: Sequence[str] = ("chest-b1",),
    user_id: str = "u1",
    now: datetime | None = None,
) -> WorkoutSessionRecord:
    now = now or datetime(2026, 10, 18, 18, 0, tzinfo=UTC)
    performed_at = now - timedelta(days=days_ago)
    return WorkoutSessionRecord(
        id=f"s-{days_ago}-{score}",
        user_id=user_id,
        performed_at=performed_at,
        performance_score=score,
        exercises=[
            SessionExercise(exercise_id=ex_id, sets_performed=3, reps=[10, 10, 10], loads=[50] * 3)
            for ex_id in exercise_ids
        ],
    )


class FakeRepository:
    """In-memory stand-in for SqlRepository."""

    def __init__(self, profiles=(), exercises=(), meals=(), sessions=()):
        self.profiles = {p.id: p for p in profiles}
        self.exercises = list(exercises)
        self.meals = list(meals)
        self.sessions = list(sessions)
        self.workout_plans: dict[str, WorkoutPlanDraft] = {}
        self.meal_plans: dict[str, MealPlanDraft] = {}
        self.calls: list[tuple] = []
        self.conflict = False

    async def fetch_user_profile(self, user_id: str) -> UserProfile | None:
        return self.profiles.get(user_id)

    async def list_exercises(self, max_level: Level | None = None):
        self.calls.append(("list_exercises", max_level))
        if max_level is None:
            return list(self.exercises)
        return [ex for ex in self.exercises if ex.level.rank <= max_level.rank]

    async def find_exercises(self, ids: Collection[str]):
        self.calls.append(("find_exercises", set(ids)))
        return [ex for ex in self.exercises if ex.id in set(ids)]

    async def list_meals(self):
        return list(self.meals)

    async def find_meals(self, ids: Collection[str]):
        return [m for m in self.meals if m.id in set(ids)]

    async def fetch_recent_sessions(self, user_id: str, limit: int):
        self.calls.append(("fetch_recent_sessions", limit))
        own = [s for s in self.sessions if s.user_id == user_id]
        own.sort(key=lambda s: s.performed_at, reverse=True)
        return own[:limit]

    async def fetch_sessions(self, user_id: str, since: datetime | None = None):
        own = [
            s
            for s in self.sessions
            if s.user_id == user_id and (since is None or s.performed_at >= since)
        ]
        return sorted(own, key=lambda s: s.performed_at, reverse=True)

    async def record_session(
        self,
        user_id,
        exercises,
        performance_score,
        performed_at=None,
        duration_minutes=None,
        comments=None,
    ):
        if user_id not in self.profiles:
            raise UserNotFoundError(user_id)
        record = WorkoutSessionRecord(
            id=f"s{len(self.sessions) + 1}",
            user_id=user_id,
            performed_at=performed_at or datetime.now(UTC),
            duration_minutes=duration_minutes,
            comments=comments,
            performance_score=performance_score,
            exercises=list(exercises),
        )
        self.sessions.append(record)
        return record

    async def persist_workout_plan(self, user_id: str, draft: WorkoutPlanDraft) -> str:
        if self.conflict:
            raise PlanConflictError(user_id, PlanKind.WORKOUT.value)
        self.workout_plans[user_id] = draft
        return f"wp-{user_id}"

    async def persist_meal_plan(self, user_id: str, draft: MealPlanDraft) -> str:
        if self.conflict:
            raise PlanConflictError(user_id, PlanKind.MEAL.value)
        self.meal_plans[user_id] = draft
        return f"mp-{user_id}"

    async def deactivate_previous_plans(self, user_id: str, kind: PlanKind) -> int:
        plans = self.workout_plans if kind == PlanKind.WORKOUT else self.meal_plans
        return 1 if plans.pop(user_id, None) is not None else 0

    async def fetch_active_workout_plan(self, user_id: str):
        return self.workout_plans.get(user_id)

    async def fetch_active_meal_plan(self, user_id: str):
        return self.meal_plans.get(user_id)


@pytest.fixture
def profile() -> UserProfile:
    return make_profile()


@pytest.fixture
def exercise_catalog() -> list[ExerciseCatalogEntry]:
    return make_exercise_catalog()


@pytest.fixture
def meal_catalog() -> list[MealCatalogEntry]:
    return make_meal_catalog()


@pytest.fixture
def fake_repo(profile, exercise_catalog, meal_catalog) -> FakeRepository:
    return FakeRepository(
        profiles=[profile], exercises=exercise_catalog, meals=meal_catalog
    )
