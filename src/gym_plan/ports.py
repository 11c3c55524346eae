"""
Read/write contracts the engine expects from its collaborators.

The engine never talks to storage directly: services receive objects
implementing these protocols. ``gym_plan.db.repo.SqlRepository`` implements
all of them.
"""

from __future__ import annotations

from collections.abc import Collection
from typing import Protocol

from .schemas import (
    ExerciseCatalogEntry,
    Level,
    MealCatalogEntry,
    MealPlanDraft,
    PlanKind,
    UserProfile,
    WorkoutPlanDraft,
    WorkoutSessionRecord,
)


class ProfileReader(Protocol):
    async def fetch_user_profile(self, user_id: str) -> UserProfile | None: ...


class ExerciseCatalog(Protocol):
    async def list_exercises(self, max_level: Level | None = None) -> list[ExerciseCatalogEntry]:
        """Catalog entries at or below ``max_level``, in catalog order."""
        ...

    async def find_exercises(self, ids: Collection[str]) -> list[ExerciseCatalogEntry]:
        """Entries for the given ids; unknown ids are skipped."""
        ...


class MealCatalog(Protocol):
    async def list_meals(self) -> list[MealCatalogEntry]: ...

    async def find_meals(self, ids: Collection[str]) -> list[MealCatalogEntry]: ...


class SessionHistory(Protocol):
    async def fetch_recent_sessions(self, user_id: str, limit: int) -> list[WorkoutSessionRecord]:
        """Most recent sessions first."""
        ...


class PlanWriter(Protocol):
    async def persist_workout_plan(self, user_id: str, draft: WorkoutPlanDraft) -> str:
        """Store ``draft`` as the only active workout plan; return its id."""
        ...

    async def persist_meal_plan(self, user_id: str, draft: MealPlanDraft) -> str: ...

    async def deactivate_previous_plans(self, user_id: str, kind: PlanKind) -> int: ...
