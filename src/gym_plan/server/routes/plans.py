"""
Workout and meal plan API routes.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ...db import SqlRepository
from ...errors import NotFoundError, PlanConflictError
from ...ports import PlanWriter
from ...schemas import MealPlanDraft, PlanKind, WorkoutPlanDraft
from ...services import MealPlanGenerator, WorkoutPlanGenerator
from ...services.stats_service import TodayMeals, TodayWorkout, todays_meals, todays_workout
from ...services.workout_service import render_plan_message
from ..deps import get_repository

router = APIRouter()


class WorkoutPlanRequest(BaseModel):
    days_per_week: int | None = Field(None, ge=1, le=7)


class MealPlanRequest(BaseModel):
    meals_per_day: int | None = Field(None, ge=1, le=10)


class WorkoutPlanResponse(BaseModel):
    plan_id: str
    plan: WorkoutPlanDraft
    message: str


class MealPlanResponse(BaseModel):
    plan_id: str
    plan: MealPlanDraft


@router.post("/users/{user_id}/workout-plans", status_code=201)
async def create_workout_plan(
    user_id: str,
    req: WorkoutPlanRequest,
    repo: SqlRepository = Depends(get_repository),
) -> WorkoutPlanResponse:
    """Generate a workout plan and make it the user's active one."""
    try:
        plan = await WorkoutPlanGenerator(repo, repo).generate(user_id, req.days_per_week)
        plan_id = await repo.persist_workout_plan(user_id, plan)
    except NotFoundError as err:
        raise HTTPException(status_code=404, detail=str(err)) from err
    except PlanConflictError as err:
        logging.warning("Workout plan conflict: %s", err)
        raise HTTPException(status_code=409, detail=str(err)) from err

    catalog = await repo.find_exercises({ex.exercise_id for ex in plan.exercises})
    names = {entry.id: entry.name for entry in catalog}
    return WorkoutPlanResponse(
        plan_id=plan_id, plan=plan, message=render_plan_message(plan, names)
    )


@router.post("/users/{user_id}/meal-plans", status_code=201)
async def create_meal_plan(
    user_id: str,
    req: MealPlanRequest,
    repo: SqlRepository = Depends(get_repository),
) -> MealPlanResponse:
    """Generate a meal plan and make it the user's active one."""
    try:
        plan = await MealPlanGenerator(repo, repo).generate(user_id, req.meals_per_day)
        plan_id = await repo.persist_meal_plan(user_id, plan)
    except NotFoundError as err:
        raise HTTPException(status_code=404, detail=str(err)) from err
    except PlanConflictError as err:
        logging.warning("Meal plan conflict: %s", err)
        raise HTTPException(status_code=409, detail=str(err)) from err
    return MealPlanResponse(plan_id=plan_id, plan=plan)


@router.get("/users/{user_id}/workout-plans/active")
async def get_active_workout_plan(
    user_id: str, repo: SqlRepository = Depends(get_repository)
) -> WorkoutPlanDraft:
    plan = await repo.fetch_active_workout_plan(user_id)
    if plan is None:
        raise HTTPException(status_code=404, detail="No active workout plan")
    return plan


@router.get("/users/{user_id}/meal-plans/active")
async def get_active_meal_plan(
    user_id: str, repo: SqlRepository = Depends(get_repository)
) -> MealPlanDraft:
    plan = await repo.fetch_active_meal_plan(user_id)
    if plan is None:
        raise HTTPException(status_code=404, detail="No active meal plan")
    return plan


@router.get("/users/{user_id}/today/workout")
async def get_today_workout(
    user_id: str, repo: SqlRepository = Depends(get_repository)
) -> TodayWorkout:
    """Exercises of the active plan scheduled for today."""
    plan = await repo.fetch_active_workout_plan(user_id)
    if plan is None:
        raise HTTPException(status_code=404, detail="No active workout plan")
    return todays_workout(plan, datetime.now(UTC).date())


@router.get("/users/{user_id}/today/meals")
async def get_today_meals(
    user_id: str, repo: SqlRepository = Depends(get_repository)
) -> TodayMeals:
    plan = await repo.fetch_active_meal_plan(user_id)
    if plan is None:
        raise HTTPException(status_code=404, detail="No active meal plan")
    catalog = await repo.find_meals({m.meal_id for m in plan.meals})
    return todays_meals(plan, catalog, datetime.now(UTC).date())


@router.delete("/users/{user_id}/plans/{kind}")
async def deactivate_plans(
    user_id: str, kind: PlanKind, writer: PlanWriter = Depends(get_repository)
) -> dict[str, Any]:
    """Deactivate every plan of ``kind`` for the user."""
    count = await writer.deactivate_previous_plans(user_id, kind)
    return {"ok": True, "deactivated": count}
