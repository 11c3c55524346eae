"""
Nutrition calculator routes.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ...db import SqlRepository
from ...nutrition import (
    bmi,
    bmi_class,
    daily_protein_target,
    daily_water_target,
    macro_percentages,
    nutrition_plan,
    sum_macros,
)
from ...schemas import BMIClass, Macros, NutritionPlan
from ..deps import get_repository

router = APIRouter()


class NutritionSummary(BaseModel):
    bmi: float
    bmi_class: BMIClass
    plan: NutritionPlan
    water_liters: float
    protein_floor_g: int


class MacrosRequest(BaseModel):
    meal_ids: list[str] = Field(..., min_length=1)
    user_id: str | None = None


class MacroTotals(BaseModel):
    total: Macros
    percent_of_target: dict[str, int] | None = None


@router.get("/users/{user_id}/nutrition")
async def get_nutrition(
    user_id: str, repo: SqlRepository = Depends(get_repository)
) -> NutritionSummary:
    """Energy and macro targets for the stored profile."""
    profile = await repo.fetch_user_profile(user_id)
    if profile is None:
        raise HTTPException(status_code=404, detail=f"user not found: {user_id}")
    value = bmi(profile.weight_kg, profile.height_cm)
    return NutritionSummary(
        bmi=value,
        bmi_class=bmi_class(value),
        plan=nutrition_plan(
            profile.weight_kg,
            profile.height_cm,
            profile.age,
            profile.objective,
            profile.level,
            profile.sex,
        ),
        water_liters=daily_water_target(profile.weight_kg),
        protein_floor_g=daily_protein_target(profile.weight_kg, profile.objective),
    )


@router.post("/meals/macros")
async def total_macros(
    req: MacrosRequest, repo: SqlRepository = Depends(get_repository)
) -> MacroTotals:
    """
    Sum the macros of the given meals; repeated ids count once per occurrence.

    With ``user_id`` the totals are also reported as percent of that user's daily
    macro targets.
    """
    found = {meal.id: meal for meal in await repo.find_meals(set(req.meal_ids))}
    missing = [meal_id for meal_id in req.meal_ids if meal_id not in found]
    if missing:
        raise HTTPException(status_code=404, detail=f"meal not found: {missing[0]}")
    total = sum_macros(found[meal_id] for meal_id in req.meal_ids)
    if req.user_id is None:
        return MacroTotals(total=total)

    profile = await repo.fetch_user_profile(req.user_id)
    if profile is None:
        raise HTTPException(status_code=404, detail=f"user not found: {req.user_id}")
    target = nutrition_plan(
        profile.weight_kg,
        profile.height_cm,
        profile.age,
        profile.objective,
        profile.level,
        profile.sex,
    ).macros
    return MacroTotals(total=total, percent_of_target=macro_percentages(total, target))
