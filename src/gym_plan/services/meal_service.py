"""
Service for template-based meal plan generation.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from ..config import SETTINGS
from ..errors import UserNotFoundError
from ..nutrition import daily_protein_target, nutrition_plan
from ..ports import MealCatalog, ProfileReader
from ..schemas import MealCatalogEntry, MealPlanDraft, MealSlot, MealTag, PlanMeal, UserProfile
from ..templates import (
    LIGHT_BAND,
    LIGHT_SLOTS,
    MAIN_BAND,
    MAX_MEALS_PER_DAY,
    MIN_MEALS_PER_DAY,
    clamp,
    resolve_meal_slots,
)

logger = logging.getLogger(__name__)

# Meals are scheduled Monday to Friday; weekends stay free.
MEAL_WEEKDAYS = (1, 2, 3, 4, 5)


def _violates(restriction: str, tags: set[MealTag]) -> bool:
    text = restriction.lower()
    if "gluten" in text:
        return MealTag.GLUTEN_FREE not in tags
    if "lactose" in text:
        return MealTag.LACTOSE_FREE not in tags
    if "vegan" in text:
        return MealTag.VEGAN not in tags and MealTag.VEGETARIAN not in tags
    return False


def filter_by_restrictions(
    meals: Iterable[MealCatalogEntry], restrictions: Sequence[str]
) -> list[MealCatalogEntry]:
    """Drop meals incompatible with any restriction; unknown restrictions are ignored."""
    if not restrictions:
        return list(meals)
    kept = []
    for meal in meals:
        tags = set(meal.tags)
        if not any(_violates(r, tags) for r in restrictions):
            kept.append(meal)
    return kept


def pick_meal(slot: MealSlot, ordered: Sequence[MealCatalogEntry]) -> MealCatalogEntry | None:
    """First meal in the slot's calorie band, else the nearest extreme of the catalog."""
    if not ordered:
        return None
    if slot in LIGHT_SLOTS:
        low, high = LIGHT_BAND
        fallback = ordered[0]
    else:
        low, high = MAIN_BAND
        fallback = ordered[-1]
    for meal in ordered:
        if low <= (meal.calories or 0) <= high:
            return meal
    return fallback


def build_meal_plan(
    profile: UserProfile,
    catalog: Iterable[MealCatalogEntry],
    meals_per_day: int,
) -> MealPlanDraft:
    """Map a profile and a meal catalog onto a weekday meal schedule."""
    objective = profile.objective
    targets = nutrition_plan(
        profile.weight_kg,
        profile.height_cm,
        profile.age,
        objective,
        profile.level,
        profile.sex,
    )
    protein_floor = daily_protein_target(profile.weight_kg, objective)
    restrictions = profile.dietary_restrictions

    candidates = filter_by_restrictions(catalog, restrictions)
    ordered = sorted(candidates, key=lambda m: m.calories or 0)
    slots = resolve_meal_slots(clamp(meals_per_day, MIN_MEALS_PER_DAY, MAX_MEALS_PER_DAY))

    meals: list[PlanMeal] = []
    for weekday in MEAL_WEEKDAYS:
        for position, slot in enumerate(slots, start=1):
            meal = pick_meal(slot, ordered)
            if meal is None:
                continue
            meals.append(PlanMeal(meal_id=meal.id, weekday=weekday, slot=slot, order=position))

    notes = (
        f"Automatically generated plan. BMR: {targets.bmr}kcal, TDEE: {targets.tdee}kcal. "
        f"Objective: {objective.value}."
    )
    if restrictions:
        notes += f" Restrictions considered: {', '.join(restrictions)}."

    return MealPlanDraft(
        name=f"Meal Plan - {objective.value}",
        calorie_target=targets.target_calories,
        protein_target=max(targets.macros.protein_g, protein_floor),
        carb_target=targets.macros.carb_g,
        fat_target=targets.macros.fat_g,
        notes=notes,
        meals=meals,
    )


class MealPlanGenerator:
    """Generates a weekday meal plan meeting a user's calorie and macro targets."""

    def __init__(self, profiles: ProfileReader, meals: MealCatalog) -> None:
        self.profiles = profiles
        self.meals = meals

    async def generate(self, user_id: str, meals_per_day: int | None = None) -> MealPlanDraft:
        profile = await self.profiles.fetch_user_profile(user_id)
        if profile is None:
            raise UserNotFoundError(user_id)
        catalog = await self.meals.list_meals()
        if meals_per_day is None:
            meals_per_day = SETTINGS.DEFAULT_MEALS_PER_DAY
        draft = build_meal_plan(profile, catalog, meals_per_day)
        logger.info(
            "Generated meal plan for user %s: %d meals, %s kcal target",
            user_id,
            len(draft.meals),
            draft.calorie_target,
        )
        return draft
