"""Energy expenditure, macro and body composition calculations."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable

from .schemas import (
    ActivityLevel,
    BMIClass,
    Level,
    MealCatalogEntry,
    Macros,
    NutritionPlan,
    Objective,
    Sex,
)

logger = logging.getLogger(__name__)

KCAL_PER_GRAM = {"protein": 4, "carb": 4, "fat": 9}

ACTIVITY_FACTORS: dict[ActivityLevel, float] = {
    ActivityLevel.SEDENTARY: 1.2,
    ActivityLevel.LIGHT: 1.375,
    ActivityLevel.MODERATE: 1.55,
    ActivityLevel.ACTIVE: 1.725,
    ActivityLevel.VERY_ACTIVE: 1.9,
}

LEVEL_ACTIVITY: dict[Level, ActivityLevel] = {
    Level.BEGINNER: ActivityLevel.LIGHT,
    Level.INTERMEDIATE: ActivityLevel.MODERATE,
    Level.ADVANCED: ActivityLevel.ACTIVE,
}

CALORIE_ADJUSTMENT: dict[Objective, int] = {
    Objective.HYPERTROPHY: 300,
    Objective.FAT_LOSS: -400,
    Objective.CONDITIONING: 0,
    Objective.PERFORMANCE: 200,
}

# protein / carb / fat, percent of calories
MACRO_DISTRIBUTION: dict[Objective, tuple[int, int, int]] = {
    Objective.HYPERTROPHY: (30, 45, 25),
    Objective.FAT_LOSS: (35, 35, 30),
    Objective.CONDITIONING: (25, 50, 25),
    Objective.PERFORMANCE: (25, 55, 20),
}

PROTEIN_PER_KG: dict[Objective, float] = {
    Objective.HYPERTROPHY: 2.0,
    Objective.FAT_LOSS: 2.2,
    Objective.CONDITIONING: 1.6,
    Objective.PERFORMANCE: 1.8,
}

# Upper bound (exclusive) of each class; anything above the last is obese_3.
BMI_THRESHOLDS: tuple[tuple[float, BMIClass], ...] = (
    (18.5, BMIClass.UNDERWEIGHT),
    (25.0, BMIClass.NORMAL),
    (30.0, BMIClass.OVERWEIGHT),
    (35.0, BMIClass.OBESE_1),
    (40.0, BMIClass.OBESE_2),
)

WATER_ML_PER_KG = 35


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up (2.5 -> 3, -2.5 -> -2)."""
    return math.floor(value + 0.5)


def basal_metabolic_rate(
    weight_kg: float, height_cm: float, age: int, sex: Sex = Sex.MALE
) -> float:
    """Mifflin-St Jeor resting energy expenditure in kcal/day."""
    base = 10 * weight_kg + 6.25 * height_cm - 5 * age
    return base + 5 if sex == Sex.MALE else base - 161


def activity_for_level(level: Level) -> ActivityLevel:
    return LEVEL_ACTIVITY[level]


def total_daily_expenditure(bmr: float, activity: ActivityLevel = ActivityLevel.MODERATE) -> int:
    return round_half_up(bmr * ACTIVITY_FACTORS[activity])


def target_calories(tdee: float, objective: Objective) -> int:
    return round_half_up(tdee + CALORIE_ADJUSTMENT[objective])


def macro_split(calories: int, objective: Objective) -> Macros:
    """Split calories into protein/carb/fat grams for an objective."""
    protein_pct, carb_pct, fat_pct = MACRO_DISTRIBUTION[objective]
    return Macros(
        protein_g=round_half_up(calories * protein_pct / 100 / KCAL_PER_GRAM["protein"]),
        carb_g=round_half_up(calories * carb_pct / 100 / KCAL_PER_GRAM["carb"]),
        fat_g=round_half_up(calories * fat_pct / 100 / KCAL_PER_GRAM["fat"]),
        calories=calories,
    )


def calories_from_macros(protein_g: float, carb_g: float, fat_g: float) -> int:
    return round_half_up(
        protein_g * KCAL_PER_GRAM["protein"]
        + carb_g * KCAL_PER_GRAM["carb"]
        + fat_g * KCAL_PER_GRAM["fat"]
    )


def bmi(weight_kg: float, height_cm: float) -> float:
    """Body mass index with one decimal."""
    height_m = height_cm / 100
    return round_half_up(weight_kg / (height_m * height_m) * 10) / 10


def bmi_class(value: float) -> BMIClass:
    for upper, cls in BMI_THRESHOLDS:
        if value < upper:
            return cls
    return BMIClass.OBESE_3


def daily_protein_target(weight_kg: float, objective: Objective) -> int:
    return round_half_up(weight_kg * PROTEIN_PER_KG[objective])


def daily_water_target(weight_kg: float) -> float:
    """Liters of water per day, two decimals."""
    return round_half_up(weight_kg * WATER_ML_PER_KG / 10) / 100


def nutrition_plan(
    weight_kg: float,
    height_cm: float,
    age: int,
    objective: Objective,
    level: Level,
    sex: Sex | None = None,
) -> NutritionPlan:
    """
    Compute BMR, TDEE, calorie target and macros for a profile.

    TDEE is derived from the unrounded BMR; only the reported BMR is rounded.
    """
    bmr = basal_metabolic_rate(weight_kg, height_cm, age, sex or Sex.MALE)
    tdee = total_daily_expenditure(bmr, activity_for_level(level))
    calories = target_calories(tdee, objective)
    logger.debug(
        "Nutrition plan: bmr=%.1f tdee=%s target=%s objective=%s level=%s",
        bmr,
        tdee,
        calories,
        objective.value,
        level.value,
    )
    return NutritionPlan(
        bmr=round_half_up(bmr),
        tdee=tdee,
        target_calories=calories,
        macros=macro_split(calories, objective),
    )


def sum_macros(meals: Iterable[MealCatalogEntry]) -> Macros:
    """Total macros and calories of several meals."""
    protein = carb = fat = 0.0
    calories = 0
    for meal in meals:
        protein += meal.protein_g
        carb += meal.carb_g
        fat += meal.fat_g
        calories += meal.calories or 0
    return Macros(
        protein_g=round_half_up(protein),
        carb_g=round_half_up(carb),
        fat_g=round_half_up(fat),
        calories=calories,
    )


def macro_percentages(actual: Macros, target: Macros) -> dict[str, int]:
    """Percent of each target reached; a zero target reports 0."""

    def pct(value: int, goal: int) -> int:
        return round_half_up(value / goal * 100) if goal else 0

    return {
        "protein_g": pct(actual.protein_g, target.protein_g),
        "carb_g": pct(actual.carb_g, target.carb_g),
        "fat_g": pct(actual.fat_g, target.fat_g),
        "calories": pct(actual.calories, target.calories),
    }
