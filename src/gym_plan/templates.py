"""
Lookup tables driving plan generation.

Every table is keyed by enums; lookups that can miss go through a resolver
with an explicit fallback instead of indexing the tables directly.
"""

from __future__ import annotations

import logging
from typing import NamedTuple

from .schemas import Level, MealSlot, MuscleGroup, Objective

logger = logging.getLogger(__name__)

MIN_TRAINING_DAYS = 3
MAX_TRAINING_DAYS = 5
FALLBACK_TRAINING_DAYS = 4
MIN_MEALS_PER_DAY = 3
MAX_MEALS_PER_DAY = 6
FALLBACK_MEALS_PER_DAY = 5

DaySplit = tuple[tuple[MuscleGroup, ...], ...]

_C, _B, _S = MuscleGroup.CHEST, MuscleGroup.BACK, MuscleGroup.SHOULDERS
_BI, _TRI, _L = MuscleGroup.BICEPS, MuscleGroup.TRICEPS, MuscleGroup.LEGS
_CARDIO, _FULL = MuscleGroup.CARDIO, MuscleGroup.FULL_BODY

DAY_SPLITS: dict[Objective, dict[int, DaySplit]] = {
    Objective.HYPERTROPHY: {
        3: ((_C, _TRI), (_B, _BI), (_L, _S)),
        4: ((_C,), (_B,), (_L,), (_S, _BI, _TRI)),
        5: ((_C,), (_B,), (_L,), (_S,), (_BI, _TRI)),
    },
    Objective.FAT_LOSS: {
        3: ((_FULL, _CARDIO), (_FULL, _CARDIO), (_FULL, _CARDIO)),
        4: ((_C, _B, _CARDIO), (_L, _CARDIO), (_S, _CARDIO), (_FULL, _CARDIO)),
        5: ((_C, _CARDIO), (_B, _CARDIO), (_L, _CARDIO), (_S, _CARDIO), (_FULL, _CARDIO)),
    },
    Objective.CONDITIONING: {
        3: ((_FULL, _CARDIO), (_FULL, _CARDIO), (_CARDIO,)),
        4: ((_C, _B), (_L,), (_CARDIO,), (_FULL,)),
        5: ((_C, _B), (_L,), (_CARDIO,), (_S,), (_CARDIO,)),
    },
    Objective.PERFORMANCE: {
        3: ((_L, _CARDIO), (_C, _B), (_FULL, _CARDIO)),
        4: ((_L,), (_C, _B), (_CARDIO,), (_FULL,)),
        5: ((_L,), (_C,), (_B,), (_CARDIO,), (_FULL,)),
    },
}


class Prescription(NamedTuple):
    sets: int
    reps: str
    rest_seconds: int


TRAINING_CONFIG: dict[Objective, dict[Level, Prescription]] = {
    Objective.HYPERTROPHY: {
        Level.BEGINNER: Prescription(3, "10-12", 90),
        Level.INTERMEDIATE: Prescription(4, "8-12", 90),
        Level.ADVANCED: Prescription(4, "6-12", 120),
    },
    Objective.FAT_LOSS: {
        Level.BEGINNER: Prescription(3, "12-15", 45),
        Level.INTERMEDIATE: Prescription(3, "12-15", 30),
        Level.ADVANCED: Prescription(4, "15-20", 30),
    },
    Objective.CONDITIONING: {
        Level.BEGINNER: Prescription(2, "12-15", 60),
        Level.INTERMEDIATE: Prescription(3, "12-15", 45),
        Level.ADVANCED: Prescription(3, "15-20", 45),
    },
    Objective.PERFORMANCE: {
        Level.BEGINNER: Prescription(3, "8-10", 120),
        Level.INTERMEDIATE: Prescription(4, "6-8", 150),
        Level.ADVANCED: Prescription(5, "3-6", 180),
    },
}

EXERCISES_PER_GROUP: dict[Level, int] = {
    Level.BEGINNER: 2,
    Level.INTERMEDIATE: 3,
    Level.ADVANCED: 4,
}

MEAL_SLOTS: dict[int, tuple[MealSlot, ...]] = {
    3: (MealSlot.BREAKFAST, MealSlot.LUNCH, MealSlot.DINNER),
    4: (MealSlot.BREAKFAST, MealSlot.LUNCH, MealSlot.AFTERNOON_SNACK, MealSlot.DINNER),
    5: (
        MealSlot.BREAKFAST,
        MealSlot.MORNING_SNACK,
        MealSlot.LUNCH,
        MealSlot.AFTERNOON_SNACK,
        MealSlot.DINNER,
    ),
    6: (
        MealSlot.BREAKFAST,
        MealSlot.MORNING_SNACK,
        MealSlot.LUNCH,
        MealSlot.AFTERNOON_SNACK,
        MealSlot.DINNER,
        MealSlot.LATE_SNACK,
    ),
}

# Slots served from the light calorie band; the rest use the main-meal band.
LIGHT_SLOTS = frozenset(
    {MealSlot.BREAKFAST, MealSlot.MORNING_SNACK, MealSlot.AFTERNOON_SNACK, MealSlot.LATE_SNACK}
)
LIGHT_BAND = (150, 400)
MAIN_BAND = (400, 800)

OBJECTIVE_LABELS = {
    Objective.HYPERTROPHY: "Hypertrophy",
    Objective.FAT_LOSS: "Fat Loss",
    Objective.CONDITIONING: "Conditioning",
    Objective.PERFORMANCE: "Performance",
}


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def resolve_day_split(objective: Objective, days: int) -> DaySplit:
    """Day split for an objective, falling back to its 4-day template."""
    splits = DAY_SPLITS[objective]
    split = splits.get(days)
    if split is None:
        logger.debug(
            "No %s-day split for %s; using the %s-day template",
            days,
            objective.value,
            FALLBACK_TRAINING_DAYS,
        )
        split = splits[FALLBACK_TRAINING_DAYS]
    return split


def resolve_prescription(objective: Objective, level: Level) -> Prescription:
    return TRAINING_CONFIG[objective][level]


def resolve_meal_slots(meals_per_day: int) -> tuple[MealSlot, ...]:
    """Slot template for a meal count, falling back to the 5-meal day."""
    slots = MEAL_SLOTS.get(meals_per_day)
    if slots is None:
        logger.debug(
            "No template for %s meals/day; using %s", meals_per_day, FALLBACK_MEALS_PER_DAY
        )
        slots = MEAL_SLOTS[FALLBACK_MEALS_PER_DAY]
    return slots
