"""
Domain records exchanged between the engine, its collaborators and callers.
"""

from __future__ import annotations

import enum
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Objective(str, enum.Enum):
    """Physical objective of a user."""

    HYPERTROPHY = "hypertrophy"
    FAT_LOSS = "fat_loss"
    CONDITIONING = "conditioning"
    PERFORMANCE = "performance"


class Level(str, enum.Enum):
    """Training experience, ordered beginner < intermediate < advanced."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"

    @property
    def rank(self) -> int:
        return _LEVEL_RANK[self]


_LEVEL_RANK = {Level.BEGINNER: 0, Level.INTERMEDIATE: 1, Level.ADVANCED: 2}


class MuscleGroup(str, enum.Enum):
    CHEST = "chest"
    BACK = "back"
    SHOULDERS = "shoulders"
    BICEPS = "biceps"
    TRICEPS = "triceps"
    LEGS = "legs"
    GLUTES = "glutes"
    ABS = "abs"
    CARDIO = "cardio"
    FULL_BODY = "full_body"


class MealTag(str, enum.Enum):
    VEGAN = "vegan"
    VEGETARIAN = "vegetarian"
    LOW_CARB = "low_carb"
    GLUTEN_FREE = "gluten_free"
    LACTOSE_FREE = "lactose_free"
    HIGH_PROTEIN = "high_protein"
    LOW_CALORIE = "low_calorie"
    QUICK = "quick"
    MEAL_PREP = "meal_prep"


class MealSlot(str, enum.Enum):
    BREAKFAST = "breakfast"
    MORNING_SNACK = "morning_snack"
    LUNCH = "lunch"
    AFTERNOON_SNACK = "afternoon_snack"
    DINNER = "dinner"
    LATE_SNACK = "late_snack"


class ActivityLevel(str, enum.Enum):
    SEDENTARY = "sedentary"
    LIGHT = "light"
    MODERATE = "moderate"
    ACTIVE = "active"
    VERY_ACTIVE = "very_active"


class BMIClass(str, enum.Enum):
    UNDERWEIGHT = "underweight"
    NORMAL = "normal"
    OVERWEIGHT = "overweight"
    OBESE_1 = "obese_1"
    OBESE_2 = "obese_2"
    OBESE_3 = "obese_3"


class Sex(str, enum.Enum):
    MALE = "male"
    FEMALE = "female"


class PlanKind(str, enum.Enum):
    WORKOUT = "workout"
    MEAL = "meal"


WEEKDAY_LABELS = {
    0: "Sunday",
    1: "Monday",
    2: "Tuesday",
    3: "Wednesday",
    4: "Thursday",
    5: "Friday",
    6: "Saturday",
}

MEAL_SLOT_LABELS = {
    MealSlot.BREAKFAST: "Breakfast",
    MealSlot.MORNING_SNACK: "Morning snack",
    MealSlot.LUNCH: "Lunch",
    MealSlot.AFTERNOON_SNACK: "Afternoon snack",
    MealSlot.DINNER: "Dinner",
    MealSlot.LATE_SNACK: "Late snack",
}


class UserProfile(BaseModel):
    """Immutable snapshot of a user for one computation."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    weight_kg: float = Field(..., gt=0)
    height_cm: float = Field(..., gt=0)
    age: int = Field(..., gt=0)
    objective: Objective
    level: Level
    dietary_restrictions: list[str] = Field(default_factory=list)
    # Not recorded by the product yet; None means the male formula is used.
    sex: Sex | None = None


class ExerciseCatalogEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    muscle_group: MuscleGroup
    level: Level
    equipment: str | None = None
    instructions: str | None = None


class MealCatalogEntry(BaseModel):
    """A catalog meal. Calories default to the value derived from macros."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    protein_g: float = Field(..., ge=0)
    carb_g: float = Field(..., ge=0)
    fat_g: float = Field(..., ge=0)
    calories: int | None = Field(None, ge=0)
    tags: list[MealTag] = Field(default_factory=list)
    ingredients: list[str] = Field(default_factory=list)
    preparation: str | None = None

    @model_validator(mode="before")
    @classmethod
    def derive_calories(cls, data):
        if isinstance(data, dict) and data.get("calories") is None:
            from .nutrition import calories_from_macros

            data = dict(data)
            data["calories"] = calories_from_macros(
                data.get("protein_g", 0), data.get("carb_g", 0), data.get("fat_g", 0)
            )
        return data


class PlanExercise(BaseModel):
    exercise_id: str
    weekday: int = Field(..., ge=0, le=6)
    order: int = Field(..., ge=1)
    sets: int = Field(..., ge=1, le=20)
    reps: str = Field(..., pattern=r"^\d+(-\d+)?$")
    rest_seconds: int = Field(..., ge=0, le=600)
    notes: str | None = None


class WorkoutPlanDraft(BaseModel):
    """Generated workout plan, not yet persisted."""

    name: str
    notes: str
    exercises: list[PlanExercise] = Field(default_factory=list)
    days_per_week: int = Field(..., ge=1, le=7)


class PlanMeal(BaseModel):
    meal_id: str
    weekday: int = Field(..., ge=0, le=6)
    slot: MealSlot
    order: int = Field(..., ge=1)


class MealPlanDraft(BaseModel):
    """Generated meal plan with its daily targets, not yet persisted."""

    name: str
    calorie_target: int
    protein_target: int
    carb_target: int
    fat_target: int
    notes: str
    meals: list[PlanMeal] = Field(default_factory=list)


class SessionExercise(BaseModel):
    exercise_id: str
    sets_performed: int = Field(..., ge=0)
    reps: list[int] = Field(default_factory=list)
    loads: list[float] = Field(default_factory=list)
    notes: str | None = None


class WorkoutSessionRecord(BaseModel):
    """A logged training session as read back from history."""

    id: str
    user_id: str
    performed_at: datetime
    duration_minutes: int | None = None
    comments: str | None = None
    performance_score: float | None = Field(None, ge=0, le=100)
    exercises: list[SessionExercise] = Field(default_factory=list)


class Macros(BaseModel):
    protein_g: int
    carb_g: int
    fat_g: int
    calories: int


class NutritionPlan(BaseModel):
    """Energy and macro targets; derived fresh on every call."""

    bmr: int
    tdee: int
    target_calories: int
    macros: Macros
