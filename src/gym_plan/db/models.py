"""
SQLAlchemy ORM models for the gym plan tables.
"""

from __future__ import annotations

import enum
import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy import (
    Enum as SAEnum,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from ..schemas import Level, MealSlot, MuscleGroup, Objective, Sex


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def _uuid() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(UTC)


def _enum(cls: type[enum.Enum], name: str) -> SAEnum:
    # native_enum=False keeps SQLite and Postgres schemas identical
    return SAEnum(
        cls,
        name=name,
        native_enum=False,
        create_constraint=True,
        validate_strings=True,
        values_callable=lambda e: [m.value for m in e],
    )


class User(Base):
    """A user and the profile fields the planners read."""

    __tablename__ = "users"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(120))
    age: Mapped[int] = mapped_column(Integer)
    weight_kg: Mapped[float] = mapped_column(Float)
    height_cm: Mapped[float] = mapped_column(Float)
    objective: Mapped[Objective] = mapped_column(_enum(Objective, "objective"))
    level: Mapped[Level] = mapped_column(_enum(Level, "experience_level"))
    sex: Mapped[Sex | None] = mapped_column(_enum(Sex, "sex"), nullable=True)
    dietary_restrictions: Mapped[list[str]] = mapped_column(JSON, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_now, onupdate=_now
    )

    sessions: Mapped[list[WorkoutSession]] = relationship(
        "WorkoutSession", back_populates="user", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} objective={self.objective} level={self.level}>"


class Exercise(Base):
    """Exercise catalog entry."""

    __tablename__ = "exercises"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(120), index=True)
    muscle_group: Mapped[MuscleGroup] = mapped_column(
        _enum(MuscleGroup, "muscle_group"), index=True
    )
    level: Mapped[Level] = mapped_column(_enum(Level, "exercise_level"))
    equipment: Mapped[str | None] = mapped_column(String(32), nullable=True)
    instructions: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)

    def __repr__(self) -> str:
        return f"<Exercise id={self.id} name={self.name} group={self.muscle_group}>"


class Meal(Base):
    """Meal catalog entry."""

    __tablename__ = "meals"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(120), index=True)
    ingredients: Mapped[list[str]] = mapped_column(JSON, default=list)
    protein_g: Mapped[float] = mapped_column(Float)
    carb_g: Mapped[float] = mapped_column(Float)
    fat_g: Mapped[float] = mapped_column(Float)
    calories: Mapped[int] = mapped_column(Integer)
    tags: Mapped[list[str]] = mapped_column(JSON, default=list)
    preparation: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)

    def __repr__(self) -> str:
        return f"<Meal id={self.id} name={self.name} calories={self.calories}>"


class WorkoutPlan(Base):
    """Persisted workout plan; at most one active row per user."""

    __tablename__ = "workout_plans"
    __table_args__ = (
        Index(
            "uq_workout_plans_active_user",
            "user_id",
            unique=True,
            sqlite_where=text("active = 1"),
            postgresql_where=text("active"),
        ),
    )
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), index=True)
    name: Mapped[str] = mapped_column(String(120))
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    days_per_week: Mapped[int] = mapped_column(Integer)
    version: Mapped[int] = mapped_column(Integer, default=1)
    active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)

    exercises: Mapped[list[WorkoutPlanExercise]] = relationship(
        "WorkoutPlanExercise",
        back_populates="plan",
        cascade="all, delete-orphan",
        order_by=lambda: [WorkoutPlanExercise.weekday, WorkoutPlanExercise.position],
    )

    def __repr__(self) -> str:
        return f"<WorkoutPlan id={self.id} user_id={self.user_id} active={self.active}>"


class WorkoutPlanExercise(Base):
    __tablename__ = "workout_plan_exercises"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    plan_id: Mapped[str] = mapped_column(ForeignKey("workout_plans.id"), index=True)
    exercise_id: Mapped[str] = mapped_column(ForeignKey("exercises.id"))
    weekday: Mapped[int] = mapped_column(Integer)
    position: Mapped[int] = mapped_column(Integer)
    sets: Mapped[int] = mapped_column(Integer)
    reps: Mapped[str] = mapped_column(String(16))
    rest_seconds: Mapped[int] = mapped_column(Integer)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    plan: Mapped[WorkoutPlan] = relationship("WorkoutPlan", back_populates="exercises")


class MealPlan(Base):
    """Persisted meal plan with its daily targets; at most one active row per user."""

    __tablename__ = "meal_plans"
    __table_args__ = (
        Index(
            "uq_meal_plans_active_user",
            "user_id",
            unique=True,
            sqlite_where=text("active = 1"),
            postgresql_where=text("active"),
        ),
    )
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), index=True)
    name: Mapped[str] = mapped_column(String(120))
    calorie_target: Mapped[int] = mapped_column(Integer)
    protein_target: Mapped[int] = mapped_column(Integer)
    carb_target: Mapped[int] = mapped_column(Integer)
    fat_target: Mapped[int] = mapped_column(Integer)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)

    meals: Mapped[list[MealPlanMeal]] = relationship(
        "MealPlanMeal",
        back_populates="plan",
        cascade="all, delete-orphan",
        order_by=lambda: [MealPlanMeal.weekday, MealPlanMeal.position],
    )

    def __repr__(self) -> str:
        return f"<MealPlan id={self.id} user_id={self.user_id} active={self.active}>"


class MealPlanMeal(Base):
    __tablename__ = "meal_plan_meals"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    plan_id: Mapped[str] = mapped_column(ForeignKey("meal_plans.id"), index=True)
    meal_id: Mapped[str] = mapped_column(ForeignKey("meals.id"))
    weekday: Mapped[int] = mapped_column(Integer)
    slot: Mapped[MealSlot] = mapped_column(_enum(MealSlot, "meal_slot"))
    position: Mapped[int] = mapped_column(Integer)

    plan: Mapped[MealPlan] = relationship("MealPlan", back_populates="meals")


class WorkoutSession(Base):
    """A logged workout session belonging to a user."""

    __tablename__ = "workout_sessions"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), index=True)
    performed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    duration_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    comments: Mapped[str | None] = mapped_column(Text, nullable=True)
    performance_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)

    user: Mapped[User] = relationship("User", back_populates="sessions")
    exercises: Mapped[list[SessionExerciseRow]] = relationship(
        "SessionExerciseRow",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by=lambda: SessionExerciseRow.id,
    )

    def __repr__(self) -> str:
        return (
            f"<WorkoutSession id={self.id} user_id={self.user_id} "
            f"score={self.performance_score}>"
        )


class SessionExerciseRow(Base):
    """One exercise performed in a workout session."""

    __tablename__ = "session_exercises"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_id: Mapped[str] = mapped_column(ForeignKey("workout_sessions.id"), index=True)
    exercise_id: Mapped[str] = mapped_column(ForeignKey("exercises.id"))
    sets_performed: Mapped[int] = mapped_column(Integer)
    reps: Mapped[list[Any]] = mapped_column(JSON, default=list)
    loads: Mapped[list[Any]] = mapped_column(JSON, default=list)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    session: Mapped[WorkoutSession] = relationship("WorkoutSession", back_populates="exercises")

    def __repr__(self) -> str:
        return (
            f"<SessionExerciseRow id={self.id} session_id={self.session_id} "
            f"exercise_id={self.exercise_id}>"
        )
