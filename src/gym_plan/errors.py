"""Exceptions raised by the planning engine and its storage adapter."""

from __future__ import annotations


class GymPlanError(Exception):
    """Base class for engine errors."""


class NotFoundError(GymPlanError):
    """A referenced record does not exist."""

    kind = "record"

    def __init__(self, record_id: str) -> None:
        super().__init__(f"{self.kind} not found: {record_id}")
        self.record_id = record_id


class UserNotFoundError(NotFoundError):
    kind = "user"


class ExerciseNotFoundError(NotFoundError):
    kind = "exercise"


class MealNotFoundError(NotFoundError):
    kind = "meal"


class PlanConflictError(GymPlanError):
    """Another plan of the same kind was activated concurrently for the user."""

    def __init__(self, user_id: str, kind: str) -> None:
        super().__init__(f"concurrent {kind} plan activation for user {user_id}")
        self.user_id = user_id
        self.kind = kind
