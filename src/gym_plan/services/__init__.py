"""
Services layer: plan generation, session scoring and coaching.
"""

from .meal_service import MealPlanGenerator
from .recommendation_service import RecommendationEngine
from .scoring_service import PerformanceScorer
from .workout_service import WorkoutPlanGenerator

__all__ = [
    "MealPlanGenerator",
    "PerformanceScorer",
    "RecommendationEngine",
    "WorkoutPlanGenerator",
]
