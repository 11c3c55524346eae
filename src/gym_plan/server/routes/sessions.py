"""
Workout session scoring, logging, recommendation and statistics routes.
"""

from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from ...db import SqlRepository
from ...errors import NotFoundError
from ...schemas import SessionExercise, WorkoutSessionRecord
from ...services import PerformanceScorer, RecommendationEngine
from ...services.stats_service import (
    SessionStats,
    StatsPeriod,
    UserStats,
    period_start,
    session_stats,
    user_stats,
)
from ..deps import get_repository

router = APIRouter()


class ScoreRequest(BaseModel):
    exercises: list[SessionExercise]
    duration_minutes: int | None = Field(None, ge=0)
    user_id: str | None = None


class SessionRequest(BaseModel):
    exercises: list[SessionExercise]
    duration_minutes: int | None = Field(None, ge=0)
    comments: str | None = None
    performed_at: datetime | None = None


@router.post("/sessions/score")
async def score_session(
    req: ScoreRequest, repo: SqlRepository = Depends(get_repository)
) -> dict[str, int]:
    """Score a session without storing it."""
    score = await PerformanceScorer(repo).score(req.exercises, req.duration_minutes, req.user_id)
    return {"score": score}


@router.post("/users/{user_id}/sessions", status_code=201)
async def log_session(
    user_id: str, req: SessionRequest, repo: SqlRepository = Depends(get_repository)
) -> WorkoutSessionRecord:
    """Score a session against the user's history and store it."""
    score = await PerformanceScorer(repo).score(req.exercises, req.duration_minutes, user_id)
    try:
        return await repo.record_session(
            user_id,
            req.exercises,
            score,
            performed_at=req.performed_at,
            duration_minutes=req.duration_minutes,
            comments=req.comments,
        )
    except NotFoundError as err:
        raise HTTPException(status_code=404, detail=str(err)) from err


@router.get("/users/{user_id}/recommendations")
async def get_recommendations(
    user_id: str, repo: SqlRepository = Depends(get_repository)
) -> dict[str, list[str]]:
    messages = await RecommendationEngine(repo, repo).recommend(user_id)
    return {"recommendations": messages}


@router.get("/users/{user_id}/stats")
async def get_session_stats(
    user_id: str,
    period: StatsPeriod = Query(StatsPeriod.MONTH, description="Aggregation window"),
    repo: SqlRepository = Depends(get_repository),
) -> SessionStats:
    """Aggregated training statistics over a period."""
    sessions = await repo.fetch_sessions(user_id, since=period_start(period, datetime.now(UTC)))
    catalog = await repo.find_exercises({ex.exercise_id for s in sessions for ex in s.exercises})
    return session_stats(sessions, {entry.id: entry.muscle_group for entry in catalog})


@router.get("/users/{user_id}/stats/summary")
async def get_user_stats(
    user_id: str, repo: SqlRepository = Depends(get_repository)
) -> UserStats:
    if await repo.fetch_user_profile(user_id) is None:
        raise HTTPException(status_code=404, detail=f"user not found: {user_id}")
    sessions = await repo.fetch_sessions(user_id)
    return user_stats(sessions, datetime.now(UTC).date())
