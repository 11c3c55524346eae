"""
Async SQLAlchemy repository implementing the engine's collaborator protocols.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Callable, Collection, Sequence
from datetime import UTC, datetime
from functools import wraps
from typing import Any, TypeVar

from sqlalchemy import func, select, update
from sqlalchemy.engine import make_url
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import selectinload

from ..config import SETTINGS
from ..errors import (
    ExerciseNotFoundError,
    MealNotFoundError,
    NotFoundError,
    PlanConflictError,
    UserNotFoundError,
)
from ..schemas import (
    ExerciseCatalogEntry,
    Level,
    MealCatalogEntry,
    MealPlanDraft,
    PlanExercise,
    PlanKind,
    PlanMeal,
    SessionExercise,
    UserProfile,
    WorkoutPlanDraft,
    WorkoutSessionRecord,
)
from .models import (
    Base,
    Exercise,
    Meal,
    MealPlan,
    MealPlanMeal,
    SessionExerciseRow,
    User,
    WorkoutPlan,
    WorkoutPlanExercise,
    WorkoutSession,
)

_engine: AsyncEngine | None = None
_session: async_sessionmaker[AsyncSession] | None = None

# Type variable for the retry decorator
F = TypeVar("F", bound=Callable[..., Any])


def retry_on_connection_error(max_retries: int = 3, delay: float = 0.1):
    """
    Decorator to retry database operations on connection errors.
    Useful for handling transient connection issues.
    """

    def decorator(func: F) -> F:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            for attempt in range(max_retries):
                try:
                    return await func(*args, **kwargs)
                except NotFoundError:
                    raise
                except Exception as e:
                    transient = any(
                        keyword in str(e).lower()
                        for keyword in [
                            "connection",
                            "server closed",
                            "operationalerror",
                            "timeout",
                        ]
                    )
                    if not transient or attempt == max_retries - 1:
                        raise
                    # Exponential backoff
                    wait_time = delay * (2**attempt)
                    logging.warning(
                        "Database connection error on attempt %d/%d, retrying in %.2fs: %s",
                        attempt + 1,
                        max_retries,
                        wait_time,
                        e,
                    )
                    await asyncio.sleep(wait_time)
            raise RuntimeError("Retry mechanism failed unexpectedly")

        return wrapper  # type: ignore

    return decorator


def _prepare_url(url: str) -> tuple[str, dict]:
    """Return sanitized DB URL and connect args.

    Extracts common SSL query parameters and passes them as ``connect_args``.
    ``ssl=false`` becomes ``sslmode=disable``.
    """

    url_obj = make_url(url)
    query = dict(url_obj.query)
    connect_args: dict[str, object] = {}

    # SSL normalization
    sslmode = query.pop("sslmode", None)
    ssl_val = query.pop("ssl", None)
    if ssl_val is not None:
        sslmode = "disable" if str(ssl_val).lower() in {"0", "false", "off", "no"} else "require"
    if sslmode:
        connect_args["sslmode"] = sslmode

    # PgBouncer-friendly settings by driver
    driver = url_obj.drivername or ""
    if driver.startswith("postgresql+psycopg"):
        connect_args.setdefault("prepare_threshold", 0)  # psycopg3
    elif driver.startswith("postgresql+asyncpg"):
        connect_args.setdefault("statement_cache_size", 0)  # asyncpg

    url_obj = url_obj.set(query=query)
    return url_obj.render_as_string(hide_password=False), connect_args


async def init_db(database_url: str | None = None) -> None:
    """
    Initialize the async database engine and sessionmaker, and create tables if needed.
    """
    global _engine, _session
    if _engine:
        return
    database_url = database_url or SETTINGS.DATABASE_URL
    if not database_url:
        logging.error("DATABASE_URL is required for DB initialization.")
        raise RuntimeError("DATABASE_URL is required")
    db_url, connect_args = _prepare_url(database_url)
    engine_kwargs: dict[str, Any] = {"echo": False, "connect_args": connect_args}
    if not make_url(db_url).drivername.startswith("sqlite"):
        engine_kwargs.update(
            pool_pre_ping=True,
            pool_recycle=3600,  # Recycle connections every hour
            pool_timeout=30,  # Wait up to 30 seconds for available connection
            max_overflow=10,  # Allow up to 10 additional connections beyond pool_size
            pool_size=20,  # Maintain up to 20 connections in the pool
        )
    _engine = create_async_engine(db_url, **engine_kwargs)
    _session = async_sessionmaker(_engine, expire_on_commit=False)
    async with _engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def get_session() -> async_sessionmaker[AsyncSession]:
    """
    Get the async sessionmaker. Raises if DB is not initialized.
    """
    if not _session:
        raise RuntimeError("DB not initialized; call init_db() first")
    return _session


async def close_db() -> None:
    """Dispose of the database engine and reset session state."""

    global _engine, _session
    if _engine:
        await _engine.dispose()
    _engine = None
    _session = None


def _profile(user: User) -> UserProfile:
    return UserProfile(
        id=user.id,
        name=user.name,
        weight_kg=user.weight_kg,
        height_cm=user.height_cm,
        age=user.age,
        objective=user.objective,
        level=user.level,
        dietary_restrictions=list(user.dietary_restrictions or []),
        sex=user.sex,
    )


def _exercise_entry(row: Exercise) -> ExerciseCatalogEntry:
    return ExerciseCatalogEntry(
        id=row.id,
        name=row.name,
        muscle_group=row.muscle_group,
        level=row.level,
        equipment=row.equipment,
        instructions=row.instructions,
    )


def _meal_entry(row: Meal) -> MealCatalogEntry:
    return MealCatalogEntry(
        id=row.id,
        name=row.name,
        protein_g=row.protein_g,
        carb_g=row.carb_g,
        fat_g=row.fat_g,
        calories=row.calories,
        tags=list(row.tags or []),
        ingredients=list(row.ingredients or []),
        preparation=row.preparation,
    )


def _as_utc(value: datetime) -> datetime:
    """Normalize to aware UTC; naive values are taken as UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _session_record(row: WorkoutSession) -> WorkoutSessionRecord:
    return WorkoutSessionRecord(
        id=row.id,
        user_id=row.user_id,
        performed_at=_as_utc(row.performed_at),
        duration_minutes=row.duration_minutes,
        comments=row.comments,
        performance_score=row.performance_score,
        exercises=[
            SessionExercise(
                exercise_id=ex.exercise_id,
                sets_performed=ex.sets_performed,
                reps=list(ex.reps or []),
                loads=list(ex.loads or []),
                notes=ex.notes,
            )
            for ex in row.exercises
        ],
    )


def _levels_up_to(level: Level) -> list[Level]:
    return [lv for lv in Level if lv.rank <= level.rank]


class SqlRepository:
    """Storage adapter for profiles, catalogs, plans and session history."""

    def __init__(self, sessions: async_sessionmaker[AsyncSession] | None = None) -> None:
        self._sessions = sessions or get_session()

    # -- helpers ---------------------------------------------------------------

    @staticmethod
    async def _ensure_exist(
        s: AsyncSession, model: type, ids: Collection[str], error: type[NotFoundError]
    ) -> None:
        wanted = set(ids)
        if not wanted:
            return
        res = await s.execute(select(model.id).where(model.id.in_(sorted(wanted))))
        missing = wanted - set(res.scalars().all())
        if missing:
            raise error(sorted(missing)[0])

    @staticmethod
    async def _ensure_user(s: AsyncSession, user_id: str) -> None:
        if await s.get(User, user_id) is None:
            raise UserNotFoundError(user_id)

    # -- profiles --------------------------------------------------------------

    async def create_user(self, profile: UserProfile) -> UserProfile:
        async with self._sessions() as s:
            user = User(
                id=profile.id,
                name=profile.name,
                age=profile.age,
                weight_kg=profile.weight_kg,
                height_cm=profile.height_cm,
                objective=profile.objective,
                level=profile.level,
                sex=profile.sex,
                dietary_restrictions=list(profile.dietary_restrictions),
            )
            s.add(user)
            await s.commit()
            return profile

    @retry_on_connection_error(max_retries=3, delay=0.1)
    async def fetch_user_profile(self, user_id: str) -> UserProfile | None:
        async with self._sessions() as s:
            user = await s.get(User, user_id)
            return _profile(user) if user else None

    # -- catalogs --------------------------------------------------------------

    async def create_exercise(self, entry: ExerciseCatalogEntry) -> ExerciseCatalogEntry:
        async with self._sessions() as s:
            row = Exercise(
                id=entry.id,
                name=entry.name,
                muscle_group=entry.muscle_group,
                level=entry.level,
                equipment=entry.equipment,
                instructions=entry.instructions,
            )
            s.add(row)
            await s.commit()
            return entry

    async def create_meal(self, entry: MealCatalogEntry) -> MealCatalogEntry:
        """Store a meal; calories were derived from macros when not supplied."""
        async with self._sessions() as s:
            row = Meal(
                id=entry.id,
                name=entry.name,
                ingredients=list(entry.ingredients),
                protein_g=entry.protein_g,
                carb_g=entry.carb_g,
                fat_g=entry.fat_g,
                calories=entry.calories,
                tags=[t.value for t in entry.tags],
                preparation=entry.preparation,
            )
            s.add(row)
            await s.commit()
            return entry

    @retry_on_connection_error(max_retries=3, delay=0.1)
    async def list_exercises(self, max_level: Level | None = None) -> list[ExerciseCatalogEntry]:
        stmt = select(Exercise).order_by(Exercise.name, Exercise.id)
        if max_level is not None:
            stmt = stmt.where(Exercise.level.in_(_levels_up_to(max_level)))
        async with self._sessions() as s:
            res = await s.execute(stmt)
            return [_exercise_entry(row) for row in res.scalars().all()]

    @retry_on_connection_error(max_retries=3, delay=0.1)
    async def find_exercises(self, ids: Collection[str]) -> list[ExerciseCatalogEntry]:
        if not ids:
            return []
        async with self._sessions() as s:
            res = await s.execute(
                select(Exercise).where(Exercise.id.in_(sorted(set(ids)))).order_by(Exercise.name)
            )
            return [_exercise_entry(row) for row in res.scalars().all()]

    @retry_on_connection_error(max_retries=3, delay=0.1)
    async def list_meals(self) -> list[MealCatalogEntry]:
        async with self._sessions() as s:
            res = await s.execute(select(Meal).order_by(Meal.name, Meal.id))
            return [_meal_entry(row) for row in res.scalars().all()]

    @retry_on_connection_error(max_retries=3, delay=0.1)
    async def find_meals(self, ids: Collection[str]) -> list[MealCatalogEntry]:
        if not ids:
            return []
        async with self._sessions() as s:
            res = await s.execute(
                select(Meal).where(Meal.id.in_(sorted(set(ids)))).order_by(Meal.name)
            )
            return [_meal_entry(row) for row in res.scalars().all()]

    # -- plans -----------------------------------------------------------------

    @staticmethod
    async def _deactivate(s: AsyncSession, user_id: str, kind: PlanKind) -> int:
        model = WorkoutPlan if kind == PlanKind.WORKOUT else MealPlan
        res = await s.execute(
            update(model)
            .where(model.user_id == user_id, model.active.is_(True))
            .values(active=False)
        )
        return res.rowcount or 0

    async def deactivate_previous_plans(self, user_id: str, kind: PlanKind) -> int:
        async with self._sessions() as s:
            count = await self._deactivate(s, user_id, kind)
            await s.commit()
        logging.info("Deactivated %d %s plan(s) for user %s", count, kind.value, user_id)
        return count

    async def persist_workout_plan(self, user_id: str, draft: WorkoutPlanDraft) -> str:
        """Deactivate the user's workout plans and insert ``draft`` as active, atomically."""
        plan_id = str(uuid.uuid4())
        async with self._sessions() as s:
            try:
                async with s.begin():
                    await self._ensure_user(s, user_id)
                    await self._ensure_exist(
                        s,
                        Exercise,
                        {ex.exercise_id for ex in draft.exercises},
                        ExerciseNotFoundError,
                    )
                    previous = await s.scalar(
                        select(func.count(WorkoutPlan.id)).where(WorkoutPlan.user_id == user_id)
                    )
                    await self._deactivate(s, user_id, PlanKind.WORKOUT)
                    s.add(
                        WorkoutPlan(
                            id=plan_id,
                            user_id=user_id,
                            name=draft.name,
                            notes=draft.notes,
                            days_per_week=draft.days_per_week,
                            version=(previous or 0) + 1,
                            active=True,
                            exercises=[
                                WorkoutPlanExercise(
                                    exercise_id=ex.exercise_id,
                                    weekday=ex.weekday,
                                    position=ex.order,
                                    sets=ex.sets,
                                    reps=ex.reps,
                                    rest_seconds=ex.rest_seconds,
                                    notes=ex.notes,
                                )
                                for ex in draft.exercises
                            ],
                        )
                    )
            except IntegrityError as e:
                raise PlanConflictError(user_id, PlanKind.WORKOUT.value) from e
        logging.info("Activated workout plan %s for user %s", plan_id, user_id)
        return plan_id

    async def persist_meal_plan(self, user_id: str, draft: MealPlanDraft) -> str:
        """Deactivate the user's meal plans and insert ``draft`` as active, atomically."""
        plan_id = str(uuid.uuid4())
        async with self._sessions() as s:
            try:
                async with s.begin():
                    await self._ensure_user(s, user_id)
                    await self._ensure_exist(
                        s, Meal, {m.meal_id for m in draft.meals}, MealNotFoundError
                    )
                    await self._deactivate(s, user_id, PlanKind.MEAL)
                    s.add(
                        MealPlan(
                            id=plan_id,
                            user_id=user_id,
                            name=draft.name,
                            calorie_target=draft.calorie_target,
                            protein_target=draft.protein_target,
                            carb_target=draft.carb_target,
                            fat_target=draft.fat_target,
                            notes=draft.notes,
                            active=True,
                            meals=[
                                MealPlanMeal(
                                    meal_id=m.meal_id,
                                    weekday=m.weekday,
                                    slot=m.slot,
                                    position=m.order,
                                )
                                for m in draft.meals
                            ],
                        )
                    )
            except IntegrityError as e:
                raise PlanConflictError(user_id, PlanKind.MEAL.value) from e
        logging.info("Activated meal plan %s for user %s", plan_id, user_id)
        return plan_id

    @retry_on_connection_error(max_retries=3, delay=0.1)
    async def fetch_active_workout_plan(self, user_id: str) -> WorkoutPlanDraft | None:
        async with self._sessions() as s:
            plan = await s.scalar(
                select(WorkoutPlan)
                .where(WorkoutPlan.user_id == user_id, WorkoutPlan.active.is_(True))
                .options(selectinload(WorkoutPlan.exercises))
            )
            if plan is None:
                return None
            return WorkoutPlanDraft(
                name=plan.name,
                notes=plan.notes or "",
                days_per_week=plan.days_per_week,
                exercises=[
                    PlanExercise(
                        exercise_id=ex.exercise_id,
                        weekday=ex.weekday,
                        order=ex.position,
                        sets=ex.sets,
                        reps=ex.reps,
                        rest_seconds=ex.rest_seconds,
                        notes=ex.notes,
                    )
                    for ex in plan.exercises
                ],
            )

    @retry_on_connection_error(max_retries=3, delay=0.1)
    async def fetch_active_meal_plan(self, user_id: str) -> MealPlanDraft | None:
        async with self._sessions() as s:
            plan = await s.scalar(
                select(MealPlan)
                .where(MealPlan.user_id == user_id, MealPlan.active.is_(True))
                .options(selectinload(MealPlan.meals))
            )
            if plan is None:
                return None
            return MealPlanDraft(
                name=plan.name,
                calorie_target=plan.calorie_target,
                protein_target=plan.protein_target,
                carb_target=plan.carb_target,
                fat_target=plan.fat_target,
                notes=plan.notes or "",
                meals=[
                    PlanMeal(meal_id=m.meal_id, weekday=m.weekday, slot=m.slot, order=m.position)
                    for m in plan.meals
                ],
            )

    # -- sessions --------------------------------------------------------------

    async def record_session(
        self,
        user_id: str,
        exercises: Sequence[SessionExercise],
        performance_score: float | None,
        performed_at: datetime | None = None,
        duration_minutes: int | None = None,
        comments: str | None = None,
    ) -> WorkoutSessionRecord:
        """Store a scored session with its exercises in a single transaction."""
        record = WorkoutSessionRecord(
            id=str(uuid.uuid4()),
            user_id=user_id,
            performed_at=_as_utc(performed_at) if performed_at else datetime.now(UTC),
            duration_minutes=duration_minutes,
            comments=comments,
            performance_score=performance_score,
            exercises=list(exercises),
        )
        async with self._sessions() as s:
            async with s.begin():
                await self._ensure_user(s, user_id)
                await self._ensure_exist(
                    s, Exercise, {ex.exercise_id for ex in exercises}, ExerciseNotFoundError
                )
                row = WorkoutSession(
                    id=record.id,
                    user_id=user_id,
                    performed_at=record.performed_at,
                    duration_minutes=duration_minutes,
                    comments=comments,
                    performance_score=performance_score,
                    exercises=[
                        SessionExerciseRow(
                            exercise_id=ex.exercise_id,
                            sets_performed=ex.sets_performed,
                            reps=list(ex.reps),
                            loads=list(ex.loads),
                            notes=ex.notes,
                        )
                        for ex in exercises
                    ],
                )
                s.add(row)
        logging.info("Recorded session %s for user %s", record.id, user_id)
        return record

    @retry_on_connection_error(max_retries=3, delay=0.1)
    async def fetch_recent_sessions(self, user_id: str, limit: int) -> list[WorkoutSessionRecord]:
        """Most recent sessions first, with their exercises."""
        async with self._sessions() as s:
            res = await s.execute(
                select(WorkoutSession)
                .where(WorkoutSession.user_id == user_id)
                .order_by(WorkoutSession.performed_at.desc())
                .limit(limit)
                .options(selectinload(WorkoutSession.exercises))
            )
            return [_session_record(row) for row in res.scalars().all()]

    @retry_on_connection_error(max_retries=3, delay=0.1)
    async def fetch_sessions(
        self, user_id: str, since: datetime | None = None
    ) -> list[WorkoutSessionRecord]:
        """All sessions of a user, optionally since a date, most recent first."""
        stmt = (
            select(WorkoutSession)
            .where(WorkoutSession.user_id == user_id)
            .order_by(WorkoutSession.performed_at.desc())
            .options(selectinload(WorkoutSession.exercises))
        )
        if since is not None:
            stmt = stmt.where(WorkoutSession.performed_at >= _as_utc(since))
        async with self._sessions() as s:
            res = await s.execute(stmt)
            return [_session_record(row) for row in res.scalars().all()]
