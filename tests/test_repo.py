import os
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from gym_plan.db import repo
from gym_plan.db.models import WorkoutPlan
from gym_plan.db.repo import SqlRepository
from gym_plan.errors import ExerciseNotFoundError, PlanConflictError, UserNotFoundError
from gym_plan.schemas import Level, MealCatalogEntry, PlanKind, SessionExercise, WorkoutPlanDraft
from gym_plan.services import MealPlanGenerator, WorkoutPlanGenerator

from conftest import make_exercise_catalog, make_meal_catalog, make_profile


@asynccontextmanager
async def seeded_repo(tmp_path):
    await repo.close_db()
    await repo.init_db(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    try:
        store = SqlRepository(repo.get_session())
        await store.create_user(make_profile())
        for entry in make_exercise_catalog():
            await store.create_exercise(entry)
        for meal in make_meal_catalog():
            await store.create_meal(meal)
        yield store
    finally:
        await repo.close_db()


def _empty_plan(name="Plan"):
    return WorkoutPlanDraft(name=name, notes="", days_per_week=3, exercises=[])


def test_prepare_url_ssl_disable():
    url, connect_args = repo._prepare_url("postgresql+asyncpg://u:p@h/db?ssl=false")
    assert url == "postgresql+asyncpg://u:p@h/db"
    assert connect_args == {"sslmode": "disable", "statement_cache_size": 0}


def test_get_session_requires_init():
    repo._session = None
    with pytest.raises(RuntimeError):
        repo.get_session()


@pytest.mark.asyncio
async def test_profile_round_trip(tmp_path):
    async with seeded_repo(tmp_path) as store:
        profile = await store.fetch_user_profile("u1")
        assert profile == make_profile()
        assert await store.fetch_user_profile("ghost") is None


@pytest.mark.asyncio
async def test_list_exercises_filters_by_level(tmp_path):
    async with seeded_repo(tmp_path) as store:
        beginner = await store.list_exercises(max_level=Level.BEGINNER)
        assert len(beginner) == 3 * 8
        assert {ex.level for ex in beginner} == {Level.BEGINNER}
        names = [ex.name for ex in beginner]
        assert names == sorted(names)
        assert len(await store.list_exercises()) == 5 * 8
        assert {ex.id for ex in await store.find_exercises(["chest-b1", "nope"])} == {"chest-b1"}


@pytest.mark.asyncio
async def test_create_meal_stores_derived_calories(tmp_path):
    async with seeded_repo(tmp_path) as store:
        await store.create_meal(
            MealCatalogEntry(id="bowl", name="Bowl", protein_g=30, carb_g=40, fat_g=10)
        )
        (bowl,) = await store.find_meals(["bowl"])
        assert bowl.calories == 370
        assert len(await store.list_meals()) == 7


@pytest.mark.asyncio
async def test_persist_workout_plan_keeps_single_active(tmp_path):
    async with seeded_repo(tmp_path) as store:
        first = await WorkoutPlanGenerator(store, store).generate("u1", 3)
        await store.persist_workout_plan("u1", first)
        second = await WorkoutPlanGenerator(store, store).generate("u1", 5)
        await store.persist_workout_plan("u1", second)

        active = await store.fetch_active_workout_plan("u1")
        assert active == second

        async with repo.get_session()() as s:
            plans = (await s.execute(select(WorkoutPlan).order_by(WorkoutPlan.version))).scalars()
            assert [(p.version, p.active) for p in plans] == [(1, False), (2, True)]

        assert await store.deactivate_previous_plans("u1", PlanKind.WORKOUT) == 1
        assert await store.fetch_active_workout_plan("u1") is None


@pytest.mark.asyncio
async def test_persist_meal_plan_round_trip(tmp_path):
    async with seeded_repo(tmp_path) as store:
        plan = await MealPlanGenerator(store, store).generate("u1", 4)
        await store.persist_meal_plan("u1", plan)
        await store.persist_meal_plan("u1", plan)

        assert await store.fetch_active_meal_plan("u1") == plan
        assert await store.deactivate_previous_plans("u1", PlanKind.MEAL) == 1


@pytest.mark.asyncio
async def test_persist_rejects_unknown_references(tmp_path):
    async with seeded_repo(tmp_path) as store:
        with pytest.raises(UserNotFoundError):
            await store.persist_workout_plan("ghost", _empty_plan())

        plan = await WorkoutPlanGenerator(store, store).generate("u1", 3)
        broken = plan.model_copy(
            update={"exercises": [plan.exercises[0].model_copy(update={"exercise_id": "nope"})]}
        )
        with pytest.raises(ExerciseNotFoundError):
            await store.persist_workout_plan("u1", broken)
        assert await store.fetch_active_workout_plan("u1") is None


@pytest.mark.asyncio
async def test_database_rejects_two_active_plans(tmp_path):
    async with seeded_repo(tmp_path) as store:
        await store.persist_workout_plan("u1", _empty_plan())
        async with repo.get_session()() as s:
            s.add(WorkoutPlan(user_id="u1", name="Rogue", days_per_week=3, active=True))
            with pytest.raises(IntegrityError):
                await s.commit()


@pytest.mark.asyncio
async def test_concurrent_activation_raises_conflict(tmp_path, monkeypatch):
    async with seeded_repo(tmp_path) as store:
        await store.persist_workout_plan("u1", _empty_plan("First"))

        async def lost_race(s, user_id, kind):
            return 0

        monkeypatch.setattr(SqlRepository, "_deactivate", staticmethod(lost_race))
        with pytest.raises(PlanConflictError):
            await store.persist_workout_plan("u1", _empty_plan("Second"))

        active = await store.fetch_active_workout_plan("u1")
        assert active.name == "First"
        async with repo.get_session()() as s:
            assert await s.scalar(select(func.count(WorkoutPlan.id))) == 1


@pytest.mark.asyncio
async def test_sessions_recorded_and_read_most_recent_first(tmp_path):
    now = datetime(2026, 10, 18, 12, 0, tzinfo=UTC)
    squat = SessionExercise(exercise_id="legs-b1", sets_performed=3, reps=[5, 5, 5], loads=[100])
    async with seeded_repo(tmp_path) as store:
        for days_ago, score in ((3, 60), (1, 70), (10, 50)):
            await store.record_session(
                "u1", [squat], score, performed_at=now - timedelta(days=days_ago)
            )

        recent = await store.fetch_recent_sessions("u1", 2)
        assert [s.performance_score for s in recent] == [70, 60]
        assert recent[0].exercises == [squat]

        week = await store.fetch_sessions("u1", since=now - timedelta(days=7))
        assert [s.performance_score for s in week] == [70, 60]
        assert len(await store.fetch_sessions("u1")) == 3

        with pytest.raises(UserNotFoundError):
            await store.record_session("ghost", [squat], 50)


@pytest.mark.asyncio
async def test_sessions_with_mixed_offsets_ordered_by_instant(tmp_path):
    eastern = timezone(timedelta(hours=-5))
    squat = SessionExercise(exercise_id="legs-b1", sets_performed=1, reps=[5], loads=[100])
    async with seeded_repo(tmp_path) as store:
        # 04:30 UTC on the 19th
        late = await store.record_session(
            "u1", [squat], 10, performed_at=datetime(2026, 10, 18, 23, 30, tzinfo=eastern)
        )
        await store.record_session(
            "u1", [squat], 90, performed_at=datetime(2026, 10, 19, 2, 0, tzinfo=UTC)
        )
        assert late.performed_at == datetime(2026, 10, 19, 4, 30, tzinfo=UTC)

        recent = await store.fetch_recent_sessions("u1", 2)
        assert [s.performance_score for s in recent] == [10, 90]
        assert recent[0].performed_at == datetime(2026, 10, 19, 4, 30, tzinfo=UTC)

        since = datetime(2026, 10, 18, 23, 0, tzinfo=eastern)
        assert [s.performance_score for s in await store.fetch_sessions("u1", since=since)] == [10]


@pytest.mark.asyncio
async def test_naive_timestamp_treated_as_utc(tmp_path):
    squat = SessionExercise(exercise_id="legs-b1", sets_performed=1, reps=[5], loads=[100])
    async with seeded_repo(tmp_path) as store:
        record = await store.record_session(
            "u1", [squat], 50, performed_at=datetime(2026, 10, 18, 8, 0)
        )
        assert record.performed_at == datetime(2026, 10, 18, 8, 0, tzinfo=UTC)
        (stored,) = await store.fetch_sessions("u1")
        assert stored.performed_at == record.performed_at
