"""Lookups against the identity, workout-plan and exercise-catalog records.

The core only needs to know that these records exist (and who owns a plan);
their CRUD lives outside this service.
"""
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from workout_tracker.core.exceptions import NotFoundError
from workout_tracker.models.fitness import Exercise, WorkoutPlan
from workout_tracker.models.user import User


async def user_exists(db: AsyncSession, user_id: uuid.UUID) -> bool:
    result = await db.execute(select(User.id).where(User.id == user_id))
    return result.scalar_one_or_none() is not None


async def resolve_user(db: AsyncSession, user_id: uuid.UUID) -> User:
    user = await db.get(User, user_id)
    if not user:
        raise NotFoundError(f"User {user_id} not found", field="user_id")
    return user


async def resolve_plan(db: AsyncSession, plan_id: uuid.UUID) -> WorkoutPlan:
    plan = await db.get(WorkoutPlan, plan_id)
    if not plan:
        raise NotFoundError(f"Workout plan {plan_id} not found", field="plan_id")
    return plan


async def resolve_exercise(db: AsyncSession, exercise_id: uuid.UUID) -> Exercise:
    exercise = await db.get(Exercise, exercise_id)
    if not exercise:
        raise NotFoundError(f"Exercise {exercise_id} not found", field="exercise_id")
    return exercise
