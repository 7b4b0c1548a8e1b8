"""Read-only training metrics computed from logged exercise data.

Nothing here mutates session or log state. Missing or partial data degrades to
0 or None instead of raising.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
import uuid

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from workout_tracker.core.exceptions import InvalidArgumentError
from workout_tracker.models.enums import SessionStatus
from workout_tracker.models.workout_log import ExerciseLog, WorkoutSession
from workout_tracker.services import collaborators
from workout_tracker.services.clock import whole_minutes_between
from workout_tracker.services.session_lifecycle import SessionLifecycleService


@dataclass
class SessionSummary:
    session_id: uuid.UUID
    status: SessionStatus
    total_exercises: int
    total_sets: int
    estimated_calories: int
    elapsed_minutes: int


@dataclass
class UserStatistics:
    user_id: uuid.UUID
    completed_sessions: int
    average_duration_minutes: float
    total_calories_burned: int
    distinct_exercises: int


@dataclass
class ExerciseProgress:
    exercise_id: uuid.UUID
    personal_best_weight_kg: float | None
    personal_best_reps: int | None
    progress_percentage: float | None
    total_logs: int


def _validate_date_range(start_date: date | None, end_date: date | None) -> None:
    if start_date is None or end_date is None:
        raise InvalidArgumentError("Start date and end date are required", field="start_date")
    if start_date > end_date:
        raise InvalidArgumentError("Start date must be before end date", field="start_date")


def _validate_limit(limit: int) -> None:
    if limit <= 0:
        raise InvalidArgumentError("Limit should be positive", field="limit")


def _user_exercise_logs(user_id: uuid.UUID, exercise_id: uuid.UUID):
    return (
        select(ExerciseLog)
        .join(WorkoutSession, ExerciseLog.session_id == WorkoutSession.id)
        .where(WorkoutSession.user_id == user_id, ExerciseLog.exercise_id == exercise_id)
    )


def percentage_change(first: float, last: float) -> float:
    return round((last - first) / first * 100, 2)


async def total_volume(
    db: AsyncSession,
    user_id: uuid.UUID,
    exercise_id: uuid.UUID,
    start_date: date,
    end_date: date,
) -> float:
    """Sum of sets x reps x weight over the user's logs for the exercise, by session date (inclusive)."""
    _validate_date_range(start_date, end_date)
    stmt = (
        select(
            func.coalesce(
                func.sum(ExerciseLog.sets_completed * ExerciseLog.reps_completed * ExerciseLog.weight_used_kg),
                0,
            )
        )
        .join(WorkoutSession, ExerciseLog.session_id == WorkoutSession.id)
        .where(
            WorkoutSession.user_id == user_id,
            ExerciseLog.exercise_id == exercise_id,
            WorkoutSession.scheduled_date >= start_date,
            WorkoutSession.scheduled_date <= end_date,
            ExerciseLog.reps_completed.is_not(None),
            ExerciseLog.weight_used_kg.is_not(None),
        )
    )
    result = await db.execute(stmt)
    return float(result.scalar() or 0.0)


async def personal_best_weight(db: AsyncSession, user_id: uuid.UUID, exercise_id: uuid.UUID) -> float | None:
    stmt = (
        select(func.max(ExerciseLog.weight_used_kg))
        .join(WorkoutSession, ExerciseLog.session_id == WorkoutSession.id)
        .where(
            WorkoutSession.user_id == user_id,
            ExerciseLog.exercise_id == exercise_id,
            ExerciseLog.weight_used_kg.is_not(None),
        )
    )
    best = (await db.execute(stmt)).scalar()
    return float(best) if best is not None else None


async def personal_best_reps(db: AsyncSession, user_id: uuid.UUID, exercise_id: uuid.UUID) -> int | None:
    stmt = (
        select(func.max(ExerciseLog.reps_completed))
        .join(WorkoutSession, ExerciseLog.session_id == WorkoutSession.id)
        .where(
            WorkoutSession.user_id == user_id,
            ExerciseLog.exercise_id == exercise_id,
            ExerciseLog.reps_completed.is_not(None),
        )
    )
    best = (await db.execute(stmt)).scalar()
    return int(best) if best is not None else None


async def chronological_logs(db: AsyncSession, user_id: uuid.UUID, exercise_id: uuid.UUID) -> list[ExerciseLog]:
    stmt = _user_exercise_logs(user_id, exercise_id).order_by(
        WorkoutSession.scheduled_date.asc(),
        WorkoutSession.actual_start_time.asc(),
        ExerciseLog.created_at.asc(),
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


def progress_from_logs(logs: list[ExerciseLog]) -> float | None:
    """Compare the chronologically first and last logs, by weight when usable, otherwise by reps."""
    if len(logs) < 2:
        return None
    first, last = logs[0], logs[-1]

    if first.weight_used_kg is not None and last.weight_used_kg is not None and first.weight_used_kg > 0:
        return percentage_change(float(first.weight_used_kg), float(last.weight_used_kg))

    if first.reps_completed is not None and last.reps_completed is not None and first.reps_completed > 0:
        return percentage_change(float(first.reps_completed), float(last.reps_completed))

    return None


async def progress_percentage(db: AsyncSession, user_id: uuid.UUID, exercise_id: uuid.UUID) -> float | None:
    return progress_from_logs(await chronological_logs(db, user_id, exercise_id))


async def exercise_progress(db: AsyncSession, user_id: uuid.UUID, exercise_id: uuid.UUID) -> ExerciseProgress:
    logs = await chronological_logs(db, user_id, exercise_id)
    return ExerciseProgress(
        exercise_id=exercise_id,
        personal_best_weight_kg=await personal_best_weight(db, user_id, exercise_id),
        personal_best_reps=await personal_best_reps(db, user_id, exercise_id),
        progress_percentage=progress_from_logs(logs),
        total_logs=len(logs),
    )


def elapsed_minutes(session: WorkoutSession, now: datetime) -> int:
    if session.status == SessionStatus.IN_PROGRESS:
        if session.actual_start_time is None:
            return 0
        return whole_minutes_between(session.actual_start_time, now)
    if session.status == SessionStatus.COMPLETED:
        return session.actual_duration_minutes or 0
    return 0


async def session_summary(db: AsyncSession, session_id: uuid.UUID, now: datetime) -> SessionSummary:
    session = await SessionLifecycleService.get(db, session_id)
    result = await db.execute(select(ExerciseLog).where(ExerciseLog.session_id == session_id))
    logs = result.scalars().all()

    return SessionSummary(
        session_id=session.id,
        status=session.status,
        total_exercises=len(logs),
        total_sets=sum(log.sets_completed or 0 for log in logs),
        estimated_calories=sum(log.calories_burned or 0 for log in logs),
        elapsed_minutes=elapsed_minutes(session, now),
    )


async def user_statistics(db: AsyncSession, user_id: uuid.UUID) -> UserStatistics:
    await collaborators.resolve_user(db, user_id)
    completed = (WorkoutSession.user_id == user_id, WorkoutSession.status == SessionStatus.COMPLETED)

    stmt = select(
        func.count(WorkoutSession.id),
        func.avg(WorkoutSession.actual_duration_minutes),
        func.coalesce(func.sum(WorkoutSession.calories_burned), 0),
    ).where(*completed)
    count, avg_duration, total_calories = (await db.execute(stmt)).one()

    distinct_stmt = (
        select(func.count(func.distinct(ExerciseLog.exercise_id)))
        .join(WorkoutSession, ExerciseLog.session_id == WorkoutSession.id)
        .where(*completed)
    )
    distinct_exercises = (await db.execute(distinct_stmt)).scalar() or 0

    return UserStatistics(
        user_id=user_id,
        completed_sessions=count or 0,
        average_duration_minutes=round(float(avg_duration), 2) if avg_duration is not None else 0.0,
        total_calories_burned=int(total_calories or 0),
        distinct_exercises=distinct_exercises,
    )


async def recent_logs(db: AsyncSession, user_id: uuid.UUID, limit: int) -> list[ExerciseLog]:
    _validate_limit(limit)
    stmt = (
        select(ExerciseLog)
        .join(WorkoutSession, ExerciseLog.session_id == WorkoutSession.id)
        .where(WorkoutSession.user_id == user_id)
        .order_by(
            WorkoutSession.scheduled_date.desc(),
            ExerciseLog.created_at.desc(),
            ExerciseLog.exercise_order.asc(),
        )
        .limit(limit)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def top_performing_exercises(db: AsyncSession, user_id: uuid.UUID, limit: int) -> list[ExerciseLog]:
    """Hard-rated (difficulty >= 4) entries among the user's most recent logs."""
    _validate_limit(limit)
    candidates = await recent_logs(db, user_id, limit * 3)
    return [log for log in candidates if log.difficulty_rating is not None and log.difficulty_rating >= 4][:limit]
