import logging
import uuid
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from workout_tracker.core.exceptions import IllegalStateError, InvalidArgumentError, NotFoundError
from workout_tracker.models.enums import SessionStatus
from workout_tracker.models.workout_log import ExerciseLog, WorkoutSession
from workout_tracker.services import collaborators
from workout_tracker.services.session_lifecycle import SessionLifecycleService

logger = logging.getLogger(__name__)

# Fields a caller may set on a log; session_id/exercise_id are fixed at creation.
PERFORMANCE_FIELDS = (
    "exercise_order",
    "sets_completed",
    "reps_completed",
    "weight_used_kg",
    "duration_seconds",
    "distance_meters",
    "calories_burned",
    "difficulty_rating",
    "notes",
)
OPTIONAL_NON_NEGATIVE = (
    "reps_completed",
    "weight_used_kg",
    "duration_seconds",
    "distance_meters",
    "calories_burned",
)
UPDATABLE_SESSION_STATES = frozenset({SessionStatus.IN_PROGRESS, SessionStatus.COMPLETED})
# Upper bound of the Numeric(8, 2) columns backing weight and distance.
MAX_MEASUREMENT = Decimal("999999.99")


def validate_performance(values: Mapping[str, Any]) -> None:
    """Field-level rules shared by creation and update. Raises InvalidArgumentError naming the field."""
    sets_completed = values.get("sets_completed")
    if sets_completed is None:
        raise InvalidArgumentError("sets_completed is required", field="sets_completed")
    if sets_completed < 0:
        raise InvalidArgumentError("Number of completed sets must be zero or positive", field="sets_completed")

    exercise_order = values.get("exercise_order")
    if exercise_order is None or exercise_order < 1:
        raise InvalidArgumentError("Exercise order must be positive", field="exercise_order")

    for field in OPTIONAL_NON_NEGATIVE:
        value = values.get(field)
        if value is not None and value < 0:
            raise InvalidArgumentError(f"{field} cannot be negative", field=field)

    for field in ("weight_used_kg", "distance_meters"):
        value = values.get(field)
        if value is not None and value > MAX_MEASUREMENT:
            raise InvalidArgumentError(f"{field} cannot exceed {MAX_MEASUREMENT}", field=field)

    rating = values.get("difficulty_rating")
    if rating is not None and not 1 <= rating <= 5:
        raise InvalidArgumentError("Difficulty rating must be between 1 and 5", field="difficulty_rating")


def _performance_values(entry: Mapping[str, Any]) -> dict[str, Any]:
    values = {field: entry.get(field) for field in PERFORMANCE_FIELDS}
    for field in ("weight_used_kg", "distance_meters"):
        if values[field] is not None and not isinstance(values[field], Decimal):
            values[field] = Decimal(str(values[field]))
    return values


class ExerciseLogService:
    @staticmethod
    async def get_log(db: AsyncSession, log_id: uuid.UUID) -> ExerciseLog:
        log = await db.get(ExerciseLog, log_id)
        if not log:
            raise NotFoundError(f"Exercise log {log_id} not found", field="log_id")
        return log

    @staticmethod
    async def _owning_session(db: AsyncSession, log: ExerciseLog) -> WorkoutSession:
        return await SessionLifecycleService.get(db, log.session_id)

    @staticmethod
    async def log_exercise(
        db: AsyncSession,
        session_id: uuid.UUID,
        entry: Mapping[str, Any],
        now: datetime,
    ) -> ExerciseLog:
        session = await SessionLifecycleService.get(db, session_id)
        if session.status != SessionStatus.IN_PROGRESS:
            raise IllegalStateError(
                f"Exercise logging requires an in-progress session (current state: {session.status.value})",
                current_state=session.status.value,
            )

        exercise_id = entry.get("exercise_id")
        if exercise_id is None:
            raise InvalidArgumentError("exercise_id is required", field="exercise_id")
        await collaborators.resolve_exercise(db, exercise_id)

        values = _performance_values(entry)
        validate_performance(values)

        log = ExerciseLog(session_id=session_id, exercise_id=exercise_id, created_at=now, **values)
        db.add(log)
        await db.commit()
        logger.info("Logged exercise %s in session %s (order %s)", exercise_id, session_id, log.exercise_order)
        return log

    @staticmethod
    async def log_batch(
        db: AsyncSession,
        session_id: uuid.UUID,
        entries: Iterable[Mapping[str, Any]],
        now: datetime,
    ) -> list[ExerciseLog]:
        """Log several entries, each committed on its own.

        A failure on one entry propagates immediately; entries before it stay recorded.
        Callers needing all-or-nothing must wrap the batch themselves.
        """
        logs = []
        for entry in entries:
            logs.append(await ExerciseLogService.log_exercise(db, session_id, entry, now))
        return logs

    @staticmethod
    async def update_log(db: AsyncSession, log_id: uuid.UUID, patch: Mapping[str, Any]) -> ExerciseLog:
        log = await ExerciseLogService.get_log(db, log_id)
        session = await ExerciseLogService._owning_session(db, log)
        if session.status not in UPDATABLE_SESSION_STATES:
            raise IllegalStateError(
                f"Logs can only be updated for in-progress or completed sessions (current state: {session.status.value})",
                current_state=session.status.value,
            )

        unknown = set(patch) - set(PERFORMANCE_FIELDS)
        if unknown:
            field = sorted(unknown)[0]
            raise InvalidArgumentError(f"Field '{field}' cannot be changed on an exercise log", field=field)

        merged = {field: getattr(log, field) for field in PERFORMANCE_FIELDS}
        merged.update(_performance_values({**merged, **patch}))
        validate_performance(merged)

        for field, value in merged.items():
            setattr(log, field, value)
        await db.commit()
        return log

    @staticmethod
    async def delete_log(db: AsyncSession, log_id: uuid.UUID) -> None:
        log = await ExerciseLogService.get_log(db, log_id)
        session = await ExerciseLogService._owning_session(db, log)
        if session.status != SessionStatus.IN_PROGRESS:
            raise IllegalStateError(
                f"Logs can only be deleted while the session is in progress (current state: {session.status.value})",
                current_state=session.status.value,
            )
        await db.delete(log)
        await db.commit()
        logger.info("Deleted exercise log %s from session %s", log_id, session.id)

    @staticmethod
    async def list_for_session(db: AsyncSession, session_id: uuid.UUID) -> list[ExerciseLog]:
        await SessionLifecycleService.get(db, session_id)
        stmt = (
            select(ExerciseLog)
            .where(ExerciseLog.session_id == session_id)
            .order_by(ExerciseLog.exercise_order.asc(), ExerciseLog.created_at.asc())
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_for_user(
        db: AsyncSession,
        user_id: uuid.UUID,
        *,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[ExerciseLog]:
        """Every exercise the user logged, optionally bounded by the sessions' scheduled dates."""
        await collaborators.resolve_user(db, user_id)
        if start_date and end_date and start_date > end_date:
            raise InvalidArgumentError("Start date must be before end date", field="start_date")

        stmt = select(ExerciseLog).join(WorkoutSession).where(WorkoutSession.user_id == user_id)
        if start_date:
            stmt = stmt.where(WorkoutSession.scheduled_date >= start_date)
        if end_date:
            stmt = stmt.where(WorkoutSession.scheduled_date <= end_date)
        stmt = stmt.order_by(WorkoutSession.scheduled_date.desc(), ExerciseLog.created_at.desc())
        result = await db.execute(stmt)
        return list(result.scalars().all())
