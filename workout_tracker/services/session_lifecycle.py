"""Workout session state machine.

PLANNED -> IN_PROGRESS -> COMPLETED, PLANNED/IN_PROGRESS -> CANCELLED and
PLANNED -> MISSED. COMPLETED, CANCELLED and MISSED are terminal.

Every mutation goes through ``_persist``: the new column values are computed up
front and written with a conditional UPDATE keyed on the status observed when
the decision was made, so two callers racing on the same session cannot both
win. Once the UPDATE lands, every written column is copied onto the loaded
instance as its committed value.
"""
import logging
import uuid
from datetime import date, datetime, time
from enum import Enum
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from workout_tracker.core.exceptions import IllegalStateError, InvalidArgumentError, NotFoundError
from workout_tracker.models.enums import SessionStatus
from workout_tracker.models.workout_log import ExerciseLog, WorkoutSession
from workout_tracker.services import collaborators
from workout_tracker.services.clock import local_now, local_today, whole_minutes_between

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset({"notes", "scheduled_date", "scheduled_time"})


class SessionEvent(str, Enum):
    START = "START"
    COMPLETE = "COMPLETE"
    CANCEL = "CANCEL"
    MISS = "MISS"


TRANSITIONS: dict[SessionEvent, tuple[frozenset[SessionStatus], SessionStatus]] = {
    SessionEvent.START: (frozenset({SessionStatus.PLANNED}), SessionStatus.IN_PROGRESS),
    SessionEvent.COMPLETE: (frozenset({SessionStatus.IN_PROGRESS}), SessionStatus.COMPLETED),
    SessionEvent.CANCEL: (frozenset({SessionStatus.PLANNED, SessionStatus.IN_PROGRESS}), SessionStatus.CANCELLED),
    SessionEvent.MISS: (frozenset({SessionStatus.PLANNED}), SessionStatus.MISSED),
}

_REJECTIONS = {
    SessionEvent.START: "Only a planned session can be started",
    SessionEvent.COMPLETE: "Only an in-progress session can be completed",
    SessionEvent.CANCEL: "Only a planned or in-progress session can be cancelled",
    SessionEvent.MISS: "Only a planned session can be marked as missed",
}


def _illegal(message: str, status: SessionStatus) -> IllegalStateError:
    return IllegalStateError(f"{message} (current state: {status.value})", current_state=status.value)


def _check_rating(value: int | None, field: str) -> None:
    if value is not None and not 1 <= value <= 5:
        raise InvalidArgumentError(f"{field} must be between 1 and 5", field=field)


def _check_not_past(scheduled_date: date | None, now: datetime, field: str = "scheduled_date") -> None:
    if scheduled_date is None:
        raise InvalidArgumentError(f"{field} is required", field=field)
    if scheduled_date < local_today(now):
        raise InvalidArgumentError("A workout cannot be scheduled in the past", field=field)


def plan_transition(
    session: WorkoutSession,
    event: SessionEvent,
    now: datetime,
    *,
    calories_burned: int | None = None,
    overall_rating: int | None = None,
    energy_level_before: int | None = None,
    energy_level_after: int | None = None,
    notes: str | None = None,
) -> dict[str, Any]:
    """Validate ``event`` against the session's current state and return every column it changes."""
    allowed, target = TRANSITIONS[event]
    if session.status not in allowed:
        raise _illegal(_REJECTIONS[event], session.status)

    changes: dict[str, Any] = {"status": target, "updated_at": now}
    if event is SessionEvent.START:
        changes["actual_start_time"] = now
    elif event is SessionEvent.COMPLETE:
        if calories_burned is not None and calories_burned < 0:
            raise InvalidArgumentError("Burned calories cannot be negative", field="calories_burned")
        _check_rating(overall_rating, "overall_rating")
        _check_rating(energy_level_before, "energy_level_before")
        _check_rating(energy_level_after, "energy_level_after")

        changes["actual_end_time"] = now
        changes["actual_duration_minutes"] = (
            whole_minutes_between(session.actual_start_time, now) if session.actual_start_time else None
        )
        changes["calories_burned"] = calories_burned
        changes["overall_rating"] = overall_rating
        changes["energy_level_before"] = energy_level_before
        changes["energy_level_after"] = energy_level_after
        if notes:
            changes["notes"] = f"{session.notes}\n{notes}" if session.notes else notes
    return changes


class SessionLifecycleService:
    @staticmethod
    async def get(db: AsyncSession, session_id: uuid.UUID) -> WorkoutSession:
        session = await db.get(WorkoutSession, session_id)
        if not session:
            raise NotFoundError(f"Workout session {session_id} not found", field="session_id")
        return session

    @staticmethod
    async def _persist(db: AsyncSession, session: WorkoutSession, changes: dict[str, Any]) -> WorkoutSession:
        session_id = session.id
        observed = session.status
        stmt = (
            update(WorkoutSession)
            .where(WorkoutSession.id == session_id, WorkoutSession.status == observed)
            .values(**changes)
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)
        if result.rowcount != 1:
            # rollback expires the instance; only the locals are safe to read from here on
            await db.rollback()
            current = await db.scalar(select(WorkoutSession.status).where(WorkoutSession.id == session_id))
            if current is None:
                raise NotFoundError(f"Workout session {session_id} not found", field="session_id")
            logger.warning(
                "Session %s changed concurrently (expected %s, found %s)", session_id, observed.value, current.value
            )
            raise _illegal("Session was modified by another request", current)
        for key, value in changes.items():
            set_committed_value(session, key, value)
        await db.commit()
        return session

    @staticmethod
    async def _transition(
        db: AsyncSession,
        session_id: uuid.UUID,
        event: SessionEvent,
        now: datetime,
        **completion: Any,
    ) -> WorkoutSession:
        session = await SessionLifecycleService.get(db, session_id)
        changes = plan_transition(session, event, now, **completion)
        session = await SessionLifecycleService._persist(db, session, changes)
        logger.info("Session %s: %s -> %s", session_id, event.value, session.status.value)
        return session

    @staticmethod
    async def schedule(
        db: AsyncSession,
        user_id: uuid.UUID,
        scheduled_date: date,
        now: datetime,
        *,
        plan_id: uuid.UUID | None = None,
        scheduled_time: time | None = None,
        notes: str | None = None,
    ) -> WorkoutSession:
        await collaborators.resolve_user(db, user_id)
        if plan_id is not None:
            plan = await collaborators.resolve_plan(db, plan_id)
            if plan.owner_id != user_id:
                raise InvalidArgumentError(
                    f"Workout plan {plan_id} does not belong to user {user_id}", field="plan_id"
                )
        _check_not_past(scheduled_date, now)

        session = WorkoutSession(
            user_id=user_id,
            plan_id=plan_id,
            scheduled_date=scheduled_date,
            scheduled_time=scheduled_time,
            status=SessionStatus.PLANNED,
            notes=notes,
            actual_start_time=None,
            actual_end_time=None,
            actual_duration_minutes=None,
            calories_burned=None,
            overall_rating=None,
            energy_level_before=None,
            energy_level_after=None,
            created_at=now,
            updated_at=now,
        )
        db.add(session)
        await db.commit()
        logger.info("Scheduled session %s for user %s on %s", session.id, user_id, scheduled_date)
        return session

    @staticmethod
    async def start(db: AsyncSession, session_id: uuid.UUID, now: datetime) -> WorkoutSession:
        return await SessionLifecycleService._transition(db, session_id, SessionEvent.START, now)

    @staticmethod
    async def complete(
        db: AsyncSession,
        session_id: uuid.UUID,
        now: datetime,
        *,
        calories_burned: int | None = None,
        overall_rating: int | None = None,
        energy_level_before: int | None = None,
        energy_level_after: int | None = None,
        notes: str | None = None,
    ) -> WorkoutSession:
        return await SessionLifecycleService._transition(
            db,
            session_id,
            SessionEvent.COMPLETE,
            now,
            calories_burned=calories_burned,
            overall_rating=overall_rating,
            energy_level_before=energy_level_before,
            energy_level_after=energy_level_after,
            notes=notes,
        )

    @staticmethod
    async def cancel(db: AsyncSession, session_id: uuid.UUID, now: datetime) -> WorkoutSession:
        return await SessionLifecycleService._transition(db, session_id, SessionEvent.CANCEL, now)

    @staticmethod
    async def mark_missed(db: AsyncSession, session_id: uuid.UUID, now: datetime) -> WorkoutSession:
        return await SessionLifecycleService._transition(db, session_id, SessionEvent.MISS, now)

    @staticmethod
    async def reschedule(
        db: AsyncSession,
        session_id: uuid.UUID,
        new_date: date,
        now: datetime,
        new_time: time | None = None,
    ) -> WorkoutSession:
        session = await SessionLifecycleService.get(db, session_id)
        if session.status != SessionStatus.PLANNED:
            raise _illegal("Only a planned session can be rescheduled", session.status)
        _check_not_past(new_date, now)

        session = await SessionLifecycleService._persist(
            db,
            session,
            {"scheduled_date": new_date, "scheduled_time": new_time, "updated_at": now},
        )
        logger.info("Rescheduled session %s to %s %s", session_id, new_date, new_time or "")
        return session

    @staticmethod
    async def update(
        db: AsyncSession,
        session_id: uuid.UUID,
        patch: dict[str, Any],
        now: datetime,
    ) -> WorkoutSession:
        unknown = set(patch) - EDITABLE_FIELDS
        if unknown:
            field = sorted(unknown)[0]
            raise InvalidArgumentError(f"Field '{field}' cannot be edited directly", field=field)

        session = await SessionLifecycleService.get(db, session_id)
        if session.status != SessionStatus.PLANNED:
            raise _illegal("Cannot modify an in-progress or completed session", session.status)
        if "scheduled_date" in patch:
            _check_not_past(patch["scheduled_date"], now)

        return await SessionLifecycleService._persist(db, session, {**patch, "updated_at": now})

    @staticmethod
    async def delete(db: AsyncSession, session_id: uuid.UUID) -> None:
        session = await SessionLifecycleService.get(db, session_id)
        if session.status == SessionStatus.IN_PROGRESS:
            raise _illegal("An in-progress session cannot be deleted", session.status)

        # Remove dependent exercise logs first to avoid FK violations.
        await db.execute(delete(ExerciseLog).where(ExerciseLog.session_id == session_id))
        result = await db.execute(
            delete(WorkoutSession)
            .where(WorkoutSession.id == session_id, WorkoutSession.status != SessionStatus.IN_PROGRESS)
        )
        if result.rowcount != 1:
            await db.rollback()
            raise _illegal("An in-progress session cannot be deleted", SessionStatus.IN_PROGRESS)
        await db.commit()
        logger.info("Deleted session %s", session_id)

    @staticmethod
    async def list_for_user(
        db: AsyncSession,
        user_id: uuid.UUID,
        *,
        start_date: date | None = None,
        end_date: date | None = None,
        status: SessionStatus | None = None,
    ) -> list[WorkoutSession]:
        await collaborators.resolve_user(db, user_id)
        if start_date and end_date and start_date > end_date:
            raise InvalidArgumentError("Start date must be before end date", field="start_date")

        stmt = select(WorkoutSession).where(WorkoutSession.user_id == user_id)
        if start_date:
            stmt = stmt.where(WorkoutSession.scheduled_date >= start_date)
        if end_date:
            stmt = stmt.where(WorkoutSession.scheduled_date <= end_date)
        if status:
            stmt = stmt.where(WorkoutSession.status == status)
        stmt = stmt.order_by(WorkoutSession.scheduled_date.desc(), WorkoutSession.scheduled_time.desc())
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_today(db: AsyncSession, user_id: uuid.UUID, now: datetime) -> list[WorkoutSession]:
        today = local_today(now)
        return await SessionLifecycleService.list_for_user(db, user_id, start_date=today, end_date=today)

    @staticmethod
    async def recent_completed(db: AsyncSession, user_id: uuid.UUID, limit: int = 5) -> list[WorkoutSession]:
        """The user's most recently finished sessions, newest end time first."""
        await collaborators.resolve_user(db, user_id)
        stmt = (
            select(WorkoutSession)
            .where(WorkoutSession.user_id == user_id, WorkoutSession.status == SessionStatus.COMPLETED)
            .order_by(WorkoutSession.actual_end_time.desc())
            .limit(limit)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def is_slot_available(
        db: AsyncSession,
        user_id: uuid.UUID,
        scheduled_date: date,
        scheduled_time: time | None = None,
    ) -> bool:
        """True when no PLANNED or IN_PROGRESS session of the user occupies the slot.

        A slot without a time only collides with other untimed sessions on that date.
        """
        await collaborators.resolve_user(db, user_id)
        stmt = select(WorkoutSession.id).where(
            WorkoutSession.user_id == user_id,
            WorkoutSession.scheduled_date == scheduled_date,
            WorkoutSession.status.in_((SessionStatus.PLANNED, SessionStatus.IN_PROGRESS)),
        )
        if scheduled_time is None:
            stmt = stmt.where(WorkoutSession.scheduled_time.is_(None))
        else:
            stmt = stmt.where(WorkoutSession.scheduled_time == scheduled_time)
        return await db.scalar(stmt.limit(1)) is None

    @staticmethod
    async def sweep_missed(db: AsyncSession, now: datetime) -> int:
        """Mark planned sessions whose scheduled moment has passed as MISSED. Returns how many were marked."""
        today = local_today(now)
        current_time = local_now(now).time()
        stmt = select(WorkoutSession.id, WorkoutSession.scheduled_date, WorkoutSession.scheduled_time).where(
            WorkoutSession.status == SessionStatus.PLANNED,
            WorkoutSession.scheduled_date <= today,
        )
        rows = (await db.execute(stmt)).all()

        marked = 0
        for row in rows:
            overdue = row.scheduled_date < today or (
                row.scheduled_time is not None and row.scheduled_time < current_time
            )
            if not overdue:
                continue
            try:
                await SessionLifecycleService.mark_missed(db, row.id, now)
            except (IllegalStateError, NotFoundError) as exc:
                logger.info("Skipping session %s during missed sweep: %s", row.id, exc.message)
                continue
            marked += 1

        if marked:
            logger.info("Marked %s planned sessions as missed", marked)
        return marked
