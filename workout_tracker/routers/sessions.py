from typing import Annotated
from datetime import date, datetime, time
import uuid

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from workout_tracker.core.responses import DOMAIN_ERROR_RESPONSES, StandardResponse
from workout_tracker.database import get_db
from workout_tracker.models.enums import SessionStatus
from workout_tracker.routers.exercise_logs import ExerciseLogCreate, ExerciseLogResponse
from workout_tracker.services import metrics_service
from workout_tracker.services.clock import Clock, get_clock
from workout_tracker.services.exercise_log_service import ExerciseLogService
from workout_tracker.services.session_lifecycle import SessionLifecycleService

router = APIRouter(responses=DOMAIN_ERROR_RESPONSES)


class SessionScheduleRequest(BaseModel):
    user_id: uuid.UUID
    plan_id: uuid.UUID | None = None
    scheduled_date: date
    scheduled_time: time | None = None
    notes: str | None = None


class SessionUpdateRequest(BaseModel):
    notes: str | None = None
    scheduled_date: date | None = None
    scheduled_time: time | None = None


class SessionRescheduleRequest(BaseModel):
    scheduled_date: date
    scheduled_time: time | None = None


class SessionCompleteRequest(BaseModel):
    calories_burned: int | None = None
    overall_rating: int | None = None
    energy_level_before: int | None = None
    energy_level_after: int | None = None
    notes: str | None = None


class ExerciseLogBatchRequest(BaseModel):
    entries: list[ExerciseLogCreate]


class SessionResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    plan_id: uuid.UUID | None = None
    scheduled_date: date
    scheduled_time: time | None = None
    status: SessionStatus
    actual_start_time: datetime | None = None
    actual_end_time: datetime | None = None
    actual_duration_minutes: int | None = None
    calories_burned: int | None = None
    overall_rating: int | None = None
    energy_level_before: int | None = None
    energy_level_after: int | None = None
    notes: str | None = None

    class Config:
        from_attributes = True


class SessionSummaryResponse(BaseModel):
    session_id: uuid.UUID
    status: SessionStatus
    total_exercises: int
    total_sets: int
    estimated_calories: int
    elapsed_minutes: int

    class Config:
        from_attributes = True


class SessionCompletionResponse(BaseModel):
    session: SessionResponse
    summary: SessionSummaryResponse


class SweepResponse(BaseModel):
    marked_missed: int


class AvailabilityResponse(BaseModel):
    available: bool
    scheduled_date: date
    scheduled_time: time | None = None


@router.post("/", response_model=StandardResponse[SessionResponse], status_code=status.HTTP_201_CREATED)
async def schedule_session(
    data: SessionScheduleRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
):
    """Schedule a new PLANNED session. The date cannot be in the past."""
    session = await SessionLifecycleService.schedule(
        db,
        data.user_id,
        data.scheduled_date,
        clock(),
        plan_id=data.plan_id,
        scheduled_time=data.scheduled_time,
        notes=data.notes,
    )
    return StandardResponse(data=SessionResponse.model_validate(session), message="Workout session scheduled")


@router.post("/sweep-missed", response_model=StandardResponse[SweepResponse])
async def sweep_missed_sessions(
    db: Annotated[AsyncSession, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
):
    marked = await SessionLifecycleService.sweep_missed(db, clock())
    return StandardResponse(data=SweepResponse(marked_missed=marked))


@router.get("/user/{user_id}", response_model=StandardResponse[list[SessionResponse]])
async def list_user_sessions(
    user_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    status: str | None = Query(None, description="PLANNED, IN_PROGRESS, COMPLETED, CANCELLED or MISSED"),
):
    sessions = await SessionLifecycleService.list_for_user(
        db,
        user_id,
        start_date=start_date,
        end_date=end_date,
        status=SessionStatus.parse(status) if status else None,
    )
    return StandardResponse(data=[SessionResponse.model_validate(s) for s in sessions])


@router.get("/user/{user_id}/today", response_model=StandardResponse[list[SessionResponse]])
async def list_today_sessions(
    user_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
):
    sessions = await SessionLifecycleService.list_today(db, user_id, clock())
    return StandardResponse(data=[SessionResponse.model_validate(s) for s in sessions])


@router.get("/user/{user_id}/recent-completed", response_model=StandardResponse[list[SessionResponse]])
async def list_recent_completed_sessions(
    user_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """The five most recently completed sessions."""
    sessions = await SessionLifecycleService.recent_completed(db, user_id)
    return StandardResponse(data=[SessionResponse.model_validate(s) for s in sessions])


@router.get("/user/{user_id}/availability", response_model=StandardResponse[AvailabilityResponse])
async def check_availability(
    user_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    scheduled_date: date = Query(...),
    scheduled_time: time | None = Query(None),
):
    available = await SessionLifecycleService.is_slot_available(db, user_id, scheduled_date, scheduled_time)
    return StandardResponse(
        data=AvailabilityResponse(
            available=available, scheduled_date=scheduled_date, scheduled_time=scheduled_time
        ),
        message="Slot available" if available else "Slot occupied",
    )


@router.get("/user/{user_id}/exercise-logs", response_model=StandardResponse[list[ExerciseLogResponse]])
async def list_user_exercise_logs(
    user_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    logs = await ExerciseLogService.list_for_user(db, user_id)
    return StandardResponse(data=[ExerciseLogResponse.model_validate(log) for log in logs])


@router.get("/user/{user_id}/exercise-logs/period", response_model=StandardResponse[list[ExerciseLogResponse]])
async def list_user_exercise_logs_for_period(
    user_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    start_date: date = Query(...),
    end_date: date = Query(...),
):
    logs = await ExerciseLogService.list_for_user(db, user_id, start_date=start_date, end_date=end_date)
    return StandardResponse(data=[ExerciseLogResponse.model_validate(log) for log in logs])


@router.get("/{session_id}", response_model=StandardResponse[SessionResponse])
async def get_session(
    session_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    session = await SessionLifecycleService.get(db, session_id)
    return StandardResponse(data=SessionResponse.model_validate(session))


@router.patch("/{session_id}", response_model=StandardResponse[SessionResponse])
async def update_session(
    session_id: uuid.UUID,
    data: SessionUpdateRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
):
    """Edit notes or the schedule of a session that has not started yet."""
    session = await SessionLifecycleService.update(db, session_id, data.model_dump(exclude_unset=True), clock())
    return StandardResponse(data=SessionResponse.model_validate(session), message="Workout session updated")


@router.delete("/{session_id}", response_model=StandardResponse)
async def delete_session(
    session_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    await SessionLifecycleService.delete(db, session_id)
    return StandardResponse(message="Workout session deleted")


@router.post("/{session_id}/start", response_model=StandardResponse[SessionResponse])
async def start_session(
    session_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
):
    session = await SessionLifecycleService.start(db, session_id, clock())
    return StandardResponse(data=SessionResponse.model_validate(session), message="Workout session started")


@router.post("/{session_id}/complete", response_model=StandardResponse[SessionCompletionResponse])
async def complete_session(
    session_id: uuid.UUID,
    data: SessionCompleteRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
):
    now = clock()
    session = await SessionLifecycleService.complete(db, session_id, now, **data.model_dump())
    summary = await metrics_service.session_summary(db, session_id, now)
    return StandardResponse(
        data=SessionCompletionResponse(
            session=SessionResponse.model_validate(session),
            summary=SessionSummaryResponse.model_validate(summary),
        ),
        message="Workout session completed",
    )


@router.post("/{session_id}/cancel", response_model=StandardResponse[SessionResponse])
async def cancel_session(
    session_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
):
    session = await SessionLifecycleService.cancel(db, session_id, clock())
    return StandardResponse(data=SessionResponse.model_validate(session), message="Workout session cancelled")


@router.post("/{session_id}/missed", response_model=StandardResponse[SessionResponse])
async def mark_session_missed(
    session_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
):
    session = await SessionLifecycleService.mark_missed(db, session_id, clock())
    return StandardResponse(data=SessionResponse.model_validate(session), message="Workout session marked as missed")


@router.put("/{session_id}/reschedule", response_model=StandardResponse[SessionResponse])
async def reschedule_session(
    session_id: uuid.UUID,
    data: SessionRescheduleRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
):
    session = await SessionLifecycleService.reschedule(
        db, session_id, data.scheduled_date, clock(), new_time=data.scheduled_time
    )
    return StandardResponse(data=SessionResponse.model_validate(session), message="Workout session rescheduled")


@router.get("/{session_id}/summary", response_model=StandardResponse[SessionSummaryResponse])
async def get_session_summary(
    session_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
):
    summary = await metrics_service.session_summary(db, session_id, clock())
    return StandardResponse(data=SessionSummaryResponse.model_validate(summary))


@router.post(
    "/{session_id}/exercises",
    response_model=StandardResponse[ExerciseLogResponse],
    status_code=status.HTTP_201_CREATED,
)
async def log_exercise(
    session_id: uuid.UUID,
    data: ExerciseLogCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
):
    """Record one exercise in an in-progress session."""
    log = await ExerciseLogService.log_exercise(db, session_id, data.model_dump(), clock())
    return StandardResponse(data=ExerciseLogResponse.model_validate(log), message="Exercise logged")


@router.post(
    "/{session_id}/exercises/batch",
    response_model=StandardResponse[list[ExerciseLogResponse]],
    status_code=status.HTTP_201_CREATED,
)
async def log_exercise_batch(
    session_id: uuid.UUID,
    data: ExerciseLogBatchRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
):
    """Record several exercises. Entries are stored one by one; a failing entry leaves earlier ones in place."""
    logs = await ExerciseLogService.log_batch(db, session_id, [entry.model_dump() for entry in data.entries], clock())
    return StandardResponse(
        data=[ExerciseLogResponse.model_validate(log) for log in logs],
        message=f"{len(logs)} exercises logged",
    )


@router.get("/{session_id}/exercises", response_model=StandardResponse[list[ExerciseLogResponse]])
async def list_session_exercises(
    session_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    logs = await ExerciseLogService.list_for_session(db, session_id)
    return StandardResponse(data=[ExerciseLogResponse.model_validate(log) for log in logs])
