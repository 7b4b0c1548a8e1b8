from typing import Annotated
from datetime import datetime
from decimal import Decimal
import uuid

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from workout_tracker.core.responses import DOMAIN_ERROR_RESPONSES, StandardResponse
from workout_tracker.database import get_db
from workout_tracker.services.exercise_log_service import ExerciseLogService

router = APIRouter(responses=DOMAIN_ERROR_RESPONSES)


class ExerciseLogCreate(BaseModel):
    # Range rules are enforced by the service so failures name the field with a 400.
    exercise_id: uuid.UUID
    exercise_order: int | None = None
    sets_completed: int | None = None
    reps_completed: int | None = None
    weight_used_kg: Decimal | None = None
    duration_seconds: int | None = None
    distance_meters: Decimal | None = None
    calories_burned: int | None = None
    difficulty_rating: int | None = None
    notes: str | None = None


class ExerciseLogUpdate(BaseModel):
    exercise_order: int | None = None
    sets_completed: int | None = None
    reps_completed: int | None = None
    weight_used_kg: Decimal | None = None
    duration_seconds: int | None = None
    distance_meters: Decimal | None = None
    calories_burned: int | None = None
    difficulty_rating: int | None = None
    notes: str | None = None


class ExerciseLogResponse(BaseModel):
    id: uuid.UUID
    session_id: uuid.UUID
    exercise_id: uuid.UUID
    exercise_order: int
    sets_completed: int
    reps_completed: int | None = None
    weight_used_kg: float | None = None
    duration_seconds: int | None = None
    distance_meters: float | None = None
    calories_burned: int | None = None
    difficulty_rating: int | None = None
    notes: str | None = None
    created_at: datetime

    class Config:
        from_attributes = True


@router.get("/{log_id}", response_model=StandardResponse[ExerciseLogResponse])
async def get_exercise_log(
    log_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    log = await ExerciseLogService.get_log(db, log_id)
    return StandardResponse(data=ExerciseLogResponse.model_validate(log))


@router.put("/{log_id}", response_model=StandardResponse[ExerciseLogResponse])
async def update_exercise_log(
    log_id: uuid.UUID,
    data: ExerciseLogUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Correct a recorded exercise. Not allowed once the session was cancelled."""
    log = await ExerciseLogService.update_log(db, log_id, data.model_dump(exclude_unset=True))
    return StandardResponse(data=ExerciseLogResponse.model_validate(log), message="Exercise log updated")


@router.delete("/{log_id}", response_model=StandardResponse)
async def delete_exercise_log(
    log_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    await ExerciseLogService.delete_log(db, log_id)
    return StandardResponse(message="Exercise log deleted")
