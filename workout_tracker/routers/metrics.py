from typing import Annotated
from datetime import date
import uuid

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from workout_tracker.core.responses import DOMAIN_ERROR_RESPONSES, StandardResponse
from workout_tracker.database import get_db
from workout_tracker.routers.exercise_logs import ExerciseLogResponse
from workout_tracker.services import metrics_service

router = APIRouter(responses=DOMAIN_ERROR_RESPONSES)


class UserStatisticsResponse(BaseModel):
    user_id: uuid.UUID
    completed_sessions: int
    average_duration_minutes: float
    total_calories_burned: int
    distinct_exercises: int

    class Config:
        from_attributes = True


class VolumeResponse(BaseModel):
    exercise_id: uuid.UUID
    start_date: date
    end_date: date
    total_volume: float


class PersonalBestsResponse(BaseModel):
    exercise_id: uuid.UUID
    max_weight_kg: float | None = None
    max_reps: int | None = None


class ExerciseProgressResponse(BaseModel):
    exercise_id: uuid.UUID
    personal_best_weight_kg: float | None = None
    personal_best_reps: int | None = None
    progress_percentage: float | None = None
    total_logs: int

    class Config:
        from_attributes = True


@router.get("/user/{user_id}/statistics", response_model=StandardResponse[UserStatisticsResponse])
async def get_user_statistics(
    user_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Totals over the user's completed sessions."""
    stats = await metrics_service.user_statistics(db, user_id)
    return StandardResponse(data=UserStatisticsResponse.model_validate(stats))


@router.get("/user/{user_id}/volume/exercise/{exercise_id}", response_model=StandardResponse[VolumeResponse])
async def get_total_volume(
    user_id: uuid.UUID,
    exercise_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    start_date: date = Query(...),
    end_date: date = Query(...),
):
    volume = await metrics_service.total_volume(db, user_id, exercise_id, start_date, end_date)
    return StandardResponse(
        data=VolumeResponse(exercise_id=exercise_id, start_date=start_date, end_date=end_date, total_volume=volume)
    )


@router.get(
    "/user/{user_id}/personal-bests/exercise/{exercise_id}",
    response_model=StandardResponse[PersonalBestsResponse],
)
async def get_personal_bests(
    user_id: uuid.UUID,
    exercise_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    return StandardResponse(
        data=PersonalBestsResponse(
            exercise_id=exercise_id,
            max_weight_kg=await metrics_service.personal_best_weight(db, user_id, exercise_id),
            max_reps=await metrics_service.personal_best_reps(db, user_id, exercise_id),
        )
    )


@router.get(
    "/user/{user_id}/progress/exercise/{exercise_id}",
    response_model=StandardResponse[ExerciseProgressResponse],
)
async def get_exercise_progress(
    user_id: uuid.UUID,
    exercise_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    progress = await metrics_service.exercise_progress(db, user_id, exercise_id)
    return StandardResponse(data=ExerciseProgressResponse.model_validate(progress))


@router.get("/user/{user_id}/recent-logs", response_model=StandardResponse[list[ExerciseLogResponse]])
async def get_recent_logs(
    user_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    limit: int = Query(10),
):
    logs = await metrics_service.recent_logs(db, user_id, limit)
    return StandardResponse(data=[ExerciseLogResponse.model_validate(log) for log in logs])


@router.get("/user/{user_id}/top-performing", response_model=StandardResponse[list[ExerciseLogResponse]])
async def get_top_performing(
    user_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    limit: int = Query(5),
):
    logs = await metrics_service.top_performing_exercises(db, user_id, limit)
    return StandardResponse(data=[ExerciseLogResponse.model_validate(log) for log in logs])
