from typing import Annotated
from datetime import datetime
from decimal import Decimal
import uuid

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from workout_tracker.core.responses import DOMAIN_ERROR_RESPONSES, StandardResponse
from workout_tracker.database import get_db
from workout_tracker.models.enums import GoalStatus, GoalType
from workout_tracker.services.clock import Clock, get_clock
from workout_tracker.services.goal_service import GoalService

router = APIRouter(responses=DOMAIN_ERROR_RESPONSES)


class GoalCreate(BaseModel):
    # goal_type stays a plain string so unknown values surface as a 400 naming the field.
    goal_type: str
    target_weight_loss: Decimal | None = None
    target_weight_gain: Decimal | None = None
    current_weight: Decimal | None = None
    timeframe_months: int | None = None
    notes: str | None = None


class GoalUpdate(BaseModel):
    goal_type: str | None = None
    target_weight_loss: Decimal | None = None
    target_weight_gain: Decimal | None = None
    current_weight: Decimal | None = None
    timeframe_months: int | None = None
    notes: str | None = None


class GoalStatusUpdate(BaseModel):
    status: str


class GoalResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    goal_type: GoalType
    target_weight_loss: float | None = None
    target_weight_gain: float | None = None
    current_weight: float | None = None
    timeframe_months: int | None = None
    daily_calorie_deficit: int | None = None
    daily_calorie_surplus: int | None = None
    weekly_weight_change: float | None = None
    target_weight: float | None = None
    status: GoalStatus
    notes: str | None = None
    created_at: datetime
    completed_at: datetime | None = None

    class Config:
        from_attributes = True


@router.post("/user/{user_id}", response_model=StandardResponse[GoalResponse], status_code=status.HTTP_201_CREATED)
async def create_goal(
    user_id: uuid.UUID,
    data: GoalCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
):
    """Create a goal; calorie and weight projections are computed from the declared fields."""
    goal = await GoalService.create_goal(db, user_id, data.model_dump(), clock())
    return StandardResponse(data=GoalResponse.model_validate(goal), message="Goal created")


@router.get("/user/{user_id}", response_model=StandardResponse[list[GoalResponse]])
async def list_goals(
    user_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    goals = await GoalService.list_goals(db, user_id)
    return StandardResponse(data=[GoalResponse.model_validate(g) for g in goals])


@router.get("/user/{user_id}/active", response_model=StandardResponse[list[GoalResponse]])
async def list_active_goals(
    user_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    goals = await GoalService.list_active_goals(db, user_id)
    return StandardResponse(data=[GoalResponse.model_validate(g) for g in goals])


@router.get("/{goal_id}", response_model=StandardResponse[GoalResponse])
async def get_goal(
    goal_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    goal = await GoalService.get_goal(db, goal_id)
    return StandardResponse(data=GoalResponse.model_validate(goal))


@router.patch("/{goal_id}", response_model=StandardResponse[GoalResponse])
async def update_goal(
    goal_id: uuid.UUID,
    data: GoalUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
):
    goal = await GoalService.update_goal(db, goal_id, data.model_dump(exclude_unset=True), clock())
    return StandardResponse(data=GoalResponse.model_validate(goal), message="Goal updated")


@router.put("/{goal_id}/status", response_model=StandardResponse[GoalResponse])
async def update_goal_status(
    goal_id: uuid.UUID,
    data: GoalStatusUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
):
    goal = await GoalService.update_status(db, goal_id, data.status, clock())
    return StandardResponse(data=GoalResponse.model_validate(goal), message="Goal status updated")


@router.post("/{goal_id}/complete", response_model=StandardResponse[GoalResponse])
async def complete_goal(
    goal_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
):
    goal = await GoalService.mark_completed(db, goal_id, clock())
    return StandardResponse(data=GoalResponse.model_validate(goal), message="Goal completed")


@router.delete("/{goal_id}", response_model=StandardResponse)
async def delete_goal(
    goal_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    await GoalService.delete_goal(db, goal_id)
    return StandardResponse(message="Goal deleted")
