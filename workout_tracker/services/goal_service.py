import logging
import uuid
from collections.abc import Mapping
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from workout_tracker.core.exceptions import IllegalStateError, InvalidArgumentError, NotFoundError
from workout_tracker.models.enums import GoalStatus, GoalType
from workout_tracker.models.goal import Goal
from workout_tracker.services import collaborators

logger = logging.getLogger(__name__)

WEEKS_PER_MONTH = Decimal("4.33")
KCAL_PER_KG_FAT = Decimal("7700")
KCAL_PER_KG_MUSCLE = Decimal("5500")

DECLARED_FIELDS = ("goal_type", "target_weight_loss", "target_weight_gain", "current_weight", "timeframe_months", "notes")
DERIVED_FIELDS = ("daily_calorie_deficit", "daily_calorie_surplus", "weekly_weight_change", "target_weight")
WEIGHT_FIELDS = ("target_weight_loss", "target_weight_gain", "current_weight")
MAX_WEIGHT_KG = Decimal("9999.99")


def _to_decimal(value: Any) -> Decimal | None:
    if value is None or isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _round(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _round2(value: Decimal) -> Decimal:
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def project_goal(
    goal_type: GoalType,
    *,
    target_weight_loss: Decimal | None = None,
    target_weight_gain: Decimal | None = None,
    current_weight: Decimal | None = None,
    timeframe_months: int | None = None,
) -> dict[str, Any]:
    """Derive calorie and weight projections from a goal's declared fields.

    Every derived field is present in the result; the ones that cannot be
    computed for the goal type (or for missing inputs) are None.
    """
    projection: dict[str, Any] = dict.fromkeys(DERIVED_FIELDS)

    if goal_type is GoalType.LOSE_WEIGHT:
        if target_weight_loss is None or current_weight is None or not timeframe_months:
            return projection
        weeks = Decimal(timeframe_months) * WEEKS_PER_MONTH
        total_calories = target_weight_loss * KCAL_PER_KG_FAT
        projection["daily_calorie_deficit"] = _round(total_calories / (weeks * 7))
        projection["weekly_weight_change"] = -_round2(target_weight_loss / weeks)
        projection["target_weight"] = current_weight - target_weight_loss

    elif goal_type is GoalType.GAIN_MUSCLE:
        if target_weight_gain is None or not timeframe_months:
            return projection
        weeks = Decimal(timeframe_months) * WEEKS_PER_MONTH
        total_calories = target_weight_gain * KCAL_PER_KG_MUSCLE
        projection["daily_calorie_surplus"] = _round(total_calories / (weeks * 7))
        projection["weekly_weight_change"] = _round2(target_weight_gain / weeks)
        if current_weight is not None:
            projection["target_weight"] = current_weight + target_weight_gain

    return projection


def _declared_values(fields: Mapping[str, Any]) -> dict[str, Any]:
    values = {name: fields.get(name) for name in DECLARED_FIELDS}
    values["goal_type"] = GoalType.parse(values["goal_type"]) if values["goal_type"] is not None else None
    for name in WEIGHT_FIELDS:
        values[name] = _to_decimal(values[name])
    return values


def _validate_declared(values: Mapping[str, Any]) -> None:
    if values.get("goal_type") is None:
        raise InvalidArgumentError("goal_type is required", field="goal_type")
    timeframe = values.get("timeframe_months")
    if timeframe is not None and timeframe <= 0:
        raise InvalidArgumentError("Timeframe must be a positive number of months", field="timeframe_months")
    for name in WEIGHT_FIELDS:
        value = values.get(name)
        if value is not None and value < 0:
            raise InvalidArgumentError(f"{name} cannot be negative", field=name)
        if value is not None and value > MAX_WEIGHT_KG:
            raise InvalidArgumentError(f"{name} cannot exceed {MAX_WEIGHT_KG}", field=name)


def _apply_projection(values: Mapping[str, Any]) -> dict[str, Any]:
    return project_goal(
        values["goal_type"],
        target_weight_loss=values["target_weight_loss"],
        target_weight_gain=values["target_weight_gain"],
        current_weight=values["current_weight"],
        timeframe_months=values["timeframe_months"],
    )


class GoalService:
    @staticmethod
    async def get_goal(db: AsyncSession, goal_id: uuid.UUID) -> Goal:
        goal = await db.get(Goal, goal_id)
        if not goal:
            raise NotFoundError(f"Goal {goal_id} not found", field="goal_id")
        return goal

    @staticmethod
    async def create_goal(
        db: AsyncSession,
        user_id: uuid.UUID,
        fields: Mapping[str, Any],
        now: datetime,
    ) -> Goal:
        await collaborators.resolve_user(db, user_id)
        values = _declared_values(fields)
        _validate_declared(values)

        goal = Goal(
            user_id=user_id,
            status=GoalStatus.ACTIVE,
            completed_at=None,
            created_at=now,
            updated_at=now,
            **values,
            **_apply_projection(values),
        )
        db.add(goal)
        await db.commit()
        logger.info("Created %s goal %s for user %s", goal.goal_type.value, goal.id, user_id)
        return goal

    @staticmethod
    async def update_goal(
        db: AsyncSession,
        goal_id: uuid.UUID,
        patch: Mapping[str, Any],
        now: datetime,
    ) -> Goal:
        # Derived fields are silently dropped; they only ever come from the projection.
        patch = {key: value for key, value in patch.items() if key not in DERIVED_FIELDS}
        unknown = set(patch) - set(DECLARED_FIELDS)
        if unknown:
            field = sorted(unknown)[0]
            raise InvalidArgumentError(f"Field '{field}' cannot be changed on a goal", field=field)

        goal = await GoalService.get_goal(db, goal_id)
        merged = {name: getattr(goal, name) for name in DECLARED_FIELDS}
        merged.update(patch)
        values = _declared_values(merged)
        _validate_declared(values)

        for name, value in {**values, **_apply_projection(values)}.items():
            setattr(goal, name, value)
        goal.updated_at = now
        await db.commit()
        return goal

    @staticmethod
    async def list_goals(db: AsyncSession, user_id: uuid.UUID) -> list[Goal]:
        await collaborators.resolve_user(db, user_id)
        stmt = select(Goal).where(Goal.user_id == user_id).order_by(Goal.created_at.desc())
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_active_goals(db: AsyncSession, user_id: uuid.UUID) -> list[Goal]:
        await collaborators.resolve_user(db, user_id)
        stmt = (
            select(Goal)
            .where(Goal.user_id == user_id, Goal.status == GoalStatus.ACTIVE)
            .order_by(Goal.created_at.desc())
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def update_status(
        db: AsyncSession,
        goal_id: uuid.UUID,
        status: GoalStatus | str,
        now: datetime,
    ) -> Goal:
        new_status = GoalStatus.parse(status)
        goal = await GoalService.get_goal(db, goal_id)
        if goal.status.is_terminal:
            raise IllegalStateError(
                f"A {goal.status.value.lower()} goal cannot change status (current state: {goal.status.value})",
                current_state=goal.status.value,
            )

        goal.status = new_status
        goal.updated_at = now
        if new_status is GoalStatus.COMPLETED:
            goal.completed_at = now
        await db.commit()
        logger.info("Goal %s is now %s", goal_id, new_status.value)
        return goal

    @staticmethod
    async def mark_completed(db: AsyncSession, goal_id: uuid.UUID, now: datetime) -> Goal:
        return await GoalService.update_status(db, goal_id, GoalStatus.COMPLETED, now)

    @staticmethod
    async def delete_goal(db: AsyncSession, goal_id: uuid.UUID) -> None:
        goal = await GoalService.get_goal(db, goal_id)
        await db.delete(goal)
        await db.commit()
        logger.info("Deleted goal %s", goal_id)
