import uuid
from decimal import Decimal

import pytest

from workout_tracker.core.exceptions import IllegalStateError, InvalidArgumentError, NotFoundError
from workout_tracker.models.enums import GoalStatus, GoalType
from workout_tracker.services.goal_service import GoalService, project_goal


def test_lose_weight_projection():
    projection = project_goal(
        GoalType.LOSE_WEIGHT,
        target_weight_loss=Decimal("5"),
        current_weight=Decimal("80"),
        timeframe_months=2,
    )

    assert projection["target_weight"] == Decimal("75")
    assert projection["weekly_weight_change"] == Decimal("-0.58")
    # 5 kg x 7700 kcal over 2 x 4.33 weeks
    assert projection["daily_calorie_deficit"] == 635
    assert projection["daily_calorie_surplus"] is None


def test_gain_muscle_projection():
    projection = project_goal(
        GoalType.GAIN_MUSCLE,
        target_weight_gain=Decimal("4"),
        current_weight=Decimal("70"),
        timeframe_months=4,
    )

    assert projection["daily_calorie_surplus"] == 181
    assert projection["weekly_weight_change"] == Decimal("0.23")
    assert projection["target_weight"] == Decimal("74")
    assert projection["daily_calorie_deficit"] is None


def test_gain_muscle_without_current_weight_has_no_target():
    projection = project_goal(GoalType.GAIN_MUSCLE, target_weight_gain=Decimal("2"), timeframe_months=3)
    assert projection["target_weight"] is None
    assert projection["weekly_weight_change"] == Decimal("0.15")


@pytest.mark.parametrize(
    "goal_type, fields",
    [
        (GoalType.MAINTAIN_HEALTH, {"current_weight": Decimal("70"), "timeframe_months": 3}),
        (GoalType.LOSE_WEIGHT, {"target_weight_loss": Decimal("5"), "timeframe_months": 2}),
        (GoalType.GAIN_MUSCLE, {"target_weight_gain": Decimal("3")}),
    ],
)
def test_projection_absent_without_inputs(goal_type, fields):
    assert all(value is None for value in project_goal(goal_type, **fields).values())


def test_projection_is_deterministic():
    fields = {"target_weight_loss": Decimal("7.5"), "current_weight": Decimal("92.4"), "timeframe_months": 5}
    assert project_goal(GoalType.LOSE_WEIGHT, **fields) == project_goal(GoalType.LOSE_WEIGHT, **fields)


def test_goal_type_parse():
    assert GoalType.parse("LOSE_WEIGHT") is GoalType.LOSE_WEIGHT
    assert GoalType.parse("gain_muscle") is GoalType.GAIN_MUSCLE
    with pytest.raises(InvalidArgumentError) as exc_info:
        GoalType.parse("get_shredded")
    assert exc_info.value.field == "goal_type"


def test_goal_status_parse_ignores_case():
    assert GoalStatus.parse("paused") is GoalStatus.PAUSED
    assert GoalStatus.parse("Completed") is GoalStatus.COMPLETED
    assert GoalStatus.parse(GoalStatus.ACTIVE) is GoalStatus.ACTIVE
    with pytest.raises(InvalidArgumentError) as exc_info:
        GoalStatus.parse("abandoned")
    assert exc_info.value.field == "status"


@pytest.mark.asyncio
async def test_create_goal_computes_projection(db_session, user, clock):
    goal = await GoalService.create_goal(
        db_session,
        user.id,
        {
            "goal_type": "lose_weight",
            "target_weight_loss": 5,
            "current_weight": 80,
            "timeframe_months": 2,
            "daily_calorie_deficit": 1,
        },
        clock.now,
    )

    assert goal.status == GoalStatus.ACTIVE
    assert goal.goal_type == GoalType.LOSE_WEIGHT
    assert goal.target_weight == Decimal("75")
    assert goal.weekly_weight_change == Decimal("-0.58")
    assert goal.daily_calorie_deficit == 635
    assert goal.completed_at is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "fields, field",
    [
        ({"goal_type": "bulk"}, "goal_type"),
        ({"goal_type": "LOSE_WEIGHT", "timeframe_months": 0}, "timeframe_months"),
        ({"goal_type": "LOSE_WEIGHT", "target_weight_loss": -3}, "target_weight_loss"),
        ({"goal_type": "GAIN_MUSCLE", "current_weight": -70}, "current_weight"),
        ({"goal_type": "GAIN_MUSCLE", "target_weight_gain": 10000}, "target_weight_gain"),
    ],
)
async def test_create_goal_validation(db_session, user, clock, fields, field):
    with pytest.raises(InvalidArgumentError) as exc_info:
        await GoalService.create_goal(db_session, user.id, fields, clock.now)
    assert exc_info.value.field == field


@pytest.mark.asyncio
async def test_create_goal_for_unknown_user(db_session, clock):
    with pytest.raises(NotFoundError):
        await GoalService.create_goal(db_session, uuid.uuid4(), {"goal_type": "MAINTAIN_HEALTH"}, clock.now)


@pytest.mark.asyncio
async def test_update_goal_recomputes_and_clears(db_session, user, clock):
    goal = await GoalService.create_goal(
        db_session,
        user.id,
        {"goal_type": "LOSE_WEIGHT", "target_weight_loss": 5, "current_weight": 80, "timeframe_months": 2},
        clock.now,
    )

    goal = await GoalService.update_goal(db_session, goal.id, {"timeframe_months": 4}, clock.now)
    assert goal.daily_calorie_deficit == 318
    assert goal.weekly_weight_change == Decimal("-0.29")
    assert goal.target_weight == Decimal("75")

    goal = await GoalService.update_goal(db_session, goal.id, {"goal_type": "MAINTAIN_HEALTH"}, clock.now)
    assert goal.daily_calorie_deficit is None
    assert goal.weekly_weight_change is None
    assert goal.target_weight is None

    with pytest.raises(InvalidArgumentError):
        await GoalService.update_goal(db_session, goal.id, {"status": "COMPLETED"}, clock.now)


@pytest.mark.asyncio
async def test_goal_listing(db_session, user, clock):
    older = await GoalService.create_goal(db_session, user.id, {"goal_type": "MAINTAIN_HEALTH"}, clock.now)
    clock.advance(minutes=5)
    newer = await GoalService.create_goal(db_session, user.id, {"goal_type": "GAIN_MUSCLE"}, clock.now)
    await GoalService.update_status(db_session, older.id, "PAUSED", clock.now)

    assert [g.id for g in await GoalService.list_goals(db_session, user.id)] == [newer.id, older.id]
    assert [g.id for g in await GoalService.list_active_goals(db_session, user.id)] == [newer.id]


@pytest.mark.asyncio
async def test_mark_completed_and_terminal_states(db_session, user, clock):
    goal = await GoalService.create_goal(db_session, user.id, {"goal_type": "MAINTAIN_HEALTH"}, clock.now)

    paused = await GoalService.update_status(db_session, goal.id, GoalStatus.PAUSED, clock.now)
    assert paused.completed_at is None

    completed = await GoalService.mark_completed(db_session, goal.id, clock.now)
    assert completed.status == GoalStatus.COMPLETED
    assert completed.completed_at == clock.now

    with pytest.raises(IllegalStateError):
        await GoalService.update_status(db_session, goal.id, GoalStatus.ACTIVE, clock.now)
    with pytest.raises(IllegalStateError):
        await GoalService.mark_completed(db_session, goal.id, clock.now)


@pytest.mark.asyncio
async def test_update_status_rejects_unknown_status(db_session, user, clock):
    goal = await GoalService.create_goal(db_session, user.id, {"goal_type": "MAINTAIN_HEALTH"}, clock.now)
    with pytest.raises(InvalidArgumentError):
        await GoalService.update_status(db_session, goal.id, "ABANDONED", clock.now)


@pytest.mark.asyncio
async def test_delete_goal(db_session, user, clock):
    goal = await GoalService.create_goal(db_session, user.id, {"goal_type": "MAINTAIN_HEALTH"}, clock.now)

    await GoalService.delete_goal(db_session, goal.id)

    with pytest.raises(NotFoundError):
        await GoalService.get_goal(db_session, goal.id)
    with pytest.raises(NotFoundError):
        await GoalService.delete_goal(db_session, goal.id)


@pytest.mark.asyncio
async def test_update_status_accepts_lowercase(db_session, user, clock):
    goal = await GoalService.create_goal(db_session, user.id, {"goal_type": "MAINTAIN_HEALTH"}, clock.now)

    paused = await GoalService.update_status(db_session, goal.id, "paused", clock.now)

    assert paused.status == GoalStatus.PAUSED
