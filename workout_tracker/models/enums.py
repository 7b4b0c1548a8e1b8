from enum import Enum

from workout_tracker.core.exceptions import InvalidArgumentError


class SessionStatus(str, Enum):
    PLANNED = "PLANNED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    MISSED = "MISSED"

    @classmethod
    def parse(cls, value: "SessionStatus | str") -> "SessionStatus":
        if isinstance(value, cls):
            return value
        if isinstance(value, str) and value in cls.__members__:
            return cls[value]
        raise InvalidArgumentError(f"Unknown session status: {value}", field="status")

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_SESSION_STATUSES


TERMINAL_SESSION_STATUSES = frozenset(
    {SessionStatus.COMPLETED, SessionStatus.CANCELLED, SessionStatus.MISSED}
)


class GoalType(str, Enum):
    LOSE_WEIGHT = "LOSE_WEIGHT"
    GAIN_MUSCLE = "GAIN_MUSCLE"
    MAINTAIN_HEALTH = "MAINTAIN_HEALTH"

    @classmethod
    def parse(cls, value: "GoalType | str") -> "GoalType":
        """Accepts the member name or its lowercase wire form (``lose_weight``)."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            for member in cls:
                if value in (member.name, member.name.lower()):
                    return member
        raise InvalidArgumentError(f"Unknown goal type: {value}", field="goal_type")


class GoalStatus(str, Enum):
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    PAUSED = "PAUSED"
    CANCELLED = "CANCELLED"

    @classmethod
    def parse(cls, value: "GoalStatus | str") -> "GoalStatus":
        """Case-insensitive on the member name (``paused`` and ``PAUSED`` both work)."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str) and value.upper() in cls.__members__:
            return cls[value.upper()]
        raise InvalidArgumentError(f"Unknown goal status: {value}", field="status")

    @property
    def is_terminal(self) -> bool:
        return self in (GoalStatus.COMPLETED, GoalStatus.CANCELLED)
