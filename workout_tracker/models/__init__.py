from workout_tracker.models.enums import GoalStatus, GoalType, SessionStatus
from workout_tracker.models.user import User
from workout_tracker.models.fitness import Exercise, WorkoutPlan
from workout_tracker.models.workout_log import ExerciseLog, WorkoutSession
from workout_tracker.models.goal import Goal


__all__ = [
    "User",
    "Exercise",
    "WorkoutPlan",
    "WorkoutSession",
    "ExerciseLog",
    "Goal",
    "SessionStatus",
    "GoalType",
    "GoalStatus",
]
