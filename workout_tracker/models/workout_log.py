import uuid
from datetime import date, datetime, time, timezone
from decimal import Decimal
from sqlalchemy import Integer, ForeignKey, Text, DateTime, Date, Time, Numeric, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from workout_tracker.database import Base
from workout_tracker.models.enums import SessionStatus


class WorkoutSession(Base):
    """A scheduled workout. Status, actual_* stamps and completion figures change only through lifecycle transitions."""

    __tablename__ = "workout_sessions"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    plan_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("workout_plans.id"), nullable=True)
    scheduled_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    scheduled_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    status: Mapped[SessionStatus] = mapped_column(
        SAEnum(SessionStatus, native_enum=False), default=SessionStatus.PLANNED, nullable=False
    )
    actual_start_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    actual_end_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    actual_duration_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    calories_burned: Mapped[int | None] = mapped_column(Integer, nullable=True)
    overall_rating: Mapped[int | None] = mapped_column(Integer, nullable=True)  # 1-5
    energy_level_before: Mapped[int | None] = mapped_column(Integer, nullable=True)  # 1-5
    energy_level_after: Mapped[int | None] = mapped_column(Integer, nullable=True)  # 1-5
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    user = relationship("User")
    plan = relationship("WorkoutPlan")
    exercise_logs = relationship(
        "ExerciseLog",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="ExerciseLog.exercise_order",
    )


class ExerciseLog(Base):
    __tablename__ = "exercise_logs"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    session_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("workout_sessions.id"), nullable=False, index=True)
    exercise_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("exercises.id"), nullable=False, index=True)
    exercise_order: Mapped[int] = mapped_column(Integer, nullable=False)
    sets_completed: Mapped[int] = mapped_column(Integer, nullable=False)
    reps_completed: Mapped[int | None] = mapped_column(Integer, nullable=True)
    weight_used_kg: Mapped[Decimal | None] = mapped_column(Numeric(8, 2), nullable=True)
    duration_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)
    distance_meters: Mapped[Decimal | None] = mapped_column(Numeric(8, 2), nullable=True)
    calories_burned: Mapped[int | None] = mapped_column(Integer, nullable=True)
    difficulty_rating: Mapped[int | None] = mapped_column(Integer, nullable=True)  # 1-5
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )

    session = relationship("WorkoutSession", back_populates="exercise_logs")
    exercise = relationship("Exercise")
