import uuid
from datetime import datetime, timezone
from decimal import Decimal
from sqlalchemy import Integer, ForeignKey, Text, DateTime, Numeric, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from workout_tracker.database import Base
from workout_tracker.models.enums import GoalStatus, GoalType


class Goal(Base):
    __tablename__ = "goals"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    goal_type: Mapped[GoalType] = mapped_column(SAEnum(GoalType, native_enum=False), nullable=False)

    # Declared by the user
    target_weight_loss: Mapped[Decimal | None] = mapped_column(Numeric(8, 2), nullable=True)
    target_weight_gain: Mapped[Decimal | None] = mapped_column(Numeric(8, 2), nullable=True)
    current_weight: Mapped[Decimal | None] = mapped_column(Numeric(8, 2), nullable=True)
    timeframe_months: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Projected from the declared fields, never written by callers
    daily_calorie_deficit: Mapped[int | None] = mapped_column(Integer, nullable=True)
    daily_calorie_surplus: Mapped[int | None] = mapped_column(Integer, nullable=True)
    weekly_weight_change: Mapped[Decimal | None] = mapped_column(Numeric(8, 2), nullable=True)
    target_weight: Mapped[Decimal | None] = mapped_column(Numeric(8, 2), nullable=True)

    status: Mapped[GoalStatus] = mapped_column(
        SAEnum(GoalStatus, native_enum=False), default=GoalStatus.ACTIVE, nullable=False
    )
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
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    user = relationship("User")
