"""SQLAlchemy model for the monthly carryover store."""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Float, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base, TimestampMixin


class MonthlyCarryover(TimestampMixin, Base):
    """Balance rolled into ``(year, month)`` from the month before it."""

    __tablename__ = "monthly_carryovers"
    __table_args__ = (
        UniqueConstraint("year", "month", name="uq_monthly_carryovers_year_month"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    key: Mapped[str] = mapped_column(String(7), unique=True, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    month: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    previous_year: Mapped[int] = mapped_column(Integer, nullable=False)
    previous_month: Mapped[int] = mapped_column(Integer, nullable=False)

    total_income: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    previous_carryover: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    total_paid_expenses: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    carryover_balance: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)

    transactions_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    calculated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
