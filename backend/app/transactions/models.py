"""SQLAlchemy models for the transaction ledger."""

import datetime
import enum
import uuid

from sqlalchemy import (
    Boolean,
    Date,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, TimestampMixin


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class TransactionType(str, enum.Enum):
    INCOME = "income"
    EXPENSE = "expense"


class PaymentStatus(str, enum.Enum):
    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class Transaction(TimestampMixin, Base):
    __tablename__ = "transactions"
    __table_args__ = (
        Index("ix_transactions_type_date", "type", "date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    type: Mapped[TransactionType] = mapped_column(
        Enum(TransactionType), nullable=False, index=True
    )
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Amount fields
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus), default=PaymentStatus.UNPAID, nullable=False, index=True
    )
    total_paid: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    balance: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)

    # Category hierarchy
    general_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("general_categories.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    concept_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("concepts.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    subconcept_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("subconcepts.id", ondelete="SET NULL"),
        nullable=True,
    )

    # Counterpart and classification
    provider_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("providers.id", ondelete="SET NULL"), nullable=True
    )
    division: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Synthetic carryover income
    is_carryover: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    carryover_from_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    carryover_from_month: Mapped[int | None] = mapped_column(Integer, nullable=True)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relationships
    payments: Mapped[list["TransactionPayment"]] = relationship(
        "TransactionPayment",
        back_populates="transaction",
        lazy="selectin",
        cascade="all, delete-orphan",
    )


class TransactionPayment(TimestampMixin, Base):
    __tablename__ = "transaction_payments"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    transaction_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("transactions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    reference: Mapped[str | None] = mapped_column(String(255), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    transaction: Mapped[Transaction] = relationship(
        "Transaction", back_populates="payments"
    )
