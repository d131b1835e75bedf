from __future__ import annotations

import uuid
from datetime import date

from pydantic import BaseModel, Field, model_validator

from app.carryover.schemas import CarryoverCheckResult
from app.transactions.models import PaymentStatus, TransactionType
from app.transactions.schemas import TransactionFilter, TransactionRecord


class ReportFilters(BaseModel):
    """Report period and transaction filters.

    ``start_date`` and ``end_date`` are inclusive; the end date covers the
    whole day.
    """

    start_date: date | None = None
    end_date: date | None = None
    type: TransactionType | None = None
    general_id: uuid.UUID | None = None
    concept_id: uuid.UUID | None = None
    subconcept_id: uuid.UUID | None = None
    provider_id: uuid.UUID | None = None
    division: str | None = None
    status: PaymentStatus | None = None

    @model_validator(mode="after")
    def _check_range(self) -> ReportFilters:
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self

    @property
    def has_range(self) -> bool:
        return self.start_date is not None and self.end_date is not None

    def transaction_filter(self) -> TransactionFilter:
        return TransactionFilter(
            type=self.type,
            general_id=self.general_id,
            concept_id=self.concept_id,
            subconcept_id=self.subconcept_id,
            provider_id=self.provider_id,
            division=self.division,
            status=self.status,
        )


class ReportPreferences(BaseModel):
    """Presentation toggles. Passed through to callers, never read by the aggregation."""

    show_income_in_breakdown: bool = False


# ---------------------------------------------------------------------------
# Tallies and breakdowns
# ---------------------------------------------------------------------------


class PaymentStatusBucket(BaseModel):
    count: int = 0
    amount: float = 0.0
    balance: float = 0.0
    # Outstanding amount of prior-period items whose status falls in this bucket
    carryover: float = 0.0


class PaymentStatusTally(BaseModel):
    unpaid: PaymentStatusBucket = Field(default_factory=PaymentStatusBucket)
    partial: PaymentStatusBucket = Field(default_factory=PaymentStatusBucket)
    paid: PaymentStatusBucket = Field(default_factory=PaymentStatusBucket)

    def bucket(self, status: PaymentStatus) -> PaymentStatusBucket:
        return getattr(self, status.value)


class BreakdownEntry(BaseModel):
    income: float = 0.0
    expense: float = 0.0
    total: float = 0.0
    count: int = 0
    paid: float = 0.0
    pending: float = 0.0


# ---------------------------------------------------------------------------
# Weeks
# ---------------------------------------------------------------------------


class WeekDescriptor(BaseModel):
    """A calendar week as seen from one report month.

    ``start_date``/``end_date`` are the natural Monday-Sunday bounds and may
    fall in the adjacent month. ``start_boundary``/``end_boundary`` are the
    same week clamped to the month and decide which transactions belong to it.
    """

    sequence_number: int
    start_date: date
    end_date: date
    start_boundary: date
    end_boundary: date
    iso_week: int

    model_config = {"frozen": True}

    def contains(self, day: date) -> bool:
        return self.start_boundary <= day <= self.end_boundary


class WeeklyAmounts(BaseModel):
    weeks: dict[int, float] = Field(default_factory=dict)
    total: float = 0.0


class WeeklyBreakdown(BaseModel):
    weeks: list[WeekDescriptor] = Field(default_factory=list)
    income: dict[str, WeeklyAmounts] = Field(default_factory=dict)
    expense: dict[str, WeeklyAmounts] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------


class ReportStats(BaseModel):
    total_income: float = 0.0
    total_expenses: float = 0.0
    income_count: int = 0
    expense_count: int = 0
    total_transactions: int = 0
    average_income: float = 0.0
    average_expense: float = 0.0

    current_period_balance: float = 0.0
    carryover_income: float = 0.0
    materialized_carryover: float = 0.0
    total_balance: float = 0.0
    carryover_balance: float = 0.0

    payment_status_income: PaymentStatusTally = Field(default_factory=PaymentStatusTally)
    payment_status_expense: PaymentStatusTally = Field(default_factory=PaymentStatusTally)
    prior_pending: PaymentStatusBucket = Field(default_factory=PaymentStatusBucket)

    category_breakdown: dict[str, BreakdownEntry] = Field(default_factory=dict)
    concept_breakdown: dict[str, BreakdownEntry] = Field(default_factory=dict)
    subconcept_breakdown: dict[str, BreakdownEntry] = Field(default_factory=dict)
    division_breakdown: dict[str, BreakdownEntry] = Field(default_factory=dict)
    provider_breakdown: dict[str, BreakdownEntry] = Field(default_factory=dict)
    monthly_breakdown: dict[str, BreakdownEntry] = Field(default_factory=dict)

    weekly_breakdown: WeeklyBreakdown | None = None
    skipped_records: int = 0


class MixedTreeRow(BaseModel):
    week_number: int
    week: WeekDescriptor
    general_id: uuid.UUID | None = None
    general_name: str
    general_type: str
    concept_id: uuid.UUID | None = None
    concept_name: str
    concept_type: str

    income: float = 0.0
    expense: float = 0.0
    balance: float = 0.0
    carryover_in: float = 0.0
    today_income: float = 0.0
    today_expense: float = 0.0
    running_balance_to_date: float = 0.0

    has_income: bool = False
    has_expense: bool = False
    transaction_count: int = 0
    transactions: list[TransactionRecord] = Field(default_factory=list)


class MonthlyReport(BaseModel):
    year: int
    month: int
    filters: ReportFilters
    preferences: ReportPreferences
    stats: ReportStats
    mixed_trees: list[MixedTreeRow]
    transactions_count: int
    carryover_check: CarryoverCheckResult | None = None
