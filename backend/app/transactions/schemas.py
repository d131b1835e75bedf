"""Pydantic schemas for the transaction ledger."""

import datetime
import uuid

from pydantic import BaseModel, Field, field_validator, model_validator

from app.transactions.models import PaymentStatus, TransactionType


# ---------------------------------------------------------------------------
# Transaction CRUD schemas
# ---------------------------------------------------------------------------


class TransactionCreate(BaseModel):
    type: TransactionType
    date: datetime.date
    amount: float = Field(gt=0)
    description: str | None = Field(None, max_length=500)
    general_id: uuid.UUID | None = None
    concept_id: uuid.UUID | None = None
    subconcept_id: uuid.UUID | None = None
    provider_id: uuid.UUID | None = None
    division: str | None = Field(None, max_length=50)
    notes: str | None = None


class TransactionUpdate(BaseModel):
    date: datetime.date | None = None
    amount: float | None = Field(None, gt=0)
    description: str | None = Field(None, max_length=500)
    general_id: uuid.UUID | None = None
    concept_id: uuid.UUID | None = None
    subconcept_id: uuid.UUID | None = None
    provider_id: uuid.UUID | None = None
    division: str | None = Field(None, max_length=50)
    notes: str | None = None


class PaymentCreate(BaseModel):
    amount: float = Field(gt=0)
    date: datetime.date
    reference: str | None = Field(None, max_length=255)
    notes: str | None = None


class PaymentResponse(BaseModel):
    id: uuid.UUID
    transaction_id: uuid.UUID
    amount: float
    date: datetime.date
    reference: str | None
    notes: str | None
    created_at: datetime.datetime

    model_config = {"from_attributes": True}


class TransactionResponse(BaseModel):
    id: uuid.UUID
    type: TransactionType
    date: datetime.date
    description: str | None
    amount: float
    status: PaymentStatus
    total_paid: float
    balance: float
    general_id: uuid.UUID | None
    concept_id: uuid.UUID | None
    subconcept_id: uuid.UUID | None
    provider_id: uuid.UUID | None
    division: str | None
    is_carryover: bool
    carryover_from_year: int | None
    carryover_from_month: int | None
    notes: str | None
    payments: list[PaymentResponse] = Field(default_factory=list)
    created_at: datetime.datetime
    updated_at: datetime.datetime

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# Filter schema
# ---------------------------------------------------------------------------


class TransactionFilter(BaseModel):
    type: TransactionType | None = None
    general_id: uuid.UUID | None = None
    concept_id: uuid.UUID | None = None
    subconcept_id: uuid.UUID | None = None
    provider_id: uuid.UUID | None = None
    division: str | None = None
    status: PaymentStatus | None = None
    date_from: datetime.date | None = None
    date_to: datetime.date | None = None
    search: str | None = None


# ---------------------------------------------------------------------------
# Engine read model
# ---------------------------------------------------------------------------


class TransactionRecord(BaseModel):
    """Normalized, read-only view of a transaction consumed by the report engine.

    Dates arrive as ``date``, ``datetime`` or ISO strings depending on the
    source; they are collapsed to a plain ``date`` here so nothing downstream
    has to care. ``status`` is the stored status; the effective status of an
    expense is derived by the aggregator from ``total_paid`` and ``balance``.
    """

    id: uuid.UUID
    type: TransactionType
    amount: float = Field(ge=0)
    date: datetime.date
    created_at: datetime.datetime | None = None
    status: PaymentStatus = PaymentStatus.UNPAID
    total_paid: float = Field(0.0, ge=0)
    balance: float | None = None
    general_id: uuid.UUID | None = None
    concept_id: uuid.UUID | None = None
    subconcept_id: uuid.UUID | None = None
    provider_id: uuid.UUID | None = None
    division: str | None = None
    is_carryover: bool = False
    description: str | None = None

    model_config = {"from_attributes": True, "frozen": True}

    @field_validator("date", mode="before")
    @classmethod
    def _collapse_datetime(cls, value):
        if isinstance(value, datetime.datetime):
            return value.date()
        return value

    @field_validator("status", mode="before")
    @classmethod
    def _default_status(cls, value):
        return PaymentStatus.UNPAID if value is None else value

    @field_validator("total_paid", mode="before")
    @classmethod
    def _default_total_paid(cls, value):
        return 0.0 if value is None else value

    @model_validator(mode="after")
    def _fill_balance(self) -> "TransactionRecord":
        if self.balance is None:
            object.__setattr__(self, "balance", max(0.0, self.amount - self.total_paid))
        return self
