"""Pydantic schemas for the carryover engine."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from app.transactions.schemas import TransactionResponse


class CarryoverRecord(BaseModel):
    key: str
    year: int
    month: int
    previous_year: int
    previous_month: int
    total_income: float
    previous_carryover: float
    total_paid_expenses: float
    carryover_balance: float = Field(ge=0)
    transactions_count: int = 0
    calculated_at: datetime | None = None

    model_config = {"from_attributes": True}


class CarryoverResponse(CarryoverRecord):
    id: uuid.UUID
    created_at: datetime
    updated_at: datetime


class CarryoverCheckResult(BaseModel):
    calculated: bool = False
    already_calculated: bool = False
    error: bool = False
    data: CarryoverRecord | None = None
    message: str


class CarryoverStatus(BaseModel):
    data: CarryoverRecord | None = None
    calculated: bool = False
    has_positive_balance: bool = False


class CarryoverPreview(BaseModel):
    """A fresh computation compared with what is stored for the month."""

    computed: CarryoverRecord
    stored: CarryoverRecord | None = None
    matches_stored: bool = False
    pending_expenses_previous_month: float = 0.0


class CarryoverProcessResult(BaseModel):
    carryover: CarryoverRecord
    transaction: TransactionResponse | None = None
    message: str
