"""Business logic for the transaction ledger.

Besides CRUD and payment tracking, this module is the transaction source for
the report engine: the ``fetch_*`` functions return normalized
``TransactionRecord`` objects and re-signal database failures as
``TransactionSourceError``.
"""

import datetime
import logging
import uuid
from typing import Iterable

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import Select, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, TransactionSourceError, ValidationError
from app.core.pagination import PaginationParams, paginate
from app.core.periods import month_bounds
from app.transactions.models import (
    PaymentStatus,
    Transaction,
    TransactionPayment,
    TransactionType,
)
from app.transactions.schemas import (
    PaymentCreate,
    TransactionCreate,
    TransactionFilter,
    TransactionRecord,
    TransactionUpdate,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Payment status
# ---------------------------------------------------------------------------


def status_from_payments(total_paid: float, amount: float) -> PaymentStatus:
    """Status stored on the row after a payment change."""
    if total_paid >= amount:
        return PaymentStatus.PAID
    if total_paid > 0:
        return PaymentStatus.PARTIAL
    return PaymentStatus.UNPAID


def _apply_payment_totals(transaction: Transaction, total_paid: float) -> None:
    transaction.total_paid = round(total_paid, 2)
    transaction.balance = round(max(0.0, transaction.amount - total_paid), 2)
    transaction.status = status_from_payments(total_paid, transaction.amount)


# ---------------------------------------------------------------------------
# Transaction CRUD
# ---------------------------------------------------------------------------


async def create_transaction(db: AsyncSession, data: TransactionCreate) -> Transaction:
    transaction = Transaction(**data.model_dump())
    if data.type == TransactionType.INCOME:
        # Income is recorded when received
        _apply_payment_totals(transaction, data.amount)
    else:
        _apply_payment_totals(transaction, 0.0)
    db.add(transaction)
    await db.commit()
    await db.refresh(transaction)
    return transaction


async def get_transaction(db: AsyncSession, transaction_id: uuid.UUID) -> Transaction:
    transaction = await db.get(Transaction, transaction_id)
    if transaction is None:
        raise NotFoundError("Transaction", str(transaction_id))
    return transaction


async def update_transaction(
    db: AsyncSession,
    transaction_id: uuid.UUID,
    data: TransactionUpdate,
) -> Transaction:
    transaction = await get_transaction(db, transaction_id)
    update_data = data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(transaction, field, value)

    if "amount" in update_data:
        _apply_payment_totals(transaction, transaction.total_paid)

    await db.commit()
    await db.refresh(transaction)
    return transaction


async def delete_transaction(db: AsyncSession, transaction_id: uuid.UUID) -> None:
    transaction = await get_transaction(db, transaction_id)
    await db.delete(transaction)
    await db.commit()


def _apply_filters(query: Select, filters: TransactionFilter | None) -> Select:
    if filters is None:
        return query
    if filters.type is not None:
        query = query.where(Transaction.type == filters.type)
    if filters.general_id is not None:
        query = query.where(Transaction.general_id == filters.general_id)
    if filters.concept_id is not None:
        query = query.where(Transaction.concept_id == filters.concept_id)
    if filters.subconcept_id is not None:
        query = query.where(Transaction.subconcept_id == filters.subconcept_id)
    if filters.provider_id is not None:
        query = query.where(Transaction.provider_id == filters.provider_id)
    if filters.division:
        query = query.where(Transaction.division == filters.division)
    if filters.status is not None:
        query = query.where(Transaction.status == filters.status)
    if filters.date_from is not None:
        query = query.where(Transaction.date >= filters.date_from)
    if filters.date_to is not None:
        query = query.where(Transaction.date <= filters.date_to)
    if filters.search:
        query = query.where(Transaction.description.ilike(f"%{filters.search}%"))
    return query


async def list_transactions(
    db: AsyncSession,
    filters: TransactionFilter,
    pagination: PaginationParams,
) -> tuple[list[Transaction], dict]:
    query = _apply_filters(select(Transaction), filters).order_by(
        Transaction.date.desc(), Transaction.created_at.desc()
    )
    return await paginate(db, query, pagination)


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------


async def record_payment(
    db: AsyncSession,
    transaction_id: uuid.UUID,
    data: PaymentCreate,
) -> TransactionPayment:
    transaction = await get_transaction(db, transaction_id)

    outstanding = transaction.amount - transaction.total_paid
    if data.amount - outstanding > 0.005:
        raise ValidationError(
            f"Payment of {data.amount:.2f} exceeds the outstanding balance of {outstanding:.2f}."
        )

    payment = TransactionPayment(
        transaction_id=transaction.id,
        amount=data.amount,
        date=data.date,
        reference=data.reference,
        notes=data.notes,
    )
    transaction.payments.append(payment)

    total_paid = sum(p.amount for p in transaction.payments)
    _apply_payment_totals(transaction, total_paid)

    await db.commit()
    await db.refresh(payment)
    return payment


async def delete_payment(db: AsyncSession, payment_id: uuid.UUID) -> Transaction:
    payment = await db.get(TransactionPayment, payment_id)
    if payment is None:
        raise NotFoundError("TransactionPayment", str(payment_id))

    transaction = await get_transaction(db, payment.transaction_id)
    await db.delete(payment)
    await db.flush()
    await db.refresh(transaction, attribute_names=["payments"])

    _apply_payment_totals(transaction, sum(p.amount for p in transaction.payments))
    await db.commit()
    await db.refresh(transaction)
    return transaction


# ---------------------------------------------------------------------------
# Transaction source for the report engine
# ---------------------------------------------------------------------------


def to_records(rows: Iterable[object]) -> list[TransactionRecord]:
    """Normalize rows into engine records, dropping malformed ones."""
    records = []
    for row in rows:
        try:
            records.append(TransactionRecord.model_validate(row))
        except PydanticValidationError as exc:
            logger.warning(
                "Skipping malformed transaction %s: %s",
                getattr(row, "id", None),
                exc.errors()[0]["msg"] if exc.errors() else exc,
            )
    return records


async def _fetch(db: AsyncSession, query: Select, what: str) -> list[TransactionRecord]:
    query = query.order_by(Transaction.date.desc(), Transaction.created_at.desc())
    try:
        result = await db.execute(query)
        rows = list(result.scalars().all())
    except SQLAlchemyError as exc:
        logger.exception("Transaction source failed while fetching %s", what)
        raise TransactionSourceError(f"Could not load transactions ({what}).") from exc
    return to_records(rows)


async def fetch_by_date_range(
    db: AsyncSession,
    start: datetime.date,
    end: datetime.date,
    filters: TransactionFilter | None = None,
) -> list[TransactionRecord]:
    """Transactions dated within ``[start, end]`` (both inclusive)."""
    query = _apply_filters(select(Transaction), filters).where(
        Transaction.date >= start,
        Transaction.date <= end,
    )
    return await _fetch(db, query, f"{start} to {end}")


async def fetch_all(
    db: AsyncSession,
    filters: TransactionFilter | None = None,
) -> list[TransactionRecord]:
    query = _apply_filters(select(Transaction), filters)
    return await _fetch(db, query, "all")


async def fetch_unpaid_expenses_before(
    db: AsyncSession,
    before: datetime.date,
    filters: TransactionFilter | None = None,
) -> list[TransactionRecord]:
    """Unpaid expenses dated strictly before ``before``."""
    query = _apply_filters(select(Transaction), filters).where(
        Transaction.type == TransactionType.EXPENSE,
        Transaction.status == PaymentStatus.UNPAID,
        Transaction.date < before,
    )
    return await _fetch(db, query, f"unpaid expenses before {before}")


async def carryover_income_exists(db: AsyncSession, year: int, month: int) -> bool:
    """Whether a synthetic carryover income is already booked in the month."""
    start, end = month_bounds(year, month)
    count = await db.scalar(
        select(func.count(Transaction.id)).where(
            Transaction.type == TransactionType.INCOME,
            Transaction.is_carryover.is_(True),
            Transaction.date >= start,
            Transaction.date <= end,
        )
    )
    return bool(count)
