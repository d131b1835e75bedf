"""Carryover engine: month-to-month balance propagation.

The carryover for ``(year, month)`` is computed from the month before it:
income received there, plus that month's own carryover (one hop only),
minus the expenses that were fully paid there. Records are stored one per
month under the key ``YYYY-MM``.
"""

import logging
from datetime import date, datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.catalog.service import get_or_create_carryover_concept, get_or_create_carryover_general
from app.carryover.calculator import carryover_balance, month_totals, usable_previous_carryover
from app.carryover.models import MonthlyCarryover
from app.carryover.schemas import (
    CarryoverCheckResult,
    CarryoverPreview,
    CarryoverProcessResult,
    CarryoverRecord,
    CarryoverStatus,
)
from app.core.exceptions import (
    AppError,
    CarryoverCalculationError,
    CarryoverLookupError,
    ConflictError,
)
from app.core.periods import month_bounds, month_key, previous_month
from app.transactions import service as transaction_service
from app.transactions.models import PaymentStatus, Transaction, TransactionType
from app.transactions.schemas import TransactionResponse

logger = logging.getLogger(__name__)

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


def _describe(record: CarryoverRecord) -> str:
    return (
        f"{record.carryover_balance:,.2f} from "
        f"{record.previous_month:02d}/{record.previous_year}"
    )


# ---------------------------------------------------------------------------
# Store access
# ---------------------------------------------------------------------------


async def get_carryover_for_month(
    db: AsyncSession, year: int, month: int
) -> MonthlyCarryover | None:
    """Stored record for the month, or ``None`` if it was never computed."""
    key = month_key(year, month)
    try:
        result = await db.execute(
            select(MonthlyCarryover).where(MonthlyCarryover.key == key)
        )
        return result.scalar_one_or_none()
    except SQLAlchemyError as exc:
        logger.exception("Carryover store read failed for %s", key)
        raise CarryoverLookupError(f"Could not read the carryover for {key}.") from exc


async def list_carryovers(db: AsyncSession) -> list[MonthlyCarryover]:
    try:
        result = await db.execute(
            select(MonthlyCarryover).order_by(
                MonthlyCarryover.year.desc(),
                MonthlyCarryover.month.desc(),
            )
        )
        return list(result.scalars().all())
    except SQLAlchemyError as exc:
        logger.exception("Carryover store listing failed")
        raise CarryoverLookupError("Could not read the carryover history.") from exc


def _copy_into(row: MonthlyCarryover, record: CarryoverRecord) -> None:
    for field, value in record.model_dump(exclude={"key", "year", "month"}).items():
        setattr(row, field, value)


async def _upsert(db: AsyncSession, record: CarryoverRecord) -> MonthlyCarryover:
    """Insert or overwrite the record stored under ``record.key``.

    A concurrent insert of the same key surfaces as an ``IntegrityError``;
    the row that won is then overwritten, so the last write wins.
    """
    row = await get_carryover_for_month(db, record.year, record.month)
    if row is None:
        row = MonthlyCarryover(**record.model_dump())
        db.add(row)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            logger.info("Carryover %s was stored concurrently, overwriting", record.key)
            row = await get_carryover_for_month(db, record.year, record.month)
            if row is None:
                raise
            _copy_into(row, record)
            await db.commit()
    else:
        _copy_into(row, record)
        await db.commit()

    await db.refresh(row)
    return row


# ---------------------------------------------------------------------------
# Computation
# ---------------------------------------------------------------------------


async def compute_carryover(db: AsyncSession, year: int, month: int) -> CarryoverRecord:
    """Compute the carryover rolled into ``(year, month)`` without storing it."""
    prev_year, prev_month = previous_month(year, month)
    start, end = month_bounds(prev_year, prev_month)

    transactions = await transaction_service.fetch_by_date_range(db, start, end)
    total_income, total_paid_expenses = month_totals(transactions)

    try:
        prev_record = await get_carryover_for_month(db, prev_year, prev_month)
    except CarryoverLookupError:
        logger.warning("No previous carryover readable for %s", month_key(prev_year, prev_month))
        prev_record = None
    previous_carryover = usable_previous_carryover(
        prev_record.carryover_balance if prev_record is not None else None
    )

    balance = carryover_balance(total_income, previous_carryover, total_paid_expenses)
    logger.info(
        "Carryover %s: income=%.2f previous=%.2f paid_expenses=%.2f -> %.2f",
        month_key(year, month),
        total_income,
        previous_carryover,
        total_paid_expenses,
        balance,
    )

    return CarryoverRecord(
        key=month_key(year, month),
        year=year,
        month=month,
        previous_year=prev_year,
        previous_month=prev_month,
        total_income=total_income,
        previous_carryover=previous_carryover,
        total_paid_expenses=total_paid_expenses,
        carryover_balance=balance,
        transactions_count=len(transactions),
        calculated_at=datetime.now(timezone.utc),
    )


async def calculate_and_save_carryover(
    db: AsyncSession, year: int, month: int
) -> MonthlyCarryover:
    """Compute the carryover for the month and store it, overwriting any previous value."""
    try:
        record = await compute_carryover(db, year, month)
        return await _upsert(db, record)
    except (AppError, SQLAlchemyError) as exc:
        await db.rollback()
        logger.exception("Carryover calculation failed for %s", month_key(year, month))
        raise CarryoverCalculationError(
            f"Could not calculate the carryover for {month_key(year, month)}."
        ) from exc


async def get_or_compute(db: AsyncSession, year: int, month: int) -> MonthlyCarryover:
    """Stored record for the month, computing and storing it on first use."""
    existing = await get_carryover_for_month(db, year, month)
    if existing is not None:
        return existing
    return await calculate_and_save_carryover(db, year, month)


async def check_and_calculate_carryover_if_needed(
    db: AsyncSession, today: date | None = None
) -> CarryoverCheckResult:
    """Make sure the current month has a carryover record.

    Never raises: a failure is reported as a soft warning in the result.
    """
    today = today or date.today()
    try:
        existing = await get_carryover_for_month(db, today.year, today.month)
        if existing is not None:
            record = CarryoverRecord.model_validate(existing)
            return CarryoverCheckResult(
                already_calculated=True,
                data=record,
                message=f"Carryover already calculated: {_describe(record)}",
            )

        row = await calculate_and_save_carryover(db, today.year, today.month)
        record = CarryoverRecord.model_validate(row)
        return CarryoverCheckResult(
            calculated=True,
            data=record,
            message=f"Carryover calculated: {_describe(record)}",
        )
    except Exception as exc:
        logger.warning(
            "Carryover check failed for %s", month_key(today.year, today.month), exc_info=True
        )
        await db.rollback()
        message = exc.message if isinstance(exc, AppError) else str(exc)
        return CarryoverCheckResult(
            error=True,
            message=f"Carryover could not be verified: {message}",
        )


async def get_carryover_status(db: AsyncSession, year: int, month: int) -> CarryoverStatus:
    try:
        row = await get_carryover_for_month(db, year, month)
    except CarryoverLookupError:
        return CarryoverStatus()
    if row is None:
        return CarryoverStatus()
    record = CarryoverRecord.model_validate(row)
    return CarryoverStatus(
        data=record,
        calculated=True,
        has_positive_balance=record.carryover_balance > 0,
    )


async def preview_carryover(db: AsyncSession, year: int, month: int) -> CarryoverPreview:
    """Recompute the month's carryover and compare it with the stored one."""
    computed = await compute_carryover(db, year, month)
    stored_row = await get_carryover_for_month(db, year, month)
    stored = CarryoverRecord.model_validate(stored_row) if stored_row is not None else None

    start, end = month_bounds(computed.previous_year, computed.previous_month)
    previous = await transaction_service.fetch_by_date_range(db, start, end)
    pending = sum(
        t.amount
        for t in previous
        if t.type == TransactionType.EXPENSE and t.status == PaymentStatus.UNPAID
    )

    return CarryoverPreview(
        computed=computed,
        stored=stored,
        matches_stored=(
            stored is not None
            and abs(stored.carryover_balance - computed.carryover_balance) < 0.005
        ),
        pending_expenses_previous_month=round(pending, 2),
    )


# ---------------------------------------------------------------------------
# Materialized carryover income
# ---------------------------------------------------------------------------


async def process_monthly_carryover(
    db: AsyncSession,
    general_name: str,
    concept_name: str,
    today: date | None = None,
) -> CarryoverProcessResult:
    """Ensure the current month's carryover exists and book it as income.

    The income entry is flagged ``is_carryover`` so reports count it in the
    period balance without presenting it as regular income.
    """
    today = today or date.today()
    row = await get_or_compute(db, today.year, today.month)
    record = CarryoverRecord.model_validate(row)

    if record.carryover_balance <= 0:
        return CarryoverProcessResult(
            carryover=record,
            message=(
                f"No positive balance to carry over from "
                f"{record.previous_month:02d}/{record.previous_year}"
            ),
        )

    if await transaction_service.carryover_income_exists(db, today.year, today.month):
        raise ConflictError(
            f"A carryover income already exists for {month_key(today.year, today.month)}."
        )

    general = await get_or_create_carryover_general(db, general_name)
    concept = await get_or_create_carryover_concept(db, concept_name, general.id)

    transaction = Transaction(
        type=TransactionType.INCOME,
        date=today,
        description=(
            f"Carryover - balance from {MONTH_NAMES[record.previous_month - 1]} "
            f"{record.previous_year}"
        ),
        amount=record.carryover_balance,
        status=PaymentStatus.PAID,
        total_paid=record.carryover_balance,
        balance=0.0,
        general_id=general.id,
        concept_id=concept.id,
        is_carryover=True,
        carryover_from_year=record.previous_year,
        carryover_from_month=record.previous_month,
    )
    db.add(transaction)
    await db.commit()
    await db.refresh(transaction)
    logger.info("Booked carryover income %s for %s", transaction.id, record.key)

    return CarryoverProcessResult(
        carryover=record,
        transaction=TransactionResponse.model_validate(transaction),
        message=f"Carryover of {_describe(record)} applied",
    )
