"""Report statistics aggregation.

One pass over the transactions plus a finalization step. Everything here is
pure: the caller supplies the transactions, the carryover figure and the
catalog used to label the breakdowns.
"""

import logging
from dataclasses import dataclass
from typing import Iterable

from pydantic import BaseModel, ValidationError as PydanticValidationError

from app.catalog.schemas import CatalogSnapshot
from app.config import Settings
from app.reports.schemas import (
    BreakdownEntry,
    PaymentStatusBucket,
    ReportFilters,
    ReportStats,
    WeeklyAmounts,
    WeeklyBreakdown,
)
from app.reports.weeks import assign_week, build_weeks
from app.transactions.models import PaymentStatus, TransactionType
from app.transactions.schemas import TransactionRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportLabels:
    """Names used for transactions that lack a catalog reference."""

    no_general: str = "Uncategorized"
    no_concept: str = "No concept"
    no_subconcept: str = "No subconcept"
    no_provider: str = "No provider"
    missing_path: str = "N/A"

    @classmethod
    def from_settings(cls, settings: Settings) -> "ReportLabels":
        return cls(
            no_general=settings.label_no_general,
            no_concept=settings.label_no_concept,
            no_subconcept=settings.label_no_subconcept,
            no_provider=settings.label_no_provider,
            missing_path=settings.label_missing_path,
        )


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def derive_payment_status(total_paid: float, balance: float) -> PaymentStatus:
    """Effective status of an expense, computed from what was actually paid.

    Takes precedence over the stored ``status``, which can be stale.
    """
    if total_paid <= 0:
        return PaymentStatus.UNPAID
    if balance > 0:
        return PaymentStatus.PARTIAL
    return PaymentStatus.PAID


def is_carryover_candidate(txn: TransactionRecord, filters: ReportFilters) -> bool:
    """Unpaid expense dated before the report start: owed, but from an earlier period."""
    return (
        txn.type == TransactionType.EXPENSE
        and txn.status == PaymentStatus.UNPAID
        and filters.start_date is not None
        and txn.date < filters.start_date
    )


def is_in_period(txn: TransactionRecord, filters: ReportFilters) -> bool:
    if filters.start_date is not None and txn.date < filters.start_date:
        return False
    if filters.end_date is not None and txn.date > filters.end_date:
        return False
    return True


def outstanding(txn: TransactionRecord) -> float:
    """Amount still owed; falls back to the full amount when no balance is recorded."""
    return txn.balance if txn.balance and txn.balance > 0 else txn.amount


def settlement(txn: TransactionRecord, status: PaymentStatus) -> tuple[float, float]:
    """``(settled, owed)`` for a transaction in the given status."""
    if status == PaymentStatus.PAID:
        return txn.amount, 0.0
    if status == PaymentStatus.PARTIAL:
        return txn.total_paid, txn.balance or 0.0
    return 0.0, outstanding(txn)


def effective_status(txn: TransactionRecord) -> PaymentStatus:
    if txn.type == TransactionType.EXPENSE:
        return derive_payment_status(txn.total_paid, txn.balance or 0.0)
    return txn.status


# ---------------------------------------------------------------------------
# Accumulation helpers
# ---------------------------------------------------------------------------


def _tally(bucket: PaymentStatusBucket, txn: TransactionRecord, status: PaymentStatus) -> None:
    # paid: how much is settled; partial: settled part and what is owed;
    # unpaid: what is owed, in both columns
    settled, owed = settlement(txn, status)
    bucket.count += 1
    if status == PaymentStatus.UNPAID:
        bucket.amount += owed
        bucket.balance += owed
    else:
        bucket.amount += settled
        bucket.balance += owed


def _add(
    breakdown: dict[str, BreakdownEntry],
    key: str,
    txn: TransactionRecord,
    settled: float,
    owed: float,
) -> None:
    entry = breakdown.setdefault(key, BreakdownEntry())
    if txn.type == TransactionType.INCOME:
        entry.income += txn.amount
    else:
        entry.expense += txn.amount
    entry.total += txn.amount
    entry.count += 1
    entry.paid += settled
    entry.pending += owed


def _round_fields(model: BaseModel, *fields: str) -> None:
    for name in fields:
        setattr(model, name, round(getattr(model, name), 2))


def _normalize(transactions: Iterable[object]) -> tuple[list[TransactionRecord], int]:
    records: list[TransactionRecord] = []
    skipped = 0
    for item in transactions:
        if isinstance(item, TransactionRecord):
            records.append(item)
            continue
        try:
            records.append(TransactionRecord.model_validate(item))
        except PydanticValidationError:
            skipped += 1
            logger.warning("Skipping malformed transaction %r", getattr(item, "id", item))
    return records, skipped


def build_weekly_breakdown(
    records: list[TransactionRecord],
    filters: ReportFilters,
    catalog: CatalogSnapshot,
    labels: ReportLabels,
) -> WeeklyBreakdown:
    weeks = build_weeks(filters.start_date, filters.end_date)
    breakdown = WeeklyBreakdown(weeks=weeks)

    generals = catalog.general_names()
    concepts = catalog.concept_names()
    subconcepts = catalog.subconcept_names()

    for txn in records:
        week = assign_week(weeks, txn.date)
        if week is None:
            continue
        path = " > ".join(
            (
                generals.get(txn.general_id, labels.missing_path),
                concepts.get(txn.concept_id, labels.missing_path),
                subconcepts.get(txn.subconcept_id, labels.missing_path),
            )
        )
        side = breakdown.income if txn.type == TransactionType.INCOME else breakdown.expense
        amounts = side.setdefault(path, WeeklyAmounts())
        amounts.weeks[week.sequence_number] = (
            amounts.weeks.get(week.sequence_number, 0.0) + txn.amount
        )
        amounts.total += txn.amount

    for side in (breakdown.income, breakdown.expense):
        for amounts in side.values():
            amounts.weeks = {n: round(v, 2) for n, v in amounts.weeks.items()}
            amounts.total = round(amounts.total, 2)
    return breakdown


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------


def generate_stats(
    transactions: Iterable[object],
    filters: ReportFilters | None = None,
    *,
    carryover_income: float = 0.0,
    catalog: CatalogSnapshot | None = None,
    labels: ReportLabels | None = None,
) -> ReportStats:
    """Aggregate a report's transactions into :class:`ReportStats`.

    ``carryover_income`` is the balance carried into the report month. When
    that balance has already been booked as an ``is_carryover`` income inside
    the period, it is counted there instead and the separate figure is 0.
    """
    filters = filters or ReportFilters()
    catalog = catalog or CatalogSnapshot()
    labels = labels or ReportLabels()

    records, skipped = _normalize(transactions)
    stats = ReportStats(skipped_records=skipped)

    generals = catalog.general_names()
    concepts = catalog.concept_names()
    subconcepts = catalog.subconcept_names()
    providers = catalog.provider_names()

    for txn in records:
        status = effective_status(txn)

        if is_carryover_candidate(txn, filters):
            owed = outstanding(txn)
            stats.prior_pending.count += 1
            stats.prior_pending.amount += txn.amount
            stats.prior_pending.balance += owed
            stats.payment_status_expense.bucket(status).carryover += owed
            stats.carryover_balance += owed
            continue

        if not is_in_period(txn, filters):
            continue

        if txn.type == TransactionType.INCOME:
            if txn.is_carryover:
                stats.current_period_balance += txn.amount
                stats.materialized_carryover += txn.amount
                continue
            stats.total_income += txn.amount
            stats.income_count += 1
            stats.current_period_balance += txn.amount
            _tally(stats.payment_status_income.bucket(status), txn, status)
        else:
            stats.total_expenses += txn.amount
            stats.expense_count += 1
            stats.current_period_balance -= txn.amount
            _tally(stats.payment_status_expense.bucket(status), txn, status)

        settled, owed = settlement(txn, status)
        _add(stats.category_breakdown, generals.get(txn.general_id, labels.no_general), txn, settled, owed)
        _add(stats.concept_breakdown, concepts.get(txn.concept_id, labels.no_concept), txn, settled, owed)
        _add(
            stats.subconcept_breakdown,
            subconcepts.get(txn.subconcept_id, labels.no_subconcept),
            txn,
            settled,
            owed,
        )
        if txn.division:
            _add(stats.division_breakdown, txn.division, txn, settled, owed)
        if txn.type == TransactionType.EXPENSE and txn.provider_id is not None:
            _add(
                stats.provider_breakdown,
                providers.get(txn.provider_id, labels.no_provider),
                txn,
                settled,
                owed,
            )
        _add(stats.monthly_breakdown, f"{txn.date:%Y-%m}", txn, settled, owed)

    # Finalization
    stats.carryover_income = 0.0 if stats.materialized_carryover > 0 else round(carryover_income, 2)
    stats.total_income = round(stats.total_income, 2)
    stats.total_expenses = round(stats.total_expenses, 2)
    stats.current_period_balance = round(stats.current_period_balance, 2)
    stats.materialized_carryover = round(stats.materialized_carryover, 2)
    stats.carryover_balance = round(stats.carryover_balance, 2)
    stats.total_balance = round(stats.current_period_balance + stats.carryover_income, 2)
    stats.total_transactions = stats.income_count + stats.expense_count
    if stats.income_count:
        stats.average_income = round(stats.total_income / stats.income_count, 2)
    if stats.expense_count:
        stats.average_expense = round(stats.total_expenses / stats.expense_count, 2)

    for tally in (stats.payment_status_income, stats.payment_status_expense):
        for bucket in (tally.unpaid, tally.partial, tally.paid):
            _round_fields(bucket, "amount", "balance", "carryover")
    _round_fields(stats.prior_pending, "amount", "balance", "carryover")
    for breakdown in (
        stats.category_breakdown,
        stats.concept_breakdown,
        stats.subconcept_breakdown,
        stats.division_breakdown,
        stats.provider_breakdown,
        stats.monthly_breakdown,
    ):
        for entry in breakdown.values():
            _round_fields(entry, "income", "expense", "total", "paid", "pending")

    if filters.has_range:
        stats.weekly_breakdown = build_weekly_breakdown(records, filters, catalog, labels)

    logger.debug(
        "Aggregated %d transactions (%d skipped): balance %.2f",
        len(records),
        skipped,
        stats.total_balance,
    )
    return stats
