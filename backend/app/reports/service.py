"""Report orchestration: loads inputs, resolves the carryover and aggregates."""

import logging
from datetime import date

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.carryover import service as carryover_service
from app.carryover.schemas import CarryoverCheckResult
from app.catalog.schemas import CatalogSnapshot, ConceptResponse, GeneralResponse
from app.catalog.service import load_catalog
from app.config import Settings
from app.core.exceptions import CarryoverLookupError, ReportGenerationError, TransactionSourceError
from app.core.periods import month_bounds
from app.reports.schemas import (
    MixedTreeRow,
    MonthlyReport,
    ReportFilters,
    ReportPreferences,
    ReportStats,
)
from app.reports.stats import ReportLabels, generate_stats
from app.reports.trees import compare_trees
from app.transactions import service as transaction_service
from app.transactions.schemas import TransactionRecord

logger = logging.getLogger(__name__)


async def get_filtered_transactions(
    db: AsyncSession, filters: ReportFilters
) -> list[TransactionRecord]:
    """Transactions for a report.

    With a date range this is every transaction in the range plus the unpaid
    expenses dated before it, which the aggregator reports as pending from
    earlier periods.
    """
    source_filter = filters.transaction_filter()
    try:
        if not filters.has_range:
            return await transaction_service.fetch_all(db, source_filter)

        in_range = await transaction_service.fetch_by_date_range(
            db, filters.start_date, filters.end_date, source_filter
        )
        prior = await transaction_service.fetch_unpaid_expenses_before(
            db, filters.start_date, source_filter
        )
    except TransactionSourceError as exc:
        raise ReportGenerationError("Could not load the report transactions.") from exc

    seen = {t.id for t in in_range}
    return in_range + [t for t in prior if t.id not in seen]


async def load_report_catalog(db: AsyncSession) -> CatalogSnapshot:
    try:
        return await load_catalog(db)
    except SQLAlchemyError as exc:
        logger.exception("Reference catalog could not be loaded")
        raise ReportGenerationError("Could not load the reference catalog.") from exc


async def _resolve_carryover_income(
    db: AsyncSession,
    filters: ReportFilters,
    settings: Settings,
    today: date,
) -> tuple[float, CarryoverCheckResult | None]:
    """Carryover balance of the report month, 0 when unavailable.

    For a report on the current month the record is computed on first use.
    """
    if filters.start_date is None:
        return 0.0, None

    year, month = filters.start_date.year, filters.start_date.month
    check = None
    if settings.carryover_auto_check and (year, month) == (today.year, today.month):
        check = await carryover_service.check_and_calculate_carryover_if_needed(db, today)
        if check.error:
            logger.warning("%s", check.message)

    try:
        record = await carryover_service.get_carryover_for_month(db, year, month)
    except CarryoverLookupError:
        logger.warning("Carryover unavailable for %d-%02d, reporting without it", year, month)
        return 0.0, check
    if record is None or record.carryover_balance <= 0:
        return 0.0, check
    return record.carryover_balance, check


async def generate_report_stats(
    db: AsyncSession,
    transactions: list[TransactionRecord],
    filters: ReportFilters,
    settings: Settings | None = None,
    today: date | None = None,
) -> ReportStats:
    settings = settings or Settings()
    today = today or date.today()

    catalog = await load_report_catalog(db)
    carryover_income, _ = await _resolve_carryover_income(db, filters, settings, today)
    return generate_stats(
        transactions,
        filters,
        carryover_income=carryover_income,
        catalog=catalog,
        labels=ReportLabels.from_settings(settings),
    )


def calculate_tree_comparison(
    all_transactions: list[TransactionRecord],
    stats: ReportStats,
    filters: ReportFilters,
    categories: list[GeneralResponse],
    concepts: list[ConceptResponse],
    today: date | None = None,
    settings: Settings | None = None,
) -> list[MixedTreeRow]:
    labels = ReportLabels.from_settings(settings) if settings else None
    return compare_trees(all_transactions, stats, filters, categories, concepts, today, labels)


async def fetch_all_for_trees(db: AsyncSession, filters: ReportFilters) -> list[TransactionRecord]:
    """Every transaction matching the non-date filters, for opening tree balances."""
    try:
        return await transaction_service.fetch_all(db, filters.transaction_filter())
    except TransactionSourceError as exc:
        raise ReportGenerationError("Could not load transactions for the tree comparison.") from exc


async def build_monthly_report(
    db: AsyncSession,
    year: int,
    month: int,
    settings: Settings | None = None,
    filters: ReportFilters | None = None,
    preferences: ReportPreferences | None = None,
    today: date | None = None,
) -> MonthlyReport:
    """Stats and mixed-tree rows for one calendar month."""
    settings = settings or Settings()
    today = today or date.today()
    start, end = month_bounds(year, month)
    filters = (filters or ReportFilters()).model_copy(
        update={"start_date": start, "end_date": end}
    )

    transactions = await get_filtered_transactions(db, filters)
    catalog = await load_report_catalog(db)
    carryover_income, check = await _resolve_carryover_income(db, filters, settings, today)
    labels = ReportLabels.from_settings(settings)
    stats = generate_stats(
        transactions,
        filters,
        carryover_income=carryover_income,
        catalog=catalog,
        labels=labels,
    )

    all_transactions = await fetch_all_for_trees(db, filters)
    trees = compare_trees(
        all_transactions, stats, filters, catalog.generals, catalog.concepts, today, labels
    )
    logger.info(
        "Monthly report %d-%02d: %d transactions, %d mixed tree rows",
        year,
        month,
        len(transactions),
        len(trees),
    )

    return MonthlyReport(
        year=year,
        month=month,
        filters=filters,
        preferences=preferences or ReportPreferences(),
        stats=stats,
        mixed_trees=trees,
        transactions_count=len(transactions),
        carryover_check=check,
    )
