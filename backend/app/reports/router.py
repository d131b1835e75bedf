import uuid
from datetime import date
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Path, Query
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings
from app.core.exceptions import ValidationError
from app.dependencies import get_db, get_settings
from app.reports import service
from app.reports.schemas import ReportFilters, ReportPreferences
from app.transactions.models import PaymentStatus, TransactionType

router = APIRouter()


def get_report_filters(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    type: Optional[TransactionType] = Query(None),
    general_id: Optional[uuid.UUID] = Query(None),
    concept_id: Optional[uuid.UUID] = Query(None),
    subconcept_id: Optional[uuid.UUID] = Query(None),
    provider_id: Optional[uuid.UUID] = Query(None),
    division: Optional[str] = Query(None),
    status: Optional[PaymentStatus] = Query(None),
) -> ReportFilters:
    try:
        return ReportFilters(
            start_date=start_date,
            end_date=end_date,
            type=type,
            general_id=general_id,
            concept_id=concept_id,
            subconcept_id=subconcept_id,
            provider_id=provider_id,
            division=division,
            status=status,
        )
    except PydanticValidationError as exc:
        raise ValidationError("start_date must not be after end_date") from exc


@router.get("/transactions")
async def report_transactions(
    db: Annotated[AsyncSession, Depends(get_db)],
    filters: Annotated[ReportFilters, Depends(get_report_filters)],
) -> dict:
    transactions = await service.get_filtered_transactions(db, filters)
    return {"data": transactions, "meta": {"total_count": len(transactions)}}


@router.get("/stats")
async def report_stats(
    db: Annotated[AsyncSession, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
    filters: Annotated[ReportFilters, Depends(get_report_filters)],
) -> dict:
    transactions = await service.get_filtered_transactions(db, filters)
    stats = await service.generate_report_stats(db, transactions, filters, settings)
    return {"data": stats.model_dump()}


@router.get("/tree-comparison")
async def tree_comparison(
    db: Annotated[AsyncSession, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
    filters: Annotated[ReportFilters, Depends(get_report_filters)],
) -> dict:
    transactions = await service.get_filtered_transactions(db, filters)
    stats = await service.generate_report_stats(db, transactions, filters, settings)
    all_transactions = await service.fetch_all_for_trees(db, filters)
    catalog = await service.load_report_catalog(db)
    rows = service.calculate_tree_comparison(
        all_transactions,
        stats,
        filters,
        catalog.generals,
        catalog.concepts,
        settings=settings,
    )
    return {"data": [r.model_dump() for r in rows]}


@router.get("/monthly/{year}/{month}")
async def monthly_report(
    db: Annotated[AsyncSession, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
    year: int = Path(..., ge=1900, le=9999),
    month: int = Path(..., ge=1, le=12),
    show_income_in_breakdown: bool = Query(False),
) -> dict:
    report = await service.build_monthly_report(
        db,
        year,
        month,
        settings,
        preferences=ReportPreferences(show_income_in_breakdown=show_income_in_breakdown),
    )
    return {"data": report.model_dump()}
