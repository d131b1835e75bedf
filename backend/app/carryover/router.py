from datetime import date
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.carryover import service
from app.carryover.schemas import CarryoverResponse
from app.config import Settings
from app.core.exceptions import NotFoundError
from app.core.periods import month_key
from app.dependencies import get_db, get_settings

router = APIRouter()

Year = Annotated[int, Path(ge=1900, le=9999)]
Month = Annotated[int, Path(ge=1, le=12)]


@router.get("")
async def list_carryovers(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    records = await service.list_carryovers(db)
    return {"data": [CarryoverResponse.model_validate(r) for r in records]}


@router.post("/check")
async def check_carryover(
    db: Annotated[AsyncSession, Depends(get_db)],
    today: Optional[date] = Query(None, description="Reference date, defaults to today"),
) -> dict:
    result = await service.check_and_calculate_carryover_if_needed(db, today)
    return {"data": result}


@router.post("/process")
async def process_carryover(
    db: Annotated[AsyncSession, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
    today: Optional[date] = Query(None, description="Reference date, defaults to today"),
) -> dict:
    result = await service.process_monthly_carryover(
        db,
        settings.carryover_general_name,
        settings.carryover_concept_name,
        today,
    )
    return {"data": result}


@router.get("/{year}/{month}")
async def get_carryover(
    year: Year,
    month: Month,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    record = await service.get_carryover_for_month(db, year, month)
    if record is None:
        raise NotFoundError("Carryover", month_key(year, month))
    return {"data": CarryoverResponse.model_validate(record)}


@router.get("/{year}/{month}/status")
async def carryover_status(
    year: Year,
    month: Month,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    return {"data": await service.get_carryover_status(db, year, month)}


@router.get("/{year}/{month}/preview")
async def preview_carryover(
    year: Year,
    month: Month,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    return {"data": await service.preview_carryover(db, year, month)}


@router.post("/{year}/{month}/calculate")
async def calculate_carryover(
    year: Year,
    month: Month,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    record = await service.calculate_and_save_carryover(db, year, month)
    return {"data": CarryoverResponse.model_validate(record)}
