"""FastAPI router for the transaction ledger."""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.pagination import PaginationParams, get_pagination
from app.dependencies import get_db
from app.transactions import service
from app.transactions.schemas import (
    PaymentCreate,
    PaymentResponse,
    TransactionCreate,
    TransactionFilter,
    TransactionResponse,
    TransactionUpdate,
)

router = APIRouter()


@router.get("")
async def list_transactions(
    db: Annotated[AsyncSession, Depends(get_db)],
    pagination: Annotated[PaginationParams, Depends(get_pagination)],
    filters: Annotated[TransactionFilter, Depends()],
) -> dict:
    transactions, meta = await service.list_transactions(db, filters, pagination)
    return {
        "data": [TransactionResponse.model_validate(t) for t in transactions],
        "meta": meta,
    }


@router.post("", status_code=201)
async def create_transaction(
    data: TransactionCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    transaction = await service.create_transaction(db, data)
    return {"data": TransactionResponse.model_validate(transaction)}


@router.get("/{transaction_id}")
async def get_transaction(
    transaction_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    transaction = await service.get_transaction(db, transaction_id)
    return {"data": TransactionResponse.model_validate(transaction)}


@router.put("/{transaction_id}")
async def update_transaction(
    transaction_id: uuid.UUID,
    data: TransactionUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    transaction = await service.update_transaction(db, transaction_id, data)
    return {"data": TransactionResponse.model_validate(transaction)}


@router.delete("/{transaction_id}")
async def delete_transaction(
    transaction_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    await service.delete_transaction(db, transaction_id)
    return {"data": {"message": "Transaction deleted successfully"}}


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------


@router.post("/{transaction_id}/payments", status_code=201)
async def record_payment(
    transaction_id: uuid.UUID,
    data: PaymentCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    payment = await service.record_payment(db, transaction_id, data)
    return {"data": PaymentResponse.model_validate(payment)}


@router.delete("/payments/{payment_id}")
async def delete_payment(
    payment_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    transaction = await service.delete_payment(db, payment_id)
    return {"data": TransactionResponse.model_validate(transaction)}
