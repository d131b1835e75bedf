"""FastAPI router for the reference catalog."""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.catalog import service
from app.catalog.schemas import (
    ConceptCreate,
    ConceptResponse,
    GeneralCreate,
    GeneralResponse,
    ProviderCreate,
    ProviderResponse,
    SubconceptCreate,
    SubconceptResponse,
)
from app.dependencies import get_db

router = APIRouter()


@router.get("/generals")
async def list_generals(db: Annotated[AsyncSession, Depends(get_db)]) -> dict:
    generals = await service.list_generals(db)
    return {"data": [GeneralResponse.model_validate(g) for g in generals]}


@router.post("/generals", status_code=201)
async def create_general(
    data: GeneralCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    general = await service.create_general(db, data)
    return {"data": GeneralResponse.model_validate(general)}


@router.get("/concepts")
async def list_concepts(
    db: Annotated[AsyncSession, Depends(get_db)],
    general_id: uuid.UUID | None = None,
) -> dict:
    concepts = await service.list_concepts(db, general_id)
    return {"data": [ConceptResponse.model_validate(c) for c in concepts]}


@router.post("/concepts", status_code=201)
async def create_concept(
    data: ConceptCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    concept = await service.create_concept(db, data)
    return {"data": ConceptResponse.model_validate(concept)}


@router.get("/subconcepts")
async def list_subconcepts(
    db: Annotated[AsyncSession, Depends(get_db)],
    concept_id: uuid.UUID | None = None,
) -> dict:
    subconcepts = await service.list_subconcepts(db, concept_id)
    return {"data": [SubconceptResponse.model_validate(s) for s in subconcepts]}


@router.post("/subconcepts", status_code=201)
async def create_subconcept(
    data: SubconceptCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    subconcept = await service.create_subconcept(db, data)
    return {"data": SubconceptResponse.model_validate(subconcept)}


@router.get("/providers")
async def list_providers(db: Annotated[AsyncSession, Depends(get_db)]) -> dict:
    providers = await service.list_providers(db)
    return {"data": [ProviderResponse.model_validate(p) for p in providers]}


@router.post("/providers", status_code=201)
async def create_provider(
    data: ProviderCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    provider = await service.create_provider(db, data)
    return {"data": ProviderResponse.model_validate(provider)}
