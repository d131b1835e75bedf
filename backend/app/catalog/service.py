"""Business logic for the reference catalog."""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.catalog.models import CategoryType, Concept, GeneralCategory, Provider, Subconcept
from app.catalog.schemas import (
    CatalogSnapshot,
    ConceptCreate,
    ConceptResponse,
    GeneralCreate,
    GeneralResponse,
    ProviderCreate,
    ProviderResponse,
    SubconceptCreate,
    SubconceptResponse,
)
from app.core.exceptions import ConflictError, NotFoundError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Generals
# ---------------------------------------------------------------------------


async def list_generals(db: AsyncSession) -> list[GeneralCategory]:
    result = await db.execute(select(GeneralCategory).order_by(GeneralCategory.name))
    return list(result.scalars().all())


async def create_general(db: AsyncSession, data: GeneralCreate, is_system: bool = False) -> GeneralCategory:
    result = await db.execute(
        select(GeneralCategory).where(
            GeneralCategory.name == data.name,
            GeneralCategory.category_type == data.category_type,
        )
    )
    if result.scalar_one_or_none() is not None:
        raise ConflictError(f"A general category named '{data.name}' already exists.")

    general = GeneralCategory(**data.model_dump(), is_system=is_system)
    db.add(general)
    await db.commit()
    await db.refresh(general)
    return general


async def get_general(db: AsyncSession, general_id: uuid.UUID) -> GeneralCategory:
    general = await db.get(GeneralCategory, general_id)
    if general is None:
        raise NotFoundError("GeneralCategory", str(general_id))
    return general


# ---------------------------------------------------------------------------
# Concepts
# ---------------------------------------------------------------------------


async def list_concepts(db: AsyncSession, general_id: uuid.UUID | None = None) -> list[Concept]:
    query = select(Concept).order_by(Concept.name)
    if general_id is not None:
        query = query.where(Concept.general_id == general_id)
    result = await db.execute(query)
    return list(result.scalars().all())


async def create_concept(db: AsyncSession, data: ConceptCreate, is_system: bool = False) -> Concept:
    if data.general_id is not None:
        await get_general(db, data.general_id)

    concept = Concept(**data.model_dump(), is_system=is_system)
    db.add(concept)
    await db.commit()
    await db.refresh(concept)
    return concept


# ---------------------------------------------------------------------------
# Subconcepts
# ---------------------------------------------------------------------------


async def list_subconcepts(db: AsyncSession, concept_id: uuid.UUID | None = None) -> list[Subconcept]:
    query = select(Subconcept).order_by(Subconcept.name)
    if concept_id is not None:
        query = query.where(Subconcept.concept_id == concept_id)
    result = await db.execute(query)
    return list(result.scalars().all())


async def create_subconcept(db: AsyncSession, data: SubconceptCreate) -> Subconcept:
    if data.concept_id is not None and await db.get(Concept, data.concept_id) is None:
        raise NotFoundError("Concept", str(data.concept_id))

    subconcept = Subconcept(**data.model_dump())
    db.add(subconcept)
    await db.commit()
    await db.refresh(subconcept)
    return subconcept


# ---------------------------------------------------------------------------
# Providers
# ---------------------------------------------------------------------------


async def list_providers(db: AsyncSession) -> list[Provider]:
    result = await db.execute(select(Provider).order_by(Provider.name))
    return list(result.scalars().all())


async def create_provider(db: AsyncSession, data: ProviderCreate) -> Provider:
    provider = Provider(**data.model_dump())
    db.add(provider)
    await db.commit()
    await db.refresh(provider)
    return provider


# ---------------------------------------------------------------------------
# Snapshot used by the report engine
# ---------------------------------------------------------------------------


async def load_catalog(db: AsyncSession) -> CatalogSnapshot:
    """Load every lookup table into a detached snapshot."""
    generals = await list_generals(db)
    concepts = await list_concepts(db)
    subconcepts = await list_subconcepts(db)
    providers = await list_providers(db)
    return CatalogSnapshot(
        generals=[GeneralResponse.model_validate(g) for g in generals],
        concepts=[ConceptResponse.model_validate(c) for c in concepts],
        subconcepts=[SubconceptResponse.model_validate(s) for s in subconcepts],
        providers=[ProviderResponse.model_validate(p) for p in providers],
    )


# ---------------------------------------------------------------------------
# System entries for materialized carryover income
# ---------------------------------------------------------------------------


async def get_or_create_carryover_general(db: AsyncSession, name: str) -> GeneralCategory:
    result = await db.execute(
        select(GeneralCategory).where(
            GeneralCategory.name == name,
            GeneralCategory.category_type == CategoryType.INCOME,
        )
    )
    general = result.scalars().first()
    if general is None:
        general = await create_general(
            db,
            GeneralCreate(
                name=name,
                category_type=CategoryType.INCOME,
                description="Income carried over from the previous month's balance",
            ),
            is_system=True,
        )
        logger.info("Created carryover general category %s", general.id)
    return general


async def get_or_create_carryover_concept(
    db: AsyncSession, name: str, general_id: uuid.UUID
) -> Concept:
    result = await db.execute(select(Concept).where(Concept.name == name))
    concept = result.scalars().first()
    if concept is None:
        concept = await create_concept(
            db,
            ConceptCreate(
                name=name,
                general_id=general_id,
                category_type=CategoryType.INCOME,
                description="Balance carried over from the previous month",
            ),
            is_system=True,
        )
        logger.info("Created carryover concept %s", concept.id)
    return concept
