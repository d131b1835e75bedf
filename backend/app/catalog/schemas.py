"""Pydantic schemas for the reference catalog."""

import uuid
from dataclasses import dataclass, field

from pydantic import BaseModel, Field

from app.catalog.models import CategoryType


class GeneralCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    category_type: CategoryType
    description: str | None = None


class GeneralResponse(BaseModel):
    id: uuid.UUID
    name: str
    category_type: CategoryType
    description: str | None = None
    is_system: bool = False

    model_config = {"from_attributes": True}


class ConceptCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    general_id: uuid.UUID | None = None
    category_type: CategoryType | None = None
    description: str | None = None


class ConceptResponse(BaseModel):
    id: uuid.UUID
    name: str
    general_id: uuid.UUID | None = None
    category_type: CategoryType | None = None
    description: str | None = None
    is_system: bool = False

    model_config = {"from_attributes": True}


class SubconceptCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    concept_id: uuid.UUID | None = None


class SubconceptResponse(BaseModel):
    id: uuid.UUID
    name: str
    concept_id: uuid.UUID | None = None

    model_config = {"from_attributes": True}


class ProviderCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    tax_id: str | None = Field(None, max_length=50)


class ProviderResponse(BaseModel):
    id: uuid.UUID
    name: str
    tax_id: str | None = None
    is_active: bool = True

    model_config = {"from_attributes": True}


@dataclass
class CatalogSnapshot:
    """All four lookup tables loaded at once, used to label report buckets."""

    generals: list[GeneralResponse] = field(default_factory=list)
    concepts: list[ConceptResponse] = field(default_factory=list)
    subconcepts: list[SubconceptResponse] = field(default_factory=list)
    providers: list[ProviderResponse] = field(default_factory=list)

    def general_names(self) -> dict[uuid.UUID, str]:
        return {g.id: g.name for g in self.generals}

    def concept_names(self) -> dict[uuid.UUID, str]:
        return {c.id: c.name for c in self.concepts}

    def subconcept_names(self) -> dict[uuid.UUID, str]:
        return {s.id: s.name for s in self.subconcepts}

    def provider_names(self) -> dict[uuid.UUID, str]:
        return {p.id: p.name for p in self.providers}
