"""Canonical schemas for ingestion and the seed files handed to the corpus build.

The seed format is one JSON object per document: descriptor fields plus
ordered ``provisions`` and ``definitions`` arrays.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class DocumentStatus(str, Enum):
    IN_FORCE = 'in_force'
    AMENDED = 'amended'
    REPEALED = 'repealed'
    NOT_YET_IN_FORCE = 'not_yet_in_force'


class CensusClassification(str, Enum):
    INGESTABLE = 'ingestable'
    INACCESSIBLE = 'inaccessible'
    METADATA_ONLY = 'metadata_only'


class DocumentDescriptor(BaseModel):
    id: str
    title: str
    title_en: Optional[str] = None
    short_name: str = ''
    status: DocumentStatus = DocumentStatus.IN_FORCE
    issued_date: Optional[str] = None
    in_force_date: Optional[str] = None
    url: str = ''
    official_number: Optional[str] = None
    description: Optional[str] = None


class CensusEntry(DocumentDescriptor):
    type: str = 'statute'
    classification: CensusClassification = CensusClassification.INGESTABLE


class ProvisionSeed(BaseModel):
    provision_ref: str
    chapter: Optional[str] = None
    section: str
    title: Optional[str] = None
    content: str
    metadata: Optional[Dict[str, Any]] = None


class DefinitionSeed(BaseModel):
    term: str
    definition: str
    source_provision: Optional[str] = None


class DocumentSeed(DocumentDescriptor):
    type: str = 'statute'
    provisions: List[ProvisionSeed] = Field(default_factory=list)
    definitions: List[DefinitionSeed] = Field(default_factory=list)

    @classmethod
    def metadata_only(cls, descriptor: DocumentDescriptor) -> 'DocumentSeed':
        return cls(**descriptor.model_dump(include=set(DocumentDescriptor.model_fields)))


class ExternalReference(BaseModel):
    doc_type: Literal['regulation', 'directive']
    community: str
    year: int
    number: int
    eu_document_id: str
    eu_article: Optional[str] = None
    full_citation: str
    reference_context: str
    reference_type: Literal['implements', 'references']


__all__ = [
    'DocumentStatus', 'CensusClassification', 'DocumentDescriptor', 'CensusEntry',
    'ProvisionSeed', 'DefinitionSeed', 'DocumentSeed', 'ExternalReference',
]
