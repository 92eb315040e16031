from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ToolInput(BaseModel):
    model_config = ConfigDict(extra='ignore')


class SearchLegislationInput(ToolInput):
    query: str = Field(min_length=1, max_length=1000, description='Keywords or a quoted phrase.')
    document_id: Optional[str] = Field(default=None, description='Restrict to one statute (id or title).')
    status: Optional[Literal['in_force', 'amended', 'repealed', 'not_yet_in_force']] = Field(
        default=None, description='Filter by legislative status.')
    limit: Optional[int] = Field(default=10, description='Maximum results (default 10, max 50).')


class BuildLegalStanceInput(ToolInput):
    query: str = Field(min_length=1, max_length=1000, description='Legal question or topic.')
    document_id: Optional[str] = None
    limit: Optional[int] = Field(default=5, description='Maximum results (default 5, max 20).')


class GetDefinitionsInput(ToolInput):
    term: str = Field(min_length=1, max_length=200, description='Term to look up.')
    document_id: Optional[str] = None
    limit: Optional[int] = Field(default=10, description='Maximum results (default 10, max 50).')


class GetProvisionInput(ToolInput):
    document_id: str = Field(min_length=1, description='Statute id, title or short name.')
    section: Optional[str] = Field(default=None, description='Article number, e.g. "21". Omit for all provisions.')
    provision_ref: Optional[str] = Field(default=None, description='Stored reference, e.g. "dieu21".')


class ValidateCitationInput(ToolInput):
    citation: str = Field(min_length=1, max_length=500, description='e.g. "Section 21, Hiến pháp 2013".')


class FormatCitationInput(ToolInput):
    citation: str = Field(min_length=1, max_length=500)
    format: Literal['full', 'short', 'pinpoint'] = 'full'


class CheckCurrencyInput(ToolInput):
    document_id: str = Field(min_length=1)
    provision_ref: Optional[str] = None
    as_of_date: Optional[str] = Field(default=None, description='Date to check against (ISO or dd/mm/yyyy).')


class GetEUBasisInput(ToolInput):
    document_id: str = Field(min_length=1)
    include_articles: bool = False
    reference_types: Optional[List[Literal['implements', 'references']]] = None


class GetProvisionEUBasisInput(ToolInput):
    document_id: str = Field(min_length=1)
    provision_ref: str = Field(min_length=1)


class GetNationalImplementationsInput(ToolInput):
    eu_document_id: str = Field(min_length=1, description='e.g. "regulation:2016/679".')
    primary_only: bool = False
    in_force_only: bool = False


class SearchEUImplementationsInput(ToolInput):
    query: Optional[str] = None
    type: Optional[Literal['directive', 'regulation']] = None
    year_from: Optional[int] = None
    year_to: Optional[int] = None
    has_implementation: Optional[bool] = None
    limit: Optional[int] = Field(default=20, description='Maximum results (default 20, max 100).')


class ValidateEUComplianceInput(ToolInput):
    document_id: str = Field(min_length=1)
    provision_ref: Optional[str] = None
    eu_document_id: Optional[str] = None


class NoInput(ToolInput):
    pass
