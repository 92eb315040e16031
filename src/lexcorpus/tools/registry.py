"""Tool registry: descriptors plus the single ``call_tool`` entry point.

``call_tool`` never raises. Unknown tools, invalid arguments and unexpected
failures all come back as ``{"content": [...], "isError": True}``.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Type

from pydantic import ValidationError

from lexcorpus.citations.validator import format_citation, validate_citation
from lexcorpus.store.corpus import Corpus, detect_capabilities
from lexcorpus.tools import eu, models, provisions, search, sources
from lexcorpus.tools.metadata import tool_response

logger = logging.getLogger(__name__)


@dataclass
class ToolSpec:
    name: str
    description: str
    input_model: Type[models.ToolInput]
    handler: Callable[..., Any]
    needs_corpus: bool = True
    capability: Optional[str] = None

    def descriptor(self) -> Dict[str, Any]:
        schema = self.input_model.model_json_schema()
        schema.pop('title', None)
        return {'name': self.name, 'description': self.description, 'inputSchema': schema}


def _validate_citation(corpus: Corpus, citation: str) -> Dict[str, Any]:
    return tool_response(corpus, validate_citation(corpus, citation))


TOOLS: List[ToolSpec] = [
    ToolSpec(
        'search_legislation',
        'Keyword search over statute provisions (FTS5, bm25 ranking). Snippets mark matches with >>> <<<. '
        'Use get_provision to retrieve a provision you already know.',
        models.SearchLegislationInput, search.search_legislation, capability='core_legislation',
    ),
    ToolSpec(
        'get_provision',
        'Full text of one provision (section or provision_ref) or of every provision in a statute.',
        models.GetProvisionInput, provisions.get_provision, capability='core_legislation',
    ),
    ToolSpec(
        'validate_citation',
        'Check that a citation names a stored statute and provision; warns about repealed or amended statutes.',
        models.ValidateCitationInput, _validate_citation, capability='core_legislation',
    ),
    ToolSpec(
        'build_legal_stance',
        'Collect the most relevant provisions across all statutes for a legal topic.',
        models.BuildLegalStanceInput, search.build_legal_stance, capability='core_legislation',
    ),
    ToolSpec(
        'format_citation',
        'Format a citation as "full" (Section N, Title), "short" (Title s N) or "pinpoint" (s N).',
        models.FormatCitationInput, format_citation, needs_corpus=False,
    ),
    ToolSpec(
        'check_currency',
        'Status, dates and warnings for a statute; optionally checks a provision and an as-of date.',
        models.CheckCurrencyInput, provisions.check_currency, capability='core_legislation',
    ),
    ToolSpec(
        'get_definitions',
        'Look up defined terms extracted from interpretation articles.',
        models.GetDefinitionsInput, search.get_definitions, capability='definitions',
    ),
    ToolSpec(
        'get_eu_basis',
        'EU regulations and directives a statute references or aligns with.',
        models.GetEUBasisInput, eu.get_eu_basis, capability='eu_references',
    ),
    ToolSpec(
        'get_provision_eu_basis',
        'EU references made by one specific provision.',
        models.GetProvisionEUBasisInput, eu.get_provision_eu_basis, capability='eu_references',
    ),
    ToolSpec(
        'get_national_implementations',
        'Statutes that reference or align with a given EU document (e.g. "regulation:2016/679").',
        models.GetNationalImplementationsInput, eu.get_national_implementations, capability='eu_references',
    ),
    ToolSpec(
        'search_eu_implementations',
        'Search EU documents referenced by national legislation by keyword, type or year range.',
        models.SearchEUImplementationsInput, eu.search_eu_implementations, capability='eu_references',
    ),
    ToolSpec(
        'validate_eu_compliance',
        'Alignment status (compliant, partial, unclear, not_applicable) of a statute against EU references.',
        models.ValidateEUComplianceInput, eu.validate_eu_compliance, capability='eu_references',
    ),
    ToolSpec(
        'list_sources',
        'Provenance of the data sources plus document and provision counts.',
        models.NoInput, sources.list_sources,
    ),
]

ABOUT_TOOL = ToolSpec(
    'about',
    'Server metadata, dataset statistics, capabilities and build fingerprint.',
    models.NoInput, sources.about,
)

_BY_NAME = {t.name: t for t in TOOLS + [ABOUT_TOOL]}


def get_tool(name: str) -> Optional[ToolSpec]:
    return _BY_NAME.get(name)


def list_tools(corpus: Optional[Corpus] = None, context: Optional[sources.AboutContext] = None) -> List[Dict[str, Any]]:
    """Descriptors for the tools the corpus can serve (all of them when no corpus is given)."""
    caps = detect_capabilities(corpus) if corpus is not None else None
    tools = [t for t in TOOLS if caps is None or t.capability is None or t.capability in caps]
    if context is not None:
        tools.append(ABOUT_TOOL)
    return [t.descriptor() for t in tools]


def _error(message: str) -> Dict[str, Any]:
    return {'content': [{'type': 'text', 'text': message}], 'isError': True}


def call_tool(
    corpus: Optional[Corpus],
    name: str,
    arguments: Optional[Dict[str, Any]] = None,
    context: Optional[sources.AboutContext] = None,
) -> Dict[str, Any]:
    spec = get_tool(name)
    if spec is None:
        return _error(f'Error: Unknown tool "{name}".')
    if spec is ABOUT_TOOL and context is None:
        return _error('About tool not configured.')
    if spec.needs_corpus and corpus is None:
        return _error('Error: no corpus is loaded.')
    try:
        parsed = spec.input_model(**(arguments or {}))
    except ValidationError as ve:
        return _error(f'Error: invalid arguments for {name}: {ve}')
    except TypeError as te:
        return _error(f'Error: invalid arguments for {name}: {te}')

    try:
        if spec is ABOUT_TOOL:
            result = sources.about(corpus, context)
        elif spec.needs_corpus:
            result = spec.handler(corpus, **parsed.model_dump())
        else:
            result = spec.handler(**parsed.model_dump())
    except Exception as e:
        logger.exception(f"Tool {name} failed")
        return _error(f'Error: {e}')
    return {
        'content': [{'type': 'text', 'text': json.dumps(result, ensure_ascii=False, indent=2, default=str)}],
        'isError': False,
    }


__all__ = ['ToolSpec', 'TOOLS', 'ABOUT_TOOL', 'get_tool', 'list_tools', 'call_tool']
