"""Citation parsing, validation and formatting.

Accepted phrasings, tried in order:
  - "Section 21, Hiến pháp 2013" (also "Article N" / "Điều N")
  - "Penal Code 2015 s 51" / "Penal Code 2015, s. 51"
  - "Penal Code 2015 Section 51"
  - a bare document reference
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from lexcorpus.citations.resolver import find_provision, resolve_document_id
from lexcorpus.ingest.schemas import DocumentStatus
from lexcorpus.store.corpus import Corpus

_NUM = r'(\d+[A-Za-z]*(?:\(\d+\))?)'
_WORD = r'(?:Section|Article|Đi[eề]u)'

SECTION_FIRST_RE = re.compile(rf'^{_WORD}\s+{_NUM}\s*[,;]?\s+(.+)$', re.IGNORECASE)
SHORT_LAST_RE = re.compile(rf'^(.+?)\s*[,;]?\s+s\.?\s+{_NUM}$', re.IGNORECASE)
SECTION_LAST_RE = re.compile(rf'^(.+?)\s*[,;]?\s+{_WORD}\s+{_NUM}$', re.IGNORECASE)

STATUS_WARNINGS: Dict[DocumentStatus, Optional[str]] = {
    DocumentStatus.IN_FORCE: None,
    DocumentStatus.AMENDED: 'Note: This statute has been amended. Verify you are referencing the current version.',
    DocumentStatus.REPEALED: 'WARNING: This statute has been repealed.',
    DocumentStatus.NOT_YET_IN_FORCE: 'Note: This statute is not yet in force.',
}

CITATION_FORMATS = ('full', 'short', 'pinpoint')


@dataclass
class ParsedCitation:
    document_ref: str
    provision: Optional[str] = None


def parse_citation(citation: str) -> Optional[ParsedCitation]:
    trimmed = (citation or '').strip()
    if not trimmed:
        return None
    m = SECTION_FIRST_RE.match(trimmed)
    if m:
        return ParsedCitation(m.group(2).strip(), m.group(1))
    for pattern in (SHORT_LAST_RE, SECTION_LAST_RE):
        m = pattern.match(trimmed)
        if m:
            return ParsedCitation(m.group(1).strip(), m.group(2))
    return ParsedCitation(trimmed)


def status_warnings(status: str) -> List[str]:
    try:
        warning = STATUS_WARNINGS[DocumentStatus(status)]
    except ValueError:
        return [f"Unknown document status: {status}"]
    return [warning] if warning else []


def validate_citation(corpus: Corpus, citation: str) -> Dict[str, Any]:
    """Check ``citation`` against the corpus. Misses give ``valid: False``, never an exception."""
    parsed = parse_citation(citation)
    if parsed is None:
        return {'valid': False, 'citation': citation, 'warnings': ['Could not parse citation format']}

    doc_id = resolve_document_id(corpus, parsed.document_ref)
    if doc_id is None:
        return {'valid': False, 'citation': citation, 'warnings': [f'Document not found: "{parsed.document_ref}"']}

    doc = corpus.query_one("SELECT id, title, status FROM legal_documents WHERE id = ?", (doc_id,))
    warnings = status_warnings(doc['status'])
    result: Dict[str, Any] = {
        'valid': True,
        'citation': citation,
        'normalized': doc['title'],
        'document_id': doc_id,
        'document_title': doc['title'],
        'status': doc['status'],
        'warnings': warnings,
    }
    if parsed.provision is None:
        return result

    provision = find_provision(corpus, doc_id, parsed.provision)
    if provision is None:
        return {
            'valid': False,
            'citation': citation,
            'document_id': doc_id,
            'document_title': doc['title'],
            'status': doc['status'],
            'warnings': warnings + [f'Provision "Section {parsed.provision}" not found in {doc["title"]}'],
        }
    result['normalized'] = f"Section {parsed.provision}, {doc['title']}"
    result['provision_ref'] = provision['provision_ref']
    return result


def format_citation(citation: str, format: str = 'full') -> Dict[str, str]:
    """Reformat a citation string; no corpus lookup."""
    parsed = parse_citation(citation)
    act = parsed.document_ref if parsed else (citation or '').strip()
    section = parsed.provision if parsed else None
    if format == 'short':
        formatted = f"{act.split('(')[0].strip()} s {section}" if section else act
    elif format == 'pinpoint':
        formatted = f"s {section}" if section else act
    else:
        format = 'full'
        formatted = f"Section {section}, {act}" if section else act
    return {'original': citation, 'formatted': formatted, 'format': format}


__all__ = ['ParsedCitation', 'parse_citation', 'validate_citation', 'format_citation', 'status_warnings',
           'STATUS_WARNINGS', 'CITATION_FORMATS']
