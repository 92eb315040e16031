"""Provision retrieval and currency checks."""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from lexcorpus.citations.resolver import find_provision, resolve_document_id
from lexcorpus.ingest.schemas import DocumentStatus
from lexcorpus.store.corpus import Corpus
from lexcorpus.tools.metadata import tool_response

DATE_FORMATS = ('%Y-%m-%d', '%d/%m/%Y', '%d-%m-%Y', '%Y/%m/%d', '%d.%m.%Y', '%d %B %Y', '%B %d, %Y', '%d %b %Y')

CURRENCY_WARNINGS: Dict[DocumentStatus, Optional[str]] = {
    DocumentStatus.IN_FORCE: None,
    DocumentStatus.AMENDED: 'This statute has been amended; check that the cited text is the current version.',
    DocumentStatus.REPEALED: 'This statute has been repealed and is no longer in force.',
    DocumentStatus.NOT_YET_IN_FORCE: 'This statute has not yet entered into force.',
}


def normalize_as_of_date(value: Optional[str]) -> Optional[str]:
    """ISO ``YYYY-MM-DD`` for a date in any accepted format, else None."""
    if not value or not value.strip():
        return None
    text = value.strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date().isoformat()
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(text.replace('Z', '+00:00')).date().isoformat()
    except ValueError:
        return None


def provision_record(doc: Dict[str, Any], row: Dict[str, Any]) -> Dict[str, Any]:
    return {
        'document_id': doc['id'],
        'document_title': doc['title'],
        'provision_ref': row['provision_ref'],
        'chapter': row['chapter'],
        'section': row['section'],
        'title': row['title'],
        'content': row['content'],
        'url': doc.get('url'),
    }


def get_provision(
    corpus: Corpus,
    document_id: str,
    section: Optional[str] = None,
    provision_ref: Optional[str] = None,
) -> Dict[str, Any]:
    """All provisions of a document, or the one named by ``provision_ref``/``section``."""
    resolved = resolve_document_id(corpus, document_id)
    if resolved is None:
        return tool_response(corpus, [], f'No document found matching "{document_id}"')
    doc = corpus.query_one("SELECT id, title, url FROM legal_documents WHERE id = ?", (resolved,))

    ref = provision_ref or section
    if ref:
        row = find_provision(corpus, resolved, ref)
        if row is None:
            return tool_response(corpus, [], f'Provision "{ref}" not found in document "{resolved}"')
        return tool_response(corpus, [provision_record(doc, row)])

    rows = corpus.query("SELECT * FROM legal_provisions WHERE document_id = ? ORDER BY id", (resolved,))
    note = None if rows else f'Document "{resolved}" has no stored provisions (metadata only)'
    return tool_response(corpus, [provision_record(doc, r) for r in rows], note)


def _as_of_warning(as_of: str, in_force_date: Optional[str]) -> Optional[str]:
    if not in_force_date:
        return None
    try:
        starts = date.fromisoformat(in_force_date[:10])
    except ValueError:
        return None
    if date.fromisoformat(as_of) < starts:
        return f'On {as_of} this statute was not yet in force (in force from {in_force_date}).'
    return None


def check_currency(
    corpus: Corpus,
    document_id: str,
    provision_ref: Optional[str] = None,
    as_of_date: Optional[str] = None,
) -> Dict[str, Any]:
    resolved = resolve_document_id(corpus, document_id)
    if resolved is None:
        return tool_response(corpus, {
            'document_id': document_id,
            'title': 'Unknown',
            'status': 'not_found',
            'issued_date': None,
            'in_force_date': None,
            'warnings': [f'Document not found: "{document_id}"'],
        })
    doc = corpus.query_one(
        "SELECT id, title, status, issued_date, in_force_date FROM legal_documents WHERE id = ?", (resolved,)
    )
    warnings: List[str] = []
    status_warning = CURRENCY_WARNINGS[DocumentStatus(doc['status'])]
    if status_warning:
        warnings.append(status_warning)

    result: Dict[str, Any] = {
        'document_id': doc['id'],
        'title': doc['title'],
        'status': doc['status'],
        'issued_date': doc['issued_date'],
        'in_force_date': doc['in_force_date'],
        'warnings': warnings,
    }

    if provision_ref:
        row = find_provision(corpus, resolved, provision_ref)
        result['provision_found'] = row is not None
        if row is None:
            warnings.append(f'Provision "{provision_ref}" not found in {doc["title"]}')
        else:
            result['provision_ref'] = row['provision_ref']

    if as_of_date:
        as_of = normalize_as_of_date(as_of_date)
        if as_of is None:
            warnings.append(f'Could not parse as_of_date "{as_of_date}"; ignoring it')
        else:
            result['as_of_date'] = as_of
            warning = _as_of_warning(as_of, doc['in_force_date'])
            if warning:
                warnings.append(warning)
    return tool_response(corpus, result)


__all__ = ['get_provision', 'check_currency', 'normalize_as_of_date', 'CURRENCY_WARNINGS']
