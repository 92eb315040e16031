"""Cross-reference tools over ``eu_documents`` / ``eu_references``.

Vietnam is not bound by EU law; these references record where national text
cites or aligns with an EU regulation or directive.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from lexcorpus.citations.resolver import find_provision, resolve_document_id
from lexcorpus.store.corpus import Corpus, detect_capabilities
from lexcorpus.tools.metadata import tool_response
from lexcorpus.tools.search import clamp_limit

EU_UNAVAILABLE = 'EU references are not available in this corpus'
EU_SEARCH_DEFAULT_LIMIT, EU_SEARCH_MAX_LIMIT = 20, 100
COMPLIANCE_STATUSES = ('compliant', 'partial', 'unclear', 'not_applicable')
NO_REFERENCES_NOTE = (
    'No EU cross-references found for this statute. Vietnam is not an EU member; '
    'EU references indicate comparable frameworks rather than transposition obligations.'
)


def _has_eu(corpus: Corpus) -> bool:
    return 'eu_references' in detect_capabilities(corpus)


def get_eu_basis(
    corpus: Corpus,
    document_id: str,
    include_articles: bool = False,
    reference_types: Optional[List[str]] = None,
) -> Dict[str, Any]:
    if not _has_eu(corpus):
        return tool_response(corpus, [], EU_UNAVAILABLE)
    resolved = resolve_document_id(corpus, document_id)
    if resolved is None:
        return tool_response(corpus, [], f'No document found matching "{document_id}"')

    sql = """
        SELECT
          er.eu_document_id,
          ed.type AS eu_document_type,
          COALESCE(ed.title, ed.short_name) AS eu_document_title,
          er.reference_type,
          COUNT(*) AS reference_count,
          MAX(er.implementation_status) AS implementation_status
        FROM eu_references er
        LEFT JOIN eu_documents ed ON ed.id = er.eu_document_id
        WHERE er.document_id = ?
    """
    params: List[Any] = [resolved]
    if reference_types:
        sql += f" AND er.reference_type IN ({', '.join('?' for _ in reference_types)})"
        params.extend(reference_types)
    sql += " GROUP BY er.eu_document_id, er.reference_type ORDER BY reference_count DESC, er.eu_document_id"
    rows = corpus.query(sql, params)

    if include_articles:
        for row in rows:
            articles = corpus.query(
                "SELECT DISTINCT eu_article FROM eu_references WHERE document_id = ? AND eu_document_id = ? "
                "AND eu_article IS NOT NULL ORDER BY eu_article",
                (resolved, row['eu_document_id']),
            )
            row['articles'] = [a['eu_article'] for a in articles]
    return tool_response(corpus, rows, None if rows else f'No EU references recorded for "{resolved}"')


def get_provision_eu_basis(corpus: Corpus, document_id: str, provision_ref: str) -> Dict[str, Any]:
    if not _has_eu(corpus):
        return tool_response(corpus, [], EU_UNAVAILABLE)
    resolved = resolve_document_id(corpus, document_id)
    if resolved is None:
        return tool_response(corpus, [], f'No document found matching "{document_id}"')
    provision = find_provision(corpus, resolved, provision_ref)
    if provision is None:
        return tool_response(corpus, [], f'Provision "{provision_ref}" not found in document "{resolved}"')
    rows = corpus.query(
        """
        SELECT
          er.eu_document_id,
          ed.type AS eu_document_type,
          COALESCE(ed.title, ed.short_name) AS eu_document_title,
          er.eu_article,
          er.reference_type,
          er.reference_context,
          er.full_citation
        FROM eu_references er
        LEFT JOIN eu_documents ed ON ed.id = er.eu_document_id
        WHERE er.provision_id = ?
        ORDER BY er.reference_type, er.eu_document_id
        """,
        (provision['id'],),
    )
    note = None if rows else f'No EU references recorded for {resolved} {provision["provision_ref"]}'
    return tool_response(corpus, rows, note)


def get_national_implementations(
    corpus: Corpus,
    eu_document_id: str,
    primary_only: bool = False,
    in_force_only: bool = False,
) -> Dict[str, Any]:
    """National statutes that cite or align with one EU document."""
    if not _has_eu(corpus):
        return tool_response(corpus, [], EU_UNAVAILABLE)
    sql = """
        SELECT
          ld.id AS document_id,
          ld.title AS document_title,
          ld.status,
          er.reference_type,
          MAX(er.implementation_status) AS implementation_status,
          MAX(er.is_primary_implementation) AS is_primary,
          COUNT(*) AS reference_count
        FROM eu_references er
        JOIN legal_documents ld ON ld.id = er.document_id
        WHERE er.eu_document_id = ?
    """
    params: List[Any] = [eu_document_id.strip()]
    if primary_only:
        sql += " AND er.is_primary_implementation = 1"
    if in_force_only:
        sql += " AND ld.status = 'in_force'"
    sql += " GROUP BY ld.id, er.reference_type ORDER BY is_primary DESC, reference_count DESC, ld.id"
    rows = corpus.query(sql, params)
    for row in rows:
        row['is_primary'] = bool(row['is_primary'])
    return tool_response(corpus, rows, None if rows else f'No statutes reference "{eu_document_id}"')


def search_eu_implementations(
    corpus: Corpus,
    query: Optional[str] = None,
    type: Optional[str] = None,
    year_from: Optional[int] = None,
    year_to: Optional[int] = None,
    has_implementation: Optional[bool] = None,
    limit: Optional[int] = None,
) -> Dict[str, Any]:
    if not _has_eu(corpus):
        return tool_response(corpus, [], 'EU documents are not available in this corpus')
    sql = """
        SELECT
          ed.id AS eu_document_id,
          ed.type,
          ed.year,
          ed.number,
          ed.title,
          ed.short_name,
          COUNT(DISTINCT er.document_id) AS statute_count
        FROM eu_documents ed
        LEFT JOIN eu_references er ON er.eu_document_id = ed.id
        WHERE 1=1
    """
    params: List[Any] = []
    if query:
        like = f"%{query}%"
        sql += " AND (ed.id LIKE ? OR ed.title LIKE ? OR ed.short_name LIKE ? OR ed.description LIKE ?)"
        params.extend([like, like, like, like])
    if type:
        sql += " AND ed.type = ?"
        params.append(type)
    if year_from:
        sql += " AND ed.year >= ?"
        params.append(year_from)
    if year_to:
        sql += " AND ed.year <= ?"
        params.append(year_to)
    sql += " GROUP BY ed.id"
    if has_implementation:
        sql += " HAVING statute_count > 0"
    sql += " ORDER BY ed.year DESC, ed.number DESC LIMIT ?"
    params.append(clamp_limit(limit, EU_SEARCH_DEFAULT_LIMIT, EU_SEARCH_MAX_LIMIT))
    rows = corpus.query(sql, params)
    return tool_response(corpus, rows, None if rows else 'No EU documents match the given filters')


def compliance_status(counts: Dict[Optional[str], int]) -> str:
    complete = counts.get('complete', 0)
    partial = counts.get('partial', 0)
    unknown = counts.get('unknown', 0)
    if complete > 0 and partial == 0 and unknown == 0:
        return 'compliant'
    if partial > 0:
        return 'partial'
    return 'unclear'


def validate_eu_compliance(
    corpus: Corpus,
    document_id: str,
    provision_ref: Optional[str] = None,
    eu_document_id: Optional[str] = None,
) -> Dict[str, Any]:
    resolved = resolve_document_id(corpus, document_id)
    if resolved is None:
        return tool_response(corpus, {
            'document_id': document_id,
            'document_title': 'Unknown',
            'compliance_status': 'not_applicable',
            'eu_references_found': 0,
            'warnings': [f'Document not found: "{document_id}"'],
            'recommendations': [],
        })
    doc = corpus.query_one("SELECT id, title, status FROM legal_documents WHERE id = ?", (resolved,))
    result: Dict[str, Any] = {
        'document_id': resolved,
        'document_title': doc['title'],
        'compliance_status': 'not_applicable',
        'eu_references_found': 0,
        'warnings': [],
        'recommendations': [],
    }
    if not _has_eu(corpus):
        result['warnings'].append(EU_UNAVAILABLE)
        return tool_response(corpus, result)

    where = "document_id = ?"
    params: List[Any] = [resolved]
    if provision_ref:
        provision = find_provision(corpus, resolved, provision_ref)
        if provision is None:
            result['warnings'].append(f'Provision "{provision_ref}" not found in {doc["title"]}')
            return tool_response(corpus, result)
        where += " AND provision_id = ?"
        params.append(provision['id'])
    if eu_document_id:
        where += " AND eu_document_id = ?"
        params.append(eu_document_id)

    rows = corpus.query(
        f"SELECT implementation_status, COUNT(*) AS n FROM eu_references WHERE {where} GROUP BY implementation_status",
        params,
    )
    counts = {r['implementation_status']: int(r['n']) for r in rows}
    total = sum(counts.values())
    result['eu_references_found'] = total
    if total == 0:
        result['recommendations'].append(NO_REFERENCES_NOTE)
        return tool_response(corpus, result)

    if doc['status'] == 'repealed':
        result['warnings'].append('This statute has been repealed.')
        result['recommendations'].append('Check for replacement legislation.')
    status = compliance_status(counts)
    result['compliance_status'] = status
    if status == 'partial':
        result['warnings'].append(f"{counts['partial']} EU reference(s) have partial alignment status.")
    elif status == 'unclear' and counts.get('unknown', 0) > 0:
        result['recommendations'].append(
            f"{counts['unknown']} EU reference(s) have unknown alignment status. Manual review recommended."
        )
    return tool_response(corpus, result)


__all__ = [
    'get_eu_basis', 'get_provision_eu_basis', 'get_national_implementations',
    'search_eu_implementations', 'validate_eu_compliance', 'compliance_status', 'COMPLIANCE_STATUSES',
]
