"""Full-text search tools: search_legislation, build_legal_stance, get_definitions.

Each tool walks the FTS variant ladder (exact phrase, all terms, prefix) and
returns the first variant that produces rows, ranked by ``bm25``.
"""
from __future__ import annotations

import logging
import sqlite3
from typing import Any, Dict, List, Optional, Sequence

from lexcorpus.citations.resolver import resolve_document_id
from lexcorpus.search.fts_query import query_variants
from lexcorpus.store.corpus import Corpus
from lexcorpus.tools.metadata import tool_response

logger = logging.getLogger(__name__)

SEARCH_DEFAULT_LIMIT, SEARCH_MAX_LIMIT = 10, 50
STANCE_DEFAULT_LIMIT, STANCE_MAX_LIMIT = 5, 20
DEFINITIONS_DEFAULT_LIMIT, DEFINITIONS_MAX_LIMIT = 10, 50

PROVISION_SEARCH_SQL = """
    SELECT
      lp.document_id,
      ld.title AS document_title,
      lp.provision_ref,
      lp.chapter,
      lp.section,
      lp.title,
      snippet(provisions_fts, 0, '>>>', '<<<', '...', 48) AS snippet,
      bm25(provisions_fts) AS relevance
    FROM provisions_fts
    JOIN legal_provisions lp ON lp.id = provisions_fts.rowid
    JOIN legal_documents ld ON ld.id = lp.document_id
    WHERE provisions_fts MATCH ?
"""

DEFINITION_SEARCH_SQL = """
    SELECT
      d.document_id,
      ld.title AS document_title,
      d.term,
      d.definition,
      d.source_provision,
      bm25(definitions_fts) AS relevance
    FROM definitions_fts
    JOIN definitions d ON d.id = definitions_fts.rowid
    JOIN legal_documents ld ON ld.id = d.document_id
    WHERE definitions_fts MATCH ?
"""


def clamp_limit(limit: Optional[int], default: int, maximum: int) -> int:
    if limit is None:
        return default
    return min(max(int(limit), 1), maximum)


def run_ladder(
    corpus: Corpus,
    base_sql: str,
    query: str,
    filters: Sequence[tuple[str, Any]],
    limit: int,
) -> List[Dict[str, Any]]:
    """Try each FTS variant in turn; the first non-empty result wins."""
    sql = base_sql + ''.join(f" AND {clause}" for clause, _ in filters) + " ORDER BY relevance LIMIT ?"
    for variant in query_variants(query):
        params = [variant] + [value for _, value in filters] + [limit]
        try:
            rows = corpus.query(sql, params)
        except sqlite3.OperationalError as e:
            logger.debug(f"FTS variant {variant!r} rejected: {e}")
            continue
        if rows:
            return rows
    return []


def _document_filter(corpus: Corpus, document_id: Optional[str]) -> Optional[str]:
    if not document_id:
        return None
    return resolve_document_id(corpus, document_id) or document_id


def search_legislation(
    corpus: Corpus,
    query: str,
    document_id: Optional[str] = None,
    status: Optional[str] = None,
    limit: Optional[int] = None,
) -> Dict[str, Any]:
    if not corpus.has_table('provisions_fts'):
        return tool_response(corpus, [], 'Full-text search is not available in this corpus')
    if not query or not query.strip():
        return tool_response(corpus, [], 'Empty query')
    filters: List[tuple[str, Any]] = []
    doc = _document_filter(corpus, document_id)
    if doc:
        filters.append(('lp.document_id = ?', doc))
    if status:
        filters.append(('ld.status = ?', status))
    rows = run_ladder(corpus, PROVISION_SEARCH_SQL, query, filters,
                      clamp_limit(limit, SEARCH_DEFAULT_LIMIT, SEARCH_MAX_LIMIT))
    return tool_response(corpus, rows, None if rows else f'No provisions match "{query}"')


def build_legal_stance(
    corpus: Corpus,
    query: str,
    document_id: Optional[str] = None,
    limit: Optional[int] = None,
) -> Dict[str, Any]:
    """Citations across all statutes for a topic; a narrower ``search_legislation``."""
    if not corpus.has_table('provisions_fts'):
        return tool_response(corpus, [], 'Full-text search is not available in this corpus')
    if not query or not query.strip():
        return tool_response(corpus, [], 'Empty query')
    filters: List[tuple[str, Any]] = []
    doc = _document_filter(corpus, document_id)
    if doc:
        filters.append(('lp.document_id = ?', doc))
    rows = run_ladder(corpus, PROVISION_SEARCH_SQL, query, filters,
                      clamp_limit(limit, STANCE_DEFAULT_LIMIT, STANCE_MAX_LIMIT))
    for row in rows:
        row.pop('chapter', None)
    return tool_response(corpus, rows, None if rows else f'No provisions found for "{query}"')


def get_definitions(
    corpus: Corpus,
    term: str,
    document_id: Optional[str] = None,
    limit: Optional[int] = None,
) -> Dict[str, Any]:
    if not corpus.has_table('definitions_fts'):
        return tool_response(corpus, [], 'Definitions are not available in this corpus')
    if not term or not term.strip():
        return tool_response(corpus, [], 'Empty term')
    filters: List[tuple[str, Any]] = []
    doc = _document_filter(corpus, document_id)
    if doc:
        filters.append(('d.document_id = ?', doc))
    rows = run_ladder(corpus, DEFINITION_SEARCH_SQL, term, filters,
                      clamp_limit(limit, DEFINITIONS_DEFAULT_LIMIT, DEFINITIONS_MAX_LIMIT))
    return tool_response(corpus, rows, None if rows else f'No definitions match "{term}"')


__all__ = ['search_legislation', 'build_legal_stance', 'get_definitions', 'run_ladder', 'clamp_limit']
