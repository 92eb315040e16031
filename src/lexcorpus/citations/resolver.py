"""Resolve free-form document and provision references against the corpus.

Document resolution, first match wins:
 1. exact id
 2. substring of title / short_name / title_en (case-sensitive)
 3. the same, case-insensitive
 4. slugified input equal to an id ("Constitution 2013" -> constitution-2013)
"""
from __future__ import annotations

import re
import unicodedata
from typing import Any, Dict, List, Optional

from lexcorpus.store.corpus import Corpus

PROVISION_PREFIXES = ('dieu', 's')
NAME_FIELDS = ('title', 'short_name', 'title_en')

_LEADING_WORD = re.compile(r'^(?:section|article|art\.?|đi[eề]u|dieu|s\.?)\s*', re.IGNORECASE)
_NON_SLUG = re.compile(r'[^a-z0-9]+')


def slugify(text: str) -> str:
    """ASCII slug: accents dropped, runs of other characters become '-'."""
    text = (text or '').replace('đ', 'd').replace('Đ', 'D')
    text = unicodedata.normalize('NFKD', text).encode('ascii', 'ignore').decode('ascii')
    return _NON_SLUG.sub('-', text.lower()).strip('-')


def _documents(corpus: Corpus) -> List[Dict[str, Any]]:
    return corpus.query("SELECT id, title, short_name, title_en FROM legal_documents ORDER BY id")


def _substring_match(docs: List[Dict[str, Any]], needle: str, fold: bool) -> Optional[str]:
    if fold:
        needle = needle.casefold()
    for doc in docs:
        for name in NAME_FIELDS:
            value = doc.get(name)
            if not value:
                continue
            if needle in (value.casefold() if fold else value):
                return doc['id']
    return None


def resolve_document_id(corpus: Corpus, text: str) -> Optional[str]:
    trimmed = (text or '').strip()
    if not trimmed or not corpus.has_table('legal_documents'):
        return None
    row = corpus.query_one("SELECT id FROM legal_documents WHERE id = ?", (trimmed,))
    if row:
        return row['id']
    docs = _documents(corpus)
    match = _substring_match(docs, trimmed, fold=False) or _substring_match(docs, trimmed, fold=True)
    if match:
        return match
    slug = slugify(trimmed)
    if slug:
        row = corpus.query_one("SELECT id FROM legal_documents WHERE id = ?", (slug,))
        if row:
            return row['id']
    return None


def strip_provision_word(token: str) -> str:
    """'Section 21' / 'Điều 21' / 's 21' -> '21'."""
    return _LEADING_WORD.sub('', token.strip()).strip()


def find_provision(corpus: Corpus, document_id: str, token: str) -> Optional[Dict[str, Any]]:
    """Locate one provision by exact ref, prefixed ref, then section label."""
    token = (token or '').strip()
    if not token:
        return None
    sql = "SELECT * FROM legal_provisions WHERE document_id = ? AND {} = ? LIMIT 1"
    row = corpus.query_one(sql.format('provision_ref'), (document_id, token))
    if row:
        return row
    bare = strip_provision_word(token)
    if not bare:
        return None
    for candidate in [bare] + [f"{p}{bare}" for p in PROVISION_PREFIXES]:
        row = corpus.query_one(sql.format('provision_ref'), (document_id, candidate))
        if row:
            return row
    return corpus.query_one(sql.format('section'), (document_id, bare))


__all__ = ['resolve_document_id', 'find_provision', 'slugify', 'strip_provision_word']
