"""Provenance attached to every tool response."""
from __future__ import annotations

from typing import Any, Dict, Optional

from lexcorpus import config
from lexcorpus.store.corpus import Corpus


def response_metadata(corpus: Corpus, note: Optional[str] = None) -> Dict[str, Any]:
    freshness = None
    if corpus.has_table('db_metadata'):
        row = corpus.query_one("SELECT value FROM db_metadata WHERE key = 'built_at'")
        freshness = row['value'] if row else None
    meta: Dict[str, Any] = {
        'data_source': config.DATA_SOURCE,
        'jurisdiction': config.JURISDICTION,
        'disclaimer': config.DISCLAIMER,
        'freshness': freshness,
    }
    if note:
        meta['note'] = note
    return meta


def tool_response(corpus: Corpus, results: Any, note: Optional[str] = None) -> Dict[str, Any]:
    return {'results': results, '_metadata': response_metadata(corpus, note)}


__all__ = ['response_metadata', 'tool_response']
