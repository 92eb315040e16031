"""list_sources and about: provenance and dataset statistics."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from lexcorpus import config
from lexcorpus.store.corpus import Corpus, detect_capabilities, fingerprint, read_metadata, safe_count
from lexcorpus.tools.metadata import tool_response

SERVER_NAME = 'lexcorpus'

SOURCES = [
    {
        'name': 'Thu Vien Phap Luat',
        'authority': 'THU VIEN PHAP LUAT legal database (private publisher of official texts)',
        'url': 'https://thuvienphapluat.vn',
        'license': 'Open access',
        'coverage': 'Laws, codes, decrees and the Constitution, article level',
        'languages': ['vi'],
    },
    {
        'name': 'Van Ban Chinh Phu',
        'authority': 'Government of the Socialist Republic of Vietnam, Official Gazette',
        'url': 'https://vanban.chinhphu.vn',
        'license': 'Government open data',
        'coverage': 'Official versions of legal normative documents (fallback source)',
        'languages': ['vi'],
    },
]


@dataclass
class AboutContext:
    version: str
    fingerprint: Optional[str] = None
    db_built: Optional[str] = None

    @classmethod
    def for_corpus(cls, corpus: Corpus, version: str = config.APP_VERSION) -> 'AboutContext':
        return cls(version=version, fingerprint=fingerprint(corpus.path), db_built=read_metadata(corpus).get('built_at'))


def statistics(corpus: Corpus) -> Dict[str, int]:
    return {
        'documents': safe_count(corpus, 'legal_documents'),
        'provisions': safe_count(corpus, 'legal_provisions'),
        'definitions': safe_count(corpus, 'definitions'),
        'eu_documents': safe_count(corpus, 'eu_documents'),
        'eu_references': safe_count(corpus, 'eu_references'),
    }


def list_sources(corpus: Corpus) -> Dict[str, Any]:
    meta = read_metadata(corpus)
    return tool_response(corpus, {
        'sources': SOURCES,
        'database': {
            'tier': meta['tier'],
            'schema_version': meta['schema_version'],
            'built_at': meta.get('built_at'),
            'document_count': safe_count(corpus, 'legal_documents'),
            'provision_count': safe_count(corpus, 'legal_provisions'),
        },
    })


def about(corpus: Corpus, context: AboutContext) -> Dict[str, Any]:
    meta = read_metadata(corpus)
    return {
        'server': SERVER_NAME,
        'version': context.version,
        'database': {
            'fingerprint': context.fingerprint,
            'built_at': context.db_built,
            'tier': meta['tier'],
            'schema_version': meta['schema_version'],
            'capabilities': sorted(detect_capabilities(corpus)),
        },
        'statistics': statistics(corpus),
        'data_source': {
            'name': config.DATA_SOURCE,
            'jurisdiction': config.JURISDICTION,
            'languages': ['vi'],
        },
    }


__all__ = ['AboutContext', 'list_sources', 'about', 'statistics', 'SOURCES', 'SERVER_NAME']
