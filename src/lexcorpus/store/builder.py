"""Build the corpus database from seed JSON files.

The build is a full rebuild: the old database is removed, the schema is
created, and every seed is loaded in a single transaction. Build metadata is
written once afterwards, then the file is analysed and vacuumed.
"""
from __future__ import annotations

import json
import logging
import os
import sqlite3
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Dict, Iterator, List, Optional, Set

from pydantic import ValidationError

from lexcorpus import config
from lexcorpus.ingest.schemas import DocumentSeed, ExternalReference, ProvisionSeed
from lexcorpus.parsing.html_text import normalize_whitespace
from lexcorpus.parsing.reference_extractor import extract_references
from lexcorpus.store.schema import SCHEMA, SCHEMA_VERSION

logger = logging.getLogger(__name__)

BUILDER_NAME = 'lexcorpus.store.builder'
EU_DOCUMENT_DESCRIPTION = 'Auto-extracted from Vietnamese statute text'


@dataclass
class BuildStats:
    documents: int = 0
    provisions: int = 0
    definitions: int = 0
    eu_documents: int = 0
    eu_references: int = 0
    skipped_seeds: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


def dedupe_provisions(provisions: List[ProvisionSeed]) -> List[ProvisionSeed]:
    """One provision per trimmed ``provision_ref``; the longest normalized content wins."""
    by_ref: Dict[str, ProvisionSeed] = {}
    for prov in provisions:
        ref = prov.provision_ref.strip()
        existing = by_ref.get(ref)
        if existing is None or len(normalize_whitespace(prov.content)) > len(normalize_whitespace(existing.content)):
            by_ref[ref] = prov.model_copy(update={'provision_ref': ref})
    return list(by_ref.values())


def eur_lex_url(ref: ExternalReference) -> str:
    kind = 'reg' if ref.doc_type == 'regulation' else 'dir'
    return f"https://eur-lex.europa.eu/eli/{kind}/{ref.year}/{ref.number}/oj"


def eu_short_name(ref: ExternalReference) -> str:
    return f"{ref.doc_type.capitalize()} {ref.year}/{ref.number}"


def iter_seed_files(seed_dir: str) -> Iterator[str]:
    for name in sorted(os.listdir(seed_dir)):
        if name.endswith('.json') and not name.startswith(('.', '_')):
            yield os.path.join(seed_dir, name)


def load_seed(path: str) -> Optional[DocumentSeed]:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return DocumentSeed(**json.load(f))
    except (OSError, ValueError, ValidationError) as e:
        logger.error(f"Skipping unreadable seed {path}: {e}")
        return None


class CorpusBuilder:
    """Loads seeds into an open connection; one instance per build."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn
        self.stats = BuildStats()
        self._primary: Set[str] = set()
        self._verified_at = datetime.now(timezone.utc).isoformat()

    def insert_document(self, seed: DocumentSeed) -> None:
        self.conn.execute(
            "INSERT INTO legal_documents (id, type, title, title_en, short_name, status, issued_date, "
            "in_force_date, url, official_number, description) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                seed.id, seed.type or 'statute', seed.title, seed.title_en, seed.short_name or None,
                seed.status.value, seed.issued_date, seed.in_force_date, seed.url or None,
                seed.official_number, seed.description,
            ),
        )
        self.stats.documents += 1

    def insert_provision(self, doc_id: str, prov: ProvisionSeed) -> int:
        cur = self.conn.execute(
            "INSERT INTO legal_provisions (document_id, provision_ref, chapter, section, title, content, metadata) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            (
                doc_id, prov.provision_ref, prov.chapter, prov.section, prov.title, prov.content,
                json.dumps(prov.metadata, ensure_ascii=False) if prov.metadata else None,
            ),
        )
        self.stats.provisions += 1
        return int(cur.lastrowid)

    def _eu_document_exists(self, eu_document_id: str) -> bool:
        row = self.conn.execute("SELECT 1 FROM eu_documents WHERE id = ?", (eu_document_id,)).fetchone()
        return row is not None

    def insert_references(self, doc_id: str, prov: ProvisionSeed, provision_id: int) -> None:
        source_id = f"{doc_id}:{prov.provision_ref}"
        for ref in extract_references(prov.content):
            short = eu_short_name(ref)
            cur = self.conn.execute(
                "INSERT OR IGNORE INTO eu_documents (id, type, year, number, community, title, short_name, "
                "url_eur_lex, description) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (ref.eu_document_id, ref.doc_type, ref.year, ref.number, ref.community,
                 short, short, eur_lex_url(ref), EU_DOCUMENT_DESCRIPTION),
            )
            self.stats.eu_documents += cur.rowcount
            if cur.rowcount == 0 and not self._eu_document_exists(ref.eu_document_id):
                # rejected by a CHECK constraint; the reference would violate the foreign key
                logger.warning(f"{source_id}: skipping unstorable EU reference {ref.full_citation!r}")
                continue

            primary_key = f"{doc_id}:{ref.eu_document_id}"
            is_primary = ref.reference_type == 'implements' and primary_key not in self._primary
            cur = self.conn.execute(
                "INSERT OR IGNORE INTO eu_references (source_type, source_id, document_id, provision_id, "
                "eu_document_id, eu_article, reference_type, reference_context, full_citation, "
                "is_primary_implementation, implementation_status, last_verified) "
                "VALUES ('provision', ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (source_id, doc_id, provision_id, ref.eu_document_id, ref.eu_article, ref.reference_type,
                 ref.reference_context, ref.full_citation, 1 if is_primary else 0,
                 'complete' if is_primary else 'unknown', self._verified_at),
            )
            if cur.rowcount > 0:
                self.stats.eu_references += 1
                if is_primary:
                    self._primary.add(primary_key)

    def insert_definitions(self, seed: DocumentSeed) -> None:
        for d in seed.definitions:
            cur = self.conn.execute(
                "INSERT OR IGNORE INTO definitions (document_id, term, definition, source_provision) "
                "VALUES (?, ?, ?, ?)",
                (seed.id, d.term, d.definition, d.source_provision),
            )
            self.stats.definitions += cur.rowcount

    def load(self, seed: DocumentSeed) -> None:
        self.insert_document(seed)
        for prov in dedupe_provisions(seed.provisions):
            provision_id = self.insert_provision(seed.id, prov)
            self.insert_references(seed.id, prov, provision_id)
        self.insert_definitions(seed)

    def write_metadata(self) -> None:
        rows = [
            ('tier', config.CORPUS_TIER),
            ('schema_version', SCHEMA_VERSION),
            ('built_at', datetime.now(timezone.utc).isoformat()),
            ('builder', BUILDER_NAME),
            ('jurisdiction', config.JURISDICTION),
            ('source', 'official-source'),
            ('licence', 'Open access; see data source terms'),
        ]
        with self.conn:
            self.conn.executemany("INSERT INTO db_metadata (key, value) VALUES (?, ?)", rows)


def build_corpus(seed_dir: str = config.SEED_DIR, db_path: str = config.CORPUS_DB_PATH) -> BuildStats:
    """Rebuild ``db_path`` from every seed file in ``seed_dir``."""
    if os.path.exists(db_path):
        os.remove(db_path)
        logger.info(f"Deleted existing database {db_path}")
    os.makedirs(os.path.dirname(os.path.abspath(db_path)), exist_ok=True)

    conn = sqlite3.connect(db_path)
    try:
        conn.execute('PRAGMA foreign_keys = ON')
        conn.executescript(SCHEMA)
        builder = CorpusBuilder(conn)

        seed_files = list(iter_seed_files(seed_dir)) if os.path.isdir(seed_dir) else []
        if not seed_files:
            logger.warning(f"No seed files in {seed_dir}; database has an empty schema")
        seeds = []
        for path in seed_files:
            seed = load_seed(path)
            if seed is None:
                builder.stats.skipped_seeds += 1
            else:
                seeds.append(seed)

        with conn:
            for seed in seeds:
                builder.load(seed)
        builder.write_metadata()

        conn.execute('ANALYZE')
        conn.execute('VACUUM')
    finally:
        conn.close()

    stats = builder.stats
    size_mb = os.path.getsize(db_path) / 1024 / 1024
    logger.info(
        f"Build complete: {stats.documents} documents, {stats.provisions} provisions, "
        f"{stats.definitions} definitions, {stats.eu_documents} EU documents, "
        f"{stats.eu_references} EU references -> {db_path} ({size_mb:.1f} MB)"
    )
    return stats


__all__ = ['BuildStats', 'CorpusBuilder', 'build_corpus', 'dedupe_provisions', 'eur_lex_url']
