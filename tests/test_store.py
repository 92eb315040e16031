import json
import os
import sqlite3

import pytest

from conftest import sample_seeds
from lexcorpus.ingest.pipeline import write_seed
from lexcorpus.ingest.schemas import DocumentSeed, ExternalReference, ProvisionSeed
from lexcorpus.store import builder as builder_module
from lexcorpus.store.builder import build_corpus, dedupe_provisions, iter_seed_files
from lexcorpus.store.corpus import detect_capabilities, fingerprint, open_corpus, read_metadata, safe_count
from lexcorpus.store.schema import SCHEMA_VERSION
from lexcorpus.tools.provisions import get_provision


def test_build_counts(seed_dir, tmp_path):
    stats = build_corpus(seed_dir, str(tmp_path / "db.sqlite"))
    seeds = sample_seeds()
    assert stats.documents == len(seeds)
    assert stats.provisions == sum(len(s.provisions) for s in seeds)
    assert stats.definitions == 2
    assert stats.eu_documents == 2
    assert stats.eu_references == 2
    assert stats.skipped_seeds == 0


def test_round_trip_content_is_byte_for_byte(corpus):
    for seed in sample_seeds():
        response = get_provision(corpus, seed.id)
        records = response['results']
        assert len(records) == len(seed.provisions)
        for stored, original in zip(records, seed.provisions):
            assert stored['provision_ref'] == original.provision_ref
            assert stored['section'] == original.section
            assert stored['title'] == original.title
            assert stored['chapter'] == original.chapter
            assert stored['content'] == original.content
            assert stored['document_title'] == seed.title


def test_documents_round_trip(corpus):
    for seed in sample_seeds():
        row = corpus.query_one("SELECT * FROM legal_documents WHERE id = ?", (seed.id,))
        assert row['title'] == seed.title
        assert row['status'] == seed.status.value
        assert row['issued_date'] == seed.issued_date
        assert row['in_force_date'] == seed.in_force_date


def test_metadata_and_capabilities(corpus):
    meta = read_metadata(corpus)
    assert meta['schema_version'] == SCHEMA_VERSION
    assert meta['built_at']
    assert detect_capabilities(corpus) == {'core_legislation', 'eu_references', 'definitions'}


def test_eu_documents_registered_with_eur_lex_url(corpus):
    row = corpus.query_one("SELECT * FROM eu_documents WHERE id = 'regulation:2016/679'")
    assert row['url_eur_lex'] == "https://eur-lex.europa.eu/eli/reg/2016/679/oj"
    assert row['short_name'] == "Regulation 2016/679"


def test_first_implements_reference_is_primary(corpus):
    rows = corpus.query(
        "SELECT eu_document_id, reference_type, is_primary_implementation, implementation_status, eu_article "
        "FROM eu_references WHERE document_id = 'cybersecurity-law-2018' ORDER BY eu_document_id"
    )
    by_id = {r['eu_document_id']: r for r in rows}
    reg = by_id['regulation:2016/679']
    assert reg['reference_type'] == 'implements'
    assert reg['is_primary_implementation'] == 1
    assert reg['implementation_status'] == 'complete'
    assert reg['eu_article'] == '5'
    directive = by_id['directive:1995/46']
    assert directive['reference_type'] == 'references'
    assert directive['is_primary_implementation'] == 0
    assert directive['implementation_status'] == 'unknown'


def test_corpus_is_read_only(corpus):
    with pytest.raises(sqlite3.OperationalError):
        corpus.conn.execute("DELETE FROM legal_documents")


def test_open_missing_corpus(tmp_path):
    with pytest.raises(FileNotFoundError):
        open_corpus(str(tmp_path / "missing.db"))


def test_fts_triggers_follow_base_table(seed_dir, tmp_path):
    db_path = str(tmp_path / "db.sqlite")
    build_corpus(seed_dir, db_path)
    conn = sqlite3.connect(db_path)
    try:
        pid = conn.execute(
            "SELECT id FROM legal_provisions WHERE document_id = 'constitution-2013' AND provision_ref = 'dieu1'"
        ).fetchone()[0]
        with conn:
            conn.execute("UPDATE legal_provisions SET content = 'zymurgical provision text' WHERE id = ?", (pid,))
        match = "SELECT rowid FROM provisions_fts WHERE provisions_fts MATCH ?"
        assert conn.execute(match, ("zymurgical",)).fetchall() == [(pid,)]
        assert conn.execute(match, ("\"độc lập\"",)).fetchall() == []

        with conn:
            conn.execute("DELETE FROM legal_provisions WHERE id = ?", (pid,))
        assert conn.execute(match, ("zymurgical",)).fetchall() == []

        with conn:
            conn.execute(
                "INSERT INTO definitions (document_id, term, definition) VALUES (?, ?, ?)",
                ('constitution-2013', 'Quốc kỳ', 'lá cờ đỏ sao vàng'),
            )
        assert conn.execute(
            "SELECT COUNT(*) FROM definitions_fts WHERE definitions_fts MATCH ?", ('"Quốc kỳ"',)
        ).fetchone()[0] == 1
    finally:
        conn.close()


def test_rebuild_replaces_existing_database(seed_dir, tmp_path):
    db_path = str(tmp_path / "db.sqlite")
    build_corpus(seed_dir, db_path)
    build_corpus(seed_dir, db_path)
    c = open_corpus(db_path)
    try:
        assert safe_count(c, 'legal_documents') == len(sample_seeds())
    finally:
        c.close()


def test_unreadable_seed_is_skipped(seed_dir, tmp_path):
    with open(os.path.join(seed_dir, "broken.json"), "w", encoding="utf-8") as f:
        f.write("{not json")
    with open(os.path.join(seed_dir, "no-title.json"), "w", encoding="utf-8") as f:
        json.dump({"id": "no-title"}, f)
    stats = build_corpus(seed_dir, str(tmp_path / "db.sqlite"))
    assert stats.skipped_seeds == 2
    assert stats.documents == len(sample_seeds())


def test_empty_seed_dir_builds_empty_schema(tmp_path):
    db_path = str(tmp_path / "db.sqlite")
    stats = build_corpus(str(tmp_path / "nothing-here"), db_path)
    assert stats.documents == 0
    c = open_corpus(db_path)
    try:
        assert safe_count(c, 'legal_provisions') == 0
        assert 'core_legislation' in detect_capabilities(c)
    finally:
        c.close()


def test_iter_seed_files_skips_temp_and_private(tmp_path):
    for name in ("a.json", ".tmp_b.json", "_census.json", "notes.txt"):
        (tmp_path / name).write_text("{}", encoding="utf-8")
    assert [os.path.basename(p) for p in iter_seed_files(str(tmp_path))] == ["a.json"]


def test_dedupe_provisions_longest_wins():
    provisions = [
        ProvisionSeed(provision_ref="dieu5", section="5", content="ngắn"),
        ProvisionSeed(provision_ref=" dieu5 ", section="5", content="nội dung dài hơn hẳn"),
        ProvisionSeed(provision_ref="dieu6", section="6", content="điều sáu"),
    ]
    kept = dedupe_provisions(provisions)
    assert [p.provision_ref for p in kept] == ["dieu5", "dieu6"]
    assert kept[0].content == "nội dung dài hơn hẳn"


def test_fingerprint_is_stable(corpus_db):
    fp = fingerprint(corpus_db)
    assert fp == fingerprint(corpus_db)
    assert len(fp) == 12
    assert fingerprint(None) is None


def write_single_seed(seed_dir, content):
    seed = DocumentSeed(
        id='chemicals-law-2007',
        title='Luật Hóa chất 2007',
        provisions=[ProvisionSeed(provision_ref='dieu4', section='4', content=content)],
    )
    write_seed(seed, str(seed_dir))
    return str(seed_dir)


def test_number_first_eu_citation_builds(tmp_path):
    seeds = write_single_seed(tmp_path / "seed", "Phân loại theo Regulation (EC) No 1907/2006 về hóa chất.")
    db_path = str(tmp_path / "db.sqlite")
    stats = build_corpus(seeds, db_path)
    assert stats.documents == 1
    assert stats.eu_references == 1
    c = open_corpus(db_path)
    try:
        row = c.query_one("SELECT id, year, number FROM eu_documents")
        assert row == {'id': 'regulation:2006/1907', 'year': 2006, 'number': 1907}
    finally:
        c.close()


def test_unstorable_eu_reference_is_skipped_not_fatal(tmp_path, monkeypatch):
    bad = ExternalReference(
        doc_type='regulation', community='EU', year=1900, number=12,
        eu_document_id='regulation:1900/12', full_citation='Regulation 1900/12',
        reference_context='Regulation 1900/12', reference_type='references',
    )
    monkeypatch.setattr(builder_module, 'extract_references', lambda text: [bad])
    seeds = write_single_seed(tmp_path / "seed", "Văn bản dẫn chiếu một quy định không hợp lệ.")
    stats = build_corpus(seeds, str(tmp_path / "db.sqlite"))
    assert stats.documents == 1
    assert stats.provisions == 1
    assert stats.eu_documents == 0
    assert stats.eu_references == 0
