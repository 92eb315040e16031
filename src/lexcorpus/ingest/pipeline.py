"""Census-driven ingestion: fetch, parse, write seed JSON.

Sequential by design: one document at a time, every fetch going through the
same ``RateLimiter``. A failed fetch or parse never stops the run; the
document is written as a metadata-only seed and the loop moves on. The stop
event is checked between documents, so an interrupt leaves every finished
seed intact.
"""
from __future__ import annotations

import json
import logging
import os
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import pandas as pd

from lexcorpus import config
from lexcorpus.errors import NetworkError
from lexcorpus.ingest.census import record_ingestion
from lexcorpus.ingest.fetcher import Fetcher
from lexcorpus.ingest.schemas import DocumentDescriptor, DocumentSeed
from lexcorpus.parsing.provision_parser import parse_document

logger = logging.getLogger(__name__)

MIN_BODY_CHARS = 1000
PROGRESS_EVERY = 25
REPORT_COLUMNS = ['id', 'short_name', 'provisions', 'definitions', 'status']


@dataclass
class IngestOptions:
    limit: Optional[int] = None
    skip_fetch: bool = False
    resume: bool = False
    source_dir: str = config.SOURCE_DIR
    seed_dir: str = config.SEED_DIR
    census_path: str = config.CENSUS_PATH
    report_path: Optional[str] = config.INGEST_REPORT_PATH


@dataclass
class IngestStats:
    processed: int = 0
    resumed: int = 0
    cached: int = 0
    failed: int = 0
    total_provisions: int = 0
    total_definitions: int = 0
    interrupted: bool = False
    report: List[Dict[str, Any]] = field(default_factory=list)

    def add(self, seed: DocumentSeed, status: str) -> None:
        self.total_provisions += len(seed.provisions)
        self.total_definitions += len(seed.definitions)
        self.report.append({
            'id': seed.id,
            'short_name': seed.short_name,
            'provisions': len(seed.provisions),
            'definitions': len(seed.definitions),
            'status': status,
        })


def seed_path(seed_dir: str, doc_id: str) -> str:
    return os.path.join(seed_dir, f"{doc_id}.json")


def write_seed(seed: DocumentSeed, seed_dir: str) -> str:
    """Write ``seed`` atomically (temp file then rename)."""
    os.makedirs(seed_dir, exist_ok=True)
    path = seed_path(seed_dir, seed.id)
    tmp = os.path.join(seed_dir, f".tmp_{seed.id}.json")
    with open(tmp, 'w', encoding='utf-8') as f:
        json.dump(seed.model_dump(mode='json'), f, ensure_ascii=False, indent=2)
    os.replace(tmp, path)
    return path


def read_seed(path: str) -> Optional[DocumentSeed]:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return DocumentSeed(**json.load(f))
    except (OSError, ValueError) as e:
        logger.warning(f"Unreadable seed {path}: {e}")
        return None


def fetch_source(fetcher: Fetcher, act: DocumentDescriptor, source_file: str) -> Optional[str]:
    """Fetch the act's page and cache it; None when the page is unusable."""
    try:
        result = fetcher.fetch(act.url)
    except NetworkError as e:
        logger.warning(f"{act.id}: fetch failed ({e}); metadata only")
        return None
    if result.status != 200 or len(result.body) <= MIN_BODY_CHARS:
        logger.warning(f"{act.id}: HTTP {result.status} ({len(result.body)} bytes); metadata only")
        return None
    with open(source_file, 'w', encoding='utf-8') as f:
        f.write(result.body)
    logger.info(f"{act.id}: fetched {len(result.body) / 1024:.0f} KB")
    return result.body


def ingest_one(act: DocumentDescriptor, fetcher: Optional[Fetcher], opts: IngestOptions) -> tuple[DocumentSeed, str]:
    source_file = os.path.join(opts.source_dir, f"{act.id}.html")
    html: Optional[str] = None
    if opts.skip_fetch:
        if os.path.exists(source_file):
            with open(source_file, 'r', encoding='utf-8') as f:
                html = f.read()
            logger.info(f"{act.id}: using cached source")
    elif fetcher is not None:
        html = fetch_source(fetcher, act, source_file)

    if html and len(html) > MIN_BODY_CHARS:
        return parse_document(html, act), 'OK'
    return DocumentSeed.metadata_only(act), 'metadata'


def write_report(rows: List[Dict[str, Any]], report_path: str) -> None:
    out_dir = os.path.dirname(report_path) or '.'
    os.makedirs(out_dir, exist_ok=True)
    df = pd.DataFrame(rows, columns=REPORT_COLUMNS)
    tmp_final = os.path.join(out_dir, f".tmp_{os.path.basename(report_path)}")
    df.to_csv(tmp_final, index=False)
    os.replace(tmp_final, report_path)
    logger.info(f"Ingestion report ({len(rows)} rows) -> {report_path}")


def run_ingest(
    acts: List[DocumentDescriptor],
    opts: Optional[IngestOptions] = None,
    fetcher: Optional[Fetcher] = None,
    stop_event: Optional[threading.Event] = None,
) -> IngestStats:
    """Process ``acts`` in order and write one seed per act."""
    opts = opts or IngestOptions()
    if opts.limit:
        acts = acts[:opts.limit]
    if fetcher is None and not opts.skip_fetch:
        fetcher = Fetcher()
    os.makedirs(opts.source_dir, exist_ok=True)
    os.makedirs(opts.seed_dir, exist_ok=True)

    stats = IngestStats()
    started = time.monotonic()
    logger.info(f"Processing {len(acts)} documents (skip_fetch={opts.skip_fetch}, resume={opts.resume})")

    for idx, act in enumerate(acts, start=1):
        if stop_event is not None and stop_event.is_set():
            logger.warning(f"Stop requested; halting before {act.id} ({idx - 1}/{len(acts)} done)")
            stats.interrupted = True
            break

        existing_path = seed_path(opts.seed_dir, act.id)
        if (opts.resume or opts.skip_fetch) and os.path.exists(existing_path):
            existing = read_seed(existing_path)
            if existing is not None:
                if opts.resume:
                    stats.resumed += 1
                    stats.total_provisions += len(existing.provisions)
                    stats.total_definitions += len(existing.definitions)
                else:
                    stats.cached += 1
                    stats.add(existing, 'cached')
                stats.processed += 1
                continue

        try:
            seed, status = ingest_one(act, fetcher, opts)
            write_seed(seed, opts.seed_dir)
            stats.add(seed, status)
        except (OSError, ValueError) as e:
            logger.error(f"{act.id}: {e}; metadata only")
            stats.failed += 1
            stats.report.append({
                'id': act.id, 'short_name': act.short_name,
                'provisions': 0, 'definitions': 0, 'status': f"ERROR: {str(e)[:60]}",
            })
            try:
                write_seed(DocumentSeed.metadata_only(act), opts.seed_dir)
            except OSError as we:
                logger.error(f"{act.id}: could not write metadata-only seed: {we}")
        stats.processed += 1

        if stats.processed % PROGRESS_EVERY == 0 and stats.processed < len(acts):
            elapsed = time.monotonic() - started
            eta = elapsed / stats.processed * (len(acts) - stats.processed)
            logger.info(f"Progress: {stats.processed}/{len(acts)} ({elapsed:.0f}s elapsed, ~{eta:.0f}s remaining)")

    logger.info(
        f"Ingestion done: processed={stats.processed} resumed={stats.resumed} cached={stats.cached} "
        f"failed={stats.failed} provisions={stats.total_provisions} definitions={stats.total_definitions}"
    )
    if opts.report_path and stats.report:
        write_report(stats.report, opts.report_path)

    succeeded = stats.processed - stats.failed
    updated = record_ingestion({
        'total_laws': succeeded,
        'total_provisions': stats.total_provisions,
        'total_definitions': stats.total_definitions,
        'coverage_pct': round(succeeded / len(acts) * 100, 1) if acts else 0.0,
    }, opts.census_path)
    if updated:
        logger.info(f"Updated {opts.census_path} with ingestion stats")
    return stats


__all__ = ['IngestOptions', 'IngestStats', 'run_ingest', 'write_seed', 'read_seed', 'seed_path']
