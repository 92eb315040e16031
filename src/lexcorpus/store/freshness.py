"""Corpus freshness check.

Three signals:
 1. database age from ``built_at`` in ``db_metadata``
 2. document count against what the census expects
 3. reachability of the source portal (informational only)

Exit codes for the CLI: 0 fresh, 1 updates detected, 2 check failed.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import requests  # type: ignore[import-untyped]

from lexcorpus import config
from lexcorpus.ingest.census import read_census
from lexcorpus.store.corpus import open_corpus, read_metadata, safe_count

logger = logging.getLogger(__name__)

EXIT_FRESH = 0
EXIT_UPDATES = 1
EXIT_FAILED = 2
PORTAL_TIMEOUT = 15
PORTAL_OK_STATUSES = {301, 302, 403}


@dataclass
class FreshnessReport:
    exit_code: int = EXIT_FRESH
    age_days: Optional[int] = None
    documents: int = 0
    provisions: int = 0
    expected_documents: Optional[int] = None
    portal_reachable: Optional[bool] = None
    messages: List[str] = field(default_factory=list)

    @property
    def updates_needed(self) -> bool:
        return self.exit_code == EXIT_UPDATES


def days_since(iso_date: str, now: Optional[datetime] = None) -> Optional[int]:
    try:
        dt = datetime.fromisoformat(iso_date.replace('Z', '+00:00'))
    except (TypeError, ValueError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    return (now - dt).days


def expected_document_count(census: Optional[Dict[str, Any]]) -> Optional[int]:
    if not census:
        return None
    ingestion = census.get('ingestion') or {}
    stats = census.get('stats') or {}
    for value in (ingestion.get('total_laws'), stats.get('class_ingestable'), stats.get('total')):
        if isinstance(value, int) and value > 0:
            return value
    return None


def check_portal(url: str, session: Any = None) -> bool:
    http = session or requests
    try:
        res = http.head(url, timeout=PORTAL_TIMEOUT, allow_redirects=False,
                        headers={'User-Agent': config.USER_AGENT})
    except requests.exceptions.RequestException as e:
        logger.warning(f"Portal check failed: {e}")
        return False
    return res.ok or res.status_code in PORTAL_OK_STATUSES


def check_freshness(
    db_path: str = config.CORPUS_DB_PATH,
    census_path: str = config.CENSUS_PATH,
    portal_url: Optional[str] = config.SOURCE_PORTAL_URL,
    max_age_days: int = config.MAX_DB_AGE_DAYS,
    session: Any = None,
    now: Optional[datetime] = None,
) -> FreshnessReport:
    report = FreshnessReport()
    if not os.path.exists(db_path):
        report.exit_code = EXIT_FAILED
        report.messages.append(f"ERROR: database not found at {db_path}")
        return report

    corpus = open_corpus(db_path)
    try:
        built_at = read_metadata(corpus).get('built_at')
        report.documents = safe_count(corpus, 'legal_documents')
        report.provisions = safe_count(corpus, 'legal_provisions')
    finally:
        corpus.close()

    updates = False
    if built_at:
        report.age_days = days_since(built_at, now)
        if report.age_days is not None and report.age_days > max_age_days:
            report.messages.append(f"STALE: database is {report.age_days} days old (threshold {max_age_days})")
            updates = True
        elif report.age_days is not None:
            report.messages.append(f"OK: database is {report.age_days} days old (threshold {max_age_days})")
    else:
        report.messages.append("WARN: no built_at in db_metadata; cannot assess age")

    report.expected_documents = expected_document_count(read_census(census_path))
    if report.expected_documents is not None:
        if report.documents < report.expected_documents:
            report.messages.append(
                f"MISSING: database has {report.documents} documents, census expects {report.expected_documents}"
            )
            updates = True
        else:
            report.messages.append(f"OK: {report.documents} documents >= {report.expected_documents} expected")

    if portal_url:
        report.portal_reachable = check_portal(portal_url, session)
        state = 'reachable' if report.portal_reachable else 'unreachable; manual check recommended'
        report.messages.append(f"Portal {portal_url} {state}")

    report.exit_code = EXIT_UPDATES if updates else EXIT_FRESH
    return report


__all__ = ['FreshnessReport', 'check_freshness', 'days_since', 'expected_document_count', 'check_portal',
           'EXIT_FRESH', 'EXIT_UPDATES', 'EXIT_FAILED']
