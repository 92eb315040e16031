"""EU legislation reference extraction.

Finds citations of EU regulations and directives inside national provision
text. Patterns covered (most specific first):
  - Regulation (EU) 2016/679, Regulation (EU) No 2016/679
  - Directive 95/46/EC
  - Directive 2022/2555 (community omitted, defaults to EU)

Two-digit years pivot at 50: 95 -> 1995, 16 -> 2016. Number-first citations
("No 1907/2006") are reordered so the id is always type:year/number.
"""
from __future__ import annotations

import logging
import re
from typing import List, Optional, Tuple

from lexcorpus.ingest.schemas import ExternalReference
from lexcorpus.parsing.html_text import normalize_whitespace

logger = logging.getLogger(__name__)

CONTEXT_CHARS = 120
MIN_YEAR, MAX_YEAR = 1957, 2100

_TYPE = r"(Regulation|Directive)"
_COMMUNITY = r"(EU|EC|EEC|Euratom)"
_NO = r"(?:No\.?\s*)?"

COMMUNITY_FIRST_RE = re.compile(rf"\b{_TYPE}\s*\({_COMMUNITY}\)\s*{_NO}(\d{{2,4}})/(\d{{1,4}})\b", re.IGNORECASE)
COMMUNITY_LAST_RE = re.compile(rf"\b{_TYPE}\s*{_NO}(\d{{2,4}})/(\d{{1,4}})/{_COMMUNITY}\b", re.IGNORECASE)
BARE_RE = re.compile(rf"\b{_TYPE}\s*{_NO}(\d{{2,4}})/(\d{{1,4}})\b", re.IGNORECASE)

ARTICLE_RE = re.compile(r"\bArticle\s+(\d+[A-Za-z]?(?:\(\d+\))?)", re.IGNORECASE)
IMPLEMENTS_RE = re.compile(r"\b(?:implement\w*|align\w*|transpos\w*|equivalent)\b", re.IGNORECASE)

COMMUNITIES = {'eu': 'EU', 'ec': 'EC', 'eec': 'EEC', 'euratom': 'Euratom'}


def normalize_year(raw: str) -> int:
    year = int(raw)
    if len(raw) == 2:
        return 1900 + year if year >= 50 else 2000 + year
    return year


def plausible_year(year: int) -> bool:
    return MIN_YEAR <= year <= MAX_YEAR


def year_and_number(raw_year: str, raw_number: str) -> tuple[int, int]:
    """Order the two numeric tokens of a citation.

    Older acts are cited number first ("Regulation (EC) No 1907/2006"); the
    second token is taken as the year when only it reads as a four-digit year.
    """
    year = normalize_year(raw_year)
    first_is_year = len(raw_year) == 4 and plausible_year(year)
    if not first_is_year and len(raw_number) == 4 and plausible_year(int(raw_number)):
        return int(raw_number), int(raw_year)
    return year, int(raw_number)


def eu_document_id(doc_type: str, year: int, number: int) -> str:
    return f"{doc_type.lower()}:{year}/{number}"


def context_window(text: str, start: int, end: int, width: int = CONTEXT_CHARS) -> str:
    return normalize_whitespace(text[max(0, start - width):min(len(text), end + width)])


def detect_article(context: str) -> Optional[str]:
    m = ARTICLE_RE.search(context)
    return m.group(1) if m else None


def classify_reference(context: str) -> str:
    return 'implements' if IMPLEMENTS_RE.search(context) else 'references'


def _groups(pattern: re.Pattern, m: re.Match) -> tuple[str, Optional[str], str, str]:
    """Return (type, community, year, number) regardless of token order."""
    if pattern is COMMUNITY_FIRST_RE:
        return m.group(1), m.group(2), m.group(3), m.group(4)
    if pattern is COMMUNITY_LAST_RE:
        return m.group(1), m.group(4), m.group(2), m.group(3)
    return m.group(1), None, m.group(2), m.group(3)


def extract_references(text: str) -> List[ExternalReference]:
    if not text or not text.strip():
        return []
    refs: List[ExternalReference] = []
    seen = set()
    consumed: List[Tuple[int, int]] = []
    for pattern in (COMMUNITY_FIRST_RE, COMMUNITY_LAST_RE, BARE_RE):
        for m in pattern.finditer(text):
            # a span already matched by a more specific pattern is the same citation
            if any(m.start() < end and start < m.end() for start, end in consumed):
                continue
            consumed.append(m.span())
            raw_type, raw_community, raw_year, raw_number = _groups(pattern, m)
            year, number = year_and_number(raw_year, raw_number)
            if not plausible_year(year) or number <= 0:
                logger.debug(f"Ignoring citation with implausible year: {m.group(0)}")
                continue
            doc_type = raw_type.lower()
            ext_id = eu_document_id(doc_type, year, number)
            context = context_window(text, m.start(), m.end())
            article = detect_article(context)
            key = (ext_id, article or '')
            if key in seen:
                continue
            seen.add(key)
            refs.append(ExternalReference(
                doc_type=doc_type,
                community=COMMUNITIES.get((raw_community or 'EU').lower(), 'EU'),
                year=year,
                number=number,
                eu_document_id=ext_id,
                eu_article=article,
                full_citation=m.group(0),
                reference_context=context,
                reference_type=classify_reference(context),
            ))
    return refs


__all__ = [
    'extract_references', 'normalize_year', 'year_and_number', 'plausible_year', 'eu_document_id',
    'detect_article', 'classify_reference', 'context_window',
]
