"""Article-level provision extraction for Vietnamese legislation.

Vietnamese statutes are organised as:
  - "Chương" (Chapter) groups of articles: Chương I, Chương II, ...
  - "Điều N" (Article N), the citable unit; stored as provision_ref ``dieuN``
  - "Khoản" / "Điểm" clauses and points inside an article (kept in content)

Two extraction tiers, tried in order:
 1. Anchor tier: thuvienphapluat.vn marks each article with
    ``<a name="dieu_N">``. Anchors appear once in the table of contents and
    again in the body, so only the last occurrence of each number is kept.
 2. Text tier: on the stripped text, find "Điều N." at a line start or after
    strong punctuation.

The anchor tier is accepted only when it yields more than
``MIN_ANCHOR_PROVISIONS`` provisions. In both tiers a recurring article
number keeps the candidate with the longest whitespace-collapsed content,
and a provision's chapter is the last chapter heading positioned before it.
"""
from __future__ import annotations

import bisect
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from lexcorpus.errors import ParseFailure
from lexcorpus.ingest.schemas import DefinitionSeed, DocumentDescriptor, DocumentSeed, ProvisionSeed
from lexcorpus.parsing.definition_extractor import extract_definitions, is_interpretation_title
from lexcorpus.parsing.html_text import normalize_whitespace, strip_html

logger = logging.getLogger(__name__)

PROVISION_PREFIX = 'dieu'
MIN_ANCHOR_PROVISIONS = 5
MAX_CONTENT_CHARS = 12000
LAST_SEGMENT_CHARS = 50000
MIN_SEGMENT_CHARS = 20
MIN_CONTENT_CHARS = 15
MAX_CHAPTER_CHARS = 200
TITLE_FALLBACK_CHARS = 120

ANCHOR_RE = re.compile(r'<a\s+name="dieu_(\d+[a-zA-Z]?)"\s*>', re.IGNORECASE)
CHAPTER_ANCHOR_RE = re.compile(
    r'<a\s+name="chuong_[^"]*"[^>]*>[\s\S]*?</a>[\s\S]*?(Ch[uư][oơ]ng\s+[IVXLCDM]+[\s\S]*?)(?=</[a-z])',
    re.IGNORECASE,
)
CHAPTER_BOLD_RE = re.compile(r'<b[^>]*>\s*(Ch[uư][oơ]ng\s+[IVXLCDM]+[^<]*)</b>', re.IGNORECASE)
TEXT_ARTICLE_RE = re.compile(r'(?:^|[\n.;)\]])[ \t]*Đi[eề]u\s+(\d+[a-zA-Z]?)\s*\.\s*')
TEXT_CHAPTER_RE = re.compile(r'(?:^|[\n.])[ \t]*(Ch[uư][oơ]ng\s+[IVXLCDM]+[^\n.]*)', re.IGNORECASE)
ARTICLE_TITLE_RE = re.compile(r'Đi[eề]u\s+\d+[a-zA-Z]?\s*\.\s*(.+?)(?:\n|$)')
ARTICLE_PREFIX_RE = re.compile(r'^Đi[eề]u\s+\d+[a-zA-Z]?\s*\.\s*')
SENTENCE_END_RE = re.compile(r'[.;]\s')


@dataclass(order=True)
class ChapterMarker:
    pos: int
    name: str = field(compare=False)


@dataclass
class Candidate:
    """One extracted article before deduplication."""
    number: str
    pos: int
    title: str
    content: str
    chapter: Optional[str] = None

    @property
    def normalized_length(self) -> int:
        return len(normalize_whitespace(self.content))


@dataclass
class ParsedDocument:
    provisions: List[ProvisionSeed]
    definitions: List[DefinitionSeed]
    method: str = 'none'


def provision_ref_for(number: str) -> str:
    return f"{PROVISION_PREFIX}{number}"


def chapter_for(markers: List[ChapterMarker], pos: int) -> Optional[str]:
    """Name of the nearest chapter heading strictly before ``pos``."""
    idx = bisect.bisect_left([m.pos for m in markers], pos)
    return markers[idx - 1].name if idx > 0 else None


def _clean_chapter_name(raw: str) -> str:
    return normalize_whitespace(strip_html(raw))[:MAX_CHAPTER_CHARS]


def find_html_chapters(html: str) -> List[ChapterMarker]:
    markers: List[ChapterMarker] = []
    for pattern in (CHAPTER_ANCHOR_RE, CHAPTER_BOLD_RE):
        for m in pattern.finditer(html):
            name = _clean_chapter_name(m.group(1))
            if len(name) > 3:
                markers.append(ChapterMarker(m.start(), name))
    markers.sort()
    return markers


def find_text_chapters(text: str) -> List[ChapterMarker]:
    markers = [
        ChapterMarker(m.start(), normalize_whitespace(m.group(1)))
        for m in TEXT_CHAPTER_RE.finditer(text)
    ]
    markers.sort()
    return markers


def find_article_anchors(html: str) -> List[tuple[str, int]]:
    """Retained (number, position) anchors: the last occurrence of each number, in position order."""
    last: Dict[str, int] = {}
    for m in ANCHOR_RE.finditer(html):
        last[m.group(1)] = m.start()
    return sorted(last.items(), key=lambda item: item[1])


def anchor_title(plain: str, number: str) -> tuple[str, str]:
    """Derive (title, content) for an anchor segment."""
    m = ARTICLE_TITLE_RE.search(plain)
    if m and m.group(1):
        title = m.group(1).strip()
        after = plain[m.end():].strip()
        content = (m.group(0).strip() + '\n' + after).strip()
    else:
        first_newline = plain.find('\n')
        if 0 < first_newline < 300:
            title = plain[:first_newline].strip()
        else:
            title = plain[:TITLE_FALLBACK_CHARS].strip()
            if len(title) < len(plain):
                title += '...'
        content = plain.strip()
    title = ARTICLE_PREFIX_RE.sub('', title).strip()
    return title or f"Điều {number}", content


def text_title(raw: str) -> str:
    first_newline = raw.find('\n')
    if 0 < first_newline < 200:
        return raw[:first_newline].strip()
    m = SENTENCE_END_RE.search(raw)
    if m and 0 < m.start() < 200:
        return raw[:m.start() + 1].strip()
    title = raw[:TITLE_FALLBACK_CHARS].strip()
    return title + '...' if len(title) < len(raw) else title


def candidates_from_anchors(html: str) -> List[Candidate]:
    anchors = find_article_anchors(html)
    if not anchors:
        raise ParseFailure("no dieu_N anchors in markup")
    chapters = find_html_chapters(html)
    out: List[Candidate] = []
    for i, (number, start) in enumerate(anchors):
        end = anchors[i + 1][1] if i + 1 < len(anchors) else min(start + LAST_SEGMENT_CHARS, len(html))
        plain = strip_html(html[start:end])
        # short segments are TOC cross-references, not articles
        if len(plain) < MIN_SEGMENT_CHARS:
            continue
        title, content = anchor_title(plain, number)
        if len(content) < MIN_CONTENT_CHARS:
            continue
        out.append(Candidate(number, start, title, content, chapter_for(chapters, start)))
    return out


def candidates_from_text(text: str) -> List[Candidate]:
    starts = list(TEXT_ARTICLE_RE.finditer(text))
    if not starts:
        raise ParseFailure("no 'Điều N.' markers in text")
    chapters = find_text_chapters(text)
    out: List[Candidate] = []
    for i, m in enumerate(starts):
        end = starts[i + 1].start() if i + 1 < len(starts) else len(text)
        raw = text[m.end():end].strip()
        if len(raw) < MIN_CONTENT_CHARS:
            continue
        out.append(Candidate(m.group(1), m.start(), text_title(raw), raw, chapter_for(chapters, m.start())))
    return out


def dedupe_candidates(candidates: List[Candidate]) -> List[Candidate]:
    """Keep the longest candidate per article number, in source order."""
    best: Dict[str, Candidate] = {}
    for c in candidates:
        current = best.get(c.number)
        if current is None or c.normalized_length > current.normalized_length:
            best[c.number] = c
    return sorted(best.values(), key=lambda c: c.pos)


def to_provision(c: Candidate) -> ProvisionSeed:
    metadata = {'interpretation': True} if is_interpretation_title(c.title) else None
    return ProvisionSeed(
        provision_ref=provision_ref_for(c.number),
        chapter=c.chapter,
        section=c.number,
        title=c.title,
        content=c.content[:MAX_CONTENT_CHARS],
        metadata=metadata,
    )


def definitions_for(provisions: List[ProvisionSeed]) -> List[DefinitionSeed]:
    definitions: List[DefinitionSeed] = []
    seen = set()
    for p in provisions:
        if not (p.metadata or {}).get('interpretation'):
            continue
        for d in extract_definitions(p.content, p.provision_ref):
            if d.term in seen:
                continue
            seen.add(d.term)
            definitions.append(d)
    return definitions


def _build(candidates: List[Candidate], method: str) -> ParsedDocument:
    provisions = [to_provision(c) for c in dedupe_candidates(candidates)]
    return ParsedDocument(provisions, definitions_for(provisions), method)


def parse_provisions(raw_markup: str) -> ParsedDocument:
    """Extract provisions and definitions from raw HTML (or plain text)."""
    try:
        by_anchor = _build(candidates_from_anchors(raw_markup), 'anchor')
        if len(by_anchor.provisions) > MIN_ANCHOR_PROVISIONS:
            return by_anchor
        logger.info(f"Anchor tier found only {len(by_anchor.provisions)} provisions; trying text patterns")
    except ParseFailure as e:
        logger.debug(f"Anchor tier: {e}")
    try:
        return _build(candidates_from_text(strip_html(raw_markup)), 'text')
    except ParseFailure as e:
        logger.warning(f"No article boundaries found: {e}")
        return ParsedDocument([], [], 'none')


def parse_document(raw_markup: str, descriptor: DocumentDescriptor) -> DocumentSeed:
    """Parse a fetched page into a seed record for ``descriptor``."""
    parsed = parse_provisions(raw_markup)
    seed = DocumentSeed.metadata_only(descriptor)
    seed.provisions = parsed.provisions
    seed.definitions = parsed.definitions
    logger.info(
        f"{descriptor.id}: {len(parsed.provisions)} provisions, "
        f"{len(parsed.definitions)} definitions ({parsed.method})"
    )
    return seed


__all__ = [
    'ParsedDocument', 'ChapterMarker', 'Candidate', 'parse_document', 'parse_provisions',
    'chapter_for', 'find_article_anchors', 'find_html_chapters', 'find_text_chapters',
    'dedupe_candidates', 'provision_ref_for', 'PROVISION_PREFIX', 'MAX_CONTENT_CHARS',
]
