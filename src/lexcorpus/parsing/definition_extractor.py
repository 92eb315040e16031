"""Term definition extraction from interpretation articles.

Interpretation articles ("Giải thích từ ngữ") list numbered clauses:

  1. Dữ liệu cá nhân là thông tin dưới dạng ký hiệu, chữ viết, ...
  2. Xử lý dữ liệu cá nhân bao gồm một hoặc nhiều hoạt động ...

Each clause runs to the next numbered clause or the end of the text and is
split into term and definition around the first copula. Numbered sub-clauses
nested inside a definition are not handled specially.
"""
from __future__ import annotations

import re
from typing import List, Optional

from lexcorpus.ingest.schemas import DefinitionSeed
from lexcorpus.parsing.html_text import normalize_whitespace

MAX_TERM_CHARS = 200
MIN_DEFINITION_CHARS = 5
MAX_DEFINITION_CHARS = 4000

COPULAS = ("có nghĩa là", "là", "bao gồm", "means", "includes")

# "<n>. " at a line start or right after . ; : (clauses flattened into one line)
CLAUSE_START_RE = re.compile(r"(?:^|(?<=[.;:]))[ \t]*(\d+)[ \t]*\.[ \t]+(?=\S)", re.MULTILINE)
COPULA_RE = re.compile(
    r"^([^\n]+?)\s+(?:" + "|".join(re.escape(c) for c in COPULAS) + r")\s+(.+)$",
    re.DOTALL,
)

INTERPRETATION_KEYWORDS = ("giải thích", "từ ngữ", "interpretation", "definition")


def is_interpretation_title(title: Optional[str]) -> bool:
    """True when an article title marks it as an interpretation/definitions article."""
    if not title:
        return False
    lowered = title.lower()
    return any(k in lowered for k in INTERPRETATION_KEYWORDS)


def split_numbered_clauses(content: str) -> List[str]:
    """Return the text of each numbered clause, without its number."""
    starts = list(CLAUSE_START_RE.finditer(content or ""))
    clauses: List[str] = []
    for i, m in enumerate(starts):
        end = starts[i + 1].start() if i + 1 < len(starts) else len(content)
        clauses.append(content[m.end():end].strip())
    return clauses


def split_term(clause: str) -> Optional[tuple[str, str]]:
    """Split one clause into (term, definition) around the first copula."""
    m = COPULA_RE.match(clause)
    if not m:
        return None
    return normalize_whitespace(m.group(1)), normalize_whitespace(m.group(2))


def extract_definitions(content: str, source_provision: Optional[str] = None) -> List[DefinitionSeed]:
    definitions: List[DefinitionSeed] = []
    seen = set()
    for clause in split_numbered_clauses(content):
        parts = split_term(clause)
        if parts is None:
            continue
        term, definition = parts
        if not (0 < len(term) < MAX_TERM_CHARS) or len(definition) <= MIN_DEFINITION_CHARS:
            continue
        if term in seen:
            continue
        seen.add(term)
        definitions.append(DefinitionSeed(
            term=term,
            definition=definition[:MAX_DEFINITION_CHARS],
            source_provision=source_provision,
        ))
    return definitions


__all__ = ['extract_definitions', 'is_interpretation_title', 'split_numbered_clauses', 'split_term']
