"""FTS5 query sanitising and the variant ladder used by every search tool.

Every term is emitted as a quoted FTS5 string, so punctuation inside a term
("2016/679", "12a-b") and bare operator words (AND, OR, NOT, NEAR) are
matched as text rather than parsed as query syntax.
"""
from __future__ import annotations

import re
from typing import List

_FTS_SPECIAL = re.compile(r"""['"(){}\[\]^~*:]""")
_WS = re.compile(r"\s+")
_WORD = re.compile(r"\w")


def sanitize_fts_input(text: str) -> str:
    """Drop characters with meaning in FTS5 syntax."""
    return _WS.sub(' ', _FTS_SPECIAL.sub(' ', text or '')).strip()


def quote_term(term: str) -> str:
    return f'"{term}"'


def build_fts_query_variants(sanitized: str) -> List[str]:
    """Variants from most to least specific.

    1. exact phrase (multi-term only)
    2. all terms required
    3. prefix match on the last term (single terms need 3+ characters)
    """
    # terms made only of punctuation tokenize to nothing
    terms = [t for t in (sanitized or '').split() if _WORD.search(t)]
    if not terms:
        return []
    quoted = [quote_term(t) for t in terms]
    variants: List[str] = []
    if len(terms) > 1:
        variants.append(quote_term(' '.join(terms)))
    variants.append(' AND '.join(quoted))
    if len(terms) == 1 and len(terms[0]) >= 3:
        variants.append(f"{quoted[0]}*")
    elif len(terms) > 1:
        variants.append(' AND '.join(quoted[:-1] + [f"{quoted[-1]}*"]))
    return variants


def query_variants(raw: str) -> List[str]:
    return build_fts_query_variants(sanitize_fts_input(raw))


__all__ = ['sanitize_fts_input', 'build_fts_query_variants', 'query_variants', 'quote_term']
