"""Exception types shared by the ingestion pipeline.

Serve-time lookups never raise these; misses are reported in the result
shape instead (empty ``results`` plus a ``note``, or ``valid: False``).
"""
from __future__ import annotations


class LexCorpusError(Exception):
    """Base class for lexcorpus errors."""


class NetworkError(LexCorpusError):
    """A fetch failed at the transport level after all retries."""

    def __init__(self, url: str, attempts: int, cause: Exception | None = None) -> None:
        self.url = url
        self.attempts = attempts
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Failed to fetch {url} after {attempts} attempts{detail}")


class ParseFailure(LexCorpusError):
    """No article boundaries were found by an extraction tier."""


__all__ = ["LexCorpusError", "NetworkError", "ParseFailure"]
