# core/sanitizer.py
import re
from typing import Iterable, Optional, Pattern
import logging

from util.constants import REDACTION_MARKER

logger = logging.getLogger(__name__)


def _overlaps_marker(term: str, marker: str) -> bool:
    """True if `term` could match text that includes part of an inserted marker."""
    t, m = term.lower(), marker.lower()
    if t in m or m in t:
        return True
    for k in range(1, min(len(t), len(m))):
        # term ends where the marker begins, or begins where the marker ends
        if t.endswith(m[:k]) or t.startswith(m[-k:]):
            return True
    return False


class Sanitizer:
    """
    Case-insensitive substring redaction against a fixed denylist.

    Longer terms are tried first so overlapping entries redact the widest span.
    Terms that could match across an inserted marker are rejected, which keeps
    sanitize() idempotent: text left between markers already had no match,
    and no term can reach into a marker.
    """

    def __init__(self, terms: Iterable[str], marker: str = REDACTION_MARKER) -> None:
        cleaned = sorted({t.strip() for t in terms if t and t.strip()}, key=len, reverse=True)
        clashing = [t for t in cleaned if _overlaps_marker(t, marker)]
        if clashing:
            raise ValueError(f"denylist terms overlap the redaction marker: {clashing}")
        self._marker = marker
        self._pattern: Optional[Pattern[str]] = (
            re.compile("|".join(re.escape(t) for t in cleaned), re.IGNORECASE)
            if cleaned
            else None
        )
        logger.info("sanitizer.init terms=%d", len(cleaned))

    @property
    def marker(self) -> str:
        return self._marker

    def sanitize(self, text: str) -> str:
        if not text or self._pattern is None:
            return text or ""
        out, n = self._pattern.subn(lambda _: self._marker, text)
        if n:
            logger.info("sanitizer.redacted count=%d", n)
        return out
