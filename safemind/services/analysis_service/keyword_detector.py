"""Lexicon matching for mental-health concern and crisis vocabulary.

Matching is plain substring containment on case-folded text, not
tokenized: a term matches anywhere it appears, including inside larger
words ("numb" matches "numbers"). Changing this changes which messages
raise the mental-health flag.
"""
import logging
from typing import List, Optional, Sequence

from safemind.shared.models import KeywordMatch, KeywordTier
from .config import CONCERN_KEYWORDS, CRITICAL_KEYWORDS

logger = logging.getLogger(__name__)


class KeywordDetector:
    """Finds concern-tier and critical-tier lexicon terms in text."""

    def __init__(
        self,
        concern_keywords: Optional[Sequence[str]] = None,
        critical_keywords: Optional[Sequence[str]] = None,
    ):
        self.concern_keywords = CONCERN_KEYWORDS if concern_keywords is None else tuple(concern_keywords)
        self.critical_keywords = CRITICAL_KEYWORDS if critical_keywords is None else tuple(critical_keywords)

    def detect(self, text: str) -> List[KeywordMatch]:
        """Return every lexicon term contained in ``text``.

        Concern-tier matches come first, then critical-tier matches, each
        in lexicon order. A term is reported at most once per tier.
        """
        normalized = text.casefold()
        matches = [
            KeywordMatch(term=term, tier=KeywordTier.CONCERN)
            for term in self.concern_keywords
            if term in normalized
        ]
        matches.extend(
            KeywordMatch(term=term, tier=KeywordTier.CRITICAL)
            for term in self.critical_keywords
            if term in normalized
        )

        if matches:
            logger.debug(
                "KEYWORDS_MATCHED",
                extra={
                    "match_count": len(matches),
                    "critical_count": sum(1 for m in matches if m.is_critical),
                }
            )
        return matches
